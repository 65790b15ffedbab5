"""Unit tests for the health check endpoint."""

from unittest.mock import AsyncMock

import pytest

from toolhost_server.config import ToolServerConfig
from toolhost_server.servers import ServerState, ToolServerRegistry


@pytest.mark.asyncio
async def test_health_check_returns_ok(async_client):
    """Test that health check returns status ok."""
    response = await async_client.get("/api/v1/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["version"] == "0.1.0"


@pytest.mark.asyncio
async def test_health_check_response_structure(async_client):
    """Test that health check response has correct structure."""
    response = await async_client.get("/api/v1/health")

    assert response.status_code == 200
    data = response.json()

    for key in [
        "status",
        "version",
        "ollama_connected",
        "ollama_host",
        "servers_connected",
        "servers_total",
    ]:
        assert key in data
    assert "application/json" in response.headers["content-type"]


@pytest.mark.asyncio
async def test_health_check_with_ollama_connected(async_client, test_app):
    """Test health check when Ollama is connected."""
    mock_client = AsyncMock()
    mock_client.host = "http://localhost:11434"
    mock_client.check_connection.return_value = True
    test_app.state.ollama_client = mock_client

    response = await async_client.get("/api/v1/health")

    assert response.status_code == 200
    data = response.json()
    assert data["ollama_connected"] is True
    assert data["ollama_host"] == "http://localhost:11434"


@pytest.mark.asyncio
async def test_health_check_ollama_check_exception(async_client, test_app):
    """Test health check when Ollama connectivity check raises exception."""
    mock_client = AsyncMock()
    mock_client.host = "http://localhost:11434"
    mock_client.check_connection.side_effect = Exception("Connection error")
    test_app.state.ollama_client = mock_client

    response = await async_client.get("/api/v1/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"  # Host is still healthy
    assert data["ollama_connected"] is False


@pytest.mark.asyncio
async def test_health_check_no_ollama_client(async_client, test_app):
    """Test health check when Ollama client is not initialized."""
    if hasattr(test_app.state, "ollama_client"):
        delattr(test_app.state, "ollama_client")

    response = await async_client.get("/api/v1/health")

    assert response.status_code == 200
    data = response.json()
    assert data["ollama_connected"] is None
    assert data["ollama_host"] is None


@pytest.mark.asyncio
async def test_health_check_counts_tool_servers(async_client, test_app):
    """Test that connected and configured tool servers are counted."""
    registry = ToolServerRegistry()
    alpha = registry.register_server(
        ToolServerConfig(name="alpha", url="http://alpha:8100/sse")
    )
    registry.register_server(ToolServerConfig(name="beta", url="http://beta:8100/sse"))
    alpha.state = ServerState.CONNECTED
    test_app.state.registry = registry

    response = await async_client.get("/api/v1/health")

    data = response.json()
    assert data["servers_connected"] == 1
    assert data["servers_total"] == 2
