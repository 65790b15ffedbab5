"""Pytest configuration for integration tests.

This module provides integration-test-specific fixtures: a mocked Ollama
client whose streamed replies are scripted per test, and an app whose tool
servers are fake sessions reached through the normal registry.
"""

import json
from unittest.mock import AsyncMock, patch
from urllib.parse import urlparse

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from toolhost_server import create_app
from toolhost_server.config import ToolServerConfig
from toolhost_server.transport import SSEClientSession


class OllamaScript:
    """Stands in for OllamaClient.chat_stream, one scripted reply per call.

    Every call's keyword arguments are recorded. When the script runs out,
    the last reply is repeated. An Exception entry is raised from the stream.
    """

    def __init__(self, replies):
        self.replies = list(replies)
        self.calls: list[dict] = []

    def __call__(self, **kwargs):
        self.calls.append(kwargs)
        reply = self.replies[min(len(self.calls), len(self.replies)) - 1]
        return self._stream(reply)

    async def _stream(self, reply):
        if isinstance(reply, Exception):
            raise reply
        for chunk in reply:
            yield chunk


def build_ollama_reply(text: str = "", tool_calls=()) -> list[dict]:
    """Chunks of one streamed Ollama reply; tool_calls are (name, arguments)."""
    message: dict = {"role": "assistant", "content": text}
    if tool_calls:
        message["tool_calls"] = [
            {"function": {"name": name, "arguments": arguments}}
            for name, arguments in tool_calls
        ]
    return [
        {"model": "test-model", "message": message, "done": False},
        {
            "model": "test-model",
            "message": {"role": "assistant", "content": ""},
            "done": True,
            "eval_count": 5,
            "prompt_eval_count": 20,
        },
    ]


def parse_sse(text: str) -> list[dict]:
    """Split an SSE response body into {"event", "data"} dicts."""
    events = []
    normalized_text = text.replace("\r\n", "\n")
    for block in normalized_text.strip().split("\n\n"):
        event_type = None
        event_data = None
        for part in block.split("\n"):
            if part.startswith("event:"):
                event_type = part.split(":", 1)[1].strip()
            elif part.startswith("data:"):
                event_data = part.split(":", 1)[1].strip()
        if event_type and event_data:
            events.append({"event": event_type, "data": json.loads(event_data)})
    return events


@pytest.fixture(autouse=True)
def mock_ollama_client():
    """Mock OllamaClient for all integration tests.

    This fixture patches the OllamaClient class before the app is created,
    ensuring the lifespan uses our mock instead of creating a real client.
    """
    with patch("toolhost_server.app.OllamaClient") as mock_client_class:
        mock_instance = AsyncMock()
        mock_instance.host = "http://localhost:11434"
        mock_instance.check_connection.return_value = True

        # Return the mock instance when OllamaClient is instantiated
        mock_client_class.return_value = mock_instance

        yield mock_instance


@pytest.fixture
def ollama_reply():
    """Builder for the chunks of one streamed Ollama reply."""
    return build_ollama_reply


@pytest.fixture
def sse_events():
    """Parser for SSE response bodies."""
    return parse_sse


@pytest.fixture
def script_ollama(mock_ollama_client):
    """Install scripted replies: script_ollama(reply, reply, ...)."""

    def script(*replies) -> OllamaScript:
        ollama_script = OllamaScript(replies)
        mock_ollama_client.chat_stream = ollama_script
        return ollama_script

    return script


@pytest.fixture
def tool_sessions(lookup_session_factory):
    """Fake sessions to two tool servers, keyed by server name."""
    return {
        name: lookup_session_factory(name) for name in ("alpha", "beta")
    }


@pytest_asyncio.fixture
async def tool_client(test_settings, tool_sessions):
    """Async client for an app connected to the "alpha" and "beta" servers.

    Sessions are opened through the registry as usual; only the SSE
    connection itself is replaced by the fake sessions.
    """
    test_settings.tool_servers = [
        ToolServerConfig(name=name, url=f"http://{name}:8100/sse")
        for name in tool_sessions
    ]
    app = create_app(settings=test_settings)

    async def open_session(url, **kwargs):
        return tool_sessions[urlparse(url).hostname]

    with patch.object(SSEClientSession, "open", AsyncMock(side_effect=open_session)):
        async with app.router.lifespan_context(app):
            transport = ASGITransport(app=app)
            async with AsyncClient(
                transport=transport, base_url="http://test"
            ) as client:
                yield client


@pytest_asyncio.fixture
async def conversation_id(tool_client):
    """Id of a fresh conversation on the tool-connected app."""
    response = await tool_client.post("/api/v1/conversations")
    assert response.status_code == 201
    return response.json()["conversation_id"]
