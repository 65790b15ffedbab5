"""Unit tests for the OllamaClient wrapper."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from toolhost_server.ollama import OllamaClient


@pytest.fixture
def mock_ollama_async_client():
    """Create a mock ollama.AsyncClient."""
    with patch("toolhost_server.ollama.client.ollama.AsyncClient") as mock_class:
        mock_instance = AsyncMock()
        mock_class.return_value = mock_instance
        yield mock_instance


@pytest.fixture
def ollama_client(mock_ollama_async_client):
    """Create an OllamaClient with mocked AsyncClient."""
    return OllamaClient(host="http://localhost:11434")


def test_client_initialization():
    """Test that OllamaClient passes the host to ollama.AsyncClient."""
    with patch("toolhost_server.ollama.client.ollama.AsyncClient") as mock_class:
        client = OllamaClient(host="http://test:11434")

    assert client.host == "http://test:11434"
    mock_class.assert_called_once_with(host="http://test:11434")


@pytest.mark.asyncio
async def test_check_connection_success(ollama_client, mock_ollama_async_client):
    """Test successful connection check."""
    mock_ollama_async_client.list.return_value = {"models": []}

    assert await ollama_client.check_connection() is True
    mock_ollama_async_client.list.assert_called_once()


@pytest.mark.asyncio
async def test_check_connection_failure(ollama_client, mock_ollama_async_client):
    """Test connection check when Ollama is unreachable."""
    mock_ollama_async_client.list.side_effect = Exception("Connection refused")

    assert await ollama_client.check_connection() is False


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "model, expected",
    [
        ("qwen3:8b", True),
        ("llama3.2", True),
        ("llama3.2:1b", False),
        ("mistral", False),
    ],
)
async def test_has_model(ollama_client, mock_ollama_async_client, model, expected):
    """Test model lookup, with an untagged name meaning ":latest"."""
    listing = MagicMock()
    listing.model_dump.return_value = {
        "models": [{"model": "qwen3:8b"}, {"model": "llama3.2:latest"}]
    }
    mock_ollama_async_client.list.return_value = listing

    assert await ollama_client.has_model(model) is expected


@pytest.mark.asyncio
async def test_has_model_reads_plain_objects(ollama_client, mock_ollama_async_client):
    """Test that entries without model_dump are read through their attributes."""
    mock_ollama_async_client.list.return_value = {
        "models": [SimpleNamespace(model=None, name="qwen3:8b")]
    }

    assert await ollama_client.has_model("qwen3:8b") is True


@pytest.mark.asyncio
async def test_chat_stream_passes_tools_and_options(
    ollama_client, mock_ollama_async_client
):
    """Test that chat_stream forwards tools and options and yields dicts."""
    chunk_object = MagicMock()
    chunk_object.model_dump.return_value = {
        "model": "qwen3:8b",
        "message": {"role": "assistant", "content": "Hi"},
        "done": False,
    }
    chunk_dict = {"model": "qwen3:8b", "message": {"content": ""}, "done": True}

    async def stream():
        yield chunk_object
        yield chunk_dict

    mock_ollama_async_client.chat.return_value = stream()
    tools = [{"type": "function", "function": {"name": "alpha_lookup"}}]

    chunks = [
        chunk
        async for chunk in ollama_client.chat_stream(
            model="qwen3:8b",
            messages=[{"role": "user", "content": "hi"}],
            tools=tools,
            options={"num_predict": 64},
        )
    ]

    assert chunks[0]["message"]["content"] == "Hi"
    assert chunks[1]["done"] is True
    kwargs = mock_ollama_async_client.chat.call_args.kwargs
    assert kwargs["tools"] == tools
    assert kwargs["options"] == {"num_predict": 64}
    assert kwargs["stream"] is True


@pytest.mark.asyncio
async def test_chat_stream_without_tools(ollama_client, mock_ollama_async_client):
    """Test that an empty tool list is sent as no tools at all."""

    async def stream():
        yield {"message": {"content": "ok"}, "done": True}

    mock_ollama_async_client.chat.return_value = stream()

    async for _ in ollama_client.chat_stream(model="m", messages=[], tools=[]):
        pass

    assert mock_ollama_async_client.chat.call_args.kwargs["tools"] is None


@pytest.mark.asyncio
async def test_chat_stream_propagates_errors(ollama_client, mock_ollama_async_client):
    """Test that API failures are raised to the caller."""
    mock_ollama_async_client.chat.side_effect = Exception("model not found")

    with pytest.raises(Exception, match="model not found"):
        async for _ in ollama_client.chat_stream(model="m", messages=[]):
            pass
