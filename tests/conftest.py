"""Pytest configuration and shared fixtures for toolhost-server tests.

This module provides common fixtures used across all test modules,
including test app creation, async client setup, fake tool sessions
and a scripted chat model.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from toolhost_server import create_app
from toolhost_server.config import ToolhostSettings
from toolhost_server.errors import TransportFailure
from toolhost_server.orchestration import ModelResponse, TextBlock, ToolUseBlock
from toolhost_server.tools import ToolDescriptor
from toolhost_server.transport import ToolCallResult

KEY_SCHEMA = {
    "type": "object",
    "properties": {"key": {"type": "string", "description": "Key to look up"}},
    "required": ["key"],
}


class FakeToolSession:
    """A tool session answering from local Python functions.

    Tools are registered with the tool() decorator. A tool that raises is
    reported the way a tool server reports it: as an error result, not a
    transport failure.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self.tools: dict[str, tuple[str, dict, object]] = {}
        self.calls: list[tuple[str, dict]] = []
        self.closed = False
        self.broken = False

    def tool(self, name: str, description: str, input_schema: dict | None = None):
        def decorator(func):
            self.tools[name] = (
                description,
                input_schema or {"type": "object", "properties": {}},
                func,
            )
            return func

        return decorator

    def _check_open(self) -> None:
        if self.closed or self.broken:
            raise TransportFailure(f"Session to {self.name} is closed")

    async def list_tools(self) -> list[ToolDescriptor]:
        self._check_open()
        return [
            ToolDescriptor(name=name, description=description, input_schema=schema)
            for name, (description, schema, _) in self.tools.items()
        ]

    async def call_tool(self, name, arguments, timeout=None) -> ToolCallResult:
        self.calls.append((name, arguments))
        self._check_open()
        if name not in self.tools:
            raise TransportFailure(f"Unknown tool: {name}")
        func = self.tools[name][2]
        try:
            text = await func(**arguments)
        except Exception as e:
            message = f"Error executing tool {name}: {e}"
            return ToolCallResult(
                content=[{"type": "text", "text": message}], is_error=True
            )
        return ToolCallResult(content=[{"type": "text", "text": text}])

    async def close(self) -> None:
        self.closed = True


def build_lookup_session(name: str) -> FakeToolSession:
    """A session with a "lookup" tool answering "<name>:<key>"."""
    session = FakeToolSession(name)

    @session.tool("lookup", f"Look a key up on {name}", KEY_SCHEMA)
    async def lookup(key: str) -> str:
        return f"{name}:{key}"

    @session.tool("explode", f"Always fails on {name}")
    async def explode() -> str:
        raise RuntimeError("kaboom")

    return session


class ScriptedChatModel:
    """A ChatModel answering from a fixed list of responses.

    Every request is recorded. When the script runs out, the last response
    is repeated.
    """

    def __init__(self, responses: list[ModelResponse]) -> None:
        self.responses = list(responses)
        self.requests = []

    async def complete(self, request):
        self.requests.append(request)
        index = min(len(self.requests), len(self.responses)) - 1
        response = self.responses[index]
        if isinstance(response, Exception):
            raise response
        return response


def text_reply(text: str) -> ModelResponse:
    return ModelResponse(blocks=[TextBlock(text=text)])


def tool_reply(*calls: tuple, text: str | None = None) -> ModelResponse:
    """Build a reply calling tools; each call is (name, arguments[, id])."""
    blocks = [TextBlock(text=text)] if text else []
    for call in calls:
        name, arguments = call[0], call[1]
        call_id = call[2] if len(call) > 2 else None
        blocks.append(ToolUseBlock(name=name, arguments=arguments, id=call_id))
    return ModelResponse(blocks=blocks)


@pytest.fixture
def lookup_session_factory():
    """Factory for sessions with a "lookup" and an "explode" tool."""
    return build_lookup_session


@pytest.fixture
def scripted_model_factory():
    """Factory for scripted chat models."""
    return ScriptedChatModel


@pytest.fixture
def replies():
    """Helpers building model replies: replies.text(...), replies.tools(...)."""

    class Replies:
        text = staticmethod(text_reply)
        tools = staticmethod(tool_reply)

    return Replies


@pytest.fixture
def test_settings():
    """Create test settings without any tool servers.

    Returns:
        ToolhostSettings: Settings instance configured for testing.
    """
    return ToolhostSettings(
        host="127.0.0.1",
        port=8000,
        ollama_host="http://localhost:11434",
        model="test-model",
        tool_servers=[],
        connect_timeout=1.0,
        tool_call_timeout=1.0,
        chat_timeout=5.0,
        max_tool_rounds=4,
        log_level="DEBUG",
        cors_origins=["*"],
    )


@pytest.fixture
def test_app(test_settings):
    """Create a FastAPI test application instance.

    Args:
        test_settings: Test settings fixture.

    Returns:
        FastAPI: Configured test application.
    """
    return create_app(settings=test_settings)


@pytest_asyncio.fixture
async def async_client(test_app):
    """Create an async HTTP client for testing FastAPI endpoints.

    Args:
        test_app: Test application fixture.

    Yields:
        AsyncClient: Async HTTP client for making test requests.
    """
    # Trigger the lifespan startup manually for tests
    async with test_app.router.lifespan_context(test_app):
        transport = ASGITransport(app=test_app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client
