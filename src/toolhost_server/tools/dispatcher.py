"""Routes qualified tool calls to the server that owns the tool."""

import asyncio
import logging
from typing import Any, Callable, Protocol

from toolhost_server.errors import ToolNotFoundError, TransportFailure
from toolhost_server.sessions.types import ToolOutcomePayload
from toolhost_server.tools.catalog import ToolCatalog

logger = logging.getLogger(__name__)

UNKNOWN_TOOL = "unknown_tool"
TOOL_ERROR = "tool_error"
TRANSPORT_ERROR = "transport_error"


class ToolSession(Protocol):
    """What the dispatcher needs from an open server session."""

    async def call_tool(
        self, name: str, arguments: dict[str, Any], timeout: float | None = None
    ) -> Any: ...


class SessionProvider(Protocol):
    """Looks up the open session of a server by name."""

    def get_session(self, server_name: str) -> ToolSession | None: ...


class Dispatcher(Protocol):
    """Invokes a tool by qualified name; ToolDispatcher is the implementation."""

    async def dispatch(
        self, qualified_name: str, arguments: dict[str, Any]
    ) -> ToolOutcomePayload: ...


class ToolDispatcher:
    """Resolves a qualified tool name and invokes it on its server.

    The dispatcher never raises for unknown tools or failing calls. Every
    outcome, including failures, comes back as a ToolOutcomePayload whose
    error_kind tells "the tool ran and failed" (tool_error) apart from "the
    tool could not be reached" (transport_error) and "no such tool"
    (unknown_tool).
    """

    def __init__(
        self,
        catalog: Callable[[], ToolCatalog],
        sessions: SessionProvider,
        call_timeout: float = 30.0,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            catalog: Returns the current catalog; read once per dispatch
            sessions: Provides the open session of each server
            call_timeout: Upper bound for one tool call, in seconds
        """
        self._catalog = catalog
        self._sessions = sessions
        self.call_timeout = call_timeout

    async def dispatch(
        self, qualified_name: str, arguments: dict[str, Any]
    ) -> ToolOutcomePayload:
        """Invoke a tool by qualified name.

        Args:
            qualified_name: The namespaced tool name the model used
            arguments: Tool arguments

        Returns:
            ToolOutcomePayload: The tool's content, or an error payload
        """
        try:
            entry = self._catalog().resolve(qualified_name)
        except ToolNotFoundError as e:
            logger.warning(f"Dispatch of unknown tool {qualified_name}")
            return ToolOutcomePayload.failure(UNKNOWN_TOOL, e.message)

        session = self._sessions.get_session(entry.server)
        if session is None:
            logger.warning(
                f"Dispatch of {qualified_name}: server {entry.server} has no session"
            )
            return ToolOutcomePayload.failure(
                TRANSPORT_ERROR, f"Server {entry.server} is not connected"
            )

        logger.info(f"Calling {entry.tool_name} on server {entry.server}")
        try:
            result = await asyncio.wait_for(
                session.call_tool(
                    entry.tool_name, arguments, timeout=self.call_timeout
                ),
                timeout=self.call_timeout,
            )
        except asyncio.TimeoutError:
            logger.error(f"Call to {qualified_name} timed out")
            return ToolOutcomePayload.failure(
                TRANSPORT_ERROR,
                f"Tool {qualified_name} timed out after {self.call_timeout}s",
            )
        except TransportFailure as e:
            logger.error(f"Call to {qualified_name} failed: {e.message}")
            return ToolOutcomePayload.failure(TRANSPORT_ERROR, e.message)

        if result.is_error:
            logger.info(f"Tool {qualified_name} reported an error")
            return ToolOutcomePayload.failure(
                TOOL_ERROR,
                f"Tool {qualified_name} failed",
                content=result.content,
            )
        return ToolOutcomePayload.success(result.content)
