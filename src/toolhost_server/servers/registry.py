"""Registry of the remote tool servers the host talks to.

This module provides the ToolServerRegistry class which handles:
- Registering servers from configuration
- Connecting all servers concurrently at startup, collecting every result
- Fetching and storing each connected server's tools
- Building the tool catalog and swapping it in as a whole
- Closing every session at shutdown
"""

import asyncio
import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Awaitable, Callable

from toolhost_server.config import QUALIFIED_NAME_SEPARATOR, ToolServerConfig
from toolhost_server.tools.catalog import ToolCatalog, ToolDescriptor
from toolhost_server.transport.client import SSEClientSession

logger = logging.getLogger(__name__)


class ServerState(str, Enum):
    """Connection state of a remote tool server."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    FAILED = "failed"


@dataclass
class RemoteServer:
    """A configured tool server and what the host knows about it."""

    name: str
    url: str
    state: ServerState = ServerState.DISCONNECTED
    session: Any = None
    tools: list[ToolDescriptor] = field(default_factory=list)
    error: str | None = None


@dataclass(frozen=True)
class ConnectResult:
    """Outcome of connecting one server."""

    name: str
    state: ServerState
    tool_count: int = 0
    error: str | None = None

    @property
    def connected(self) -> bool:
        return self.state == ServerState.CONNECTED


# Opens a session to a server URL. The returned object must provide
# list_tools(), call_tool() and close().
Connector = Callable[[str], Awaitable[Any]]


class ToolServerRegistry:
    """Holds every configured server, its session, and the tool catalog.

    Connection failures are terminal for the affected server until the
    process restarts: a FAILED server contributes no tools and is never
    dispatched to, while the other servers are unaffected.
    """

    def __init__(
        self,
        connect_timeout: float = 10.0,
        request_timeout: float = 30.0,
        connector: Connector | None = None,
    ) -> None:
        """Initialize the registry.

        Args:
            connect_timeout: Upper bound for connecting one server and
                listing its tools, in seconds
            request_timeout: Default timeout of requests on a session
            connector: Opens a session for a URL (default: SSE session)
        """
        self.connect_timeout = connect_timeout
        self.request_timeout = request_timeout
        self._connector = connector or self._open_sse_session
        self._servers: dict[str, RemoteServer] = {}
        self._catalog = ToolCatalog()

    async def _open_sse_session(self, url: str) -> SSEClientSession:
        return await SSEClientSession.open(
            url, timeout=self.connect_timeout, request_timeout=self.request_timeout
        )

    @property
    def catalog(self) -> ToolCatalog:
        """The current tool catalog. Never mutated; replaced on rebuild."""
        return self._catalog

    def register_server(self, config: ToolServerConfig) -> RemoteServer:
        """Add a server in the DISCONNECTED state.

        Args:
            config: Server name and URL

        Returns:
            RemoteServer: The registered entry

        Raises:
            ValueError: If the name is taken or contains the qualified-name
                separator
        """
        if config.name in self._servers:
            raise ValueError(f"Tool server '{config.name}' is already registered")
        if QUALIFIED_NAME_SEPARATOR in config.name:
            raise ValueError(
                f"Server name '{config.name}' must not contain "
                f"'{QUALIFIED_NAME_SEPARATOR}'"
            )

        server = RemoteServer(name=config.name, url=config.url)
        self._servers[config.name] = server
        logger.debug(f"Registered tool server {config.name} at {config.url}")
        return server

    async def connect_all(self) -> dict[str, ConnectResult]:
        """Connect every DISCONNECTED server concurrently.

        Each server is attempted independently; one failing or slow server
        does not affect the others beyond its own timeout. The catalog is
        rebuilt once every attempt has finished.

        Returns:
            dict: Server name to ConnectResult, for every registered server
        """
        pending = [
            server
            for server in self._servers.values()
            if server.state == ServerState.DISCONNECTED
        ]
        logger.info(f"Connecting {len(pending)} tool servers")

        await asyncio.gather(*(self._connect_server(server) for server in pending))
        self._rebuild_catalog()

        results = {
            server.name: self._result(server) for server in self._servers.values()
        }
        connected = sum(1 for result in results.values() if result.connected)
        logger.info(
            f"Connected {connected}/{len(results)} tool servers, "
            f"{len(self._catalog)} tools available"
        )
        return results

    async def _connect_server(self, server: RemoteServer) -> None:
        server.state = ServerState.CONNECTING
        session = None
        try:
            session = await asyncio.wait_for(
                self._connector(server.url), timeout=self.connect_timeout
            )
            tools = await asyncio.wait_for(
                session.list_tools(), timeout=self.connect_timeout
            )
        except asyncio.TimeoutError:
            await self._mark_failed(
                server, session, f"Timed out after {self.connect_timeout}s"
            )
            return
        except Exception as e:
            await self._mark_failed(server, session, str(e))
            return

        server.session = session
        server.tools = [replace(tool, server=server.name) for tool in tools]
        server.state = ServerState.CONNECTED
        server.error = None
        logger.info(
            f"Connected to {server.name} with tools: "
            f"{[tool.name for tool in server.tools]}"
        )

    async def _mark_failed(
        self, server: RemoteServer, session: Any, error: str
    ) -> None:
        if session is not None:
            try:
                await session.close()
            except Exception as e:
                logger.debug(f"Error closing session to {server.name}: {e}")
        server.session = None
        server.tools = []
        server.state = ServerState.FAILED
        server.error = error
        logger.error(f"Failed to connect to {server.name}: {error}")

    async def refresh_tools(self) -> ToolCatalog:
        """Re-list the tools of every connected server and rebuild the catalog.

        A server whose listing fails keeps its previous tools.

        Returns:
            ToolCatalog: The new catalog
        """
        connected = [
            server
            for server in self._servers.values()
            if server.state == ServerState.CONNECTED
        ]

        async def refresh(server: RemoteServer) -> None:
            try:
                tools = await asyncio.wait_for(
                    server.session.list_tools(), timeout=self.request_timeout
                )
            except Exception as e:
                logger.warning(f"Could not refresh tools of {server.name}: {e}")
                return
            server.tools = [replace(tool, server=server.name) for tool in tools]

        await asyncio.gather(*(refresh(server) for server in connected))
        return self._rebuild_catalog()

    def _rebuild_catalog(self) -> ToolCatalog:
        catalog = ToolCatalog.build(
            (server.name, server.tools)
            for server in self._servers.values()
            if server.state == ServerState.CONNECTED
        )
        self._catalog = catalog
        return catalog

    def _result(self, server: RemoteServer) -> ConnectResult:
        return ConnectResult(
            name=server.name,
            state=server.state,
            tool_count=len(server.tools),
            error=server.error,
        )

    def get_session(self, server_name: str) -> Any:
        """The open session of a connected server, or None."""
        server = self._servers.get(server_name)
        if server is None or server.state != ServerState.CONNECTED:
            return None
        return server.session

    def get_server(self, server_name: str) -> RemoteServer | None:
        return self._servers.get(server_name)

    def servers(self) -> list[RemoteServer]:
        """Registered servers in registration order."""
        return list(self._servers.values())

    async def close_all(self) -> None:
        """Close every open session."""
        for server in self._servers.values():
            if server.session is None:
                continue
            try:
                await server.session.close()
            except Exception as e:
                logger.warning(f"Error closing session to {server.name}: {e}")
            server.session = None
            server.state = ServerState.DISCONNECTED
        logger.info("Closed all tool server sessions")
