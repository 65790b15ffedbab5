"""Client side of a tool server session over SSE.

The wire protocol is handled by the mcp SDK: sse_client opens the event
stream and posts to the endpoint the server announces, and ClientSession
performs the initialize handshake and matches responses to requests.

The SDK's task groups must be entered and left from the same task, so each
SSEClientSession owns a runner task that holds both contexts open until the
session is closed. Requests from any other task go through the SDK's memory
streams.
"""

import asyncio
import logging
from contextlib import suppress
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Awaitable, Callable, TypeVar

from mcp import ClientSession
from mcp.client.sse import sse_client
from mcp.shared.exceptions import McpError
from mcp.types import Implementation

from toolhost_server import __version__
from toolhost_server.errors import ConnectFailure, TransportFailure
from toolhost_server.tools.catalog import ToolDescriptor

logger = logging.getLogger(__name__)

T = TypeVar("T")

# How long close() waits for the runner to leave the SDK contexts
CLOSE_TIMEOUT = 5.0


@dataclass
class ToolCallResult:
    """Result of a tools/call request.

    Attributes:
        content: Content blocks returned by the tool
        is_error: True if the tool ran and reported a failure
    """

    content: list[dict[str, Any]] = field(default_factory=list)
    is_error: bool = False


def _root_cause(error: BaseException) -> BaseException:
    """Unwrap task group exception groups down to the first real error."""
    while isinstance(error, BaseExceptionGroup) and error.exceptions:
        error = error.exceptions[0]
    return error


class SSEClientSession:
    """One open session with a remote tool server.

    Use SSEClientSession.open() to connect; it performs the initialize
    handshake and returns a ready session.

    Attributes:
        url: URL of the server's SSE stream endpoint
        server_info: serverInfo returned by the initialize handshake
    """

    def __init__(
        self,
        url: str,
        request_timeout: float = 30.0,
        connect_timeout: float = 10.0,
        httpx_client_factory: Callable[..., Any] | None = None,
        client_name: str = "toolhost-server",
    ) -> None:
        self.url = url
        self.request_timeout = request_timeout
        self.connect_timeout = connect_timeout
        self.client_name = client_name
        self.server_info: dict[str, Any] = {}

        self._httpx_client_factory = httpx_client_factory
        self._session: ClientSession | None = None
        self._runner: asyncio.Task | None = None
        self._stop = asyncio.Event()
        self._closed = False

    @classmethod
    async def open(
        cls,
        url: str,
        timeout: float = 10.0,
        request_timeout: float = 30.0,
        httpx_client_factory: Callable[..., Any] | None = None,
    ) -> "SSEClientSession":
        """Connect to a tool server and complete the handshake.

        Args:
            url: URL of the server's SSE stream endpoint
            timeout: Upper bound for the whole connect + handshake
            request_timeout: Default timeout of each later request
            httpx_client_factory: Optional factory for the underlying
                httpx.AsyncClient, called with headers, timeout and auth

        Returns:
            SSEClientSession: The connected session

        Raises:
            ConnectFailure: If the server is unreachable or the handshake fails
        """
        session = cls(
            url,
            request_timeout=request_timeout,
            connect_timeout=timeout,
            httpx_client_factory=httpx_client_factory,
        )
        ready = asyncio.get_running_loop().create_future()
        session._runner = asyncio.create_task(session._run(ready))

        try:
            await asyncio.wait_for(ready, timeout=timeout)
        except asyncio.TimeoutError:
            await session.close()
            raise ConnectFailure(
                f"Timed out connecting to {url} after {timeout}s",
                details={"url": url},
            )
        except Exception as e:
            await session.close()
            cause = _root_cause(e)
            raise ConnectFailure(
                f"Failed to connect to {url}: {cause}", details={"url": url}
            ) from e
        return session

    @property
    def is_open(self) -> bool:
        return not self._closed and self._session is not None

    async def _run(self, ready: asyncio.Future) -> None:
        """Hold the SDK contexts open until close() is called."""
        # The stream itself keeps the SDK's default read timeout; servers
        # send keep-alive pings well inside it.
        client_kwargs: dict[str, Any] = {"timeout": self.connect_timeout}
        if self._httpx_client_factory is not None:
            client_kwargs["httpx_client_factory"] = self._httpx_client_factory

        try:
            async with sse_client(self.url, **client_kwargs) as (read, write):
                async with ClientSession(
                    read,
                    write,
                    read_timeout_seconds=timedelta(seconds=self.request_timeout),
                    client_info=Implementation(
                        name=self.client_name, version=__version__
                    ),
                ) as session:
                    result = await session.initialize()
                    self.server_info = result.serverInfo.model_dump()
                    self._session = session
                    logger.info(
                        f"Session initialized with "
                        f"{self.server_info.get('name', 'unknown server')} "
                        f"at {self.url}"
                    )
                    if not ready.done():
                        ready.set_result(None)
                    await self._stop.wait()
        except Exception as e:
            if not ready.done():
                ready.set_exception(e)
            else:
                logger.warning(
                    f"Session to {self.url} failed: {_root_cause(e)}"
                )
        finally:
            self._closed = True
            self._session = None

    async def _call(
        self,
        method: str,
        request: Callable[[ClientSession], Awaitable[T]],
        timeout: float,
    ) -> T:
        """Run one SDK request and map its failures to TransportFailure."""
        session = self._session
        if self._closed or session is None:
            raise TransportFailure(
                f"Session to {self.url} is closed", details={"url": self.url}
            )
        try:
            return await asyncio.wait_for(request(session), timeout=timeout)
        except asyncio.TimeoutError:
            raise TransportFailure(
                f"{method} on {self.url} timed out after {timeout}s",
                details={"url": self.url, "method": method},
            )
        except McpError as e:
            raise TransportFailure(
                f"{method} on {self.url} failed: {e.error.message}",
                details={"url": self.url, "method": method, "code": e.error.code},
            ) from e
        except Exception as e:
            raise TransportFailure(
                f"{method} on {self.url} failed: {_root_cause(e)}",
                details={"url": self.url, "method": method},
            ) from e

    async def list_tools(self) -> list[ToolDescriptor]:
        """Fetch the server's advertised tools.

        The descriptors are not yet tagged with a server name; the registry
        does that.

        Raises:
            TransportFailure: If the request fails
        """
        result = await self._call(
            "tools/list", lambda session: session.list_tools(), self.request_timeout
        )
        tools = [
            ToolDescriptor(
                name=tool.name,
                description=tool.description or f"Tool: {tool.name}",
                input_schema=tool.inputSchema or {},
            )
            for tool in result.tools
        ]
        logger.debug(f"tools/list on {self.url} returned {len(tools)} tools")
        return tools

    async def call_tool(
        self,
        name: str,
        arguments: dict[str, Any],
        timeout: float | None = None,
    ) -> ToolCallResult:
        """Invoke a tool by its unqualified name.

        Raises:
            TransportFailure: If the request fails or times out
        """
        timeout = timeout or self.request_timeout
        result = await self._call(
            "tools/call",
            lambda session: session.call_tool(
                name,
                arguments,
                read_timeout_seconds=timedelta(seconds=timeout),
            ),
            timeout,
        )
        return ToolCallResult(
            content=[
                block.model_dump(mode="json", by_alias=True, exclude_none=True)
                for block in result.content
            ],
            is_error=bool(result.isError),
        )

    async def close(self) -> None:
        """Leave the SDK contexts and stop the runner task.

        Safe to call more than once.
        """
        self._closed = True
        self._stop.set()

        runner, self._runner = self._runner, None
        if runner is None:
            return
        if self._session is None:
            runner.cancel()
        with suppress(asyncio.TimeoutError, asyncio.CancelledError):
            await asyncio.wait_for(runner, timeout=CLOSE_TIMEOUT)

        logger.debug(f"Closed session to {self.url}")

    async def __aenter__(self) -> "SSEClientSession":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
