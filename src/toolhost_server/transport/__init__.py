"""Session-oriented SSE transport between the host and its tool servers.

SSEClientSession wraps the mcp SDK's SSE client; the host opens one per
remote tool server.
"""

from toolhost_server.transport.client import SSEClientSession, ToolCallResult

__all__ = [
    "SSEClientSession",
    "ToolCallResult",
]
