"""Remote tool server registry.

This package tracks the configured tool servers, their connection state and
advertised tools, and owns the tool catalog built from them.
"""

from toolhost_server.servers.registry import (
    ConnectResult,
    RemoteServer,
    ServerState,
    ToolServerRegistry,
)

__all__ = [
    "ConnectResult",
    "RemoteServer",
    "ServerState",
    "ToolServerRegistry",
]
