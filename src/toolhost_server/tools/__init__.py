"""Tool catalog and dispatch layer.

This package aggregates the tools of all connected servers into one
namespaced catalog and routes tool calls back to the owning server.
"""

from toolhost_server.tools.catalog import (
    CatalogEntry,
    ToolCatalog,
    ToolDescriptor,
    qualify,
    split_qualified_name,
)
from toolhost_server.tools.dispatcher import (
    TOOL_ERROR,
    TRANSPORT_ERROR,
    UNKNOWN_TOOL,
    Dispatcher,
    ToolDispatcher,
)

__all__ = [
    "CatalogEntry",
    "ToolCatalog",
    "ToolDescriptor",
    "Dispatcher",
    "ToolDispatcher",
    "qualify",
    "split_qualified_name",
    "UNKNOWN_TOOL",
    "TOOL_ERROR",
    "TRANSPORT_ERROR",
]
