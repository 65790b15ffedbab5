"""Demo tool servers.

Each module exposes create_server() returning a FastMCP server. Serve one
over SSE with:

    toolhost-tool-server --server todoplan --port 8100
"""

from toolhost_server.tool_servers import example, project, todoplan

SERVERS = {
    "todoplan": todoplan.create_server,
    "project": project.create_server,
    "example": example.create_server,
}

__all__ = ["SERVERS"]
