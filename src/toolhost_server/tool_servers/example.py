"""Minimal demo tool server, handy as a template for new servers."""

from mcp.server.fastmcp import FastMCP

from toolhost_server.tool_servers.todoplan import NO_TODO, Category

TODOS = {
    "life": "go to the gym",
    "work": "finish the project report",
    "family": "trip to disneyland",
    "friends": "drink at the pub",
}


def create_server() -> FastMCP:
    server = FastMCP("example-server")

    @server.tool(name="get-todo", description="Get the todo of a category")
    def get_todo(category: Category) -> str:
        return TODOS.get(category, NO_TODO)

    @server.tool(name="get-plan", description="Get the current plan")
    def get_plan() -> str:
        return "buy stocks"

    return server
