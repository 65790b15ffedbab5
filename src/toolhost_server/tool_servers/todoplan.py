"""Demo tool server answering todo and plan questions."""

from typing import Annotated

from mcp.server.fastmcp import FastMCP
from pydantic import Field

TODOS = {
    "life": "go to the gym",
    "work": "finish the project Jupiter report",
    "family": "trip to disneyland",
    "friends": "drink at the pub",
}

NO_TODO = "no todo available"

Category = Annotated[
    str,
    Field(description="Category of todo to retrieve (life, work, family, friends)"),
]


def create_server() -> FastMCP:
    server = FastMCP("todoplan-server")

    @server.tool(name="get-todo", description="Get the todo of a category")
    async def get_todo(category: Category) -> str:
        return TODOS.get(category, NO_TODO)

    @server.tool(name="get-plan", description="Get the current plan")
    async def get_plan() -> str:
        return "meet my friends"

    return server
