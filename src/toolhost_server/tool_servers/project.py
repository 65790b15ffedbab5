"""Demo tool server describing projects by name."""

from typing import Annotated

from mcp.server.fastmcp import FastMCP
from pydantic import Field

PROJECTS = {
    "Earth": "Project A is a project to build a website for a client",
    "Jupiter": "Project B is a project to build a mobile app for a client",
    "Saturn": "Project C is a project to build a desktop app for a client",
    "Uranus": "Project D is a project to build a robot for a client",
}

NO_PROJECT = "no project details available"


def create_server() -> FastMCP:
    server = FastMCP("project-server")

    @server.tool(
        name="get-project-details", description="Get the details of a project"
    )
    async def get_project_details(
        project_name: Annotated[
            str, Field(description="Name of the project to retrieve details")
        ],
    ) -> str:
        return PROJECTS.get(project_name, NO_PROJECT)

    return server
