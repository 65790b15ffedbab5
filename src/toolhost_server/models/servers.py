"""Pydantic models for the tool server status endpoint."""

from pydantic import BaseModel, Field


class ServerInfo(BaseModel):
    """Status of one configured tool server."""

    name: str
    url: str
    state: str = Field(description="disconnected, connecting, connected or failed")
    tool_count: int = 0
    tools: list[str] = Field(default_factory=list, description="Unqualified names")
    error: str | None = None


class ServerListResponse(BaseModel):
    """Response body for listing tool servers."""

    servers: list[ServerInfo]
