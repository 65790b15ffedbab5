"""Pydantic models for tool catalog API requests and responses."""

from typing import Any

from pydantic import BaseModel, Field


class ToolInfo(BaseModel):
    """A catalog entry."""

    name: str = Field(description="Qualified tool name")
    server: str = Field(description="Owning server")
    tool: str = Field(description="Tool name on the owning server")
    description: str = Field(default="")
    input_schema: dict[str, Any] = Field(default_factory=dict)


class ToolListResponse(BaseModel):
    """Response body for listing the tool catalog."""

    tools: list[ToolInfo]
    count: int


class ToolCallRequest(BaseModel):
    """Request body for calling a tool directly."""

    name: str = Field(..., min_length=1, description="Qualified tool name")
    arguments: dict[str, Any] = Field(default_factory=dict)


class ToolCallResponse(BaseModel):
    """Result of a direct tool call."""

    name: str
    content: list[dict[str, Any]] = Field(default_factory=list)
    is_error: bool = False
    error_kind: str | None = None
