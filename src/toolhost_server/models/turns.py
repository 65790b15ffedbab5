"""Pydantic schema for transcript turns on the wire."""

from typing import Any, Literal

from pydantic import BaseModel, Field

from toolhost_server.sessions import Turn, turn_to_dict

TurnType = Literal["user_text", "assistant_text", "tool_invocation", "tool_outcome"]


class TurnResponse(BaseModel):
    """One transcript turn.

    Which fields are set depends on the type:
    - user_text / assistant_text: text
    - tool_invocation: id, name, arguments
    - tool_outcome: id, content, is_error, error_kind
    """

    type: TurnType = Field(description="Turn type tag")
    timestamp: str = Field(description="ISO 8601 timestamp")
    text: str | None = Field(default=None, description="Text of a text turn")
    id: str | None = Field(default=None, description="Tool invocation id")
    name: str | None = Field(default=None, description="Qualified tool name")
    arguments: dict[str, Any] | None = Field(
        default=None, description="Tool call arguments"
    )
    content: list[dict[str, Any]] | None = Field(
        default=None, description="Content blocks returned by the tool"
    )
    is_error: bool | None = Field(default=None, description="Whether the call failed")
    error_kind: str | None = Field(
        default=None,
        description="unknown_tool, tool_error or transport_error when is_error is set",
    )


def turn_response(turn: Turn) -> TurnResponse:
    """Build the wire form of a transcript turn."""
    return TurnResponse(**turn_to_dict(turn))
