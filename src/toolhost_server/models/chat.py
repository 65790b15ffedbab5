"""Pydantic models for chat API requests and responses.

This module defines the request and response schemas for the chat endpoints,
including the events of the streaming endpoint.
"""

from pydantic import BaseModel, ConfigDict, Field

from toolhost_server.models.turns import TurnResponse


class ChatRequest(BaseModel):
    """Request body for chat endpoints.

    Used by both POST /api/v1/chat/{conversation_id} (non-streaming)
    and POST /api/v1/chat/{conversation_id}/stream (streaming).
    """

    message: str = Field(..., min_length=1, description="The user message to send")

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {"message": "What's on my todo list, and what's the plan for it?"},
            ]
        }
    )


class ChatResponse(BaseModel):
    """Response body for the non-streaming chat endpoint.

    Contains every turn the cycle appended, starting with the user's
    message.
    """

    conversation_id: str = Field(description="Conversation the cycle ran in")
    turns: list[TurnResponse] = Field(description="Turns appended by the cycle")
    rounds: int = Field(description="Number of model calls made")
    tool_calls: int = Field(description="Number of tool calls dispatched")
    stop_reason: str = Field(description="complete or budget_exceeded")


# SSE Event Models


class CycleCompleteEvent(BaseModel):
    """SSE event emitted once the cycle has ended."""

    conversation_id: str
    rounds: int
    tool_calls: int
    stop_reason: str


class DoneEvent(BaseModel):
    """SSE event signaling the stream is done."""

    conversation_id: str


class ErrorEvent(BaseModel):
    """SSE event for errors during streaming."""

    code: str
    message: str
    details: dict = Field(default_factory=dict)
