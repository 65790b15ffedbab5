"""Pydantic models for conversation API requests and responses."""

from pydantic import BaseModel, Field

from toolhost_server.models.turns import TurnResponse


class ConversationResponse(BaseModel):
    """Metadata of one conversation."""

    conversation_id: str = Field(description="Unique conversation identifier")
    created_at: str = Field(description="ISO 8601 creation timestamp")
    updated_at: str = Field(description="ISO 8601 last update timestamp")
    turn_count: int = Field(description="Number of turns in the transcript")


class ConversationListItem(ConversationResponse):
    """A conversation in the list view."""

    preview: str = Field(default="", description="Start of the first user message")


class ConversationListResponse(BaseModel):
    """Response body for listing conversations."""

    conversations: list[ConversationListItem]


class ConversationDetailResponse(ConversationResponse):
    """A conversation with its full transcript."""

    turns: list[TurnResponse] = Field(default_factory=list)
    pending_invocations: list[str] = Field(
        default_factory=list,
        description="Invocation ids that have no outcome yet",
    )
