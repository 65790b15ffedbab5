"""Conversation state for toolhost-server.

This package provides the transcript turn types, the Conversation class
holding one transcript, and the in-memory ConversationManager.
"""

from toolhost_server.sessions.conversation import (
    Conversation,
    CounterIdGenerator,
    IdGenerator,
    UuidIdGenerator,
    turn_to_dict,
    validate_transcript,
    with_generated_ids,
)
from toolhost_server.sessions.manager import ConversationManager
from toolhost_server.sessions.types import (
    AssistantText,
    ToolInvocation,
    ToolOutcome,
    ToolOutcomePayload,
    Turn,
    UserText,
)

__all__ = [
    # Core classes
    "Conversation",
    "ConversationManager",
    # Turn types
    "Turn",
    "UserText",
    "AssistantText",
    "ToolInvocation",
    "ToolOutcome",
    "ToolOutcomePayload",
    # Id assignment
    "IdGenerator",
    "UuidIdGenerator",
    "CounterIdGenerator",
    "with_generated_ids",
    # Helpers
    "validate_transcript",
    "turn_to_dict",
]
