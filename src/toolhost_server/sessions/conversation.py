"""Conversation class holding one transcript.

This module provides:
- The Conversation class, an append-only transcript with pairing checks
- with_generated_ids(), the pure id-assignment transform applied before
  every model call
- Id generators that can be injected where ids are assigned
- Conversion of turns to plain dicts for the HTTP surface
"""

import asyncio
import itertools
import logging
import uuid
from dataclasses import replace
from typing import Any, Iterable, Protocol

from toolhost_server.errors import TranscriptError
from toolhost_server.sessions.types import (
    AssistantText,
    ToolInvocation,
    ToolOutcome,
    Turn,
    UserText,
    utc_timestamp,
)

logger = logging.getLogger(__name__)


class IdGenerator(Protocol):
    """Produces tool invocation ids."""

    def __call__(self) -> str: ...


class UuidIdGenerator:
    """Random ids of the form call_<hex>."""

    def __call__(self) -> str:
        return f"call_{uuid.uuid4().hex[:24]}"


class CounterIdGenerator:
    """Deterministic ids of the form <prefix><n>, starting at 1."""

    def __init__(self, prefix: str = "call_") -> None:
        self.prefix = prefix
        self._counter = itertools.count(1)

    def __call__(self) -> str:
        return f"{self.prefix}{next(self._counter)}"


def with_generated_ids(turns: Iterable[Turn], id_generator: IdGenerator) -> list[Turn]:
    """Return the turns with an id assigned to every id-less tool invocation.

    Invocations that already carry an id are returned unchanged, so applying
    the transform to its own output is a no-op.

    Args:
        turns: The transcript to transform. It is not modified.
        id_generator: Source of fresh invocation ids.

    Returns:
        A new list of turns.
    """
    result: list[Turn] = []
    for turn in turns:
        if isinstance(turn, ToolInvocation) and not turn.id:
            turn = replace(turn, id=id_generator())
        result.append(turn)
    return result


def validate_transcript(turns: Iterable[Turn], require_complete: bool = False) -> None:
    """Check the invocation/outcome pairing of a transcript.

    Args:
        turns: The transcript to check.
        require_complete: Also require that every invocation has an outcome.

    Raises:
        TranscriptError: If an outcome has no earlier invocation, an id is
            used twice, or (with require_complete) an invocation is pending.
    """
    invoked: set[str] = set()
    answered: set[str] = set()
    for turn in turns:
        if isinstance(turn, ToolInvocation):
            if turn.id and turn.id in invoked:
                raise TranscriptError(f"Duplicate tool invocation id: {turn.id}")
            if turn.id:
                invoked.add(turn.id)
        elif isinstance(turn, ToolOutcome):
            if turn.id not in invoked:
                raise TranscriptError(
                    f"Tool outcome {turn.id} has no earlier invocation"
                )
            if turn.id in answered:
                raise TranscriptError(f"Duplicate tool outcome id: {turn.id}")
            answered.add(turn.id)
    if require_complete and invoked - answered:
        pending = sorted(invoked - answered)
        raise TranscriptError(f"Tool invocations without outcome: {pending}")


class Conversation:
    """An in-memory conversation: its identity and its ordered transcript.

    Turns can only be appended. Appending a ToolOutcome checks that it answers
    an earlier, still unanswered ToolInvocation. The lock serialises
    orchestration cycles so that a conversation has a single writer.
    """

    def __init__(self, conversation_id: str, turns: list[Turn] | None = None):
        """Initialize a Conversation.

        Args:
            conversation_id: Unique conversation identifier (10-char hex)
            turns: Initial transcript (default: empty)
        """
        self.conversation_id = conversation_id
        self._turns: list[Turn] = []
        self._invoked: set[str] = set()
        self._answered: set[str] = set()
        self.created_at = utc_timestamp()
        self.updated_at = self.created_at
        self.lock = asyncio.Lock()

        for turn in turns or []:
            self.append(turn)

    def append(self, turn: Turn) -> None:
        """Append a turn to the transcript.

        Args:
            turn: The turn to add

        Raises:
            TranscriptError: If the turn breaks invocation/outcome pairing
        """
        if isinstance(turn, ToolInvocation):
            if turn.id and turn.id in self._invoked:
                raise TranscriptError(
                    f"Tool invocation id {turn.id} already used in this conversation",
                    details={"conversation_id": self.conversation_id},
                )
            if turn.id:
                self._invoked.add(turn.id)
        elif isinstance(turn, ToolOutcome):
            if turn.id not in self._invoked:
                raise TranscriptError(
                    f"Tool outcome {turn.id} does not answer an earlier invocation",
                    details={"conversation_id": self.conversation_id},
                )
            if turn.id in self._answered:
                raise TranscriptError(
                    f"Tool invocation {turn.id} already has an outcome",
                    details={"conversation_id": self.conversation_id},
                )
            self._answered.add(turn.id)
        elif not isinstance(turn, (UserText, AssistantText)):
            raise TypeError(f"Unsupported turn type: {type(turn).__name__}")

        self._turns.append(turn)
        self.updated_at = utc_timestamp()

    def snapshot(self) -> tuple[Turn, ...]:
        """Return the transcript as an immutable sequence."""
        return tuple(self._turns)

    def has_invocation_id(self, invocation_id: str) -> bool:
        return invocation_id in self._invoked

    def pending_invocations(self) -> list[str]:
        """Ids of invocations that do not have an outcome yet, in order."""
        return [
            turn.id
            for turn in self._turns
            if isinstance(turn, ToolInvocation)
            and turn.id
            and turn.id not in self._answered
        ]

    def __len__(self) -> int:
        return len(self._turns)

    def get_preview(self, max_length: int = 100) -> str:
        """Get a preview of the conversation (first user message).

        Args:
            max_length: Maximum length of the preview

        Returns:
            Preview string, truncated if necessary
        """
        for turn in self._turns:
            if isinstance(turn, UserText):
                if len(turn.text) > max_length:
                    return turn.text[: max_length - 3] + "..."
                return turn.text
        return ""

    @staticmethod
    def generate_conversation_id() -> str:
        """Generate a new unique conversation ID.

        Returns:
            10-character hexadecimal string
        """
        return uuid.uuid4().hex[:10]


def turn_to_dict(turn: Turn) -> dict[str, Any]:
    """Convert a turn to a JSON-friendly dict tagged with its type."""
    if isinstance(turn, UserText):
        return {"type": "user_text", "text": turn.text, "timestamp": turn.timestamp}
    if isinstance(turn, AssistantText):
        return {
            "type": "assistant_text",
            "text": turn.text,
            "timestamp": turn.timestamp,
        }
    if isinstance(turn, ToolInvocation):
        return {
            "type": "tool_invocation",
            "id": turn.id,
            "name": turn.name,
            "arguments": turn.arguments,
            "timestamp": turn.timestamp,
        }
    if isinstance(turn, ToolOutcome):
        return {
            "type": "tool_outcome",
            "id": turn.id,
            "content": turn.payload.content,
            "is_error": turn.payload.is_error,
            "error_kind": turn.payload.error_kind,
            "timestamp": turn.timestamp,
        }
    raise TypeError(f"Unsupported turn type: {type(turn).__name__}")
