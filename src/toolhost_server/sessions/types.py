"""Data types for conversation state.

This module defines the closed set of turns a transcript is made of, and the
payload carried by a tool outcome. Consumers match on the concrete turn class;
there is no open, role-tagged dictionary form inside the core.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


def utc_timestamp() -> str:
    """Return the current UTC time as an ISO 8601 string with a Z suffix."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class ToolOutcomePayload:
    """The result of dispatching one tool invocation.

    Attributes:
        content: Content blocks returned by the tool (or describing the error).
            Each block is a dict with at least a "type" key.
        is_error: True if the invocation did not succeed.
        error_kind: None on success, otherwise one of "unknown_tool",
            "tool_error" (the tool ran and reported failure) or
            "transport_error" (the tool infrastructure failed).
    """

    content: list[dict[str, Any]] = field(default_factory=list)
    is_error: bool = False
    error_kind: str | None = None

    @classmethod
    def success(cls, content: list[dict[str, Any]]) -> "ToolOutcomePayload":
        return cls(content=list(content), is_error=False, error_kind=None)

    @classmethod
    def failure(
        cls,
        error_kind: str,
        message: str,
        content: list[dict[str, Any]] | None = None,
    ) -> "ToolOutcomePayload":
        """Build an error payload, falling back to a single text block."""
        blocks = list(content) if content else [{"type": "text", "text": message}]
        return cls(content=blocks, is_error=True, error_kind=error_kind)

    def text(self) -> str:
        """Concatenate the text blocks of the payload."""
        return "\n".join(
            block.get("text", "")
            for block in self.content
            if block.get("type") == "text"
        )


@dataclass(frozen=True)
class UserText:
    """A message from the user."""

    text: str
    timestamp: str = field(default_factory=utc_timestamp)


@dataclass(frozen=True)
class AssistantText:
    """A text block produced by the model."""

    text: str
    timestamp: str = field(default_factory=utc_timestamp)


@dataclass(frozen=True)
class ToolInvocation:
    """A tool call requested by the model.

    The id is empty until the orchestration loop assigns one.
    """

    id: str
    name: str
    arguments: dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=utc_timestamp)


@dataclass(frozen=True)
class ToolOutcome:
    """The result of a tool invocation, keyed by the invocation's id."""

    id: str
    payload: ToolOutcomePayload
    timestamp: str = field(default_factory=utc_timestamp)


# Union type for all turn types
Turn = UserText | AssistantText | ToolInvocation | ToolOutcome
