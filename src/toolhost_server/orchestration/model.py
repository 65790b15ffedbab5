"""Request and response shapes exchanged with the chat model.

The orchestration loop only talks to a ChatModel. What sits behind it (an
Ollama server in production, a scripted fake in tests) is not its concern.
"""

from dataclasses import dataclass, field
from typing import Any, Protocol, Sequence

from toolhost_server.sessions.types import Turn


@dataclass(frozen=True)
class TextBlock:
    """Text produced by the model."""

    text: str


@dataclass(frozen=True)
class ToolUseBlock:
    """A tool call requested by the model. The id may be missing."""

    name: str
    arguments: dict[str, Any] = field(default_factory=dict)
    id: str | None = None


ContentBlock = TextBlock | ToolUseBlock


@dataclass(frozen=True)
class ModelRequest:
    """Everything sent to the model for one round.

    Attributes:
        system: Synthesized instructions describing the tools and how to use them
        turns: The full transcript, every invocation carrying an id
        tools: Model-facing tool list from the catalog
        max_tokens: Generation limit
    """

    system: str
    turns: Sequence[Turn]
    tools: list[dict[str, Any]]
    max_tokens: int


@dataclass(frozen=True)
class ModelResponse:
    """One model reply as an ordered list of content blocks."""

    blocks: list[ContentBlock]
    model: str = ""
    eval_count: int | None = None
    prompt_eval_count: int | None = None

    @property
    def text_blocks(self) -> list[TextBlock]:
        return [block for block in self.blocks if isinstance(block, TextBlock)]

    @property
    def tool_uses(self) -> list[ToolUseBlock]:
        return [block for block in self.blocks if isinstance(block, ToolUseBlock)]


class ChatModel(Protocol):
    """A chat model endpoint: one request in, one response out.

    Implementations raise ModelCallError when the call fails or the reply
    cannot be interpreted.
    """

    async def complete(self, request: ModelRequest) -> ModelResponse: ...
