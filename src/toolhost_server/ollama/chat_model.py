"""ChatModel implementation backed by Ollama.

Converts a transcript into Ollama's chat message format, streams the reply,
and collects it into ordered content blocks: the text first, then every tool
call in the order the model emitted them.
"""

import asyncio
import json
import logging
from typing import Any, Sequence

from toolhost_server.errors import ModelCallError
from toolhost_server.ollama.client import OllamaClient
from toolhost_server.orchestration.model import (
    ContentBlock,
    ModelRequest,
    ModelResponse,
    TextBlock,
    ToolUseBlock,
)
from toolhost_server.sessions.types import (
    AssistantText,
    ToolInvocation,
    ToolOutcome,
    ToolOutcomePayload,
    Turn,
    UserText,
)

logger = logging.getLogger(__name__)


def _outcome_content(payload: ToolOutcomePayload) -> str:
    """Render a tool outcome as the text of an Ollama tool message."""
    text = payload.text()
    if not text and payload.content:
        text = json.dumps(payload.content)
    if payload.is_error:
        return f"Error ({payload.error_kind}): {text}"
    return text


def convert_turns_to_ollama_format(turns: Sequence[Turn]) -> list[dict[str, Any]]:
    """Convert transcript turns to Ollama API messages.

    Args:
        turns: The transcript; every ToolInvocation must carry an id

    Returns:
        List of message dicts in Ollama format
    """
    tool_names: dict[str, str] = {}
    messages: list[dict[str, Any]] = []

    for turn in turns:
        if isinstance(turn, UserText):
            messages.append({"role": "user", "content": turn.text})
        elif isinstance(turn, AssistantText):
            messages.append({"role": "assistant", "content": turn.text})
        elif isinstance(turn, ToolInvocation):
            tool_names[turn.id] = turn.name
            messages.append(
                {
                    "role": "assistant",
                    "content": "",
                    "tool_calls": [
                        {
                            "function": {
                                "name": turn.name,
                                "arguments": turn.arguments,
                            }
                        }
                    ],
                }
            )
        elif isinstance(turn, ToolOutcome):
            messages.append(
                {
                    "role": "tool",
                    "content": _outcome_content(turn.payload),
                    "tool_name": tool_names.get(turn.id, ""),
                }
            )
        else:
            raise TypeError(f"Unsupported turn type: {type(turn).__name__}")

    return messages


def _parse_tool_call(call: dict[str, Any]) -> ToolUseBlock:
    """Turn one Ollama tool call into a ToolUseBlock.

    Raises:
        ModelCallError: If the call has no name or unparseable arguments
    """
    function = call.get("function") or {}
    name = function.get("name")
    if not name:
        raise ModelCallError("Model returned a tool call without a name")

    arguments = function.get("arguments") or {}
    if isinstance(arguments, str):
        try:
            arguments = json.loads(arguments)
        except json.JSONDecodeError as e:
            raise ModelCallError(
                f"Model returned invalid arguments for tool {name}",
                details={"tool": name},
            ) from e
    if not isinstance(arguments, dict):
        raise ModelCallError(
            f"Model returned non-object arguments for tool {name}",
            details={"tool": name},
        )

    return ToolUseBlock(name=name, arguments=arguments, id=call.get("id") or None)


class OllamaChatModel:
    """Answers ModelRequests with an Ollama chat model.

    Attributes:
        client: The shared OllamaClient
        model: Name of the Ollama model to use
        timeout: Upper bound for one complete reply, in seconds
    """

    def __init__(self, client: OllamaClient, model: str, timeout: float = 120.0):
        self.client = client
        self.model = model
        self.timeout = timeout

    async def complete(self, request: ModelRequest) -> ModelResponse:
        """Send one request and collect the streamed reply.

        Raises:
            ModelCallError: If the call fails, times out, ends without a
                completion marker, or contains a malformed tool call
        """
        messages = [{"role": "system", "content": request.system}]
        messages.extend(convert_turns_to_ollama_format(request.turns))

        logger.info(
            f"Sending {len(messages)} messages and {len(request.tools)} tools "
            f"to Ollama model {self.model}"
        )

        try:
            return await asyncio.wait_for(
                self._collect(messages, request), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            raise ModelCallError(
                f"Model {self.model} did not answer within {self.timeout}s"
            )
        except ModelCallError:
            raise
        except Exception as e:
            logger.error(f"Ollama streaming error: {e}")
            raise ModelCallError(
                f"Failed to get response from Ollama: {e}",
                details={"model": self.model},
            ) from e

    async def _collect(
        self, messages: list[dict[str, Any]], request: ModelRequest
    ) -> ModelResponse:
        content_parts: list[str] = []
        tool_calls: list[dict[str, Any]] = []
        final_chunk = None

        async for chunk in self.client.chat_stream(
            model=self.model,
            messages=messages,
            tools=request.tools,
            options={"num_predict": request.max_tokens},
        ):
            message = chunk.get("message") or {}
            content = message.get("content") or ""
            if content:
                content_parts.append(content)
            tool_calls.extend(message.get("tool_calls") or [])

            if chunk.get("done"):
                final_chunk = chunk
                break

        if final_chunk is None:
            raise ModelCallError("Stream ended without completion marker")

        blocks: list[ContentBlock] = []
        text = "".join(content_parts).strip()
        if text:
            blocks.append(TextBlock(text=text))
        blocks.extend(_parse_tool_call(call) for call in tool_calls)

        logger.info(
            f"Received response: {len(text)} characters, "
            f"{len(tool_calls)} tool calls"
        )
        return ModelResponse(
            blocks=blocks,
            model=final_chunk.get("model") or self.model,
            eval_count=final_chunk.get("eval_count"),
            prompt_eval_count=final_chunk.get("prompt_eval_count"),
        )
