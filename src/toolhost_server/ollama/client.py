"""Thin async wrapper around ollama.AsyncClient.

One instance is created at startup and shared by every request. It exposes
only what the host needs: a reachability check, a check that the configured
model has been pulled, and a streamed chat call yielding plain dict chunks.
"""

import logging
from typing import Any, AsyncIterator

import ollama

logger = logging.getLogger(__name__)


def _as_dict(value: Any) -> dict[str, Any]:
    """Normalize a response object of the ollama library to a dict."""
    if isinstance(value, dict):
        return value
    if hasattr(value, "model_dump"):
        return value.model_dump()
    return dict(vars(value))


class OllamaClient:
    """Shared connection to one Ollama server.

    Attributes:
        host: The Ollama server URL (e.g., "http://localhost:11434")
    """

    def __init__(self, host: str) -> None:
        self.host = host
        self._client = ollama.AsyncClient(host=host)
        logger.info(f"Ollama client for {host} created")

    async def check_connection(self) -> bool:
        """Return True if the server answers a model listing."""
        try:
            await self._client.list()
        except Exception as e:
            logger.warning(f"Ollama at {self.host} is not reachable: {e}")
            return False
        logger.debug(f"Ollama at {self.host} is reachable")
        return True

    async def has_model(self, model: str) -> bool:
        """Return True if the model has been pulled on the server.

        A name without a tag is looked up as its ":latest" tag.

        Raises:
            Exception: If the server cannot be reached
        """
        wanted = model if ":" in model else f"{model}:latest"
        listing = _as_dict(await self._client.list())
        for entry in listing.get("models") or []:
            entry = _as_dict(entry)
            if wanted in (entry.get("model"), entry.get("name")):
                return True
        return False

    async def chat_stream(
        self,
        model: str,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
        options: dict[str, Any] | None = None,
    ) -> AsyncIterator[dict[str, Any]]:
        """Stream one chat completion as dict chunks.

        Each chunk carries "model", "message" (role, content and, when the
        model calls tools, "tool_calls") and "done". The final chunk also
        carries eval_count and prompt_eval_count.

        Args:
            model: The model to chat with
            messages: Ollama chat messages
            tools: Function tools the model may call; empty means none
            options: Model parameters such as num_predict

        Raises:
            Exception: Whatever the ollama library raises
        """
        logger.debug(
            f"Chat with {model}: {len(messages)} messages, {len(tools or [])} tools"
        )
        stream = await self._client.chat(
            model=model,
            messages=messages,
            tools=tools or None,
            stream=True,
            options=options,
        )
        async for chunk in stream:
            yield _as_dict(chunk)
        logger.debug(f"Chat stream from {model} finished")

    async def close(self) -> None:
        """Release the client.

        ollama.AsyncClient owns its httpx client and has no close of its
        own, so this only marks the end of the client's life in the log.
        """
        logger.debug(f"Ollama client for {self.host} closed")
