"""Ollama client wrapper and integration layer.

This package provides the async client wrapper for the Ollama API and the
ChatModel implementation the orchestration loop uses to reach it.
"""

from toolhost_server.ollama.chat_model import (
    OllamaChatModel,
    convert_turns_to_ollama_format,
)
from toolhost_server.ollama.client import OllamaClient

__all__ = ["OllamaClient", "OllamaChatModel", "convert_turns_to_ollama_format"]
