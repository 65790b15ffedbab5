"""Dependency injection providers for FastAPI endpoints.

This module provides FastAPI dependency functions that are used across
multiple routers to inject the objects created at startup.
"""

from functools import lru_cache

from fastapi import HTTPException, Request

from toolhost_server.config import ToolhostSettings
from toolhost_server.ollama import OllamaClient
from toolhost_server.orchestration import ToolOrchestrator
from toolhost_server.servers import ToolServerRegistry
from toolhost_server.sessions import ConversationManager
from toolhost_server.tools import ToolDispatcher


@lru_cache
def get_settings() -> ToolhostSettings:
    """Get the application settings instance.

    This function is cached so that the same settings instance is reused
    across all requests. Settings are loaded from environment variables
    with the TOOLHOST_ prefix.

    Returns:
        ToolhostSettings: The application configuration settings.
    """
    return ToolhostSettings()


def _from_state(request: Request, attribute: str, label: str):
    if not hasattr(request.app.state, attribute):
        raise HTTPException(
            status_code=503,
            detail={
                "error": {
                    "code": "not_initialized",
                    "message": f"{label} not initialized",
                    "details": {},
                }
            },
        )
    return getattr(request.app.state, attribute)


def get_ollama_client(request: Request) -> OllamaClient:
    """Get the Ollama client from app state.

    Raises:
        HTTPException: If the Ollama client is not initialized (503 Service Unavailable).
    """
    return _from_state(request, "ollama_client", "Ollama client")


def get_registry(request: Request) -> ToolServerRegistry:
    """Get the tool server registry from app state.

    The registry is created during application startup, after every
    configured server has been given its chance to connect.

    Args:
        request: The FastAPI request object.

    Returns:
        ToolServerRegistry: The registry shared by all requests.

    Raises:
        HTTPException: If the registry is not initialized (503 Service Unavailable).
    """
    return _from_state(request, "registry", "Tool server registry")


def get_conversation_manager(request: Request) -> ConversationManager:
    """Get the in-memory conversation manager from app state."""
    return _from_state(request, "conversation_manager", "Conversation manager")


def get_dispatcher(request: Request) -> ToolDispatcher:
    """Get the tool dispatcher from app state."""
    return _from_state(request, "dispatcher", "Tool dispatcher")


def get_orchestrator(request: Request) -> ToolOrchestrator:
    """Get the orchestrator that runs chat cycles.

    Args:
        request: The FastAPI request object.

    Returns:
        ToolOrchestrator: The orchestrator shared by all conversations.

    Raises:
        HTTPException: If the orchestrator is not initialized (503 Service Unavailable).
    """
    return _from_state(request, "orchestrator", "Orchestrator")
