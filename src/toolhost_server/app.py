"""FastAPI application factory and lifespan management.

This module contains the create_app() factory function that creates and configures
the FastAPI application instance, including lifespan management for startup/shutdown
and router registration.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from toolhost_server import __version__
from toolhost_server.config import ToolhostSettings
from toolhost_server.ollama import OllamaChatModel, OllamaClient
from toolhost_server.orchestration import ToolOrchestrator
from toolhost_server.routers import chat, conversations, health, servers, tools
from toolhost_server.servers import ToolServerRegistry
from toolhost_server.sessions import ConversationManager
from toolhost_server.tools import ToolDispatcher

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan context manager for FastAPI application.

    At startup the Ollama client is created and every configured tool server
    is connected concurrently; servers that cannot be reached are marked
    failed and the host starts without their tools. The objects built here
    live in app.state and are shared by all requests.

    Args:
        app: The FastAPI application instance.

    Yields:
        None: Control is yielded while the app is running.
    """
    settings: ToolhostSettings = app.state.settings

    # Startup: Initialize Ollama client
    app.state.ollama_client = OllamaClient(host=settings.ollama_host)
    logger.info(f"Initialized Ollama client with host: {settings.ollama_host}")

    connected = await app.state.ollama_client.check_connection()
    if connected:
        logger.info("Successfully connected to Ollama")
        try:
            if not await app.state.ollama_client.has_model(settings.model):
                logger.warning(
                    f"Model {settings.model} is not available on "
                    f"{settings.ollama_host}; pull it before chatting"
                )
        except Exception as e:
            logger.warning(f"Could not list Ollama models: {e}")
    else:
        logger.warning("Could not connect to Ollama - check if server is running")

    # Connect tool servers and build the catalog
    registry = ToolServerRegistry(
        connect_timeout=settings.connect_timeout,
        request_timeout=settings.tool_call_timeout,
    )
    for server_config in settings.tool_servers:
        registry.register_server(server_config)
    results = await registry.connect_all()
    connected_count = sum(1 for result in results.values() if result.connected)
    logger.info(
        f"Connected {connected_count} of {len(results)} tool servers, "
        f"{len(registry.catalog)} tools available"
    )
    app.state.registry = registry

    app.state.conversation_manager = ConversationManager()
    app.state.dispatcher = ToolDispatcher(
        catalog=lambda: registry.catalog,
        sessions=registry,
        call_timeout=settings.tool_call_timeout,
    )
    app.state.orchestrator = ToolOrchestrator(
        model=OllamaChatModel(
            client=app.state.ollama_client,
            model=settings.model,
            timeout=settings.chat_timeout,
        ),
        catalog=lambda: registry.catalog,
        dispatcher=app.state.dispatcher,
        max_tokens=settings.max_tokens,
        max_rounds=settings.max_tool_rounds,
        max_cycle_seconds=settings.max_cycle_seconds,
        parallel_tool_calls=settings.parallel_tool_calls,
    )

    yield

    # Shutdown: Clean up resources
    await registry.close_all()
    logger.info("Tool server sessions closed")

    if hasattr(app.state, "ollama_client"):
        await app.state.ollama_client.close()
        logger.info("Ollama client closed")


def create_app(settings: ToolhostSettings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    This factory function creates a FastAPI instance with all routers,
    middleware, and configuration applied. It can accept an optional
    settings object for testing or explicit configuration.

    Args:
        settings: Optional ToolhostSettings instance. If not provided,
                  settings will be loaded from environment variables.

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    if settings is None:
        from toolhost_server.dependencies import get_settings

        settings = get_settings()

    app = FastAPI(
        title="toolhost-server",
        description="Headless FastAPI host that lets an Ollama model call tools "
        "on multiple remote tool servers",
        version=__version__,
        lifespan=lifespan,
    )

    # Store settings in app.state for lifespan access
    app.state.settings = settings

    # Configure CORS
    # Note: FastAPI's type hints for add_middleware are overly strict
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routers
    app.include_router(health.router)
    app.include_router(tools.router)
    app.include_router(servers.router)
    app.include_router(conversations.router)
    app.include_router(chat.router)

    return app
