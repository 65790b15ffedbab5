"""Health check endpoint router."""

import logging

from fastapi import APIRouter, Request

from toolhost_server import __version__
from toolhost_server.models.health import HealthResponse
from toolhost_server.ollama import OllamaClient
from toolhost_server.servers import ServerState, ToolServerRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Health check endpoint.

    Returns the current health status and version of the toolhost-server.
    Also checks connectivity to the Ollama server if the client is initialized
    and counts the tool servers with an open session.

    Args:
        request: The FastAPI request object.

    Returns:
        HealthResponse: Health status and version information.
    """
    ollama_connected = None
    ollama_host = None

    # Check if Ollama client is available and test connectivity
    if hasattr(request.app.state, "ollama_client"):
        ollama_client: OllamaClient = request.app.state.ollama_client
        ollama_host = ollama_client.host

        try:
            ollama_connected = await ollama_client.check_connection()
            logger.debug(f"Ollama connectivity check: {ollama_connected}")
        except Exception as e:
            logger.warning(f"Ollama connectivity check failed: {e}")
            ollama_connected = False

    servers_connected = 0
    servers_total = 0
    if hasattr(request.app.state, "registry"):
        registry: ToolServerRegistry = request.app.state.registry
        servers = registry.servers()
        servers_total = len(servers)
        servers_connected = sum(
            1 for server in servers if server.state == ServerState.CONNECTED
        )

    return HealthResponse(
        status="ok",
        version=__version__,
        ollama_connected=ollama_connected,
        ollama_host=ollama_host,
        servers_connected=servers_connected,
        servers_total=servers_total,
    )
