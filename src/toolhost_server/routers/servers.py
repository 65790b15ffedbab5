"""Tool server status router."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from toolhost_server.dependencies import get_registry
from toolhost_server.models.servers import ServerInfo, ServerListResponse
from toolhost_server.servers import ToolServerRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/servers", tags=["servers"])


@router.get(
    "",
    response_model=ServerListResponse,
    summary="List configured tool servers",
)
async def list_servers(
    registry: Annotated[ToolServerRegistry, Depends(get_registry)],
) -> ServerListResponse:
    """List every configured tool server with its connection state.

    Failed servers are listed with the error that made them fail; they stay
    failed until the host restarts.
    """
    return ServerListResponse(
        servers=[
            ServerInfo(
                name=server.name,
                url=server.url,
                state=server.state.value,
                tool_count=len(server.tools),
                tools=[tool.name for tool in server.tools],
                error=server.error,
            )
            for server in registry.servers()
        ]
    )
