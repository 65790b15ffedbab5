"""Tool catalog router.

This module provides REST API endpoints for:
- Listing the aggregated tool catalog
- Re-listing the tools of connected servers
- Calling a tool directly by its qualified name
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from toolhost_server.dependencies import get_dispatcher, get_registry
from toolhost_server.errors import ToolNotFoundError
from toolhost_server.models.tools import (
    ToolCallRequest,
    ToolCallResponse,
    ToolInfo,
    ToolListResponse,
)
from toolhost_server.servers import ToolServerRegistry
from toolhost_server.tools import ToolCatalog, ToolDispatcher

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/tools", tags=["tools"])


def _catalog_response(catalog: ToolCatalog) -> ToolListResponse:
    tools = [
        ToolInfo(
            name=entry.qualified_name,
            server=entry.server,
            tool=entry.tool_name,
            description=entry.descriptor.description,
            input_schema=entry.descriptor.input_schema,
        )
        for entry in catalog.list_entries()
    ]
    return ToolListResponse(tools=tools, count=len(tools))


@router.get(
    "",
    response_model=ToolListResponse,
    summary="List available tools",
)
async def list_tools(
    registry: Annotated[ToolServerRegistry, Depends(get_registry)],
) -> ToolListResponse:
    """List every tool of every connected server under its qualified name.

    Args:
        registry: Injected ToolServerRegistry

    Returns:
        The current tool catalog
    """
    return _catalog_response(registry.catalog)


@router.post(
    "/refresh",
    response_model=ToolListResponse,
    summary="Refresh the tool catalog",
)
async def refresh_tools(
    registry: Annotated[ToolServerRegistry, Depends(get_registry)],
) -> ToolListResponse:
    """Ask every connected server for its tools again and rebuild the catalog."""
    catalog = await registry.refresh_tools()
    logger.info(f"Tool catalog refreshed: {len(catalog)} tools")
    return _catalog_response(catalog)


@router.post(
    "/call",
    response_model=ToolCallResponse,
    summary="Call a tool directly",
)
async def call_tool(
    request: ToolCallRequest,
    registry: Annotated[ToolServerRegistry, Depends(get_registry)],
    dispatcher: Annotated[ToolDispatcher, Depends(get_dispatcher)],
) -> ToolCallResponse:
    """Call a tool by qualified name, outside of any conversation.

    A tool that runs and fails, or a server that cannot be reached, is
    reported in the response body with is_error set.

    Args:
        request: Qualified tool name and arguments
        registry: Injected ToolServerRegistry
        dispatcher: Injected ToolDispatcher

    Returns:
        The tool's content blocks

    Raises:
        HTTPException: 404 if no tool has that qualified name
    """
    if request.name not in registry.catalog:
        error = ToolNotFoundError(
            f"Tool {request.name} not found", details={"name": request.name}
        )
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=error.to_dict()
        )

    payload = await dispatcher.dispatch(request.name, request.arguments)
    return ToolCallResponse(
        name=request.name,
        content=payload.content,
        is_error=payload.is_error,
        error_kind=payload.error_kind,
    )
