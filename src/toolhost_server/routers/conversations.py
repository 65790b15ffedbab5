"""Conversations router for conversation CRUD operations.

This module provides REST API endpoints for:
- Creating new conversations
- Listing all conversations
- Retrieving a conversation with its transcript
- Deleting conversations
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from toolhost_server.dependencies import get_conversation_manager
from toolhost_server.errors import ConversationNotFoundError
from toolhost_server.models.conversations import (
    ConversationDetailResponse,
    ConversationListItem,
    ConversationListResponse,
    ConversationResponse,
)
from toolhost_server.models.turns import turn_response
from toolhost_server.sessions import ConversationManager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/conversations", tags=["conversations"])


@router.post(
    "",
    response_model=ConversationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new conversation",
)
async def create_conversation(
    manager: Annotated[ConversationManager, Depends(get_conversation_manager)],
) -> ConversationResponse:
    """Create a new, empty conversation.

    Returns:
        Created conversation metadata
    """
    conversation = manager.create_conversation()
    return ConversationResponse(
        conversation_id=conversation.conversation_id,
        created_at=conversation.created_at,
        updated_at=conversation.updated_at,
        turn_count=len(conversation),
    )


@router.get(
    "",
    response_model=ConversationListResponse,
    summary="List all conversations",
)
async def list_conversations(
    manager: Annotated[ConversationManager, Depends(get_conversation_manager)],
) -> ConversationListResponse:
    """List all conversations, sorted by most recently updated."""
    items = [
        ConversationListItem(
            conversation_id=conversation.conversation_id,
            created_at=conversation.created_at,
            updated_at=conversation.updated_at,
            turn_count=len(conversation),
            preview=conversation.get_preview(),
        )
        for conversation in manager.list_conversations()
    ]
    return ConversationListResponse(conversations=items)


@router.get(
    "/{conversation_id}",
    response_model=ConversationDetailResponse,
    summary="Get conversation details",
)
async def get_conversation(
    conversation_id: str,
    manager: Annotated[ConversationManager, Depends(get_conversation_manager)],
) -> ConversationDetailResponse:
    """Get a conversation with its full transcript.

    Args:
        conversation_id: The conversation ID to retrieve
        manager: Injected ConversationManager

    Returns:
        Conversation metadata and turns

    Raises:
        HTTPException: 404 if conversation not found
    """
    try:
        conversation = manager.get_conversation(conversation_id)
    except ConversationNotFoundError as e:
        logger.warning(f"Conversation {conversation_id} not found")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.to_dict())

    return ConversationDetailResponse(
        conversation_id=conversation.conversation_id,
        created_at=conversation.created_at,
        updated_at=conversation.updated_at,
        turn_count=len(conversation),
        turns=[turn_response(turn) for turn in conversation.snapshot()],
        pending_invocations=conversation.pending_invocations(),
    )


@router.delete(
    "/{conversation_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a conversation",
)
async def delete_conversation(
    conversation_id: str,
    manager: Annotated[ConversationManager, Depends(get_conversation_manager)],
) -> None:
    """Delete a conversation and its transcript.

    Raises:
        HTTPException: 404 if conversation not found
    """
    try:
        manager.delete_conversation(conversation_id)
    except ConversationNotFoundError as e:
        logger.warning(f"Conversation {conversation_id} not found")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.to_dict())
