"""Chat API endpoints.

This module provides endpoints that submit a user message to a
conversation and run one orchestration cycle, either returning the turns
the cycle appended or streaming them via SSE as they are appended.
"""

import asyncio
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sse_starlette.sse import EventSourceResponse

from toolhost_server.dependencies import get_conversation_manager, get_orchestrator
from toolhost_server.errors import ConversationNotFoundError, ModelCallError
from toolhost_server.models.chat import (
    ChatRequest,
    ChatResponse,
    CycleCompleteEvent,
    DoneEvent,
    ErrorEvent,
)
from toolhost_server.models.turns import turn_response
from toolhost_server.orchestration import CycleResult, ToolOrchestrator
from toolhost_server.sessions import Conversation, ConversationManager, Turn

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/chat", tags=["chat"])

# Cycles whose streaming client went away; they run to completion so the
# transcript is never left with an invocation that has no outcome.
_detached_cycles: set[asyncio.Task] = set()


def _get_conversation(
    manager: ConversationManager, conversation_id: str
) -> Conversation:
    try:
        return manager.get_conversation(conversation_id)
    except ConversationNotFoundError as e:
        logger.warning(f"Conversation {conversation_id} not found")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.to_dict())


def _detach(task: asyncio.Task) -> None:
    def finished(done: asyncio.Task) -> None:
        _detached_cycles.discard(done)
        if not done.cancelled() and done.exception() is not None:
            logger.error(f"Detached cycle failed: {done.exception()}")

    _detached_cycles.add(task)
    task.add_done_callback(finished)


@router.post("/{conversation_id}", response_model=ChatResponse)
async def chat_non_streaming(
    conversation_id: str,
    request_body: ChatRequest,
    manager: Annotated[ConversationManager, Depends(get_conversation_manager)],
    orchestrator: Annotated[ToolOrchestrator, Depends(get_orchestrator)],
) -> ChatResponse:
    """Send a message and run the tool loop until the model is done.

    The model may call tools any number of times (within the configured
    budget) before producing its final answer. The response contains every
    turn appended along the way, starting with the user's message.

    Args:
        conversation_id: The conversation to chat in
        request_body: Chat request containing the message
        manager: Injected ConversationManager
        orchestrator: Injected ToolOrchestrator

    Returns:
        ChatResponse with the turns appended by the cycle

    Raises:
        HTTPException: 404 if conversation not found, 502 if the model fails
    """
    conversation = _get_conversation(manager, conversation_id)

    try:
        result = await orchestrator.run_cycle(conversation, request_body.message)
    except ModelCallError as e:
        logger.error(f"Model call failed in conversation {conversation_id}: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=e.to_dict())

    return ChatResponse(
        conversation_id=result.conversation_id,
        turns=[turn_response(turn) for turn in result.turns],
        rounds=result.rounds,
        tool_calls=result.tool_calls,
        stop_reason=result.stop_reason.value,
    )


@router.post("/{conversation_id}/stream")
async def chat_streaming(
    conversation_id: str,
    request_body: ChatRequest,
    manager: Annotated[ConversationManager, Depends(get_conversation_manager)],
    orchestrator: Annotated[ToolOrchestrator, Depends(get_orchestrator)],
) -> EventSourceResponse:
    """Run a cycle and stream its turns via Server-Sent Events (SSE).

    SSE Events:
        - turn: Each turn as soon as it is appended
        - cycle_complete: Rounds, tool calls and stop reason of the cycle
        - error: If the model call fails
        - done: Stream is complete

    Raises:
        HTTPException: 404 if conversation not found
    """
    conversation = _get_conversation(manager, conversation_id)
    logger.info(f"Starting streaming cycle for conversation {conversation_id}")

    async def event_generator():
        """Relay turns from the running cycle as SSE events."""
        queue: asyncio.Queue[Turn | None] = asyncio.Queue()

        async def on_turn(turn: Turn) -> None:
            await queue.put(turn)

        async def run() -> CycleResult:
            try:
                return await orchestrator.run_cycle(
                    conversation, request_body.message, on_turn=on_turn
                )
            finally:
                await queue.put(None)

        task = asyncio.create_task(run())
        try:
            while True:
                turn = await queue.get()
                if turn is None:
                    break
                yield {
                    "event": "turn",
                    "data": turn_response(turn).model_dump_json(),
                }

            result = await task

        except ModelCallError as e:
            logger.error(f"Model call failed in conversation {conversation_id}: {e}")
            error_event = ErrorEvent(
                code=e.code, message=e.message, details=e.details
            )
            yield {"event": "error", "data": error_event.model_dump_json()}
            return
        except Exception as e:
            logger.error(
                f"Error during streaming for conversation {conversation_id}: {e}",
                exc_info=True,
            )
            error_event = ErrorEvent(
                code="cycle_error",
                message=f"Failed to complete the cycle: {str(e)}",
                details={"conversation_id": conversation_id},
            )
            yield {"event": "error", "data": error_event.model_dump_json()}
            return
        finally:
            if not task.done():
                logger.warning(
                    f"Client disconnected during streaming for conversation "
                    f"{conversation_id}; finishing cycle in background"
                )
                _detach(task)

        complete_event = CycleCompleteEvent(
            conversation_id=result.conversation_id,
            rounds=result.rounds,
            tool_calls=result.tool_calls,
            stop_reason=result.stop_reason.value,
        )
        yield {"event": "cycle_complete", "data": complete_event.model_dump_json()}

        done_event = DoneEvent(conversation_id=conversation_id)
        yield {"event": "done", "data": done_event.model_dump_json()}

    return EventSourceResponse(event_generator())
