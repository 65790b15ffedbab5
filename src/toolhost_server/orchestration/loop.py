"""The orchestration loop driving one user turn to completion.

A cycle starts with the user's message and alternates model calls and tool
dispatches:

    AwaitingModel -> HasToolCalls -> Dispatching -> AwaitingModel ...
    AwaitingModel -> no tool calls -> Terminal

Every text block of every reply becomes an AssistantText turn. Every tool
call becomes a ToolInvocation immediately followed by its ToolOutcome. The
cycle is bounded by a maximum number of model calls and a wall-clock budget.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable

from toolhost_server.orchestration.model import ChatModel, ModelRequest, ToolUseBlock
from toolhost_server.services.instructions import build_system_instructions
from toolhost_server.sessions.conversation import (
    Conversation,
    IdGenerator,
    UuidIdGenerator,
    validate_transcript,
    with_generated_ids,
)
from toolhost_server.sessions.types import (
    AssistantText,
    ToolInvocation,
    ToolOutcome,
    ToolOutcomePayload,
    Turn,
    UserText,
)
from toolhost_server.tools.catalog import ToolCatalog
from toolhost_server.tools.dispatcher import TRANSPORT_ERROR, Dispatcher

logger = logging.getLogger(__name__)

BUDGET_EXCEEDED_MESSAGE = (
    "Stopped: the tool-loop budget for this message was exceeded before the "
    "model finished. Send another message to continue."
)

TurnCallback = Callable[[Turn], Awaitable[None]]


class StopReason(str, Enum):
    """Why a cycle ended."""

    COMPLETE = "complete"
    BUDGET_EXCEEDED = "budget_exceeded"


@dataclass
class CycleResult:
    """What one cycle added to a conversation.

    Attributes:
        conversation_id: The conversation the cycle ran in
        turns: Every turn appended during the cycle, in order
        rounds: Number of model calls made
        tool_calls: Number of tool invocations dispatched
        stop_reason: Why the cycle ended
    """

    conversation_id: str
    turns: list[Turn] = field(default_factory=list)
    rounds: int = 0
    tool_calls: int = 0
    stop_reason: StopReason = StopReason.COMPLETE


class ToolOrchestrator:
    """Runs orchestration cycles against a chat model and a tool dispatcher.

    One orchestrator is shared by all conversations. It holds no
    conversation state of its own; each cycle takes the conversation's lock,
    so a conversation never runs two cycles at once while different
    conversations proceed independently.
    """

    def __init__(
        self,
        model: ChatModel,
        catalog: Callable[[], ToolCatalog],
        dispatcher: Dispatcher,
        id_generator: IdGenerator | None = None,
        max_tokens: int = 1024,
        max_rounds: int = 10,
        max_cycle_seconds: float = 300.0,
        parallel_tool_calls: bool = False,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            model: The chat model to call
            catalog: Returns the current tool catalog; read on every round
            dispatcher: Invokes tools by qualified name
            id_generator: Source of invocation ids (default: random)
            max_tokens: Generation limit passed with every model call
            max_rounds: Maximum number of model calls per cycle
            max_cycle_seconds: Wall-clock budget of a cycle
            parallel_tool_calls: Dispatch the tool calls of one reply
                concurrently instead of one after another
            clock: Monotonic time source, in seconds
        """
        if max_rounds < 1:
            raise ValueError("max_rounds must be at least 1")

        self.model = model
        self._catalog = catalog
        self.dispatcher = dispatcher
        self.id_generator = id_generator or UuidIdGenerator()
        self.max_tokens = max_tokens
        self.max_rounds = max_rounds
        self.max_cycle_seconds = max_cycle_seconds
        self.parallel_tool_calls = parallel_tool_calls
        self._clock = clock

    async def run_cycle(
        self,
        conversation: Conversation,
        user_text: str,
        on_turn: TurnCallback | None = None,
    ) -> CycleResult:
        """Process one user message until the model stops calling tools.

        Args:
            conversation: The conversation to extend
            user_text: The user's message
            on_turn: Optional callback awaited with every appended turn

        Returns:
            CycleResult: The turns appended and why the cycle ended

        Raises:
            ModelCallError: If a model call fails. Turns appended before the
                failure stay in the conversation.
            TranscriptError: If the transcript sent to the model has an
                invocation without an outcome or an unpaired outcome
        """
        async with conversation.lock:
            return await self._run_cycle(conversation, user_text, on_turn)

    async def _run_cycle(
        self,
        conversation: Conversation,
        user_text: str,
        on_turn: TurnCallback | None,
    ) -> CycleResult:
        result = CycleResult(conversation_id=conversation.conversation_id)

        async def append(turn: Turn) -> None:
            conversation.append(turn)
            result.turns.append(turn)
            if on_turn is not None:
                await on_turn(turn)

        await append(UserText(text=user_text))
        deadline = self._clock() + self.max_cycle_seconds
        logger.info(f"Starting cycle for conversation {conversation.conversation_id}")

        while True:
            if result.rounds >= self.max_rounds or self._clock() >= deadline:
                logger.warning(
                    f"Tool-loop budget exceeded in conversation "
                    f"{conversation.conversation_id} after {result.rounds} rounds"
                )
                await append(AssistantText(text=BUDGET_EXCEEDED_MESSAGE))
                result.stop_reason = StopReason.BUDGET_EXCEEDED
                return result

            result.rounds += 1
            catalog = self._catalog()
            turns = with_generated_ids(conversation.snapshot(), self.id_generator)
            validate_transcript(turns, require_complete=True)
            request = ModelRequest(
                system=build_system_instructions(catalog),
                turns=turns,
                tools=catalog.list_for_model(),
                max_tokens=self.max_tokens,
            )
            response = await self.model.complete(request)

            for block in response.text_blocks:
                await append(AssistantText(text=block.text))

            invocations = self._to_invocations(conversation, response.tool_uses)
            if not invocations:
                logger.info(
                    f"Cycle for conversation {conversation.conversation_id} "
                    f"complete after {result.rounds} rounds, "
                    f"{result.tool_calls} tool calls"
                )
                return result

            logger.debug(
                f"Round {result.rounds}: dispatching "
                f"{[invocation.name for invocation in invocations]}"
            )
            if self.parallel_tool_calls:
                payloads = await asyncio.gather(
                    *(self._dispatch(invocation) for invocation in invocations)
                )
                for invocation, payload in zip(invocations, payloads):
                    await append(invocation)
                    await append(ToolOutcome(id=invocation.id, payload=payload))
            else:
                for invocation in invocations:
                    await append(invocation)
                    payload = await self._dispatch(invocation)
                    await append(ToolOutcome(id=invocation.id, payload=payload))
            result.tool_calls += len(invocations)

    def _to_invocations(
        self, conversation: Conversation, tool_uses: list[ToolUseBlock]
    ) -> list[ToolInvocation]:
        """Turn tool-use blocks into invocations with unique ids.

        A block without an id gets a fresh one. A block whose id was already
        used, earlier in the conversation or earlier in the same reply, also
        gets a fresh one so that no outcome can be attributed to the wrong
        invocation.
        """
        used: set[str] = set()
        invocations: list[ToolInvocation] = []

        for block in tool_uses:
            invocation_id = block.id
            if invocation_id and (
                invocation_id in used or conversation.has_invocation_id(invocation_id)
            ):
                logger.warning(
                    f"Duplicate tool invocation id {invocation_id} from model; "
                    f"assigning a new id"
                )
                invocation_id = None

            while not invocation_id or invocation_id in used:
                invocation_id = self.id_generator()
                if conversation.has_invocation_id(invocation_id):
                    invocation_id = None

            used.add(invocation_id)
            invocations.append(
                ToolInvocation(
                    id=invocation_id, name=block.name, arguments=dict(block.arguments)
                )
            )
        return invocations

    async def _dispatch(self, invocation: ToolInvocation) -> ToolOutcomePayload:
        try:
            return await self.dispatcher.dispatch(invocation.name, invocation.arguments)
        except Exception as e:
            logger.error(
                f"Dispatch of {invocation.name} ({invocation.id}) failed: {e}",
                exc_info=True,
            )
            return ToolOutcomePayload.failure(
                TRANSPORT_ERROR, f"Tool {invocation.name} could not be called: {e}"
            )
