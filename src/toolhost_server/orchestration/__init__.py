"""Orchestration of model calls and tool dispatch.

This package contains the loop that keeps forwarding tool results back to
the model until it stops requesting tools, and the request/response shapes
it exchanges with the model.
"""

from toolhost_server.orchestration.loop import (
    BUDGET_EXCEEDED_MESSAGE,
    CycleResult,
    StopReason,
    ToolOrchestrator,
)
from toolhost_server.orchestration.model import (
    ChatModel,
    ContentBlock,
    ModelRequest,
    ModelResponse,
    TextBlock,
    ToolUseBlock,
)

__all__ = [
    "BUDGET_EXCEEDED_MESSAGE",
    "ChatModel",
    "ContentBlock",
    "CycleResult",
    "ModelRequest",
    "ModelResponse",
    "StopReason",
    "TextBlock",
    "ToolOrchestrator",
    "ToolUseBlock",
]
