"""Pydantic models for API request and response schemas."""

from toolhost_server.models.chat import (
    ChatRequest,
    ChatResponse,
    CycleCompleteEvent,
    DoneEvent,
    ErrorEvent,
)
from toolhost_server.models.conversations import (
    ConversationDetailResponse,
    ConversationListItem,
    ConversationListResponse,
    ConversationResponse,
)
from toolhost_server.models.health import HealthResponse
from toolhost_server.models.servers import ServerInfo, ServerListResponse
from toolhost_server.models.tools import (
    ToolCallRequest,
    ToolCallResponse,
    ToolInfo,
    ToolListResponse,
)
from toolhost_server.models.turns import TurnResponse, turn_response

__all__ = [
    # Chat
    "ChatRequest",
    "ChatResponse",
    "CycleCompleteEvent",
    "DoneEvent",
    "ErrorEvent",
    # Conversations
    "ConversationDetailResponse",
    "ConversationListItem",
    "ConversationListResponse",
    "ConversationResponse",
    # Health
    "HealthResponse",
    # Servers
    "ServerInfo",
    "ServerListResponse",
    # Tools
    "ToolCallRequest",
    "ToolCallResponse",
    "ToolInfo",
    "ToolListResponse",
    # Turns
    "TurnResponse",
    "turn_response",
]
