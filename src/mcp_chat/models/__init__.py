"""Core data models for mcp-chat."""

from .events import (
    CancelledEvent,
    ErrorCode,
    ErrorEvent,
    QueryResponse,
    TextEvent,
    ToolErrorEvent,
    ToolResultEvent,
    ToolStartEvent,
)
from .query import (
    QueryContext,
    QueryMessage,
    QueryOptions,
    TextMessage,
    ToolResultMessage,
    ToolUseMessage,
)
from .server import ModelInfo, ServerConfig, ServerStatus, ToolSpec
from .streaming import ErrorResponse, StreamResponse, TextResponse, ToolUseResponse

__all__ = [
    "CancelledEvent",
    "ErrorCode",
    "ErrorEvent",
    "ErrorResponse",
    "ModelInfo",
    "QueryContext",
    "QueryMessage",
    "QueryOptions",
    "QueryResponse",
    "ServerConfig",
    "ServerStatus",
    "StreamResponse",
    "TextEvent",
    "TextMessage",
    "TextResponse",
    "ToolErrorEvent",
    "ToolResultEvent",
    "ToolResultMessage",
    "ToolSpec",
    "ToolStartEvent",
    "ToolUseMessage",
    "ToolUseResponse",
]
