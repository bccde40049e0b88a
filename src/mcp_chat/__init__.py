"""mcp-chat: chat with Claude through tools served by MCP server processes.

Host surface:
    ChatSession, AppSettings, load_settings

Core:
    QueryOrchestrator, ToolErrorPolicy, StreamDecoder, CancelToken

Tools:
    ConnectionPool, ToolRegistry, ServerConnection, McpStdioConnector

Providers:
    AnthropicProvider, ModelProvider

Models:
    QueryContext, QueryOptions, TextMessage, ToolUseMessage, ToolResultMessage,
    TextResponse, ToolUseResponse, ErrorResponse,
    TextEvent, ToolStartEvent, ToolResultEvent, ToolErrorEvent, ErrorEvent,
    CancelledEvent, ErrorCode, ServerConfig, ServerStatus, ToolSpec, ModelInfo

Exceptions:
    McpChatError, ServerConnectionError, ToolNotFoundError, ToolExecutionError,
    ToolArgumentsError, ToolLoopLimitError, ModelNotFoundError,
    NoModelSelectedError, ProviderNotInitializedError, SettingsError,
    OperationCancelledError
"""

from mcp_chat._version import __version__
from mcp_chat.cancellation import CancelToken
from mcp_chat.exceptions import (
    McpChatError,
    ModelNotFoundError,
    NoModelSelectedError,
    OperationCancelledError,
    ProviderNotInitializedError,
    ServerConnectionError,
    SettingsError,
    ToolArgumentsError,
    ToolExecutionError,
    ToolLoopLimitError,
    ToolNotFoundError,
)
from mcp_chat.models import (
    CancelledEvent,
    ErrorCode,
    ErrorEvent,
    ErrorResponse,
    ModelInfo,
    QueryContext,
    QueryOptions,
    ServerConfig,
    ServerStatus,
    TextEvent,
    TextMessage,
    TextResponse,
    ToolErrorEvent,
    ToolResultEvent,
    ToolResultMessage,
    ToolSpec,
    ToolStartEvent,
    ToolUseMessage,
    ToolUseResponse,
)
from mcp_chat.orchestrator import QueryOrchestrator, ToolErrorPolicy
from mcp_chat.protocols import ModelProvider, ToolClient, ToolConnector
from mcp_chat.providers import AnthropicProvider
from mcp_chat.session import ChatSession
from mcp_chat.settings import AppSettings, load_settings
from mcp_chat.streaming import StreamDecoder
from mcp_chat.tools import ConnectionPool, McpStdioConnector, ServerConnection, ToolRegistry

__all__ = [
    "AnthropicProvider",
    "AppSettings",
    "CancelToken",
    "CancelledEvent",
    "ChatSession",
    "ConnectionPool",
    "ErrorCode",
    "ErrorEvent",
    "ErrorResponse",
    "McpChatError",
    "McpStdioConnector",
    "ModelInfo",
    "ModelNotFoundError",
    "ModelProvider",
    "NoModelSelectedError",
    "OperationCancelledError",
    "ProviderNotInitializedError",
    "QueryContext",
    "QueryOptions",
    "QueryOrchestrator",
    "ServerConfig",
    "ServerConnection",
    "ServerConnectionError",
    "ServerStatus",
    "SettingsError",
    "StreamDecoder",
    "TextEvent",
    "TextMessage",
    "TextResponse",
    "ToolArgumentsError",
    "ToolClient",
    "ToolConnector",
    "ToolErrorEvent",
    "ToolErrorPolicy",
    "ToolExecutionError",
    "ToolLoopLimitError",
    "ToolNotFoundError",
    "ToolRegistry",
    "ToolResultEvent",
    "ToolResultMessage",
    "ToolSpec",
    "ToolStartEvent",
    "ToolUseMessage",
    "ToolUseResponse",
    "__version__",
    "load_settings",
]
