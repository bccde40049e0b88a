"""Custom exceptions for mcp-chat."""

from __future__ import annotations

__all__ = [
    "McpChatError",
    "ModelNotFoundError",
    "NoModelSelectedError",
    "OperationCancelledError",
    "ProviderNotInitializedError",
    "ServerConnectionError",
    "SettingsError",
    "ToolArgumentsError",
    "ToolExecutionError",
    "ToolLoopLimitError",
    "ToolNotFoundError",
]


class McpChatError(Exception):
    """Base exception for all mcp-chat errors."""


class ServerConnectionError(McpChatError):
    """Raised when a tool server cannot be started or connected."""

    def __init__(self, message: str, server_name: str) -> None:
        super().__init__(message)
        self.server_name = server_name


class ToolNotFoundError(McpChatError):
    """Raised when no connected server provides the requested tool."""

    def __init__(self, tool_name: str) -> None:
        super().__init__(f"No server found that provides tool: {tool_name}")
        self.tool_name = tool_name


class ToolExecutionError(McpChatError):
    """Raised when a tool call fails or the server reports an error result."""

    def __init__(self, message: str, tool_name: str, server_name: str | None = None) -> None:
        super().__init__(message)
        self.tool_name = tool_name
        self.server_name = server_name


class ToolArgumentsError(McpChatError):
    """Raised when the model's tool arguments could not be decoded."""

    def __init__(self, message: str, tool_name: str) -> None:
        super().__init__(message)
        self.tool_name = tool_name


class ToolLoopLimitError(McpChatError):
    """Raised when a query keeps requesting tools past the round limit."""

    def __init__(self, limit: int) -> None:
        super().__init__(f"Tool loop limit exceeded ({limit} rounds)")
        self.limit = limit


class ModelNotFoundError(McpChatError):
    """Raised when selecting a model id the provider does not list."""


class NoModelSelectedError(McpChatError):
    """Raised when a query starts and no model is available."""


class ProviderNotInitializedError(McpChatError):
    """Raised when the model provider is used before ``initialize()``."""


class SettingsError(McpChatError):
    """Raised when the settings file cannot be read or validated."""


class OperationCancelledError(McpChatError):
    """Raised when an awaited operation is abandoned because its token was cancelled."""

    def __init__(self, reason: str | None = None) -> None:
        super().__init__(f"Operation cancelled ({reason or 'cancelled'})")
        self.reason = reason
