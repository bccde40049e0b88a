"""Tool-server connections, pooling and routing."""

from .connection import (
    McpStdioConnector,
    McpToolClient,
    ServerConnection,
    prepare_server_environment,
    render_tool_result,
)
from .pool import ConnectionPool
from .registry import ToolRegistry

__all__ = [
    "ConnectionPool",
    "McpStdioConnector",
    "McpToolClient",
    "ServerConnection",
    "ToolRegistry",
    "prepare_server_environment",
    "render_tool_result",
]
