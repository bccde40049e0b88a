"""Tool-server client protocols.

The transport itself (process spawning, JSON-RPC framing) belongs to the
MCP SDK; these protocols describe only the calls the core relies on.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from mcp_chat.models.server import ServerConfig, ToolSpec


@runtime_checkable
class ToolClient(Protocol):
    """A live connection to one tool server."""

    async def list_tools(self) -> list[ToolSpec]:
        ...

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> str:
        """Invoke *name* and return its rendered text content.

        Raises:
            ToolExecutionError: If the call fails or the server flags an error.
        """
        ...

    async def close(self) -> None:
        ...


@runtime_checkable
class ToolConnector(Protocol):
    """Factory that opens a :class:`ToolClient` for a server config."""

    async def connect(self, name: str, config: ServerConfig) -> ToolClient:
        ...
