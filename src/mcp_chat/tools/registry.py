"""Tool-name routing over the connection pool."""

from __future__ import annotations

import logging
from typing import Any

from mcp_chat.exceptions import McpChatError, ToolExecutionError, ToolNotFoundError
from mcp_chat.models.server import ServerStatus, ToolSpec

from .connection import ServerConnection
from .pool import ConnectionPool

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Resolves a tool name to the connection that provides it.

    The name index is derived from the pool's connections and rebuilt
    whenever the pool's connection set changes. Tool names are expected to
    be unique across servers; when they are not, the first connected
    server wins and the collision is logged.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool
        self._index: dict[str, ServerConnection] = {}
        self._tools: list[ToolSpec] = []
        self._generation = -1

    def refresh(self) -> None:
        """Rebuild the name index from the pool's current connections."""
        index: dict[str, ServerConnection] = {}
        tools: list[ToolSpec] = []
        for connection in self._pool.connections.values():
            for tool in connection.tools:
                owner = index.get(tool.name)
                if owner is not None:
                    logger.warning(
                        "Tool %s is provided by both %s and %s; using %s",
                        tool.name,
                        owner.name,
                        connection.name,
                        owner.name,
                    )
                    continue
                index[tool.name] = connection
                tools.append(tool)
        self._index = index
        self._tools = tools
        self._generation = self._pool.generation

    def _ensure_current(self) -> None:
        if self._generation != self._pool.generation:
            self.refresh()

    def resolve(self, name: str) -> ServerConnection | None:
        """Return the connection providing *name*, or ``None``."""
        self._ensure_current()
        return self._index.get(name)

    def all_tools(self) -> list[ToolSpec]:
        """Every routable tool, de-duplicated by name."""
        self._ensure_current()
        return list(self._tools)

    def list_all(self) -> list[ServerStatus]:
        return [connection.status() for connection in self._pool.connections.values()]

    async def invoke(self, connection: ServerConnection, name: str, args: dict[str, Any]) -> str:
        """Call *name* on *connection* and return its text result.

        Raises:
            ToolExecutionError: If the call fails for any reason.
        """
        logger.info("Executing %s on %s with args: %s", name, connection.name, args)
        try:
            result = await connection.client.call_tool(name, args)
        except ToolExecutionError:
            raise
        except McpChatError as exc:
            raise ToolExecutionError(str(exc), tool_name=name, server_name=connection.name) from exc
        except Exception as exc:
            msg = f"Error executing tool {name}: {exc}"
            raise ToolExecutionError(msg, tool_name=name, server_name=connection.name) from exc
        logger.info("Tool %s executed successfully", name)
        logger.debug("Tool %s result: %s", name, result)
        return result

    async def dispatch(self, name: str, args: dict[str, Any]) -> str:
        """Resolve *name* and invoke it.

        Raises:
            ToolNotFoundError: If no connected server provides *name*.
            ToolExecutionError: If the call fails.
        """
        connection = self.resolve(name)
        if connection is None:
            raise ToolNotFoundError(name)
        return await self.invoke(connection, name, args)
