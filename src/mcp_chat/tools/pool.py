"""Lifecycle of all tool-server connections."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from types import MappingProxyType, TracebackType

from mcp_chat.models.server import ServerConfig, ServerStatus
from mcp_chat.protocols.tools import ToolConnector

from .connection import McpStdioConnector, ServerConnection

logger = logging.getLogger(__name__)


class ConnectionPool:
    """Owns one live connection per configured server.

    Connections are opened together by :meth:`connect_all` and closed
    together by :meth:`close_all`. A server that fails to start is logged
    and left out; the rest of the pool is still usable.

    Usage::

        async with ConnectionPool() as pool:
            statuses = await pool.connect_all(settings.mcp_servers)
            ...
    """

    def __init__(self, connector: ToolConnector | None = None) -> None:
        self._connector: ToolConnector = connector or McpStdioConnector()
        self._connections: dict[str, ServerConnection] = {}
        self._generation = 0

    @property
    def connections(self) -> Mapping[str, ServerConnection]:
        """Read-only view of the live connections, in connect order."""
        return MappingProxyType(self._connections)

    @property
    def generation(self) -> int:
        """Incremented whenever the connection set changes."""
        return self._generation

    @property
    def servers(self) -> list[str]:
        return list(self._connections)

    async def connect_all(self, configs: Mapping[str, ServerConfig]) -> list[ServerStatus]:
        """Connect every configured server and list its tools.

        Returns the status of each server that connected; failed servers
        are logged and excluded.
        """
        logger.info("Connecting to %d server(s): %s", len(configs), list(configs))
        statuses: list[ServerStatus] = []
        for name, config in configs.items():
            connection = await self.connect(name, config)
            if connection is not None:
                statuses.append(connection.status())
        return statuses

    async def connect(self, name: str, config: ServerConfig) -> ServerConnection | None:
        """Connect a single server; returns ``None`` when it fails."""
        if name in self._connections:
            logger.warning("Server %s is already connected", name)
            return self._connections[name]

        logger.info("Attempting to connect to server: %s", name)
        try:
            client = await self._connector.connect(name, config)
        except Exception:
            logger.exception("Failed to connect to server %s", name)
            return None

        connection = ServerConnection(name=name, client=client)
        try:
            await connection.refresh_tools()
        except Exception:
            logger.exception("Failed to list tools of server %s", name)
            await self._close_connection(connection)
            return None

        self._connections[name] = connection
        self._generation += 1
        logger.info(
            "Connected to %s with %d tools: %s",
            name,
            len(connection.tools),
            [tool.name for tool in connection.tools],
        )
        return connection

    async def close_all(self) -> None:
        """Close every connection, continuing past individual failures."""
        if not self._connections:
            return
        logger.info("Cleaning up connections...")
        for connection in list(self._connections.values()):
            await self._close_connection(connection)
        self._connections.clear()
        self._generation += 1
        logger.info("All connections closed")

    async def _close_connection(self, connection: ServerConnection) -> None:
        try:
            await connection.client.close()
        except Exception:
            logger.exception("Error closing connection to %s", connection.name)

    async def __aenter__(self) -> ConnectionPool:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close_all()
