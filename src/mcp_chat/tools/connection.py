"""Connections to stdio MCP tool servers.

Process management and JSON-RPC framing are handled by the MCP SDK
(``mcp.client.stdio.stdio_client`` + ``mcp.ClientSession``). This module
adapts a session to the :class:`~mcp_chat.protocols.tools.ToolClient`
protocol and renders tool results as text.
"""

from __future__ import annotations

import logging
import sys
from contextlib import AsyncExitStack
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TextIO

from mcp_chat._version import __version__
from mcp_chat.exceptions import ServerConnectionError, ToolExecutionError
from mcp_chat.models.server import ServerConfig, ServerStatus, ToolSpec
from mcp_chat.protocols.tools import ToolClient

logger = logging.getLogger(__name__)

MEMORY_FILE_ENV = "MEMORY_FILE_PATH"


@dataclass
class ServerConnection:
    """A live connection to one tool server and the tools it advertised."""

    name: str
    client: ToolClient
    tools: list[ToolSpec] = field(default_factory=list)

    def has_tool(self, tool_name: str) -> bool:
        return any(tool.name == tool_name for tool in self.tools)

    def status(self) -> ServerStatus:
        return ServerStatus(name=self.name, tools=[tool.name for tool in self.tools])

    async def refresh_tools(self) -> list[ToolSpec]:
        """Re-read the tool list from the server."""
        self.tools = await self.client.list_tools()
        return self.tools


def render_tool_result(content: list[Any]) -> str:
    """Flatten MCP result content blocks into a single string.

    Text blocks contribute their text; any other block (image, embedded
    resource) is included as its JSON representation.
    """
    parts: list[str] = []
    for block in content:
        if getattr(block, "type", None) == "text":
            parts.append(block.text)
        elif hasattr(block, "model_dump_json"):
            parts.append(block.model_dump_json(by_alias=True, exclude_none=True))
        else:
            parts.append(str(block))
    return "\n".join(parts)


def prepare_server_environment(config: ServerConfig) -> None:
    """Create the directory of ``MEMORY_FILE_PATH`` if the server uses one."""
    memory_file = (config.env or {}).get(MEMORY_FILE_ENV)
    if not memory_file:
        return
    memory_dir = Path(memory_file).parent
    if not memory_dir.exists():
        memory_dir.mkdir(parents=True, exist_ok=True)
        logger.info("Created memory directory: %s", memory_dir)


class McpToolClient:
    """:class:`ToolClient` backed by an initialized ``mcp.ClientSession``."""

    def __init__(self, server_name: str, session: Any, stack: AsyncExitStack) -> None:
        self._server_name = server_name
        self._session = session
        self._stack = stack

    async def list_tools(self) -> list[ToolSpec]:
        result = await self._session.list_tools()
        return [
            ToolSpec(
                name=tool.name,
                description=tool.description or "",
                input_schema=tool.inputSchema,
            )
            for tool in result.tools
        ]

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> str:
        try:
            result = await self._session.call_tool(name, arguments)
        except Exception as exc:
            msg = f"Error executing tool {name}: {exc}"
            raise ToolExecutionError(msg, tool_name=name, server_name=self._server_name) from exc

        text = render_tool_result(result.content)
        if result.isError:
            msg = text or f"Tool {name} reported an error"
            raise ToolExecutionError(msg, tool_name=name, server_name=self._server_name)
        return text

    async def close(self) -> None:
        await self._stack.aclose()


class McpStdioConnector:
    """Launches a server process and opens an MCP session over its stdio.

    Parameters
    ----------
    errlog:
        Stream that receives the servers' stderr. Defaults to ``sys.stderr``.
    """

    def __init__(self, errlog: TextIO | None = None) -> None:
        self._errlog = errlog if errlog is not None else sys.stderr

    async def connect(self, name: str, config: ServerConfig) -> McpToolClient:
        from mcp import ClientSession, StdioServerParameters
        from mcp.client.stdio import stdio_client
        from mcp.types import Implementation

        prepare_server_environment(config)
        params = StdioServerParameters(command=config.command, args=config.args, env=config.env)
        client_info = Implementation(name=f"mcp-chat-{name}", version=__version__)

        stack = AsyncExitStack()
        try:
            read, write = await stack.enter_async_context(
                stdio_client(params, errlog=self._errlog)
            )
            session = await stack.enter_async_context(
                ClientSession(read, write, client_info=client_info)
            )
            await session.initialize()
        except Exception as exc:
            await _close_quietly(stack, name)
            msg = f"Failed to connect to server {name}: {exc}"
            raise ServerConnectionError(msg, server_name=name) from exc

        logger.debug("Initialized MCP session for %s", name)
        return McpToolClient(name, session, stack)


async def _close_quietly(stack: AsyncExitStack, name: str) -> None:
    try:
        await stack.aclose()
    except Exception:
        logger.debug("Cleanup after failed connect to %s also failed", name, exc_info=True)
