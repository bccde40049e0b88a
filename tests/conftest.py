"""Shared fakes for mcp-chat tests.

Nothing here talks to the network or launches processes: the Anthropic
client and the MCP servers are replaced with in-memory stand-ins that
satisfy the same interfaces.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import AsyncIterator, Callable
from types import SimpleNamespace
from typing import Any

from mcp_chat.exceptions import ServerConnectionError
from mcp_chat.models.server import ServerConfig, ToolSpec
from mcp_chat.tools.pool import ConnectionPool
from mcp_chat.tools.registry import ToolRegistry

# ---------------------------------------------------------------------------
# Anthropic stream events
# ---------------------------------------------------------------------------


def message_start() -> SimpleNamespace:
    return SimpleNamespace(type="message_start", message=SimpleNamespace(id="msg_1"))


def text_block_start(index: int) -> SimpleNamespace:
    return SimpleNamespace(
        type="content_block_start",
        index=index,
        content_block=SimpleNamespace(type="text", text=""),
    )


def tool_block_start(index: int, tool_id: str, name: str) -> SimpleNamespace:
    return SimpleNamespace(
        type="content_block_start",
        index=index,
        content_block=SimpleNamespace(type="tool_use", id=tool_id, name=name, input={}),
    )


def text_delta(index: int, text: str) -> SimpleNamespace:
    return SimpleNamespace(
        type="content_block_delta",
        index=index,
        delta=SimpleNamespace(type="text_delta", text=text),
    )


def json_delta(index: int, partial_json: str) -> SimpleNamespace:
    return SimpleNamespace(
        type="content_block_delta",
        index=index,
        delta=SimpleNamespace(type="input_json_delta", partial_json=partial_json),
    )


def block_stop(index: int) -> SimpleNamespace:
    return SimpleNamespace(type="content_block_stop", index=index)


def message_delta(stop_reason: str) -> SimpleNamespace:
    return SimpleNamespace(type="message_delta", delta=SimpleNamespace(stop_reason=stop_reason))


def message_stop() -> SimpleNamespace:
    return SimpleNamespace(type="message_stop")


def text_turn(*fragments: str) -> list[SimpleNamespace]:
    """Events of a turn that only produces text."""
    events = [message_start(), text_block_start(0)]
    events.extend(text_delta(0, fragment) for fragment in fragments)
    events.extend([block_stop(0), message_delta("end_turn"), message_stop()])
    return events


def tool_turn(*calls: tuple[str, str, list[str]]) -> list[SimpleNamespace]:
    """Events of a turn that requests tools.

    Each call is ``(tool_id, name, json_fragments)``.
    """
    events = [message_start()]
    for index, (tool_id, name, fragments) in enumerate(calls):
        events.append(tool_block_start(index, tool_id, name))
        events.extend(json_delta(index, fragment) for fragment in fragments)
        events.append(block_stop(index))
    events.extend([message_delta("tool_use"), message_stop()])
    return events


async def aiter_events(
    events: list[Any],
    *,
    error: Exception | None = None,
    hang: bool = False,
) -> AsyncIterator[Any]:
    """Yield *events*, then optionally raise *error* or block forever."""
    for event in events:
        await asyncio.sleep(0)
        yield event
    if error is not None:
        raise error
    if hang:
        await asyncio.Event().wait()


# ---------------------------------------------------------------------------
# Fake Anthropic client
# ---------------------------------------------------------------------------


class FakeAsyncStream:
    """Mock of the SDK's ``AsyncMessageStream`` context manager."""

    def __init__(
        self,
        events: list[Any],
        *,
        error: Exception | None = None,
        hang: bool = False,
    ) -> None:
        self._events = events
        self._error = error
        self._hang = hang
        self.entered = False
        self.exited = False

    def __aiter__(self) -> AsyncIterator[Any]:
        return aiter_events(self._events, error=self._error, hang=self._hang)

    async def __aenter__(self) -> FakeAsyncStream:
        self.entered = True
        return self

    async def __aexit__(self, *args: Any) -> None:
        self.exited = True


class FakeMessages:
    """Mock for ``client.messages`` that replays one stream per call."""

    def __init__(self, streams: list[FakeAsyncStream]) -> None:
        self._streams = list(streams)
        self.calls: list[dict[str, Any]] = []

    def stream(self, **kwargs: Any) -> FakeAsyncStream:
        self.calls.append(kwargs)
        if self._streams:
            return self._streams.pop(0)
        return FakeAsyncStream(text_turn())


class FakeModels:
    """Mock for ``client.models`` returning a single page."""

    def __init__(self, models: list[tuple[str, str]], *, error: Exception | None = None) -> None:
        self._models = models
        self._error = error
        self.limits: list[int] = []

    async def list(self, limit: int = 20) -> SimpleNamespace:
        self.limits.append(limit)
        if self._error is not None:
            raise self._error
        data = [
            SimpleNamespace(id=model_id, display_name=name, type="model")
            for model_id, name in self._models
        ]
        return SimpleNamespace(data=data)


DEFAULT_MODELS = [
    ("claude-3-5-sonnet-20241022", "Claude 3.5 Sonnet"),
    ("claude-3-5-haiku-20241022", "Claude 3.5 Haiku"),
]


class FakeAnthropicClient:
    """Mock ``AsyncAnthropic`` with canned streams and a model list."""

    def __init__(
        self,
        streams: list[FakeAsyncStream] | None = None,
        *,
        models: list[tuple[str, str]] | None = None,
        models_error: Exception | None = None,
    ) -> None:
        self.messages = FakeMessages(streams or [])
        self.models = FakeModels(
            DEFAULT_MODELS if models is None else models, error=models_error
        )
        self.closed = False

    async def close(self) -> None:
        self.closed = True


# ---------------------------------------------------------------------------
# Fake tool servers
# ---------------------------------------------------------------------------


class FakeToolClient:
    """In-memory tool server.

    *handlers* maps a tool name to a callable taking the argument dict; a
    handler may raise to simulate a failing tool, or be a coroutine
    function to simulate a slow one.
    """

    def __init__(
        self,
        tools: list[ToolSpec],
        handlers: dict[str, Callable[[dict[str, Any]], Any]] | None = None,
        *,
        list_error: Exception | None = None,
        close_error: Exception | None = None,
    ) -> None:
        self.tools = tools
        self.handlers = handlers or {}
        self.list_error = list_error
        self.close_error = close_error
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.closed = False

    async def list_tools(self) -> list[ToolSpec]:
        if self.list_error is not None:
            raise self.list_error
        return list(self.tools)

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> str:
        self.calls.append((name, arguments))
        handler = self.handlers.get(name)
        if handler is None:
            return f"{name} ok"
        result = handler(arguments)
        if inspect.isawaitable(result):
            result = await result
        return result

    async def close(self) -> None:
        self.closed = True
        if self.close_error is not None:
            raise self.close_error


class FakeConnector:
    """Connector that hands out pre-built clients by server name.

    Names missing from *clients* fail to connect.
    """

    def __init__(self, clients: dict[str, FakeToolClient]) -> None:
        self.clients = clients
        self.connected: list[str] = []

    async def connect(self, name: str, config: ServerConfig) -> FakeToolClient:
        if name not in self.clients:
            msg = f"Failed to connect to server {name}: spawn failed"
            raise ServerConnectionError(msg, server_name=name)
        self.connected.append(name)
        return self.clients[name]


def tool(name: str, description: str = "") -> ToolSpec:
    return ToolSpec(
        name=name,
        description=description or f"The {name} tool",
        input_schema={"type": "object", "properties": {}},
    )


def add_tool_client() -> FakeToolClient:
    """A server exposing ``add(a, b)``."""
    return FakeToolClient(
        [tool("add", "Add two numbers")],
        {"add": lambda args: str(args["a"] + args["b"])},
    )


def server_config(command: str = "fake-server") -> ServerConfig:
    return ServerConfig(command=command, args=[])


async def connected_registry(clients: dict[str, FakeToolClient]) -> ToolRegistry:
    """Connect every client through a pool and return a registry over it."""
    pool = ConnectionPool(FakeConnector(clients))
    await pool.connect_all({name: server_config() for name in clients})
    return ToolRegistry(pool)


async def collect(iterator: AsyncIterator[Any]) -> list[Any]:
    return [item async for item in iterator]
