"""Host-facing facade wiring settings, provider, tools and orchestrator."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from types import TracebackType

from mcp_chat.exceptions import SettingsError
from mcp_chat.models.query import QueryContext
from mcp_chat.models.server import ModelInfo, ServerStatus
from mcp_chat.orchestrator import QueryEvent, QueryOrchestrator
from mcp_chat.protocols.provider import ModelProvider
from mcp_chat.settings import AppSettings
from mcp_chat.tools.pool import ConnectionPool
from mcp_chat.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


class ChatSession:
    """The surface a UI or CLI talks to.

    Usage::

        async with ChatSession(load_settings()) as session:
            await session.initialize()
            async for event in session.start_query("what is 2+2"):
                ...
    """

    def __init__(
        self,
        settings: AppSettings,
        *,
        provider: ModelProvider | None = None,
        pool: ConnectionPool | None = None,
    ) -> None:
        if provider is None:
            if not settings.api_key:
                msg = "modelProvider.apiKey is not set in the settings or environment"
                raise SettingsError(msg)
            from mcp_chat.providers.anthropic import AnthropicProvider

            provider = AnthropicProvider(api_key=settings.api_key)

        self._settings = settings
        self._provider = provider
        self._pool = pool if pool is not None else ConnectionPool()
        self._registry = ToolRegistry(self._pool)
        self._orchestrator = QueryOrchestrator(
            self._provider,
            self._registry,
            context=QueryContext(options=settings.orchestrator.query_options()),
            max_tool_rounds=settings.orchestrator.max_tool_rounds,
            tool_error_policy=settings.orchestrator.tool_error_policy,
        )
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def context(self) -> QueryContext:
        return self._orchestrator.context

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    async def initialize(self) -> list[ServerStatus]:
        """Connect the configured servers, then load the model list.

        Servers that fail to connect are left out. Returns the status of
        the servers that did connect.
        """
        logger.info("Initializing session...")
        statuses = await self._pool.connect_all(self._settings.mcp_servers)
        await self._provider.initialize()
        self._provider.set_tools(self._registry.all_tools())
        self._initialized = True
        return statuses

    # -- Queries --

    def start_query(self, text: str) -> AsyncIterator[QueryEvent]:
        return self._orchestrator.start_query(text)

    def stop_query(self) -> None:
        self._orchestrator.stop_query()

    def new_session(self) -> None:
        self._orchestrator.new_session()

    # -- Models --

    def get_available_models(self) -> list[ModelInfo]:
        return self._provider.get_available_models()

    def set_model(self, model_id: str) -> None:
        self._provider.set_model(model_id)

    def get_current_model(self) -> str:
        return self._provider.get_current_model()

    # -- Servers --

    def get_connected_servers(self) -> list[ServerStatus]:
        return self._registry.list_all()

    async def cleanup(self) -> None:
        """Stop any query, release the provider and close all servers."""
        self._orchestrator.stop_query()
        try:
            await self._provider.cleanup()
        except Exception:
            logger.exception("Error cleaning up model provider")
        await self._pool.close_all()
        self._initialized = False

    async def __aenter__(self) -> ChatSession:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.cleanup()
