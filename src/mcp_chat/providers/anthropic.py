"""Anthropic implementation of the :class:`ModelProvider` protocol."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import Any

from mcp_chat.cancellation import CancelToken
from mcp_chat.exceptions import (
    ModelNotFoundError,
    NoModelSelectedError,
    ProviderNotInitializedError,
)
from mcp_chat.formatters.anthropic import AnthropicFormatter
from mcp_chat.models.query import QueryContext
from mcp_chat.models.server import ModelInfo, ToolSpec
from mcp_chat.models.streaming import ErrorResponse, TextResponse, ToolUseResponse
from mcp_chat.streaming.decoder import STREAM_ERROR_MESSAGE, StreamDecoder

logger = logging.getLogger(__name__)

DEFAULT_MODEL_NAME = "Claude 3.5 Haiku"
"""Display name of the model selected after ``initialize()`` when listed."""

MODEL_LIST_LIMIT = 20


class AnthropicProvider:
    """Streams Claude turns through the Anthropic SDK.

    Usage::

        provider = AnthropicProvider(api_key="sk-ant-...")
        await provider.initialize()
        provider.set_tools(tools)

        token = CancelToken()
        async for unit in provider.stream_query(context, token):
            ...

    At most one call is in flight: a new :meth:`stream_query` cancels the
    previous call's token before opening its own stream.
    """

    __slots__ = (
        "_active_token",
        "_client",
        "_current_model",
        "_decoder",
        "_formatter",
        "_initialized",
        "_models",
        "_owns_client",
        "_tools",
    )

    def __init__(
        self,
        *,
        api_key: str | None = None,
        client: Any = None,
        decoder: StreamDecoder | None = None,
    ) -> None:
        if client is not None:
            self._client: Any = client
            self._owns_client = False
        else:
            try:
                import anthropic
            except ImportError:
                msg = (
                    "anthropic is required for AnthropicProvider. "
                    "Install with: pip install anthropic"
                )
                raise ImportError(msg) from None
            self._client = anthropic.AsyncAnthropic(api_key=api_key)
            self._owns_client = True

        self._decoder = decoder or StreamDecoder()
        self._formatter = AnthropicFormatter()
        self._models: list[ModelInfo] = []
        self._current_model: str | None = None
        self._tools: list[ToolSpec] = []
        self._active_token: CancelToken | None = None
        self._initialized = False

    # -- Models --

    async def initialize(self) -> list[str]:
        """Load the model list and pick the default model."""
        try:
            page = await self._client.models.list(limit=MODEL_LIST_LIMIT)
        except Exception:
            logger.exception("Error initializing models")
            raise

        self._models = [
            ModelInfo(
                id=model.id,
                name=model.display_name or model.id,
                description=f"Anthropic {model.display_name or model.id} model",
            )
            for model in page.data
        ]
        self._initialized = True

        default = self._default_model()
        if default is not None:
            self._current_model = default.id
            logger.info("Set default model to %s (%s)", default.name, default.id)
        else:
            logger.warning("No models available from Anthropic")
        return [model.id for model in self._models]

    def get_available_models(self) -> list[ModelInfo]:
        return list(self._models)

    def set_model(self, model_id: str) -> None:
        if not any(model.id == model_id for model in self._models):
            msg = f"Model {model_id} not found"
            raise ModelNotFoundError(msg)
        self._current_model = model_id
        logger.info("Model set to %s", model_id)

    def get_current_model(self) -> str:
        """Return the selected model, falling back to the default one.

        Raises:
            ProviderNotInitializedError: If ``initialize()`` has not run.
            NoModelSelectedError: If the provider lists no models.
        """
        if not self._initialized:
            msg = "AnthropicProvider.initialize() must be awaited first"
            raise ProviderNotInitializedError(msg)
        if self._current_model is None or not any(
            model.id == self._current_model for model in self._models
        ):
            default = self._default_model()
            if default is None:
                msg = "No models available"
                raise NoModelSelectedError(msg)
            self._current_model = default.id
        return self._current_model

    def _default_model(self) -> ModelInfo | None:
        for model in self._models:
            if model.name == DEFAULT_MODEL_NAME:
                return model
        return self._models[0] if self._models else None

    # -- Tools --

    def get_tools(self) -> list[ToolSpec]:
        return list(self._tools)

    def set_tools(self, tools: list[ToolSpec]) -> None:
        self._tools = list(tools)
        logger.debug("Tools updated. Total tools: %d", len(self._tools))

    # -- Queries --

    def is_query_running(self) -> bool:
        return self._active_token is not None and not self._active_token.cancelled

    def stop_query(self) -> None:
        if self._active_token is not None:
            logger.info("Stopping message stream")
            self._active_token.cancel("stopped")
            self._active_token = None

    async def stream_query(
        self, context: QueryContext, token: CancelToken
    ) -> AsyncIterator[TextResponse | ToolUseResponse | ErrorResponse]:
        """Run one turn with the current context and tool list."""
        if self.is_query_running():
            logger.info("Stopping message stream due to new query")
            self._active_token.cancel("superseded")  # type: ignore[union-attr]
        self._active_token = token

        try:
            if token.cancelled:
                return
            kwargs = self._request_kwargs(context)
            logger.debug("Query messages: %s", kwargs["messages"])
            async with self._client.messages.stream(**kwargs) as stream:
                async for unit in self._decoder.decode(stream, token):
                    yield unit
        except Exception as exc:
            if token.cancelled:
                logger.info("Message stream aborted: %s", token.reason)
                return
            logger.error("Stream processing error: %r", exc)
            yield ErrorResponse(content=STREAM_ERROR_MESSAGE)
        finally:
            if self._active_token is token:
                self._active_token = None

    def _request_kwargs(self, context: QueryContext) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": self.get_current_model(),
            "messages": self._formatter.format(context),
            "max_tokens": context.options.max_tokens,
            "temperature": context.options.temperature,
        }
        if self._tools:
            kwargs["tools"] = self._formatter.format_tools(self._tools)
        return kwargs

    async def cleanup(self) -> None:
        self.stop_query()
        if self._owns_client:
            await self._client.close()
