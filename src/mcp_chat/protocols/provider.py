"""Model provider protocol definition.

Any object with these methods can drive the orchestrator -- no inheritance
required. One implementation exists per vendor; the orchestrator only ever
holds a ``ModelProvider``.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Protocol, runtime_checkable

from mcp_chat.cancellation import CancelToken
from mcp_chat.models.query import QueryContext
from mcp_chat.models.server import ModelInfo, ToolSpec
from mcp_chat.models.streaming import ErrorResponse, TextResponse, ToolUseResponse


@runtime_checkable
class ModelProvider(Protocol):
    """Protocol for streaming language-model providers."""

    async def initialize(self) -> list[str]:
        """Connect to the vendor and load the model list.

        Returns:
            The ids of the available models.
        """
        ...

    def get_available_models(self) -> list[ModelInfo]:
        ...

    def set_model(self, model_id: str) -> None:
        """Select the model for subsequent queries.

        Raises:
            ModelNotFoundError: If *model_id* is not one of the listed models.
        """
        ...

    def get_current_model(self) -> str:
        ...

    def get_tools(self) -> list[ToolSpec]:
        ...

    def set_tools(self, tools: list[ToolSpec]) -> None:
        ...

    def stream_query(
        self, context: QueryContext, token: CancelToken
    ) -> AsyncIterator[TextResponse | ToolUseResponse | ErrorResponse]:
        """Run one model turn and yield its decoded units.

        Starting a new call cancels the provider's previous in-flight call.
        When *token* is cancelled the iterator stops without an error unit.
        """
        ...

    def stop_query(self) -> None:
        """Abort the in-flight call, if any, without starting another."""
        ...

    def is_query_running(self) -> bool:
        ...

    async def cleanup(self) -> None:
        ...
