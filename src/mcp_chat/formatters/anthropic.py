"""Anthropic Messages API formatter."""

from __future__ import annotations

import json
import logging
from typing import Any

from mcp_chat.models.query import QueryContext, TextMessage, ToolResultMessage, ToolUseMessage
from mcp_chat.models.server import ToolSpec

logger = logging.getLogger(__name__)


class AnthropicFormatter:
    """Formats a :class:`QueryContext` for the Anthropic Messages API.

    Text and tool results become ``user`` content blocks, tool uses become
    ``assistant`` blocks. Consecutive messages with the same role are merged
    into one message, since the API requires strict user/assistant
    alternation (several tool uses from one turn end up in one assistant
    message, followed by one user message holding all their results).
    """

    @property
    def format_type(self) -> str:
        return "anthropic"

    def format(self, context: QueryContext) -> list[dict[str, Any]]:
        """Return the ``messages`` list for ``messages.stream()``."""
        messages: list[dict[str, Any]] = []
        for message in context.messages:
            role, block = self._to_block(message)
            if messages and messages[-1]["role"] == role:
                messages[-1]["content"].append(block)
            else:
                messages.append({"role": role, "content": [block]})
        return messages

    @staticmethod
    def format_tools(tools: list[ToolSpec]) -> list[dict[str, Any]]:
        return [tool.to_anthropic_schema() for tool in tools]

    @staticmethod
    def _to_block(
        message: TextMessage | ToolUseMessage | ToolResultMessage,
    ) -> tuple[str, dict[str, Any]]:
        if isinstance(message, TextMessage):
            return "user", {"type": "text", "text": message.content}
        if isinstance(message, ToolUseMessage):
            return "assistant", {
                "type": "tool_use",
                "id": message.id,
                "name": message.name,
                "input": _decode_input(message),
            }
        block: dict[str, Any] = {
            "type": "tool_result",
            "tool_use_id": message.tool_use_id,
            "content": message.content,
        }
        if message.is_error:
            block["is_error"] = True
        return "user", block


def _decode_input(message: ToolUseMessage) -> dict[str, Any]:
    if not message.input:
        return {}
    try:
        decoded = json.loads(message.input)
    except json.JSONDecodeError:
        logger.warning("Tool use %s has undecodable input; sending {}", message.id)
        return {}
    return decoded if isinstance(decoded, dict) else {}
