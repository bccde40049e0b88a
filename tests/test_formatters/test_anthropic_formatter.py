"""Tests for mcp_chat.formatters.anthropic.AnthropicFormatter."""

from __future__ import annotations

from mcp_chat.formatters.anthropic import AnthropicFormatter
from mcp_chat.models.query import QueryContext, TextMessage, ToolResultMessage, ToolUseMessage
from mcp_chat.models.server import ToolSpec


def _context(*messages) -> QueryContext:
    context = QueryContext()
    for message in messages:
        context.append(message)
    return context


class TestAnthropicFormatter:
    def test_format_type(self) -> None:
        assert AnthropicFormatter().format_type == "anthropic"

    def test_text_becomes_user_block(self) -> None:
        messages = AnthropicFormatter().format(_context(TextMessage(content="hello")))
        assert messages == [{"role": "user", "content": [{"type": "text", "text": "hello"}]}]

    def test_tool_round_trip(self) -> None:
        messages = AnthropicFormatter().format(
            _context(
                TextMessage(content="what is 2+2"),
                ToolUseMessage(id="tu_1", name="add", input='{"a":2,"b":2}'),
                ToolResultMessage(tool_use_id="tu_1", content="4"),
            )
        )
        assert [message["role"] for message in messages] == ["user", "assistant", "user"]
        assert messages[1]["content"] == [
            {"type": "tool_use", "id": "tu_1", "name": "add", "input": {"a": 2, "b": 2}}
        ]
        assert messages[2]["content"] == [
            {"type": "tool_result", "tool_use_id": "tu_1", "content": "4"}
        ]

    def test_consecutive_same_role_messages_merge(self) -> None:
        messages = AnthropicFormatter().format(
            _context(
                TextMessage(content="q"),
                ToolUseMessage(id="tu_1", name="a", input="{}"),
                ToolUseMessage(id="tu_2", name="b", input="{}"),
                ToolResultMessage(tool_use_id="tu_1", content="1"),
                ToolResultMessage(tool_use_id="tu_2", content="2"),
                TextMessage(content="next"),
            )
        )
        assert [message["role"] for message in messages] == ["user", "assistant", "user"]
        assert [block["id"] for block in messages[1]["content"]] == ["tu_1", "tu_2"]
        assert [block["type"] for block in messages[2]["content"]] == [
            "tool_result",
            "tool_result",
            "text",
        ]

    def test_error_result_is_flagged(self) -> None:
        messages = AnthropicFormatter().format(
            _context(ToolResultMessage(tool_use_id="tu_1", content="boom", is_error=True))
        )
        assert messages[0]["content"][0]["is_error"] is True

    def test_undecodable_input_sent_as_empty_object(self) -> None:
        messages = AnthropicFormatter().format(
            _context(ToolUseMessage(id="tu_1", name="a", input="{not json"))
        )
        assert messages[0]["content"][0]["input"] == {}

    def test_format_tools(self) -> None:
        tools = [ToolSpec(name="add", description="Add", input_schema={"type": "object"})]
        assert AnthropicFormatter.format_tools(tools) == [
            {"name": "add", "description": "Add", "input_schema": {"type": "object"}}
        ]

    def test_empty_context(self) -> None:
        assert AnthropicFormatter().format(QueryContext()) == []
