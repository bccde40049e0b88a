"""Tests for the pydantic models in mcp_chat.models."""

from __future__ import annotations

import pytest
from pydantic import TypeAdapter, ValidationError

from mcp_chat.models import (
    CancelledEvent,
    ErrorCode,
    ErrorEvent,
    QueryContext,
    QueryMessage,
    QueryOptions,
    QueryResponse,
    ServerConfig,
    TextMessage,
    ToolResultMessage,
    ToolSpec,
    ToolUseMessage,
    ToolUseResponse,
)


class TestQueryContext:
    def test_defaults(self) -> None:
        context = QueryContext()
        assert context.messages == []
        assert context.options.temperature == 0.7
        assert context.options.max_tokens == 2000
        assert len(context) == 0

    def test_append_preserves_order(self) -> None:
        context = QueryContext()
        context.append(TextMessage(content="hi"))
        context.append(ToolUseMessage(id="tu_1", name="add", input='{"a":1}'))
        context.append(ToolResultMessage(tool_use_id="tu_1", content="1"))
        assert [message.type for message in context.messages] == [
            "text",
            "tool_use",
            "tool_result",
        ]
        assert len(context) == 3

    def test_reset_keeps_options(self) -> None:
        context = QueryContext(options=QueryOptions(temperature=0.2, max_tokens=50))
        context.append(TextMessage(content="hi"))
        context.reset()
        assert context.messages == []
        assert context.options.temperature == 0.2

    def test_pending_tool_uses(self) -> None:
        context = QueryContext()
        context.append(ToolUseMessage(id="tu_1", name="a"))
        context.append(ToolUseMessage(id="tu_2", name="b"))
        context.append(ToolResultMessage(tool_use_id="tu_1", content="ok"))
        assert context.pending_tool_uses() == ["tu_2"]

    def test_messages_validate_by_type(self) -> None:
        adapter = TypeAdapter(QueryMessage)
        message = adapter.validate_python(
            {"type": "tool_result", "tool_use_id": "x", "content": "y"}
        )
        assert isinstance(message, ToolResultMessage)
        assert message.is_error is False

    def test_messages_are_frozen(self) -> None:
        message = TextMessage(content="hi")
        with pytest.raises(ValidationError):
            message.content = "changed"  # type: ignore[misc]


class TestQueryOptions:
    def test_temperature_bounds(self) -> None:
        with pytest.raises(ValidationError):
            QueryOptions(temperature=1.5)

    def test_max_tokens_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            QueryOptions(max_tokens=0)


class TestToolUseResponse:
    def test_finalize_parses_buffer(self) -> None:
        unit = ToolUseResponse(id="tu_1", name="add", raw_input='{"a": 2, "b": 2}')
        unit.finalize()
        assert unit.args == {"a": 2, "b": 2}
        assert unit.serialized_args == '{"a":2,"b":2}'

    def test_whitespace_buffer_is_empty_object(self) -> None:
        unit = ToolUseResponse(id="tu_1", name="ping", raw_input="  ")
        unit.finalize()
        assert unit.args == {}
        assert unit.decode_error is None

    def test_invalid_buffer_serializes_as_empty_object(self) -> None:
        unit = ToolUseResponse(id="tu_1", name="add", raw_input="{oops")
        unit.finalize()
        assert unit.args is None
        assert unit.serialized_args == "{}"


class TestEvents:
    def test_event_union_discriminates(self) -> None:
        adapter = TypeAdapter(QueryResponse)
        event = adapter.validate_python({"type": "error", "content": "x"})
        assert isinstance(event, ErrorEvent)
        assert event.code is ErrorCode.STREAM
        assert isinstance(adapter.validate_python({"type": "cancelled"}), CancelledEvent)

    def test_error_code_values(self) -> None:
        assert ErrorCode.TOOL_LOOP_LIMIT == "tool_loop_limit"


class TestServerModels:
    def test_server_config_defaults(self) -> None:
        config = ServerConfig(command="npx")
        assert config.args == []
        assert config.env is None

    def test_tool_spec_anthropic_schema(self) -> None:
        spec = ToolSpec(name="add", description="Add", input_schema={"type": "object"})
        assert spec.to_anthropic_schema() == {
            "name": "add",
            "description": "Add",
            "input_schema": {"type": "object"},
        }

    def test_tool_spec_default_schema(self) -> None:
        assert ToolSpec(name="x").input_schema == {"type": "object"}
