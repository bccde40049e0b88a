"""Decoder from low-level Messages API stream events to semantic units.

The provider's stream delivers ``message_start``, ``content_block_start``,
``content_block_delta``, ``content_block_stop``, ``message_delta`` and
``message_stop`` events. :class:`StreamDecoder` turns them into
:class:`TextResponse`, :class:`ToolUseResponse` and :class:`ErrorResponse`
units:

* text fragments are emitted as soon as they arrive;
* tool-use argument fragments are buffered per content block and the
  complete tool uses are emitted, in block-open order, once the
  ``message_delta`` announces ``stop_reason == "tool_use"``;
* a transport fault ends the turn with a single error unit.

Events may be SDK objects (attribute access) or plain dicts.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterable, AsyncIterator, Iterator
from contextlib import aclosing
from enum import StrEnum
from typing import Any

from mcp_chat.cancellation import CancelToken, cancellable
from mcp_chat.models.streaming import ErrorResponse, TextResponse, ToolUseResponse

logger = logging.getLogger(__name__)

STREAM_ERROR_MESSAGE = "\n[Error: Stream processing failed]\n"


class EventType(StrEnum):
    MESSAGE_START = "message_start"
    CONTENT_BLOCK_START = "content_block_start"
    CONTENT_BLOCK_DELTA = "content_block_delta"
    CONTENT_BLOCK_STOP = "content_block_stop"
    MESSAGE_DELTA = "message_delta"
    MESSAGE_STOP = "message_stop"


def _field(obj: Any, name: str, default: Any = None) -> Any:
    if obj is None:
        return default
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


class _TurnState:
    """Accumulators for one model turn, keyed by content-block index."""

    __slots__ = ("blocks", "open_tool_uses")

    def __init__(self) -> None:
        self.blocks: dict[int, TextResponse | ToolUseResponse] = {}
        self.open_tool_uses: list[int] = []

    def feed(self, event: Any) -> Iterator[TextResponse | ToolUseResponse]:
        event_type = _field(event, "type")
        if event_type == EventType.CONTENT_BLOCK_START:
            self._start_block(event)
        elif event_type == EventType.CONTENT_BLOCK_DELTA:
            yield from self._apply_delta(event)
        elif event_type == EventType.MESSAGE_DELTA:
            stop_reason = _field(_field(event, "delta"), "stop_reason")
            logger.debug("Message delta received (stop_reason=%s)", stop_reason)
            if stop_reason == "tool_use":
                yield from self._flush_tool_uses()
        elif event_type == EventType.MESSAGE_STOP:
            if self.open_tool_uses:
                logger.warning(
                    "Message stopped with %d unfinished tool use(s); discarding",
                    len(self.open_tool_uses),
                )
                self.open_tool_uses.clear()
        elif event_type in (EventType.MESSAGE_START, EventType.CONTENT_BLOCK_STOP):
            logger.debug("Stream event: %s", event_type)

    def _start_block(self, event: Any) -> None:
        index = _field(event, "index", 0)
        block = _field(event, "content_block")
        block_type = _field(block, "type")
        if block_type == "text":
            self.blocks[index] = TextResponse(content="", index=index)
        elif block_type == "tool_use":
            name = _field(block, "name", "")
            logger.debug("Tool use content block started: %s", name)
            self.blocks[index] = ToolUseResponse(
                id=_field(block, "id", ""), name=name, index=index
            )
            if index not in self.open_tool_uses:
                self.open_tool_uses.append(index)

    def _apply_delta(self, event: Any) -> Iterator[TextResponse]:
        index = _field(event, "index", 0)
        delta = _field(event, "delta")
        delta_type = _field(delta, "type")
        current = self.blocks.get(index)
        if delta_type == "text_delta":
            fragment = _field(delta, "text", "")
            if isinstance(current, TextResponse):
                current.content += fragment
            yield TextResponse(content=fragment, index=index)
        elif delta_type == "input_json_delta":
            if isinstance(current, ToolUseResponse):
                current.raw_input += _field(delta, "partial_json", "")
            else:
                logger.warning("JSON delta for block %s without an open tool use", index)

    def _flush_tool_uses(self) -> Iterator[ToolUseResponse]:
        for index in self.open_tool_uses:
            unit = self.blocks.get(index)
            if not isinstance(unit, ToolUseResponse):
                logger.warning("Block %s is no longer a tool use; skipping", index)
                continue
            unit.finalize()
            if unit.decode_error is not None:
                logger.warning("Tool use %s (%s): %s", unit.id, unit.name, unit.decode_error)
            yield unit
        self.open_tool_uses.clear()


class StreamDecoder:
    """Turns one turn's event stream into a lazy sequence of stream units.

    Single pass and not restartable: each call to :meth:`decode` starts
    with fresh per-turn state.
    """

    async def decode(
        self,
        events: AsyncIterable[Any],
        token: CancelToken,
    ) -> AsyncIterator[TextResponse | ToolUseResponse | ErrorResponse]:
        """Yield stream units until the stream ends, fails or is cancelled.

        A cancelled token ends the sequence silently. Any other failure
        while reading *events* yields one :class:`ErrorResponse` and ends
        the sequence.
        """
        state = _TurnState()
        try:
            async with aclosing(cancellable(events, token)) as stream:
                async for event in stream:
                    for unit in state.feed(event):
                        yield unit
        except Exception as exc:
            if token.cancelled:
                logger.info("Stream closed after cancellation: %s", token.reason)
                return
            logger.error("Stream processing error: %r", exc)
            yield ErrorResponse(content=STREAM_ERROR_MESSAGE)
            return
        if token.cancelled:
            logger.info("Stream stopped: %s", token.reason)
