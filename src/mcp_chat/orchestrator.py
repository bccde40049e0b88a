"""Multi-turn query loop: model turns, tool dispatch and history bookkeeping."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import aclosing
from enum import StrEnum

from mcp_chat.cancellation import CancelToken, race
from mcp_chat.exceptions import (
    McpChatError,
    OperationCancelledError,
    ToolArgumentsError,
    ToolLoopLimitError,
)
from mcp_chat.models.events import (
    CancelledEvent,
    ErrorCode,
    ErrorEvent,
    TextEvent,
    ToolErrorEvent,
    ToolResultEvent,
    ToolStartEvent,
)
from mcp_chat.models.query import QueryContext, TextMessage, ToolResultMessage, ToolUseMessage
from mcp_chat.models.streaming import TextResponse, ToolUseResponse
from mcp_chat.protocols.provider import ModelProvider
from mcp_chat.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

TOOL_CANCELLED_MESSAGE = "Tool call cancelled"

QueryEvent = (
    TextEvent | ToolStartEvent | ToolResultEvent | ToolErrorEvent | ErrorEvent | CancelledEvent
)


class ToolErrorPolicy(StrEnum):
    """What the loop does after a tool call fails.

    ``STOP`` reports ``tool_error`` and ends the query. ``FEED_BACK`` also
    reports it, then sends the error back to the model as the tool result
    so it can correct itself on the next turn.
    """

    STOP = "stop"
    FEED_BACK = "feed_back"


class _TurnOutcome:
    __slots__ = ("dispatched", "stream_failed", "tool_failed")

    def __init__(self) -> None:
        self.dispatched = 0
        self.tool_failed = False
        self.stream_failed = False


class QueryOrchestrator:
    """Drives one conversation through the model provider and tool registry.

    :meth:`start_query` appends the user's text to the context, then runs
    model turns until a turn ends without tool use. Every tool use found in
    a turn is announced, recorded, dispatched and its result recorded, so
    each ``ToolUseMessage`` in the context is directly followed by its
    ``ToolResultMessage``.

    At most one query is active: starting a new one cancels the previous
    query's token, and that query ends with a ``cancelled`` event. A tool
    call still running at that point is abandoned and answered with an
    ``is_error`` result before the new user message is appended. The
    cancelled query never writes to the context again.
    """

    def __init__(
        self,
        provider: ModelProvider,
        registry: ToolRegistry,
        *,
        context: QueryContext | None = None,
        max_tool_rounds: int = 10,
        tool_error_policy: ToolErrorPolicy = ToolErrorPolicy.STOP,
    ) -> None:
        if max_tool_rounds < 1:
            msg = "max_tool_rounds must be >= 1"
            raise ValueError(msg)
        self._provider = provider
        self._registry = registry
        self._context = context if context is not None else QueryContext()
        self._max_tool_rounds = max_tool_rounds
        self._tool_error_policy = tool_error_policy
        self._active_token: CancelToken | None = None

    @property
    def context(self) -> QueryContext:
        return self._context

    @property
    def is_running(self) -> bool:
        return self._active_token is not None and not self._active_token.cancelled

    def stop_query(self) -> None:
        """Abort the active query without starting another one."""
        if self._active_token is not None:
            logger.info("Stopping active query")
            self._active_token.cancel("stopped")
            self._active_token = None
        self._provider.stop_query()
        self._close_pending_tool_uses()

    def _close_pending_tool_uses(self) -> None:
        # A cancelled query never appends again, so its in-flight calls are
        # answered here before anything else enters the context.
        for tool_use_id in self._context.pending_tool_uses():
            logger.debug("Closing cancelled tool use %s", tool_use_id)
            self._context.append(
                ToolResultMessage(
                    tool_use_id=tool_use_id, content=TOOL_CANCELLED_MESSAGE, is_error=True
                )
            )

    def new_session(self) -> None:
        """Stop any active query and clear the conversation history."""
        self.stop_query()
        self._context.reset()
        logger.info("Started a new session")

    def start_query(self, text: str) -> AsyncIterator[QueryEvent]:
        """Run *text* through the model, dispatching tools until done.

        The previous query, if still active, is cancelled immediately and
        the user message is appended before this returns. The returned
        iterator yields ``text``, ``tool_start``, ``tool_result`` and
        ``tool_error`` events, and ends with an ``error`` or ``cancelled``
        event when the query does not complete normally. Nothing is raised
        for stream, tool or cancellation failures.
        """
        if self._active_token is not None:
            logger.info("Cancelling active query due to new query")
            self._active_token.cancel("superseded")
            self._provider.stop_query()
        self._close_pending_tool_uses()
        token = CancelToken()
        self._active_token = token

        self._context.append(TextMessage(content=text))
        logger.info("Processing query: %s", text)
        return self._run(token)

    async def _run(self, token: CancelToken) -> AsyncIterator[QueryEvent]:
        try:
            round_number = 0
            while True:
                round_number += 1
                outcome = _TurnOutcome()
                self._provider.set_tools(self._registry.all_tools())

                async with aclosing(self._provider.stream_query(self._context, token)) as units:
                    async for unit in units:
                        if token.cancelled:
                            break
                        if isinstance(unit, TextResponse):
                            yield TextEvent(content=unit.content)
                        elif isinstance(unit, ToolUseResponse):
                            yield ToolStartEvent(tool_name=unit.name, args=unit.serialized_args)
                            if token.cancelled:
                                break
                            event = await self._execute_tool(unit, token)
                            if event is None:
                                break
                            outcome.dispatched += 1
                            if isinstance(event, ToolErrorEvent):
                                outcome.tool_failed = True
                            yield event
                        else:
                            outcome.stream_failed = True
                            yield ErrorEvent(content=unit.content, code=ErrorCode.STREAM)

                if token.cancelled:
                    logger.info("Query cancelled (%s)", token.reason)
                    yield CancelledEvent()
                    return
                if not self._should_continue(outcome):
                    return
                if round_number >= self._max_tool_rounds:
                    error = ToolLoopLimitError(self._max_tool_rounds)
                    logger.warning("%s", error)
                    yield ErrorEvent(content=str(error), code=ErrorCode.TOOL_LOOP_LIMIT)
                    return
                logger.debug(
                    "Round %d dispatched %d tool(s); continuing", round_number, outcome.dispatched
                )
        finally:
            if self._active_token is token:
                self._active_token = None

    def _should_continue(self, outcome: _TurnOutcome) -> bool:
        if outcome.stream_failed or outcome.dispatched == 0:
            return False
        if outcome.tool_failed:
            return self._tool_error_policy is ToolErrorPolicy.FEED_BACK
        return True

    async def _execute_tool(
        self, unit: ToolUseResponse, token: CancelToken
    ) -> ToolResultEvent | ToolErrorEvent | None:
        """Record the tool use, dispatch it and record its result.

        Returns ``None`` when *token* is cancelled during the call. The
        context is then left alone: whoever cancelled the query has already
        answered the pending tool use, or cleared the history.
        """
        self._context.append(
            ToolUseMessage(id=unit.id, name=unit.name, input=unit.serialized_args)
        )
        try:
            if unit.decode_error is not None:
                raise ToolArgumentsError(unit.decode_error, tool_name=unit.name)
            result = await race(self._registry.dispatch(unit.name, unit.args or {}), token)
        except OperationCancelledError:
            logger.info("Abandoned tool %s (%s)", unit.name, token.reason)
            return None
        except McpChatError as exc:
            logger.error("Error executing tool %s: %s", unit.name, exc)
            self._context.append(
                ToolResultMessage(tool_use_id=unit.id, content=str(exc), is_error=True)
            )
            return ToolErrorEvent(tool_name=unit.name, error=str(exc))

        self._context.append(ToolResultMessage(tool_use_id=unit.id, content=result))
        return ToolResultEvent(tool_name=unit.name, result=result)
