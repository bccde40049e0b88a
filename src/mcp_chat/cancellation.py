"""Per-call cancellation tokens.

Each in-flight provider call gets its own :class:`CancelToken`, so
cancelling a finished (stale) call can never affect a newer one.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterable, AsyncIterator, Awaitable
from typing import Any, TypeVar

from mcp_chat.exceptions import OperationCancelledError

T = TypeVar("T")

_EXHAUSTED: Any = object()


class CancelToken:
    """A one-shot cancellation flag that can also be awaited."""

    __slots__ = ("_event", "_reason")

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str = "cancelled") -> None:
        """Cancel the token. Later calls keep the first reason."""
        if not self._event.is_set():
            self._reason = reason
            self._event.set()

    async def wait(self) -> None:
        await self._event.wait()

    def __repr__(self) -> str:
        state = f"cancelled={self._reason!r}" if self.cancelled else "active"
        return f"CancelToken({state})"


async def _next_item(iterator: AsyncIterator[T]) -> T:
    try:
        return await anext(iterator)
    except StopAsyncIteration:
        return _EXHAUSTED


async def cancellable(source: AsyncIterable[T], token: CancelToken) -> AsyncIterator[T]:
    """Iterate *source* until it is exhausted or *token* is cancelled.

    Every wait for the next item is raced against the token, so a cancel
    interrupts a pending read instead of waiting for the next item to
    arrive. Errors raised by *source* propagate unless the token was
    cancelled first.
    """
    if token.cancelled:
        return
    iterator = aiter(source)
    cancel_wait = asyncio.ensure_future(token.wait())
    try:
        while not token.cancelled:
            step = asyncio.ensure_future(_next_item(iterator))
            await asyncio.wait({step, cancel_wait}, return_when=asyncio.FIRST_COMPLETED)
            if not step.done():
                step.cancel()
                await asyncio.gather(step, return_exceptions=True)
                return
            item = step.result()
            if item is _EXHAUSTED:
                return
            yield item
    finally:
        cancel_wait.cancel()


async def race(awaitable: Awaitable[T], token: CancelToken) -> T:
    """Await *awaitable* unless *token* is cancelled first.

    When the token wins, the pending operation is cancelled and
    :class:`OperationCancelledError` is raised. A result that arrives after
    the token was cancelled is discarded the same way.

    Raises:
        OperationCancelledError: If *token* is, or becomes, cancelled.
    """
    operation = asyncio.ensure_future(awaitable)
    if token.cancelled:
        operation.cancel()
        await asyncio.gather(operation, return_exceptions=True)
        raise OperationCancelledError(token.reason)
    cancel_wait = asyncio.ensure_future(token.wait())
    try:
        await asyncio.wait({operation, cancel_wait}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        cancel_wait.cancel()
        if not operation.done():
            operation.cancel()
    if token.cancelled:
        await asyncio.gather(operation, return_exceptions=True)
        raise OperationCancelledError(token.reason)
    return operation.result()
