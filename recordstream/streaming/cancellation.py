"""Cooperative cancellation token for streaming loops.

The token wraps an :class:`asyncio.Event`. Loops check
:attr:`CancellationToken.cancelled` between steps, and every suspension
point (pace delay, async pull, sink flush) goes through :meth:`sleep` or
:meth:`race` so it wakes as soon as the token fires instead of running to
completion.
"""

from __future__ import annotations

import asyncio
from contextlib import suppress
from typing import TYPE_CHECKING, TypeVar

from recordstream.exceptions import StreamCancelledError

if TYPE_CHECKING:
    from collections.abc import Awaitable

T = TypeVar("T")


class CancellationToken:
    """One-shot, push-based cancellation signal."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        # Resolved when the token fires; created lazily inside the running loop
        self._fired: asyncio.Future[None] | None = None
        self.reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "cancelled by consumer") -> None:
        """Trigger the token. Idempotent; the first reason wins."""
        if not self._event.is_set():
            self.reason = reason
            self._event.set()
            if self._fired is not None and not self._fired.done():
                self._fired.set_result(None)

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise StreamCancelledError(self.reason or "cancelled")

    async def wait(self) -> None:
        await self._event.wait()

    async def sleep(self, delay: float) -> bool:
        """Sleep for ``delay`` seconds, waking early on cancellation.

        Returns:
            True if the token fired before the delay elapsed.
        """
        if delay <= 0:
            return self.cancelled
        try:
            await asyncio.wait_for(self._event.wait(), timeout=delay)
        except TimeoutError:
            return False
        return True

    async def race(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` unless the token fires first.

        The losing awaitable is cancelled.

        Raises:
            StreamCancelledError: The token fired before the awaitable finished.
        """
        self.raise_if_cancelled()
        work = asyncio.ensure_future(awaitable)
        try:
            await asyncio.wait({work, self._fired_future()}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            work.cancel()
            raise

        if work.done():
            return work.result()

        work.cancel()
        with suppress(asyncio.CancelledError, Exception):
            await work
        raise StreamCancelledError(self.reason or "cancelled")

    def _fired_future(self) -> asyncio.Future[None]:
        if self._fired is None:
            self._fired = asyncio.get_running_loop().create_future()
            if self._event.is_set():
                self._fired.set_result(None)
        return self._fired
