"""
Cancellable one-shot timers for the auction protocol.

Each timer owns at most one asyncio task. Starting a timer cancels whatever it
was running before, so a handle never has two live callbacks. The countdown is
driven by re-arming a one-second timer from inside its own callback, which is
why cancel() detaches instead of cancelling when called from the timer's own
task: cancelling the running task would abort the callback halfway through.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

logger = structlog.get_logger()

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable


class AuctionTimer:
    """A cancellable handle around a single delayed callback."""

    def __init__(self) -> None:
        self._active_task: asyncio.Task[None] | None = None

    @property
    def is_active(self) -> bool:
        """True while a callback is scheduled or running."""
        return self._active_task is not None and not self._active_task.done()

    def start(self, seconds: float, on_timeout: Callable[[], Awaitable[None]]) -> None:
        """Schedule on_timeout after the given delay, replacing any pending callback."""
        self.cancel()
        self._active_task = asyncio.create_task(self._run_timer(seconds, on_timeout))

    def cancel(self) -> None:
        """Drop the pending callback, if any."""
        task = self._active_task
        self._active_task = None
        if task is None or task.done():
            return
        if task is asyncio.current_task():
            return
        task.cancel()

    async def _run_timer(self, seconds: float, on_timeout: Callable[[], Awaitable[None]]) -> None:
        try:
            await asyncio.sleep(seconds)
            await on_timeout()
        except asyncio.CancelledError:
            pass
        except (RuntimeError, OSError, ConnectionError, ValueError):  # fmt: skip
            logger.exception("timer callback failed")
