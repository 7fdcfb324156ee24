"""
Per-question answer countdown.

A single asyncio task ticks once per interval and fires an expiry callback
at zero. The session owns exactly one live countdown at a time and cancels
it whenever recording stops.

Thread Safety:
    Not thread-safe. Create, start and cancel from the same event loop.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional


__all__ = ["Countdown"]


logger = logging.getLogger(__name__)


SleepFn = Callable[[float], Awaitable[object]]


class Countdown:
    """
    Counts down whole seconds and calls back on every tick and at zero.

    Example:
        >>> countdown = Countdown(120, on_tick=print, on_expire=stop)
        >>> countdown.start()
        >>> ...
        >>> countdown.cancel()
    """

    def __init__(
        self,
        seconds: int,
        on_tick: Callable[[int], None],
        on_expire: Callable[[], None],
        *,
        interval: float = 1.0,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        if seconds <= 0:
            raise ValueError(f"Countdown needs a positive duration, got {seconds}")
        if interval <= 0:
            raise ValueError(f"Countdown interval must be positive, got {interval}")

        self._remaining = seconds
        self._on_tick = on_tick
        self._on_expire = on_expire
        self._interval = interval
        self._sleep = sleep
        self._task: Optional[asyncio.Task[None]] = None
        self._expired = False

    @property
    def remaining(self) -> int:
        return self._remaining

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def expired(self) -> bool:
        return self._expired

    def start(self) -> None:
        """
        Start ticking on the running event loop.

        Raises:
            RuntimeError: If already started, or no event loop is running.
        """
        if self._task is not None or self._expired:
            raise RuntimeError("Countdown already started")
        self._task = asyncio.get_running_loop().create_task(self._run())

    def cancel(self) -> None:
        """Stop ticking. Safe to call repeatedly or after expiry."""
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            logger.debug("Countdown cancelled with %ds remaining", self._remaining)

    async def wait(self) -> None:
        """Wait until the countdown expires or is cancelled."""
        task = self._task
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            if not task.cancelled():
                raise

    async def _run(self) -> None:
        while self._remaining > 0:
            await self._sleep(self._interval)
            self._remaining -= 1
            self._on_tick(self._remaining)

        # Detach first so the expiry callback's cancel() is a no-op.
        self._task = None
        self._expired = True
        logger.debug("Countdown expired")
        self._on_expire()
