# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Periodic flush task for interval mode.

``IntervalScheduler`` is started lazily on the first enqueue and then
fires ``tick`` every ``interval`` seconds, whether or not letters arrived.
Ticks never overlap: the next sleep starts only after the previous tick
has returned, so a slow flush delays the following tick instead of
skipping it.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable

from .logger import get_logger


class IntervalScheduler:
    """Background loop awaiting ``tick`` on a fixed interval.

    Attributes:
        interval: Seconds between the start of consecutive ticks.
    """

    def __init__(self, interval: float, tick: Callable[[], Awaitable[object]], logger=None):
        self.interval = float(interval)
        self._tick = tick
        self._task: asyncio.Task | None = None
        self.logger = logger or get_logger("IntervalScheduler")

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def ensure_started(self) -> None:
        """Start the loop if it is not already running. Must be called from a coroutine."""
        if self.running:
            return
        self.logger.debug("Starting interval scheduler (every %ss)", self.interval)
        self._task = asyncio.create_task(self._run(), name="letterstream-interval-flush")

    async def _run(self) -> None:
        next_at = time.monotonic() + self.interval
        while True:
            await asyncio.sleep(max(0.0, next_at - time.monotonic()))
            try:
                await self._tick()
            except Exception as exc:
                self.logger.exception("Unhandled error in interval flush: %s", exc)
            # An overrunning tick pushes the schedule back; it never drops a tick.
            next_at = max(next_at + self.interval, time.monotonic())

    async def stop(self) -> None:
        """Cancel the loop and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
