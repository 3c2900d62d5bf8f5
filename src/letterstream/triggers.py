# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Flush policies evaluated after every successful enqueue.

Each trigger answers a single question, ``should_flush(queue)``, right
after a letter has been added. The interval policy always answers False:
its flushes come from ``IntervalScheduler`` instead of the caller.
"""

from __future__ import annotations

from .letter_queue import LetterQueue
from .models import OnCount, OnCreate, OnInterval, OnSize


class FlushTrigger:
    """Base flush policy."""

    async def should_flush(self, queue: LetterQueue) -> bool:
        raise NotImplementedError

    @staticmethod
    def for_mode(mode: OnCreate | OnCount | OnSize | OnInterval) -> "FlushTrigger":
        """Return the policy matching a flush mode variant."""
        if isinstance(mode, OnCreate):
            return OnCreateTrigger()
        if isinstance(mode, OnCount):
            return CountTrigger(mode.value)
        if isinstance(mode, OnSize):
            return SizeTrigger(mode.value)
        if isinstance(mode, OnInterval):
            return IntervalTrigger()
        raise TypeError(f"Unsupported flush mode: {mode!r}")


class OnCreateTrigger(FlushTrigger):
    async def should_flush(self, queue: LetterQueue) -> bool:
        return True


class CountTrigger(FlushTrigger):
    """Flush when the queue holds ``limit`` letters or more."""

    def __init__(self, limit: int):
        self.limit = limit

    async def should_flush(self, queue: LetterQueue) -> bool:
        return await queue.count() >= self.limit


class SizeTrigger(FlushTrigger):
    """Flush when cumulative attachment size is strictly above ``limit`` bytes."""

    def __init__(self, limit: int):
        self.limit = limit

    async def should_flush(self, queue: LetterQueue) -> bool:
        return await queue.cumulative_file_size() > self.limit


class IntervalTrigger(FlushTrigger):
    async def should_flush(self, queue: LetterQueue) -> bool:
        return False
