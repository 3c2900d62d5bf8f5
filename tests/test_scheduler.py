import asyncio

import pytest

from letterstream.scheduler import IntervalScheduler


async def wait_for(predicate, timeout=2.0):
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.005)


@pytest.mark.asyncio
async def test_scheduler_starts_lazily_and_ticks():
    ticks = []

    async def tick():
        ticks.append(1)

    scheduler = IntervalScheduler(0.01, tick)
    assert not scheduler.running
    scheduler.ensure_started()
    scheduler.ensure_started()
    assert scheduler.running
    try:
        await wait_for(lambda: len(ticks) >= 3)
    finally:
        await scheduler.stop()
    assert not scheduler.running


@pytest.mark.asyncio
async def test_scheduler_survives_failing_tick():
    calls = []

    async def tick():
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("boom")

    scheduler = IntervalScheduler(0.01, tick)
    scheduler.ensure_started()
    try:
        await wait_for(lambda: len(calls) >= 2)
    finally:
        await scheduler.stop()


@pytest.mark.asyncio
async def test_ticks_never_overlap():
    active = 0
    peak = 0
    done = []

    async def tick():
        nonlocal active, peak
        active += 1
        peak = max(peak, active)
        await asyncio.sleep(0.03)
        active -= 1
        done.append(1)

    scheduler = IntervalScheduler(0.005, tick)
    scheduler.ensure_started()
    try:
        await wait_for(lambda: len(done) >= 3)
    finally:
        await scheduler.stop()
    assert peak == 1


@pytest.mark.asyncio
async def test_stop_without_start_is_noop():
    scheduler = IntervalScheduler(1, lambda: asyncio.sleep(0))
    await scheduler.stop()
