import asyncio

import pytest

from status_checker.core.work_tracker import WorkTracker


@pytest.mark.asyncio
async def test_wait_returns_when_count_reaches_zero():
    tracker = WorkTracker()
    tracker.add(2)
    waiter = asyncio.create_task(tracker.wait())

    tracker.done()
    await asyncio.sleep(0)
    assert not waiter.done()
    assert tracker.count == 1

    tracker.done()
    await asyncio.wait_for(waiter, timeout=0.5)
    assert tracker.drained


@pytest.mark.asyncio
async def test_starts_drained():
    tracker = WorkTracker()
    await asyncio.wait_for(tracker.wait(), timeout=0.1)


@pytest.mark.asyncio
async def test_add_after_drain_blocks_wait_again():
    tracker = WorkTracker()
    tracker.add()
    tracker.done()
    tracker.add()

    waiter = asyncio.create_task(tracker.wait())
    await asyncio.sleep(0.01)
    assert not waiter.done()

    tracker.done()
    await asyncio.wait_for(waiter, timeout=0.5)


def test_rejects_underflow_and_bad_add():
    tracker = WorkTracker()
    with pytest.raises(RuntimeError):
        tracker.done()
    with pytest.raises(ValueError):
        tracker.add(0)
