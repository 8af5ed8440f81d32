# tests/test_timers.py
"""
Tests for door_nav.timers.TimerGroup.

Every wait a session makes must be cancellable in one call, and nothing
may fire after cancel_all().
"""

from __future__ import annotations

import asyncio
from typing import List

import pytest

from door_nav.timers import TimerGroup


@pytest.mark.asyncio
async def test_sleep_resolves_and_is_untracked_afterwards() -> None:
    timers = TimerGroup("t")

    await timers.sleep(0.01)

    assert not timers.closed
    assert timers.pending == 0


@pytest.mark.asyncio
async def test_cancel_all_stops_sleepers() -> None:
    timers = TimerGroup("t")
    woke: List[str] = []

    async def poller() -> None:
        await timers.sleep(0.05)
        woke.append("poll")

    sleepers = [asyncio.ensure_future(timers.sleep(10.0)), asyncio.ensure_future(poller())]
    await asyncio.sleep(0)
    # one timer handle and one waiter future per sleep
    assert timers.pending == 4

    assert timers.cancel_all() == 4
    for sleeper in sleepers:
        with pytest.raises(asyncio.CancelledError):
            await sleeper

    await asyncio.sleep(0.1)
    assert woke == []
    assert timers.closed
    assert timers.pending == 0


@pytest.mark.asyncio
async def test_closed_group_refuses_new_waits() -> None:
    timers = TimerGroup("t")
    timers.cancel_all()

    with pytest.raises(asyncio.CancelledError):
        await timers.sleep(0.01)


@pytest.mark.asyncio
async def test_run_times_out_and_cancels_the_task() -> None:
    timers = TimerGroup("t")
    started = asyncio.Event()

    async def slow() -> str:
        started.set()
        await asyncio.sleep(10.0)
        return "never"

    with pytest.raises(asyncio.TimeoutError):
        await timers.run(slow(), timeout=0.05)
    assert started.is_set()
    assert timers.pending == 0

    async def quick() -> str:
        return "done"

    assert await timers.run(quick(), timeout=1.0) == "done"


@pytest.mark.asyncio
async def test_cancel_all_cancels_inflight_request() -> None:
    timers = TimerGroup("t")

    async def forever() -> None:
        await asyncio.Event().wait()

    runner = asyncio.ensure_future(timers.run(forever(), timeout=None))
    await asyncio.sleep(0)
    timers.cancel_all()

    with pytest.raises(asyncio.CancelledError):
        await runner
