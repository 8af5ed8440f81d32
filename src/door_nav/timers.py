# cancellable timer bookkeeping for sessions and requests
# src/door_nav/timers.py
"""
TimerGroup: every wait a navigation request or interaction session makes
goes through one of these, so that ending the session cancels all of
them at once.

Tracked:
- sleep(delay): poll intervals and cooldowns
- run(awaitable, timeout): in-flight world requests (movement)

After cancel_all() the group is closed: new waits raise CancelledError
immediately and no earlier wait will resume normally.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Optional, Set, TypeVar

log = logging.getLogger(__name__)

T = TypeVar("T")


class TimerGroup:
    def __init__(self, name: str = "timers") -> None:
        self.name = name
        self._handles: Set[asyncio.TimerHandle] = set()
        self._futures: Set[asyncio.Future] = set()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        """Number of sleeps and in-flight requests that could still fire."""
        live_handles = sum(1 for h in self._handles if not h.cancelled())
        live_futures = sum(1 for f in self._futures if not f.done())
        return live_handles + live_futures

    # ------------------------------------------------------------------
    # Waits
    # ------------------------------------------------------------------

    async def sleep(self, delay: float) -> None:
        """Cancellable equivalent of asyncio.sleep(delay)."""
        self._check_open()
        loop = asyncio.get_running_loop()
        waiter = loop.create_future()
        handle = loop.call_later(max(delay, 0.0), _resolve, waiter)
        self._handles.add(handle)
        self._futures.add(waiter)
        try:
            await waiter
        finally:
            handle.cancel()
            self._handles.discard(handle)
            self._futures.discard(waiter)

    async def run(self, awaitable: Awaitable[T], timeout: Optional[float]) -> T:
        """
        Await a world request as a tracked task.

        Raises asyncio.TimeoutError when timeout elapses; the underlying
        task is cancelled in that case.
        """
        self._check_open()
        task = asyncio.ensure_future(awaitable)
        self._futures.add(task)
        try:
            return await asyncio.wait_for(task, timeout=timeout)
        finally:
            if not task.done():
                task.cancel()
            self._futures.discard(task)

    # ------------------------------------------------------------------
    # Cancellation
    # ------------------------------------------------------------------

    def cancel_all(self) -> int:
        """Cancel everything pending and close the group. Returns count cancelled."""
        self._closed = True
        cancelled = 0
        for handle in list(self._handles):
            if not handle.cancelled():
                handle.cancel()
                cancelled += 1
        for fut in list(self._futures):
            if not fut.done():
                fut.cancel()
                cancelled += 1
        self._handles.clear()
        self._futures.clear()
        if cancelled:
            log.debug("TimerGroup %s cancelled %d pending wait(s)", self.name, cancelled)
        return cancelled

    def _check_open(self) -> None:
        if self._closed:
            raise asyncio.CancelledError(f"TimerGroup {self.name} is closed")


def _resolve(fut: asyncio.Future) -> None:
    if not fut.done():
        fut.set_result(None)


__all__ = ["TimerGroup"]
