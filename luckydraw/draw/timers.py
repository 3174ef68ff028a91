"""Cancelable timers for spin sessions.

Every ``call_later`` returns a :class:`TimerHandle` that acts as the
cancellation token for that callback. Sessions collect their handles in a
:class:`TimerGroup` and cancel the whole group on reset, on a new session and
on teardown, so a stale callback can never touch a recycled session.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
from typing import Callable, Optional, Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None: ...

    def cancelled(self) -> bool: ...


class Scheduler(Protocol):
    """Anything able to run ``callback`` once after ``delay_ms`` milliseconds."""

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> TimerHandle: ...


class TimerGroup:
    """A set of pending timers owned by one session."""

    def __init__(self, scheduler: Scheduler) -> None:
        self._scheduler = scheduler
        self._handles: list[TimerHandle] = []

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> TimerHandle:
        handle = self._scheduler.call_later(delay_ms, callback)
        self._handles.append(handle)
        return handle

    def cancel_all(self) -> None:
        handles, self._handles = self._handles, []
        for handle in handles:
            handle.cancel()

    def pending(self) -> int:
        return sum(1 for h in self._handles if not h.cancelled())


class _ManualHandle:
    def __init__(self, due: int, callback: Callable[[], None]) -> None:
        self.due = due
        self.callback = callback
        self._cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self._cancelled = True

    def cancelled(self) -> bool:
        return self._cancelled


class ManualScheduler:
    """Virtual-clock scheduler driven explicitly with :meth:`advance`.

    Callbacks run one at a time, in due order (ties in scheduling order), on
    the caller's thread. Useful for tests and for rehearsing an event without
    waiting for real time to pass.
    """

    def __init__(self) -> None:
        self.now = 0
        self._queue: list[tuple[int, int, _ManualHandle]] = []
        self._seq = itertools.count()

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> _ManualHandle:
        handle = _ManualHandle(self.now + max(0, int(delay_ms)), callback)
        heapq.heappush(self._queue, (handle.due, next(self._seq), handle))
        return handle

    def advance(self, ms: int) -> None:
        """Move the clock forward by ``ms`` and fire every timer that fell due."""
        target = self.now + ms
        while self._queue and self._queue[0][0] <= target:
            due, _, handle = heapq.heappop(self._queue)
            self.now = due
            if handle.cancelled():
                continue
            handle.fired = True
            handle.callback()
        self.now = target

    def run_until_idle(self, limit_ms: Optional[int] = None) -> None:
        """Fire pending timers until none are left (or ``limit_ms`` passes)."""
        deadline = None if limit_ms is None else self.now + limit_ms
        while self._queue:
            due = self._queue[0][0]
            if deadline is not None and due > deadline:
                break
            self.advance(due - self.now)

    def pending(self) -> int:
        return sum(1 for _, _, h in self._queue if not h.cancelled())


class AsyncioScheduler:
    """Scheduler backed by an asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop or asyncio.get_running_loop()

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self.loop.call_later(max(0, delay_ms) / 1000.0, callback)


__all__ = [
    "AsyncioScheduler",
    "ManualScheduler",
    "Scheduler",
    "TimerGroup",
    "TimerHandle",
]
