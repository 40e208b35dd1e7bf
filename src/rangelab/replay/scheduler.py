"""Delayed-callback primitives used to pace the timeline.

The timeline only needs ``schedule(callback, delay_ms) -> handle`` with a
``handle.cancel()``.  :class:`ManualScheduler` keeps a fake clock so tests and
instant replays can step time explicitly; the threading and asyncio variants
wrap real timers.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

__all__ = [
    "AsyncioScheduler",
    "Cancellable",
    "ManualScheduler",
    "Scheduler",
    "ThreadingScheduler",
]


class Cancellable(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def schedule(self, callback: Callable[[], None], delay_ms: float) -> Cancellable: ...


@dataclass(order=True)
class _ManualHandle:
    due: float
    seq: int
    callback: Callable[[], None] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Fake-clock scheduler; nothing runs until :meth:`advance` or :meth:`run_all`."""

    def __init__(self) -> None:
        self.now = 0.0
        self._queue: list[_ManualHandle] = []
        self._seq = itertools.count()

    def schedule(self, callback: Callable[[], None], delay_ms: float) -> _ManualHandle:
        handle = _ManualHandle(due=self.now + max(0.0, float(delay_ms)), seq=next(self._seq), callback=callback)
        heapq.heappush(self._queue, handle)
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for handle in self._queue if not handle.cancelled)

    def next_due(self) -> float | None:
        self._drop_cancelled()
        return self._queue[0].due if self._queue else None

    def _drop_cancelled(self) -> None:
        while self._queue and self._queue[0].cancelled:
            heapq.heappop(self._queue)

    def _run_next(self, until: float | None) -> bool:
        self._drop_cancelled()
        if not self._queue:
            return False
        if until is not None and self._queue[0].due > until:
            return False
        handle = heapq.heappop(self._queue)
        self.now = max(self.now, handle.due)
        handle.callback()
        return True

    def advance(self, delay_ms: float) -> int:
        """Move the clock forward, firing every callback that falls due."""

        target = self.now + float(delay_ms)
        fired = 0
        while self._run_next(target):
            fired += 1
        self.now = target
        return fired

    def run_all(self, limit: int = 10_000) -> int:
        fired = 0
        while self._run_next(None):
            fired += 1
            if fired >= limit:
                raise RuntimeError(f"scheduler did not drain after {limit} callbacks")
        return fired


class ThreadingScheduler:
    """Runs callbacks on ``threading.Timer`` threads."""

    def __init__(self, *, speed: float = 1.0) -> None:
        if speed <= 0:
            raise ValueError("speed must be positive")
        self.speed = speed

    def schedule(self, callback: Callable[[], None], delay_ms: float) -> threading.Timer:
        timer = threading.Timer(max(0.0, delay_ms) / 1000.0 / self.speed, callback)
        timer.daemon = True
        timer.start()
        return timer


class AsyncioScheduler:
    """Schedules callbacks on an event loop via ``call_later``."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def schedule(self, callback: Callable[[], None], delay_ms: float) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(max(0.0, delay_ms) / 1000.0, callback)
