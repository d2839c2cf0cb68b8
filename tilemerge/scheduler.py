from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
from collections.abc import Callable
from typing import Protocol

logger = logging.getLogger(__name__)

Callback = Callable[[], None]


class Scheduler(Protocol):
    """One-shot deferred execution on the caller's single logical thread."""

    def call_later(self, delay: float, callback: Callback) -> None:  # pragma: no cover
        ...


class AsyncioScheduler:
    """Defers callbacks onto an asyncio event loop.

    Without an explicit loop the running loop is looked up at scheduling
    time, so this must be used from inside a coroutine or loop callback.
    A callback that raises is logged here with its traceback.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def call_later(self, delay: float, callback: Callback) -> None:
        loop = self._loop or asyncio.get_running_loop()
        loop.call_later(delay, self._run, callback)

    @staticmethod
    def _run(callback: Callback) -> None:
        try:
            callback()
        except Exception:
            logger.exception("deferred callback %r failed", callback)


class ManualScheduler:
    """Virtual clock for tests and hosts that drive time themselves.

    Tasks run in (due time, scheduling order), so two tasks with the same
    due time always run first-scheduled first.
    """

    def __init__(self) -> None:
        self.now = 0.0
        self._queue: list[tuple[float, int, Callback]] = []
        self._seq = itertools.count()

    @property
    def pending(self) -> int:
        return len(self._queue)

    def call_later(self, delay: float, callback: Callback) -> None:
        heapq.heappush(self._queue, (self.now + max(delay, 0.0), next(self._seq), callback))

    def advance(self, seconds: float) -> int:
        """Move the clock forward, running every task that comes due. Returns the count run."""

        deadline = self.now + seconds
        ran = 0
        while self._queue and self._queue[0][0] <= deadline:
            due, _, callback = heapq.heappop(self._queue)
            self.now = max(self.now, due)
            callback()
            ran += 1
        self.now = deadline
        return ran

    def run_all(self) -> int:
        """Run tasks until the queue is empty, including ones scheduled along the way."""

        ran = 0
        while self._queue:
            due, _, callback = heapq.heappop(self._queue)
            self.now = max(self.now, due)
            callback()
            ran += 1
        return ran
