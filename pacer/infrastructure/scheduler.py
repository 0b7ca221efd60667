"""Deferred-callback facilities that drive debounce timers.

All schedulers measure time in milliseconds. A debounce controller only
needs three things from them: the current time, a fire-once timer and a
way to cancel that timer.
"""

import asyncio
import heapq
import itertools
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol

from pacer.logging_config import get_logger

logger = get_logger(__name__)


class Scheduler(Protocol):
    """Interface every timer facility must provide."""

    def now(self) -> float:
        """Return the current time in milliseconds."""
        ...

    def schedule(self, delay_ms: float, callback: Callable[[], None]) -> Any:
        """Run `callback` once after `delay_ms` and return a cancel handle."""
        ...

    def unschedule(self, handle: Any) -> None:
        """Cancel a handle returned by `schedule`. Unknown or fired handles are ignored."""
        ...


class ThreadingScheduler:
    """Run callbacks on daemon `threading.Timer` threads."""

    def now(self) -> float:
        return time.monotonic() * 1000.0

    def schedule(self, delay_ms: float, callback: Callable[[], None]) -> threading.Timer:
        timer = threading.Timer(max(delay_ms, 0.0) / 1000.0, callback)
        timer.daemon = True
        timer.start()
        return timer

    def unschedule(self, handle: threading.Timer) -> None:
        handle.cancel()


class AsyncioScheduler:
    """Run callbacks through an event loop's `call_later`.

    When no loop is given, the loop running at scheduling time is used, so
    the scheduler must be driven from inside that loop.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        return self._loop or asyncio.get_running_loop()

    def now(self) -> float:
        return self._get_loop().time() * 1000.0

    def schedule(
        self, delay_ms: float, callback: Callable[[], None]
    ) -> asyncio.TimerHandle:
        return self._get_loop().call_later(max(delay_ms, 0.0) / 1000.0, callback)

    def unschedule(self, handle: asyncio.TimerHandle) -> None:
        handle.cancel()


@dataclass(order=True)
class _VirtualTimer:
    due: float
    seq: int
    callback: Callable[[], None] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)


class VirtualScheduler:
    """A manually advanced clock for deterministic timing.

    Nothing fires on its own: `advance()` moves the clock forward and runs
    every timer that comes due on the way, in due-time order, with `now()`
    reporting each timer's due time while its callback runs.
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now = float(start)
        self._queue: list[_VirtualTimer] = []
        self._counter = itertools.count()

    def now(self) -> float:
        return self._now

    def schedule(self, delay_ms: float, callback: Callable[[], None]) -> _VirtualTimer:
        timer = _VirtualTimer(
            due=self._now + max(delay_ms, 0.0),
            seq=next(self._counter),
            callback=callback,
        )
        heapq.heappush(self._queue, timer)
        return timer

    def unschedule(self, handle: _VirtualTimer) -> None:
        handle.cancelled = True

    @property
    def pending_timers(self) -> int:
        """Return the number of timers that have not fired or been cancelled."""
        return sum(1 for timer in self._queue if not timer.cancelled)

    def advance(self, ms: float) -> int:
        """Move the clock forward by `ms`, firing due timers. Return how many fired."""
        if ms < 0:
            raise ValueError(f"Cannot move the clock backwards: {ms}")
        target = self._now + ms
        fired = 0
        while self._queue and self._queue[0].due <= target:
            timer = heapq.heappop(self._queue)
            if timer.cancelled:
                continue
            self._now = max(self._now, timer.due)
            timer.callback()
            fired += 1
        self._now = target
        return fired

    def run_all(self, limit: int = 10_000) -> int:
        """Fire timers until the queue is empty. Return how many fired."""
        fired = 0
        while fired < limit:
            live = [timer for timer in self._queue if not timer.cancelled]
            if not live:
                return fired
            fired += self.advance(max(min(live).due - self._now, 0.0))
        logger.warning("Virtual scheduler stopped after %d timers", limit)
        return fired

    def set_time(self, value: float) -> None:
        """Jump the clock to an absolute time without firing anything.

        Moving backwards is allowed so callers can simulate a skewed clock.
        """
        self._now = float(value)
