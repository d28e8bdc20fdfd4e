"""
Schedulers for the Blank Wars battle engine.

All pacing (huddle, strategy deadline, round delay, narration delay) goes
through a Scheduler so the engine never sleeps. The caller owns the clock:

- ManualScheduler: a virtual clock advanced explicitly (tests, CLI, replays)
- AsyncioScheduler: real time on an asyncio event loop

Handles can be cancelled; a cancelled callback never runs.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Protocol, runtime_checkable
import asyncio
import heapq
import itertools
import logging

logger = logging.getLogger(__name__)


@runtime_checkable
class ScheduledHandle(Protocol):
    """A pending callback that can be cancelled."""

    def cancel(self) -> None:
        ...


@runtime_checkable
class Scheduler(Protocol):
    """Runs a callback after a delay on the caller's clock."""

    def schedule(self, delay: float, callback: Callable[[], Any]) -> ScheduledHandle:
        ...


@dataclass(order=True)
class _ManualEntry:
    due: float
    seq: int
    callback: Callable[[], Any] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """
    Deterministic scheduler driven by advance().

    Callbacks due at the same time run in scheduling order. Callbacks
    scheduled while advancing run in the same advance() if they fall due
    before its end.
    """

    def __init__(self):
        self._now: float = 0.0
        self._queue: list[_ManualEntry] = []
        self._seq = itertools.count()

    @property
    def now(self) -> float:
        return self._now

    def schedule(self, delay: float, callback: Callable[[], Any]) -> _ManualEntry:
        entry = _ManualEntry(due=self._now + max(0.0, delay), seq=next(self._seq), callback=callback)
        heapq.heappush(self._queue, entry)
        return entry

    def pending_count(self) -> int:
        return sum(1 for e in self._queue if not e.cancelled)

    def next_due(self) -> Optional[float]:
        """Time of the next live callback, if any."""
        self._drop_cancelled()
        return self._queue[0].due if self._queue else None

    def advance(self, seconds: float) -> int:
        """
        Move the clock forward, running everything that falls due.

        Returns:
            Number of callbacks run
        """
        target = self._now + max(0.0, seconds)
        ran = 0
        while True:
            self._drop_cancelled()
            if not self._queue or self._queue[0].due > target:
                break
            entry = heapq.heappop(self._queue)
            self._now = entry.due
            entry.callback()
            ran += 1
        self._now = target
        return ran

    def run_until_idle(self, max_callbacks: int = 10_000) -> int:
        """
        Jump from callback to callback until nothing is pending.

        Raises:
            RuntimeError: If max_callbacks is exceeded (a callback keeps rescheduling itself)
        """
        ran = 0
        while True:
            due = self.next_due()
            if due is None:
                return ran
            ran += self.advance(due - self._now)
            if ran > max_callbacks:
                raise RuntimeError(f"Scheduler still busy after {max_callbacks} callbacks")

    def _drop_cancelled(self) -> None:
        while self._queue and self._queue[0].cancelled:
            heapq.heappop(self._queue)


class AsyncioScheduler:
    """Real-time scheduler on an asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def schedule(self, delay: float, callback: Callable[[], Any]) -> asyncio.TimerHandle:
        return self.loop.call_later(max(0.0, delay), callback)
