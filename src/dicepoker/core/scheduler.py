"""Scheduler — one-shot timers for the presentation sequencer.

Provides ABC and concrete implementations:
- AsyncioScheduler: event-loop timers for the live client
- ManualScheduler: deterministic virtual clock, for testing
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
from abc import ABC, abstractmethod
from typing import Callable, Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(ABC):
    """Abstract base for timer sources."""

    @abstractmethod
    def call_later(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle:
        """Run ``callback`` once after ``delay_s`` seconds."""


class AsyncioScheduler(Scheduler):
    """Timers on an asyncio event loop.

    Callbacks run on the loop thread, so they never interleave with
    inbound channel handlers.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay_s, callback)


def _tick(t: float) -> float:
    # Microsecond grid so millisecond sums compare exactly.
    return round(t, 6)


class _ManualTimer:
    def __init__(self, due: float, callback: Callable[[], None]):
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler(Scheduler):
    """Deterministic scheduler driven by ``advance()``.

    Timers due at the same instant fire in the order they were scheduled.
    Callbacks may schedule further timers; those fire within the same
    ``advance()`` call if they fall due before its end.
    """

    def __init__(self) -> None:
        self._now = 0.0
        self._seq = itertools.count()
        self._heap: list[tuple[float, int, _ManualTimer]] = []

    @property
    def now(self) -> float:
        return self._now

    @property
    def pending(self) -> int:
        return sum(1 for _, _, t in self._heap if not t.cancelled)

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle:
        timer = _ManualTimer(_tick(self._now + max(0.0, delay_s)), callback)
        heapq.heappush(self._heap, (timer.due, next(self._seq), timer))
        return timer

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing every timer that falls due."""
        target = _tick(self._now + seconds)
        while self._heap and self._heap[0][0] <= target:
            due, _, timer = heapq.heappop(self._heap)
            self._now = due
            if not timer.cancelled:
                timer.callback()
        self._now = target

    def advance_ms(self, ms: float) -> None:
        self.advance(ms / 1000)
