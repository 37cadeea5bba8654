"""PresentationSequencer — shows queued announcements one at a time.

Roll items play a generic rolling overlay, then an announcement carrying the
message and dice. Turn items play a single announcement. The head of the
queue is only removed once its presentation finishes, and the next item
starts right away.

Every timer captures the epoch it was scheduled under. ``cancel()`` bumps
the epoch, so a timer that still fires afterwards does nothing.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable

from dicepoker.config import PresentationConfig
from dicepoker.core.reconciler import AnnouncementItem, AnnouncementType
from dicepoker.core.scheduler import Scheduler, TimerHandle

logger = logging.getLogger(__name__)


class Phase(Enum):
    IDLE = "idle"
    ROLL_ANIMATING = "roll_animating"
    ROLL_ANNOUNCING = "roll_announcing"
    TURN_ANNOUNCING = "turn_announcing"


class OverlayKind(Enum):
    ROLLING = "rolling"
    ANNOUNCEMENT = "announcement"


@dataclass(frozen=True)
class Overlay:
    kind: OverlayKind
    item_id: int
    message: str | None = None
    dice: tuple[int, ...] | None = None


class PresentationSequencer:
    """Timed state machine draining the announcement queue."""

    def __init__(
        self,
        scheduler: Scheduler,
        timings: PresentationConfig | None = None,
        on_change: Callable[[Overlay | None], None] | None = None,
    ):
        self._scheduler = scheduler
        self._timings = timings or PresentationConfig()
        self._on_change = on_change
        self._queue: deque[AnnouncementItem] = deque()
        self._phase = Phase.IDLE
        self._epoch = 0
        self._overlay: Overlay | None = None
        self._timer: TimerHandle | None = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def overlay(self) -> Overlay | None:
        return self._overlay

    @property
    def in_flight(self) -> AnnouncementItem | None:
        if self._phase is Phase.IDLE or not self._queue:
            return None
        return self._queue[0]

    @property
    def queued(self) -> list[AnnouncementItem]:
        """Every item not yet finished, the in-flight one first."""
        return list(self._queue)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def enqueue(self, items: Iterable[AnnouncementItem]) -> None:
        """Append items and start presenting if idle."""
        self._queue.extend(items)
        self._advance()

    def cancel(self) -> None:
        """Drop everything queued or showing and invalidate pending timers."""
        self._epoch += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        dropped = len(self._queue)
        self._queue.clear()
        self._phase = Phase.IDLE
        self._show(None)
        if dropped:
            logger.info("Presentation reset (epoch %d), dropped %d items", self._epoch, dropped)

    def _advance(self) -> None:
        if self._phase is not Phase.IDLE or not self._queue:
            return
        head = self._queue[0]
        if head.type is AnnouncementType.ROLL:
            self._phase = Phase.ROLL_ANIMATING
            self._show(Overlay(OverlayKind.ROLLING, head.id))
            self._schedule(self._timings.roll_animation_ms, self._reveal_roll)
        else:
            self._phase = Phase.TURN_ANNOUNCING
            self._show(Overlay(OverlayKind.ANNOUNCEMENT, head.id, head.message))
            self._schedule(self._timings.turn_announcement_ms, self._finish)

    def _reveal_roll(self) -> None:
        head = self._queue[0]
        self._phase = Phase.ROLL_ANNOUNCING
        self._show(Overlay(OverlayKind.ANNOUNCEMENT, head.id, head.message, head.dice))
        self._schedule(self._timings.roll_announcement_ms, self._finish)

    def _finish(self) -> None:
        self._show(None)
        self._queue.popleft()
        self._phase = Phase.IDLE
        self._advance()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _schedule(self, delay_ms: int, step: Callable[[], None]) -> None:
        epoch = self._epoch
        self._timer = self._scheduler.call_later(
            delay_ms / 1000, lambda: self._fire(epoch, step)
        )

    def _fire(self, epoch: int, step: Callable[[], None]) -> None:
        if epoch != self._epoch:
            logger.debug("Ignoring timer from stale epoch %d (now %d)", epoch, self._epoch)
            return
        self._timer = None
        step()

    def _show(self, overlay: Overlay | None) -> None:
        if overlay == self._overlay:
            return
        self._overlay = overlay
        if self._on_change:
            self._on_change(overlay)
