"""Reconciler — turns room snapshots into new announcements exactly once.

The baseline is the highest action id already consumed. A snapshot whose
``lastActionId`` is below the baseline marks a round or match restart: the
baseline drops to the new value and the trailing log is not replayed.
Otherwise every action above the baseline is new, sorted by id, and the
baseline advances to the highest of them. Delivering the same snapshot twice
therefore yields nothing the second time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from dicepoker.config import DEFAULT_TURN_PREFIX
from dicepoker.core.models import Action, RoomSnapshot

logger = logging.getLogger(__name__)


class AnnouncementType(Enum):
    TURN = "turn"
    ROLL = "roll"


@dataclass(frozen=True)
class AnnouncementItem:
    """A server action waiting for its turn on screen."""

    id: int
    message: str
    type: AnnouncementType
    dice: tuple[int, ...] | None = None


@dataclass(frozen=True)
class Reconciliation:
    """Outcome of reconciling one snapshot against the baseline."""

    baseline: int
    reset: bool = False
    items: tuple[AnnouncementItem, ...] = ()


def classify(action: Action, turn_prefix: str = DEFAULT_TURN_PREFIX) -> AnnouncementItem:
    """Turn announcements are recognised by their message prefix; the rest are rolls."""
    if action.message.startswith(turn_prefix):
        return AnnouncementItem(action.id, action.message, AnnouncementType.TURN)
    return AnnouncementItem(action.id, action.message, AnnouncementType.ROLL, action.dice)


def new_actions(baseline: int, actions: Iterable[Action]) -> list[Action]:
    """Actions above the baseline, ascending by id, one per id."""
    fresh: list[Action] = []
    for action in sorted(actions, key=lambda a: a.id):
        if action.id <= baseline:
            continue
        if fresh and fresh[-1].id == action.id:
            continue
        fresh.append(action)
    return fresh


def reconcile(
    baseline: int,
    snapshot: RoomSnapshot,
    turn_prefix: str = DEFAULT_TURN_PREFIX,
) -> Reconciliation:
    """Pure transition: (baseline, snapshot) -> new baseline + announcements."""
    last_id = snapshot.last_action_id
    if last_id is not None and last_id < baseline:
        return Reconciliation(baseline=last_id, reset=True)

    fresh = new_actions(baseline, snapshot.last_actions)
    if not fresh:
        return Reconciliation(baseline=baseline)

    if fresh[0].id > baseline + 1 and baseline > 0:
        # Trailing log did not overlap the previous snapshot.
        logger.warning(
            "Action log gap: baseline %d, oldest new action %d", baseline, fresh[0].id
        )

    return Reconciliation(
        baseline=fresh[-1].id,
        items=tuple(classify(a, turn_prefix) for a in fresh),
    )


class Reconciler:
    """Owns the reconciliation baseline for one joined room."""

    def __init__(self, baseline: int = 0, turn_prefix: str = DEFAULT_TURN_PREFIX):
        self._baseline = baseline
        self._turn_prefix = turn_prefix

    @property
    def baseline(self) -> int:
        return self._baseline

    def rebase(self, last_action_id: int | None) -> None:
        """Start a fresh narrative at ``last_action_id`` (room join, teardown)."""
        self._baseline = last_action_id or 0

    def reconcile(self, snapshot: RoomSnapshot) -> Reconciliation:
        result = reconcile(self._baseline, snapshot, self._turn_prefix)
        if result.reset:
            logger.info(
                "Action log reset in room %s: %d -> %d",
                snapshot.id, self._baseline, result.baseline,
            )
        self._baseline = result.baseline
        return result
