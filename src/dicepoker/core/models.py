"""Room snapshot data model.

The server pushes the whole room on every update. These frozen dataclasses
mirror that payload; ``RoomSnapshot.from_payload`` validates the shape
against the bundled JSON Schema and converts camelCase wire fields.
Dice face values are taken as given.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import jsonschema

from dicepoker.core.schemas import snapshot_schema

DICE_COUNT = 5
MAX_ROLLS = 2


class SnapshotError(Exception):
    """Raised when an inbound room payload does not match the snapshot schema."""

    def __init__(self, details: str):
        self.details = details
        super().__init__(f"invalid room snapshot: {details}")


@dataclass(frozen=True)
class Evaluation:
    name: str
    value: float = 0


@dataclass(frozen=True)
class Objective:
    name: str
    id: str = ""
    target: str = ""
    bonus: float = 0
    description: str = ""


@dataclass(frozen=True)
class Action:
    """One entry of the room's trailing action log."""

    id: int
    message: str
    dice: tuple[int, ...] | None = None


@dataclass(frozen=True)
class Player:
    id: str
    name: str
    dice: tuple[int, ...]
    keep: tuple[bool, ...]
    rolls: int
    evaluation: Evaluation | None = None


@dataclass(frozen=True)
class RoomSnapshot:
    """Authoritative room state as of one server push."""

    id: str
    players: tuple[Player, ...]
    current_player: int
    round: int = 1
    scores: tuple[float, ...] = ()
    objective: Objective | None = None
    last_actions: tuple[Action, ...] = ()
    # None when the server omitted it; reset detection is skipped then.
    last_action_id: int | None = None
    winner: str | None = None
    round_winner: str | None = None
    match_winner: str | None = None

    def player(self, index: int | None) -> Player | None:
        """Return the player seated at ``index``, or None."""
        if index is None or not 0 <= index < len(self.players):
            return None
        return self.players[index]

    @property
    def current_player_name(self) -> str | None:
        p = self.player(self.current_player)
        return p.name if p else None

    def score_for(self, index: int) -> float:
        return self.scores[index] if index < len(self.scores) else 0

    @classmethod
    def from_payload(cls, payload: Any) -> RoomSnapshot:
        """Validate and convert a raw ``room`` payload."""
        if not isinstance(payload, dict):
            raise SnapshotError(f"expected an object, got {type(payload).__name__}")
        try:
            jsonschema.validate(payload, snapshot_schema())
        except jsonschema.ValidationError as e:
            path = "/".join(str(p) for p in e.absolute_path) or "<root>"
            raise SnapshotError(f"{path}: {e.message}") from e

        objective = payload.get("objective")
        return cls(
            id=payload["id"],
            players=tuple(_player(p) for p in payload["players"]),
            current_player=payload["currentPlayer"],
            round=payload.get("round", 1),
            scores=tuple(payload.get("scores") or ()),
            objective=_objective(objective) if objective else None,
            last_actions=tuple(_action(a) for a in payload.get("lastActions") or ()),
            last_action_id=payload.get("lastActionId"),
            winner=payload.get("winner"),
            round_winner=payload.get("roundWinner"),
            match_winner=payload.get("matchWinner"),
        )


def _player(raw: dict) -> Player:
    evaluation = raw.get("evaluation")
    return Player(
        id=raw["id"],
        name=raw["name"],
        dice=tuple(raw["dice"]),
        keep=tuple(raw["keep"]),
        rolls=raw["rolls"],
        evaluation=(
            Evaluation(name=evaluation["name"], value=evaluation.get("value", 0))
            if evaluation
            else None
        ),
    )


def _objective(raw: dict) -> Objective:
    return Objective(
        name=raw["name"],
        id=raw.get("id", ""),
        target=raw.get("target", ""),
        bonus=raw.get("bonus", 0),
        description=raw.get("description", ""),
    )


def _action(raw: dict) -> Action:
    dice = raw.get("dice")
    return Action(
        id=raw["id"],
        message=raw["message"],
        dice=tuple(dice) if dice is not None else None,
    )
