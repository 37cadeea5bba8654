"""Shared test fixtures for dicepoker."""

import pytest

from dicepoker.config import ClientConfig
from dicepoker.core.models import RoomSnapshot
from dicepoker.core.scheduler import ManualScheduler


def player_payload(
    name: str = "Ana",
    dice=(1, 2, 3, 4, 5),
    keep=(False,) * 5,
    rolls: int = 0,
    evaluation=None,
) -> dict:
    return {
        "id": f"sid-{name.lower()}",
        "name": name,
        "dice": list(dice),
        "keep": list(keep),
        "rolls": rolls,
        "evaluation": evaluation,
    }


def room_payload(
    actions=(),
    last_action_id: int | None = 0,
    current_player: int = 0,
    players=None,
    match_winner: str | None = None,
    **extra,
) -> dict:
    """Build a raw ``room`` payload as the server sends it."""
    payload = {
        "id": "ABCD",
        "players": players if players is not None else [
            player_payload("Ana"), player_payload("Beto"),
        ],
        "currentPlayer": current_player,
        "winner": None,
        "roundWinner": None,
        "matchWinner": match_winner,
        "round": 1,
        "scores": [0, 0],
        "objective": {
            "id": "full",
            "name": "Full House",
            "target": "full_house",
            "bonus": 2,
            "description": "Consigue un Full House",
        },
        "lastActions": [dict(a) for a in actions],
    }
    if last_action_id is not None:
        payload["lastActionId"] = last_action_id
    payload.update(extra)
    return payload


@pytest.fixture
def make_room():
    """Factory for raw room payloads."""
    return room_payload


@pytest.fixture
def make_player():
    """Factory for raw player payloads."""
    return player_payload


@pytest.fixture
def make_snapshot():
    """Factory for parsed RoomSnapshot objects."""
    def _make(**kwargs) -> RoomSnapshot:
        return RoomSnapshot.from_payload(room_payload(**kwargs))
    return _make


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def config(tmp_path):
    return ClientConfig(log_file=None, journal_dir=tmp_path / "journal")
