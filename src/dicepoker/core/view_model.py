"""Turn view model — which controls the local player may use right now.

Everything here is a pure function of the latest snapshot and the local
seat. Toggling keep only produces the mask to send; the next snapshot is
what actually changes the dice on screen.
"""

from __future__ import annotations

from dataclasses import dataclass

from dicepoker.core.models import DICE_COUNT, MAX_ROLLS, Player, RoomSnapshot

HINT_MATCH_OVER = "Partida finalizada: {winner}"
HINT_FIRST_ROLL = "Tu turno: tira los dados para comenzar."
HINT_REROLL_OR_END = "Puedes terminar turno o seleccionar los dados para volver a tirar."
HINT_END_ONLY = "Puedes terminar turno."
HINT_WAIT = "Turno del rival. Espera tu momento."

LABEL_FIRST_ROLL = "Tirar Dados"
LABEL_REROLL = "Volver a tirar"


@dataclass(frozen=True)
class TurnView:
    is_my_turn: bool
    can_roll: bool
    can_toggle_keep: bool
    can_end_turn: bool
    roll_label: str
    status_hint: str


def derive_turn_view(snapshot: RoomSnapshot | None, local_index: int | None) -> TurnView:
    if snapshot is None or local_index is None:
        return TurnView(False, False, False, False, LABEL_FIRST_ROLL, HINT_WAIT)

    me = snapshot.player(local_index)
    is_my_turn = snapshot.current_player == local_index
    match_over = bool(snapshot.match_winner)
    rolls = me.rolls if me else 0

    if match_over:
        hint = HINT_MATCH_OVER.format(winner=snapshot.match_winner)
    elif not is_my_turn:
        hint = HINT_WAIT
    elif rolls == 0:
        hint = HINT_FIRST_ROLL
    elif rolls < MAX_ROLLS:
        hint = HINT_REROLL_OR_END
    else:
        hint = HINT_END_ONLY

    return TurnView(
        is_my_turn=is_my_turn,
        can_roll=is_my_turn and me is not None and rolls < MAX_ROLLS and not match_over,
        can_toggle_keep=is_my_turn,
        can_end_turn=is_my_turn and not match_over,
        roll_label=LABEL_FIRST_ROLL if rolls == 0 else LABEL_REROLL,
        status_hint=hint,
    )


def reroll_mask(player: Player) -> tuple[bool, ...]:
    """Dice to reroll: all of them on the first roll, else the marked ones."""
    if player.rolls == 0:
        return (True,) * DICE_COUNT
    return tuple(player.keep)


def toggled_keep(player: Player, indices: int | list[int]) -> tuple[bool, ...]:
    """The player's keep mask with the given dice flipped."""
    if isinstance(indices, int):
        indices = [indices]
    keep = list(player.keep)
    for i in indices:
        if not 0 <= i < len(keep):
            raise IndexError(f"die index {i} out of range")
        keep[i] = not keep[i]
    return tuple(keep)


def seat_order(local_index: int | None) -> tuple[int, int]:
    """(top, bottom) seats: the local player sits at the bottom."""
    if local_index == 0:
        return 1, 0
    return 0, 1
