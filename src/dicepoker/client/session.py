"""GameSession — one player's view of one room.

Wires the connection callbacks to the reconciler and the presentation
sequencer, keeps the latest snapshot for the view model, and validates
lobby input before anything goes on the wire.
"""

from __future__ import annotations

import logging
from typing import Callable

from dicepoker.client.connection import ChannelError, ConnectionManager
from dicepoker.config import ClientConfig
from dicepoker.core.journal import SessionJournal
from dicepoker.core.models import Player, RoomSnapshot
from dicepoker.core.reconciler import Reconciler
from dicepoker.core.scheduler import Scheduler
from dicepoker.core.sequencer import Overlay, PresentationSequencer
from dicepoker.core.view_model import TurnView, derive_turn_view, reroll_mask, toggled_keep

logger = logging.getLogger(__name__)

MSG_NAME_REQUIRED = "Ingresa tu nombre."
MSG_NAME_AND_CODE_REQUIRED = "Ingresa nombre y código de sala."


class GameSession:
    """Room state, announcement pipeline and user intents for one client."""

    def __init__(
        self,
        config: ClientConfig,
        scheduler: Scheduler,
        connection: ConnectionManager | None = None,
        journal: SessionJournal | None = None,
        on_change: Callable[[], None] | None = None,
    ):
        self.on_change = on_change
        self.reconciler = Reconciler(turn_prefix=config.turn_prefix)
        self.sequencer = PresentationSequencer(
            scheduler, config.presentation, on_change=self._overlay_changed,
        )
        self.connection = connection or ConnectionManager(config.socket_url, journal=journal)
        self.connection.on_room_joined = self.handle_room_joined
        self.connection.on_state_update = self.handle_state_update
        self.connection.on_error = self.handle_error
        self.connection.on_connection_change = self.handle_connection_change

        self.room_id: str | None = None
        self.player_index: int | None = None
        self.snapshot: RoomSnapshot | None = None
        self.error_message = ""
        self.loading = False
        self.connected = False
        # Fed from a journal rather than a live channel.
        self.replaying = False

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    @property
    def view(self) -> TurnView:
        return derive_turn_view(self.snapshot, self.player_index)

    @property
    def my_player(self) -> Player | None:
        if self.snapshot is None:
            return None
        return self.snapshot.player(self.player_index)

    @property
    def overlay(self) -> Overlay | None:
        return self.sequencer.overlay

    @property
    def in_room(self) -> bool:
        return self.room_id is not None

    # ------------------------------------------------------------------
    # User intents
    # ------------------------------------------------------------------

    async def create_room(self, name: str) -> None:
        name = name.strip()
        if not name:
            self._set_error(MSG_NAME_REQUIRED)
            return
        if await self._ensure_connected():
            await self.connection.create_room(name)

    async def join_room(self, room_code: str, name: str) -> None:
        name, room_code = name.strip(), room_code.strip()
        if not name or not room_code:
            self._set_error(MSG_NAME_AND_CODE_REQUIRED)
            return
        if await self._ensure_connected():
            await self.connection.join_room(room_code, name)

    async def toggle_keep(self, indices: int | list[int]) -> None:
        me = self.my_player
        if not self.view.can_toggle_keep or me is None:
            return
        try:
            keep = toggled_keep(me, indices)
        except IndexError as e:
            logger.debug("Ignoring keep toggle: %s", e)
            return
        await self.connection.set_keep(list(keep))

    async def roll(self) -> None:
        me = self.my_player
        if not self.view.can_roll or me is None:
            return
        await self.connection.roll_dice(list(reroll_mask(me)))

    async def end_turn(self) -> None:
        if not self.view.can_end_turn:
            return
        await self.connection.end_turn()

    async def new_game(self) -> None:
        await self.connection.new_game()

    async def close(self) -> None:
        await self.connection.disconnect()
        self._teardown()

    async def _ensure_connected(self) -> bool:
        self.loading = True
        self._changed()
        try:
            await self.connection.connect()
        except ChannelError as e:
            logger.warning("%s", e)
            self._set_error(f"No se pudo conectar: {e.details or e.url}")
            return False
        return True

    # ------------------------------------------------------------------
    # Inbound events
    # ------------------------------------------------------------------

    def handle_room_joined(self, room_id: str, player_index: int, snapshot: RoomSnapshot) -> None:
        self.room_id = room_id
        self.player_index = player_index
        self.snapshot = snapshot
        self.error_message = ""
        self.loading = False
        # A join always starts a fresh narrative.
        self.reconciler.rebase(snapshot.last_action_id)
        self.sequencer.cancel()
        self._changed()

    def handle_state_update(self, snapshot: RoomSnapshot) -> None:
        if not self.in_room:
            logger.debug("State update for room %s before join, ignored", snapshot.id)
            return
        self.snapshot = snapshot
        result = self.reconciler.reconcile(snapshot)
        if result.reset:
            self.sequencer.cancel()
        if result.items:
            self.sequencer.enqueue(result.items)
        self._changed()

    def handle_error(self, message: str) -> None:
        self._set_error(message)

    def handle_connection_change(self, connected: bool) -> None:
        self.connected = connected
        if not connected:
            self._teardown()
        self._changed()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _teardown(self) -> None:
        self.sequencer.cancel()
        self.reconciler.rebase(0)

    def _set_error(self, message: str) -> None:
        self.error_message = message
        self.loading = False
        self._changed()

    def _overlay_changed(self, overlay: Overlay | None) -> None:
        self._changed()

    def _changed(self) -> None:
        if self.on_change:
            self.on_change()
