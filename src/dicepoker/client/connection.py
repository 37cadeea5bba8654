"""ConnectionManager — the Socket.IO channel to the game server.

Turns user intents into outbound events and inbound events into typed
callbacks. The channel is opened on demand and never reconnects by itself.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

import socketio
from socketio import exceptions as sio_exceptions

from dicepoker.core.journal import SessionJournal
from dicepoker.core.models import RoomSnapshot, SnapshotError

logger = logging.getLogger(__name__)

# Outbound
EVENT_CREATE_ROOM = "create_room"
EVENT_JOIN_ROOM = "join_room"
EVENT_SET_KEEP = "set_keep"
EVENT_ROLL_DICE = "roll_dice"
EVENT_END_TURN = "end_turn"
EVENT_NEW_GAME = "new_game"

# Inbound
EVENT_ROOM_JOINED = "room_joined"
EVENT_STATE_UPDATE = "state_update"
EVENT_ERROR = "error_message"

DEFAULT_ERROR_MESSAGE = "Ocurrió un error."


class ChannelError(Exception):
    """Raised when the channel cannot be opened."""

    def __init__(self, url: str, details: str = ""):
        self.url = url
        self.details = details
        super().__init__(f"could not connect to {url}: {details}")


def normalize_room_code(code: str) -> str:
    return code.strip().upper()


class ConnectionManager:
    """Owns the duplex channel's lifecycle."""

    def __init__(
        self,
        url: str,
        *,
        on_room_joined: Callable[[str, int, RoomSnapshot], None] | None = None,
        on_state_update: Callable[[RoomSnapshot], None] | None = None,
        on_error: Callable[[str], None] | None = None,
        on_connection_change: Callable[[bool], None] | None = None,
        journal: SessionJournal | None = None,
        client: socketio.AsyncClient | None = None,
    ):
        self._url = url
        self.on_room_joined = on_room_joined
        self.on_state_update = on_state_update
        self.on_error = on_error
        self.on_connection_change = on_connection_change
        self._journal = journal
        self._sio = client or socketio.AsyncClient(reconnection=False)

        self._sio.on("connect", self._handle_connect)
        self._sio.on("disconnect", self._handle_disconnect)
        self._sio.on(EVENT_ROOM_JOINED, self._handle_room_joined)
        self._sio.on(EVENT_STATE_UPDATE, self._handle_state_update)
        self._sio.on(EVENT_ERROR, self._handle_error)

    @property
    def url(self) -> str:
        return self._url

    @property
    def connected(self) -> bool:
        return bool(self._sio.connected)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        if self.connected:
            return
        logger.info("Connecting to %s", self._url)
        try:
            await self._sio.connect(self._url)
        except sio_exceptions.ConnectionError as e:
            raise ChannelError(self._url, str(e)) from e

    async def disconnect(self) -> None:
        if self.connected:
            await self._sio.disconnect()

    # ------------------------------------------------------------------
    # Outbound intents
    # ------------------------------------------------------------------

    async def create_room(self, name: str) -> None:
        await self._emit(EVENT_CREATE_ROOM, {"name": name})

    async def join_room(self, room_id: str, name: str) -> None:
        await self._emit(EVENT_JOIN_ROOM, {"roomId": normalize_room_code(room_id), "name": name})

    async def set_keep(self, keep: list[bool]) -> None:
        await self._emit(EVENT_SET_KEEP, {"keep": list(keep)})

    async def roll_dice(self, reroll: list[bool]) -> None:
        await self._emit(EVENT_ROLL_DICE, {"rerollDice": list(reroll)})

    async def end_turn(self) -> None:
        await self._emit(EVENT_END_TURN)

    async def new_game(self) -> None:
        await self._emit(EVENT_NEW_GAME)

    async def _emit(self, event: str, data: dict | None = None) -> None:
        if not self.connected:
            logger.warning("Dropping %s: channel not connected", event)
            return
        logger.debug("-> %s %s", event, data)
        if data is None:
            await self._sio.emit(event)
        else:
            await self._sio.emit(event, data)

    # ------------------------------------------------------------------
    # Inbound
    # ------------------------------------------------------------------

    def dispatch(self, event: str, payload: Any) -> None:
        """Route one inbound event to its callback.

        Runs to completion without yielding, so snapshots are handled
        strictly in arrival order.
        """
        if event == EVENT_ROOM_JOINED:
            self._room_joined(payload)
        elif event == EVENT_STATE_UPDATE:
            self._state_update(payload)
        elif event == EVENT_ERROR:
            self._error(payload)
        else:
            logger.debug("Ignoring unknown event %s", event)

    async def _handle_connect(self) -> None:
        logger.info("Connected to %s", self._url)
        if self.on_connection_change:
            self.on_connection_change(True)

    async def _handle_disconnect(self, *args) -> None:
        logger.info("Disconnected from %s", self._url)
        if self.on_connection_change:
            self.on_connection_change(False)

    async def _handle_room_joined(self, data: Any) -> None:
        self._record(EVENT_ROOM_JOINED, data)
        self.dispatch(EVENT_ROOM_JOINED, data)

    async def _handle_state_update(self, data: Any) -> None:
        self._record(EVENT_STATE_UPDATE, data)
        self.dispatch(EVENT_STATE_UPDATE, data)

    async def _handle_error(self, data: Any) -> None:
        self._record(EVENT_ERROR, data)
        self.dispatch(EVENT_ERROR, data)

    def _room_joined(self, data: Any) -> None:
        try:
            room_id = data["roomId"]
            player_index = int(data["playerIndex"])
            snapshot = RoomSnapshot.from_payload(data.get("room"))
        except (SnapshotError, KeyError, TypeError, ValueError) as e:
            self._decode_failed(EVENT_ROOM_JOINED, e)
            return
        logger.info("Joined room %s as player %d", room_id, player_index)
        if self.on_room_joined:
            self.on_room_joined(room_id, player_index, snapshot)

    def _state_update(self, data: Any) -> None:
        # Accept both the bare room and {"room": room}.
        if isinstance(data, dict) and "room" in data and "players" not in data:
            data = data["room"]
        try:
            snapshot = RoomSnapshot.from_payload(data)
        except SnapshotError as e:
            self._decode_failed(EVENT_STATE_UPDATE, e)
            return
        if self.on_state_update:
            self.on_state_update(snapshot)

    def _error(self, data: Any) -> None:
        message = data.get("message") if isinstance(data, dict) else None
        message = message or DEFAULT_ERROR_MESSAGE
        logger.warning("Server error: %s", message)
        if self.on_error:
            self.on_error(message)

    def _decode_failed(self, event: str, error: Exception) -> None:
        logger.warning("Malformed %s payload: %s", event, error)
        if self.on_error:
            self.on_error(DEFAULT_ERROR_MESSAGE)

    def _record(self, event: str, data: Any) -> None:
        if self._journal:
            try:
                self._journal.record(event, data)
            except OSError as e:
                logger.warning("Journal write failed: %s", e)
