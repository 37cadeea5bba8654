"""Tests for the rich renderables."""

from unittest.mock import MagicMock

import pytest
from rich.console import Console

from dicepoker.client.connection import EVENT_ROOM_JOINED, EVENT_STATE_UPDATE, ConnectionManager
from dicepoker.client.session import GameSession
from dicepoker.core.sequencer import Overlay, OverlayKind
from dicepoker.core.view_model import derive_turn_view
from dicepoker.ui.render import (
    build_controls,
    build_overlay,
    format_dice,
    format_die,
    render,
)

from conftest import player_payload, room_payload


def _text(renderable) -> str:
    console = Console(record=True, width=120, color_system=None)
    console.print(renderable)
    return console.export_text()


@pytest.fixture
def session(config, scheduler):
    sio = MagicMock()
    sio.connected = False
    return GameSession(config, scheduler, connection=ConnectionManager("http://x", client=sio))


def _join(session, **room):
    session.connection.dispatch(EVENT_ROOM_JOINED, {
        "roomId": "ABCD", "playerIndex": 0, "room": room_payload(**room),
    })


class TestDice:
    def test_format_die(self):
        assert format_die(5) == "⚄ 5"
        assert format_die(9) == "? 9"

    def test_kept_dice_boxed_only_when_highlighted(self):
        keep = (True, False, False, False, False)
        assert format_dice((2, 3, 4, 5, 6), keep, highlight=True).plain.startswith("[⚁ 2]")
        assert "[" not in format_dice((2, 3, 4, 5, 6), keep).plain


class TestOverlay:
    def test_none_when_idle(self):
        assert build_overlay(None) is None

    def test_rolling(self):
        assert "RODANDO LOS DADOS" in _text(build_overlay(Overlay(OverlayKind.ROLLING, 7)))

    def test_announcement_with_dice(self):
        out = _text(build_overlay(Overlay(
            OverlayKind.ANNOUNCEMENT, 7, "Ana obtuvo Full House", (3, 3, 3, 5, 5),
        )))
        assert "Ana obtuvo Full House" in out
        assert "⚂ 3" in out


class TestControls:
    def test_shows_hint_and_error(self, make_snapshot):
        view = derive_turn_view(make_snapshot(), 0)
        out = _text(build_controls(view, "Sala llena"))
        assert view.status_hint in out
        assert "Tirar Dados" in out
        assert "Sala llena" in out


class TestRender:
    def test_lobby_before_join(self, session):
        session.error_message = "Ingresa tu nombre."
        out = _text(render(session))
        assert "Póker de Dados" in out
        assert "Ingresa tu nombre." in out

    def test_room_screen(self, session):
        _join(session, players=[
            player_payload("Ana", dice=(6, 6, 6, 6, 2), evaluation={"name": "Cuatro iguales", "value": 6}),
            player_payload("Beto"),
        ], scores=[2, 1])
        out = _text(render(session))
        assert "ABCD" in out
        assert "Ana (Tú)" in out
        assert "Cuatro iguales" in out
        assert "Full House" in out
        assert "2 - 1" in out

    def test_local_player_rendered_last(self, session):
        _join(session)
        out = _text(render(session))
        assert out.rindex("Beto") < out.index("Ana (Tú)")

    def test_overlay_included_while_presenting(self, session):
        _join(session, last_action_id=0)
        session.connection.dispatch(EVENT_STATE_UPDATE, room_payload(
            actions=[{"id": 1, "message": "Turno de Beto"}], last_action_id=1,
        ))
        assert "Turno de Beto" in _text(render(session))

    def test_connection_status(self, session):
        _join(session)
        assert "Desconectado" in _text(render(session))
        session.connected = True
        out = _text(render(session))
        assert "Conectado" in out
        assert "Desconectado" not in out

    def test_replay_marker_replaces_connection_status(self, session):
        session.replaying = True
        _join(session)
        out = _text(render(session))
        assert "Repetición" in out
        assert "Desconectado" not in out

    def test_info_panel(self, session):
        _join(session)
        assert "Jerarquía de combinaciones" in _text(render(session, show_info=True))
