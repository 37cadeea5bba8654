"""Rich rendering for the terminal client.

Every ``build_*`` function is a pure function of the session state and
returns a renderable; ``render()`` assembles the full screen.
"""

from __future__ import annotations

from rich.align import Align
from rich.console import Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from dicepoker.client.session import GameSession
from dicepoker.core.models import MAX_ROLLS, RoomSnapshot
from dicepoker.core.sequencer import Overlay, OverlayKind
from dicepoker.core.view_model import TurnView, seat_order

# Unicode die faces, index 0 is face 1
DIE_FACES = ["⚀", "⚁", "⚂", "⚃", "⚄", "⚅"]

PLAYER_COLORS = ["cyan", "magenta"]

ROLLING_FACES = (1, 3, 5)

COMBINATIONS = [
    ("Cinco iguales", "4 4 4 4 4"),
    ("Cuatro iguales", "6 6 6 6 2"),
    ("Full House", "3 3 3 5 5"),
    ("Trío", "2 2 2 5 6"),
    ("Doble par", "1 1 4 4 6"),
    ("Un par", "5 5 2 3 6"),
    ("Carta alta", "1 3 4 5 6"),
]

COMMAND_HELP = "r tirar | k 1 3 marcar dados | e terminar turno | n nueva partida | i combinaciones | q salir"


def format_die(value: int) -> str:
    if 1 <= value <= 6:
        return f"{DIE_FACES[value - 1]} {value}"
    return f"? {value}"


def format_dice(
    dice: tuple[int, ...],
    keep: tuple[bool, ...] | None = None,
    highlight: bool = False,
) -> Text:
    """Dice row; marked dice are boxed when ``highlight`` is set."""
    text = Text()
    for i, value in enumerate(dice):
        if i > 0:
            text.append("  ")
        kept = bool(keep and keep[i])
        if kept and highlight:
            text.append(f"[{format_die(value)}]", style="bold black on yellow")
        else:
            text.append(f" {format_die(value)} ", style="bold white")
    return text


def build_lobby(session: GameSession) -> Panel:
    """Room entry screen, shown until the server confirms a join."""
    lines = [
        Text("Póker de Dados", style="bold yellow"),
        Text("Reúne a tu rival, lanza los dados y conquista la mesa.", style="dim"),
        Text(""),
        Text("1) Crea una sala o únete con un código. Cada jugador tiene 2 tiradas por turno."),
        Text("2) Tras tu primera tirada, selecciona los dados que quieres volver a tirar."),
        Text("3) La ronda tiene un objetivo que otorga bonus."),
        Text("4) El ganador de la ronda suma 1 punto. Gana el primero en llegar a 3 puntos."),
        Text(""),
        Text("c <nombre> crear sala | j <código> <nombre> unirse | q salir", style="dim"),
    ]
    if session.loading:
        lines.append(Text("Preparando partida...", style="bold yellow"))
    if session.error_message:
        lines.append(Text(session.error_message, style="bold red"))
    return Panel(Group(*lines), border_style="yellow", padding=(1, 2))


def build_header(session: GameSession) -> Panel:
    """Room code, connection, turn, round, objective and score line."""
    snap = session.snapshot
    title = Text()
    title.append("SALA  ", style="dim")
    title.append(session.room_id or "-", style="bold yellow")

    status = Text()
    if session.replaying:
        status.append("Repetición", style="bold blue")
    elif session.connected:
        status.append("Conectado", style="bold green")
    else:
        status.append("Desconectado", style="bold red")
    status.append("  |  ", style="dim")
    status.append(f"Turno: {(snap and snap.current_player_name) or '-'}", style="bold")
    status.append("  |  ", style="dim")
    status.append(f"Ronda: {snap.round if snap else 1}", style="bold")

    parts = [Align.center(title), Align.center(status)]

    if snap is not None:
        objective = Text("Objetivo: ", style="dim")
        if snap.objective:
            objective.append(snap.objective.name, style="bold white")
            if snap.objective.description:
                objective.append(f" ({snap.objective.description})", style="dim")
        else:
            objective.append("-")
        parts.append(Align.center(objective))
        parts.append(Align.center(build_score_line(snap)))
        if snap.round_winner:
            parts.append(Align.center(Text(f"Ronda para: {snap.round_winner}", style="bold yellow")))
        if snap.match_winner:
            parts.append(Align.center(Text(f"Ganador final: {snap.match_winner}", style="bold red")))

    return Panel(Group(*parts), border_style="bright_white", padding=(0, 1))


def build_score_line(snap: RoomSnapshot) -> Text:
    a = snap.player(0)
    b = snap.player(1)
    line = Text("Puntos: ", style="dim")
    line.append(a.name if a else "J1", style=f"bold {PLAYER_COLORS[0]}")
    line.append(f" {snap.score_for(0):.0f} - {snap.score_for(1):.0f} ", style="bold")
    line.append(b.name if b else "J2", style=f"bold {PLAYER_COLORS[1]}")
    return line


def build_player_panel(session: GameSession, index: int) -> Panel:
    snap = session.snapshot
    player = snap.player(index) if snap else None
    is_local = session.player_index == index
    is_active = snap is not None and snap.current_player == index
    color = PLAYER_COLORS[index % len(PLAYER_COLORS)]

    name = Text()
    name.append(player.name if player else f"Jugador {index + 1}", style=f"bold {color}")
    if is_local:
        name.append(" (Tú)", style="dim")
    if is_active:
        name.append("  ◀ turno", style="bold green")

    dice = player.dice if player else (1, 1, 1, 1, 1)
    keep = player.keep if player else None
    rows = [
        name,
        format_dice(dice, keep, highlight=is_active),
        Text(f"Tiradas: {player.rolls if player else 0}/{MAX_ROLLS}", style="dim"),
        Text(
            player.evaluation.name if player and player.evaluation else "Sin evaluación",
            style="italic",
        ),
    ]
    return Panel(
        Group(*rows),
        border_style="green" if is_active else "dim",
        padding=(0, 1),
    )


def build_overlay(overlay: Overlay | None) -> Panel | None:
    """The announcement overlay, or None when nothing is being presented."""
    if overlay is None:
        return None
    if overlay.kind is OverlayKind.ROLLING:
        body = Group(
            Align.center(Text("RODANDO LOS DADOS", style="bold yellow")),
            Align.center(Text("   ".join(DIE_FACES[v - 1] for v in ROLLING_FACES), style="bold white")),
            Align.center(Text("La fortuna decide...", style="dim italic")),
        )
        return Panel(body, border_style="yellow", padding=(1, 2))

    parts = [
        Align.center(Text("CRÓNICA DE LA RONDA", style="bold yellow")),
        Align.center(Text(overlay.message or "", style="bold white")),
    ]
    if overlay.dice:
        parts.append(Align.center(format_dice(overlay.dice)))
    return Panel(Group(*parts), border_style="yellow", padding=(1, 2))


def build_controls(view: TurnView, error_message: str = "") -> Panel:
    """Contextual hint plus which commands are live right now."""
    hint = Text(view.status_hint, style="bold")
    controls = Text()
    for label, enabled in [
        (f"[r] {view.roll_label}", view.can_roll),
        ("[k] Marcar dados", view.can_toggle_keep),
        ("[e] Terminar turno", view.can_end_turn),
        ("[n] Nueva partida", True),
    ]:
        if controls:
            controls.append("   ")
        controls.append(label, style="bold green" if enabled else "dim strike")
    parts = [Align.center(hint), Align.center(controls)]
    if error_message:
        parts.append(Align.center(Text(error_message, style="bold red")))
    return Panel(Group(*parts), border_style="blue", padding=(0, 1))


def build_combinations_panel() -> Panel:
    table = Table(show_header=True, show_edge=False, expand=True)
    table.add_column("Combinación", style="bold")
    table.add_column("Ejemplo", style="dim")
    for i, (name, example) in enumerate(COMBINATIONS, 1):
        table.add_row(f"{i}. {name}", example)
    return Panel(table, title="[bold]Jerarquía de combinaciones[/bold]", border_style="yellow")


def build_footer() -> Text:
    footer = Text()
    footer.append(" EN VIVO ", style="bold white on green")
    footer.append(f"  {COMMAND_HELP}", style="dim")
    return footer


def render(session: GameSession, show_info: bool = False) -> Group:
    """Build the full display."""
    if not session.in_room:
        return Group(build_lobby(session))

    parts = [build_header(session)]
    overlay = build_overlay(session.overlay)
    if overlay is not None:
        parts.append(overlay)

    top, bottom = seat_order(session.player_index)
    parts.append(build_player_panel(session, top))
    parts.append(build_player_panel(session, bottom))
    parts.append(build_controls(session.view, session.error_message))
    if show_info:
        parts.append(build_combinations_panel())
    parts.append(build_footer())
    return Group(*parts)
