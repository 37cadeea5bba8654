"""Terminal front end: a rich Live display driven by line commands."""

from __future__ import annotations

import asyncio
import logging
import sys
import threading
from dataclasses import dataclass, field
from typing import Awaitable, TextIO

from rich.console import Console
from rich.live import Live

from dicepoker.client.session import GameSession
from dicepoker.ui.render import render

logger = logging.getLogger(__name__)

REFRESH_PER_SECOND = 8

_ALIASES = {
    "r": "roll", "roll": "roll", "tirar": "roll",
    "k": "keep", "keep": "keep", "marcar": "keep",
    "e": "end", "end": "end", "terminar": "end",
    "n": "new", "new": "new", "nueva": "new",
    "i": "info", "info": "info",
    "c": "create", "create": "create", "crear": "create",
    "j": "join", "join": "join", "unirse": "join",
    "q": "quit", "quit": "quit", "salir": "quit",
}


@dataclass(frozen=True)
class Command:
    name: str
    args: list[str] = field(default_factory=list)


class CommandError(ValueError):
    pass


def parse_command(line: str) -> Command | None:
    """Parse one input line. Blank lines give None.

    Dice numbers for ``keep`` are 1-based on input and 0-based in ``args``.
    """
    tokens = line.split()
    if not tokens:
        return None
    name = _ALIASES.get(tokens[0].lower())
    if name is None:
        raise CommandError(f"Comando desconocido: {tokens[0]}")
    args = tokens[1:]

    if name == "keep":
        if not args:
            raise CommandError("Indica qué dados marcar, p. ej. k 1 3")
        try:
            indices = [int(a) - 1 for a in args]
        except ValueError:
            raise CommandError("Los dados se indican con números del 1 al 5") from None
        if any(not 0 <= i < 5 for i in indices):
            raise CommandError("Los dados se indican con números del 1 al 5")
        return Command(name, [str(i) for i in indices])
    if name == "create":
        return Command(name, [" ".join(args)])
    if name == "join":
        if not args:
            return Command(name, ["", ""])
        return Command(name, [args[0], " ".join(args[1:])])
    return Command(name)


class TerminalApp:
    """Runs the live display and feeds typed commands into the session."""

    def __init__(
        self,
        session: GameSession,
        console: Console | None = None,
        stdin: TextIO | None = None,
    ):
        self.session = session
        self.console = console or Console()
        self.stdin = stdin or sys.stdin
        self.show_info = False
        self._live: Live | None = None
        self._quit = asyncio.Event()

    def refresh(self) -> None:
        if self._live is not None:
            self._live.update(render(self.session, self.show_info))

    async def run(self, feed: Awaitable[None] | None = None) -> None:
        """Run until the user quits, or until ``feed`` is done and the
        announcement queue has drained.
        """
        self.session.on_change = self.refresh
        with Live(
            render(self.session, self.show_info),
            console=self.console,
            refresh_per_second=REFRESH_PER_SECOND,
        ) as live:
            self._live = live
            try:
                if feed is None:
                    await self._read_commands()
                else:
                    await feed
                    await self._drain()
            finally:
                self._live = None
                await self.session.close()

    async def _read_commands(self) -> None:
        lines: asyncio.Queue[str | None] = asyncio.Queue()
        self._start_reader(asyncio.get_running_loop(), lines)
        while not self._quit.is_set():
            line = await lines.get()
            if line is None:
                break
            await self.execute_line(line)

    def _start_reader(self, loop: asyncio.AbstractEventLoop, lines: asyncio.Queue) -> threading.Thread:
        # Daemon thread: a read blocked on stdin must not hold up interpreter exit.
        def pump() -> None:
            try:
                for line in iter(self.stdin.readline, ""):
                    loop.call_soon_threadsafe(lines.put_nowait, line)
                loop.call_soon_threadsafe(lines.put_nowait, None)
            except RuntimeError:
                # Loop already closed after quit.
                logger.debug("Stdin reader stopped: event loop closed")

        reader = threading.Thread(target=pump, name="dicepoker-stdin", daemon=True)
        reader.start()
        return reader

    async def _drain(self) -> None:
        while self.session.sequencer.queued:
            await asyncio.sleep(0.1)

    async def execute_line(self, line: str) -> None:
        try:
            command = parse_command(line)
        except CommandError as e:
            self.session.error_message = str(e)
            self.refresh()
            return
        if command is not None:
            await self.execute(command)
        self.refresh()

    async def execute(self, command: Command) -> None:
        s = self.session
        logger.debug("Command %s %s", command.name, command.args)
        if command.name == "quit":
            self._quit.set()
        elif command.name == "info":
            self.show_info = not self.show_info
        elif command.name == "create":
            await s.create_room(command.args[0])
        elif command.name == "join":
            await s.join_room(command.args[0], command.args[1])
        elif command.name == "roll":
            await s.roll()
        elif command.name == "keep":
            await s.toggle_keep([int(a) for a in command.args])
        elif command.name == "end":
            await s.end_turn()
        elif command.name == "new":
            await s.new_game()
