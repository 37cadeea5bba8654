"""CLI entry point: python -m dicepoker <command>"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from dicepoker.client.rest import LegacyApiClient, RestError
from dicepoker.client.session import GameSession
from dicepoker.config import ClientConfig, load_config
from dicepoker.core.journal import SessionJournal, read_journal, replay
from dicepoker.core.scheduler import AsyncioScheduler
from dicepoker.ui.terminal import TerminalApp

logger = logging.getLogger("dicepoker")


def configure_logging(config: ClientConfig) -> None:
    """Log to a file so the live display stays clean."""
    handlers: list[logging.Handler] = []
    if config.log_file:
        config.log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(config.log_file))
    else:
        handlers.append(logging.NullHandler())
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=handlers,
    )


def parse_mask(text: str) -> list[bool]:
    """Parse a five-dice mask such as ``1,0,1,0,0``."""
    parts = [p.strip() for p in text.split(",") if p.strip()]
    if len(parts) != 5 or any(p not in ("0", "1") for p in parts):
        raise argparse.ArgumentTypeError("mask must be five comma-separated 0/1 values")
    return [p == "1" for p in parts]


async def _play(config: ClientConfig, args: argparse.Namespace) -> None:
    journal = SessionJournal(config.journal_dir) if config.journal_dir else None
    session = GameSession(config, AsyncioScheduler(), journal=journal)
    app = TerminalApp(session)
    if journal:
        logger.info("Journal: %s", journal.file_path)
    if args.command == "create":
        await session.create_room(args.name)
    elif args.command == "join":
        await session.join_room(args.code, args.name)
    await app.run()


async def _replay(config: ClientConfig, args: argparse.Namespace) -> None:
    session = GameSession(config, AsyncioScheduler())
    session.replaying = True
    app = TerminalApp(session)
    records = list(read_journal(args.journal))
    await app.run(feed=replay(records, session.connection.dispatch, speed=args.speed))


def _run_api(config: ClientConfig, args: argparse.Namespace) -> int:
    with LegacyApiClient(config.api_base_url, config.request_timeout_s) as api:
        try:
            if args.action == "roll":
                result = api.roll_dice(args.reroll)
            elif args.action == "evaluate":
                result = api.evaluate_dice()
            elif args.action == "next-turn":
                result = api.next_turn()
            else:
                result = api.new_game()
        except RestError as e:
            print(f"Error: {e} ({e.details})", file=sys.stderr)
            return 1
    print(json.dumps(result, ensure_ascii=False))
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="dicepoker",
        description="Póker de Dados live client",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to client YAML config file",
    )
    sub = parser.add_subparsers(dest="command")

    p_create = sub.add_parser("create", help="Create a room")
    p_create.add_argument("--name", required=True, help="Your player name")

    p_join = sub.add_parser("join", help="Join a room by code")
    p_join.add_argument("code", help="Room code")
    p_join.add_argument("--name", required=True, help="Your player name")

    sub.add_parser("lobby", help="Open the lobby and type c/j commands")

    p_replay = sub.add_parser("replay", help="Replay a session journal")
    p_replay.add_argument("journal", type=Path, help="Path to a journal .jsonl file")
    p_replay.add_argument(
        "--speed", type=float, default=1.0,
        help="Playback speed multiplier (0 = no gaps)",
    )

    p_api = sub.add_parser("api", help="Call the legacy request/response API")
    p_api.add_argument("action", choices=["roll", "evaluate", "next-turn", "new-game"])
    p_api.add_argument(
        "--reroll", type=parse_mask, default=[True] * 5,
        help="Dice to reroll as 0/1 mask, e.g. 1,0,1,0,0",
    )

    args = parser.parse_args()
    if args.command is None:
        args.command = "lobby"

    load_dotenv()

    if args.config and not args.config.exists():
        print(f"Error: config file not found: {args.config}", file=sys.stderr)
        sys.exit(1)

    config = load_config(args.config)
    configure_logging(config)

    if args.command == "api":
        sys.exit(_run_api(config, args))

    if args.command == "replay":
        if not args.journal.exists():
            print(f"Error: journal not found: {args.journal}", file=sys.stderr)
            sys.exit(1)
        runner = _replay(config, args)
    else:
        runner = _play(config, args)

    try:
        asyncio.run(runner)
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
