"""SessionJournal — JSONL record of inbound channel events.

One journal per session. Writes one JSONL line per inbound event with the
raw payload, so a session can be replayed through the same handlers later.
All entries include schema version and session ID.
"""

import asyncio
import json
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Iterable, Iterator

import dicepoker

logger = logging.getLogger(__name__)

_SCHEMA_VERSION = "1.0.0"


@dataclass(frozen=True)
class JournalRecord:
    """One inbound event as read back from a journal."""

    record_type: str
    payload: Any
    timestamp: datetime


class SessionJournal:
    """Appends inbound events for a single session."""

    def __init__(self, output_dir: Path, session_id: str | None = None):
        self._output_dir = Path(output_dir)
        self._session_id = session_id or _new_session_id()
        self._output_dir.mkdir(parents=True, exist_ok=True)
        self._file_path = self._output_dir / f"{self._session_id}.jsonl"

    @property
    def file_path(self) -> Path:
        return self._file_path

    @property
    def session_id(self) -> str:
        return self._session_id

    def record(self, record_type: str, payload: Any) -> None:
        self._append({
            "schema_version": _SCHEMA_VERSION,
            "session_id": self._session_id,
            "client_version": dicepoker.__version__,
            "record_type": record_type,
            "payload": payload,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        })

    def _append(self, record: dict) -> None:
        with open(self._file_path, "a") as f:
            f.write(json.dumps(record, default=str) + "\n")


def read_journal(path: Path) -> Iterator[JournalRecord]:
    """Yield records from a journal file, skipping partial lines."""
    with open(path) as f:
        for lineno, raw_line in enumerate(f, 1):
            raw_line = raw_line.strip()
            if not raw_line:
                continue
            try:
                data = json.loads(raw_line)
            except json.JSONDecodeError:
                logger.warning("Skipping unreadable journal line %d in %s", lineno, path)
                continue
            if not isinstance(data, dict) or "timestamp" not in data:
                logger.warning("Skipping journal line %d without timestamp", lineno)
                continue
            try:
                timestamp = datetime.fromisoformat(data["timestamp"])
            except (TypeError, ValueError):
                logger.warning("Skipping journal line %d with bad timestamp", lineno)
                continue
            yield JournalRecord(
                record_type=data.get("record_type", ""),
                payload=data.get("payload"),
                timestamp=timestamp,
            )


async def replay(
    records: Iterable[JournalRecord],
    dispatch: Callable[[str, Any], None],
    speed: float = 1.0,
) -> int:
    """Feed recorded events to ``dispatch`` with their original spacing.

    ``speed`` scales the gaps (2.0 plays twice as fast); 0 disables waiting.
    Returns the number of records dispatched.
    """
    previous: datetime | None = None
    count = 0
    for record in records:
        if previous is not None and speed > 0:
            gap = (record.timestamp - previous).total_seconds() / speed
            if gap > 0:
                await asyncio.sleep(gap)
        previous = record.timestamp
        dispatch(record.record_type, record.payload)
        count += 1
    logger.info("Replayed %d journal records", count)
    return count


def _new_session_id() -> str:
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    return f"session-{stamp}-{uuid.uuid4().hex[:6]}"
