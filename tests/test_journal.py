"""Tests for SessionJournal — JSONL event journal and replay."""

import asyncio
import json
from datetime import datetime, timedelta, timezone

import pytest

import dicepoker
from dicepoker.core.journal import JournalRecord, SessionJournal, read_journal, replay


@pytest.fixture
def journal(tmp_path):
    return SessionJournal(output_dir=tmp_path, session_id="test-session-001")


class TestSessionJournal:
    def test_record_creates_file(self, journal, tmp_path):
        journal.record("state_update", {"id": "ABCD"})
        assert (tmp_path / "test-session-001.jsonl").exists()

    def test_record_writes_valid_jsonl(self, journal):
        journal.record("room_joined", {"roomId": "ABCD"})
        journal.record("state_update", {"id": "ABCD"})
        lines = journal.file_path.read_text().strip().split("\n")
        assert len(lines) == 2
        for line in lines:
            parsed = json.loads(line)
            assert parsed["schema_version"] == "1.0.0"
            assert parsed["session_id"] == "test-session-001"
            assert parsed["client_version"] == dicepoker.__version__

    def test_creates_missing_directory(self, tmp_path):
        journal = SessionJournal(tmp_path / "a" / "b")
        assert journal.file_path.parent.is_dir()
        assert journal.session_id.startswith("session-")

    def test_unique_default_session_ids(self, tmp_path):
        assert SessionJournal(tmp_path).session_id != SessionJournal(tmp_path).session_id


class TestReadJournal:
    def test_round_trips_payload(self, journal):
        payload = {"message": "Ana obtuvo Póker", "dice": [4, 4, 4, 4, 1]}
        journal.record("error_message", payload)
        [record] = read_journal(journal.file_path)
        assert record.record_type == "error_message"
        assert record.payload == payload
        assert record.timestamp.tzinfo is not None

    def test_skips_partial_and_invalid_lines(self, journal):
        journal.record("state_update", {"id": "ABCD"})
        with open(journal.file_path, "a") as f:
            f.write('{"record_type": "state_update", "payl\n')
            f.write('{"record_type": "state_update"}\n')
            f.write('{"record_type": "state_update", "payload": {}, "timestamp": "2026-01-01T00:0"}\n')
            f.write('{"record_type": "state_update", "payload": {}, "timestamp": 1767225600}\n')
            f.write("\n")
        journal.record("state_update", {"id": "WXYZ"})
        records = list(read_journal(journal.file_path))
        assert [r.payload["id"] for r in records] == ["ABCD", "WXYZ"]


def _records(*offsets):
    start = datetime(2026, 1, 1, tzinfo=timezone.utc)
    return [
        JournalRecord("state_update", {"n": i}, start + timedelta(seconds=s))
        for i, s in enumerate(offsets)
    ]


class TestReplay:
    def test_dispatches_in_order(self):
        seen = []
        count = asyncio.run(replay(_records(0, 1, 2), lambda e, p: seen.append((e, p["n"])), speed=0))
        assert count == 3
        assert seen == [("state_update", 0), ("state_update", 1), ("state_update", 2)]

    def test_sleeps_scaled_gaps(self, monkeypatch):
        sleeps = []

        async def fake_sleep(delay):
            sleeps.append(delay)

        monkeypatch.setattr(asyncio, "sleep", fake_sleep)
        asyncio.run(replay(_records(0, 2, 2, 5), lambda e, p: None, speed=2.0))
        assert sleeps == [1.0, 1.5]

    def test_speed_zero_never_sleeps(self, monkeypatch):
        sleeps = []

        async def fake_sleep(delay):
            sleeps.append(delay)

        monkeypatch.setattr(asyncio, "sleep", fake_sleep)
        asyncio.run(replay(_records(0, 10), lambda e, p: None, speed=0))
        assert sleeps == []
