"""
Unit tests for the user_stats row adapter.

The pool is faked at the connection level so the SQL paths and the psycopg
error wrapping run without a database.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone

import psycopg
import pytest
from psycopg.types.json import Jsonb

from campus_guide.exceptions import StoreUnavailable
from campus_guide.progress_store import (
    ProgressStore,
    badges_to_row,
    leaderboard_from_rows,
    progress_from_row,
)
from campus_guide.schemas import Badge


class FakeCursor:
    def __init__(self, rows):
        self._rows = rows

    async def fetchone(self):
        return self._rows[0] if self._rows else None

    async def fetchall(self):
        return list(self._rows)


class FakeConnection:
    def __init__(self, rows=None, error=None):
        self.rows = rows or []
        self.error = error
        self.executed = []

    async def execute(self, query, params=None):
        if self.error is not None:
            raise self.error
        self.executed.append((query, params))
        return FakeCursor(self.rows)


class FakePool:
    def __init__(self, conn):
        self.conn = conn

    @asynccontextmanager
    async def connection(self):
        yield self.conn


class TestRowTranslation:
    def test_missing_row_is_default_progress(self):
        progress = progress_from_row(None)

        assert progress.experience == 0
        assert progress.level == 1
        assert progress.next_level_xp == 100
        assert not any(b.unlocked for b in progress.badges)

    def test_null_columns_fall_back_to_defaults(self):
        progress = progress_from_row(
            {"experience_points": None, "level": None, "total_messages": None,
             "badges_unlocked": None, "topics_explored": None, "last_message_at": None}
        )

        assert progress.level == 1
        assert progress.topics_explored == []
        assert progress.messages_count == 0

    def test_bad_badge_entries_are_skipped(self):
        progress = progress_from_row(
            {"experience_points": 50, "level": 1,
             "badges_unlocked": ["freshman", {"name": "no id"},
                                 {"id": "explorer", "unlocked_at": "not a date"}]}
        )

        unlocked = [b for b in progress.badges if b.unlocked]
        assert [b.id for b in unlocked] == ["explorer"]
        assert unlocked[0].unlocked_at is None

    def test_badges_to_row_drops_locked(self):
        at = datetime(2026, 9, 2, 10, 0, tzinfo=timezone.utc)
        rows = badges_to_row(
            [
                Badge(id="freshman", name="Freshman", unlocked=True, unlocked_at=at),
                Badge(id="explorer", name="Explorer", unlocked=False),
            ]
        )

        assert rows == [{"id": "freshman", "name": "Freshman", "unlocked_at": at.isoformat()}]

    def test_leaderboard_rows(self):
        board = leaderboard_from_rows(
            [{"user_id": 42, "experience_points": 300, "level": 4, "total_messages": 9}]
        )

        assert board[0].user_id == "42"
        assert board[0].experience_points == 300


@pytest.mark.asyncio
class TestProgressStore:
    async def test_fetch_row_maps_columns(self):
        conn = FakeConnection(rows=[(120, 2, 6, [], ["food"], None)])
        store = ProgressStore(FakePool(conn))

        row = await store.fetch_row("u1")

        assert row == {
            "experience_points": 120,
            "level": 2,
            "total_messages": 6,
            "badges_unlocked": [],
            "topics_explored": ["food"],
            "last_message_at": None,
        }
        assert conn.executed[0][1] == ("u1",)

    async def test_fetch_missing_row(self):
        store = ProgressStore(FakePool(FakeConnection(rows=[])))
        assert await store.fetch_row("nobody") is None

    async def test_fetch_wraps_driver_errors(self):
        conn = FakeConnection(error=psycopg.OperationalError("connection refused"))
        store = ProgressStore(FakePool(conn))

        with pytest.raises(StoreUnavailable):
            await store.fetch_row("u1")

    async def test_update_wraps_badges_as_jsonb(self):
        conn = FakeConnection()
        store = ProgressStore(FakePool(conn))
        badges = [{"id": "freshman", "name": "Freshman", "unlocked_at": "2026-09-02T10:00:00+00:00"}]

        await store.update_row("u1", {"experience_points": 60, "badges_unlocked": badges})

        _, params = conn.executed[0]
        assert params[0] == "u1"
        assert params[1] == 60
        assert isinstance(params[2], Jsonb)
        assert params[2].obj == badges

    async def test_update_rejects_unknown_columns(self):
        conn = FakeConnection()
        store = ProgressStore(FakePool(conn))

        with pytest.raises(ValueError):
            await store.update_row("u1", {"user_id": "someone-else"})
        assert conn.executed == []

    async def test_empty_update_does_nothing(self):
        conn = FakeConnection()
        await ProgressStore(FakePool(conn)).update_row("u1", {})
        assert conn.executed == []

    async def test_update_wraps_driver_errors(self):
        conn = FakeConnection(error=psycopg.OperationalError("server closed the connection"))
        store = ProgressStore(FakePool(conn))

        with pytest.raises(StoreUnavailable):
            await store.update_row("u1", {"level": 2})

    async def test_top_rows(self):
        conn = FakeConnection(rows=[("a", 400, 5, 30), ("b", 90, 1, 4)])
        store = ProgressStore(FakePool(conn))

        rows = await store.top_rows(2)

        assert rows[0] == {"user_id": "a", "experience_points": 400, "level": 5, "total_messages": 30}
        assert conn.executed[0][1] == (2,)
