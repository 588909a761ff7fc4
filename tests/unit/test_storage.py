"""
Unit tests for the saved-chat store, over a fake pool like the one in
test_progress_store.py.
"""

import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

import psycopg
import pytest

from campus_guide.exceptions import StoreUnavailable
from campus_guide.storage import DEFAULT_CHAT_TITLE, ChatStore

CHAT_ID = uuid.UUID("7b0d3c1e-3f6a-4f0e-9a51-2d8c3b6f1a20")
CREATED = datetime(2026, 9, 8, 18, 30, tzinfo=timezone.utc)


class FakeCursor:
    def __init__(self, rows, rowcount):
        self._rows = rows
        self.rowcount = rowcount

    async def fetchone(self):
        return self._rows[0] if self._rows else None

    async def fetchall(self):
        return list(self._rows)


class FakeConnection:
    def __init__(self, rows=None, rowcount=0, error=None):
        self.rows = rows or []
        self.rowcount = rowcount
        self.error = error
        self.executed = []

    async def execute(self, query, params=None):
        if self.error is not None:
            raise self.error
        self.executed.append((" ".join(query.split()), params))
        return FakeCursor(self.rows, self.rowcount)


class FakePool:
    def __init__(self, conn):
        self.conn = conn

    @asynccontextmanager
    async def connection(self):
        yield self.conn


def chat_store(**conn_kwargs):
    conn = FakeConnection(**conn_kwargs)
    return ChatStore(FakePool(conn)), conn


@pytest.mark.asyncio
class TestChatSessions:
    async def test_create_chat(self):
        store, conn = chat_store(rows=[(CREATED, CREATED)])

        chat = await store.create_chat("student-1", "uw", "  Residence questions ")

        query, params = conn.executed[0]
        assert query.startswith("INSERT INTO chat_sessions")
        assert params[1:] == ("student-1", "uw", "Residence questions")
        assert params[0] == chat.chat_id
        assert chat.created_at == CREATED

    async def test_blank_title_gets_default(self):
        store, _ = chat_store(rows=[(CREATED, CREATED)])

        chat = await store.create_chat("student-1", "uw", "   ")

        assert chat.title == DEFAULT_CHAT_TITLE

    async def test_list_chats(self):
        store, conn = chat_store(rows=[(CHAT_ID, "uw", "Food", CREATED, CREATED)])

        chats = await store.list_chats("student-1", limit=20)

        assert [c.chat_id for c in chats] == [CHAT_ID]
        assert "ORDER BY updated_at DESC" in conn.executed[0][0]
        assert conn.executed[0][1] == ("student-1", 20)

    async def test_chat_exists_is_scoped_to_owner(self):
        store, conn = chat_store(rows=[])

        assert await store.chat_exists(CHAT_ID, "someone-else") is False
        assert conn.executed[0][1] == (CHAT_ID, "someone-else")

    async def test_delete_reports_rowcount(self):
        deleted, _ = chat_store(rowcount=1)
        missing, _ = chat_store(rowcount=0)

        assert await deleted.delete_chat(CHAT_ID, "student-1") is True
        assert await missing.delete_chat(CHAT_ID, "student-1") is False


@pytest.mark.asyncio
class TestMessages:
    async def test_append_bumps_chat_activity(self):
        store, conn = chat_store()

        await store.append_message(CHAT_ID, "user", "Where is the gym?")

        assert conn.executed[0][1] == (CHAT_ID, "user", "Where is the gym?")
        assert conn.executed[1][0].startswith("UPDATE chat_sessions SET updated_at")

    async def test_last_messages_come_back_in_chronological_order(self):
        # The query reads newest first
        store, conn = chat_store(rows=[("ai", "It's in the PAC."), ("user", "Where is the gym?")])

        history = await store.get_last_messages(CHAT_ID, limit=2)

        assert [(m.sender, m.text) for m in history] == [
            ("user", "Where is the gym?"),
            ("ai", "It's in the PAC."),
        ]
        assert conn.executed[0][1] == (CHAT_ID, 2)

    async def test_get_chat_normalizes_timestamps_to_utc(self):
        local = CREATED.astimezone(timezone(timedelta(hours=-4)))
        store, _ = chat_store(rows=[("user", "hi", local), ("ai", "hello", None)])

        messages = await store.get_chat(CHAT_ID)

        assert messages[0].created_at == CREATED
        assert messages[0].created_at.utcoffset() == timedelta(0)
        assert messages[1].created_at is None


@pytest.mark.asyncio
class TestErrors:
    @pytest.mark.parametrize(
        "call",
        [
            lambda s: s.create_chat("student-1", "uw"),
            lambda s: s.list_chats("student-1"),
            lambda s: s.chat_exists(CHAT_ID, "student-1"),
            lambda s: s.delete_chat(CHAT_ID, "student-1"),
            lambda s: s.append_message(CHAT_ID, "user", "hi"),
            lambda s: s.get_chat(CHAT_ID),
            lambda s: s.get_last_messages(CHAT_ID),
        ],
    )
    async def test_psycopg_errors_become_store_unavailable(self, call):
        store, _ = chat_store(error=psycopg.OperationalError("server closed the connection"))

        with pytest.raises(StoreUnavailable):
            await call(store)
