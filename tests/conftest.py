"""
Shared fixtures for the campus guide tests.

The progress store is replaced by an in-memory fake that speaks the same row
shape as the user_stats table, so the engine's translation code still runs.
Saved chats get a plain in-memory fake keyed by chat id.
"""

import copy
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest

from campus_guide.exceptions import StoreUnavailable
from campus_guide.interactions import InteractionProcessor
from campus_guide.progress import ProgressEngine
from campus_guide.progress_store import PROGRESS_COLUMNS
from campus_guide.schemas import ChatMessage, ChatSummary, HistoryMessage

# Mid-afternoon local time, outside the night owl window
DAYTIME = datetime(2026, 9, 8, 14, 30, tzinfo=timezone(timedelta(hours=-4)))
NIGHTTIME = datetime(2026, 9, 8, 23, 15, tzinfo=timezone(timedelta(hours=-4)))


def default_row() -> Dict[str, Any]:
    return {
        "experience_points": 0,
        "level": 1,
        "total_messages": 0,
        "badges_unlocked": [],
        "topics_explored": [],
        "last_message_at": None,
    }


class FakeProgressStore:
    """In-memory stand-in for ProgressStore."""

    def __init__(self):
        self.rows: Dict[str, Dict[str, Any]] = {}
        self.writes: List[tuple] = []
        self.fail_reads = False
        self.fail_writes = False
        # Fail only writes touching this column
        self.fail_on_column: Optional[str] = None

    def seed(self, user_id: str, **fields) -> None:
        row = default_row()
        row.update(fields)
        self.rows[user_id] = row

    async def fetch_row(self, user_id: str) -> Optional[Dict[str, Any]]:
        if self.fail_reads:
            raise StoreUnavailable("read failed")
        row = self.rows.get(user_id)
        return copy.deepcopy(row) if row is not None else None

    async def update_row(self, user_id: str, changes: Dict[str, Any]) -> None:
        unknown = set(changes) - set(PROGRESS_COLUMNS)
        assert not unknown, f"unexpected columns {unknown}"
        if self.fail_writes or (self.fail_on_column and self.fail_on_column in changes):
            raise StoreUnavailable("write failed")

        row = self.rows.setdefault(user_id, default_row())
        row.update(copy.deepcopy(changes))
        self.writes.append((user_id, copy.deepcopy(changes)))

    async def top_rows(self, limit: int = 10) -> List[Dict[str, Any]]:
        if self.fail_reads:
            raise StoreUnavailable("read failed")
        ranked = sorted(
            self.rows.items(),
            key=lambda item: item[1]["experience_points"],
            reverse=True,
        )
        return [
            {
                "user_id": uid,
                "experience_points": row["experience_points"],
                "level": row["level"],
                "total_messages": row["total_messages"],
            }
            for uid, row in ranked[:limit]
        ]


@pytest.fixture
def store() -> FakeProgressStore:
    return FakeProgressStore()


@pytest.fixture
def engine(store) -> ProgressEngine:
    return ProgressEngine(store, clock=lambda: DAYTIME)


@pytest.fixture
def night_engine(store) -> ProgressEngine:
    return ProgressEngine(store, clock=lambda: NIGHTTIME)


@pytest.fixture
def processor(engine) -> InteractionProcessor:
    return InteractionProcessor(engine)


class FakeChatStore:
    """In-memory stand-in for ChatStore."""

    def __init__(self):
        self.chats: Dict[Any, ChatSummary] = {}
        self.owners: Dict[Any, str] = {}
        self.messages: Dict[Any, List[tuple]] = {}
        self.fail_reads = False
        self.fail_writes = False

    async def create_chat(self, user_id, university_id, title=None) -> ChatSummary:
        now = datetime.now(timezone.utc)
        chat = ChatSummary(
            chat_id=uuid.uuid4(),
            university_id=university_id,
            title=title or "New chat",
            created_at=now,
            updated_at=now,
        )
        self.chats[chat.chat_id] = chat
        self.owners[chat.chat_id] = user_id
        self.messages[chat.chat_id] = []
        return chat

    async def list_chats(self, user_id, limit=50) -> List[ChatSummary]:
        return [c for cid, c in self.chats.items() if self.owners[cid] == user_id][:limit]

    async def chat_exists(self, chat_id, user_id) -> bool:
        return self.owners.get(chat_id) == user_id

    async def delete_chat(self, chat_id, user_id) -> bool:
        if self.owners.get(chat_id) != user_id:
            return False
        del self.chats[chat_id], self.owners[chat_id], self.messages[chat_id]
        return True

    async def append_message(self, chat_id, sender, text) -> None:
        if self.fail_writes:
            raise StoreUnavailable("write failed")
        self.messages[chat_id].append((sender, text))

    async def get_chat(self, chat_id) -> List[ChatMessage]:
        return [ChatMessage(sender=s, text=t) for s, t in self.messages[chat_id]]

    async def get_last_messages(self, chat_id, limit=5) -> List[HistoryMessage]:
        if self.fail_reads:
            raise StoreUnavailable("read failed")
        return [HistoryMessage(sender=s, text=t) for s, t in self.messages[chat_id][-limit:]]


@pytest.fixture
def chat_store() -> FakeChatStore:
    return FakeChatStore()
