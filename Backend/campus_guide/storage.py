# campus_guide/storage.py
import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from psycopg import Error as PsycopgError
from psycopg_pool import AsyncConnectionPool

from .exceptions import StoreUnavailable
from .schemas import ChatMessage, ChatSummary, HistoryMessage

logger = logging.getLogger(__name__)

DEFAULT_CHAT_TITLE = "New chat"


class ChatStore:
    """Chat sessions and their messages, owned by a signed-in user.

    Same error policy as ProgressStore: psycopg failures are logged and
    re-raised as StoreUnavailable.
    """

    def __init__(self, pool: AsyncConnectionPool):
        self.pool = pool

    async def create_chat(
        self, user_id: str, university_id: str, title: Optional[str] = None
    ) -> ChatSummary:
        chat_id = uuid.uuid4()
        title = (title or "").strip() or DEFAULT_CHAT_TITLE
        try:
            async with self.pool.connection() as conn:
                cur = await conn.execute(
                    """
                    INSERT INTO chat_sessions (chat_id, user_id, university_id, title)
                    VALUES (%s, %s, %s, %s)
                    RETURNING created_at, updated_at
                    """,
                    (chat_id, user_id, university_id, title),
                )
                created_at, updated_at = await cur.fetchone()
        except PsycopgError as e:
            logger.error("Error creating chat for %s: %s", user_id, e)
            raise StoreUnavailable(str(e)) from e

        return ChatSummary(
            chat_id=chat_id,
            university_id=university_id,
            title=title,
            created_at=created_at,
            updated_at=updated_at,
        )

    async def list_chats(self, user_id: str, limit: int = 50) -> List[ChatSummary]:
        """Chats for a user, most recently active first."""
        try:
            async with self.pool.connection() as conn:
                cur = await conn.execute(
                    """
                    SELECT chat_id, university_id, title, created_at, updated_at
                    FROM chat_sessions
                    WHERE user_id = %s
                    ORDER BY updated_at DESC
                    LIMIT %s
                    """,
                    (user_id, limit),
                )
                rows = await cur.fetchall()
        except PsycopgError as e:
            logger.error("Error listing chats for %s: %s", user_id, e)
            raise StoreUnavailable(str(e)) from e

        return [
            ChatSummary(
                chat_id=chat_id,
                university_id=university_id,
                title=title,
                created_at=created_at,
                updated_at=updated_at,
            )
            for chat_id, university_id, title, created_at, updated_at in rows
        ]

    async def chat_exists(self, chat_id: UUID, user_id: str) -> bool:
        """True only when the chat exists and belongs to `user_id`."""
        try:
            async with self.pool.connection() as conn:
                cur = await conn.execute(
                    "SELECT 1 FROM chat_sessions WHERE chat_id = %s AND user_id = %s",
                    (chat_id, user_id),
                )
                row = await cur.fetchone()
        except PsycopgError as e:
            logger.error("Error checking chat %s: %s", chat_id, e)
            raise StoreUnavailable(str(e)) from e
        return row is not None

    async def delete_chat(self, chat_id: UUID, user_id: str) -> bool:
        """Hard-delete a chat; its messages go with it (ON DELETE CASCADE)."""
        try:
            async with self.pool.connection() as conn:
                cur = await conn.execute(
                    "DELETE FROM chat_sessions WHERE chat_id = %s AND user_id = %s",
                    (chat_id, user_id),
                )
        except PsycopgError as e:
            logger.error("Error deleting chat %s: %s", chat_id, e)
            raise StoreUnavailable(str(e)) from e
        return cur.rowcount > 0

    async def append_message(self, chat_id: UUID, sender: str, text: str) -> None:
        """Insert one message and bump the chat's updated_at."""
        try:
            async with self.pool.connection() as conn:
                await conn.execute(
                    "INSERT INTO messages (chat_id, sender, text) VALUES (%s, %s, %s)",
                    (chat_id, sender, text),
                )
                await conn.execute(
                    "UPDATE chat_sessions SET updated_at = now() WHERE chat_id = %s",
                    (chat_id,),
                )
        except PsycopgError as e:
            logger.error("Error appending message to chat %s: %s", chat_id, e)
            raise StoreUnavailable(str(e)) from e

    async def get_chat(self, chat_id: UUID) -> List[ChatMessage]:
        """Full message history of a chat, oldest first."""
        try:
            async with self.pool.connection() as conn:
                cur = await conn.execute(
                    """
                    SELECT sender, text, created_at
                    FROM messages
                    WHERE chat_id = %s
                    ORDER BY created_at, id
                    """,
                    (chat_id,),
                )
                rows = await cur.fetchall()
        except PsycopgError as e:
            logger.error("Error loading chat %s: %s", chat_id, e)
            raise StoreUnavailable(str(e)) from e

        messages: List[ChatMessage] = []
        for sender, text, created_at in rows:
            # Normalize timestamp to UTC
            if isinstance(created_at, datetime):
                created_at = created_at.astimezone(timezone.utc)
            else:
                created_at = None
            messages.append(ChatMessage(sender=sender, text=text, created_at=created_at))
        return messages

    async def get_last_messages(self, chat_id: UUID, limit: int = 5) -> List[HistoryMessage]:
        """The last `limit` messages of a chat in chronological order."""
        try:
            async with self.pool.connection() as conn:
                cur = await conn.execute(
                    """
                    SELECT sender, text
                    FROM messages
                    WHERE chat_id = %s
                    ORDER BY created_at DESC, id DESC
                    LIMIT %s
                    """,
                    (chat_id, limit),
                )
                rows = await cur.fetchall()
        except PsycopgError as e:
            logger.error("Error loading memory for chat %s: %s", chat_id, e)
            raise StoreUnavailable(str(e)) from e

        return [HistoryMessage(sender=sender, text=text) for sender, text in reversed(rows)]
