# campus_guide/progress.py
"""
Progress engine: experience, levels, badges and explored topics per user.

Every public operation does its own fresh read from the store and, where it
mutates, a single write afterwards. There is no lock or transaction around
the read and the write, so two concurrent writers for the same user can lose
an update (last write wins). One browser tab per account is the expected
load; nothing here coordinates more than that.

Reads fail open, and the write operations build on that read. If the store
read fails transiently inside apply_experience or increment_message_count,
the new values are computed from default progress and written back,
overwriting the stored experience, message count and badges.
"""
import logging
from datetime import datetime
from typing import Callable, List, Optional

from .badges import EXPLORER, FRESHMAN, NIGHT_OWL, catalog_badges
from .exceptions import AuthenticationRequired
from .leveling import (
    BADGE_BONUS_XP,
    EXPLORER_TOPIC_COUNT,
    MESSAGE_XP,
    compute_level,
    is_night_hour,
    next_level_threshold,
)
from .progress_store import (
    ProgressStore,
    badges_to_row,
    leaderboard_from_rows,
    progress_from_row,
)
from .schemas import Badge, LeaderboardEntry, UserProgress

logger = logging.getLogger(__name__)


def _local_now() -> datetime:
    return datetime.now().astimezone()


def default_progress() -> UserProgress:
    """Fresh progress: level 1, no experience, every badge locked."""
    return UserProgress(
        experience=0,
        level=1,
        next_level_xp=next_level_threshold(1),
        badges=catalog_badges(),
        topics_explored=[],
        messages_count=0,
    )


class ProgressEngine:
    def __init__(
        self,
        store: ProgressStore,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.clock = clock or _local_now

    # -------------------------------------------------------------------
    # Reads (fail open)
    # -------------------------------------------------------------------
    async def get_progress(self, user_id: Optional[str] = None) -> UserProgress:
        """
        Current progress for `user_id`.

        Guests and failed reads get default progress so the client always
        has something to render. Never creates a row.
        """
        if not user_id:
            return default_progress()

        try:
            row = await self.store.fetch_row(user_id)
        except Exception as e:
            logger.exception("Falling back to default progress for %s: %s", user_id, e)
            return default_progress()

        return progress_from_row(row)

    async def generate_context_summary(self, user_id: Optional[str] = None) -> str:
        """Short digest of the user's progress for the AI prompt."""
        progress = await self.get_progress(user_id)

        topics = ", ".join(progress.topics_explored) or "None yet"
        badges = ", ".join(b.name for b in progress.unlocked_badges) or "None yet"

        return "\n".join(
            [
                f"User Level: {progress.level}",
                f"Total Messages: {progress.messages_count}",
                f"Topics Explored: {topics}",
                f"Unlocked Badges: {badges}",
            ]
        )

    async def get_leaderboard(self, limit: int = 10) -> List[LeaderboardEntry]:
        try:
            rows = await self.store.top_rows(limit)
        except Exception as e:
            logger.exception("Error fetching leaderboard: %s", e)
            return []
        return leaderboard_from_rows(rows)

    # -------------------------------------------------------------------
    # Writes (fail closed: StoreUnavailable propagates)
    # -------------------------------------------------------------------
    async def apply_experience(self, user_id: Optional[str], delta: int) -> UserProgress:
        """
        Add `delta` XP, recompute the level and persist both together.

        The base comes from get_progress, which returns defaults when the read
        fails. In that case the written experience is `delta` on top of zero
        and replaces whatever was stored.
        """
        if delta <= 0:
            raise ValueError(f"experience delta must be positive, got {delta}")

        current = await self.get_progress(user_id)
        experience = current.experience + delta
        level = compute_level(experience)

        if user_id:
            await self.store.update_row(user_id, {"experience_points": experience, "level": level})
        else:
            logger.debug("Guest experience of %d not persisted", delta)

        return current.model_copy(
            update={
                "experience": experience,
                "level": level,
                "next_level_xp": next_level_threshold(level),
            }
        )

    async def set_badges(self, user_id: Optional[str], badges: List[Badge]) -> None:
        """Persist the unlocked subset of `badges`, stamping new unlocks now."""
        if not user_id:
            return

        now = self.clock()
        unlocked = [
            b if b.unlocked_at else b.model_copy(update={"unlocked_at": now})
            for b in badges
            if b.unlocked
        ]
        await self.store.update_row(user_id, {"badges_unlocked": badges_to_row(unlocked)})

    async def unlock_badge(self, user_id: Optional[str], badge_id: str) -> bool:
        """
        Unlock `badge_id` and award the badge bonus.

        Returns False (and changes nothing) for guests, unknown ids and
        badges that are already unlocked.
        """
        if not user_id:
            return False

        current = await self.get_progress(user_id)
        badge = next((b for b in current.badges if b.id == badge_id), None)
        if badge is None or badge.unlocked:
            return False

        updated = [
            b.model_copy(update={"unlocked": True}) if b.id == badge_id else b
            for b in current.badges
        ]
        await self.set_badges(user_id, updated)
        await self.apply_experience(user_id, BADGE_BONUS_XP)

        logger.info("User %s unlocked badge %s", user_id, badge_id)
        return True

    async def add_explored_topic(self, user_id: Optional[str], topic: str) -> None:
        if not user_id or not topic:
            return

        current = await self.get_progress(user_id)
        if topic in current.topics_explored:
            return

        topics = current.topics_explored + [topic]
        await self.store.update_row(user_id, {"topics_explored": topics})

        if len(topics) >= EXPLORER_TOPIC_COUNT:
            await self.unlock_badge(user_id, EXPLORER)

    async def increment_message_count(self, user_id: Optional[str]) -> None:
        """Count one message, award message XP, then check message badges."""
        if not user_id:
            return

        current = await self.get_progress(user_id)
        count = current.messages_count + 1
        now = self.clock()

        await self.store.update_row(user_id, {"total_messages": count, "last_message_at": now})
        await self.apply_experience(user_id, MESSAGE_XP)

        if count == 1:
            await self.unlock_badge(user_id, FRESHMAN)

        if is_night_hour(now.hour):
            await self.unlock_badge(user_id, NIGHT_OWL)

    async def reset_progress(self, user_id: Optional[str]) -> None:
        """Zero out the user's progress in place (the row is kept)."""
        if not user_id:
            raise AuthenticationRequired()

        await self.store.update_row(
            user_id,
            {
                "experience_points": 0,
                "level": 1,
                "total_messages": 0,
                "badges_unlocked": [],
                "topics_explored": [],
            },
        )
        logger.info("Progress reset for %s", user_id)
