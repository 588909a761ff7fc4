# campus_guide/interactions.py
import logging
from typing import Iterable, Optional

from .badges import SCHOLAR
from .leveling import SCHOLAR_LEVEL
from .progress import ProgressEngine
from .schemas import InteractionResult

logger = logging.getLogger(__name__)


class InteractionProcessor:
    """Applies one chat message to a user's progress and reports what changed."""

    def __init__(self, engine: ProgressEngine):
        self.engine = engine

    async def process_interaction(
        self,
        user_id: Optional[str],
        message_text: str,
        topics: Optional[Iterable[str]] = None,
    ) -> InteractionResult:
        """
        Count the message, record its topics and diff the progress.

        Steps run one after another and each commits on its own; there is no
        rollback. If recording a topic fails, the message count and its XP
        stay written and the error propagates to the caller.

        The scholar check runs after the diff is computed, so a user who
        reaches level 5 on this message gets the badge persisted but not
        reported until their next interaction.
        """
        before = await self.engine.get_progress(user_id)

        await self.engine.increment_message_count(user_id)
        for topic in topics or []:
            await self.engine.add_explored_topic(user_id, topic)

        after = await self.engine.get_progress(user_id)

        leveled_up = after.level > before.level
        already_unlocked = {b.id for b in before.unlocked_badges}
        newly_unlocked = [b for b in after.unlocked_badges if b.id not in already_unlocked]

        if after.level >= SCHOLAR_LEVEL:
            await self.engine.unlock_badge(user_id, SCHOLAR)

        if user_id:
            logger.info(
                "Interaction for %s (%d chars): level %d -> %d, new badges %s",
                user_id,
                len(message_text or ""),
                before.level,
                after.level,
                [b.id for b in newly_unlocked],
            )

        return InteractionResult(
            newly_unlocked_badges=newly_unlocked,
            leveled_up=leveled_up,
            progress=after,
        )
