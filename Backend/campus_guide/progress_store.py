# campus_guide/progress_store.py
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from psycopg import Error as PsycopgError, sql
from psycopg.types.json import Jsonb
from psycopg_pool import AsyncConnectionPool

from .badges import catalog_badges
from .exceptions import StoreUnavailable
from .leveling import next_level_threshold
from .schemas import Badge, LeaderboardEntry, UserProgress

logger = logging.getLogger(__name__)

# Columns of user_stats that the engine is allowed to write
PROGRESS_COLUMNS = (
    "experience_points",
    "level",
    "total_messages",
    "badges_unlocked",
    "topics_explored",
    "last_message_at",
)

LEADERBOARD_COLUMNS = ("user_id", "experience_points", "level", "total_messages")


class ProgressStore:
    """Row access for the user_stats table, keyed by user id.

    Every psycopg failure is logged and re-raised as StoreUnavailable; the
    engine decides whether to swallow it (reads) or propagate it (writes).
    """

    def __init__(self, pool: AsyncConnectionPool):
        self.pool = pool

    async def fetch_row(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Return the stored row for `user_id`, or None when there is none."""
        query = sql.SQL("SELECT {cols} FROM user_stats WHERE user_id = %s").format(
            cols=sql.SQL(", ").join(map(sql.Identifier, PROGRESS_COLUMNS)),
        )
        try:
            async with self.pool.connection() as conn:
                cur = await conn.execute(query, (user_id,))
                row = await cur.fetchone()
        except PsycopgError as e:
            logger.error("Error fetching user stats for %s: %s", user_id, e)
            raise StoreUnavailable(str(e)) from e

        if row is None:
            return None
        return dict(zip(PROGRESS_COLUMNS, row))

    async def update_row(self, user_id: str, changes: Dict[str, Any]) -> None:
        """
        Write the given columns for `user_id` in a single statement.

        Implemented as an upsert so the first write for a new user creates
        the row with table defaults for the other columns.
        """
        if not changes:
            return
        unknown = set(changes) - set(PROGRESS_COLUMNS)
        if unknown:
            raise ValueError(f"Unknown user_stats columns: {sorted(unknown)}")

        cols = list(changes)
        query = sql.SQL(
            "INSERT INTO user_stats (user_id, {cols}) VALUES (%s, {values}) "
            "ON CONFLICT (user_id) DO UPDATE SET {assignments}, updated_at = now()"
        ).format(
            cols=sql.SQL(", ").join(map(sql.Identifier, cols)),
            values=sql.SQL(", ").join([sql.Placeholder()] * len(cols)),
            assignments=sql.SQL(", ").join(
                sql.SQL("{col} = EXCLUDED.{col}").format(col=sql.Identifier(c))
                for c in cols
            ),
        )
        params = [user_id] + [_adapt(c, changes[c]) for c in cols]

        try:
            async with self.pool.connection() as conn:
                await conn.execute(query, params)
        except PsycopgError as e:
            logger.error("Error updating user stats for %s: %s", user_id, e)
            raise StoreUnavailable(str(e)) from e

    async def top_rows(self, limit: int = 10) -> List[Dict[str, Any]]:
        """Leaderboard read: highest experience first."""
        try:
            async with self.pool.connection() as conn:
                cur = await conn.execute(
                    """
                    SELECT user_id, experience_points, level, total_messages
                    FROM user_stats
                    ORDER BY experience_points DESC
                    LIMIT %s
                    """,
                    (limit,),
                )
                rows = await cur.fetchall()
        except PsycopgError as e:
            logger.error("Error fetching leaderboard: %s", e)
            raise StoreUnavailable(str(e)) from e

        return [dict(zip(LEADERBOARD_COLUMNS, r)) for r in rows]


def _adapt(column: str, value: Any) -> Any:
    if column == "badges_unlocked":
        return Jsonb(value)
    return value


# -------------------------------------------------------------------
# Row <-> model translation
# -------------------------------------------------------------------
def _parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    try:
        # Older rows were written by a JS client with a trailing "Z"
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        logger.warning("Ignoring unparseable badge timestamp %r", value)
        return None


def progress_from_row(row: Optional[Dict[str, Any]]) -> UserProgress:
    """Build a UserProgress from a user_stats row (None means defaults)."""
    if row is None:
        return UserProgress(badges=catalog_badges())

    unlocked: Dict[str, Optional[datetime]] = {}
    for entry in row.get("badges_unlocked") or []:
        if not isinstance(entry, dict) or not entry.get("id"):
            continue
        unlocked[entry["id"]] = _parse_timestamp(
            entry.get("unlocked_at") or entry.get("unlockedAt")
        )

    level = row.get("level") or 1
    return UserProgress(
        experience=row.get("experience_points") or 0,
        level=level,
        next_level_xp=next_level_threshold(level),
        badges=catalog_badges(unlocked),
        topics_explored=list(row.get("topics_explored") or []),
        messages_count=row.get("total_messages") or 0,
        last_message_at=row.get("last_message_at"),
    )


def badges_to_row(badges: Iterable[Badge]) -> List[Dict[str, Any]]:
    """Only unlocked badges are persisted; locked ones come from the catalog."""
    rows: List[Dict[str, Any]] = []
    for b in badges:
        if not b.unlocked:
            continue
        at = b.unlocked_at or datetime.now(timezone.utc)
        rows.append({"id": b.id, "name": b.name, "unlocked_at": at.isoformat()})
    return rows


def leaderboard_from_rows(rows: Iterable[Dict[str, Any]]) -> List[LeaderboardEntry]:
    return [
        LeaderboardEntry(
            user_id=str(r["user_id"]),
            experience_points=r.get("experience_points") or 0,
            level=r.get("level") or 1,
            total_messages=r.get("total_messages") or 0,
        )
        for r in rows
    ]
