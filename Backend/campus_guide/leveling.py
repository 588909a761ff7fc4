# campus_guide/leveling.py
"""Experience and level rules shared by the progress engine and the store."""

XP_PER_LEVEL = 100
MESSAGE_XP = 10
BADGE_BONUS_XP = 50

EXPLORER_TOPIC_COUNT = 3
SCHOLAR_LEVEL = 5

# Local-time window [22:00, 06:00) for the night owl badge
NIGHT_START_HOUR = 22
NIGHT_END_HOUR = 6


def compute_level(experience: int) -> int:
    """Level for a given amount of experience: floor(xp / 100) + 1."""
    return max(experience, 0) // XP_PER_LEVEL + 1


def next_level_threshold(level: int) -> int:
    """
    Experience shown to the client as the next level target.

    Note: compute_level(level * 100) == level + 1, so this is the XP at which
    the next level starts, counted from zero rather than from the current XP.
    """
    return level * XP_PER_LEVEL


def is_night_hour(hour: int) -> bool:
    return hour >= NIGHT_START_HOUR or hour < NIGHT_END_HOUR
