# campus_guide/badges.py
"""Badge catalog for the orientation progress tracker."""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

from .schemas import Badge

FRESHMAN = "freshman"
EXPLORER = "explorer"
NIGHT_OWL = "night_owl"
SCHOLAR = "scholar"


@dataclass(frozen=True)
class BadgeDefinition:
    id: str
    name: str
    description: str
    icon: str


# Catalog order is display order only; nothing compares badges by position.
BADGE_CATALOG: List[BadgeDefinition] = [
    BadgeDefinition(FRESHMAN, "Freshman", "Send your first message", "🎓"),
    BadgeDefinition(EXPLORER, "Explorer", "Ask about 3 different campus topics", "🧭"),
    BadgeDefinition(NIGHT_OWL, "Night Owl", "Chat between 10 PM and 6 AM", "🦉"),
    BadgeDefinition(SCHOLAR, "Scholar", "Reach level 5", "📚"),
]


def catalog_badges(unlocked: Optional[Dict[str, Optional[datetime]]] = None) -> List[Badge]:
    """
    Build the full badge list from the catalog.

    `unlocked` maps badge id -> unlock time for the badges a user has earned.
    Ids that are not in the catalog are ignored.
    """
    unlocked = unlocked or {}
    return [
        Badge(
            id=d.id,
            name=d.name,
            description=d.description,
            icon=d.icon,
            unlocked=d.id in unlocked,
            unlocked_at=unlocked.get(d.id),
        )
        for d in BADGE_CATALOG
    ]
