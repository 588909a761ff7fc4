# campus_guide/utils.py
import re
from typing import Dict, List

# ---------------- CAMPUS TOPICS ----------------
# Topics a new student typically asks an orientation guide about. The order
# here is the order extract_topics() reports them in.

CAMPUS_TOPICS: Dict[str, List[str]] = {
    "food": [
        "food", "eat", "dining", "cafeteria", "cafe", "coffee", "lunch",
        "dinner", "breakfast", "meal plan", "restaurant", "hungry",
    ],
    "transit": [
        "bus", "transit", "train", "subway", "ttc", "grt", "go train",
        "parking", "bike", "commute", "shuttle", "get there",
    ],
    "housing": [
        "residence", "dorm", "housing", "roommate", "rez", "apartment",
        "move-in", "move in", "rent", "landlord",
    ],
    "library": [
        "library", "study space", "study spot", "quiet place", "books",
        "printing",
    ],
    "health": [
        "health", "clinic", "doctor", "counselling", "counseling",
        "mental health", "pharmacy", "sick",
    ],
    "fitness": [
        "gym", "fitness", "workout", "pool", "athletics", "rec centre",
        "rec center", "sports",
    ],
    "clubs": [
        "club", "society", "student union", "volunteer", "join",
    ],
    "academics": [
        "course", "class", "lecture", "exam", "tutor", "advisor",
        "professor", "enrol", "enroll", "timetable", "registrar",
    ],
    "events": [
        "event", "orientation week", "frosh", "o-week", "party", "concert",
        "festival",
    ],
    "safety": [
        "safety", "security", "safewalk", "emergency", "campus police",
    ],
    "money": [
        "tuition", "fees", "bank", "budget", "osap", "scholarship",
        "bursary", "financial aid",
    ],
}


# Whole words only, with an optional plural, so "bus" does not match "business"
_TOPIC_PATTERNS: Dict[str, List[re.Pattern]] = {
    topic: [re.compile(rf"\b{re.escape(k)}(?:s|es)?\b") for k in keywords]
    for topic, keywords in CAMPUS_TOPICS.items()
}


def extract_topics(text: str) -> List[str]:
    """
    Very simple keyword-based classifier that maps a message to the campus
    topics it touches, for progress tracking.

    It does NOT have to be perfect; just good enough to reward curiosity.
    """
    if not text:
        return []

    t = text.lower()
    return [
        topic
        for topic, patterns in _TOPIC_PATTERNS.items()
        if any(p.search(t) for p in patterns)
    ]
