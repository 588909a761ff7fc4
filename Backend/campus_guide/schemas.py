# campus_guide/schemas.py
from datetime import datetime
from typing import Optional, List
from uuid import UUID

from pydantic import BaseModel


# ---------------- Progress ----------------

class Badge(BaseModel):
    id: str
    name: str
    description: str = ""
    icon: str = ""
    unlocked: bool = False
    unlocked_at: Optional[datetime] = None


class UserProgress(BaseModel):
    experience: int = 0
    level: int = 1
    next_level_xp: int = 100
    badges: List[Badge] = []
    topics_explored: List[str] = []
    messages_count: int = 0
    last_message_at: Optional[datetime] = None

    @property
    def unlocked_badges(self) -> List[Badge]:
        return [b for b in self.badges if b.unlocked]


class InteractionResult(BaseModel):
    newly_unlocked_badges: List[Badge] = []
    leveled_up: bool = False
    progress: Optional[UserProgress] = None


class LeaderboardEntry(BaseModel):
    user_id: str
    experience_points: int
    level: int
    total_messages: int


class ContextSummary(BaseModel):
    summary: str


# ---------------- Campus ----------------

class UniversitySummary(BaseModel):
    id: str
    name: str
    short_name: str
    persona_name: str
    logo_emoji: str = ""
    theme_color: str = ""


class FaqItem(BaseModel):
    question: str
    answer: str


class MapLocation(BaseModel):
    lat: float
    lng: float
    name: str


class CampusEvent(BaseModel):
    title: str
    date: str  # YYYY-MM-DD
    description: str = ""
    location: Optional[str] = None


class EventSummary(BaseModel):
    university_id: str
    summary: str
    events: List[CampusEvent] = []


# ---------------- Chat ----------------

class HistoryMessage(BaseModel):
    sender: str  # "user" or "ai"
    text: str


class ChatCreate(BaseModel):
    university_id: str = "uw"
    title: Optional[str] = None


class ChatSummary(BaseModel):
    chat_id: UUID
    university_id: str
    title: str
    created_at: datetime
    updated_at: datetime


class ChatMessage(BaseModel):
    sender: str
    text: str
    created_at: Optional[datetime] = None


class ChatPost(BaseModel):
    chat_id: Optional[UUID] = None  # omitted for guests and unsaved chats
    university_id: str = "uw"
    message: str
    history: List[HistoryMessage] = []


class ChatReply(BaseModel):
    chat_id: Optional[UUID] = None
    reply: str
    map_location: Optional[MapLocation] = None
    topics: List[str] = []
    newly_unlocked_badges: List[Badge] = []
    leveled_up: bool = False
    warning: Optional[str] = None
