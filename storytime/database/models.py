"""
Database models - dataclasses for database entities.
"""

from dataclasses import dataclass
from datetime import date, datetime

LENGTH_CLASSES = ("flash", "short", "storytime")

EVENT_TYPES = ("impression", "open", "complete")


@dataclass
class DBStory:
    id: str
    title: str
    slug: str
    body: str
    length_class: str
    reading_time: int
    genre: str
    status: str
    published_at: datetime | None
    synopsis_1: str | None = None
    tags: str | None = None
    cover_url: str | None = None
    cover_image_url: str | None = None
    author_id: str | None = None
    original_author: str | None = None
    is_public_domain: bool = False


@dataclass
class DBVisibility:
    id: int
    story_id: str
    user_id: str | None
    anon_session_id: str | None
    dismissed: bool
    snooze_until: datetime | None

    def is_hidden(self, now: datetime) -> bool:
        """Dismissed, or snoozed until a time still in the future."""
        if self.dismissed:
            return True
        return self.snooze_until is not None and self.snooze_until > now


@dataclass
class DBFeaturedItem:
    id: int
    story_id: str
    sort_order: int
    title_override: str | None
    subtitle: str | None
    starts_at: datetime | None
    ends_at: datetime | None
    is_active: bool


@dataclass
class DBEditorialPick:
    id: int
    story_id: str
    month_label: date
    sort_order: int


# Signal rows: the minimal projection the metrics aggregator reads.

@dataclass(frozen=True)
class EventRow:
    story_id: str
    event_type: str
    created_at: str


@dataclass(frozen=True)
class ReactionRow:
    story_id: str
    value: str
    created_at: str


@dataclass(frozen=True)
class SignalRow:
    story_id: str
    created_at: str
