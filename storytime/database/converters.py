"""
Database row converters - convert SQLite rows to dataclasses.
"""

import sqlite3
from datetime import date, datetime

from .models import DBEditorialPick, DBFeaturedItem, DBStory, DBVisibility


def as_local_naive(value: datetime) -> datetime:
    """Timestamps are stored as naive local time; convert aware values."""
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse a stored ISO timestamp, returning None when missing or malformed."""
    if not value:
        return None
    try:
        return as_local_naive(datetime.fromisoformat(value))
    except ValueError:
        return None


def to_timestamp(value: datetime | None) -> str | None:
    """Format a datetime for storage."""
    return as_local_naive(value).isoformat() if value else None


def row_to_story(row: sqlite3.Row) -> DBStory:
    """Convert a database row to a DBStory."""
    return DBStory(
        id=row["id"],
        title=row["title"],
        slug=row["slug"],
        body=row["body"] or "",
        length_class=row["length_class"],
        reading_time=int(row["reading_time"]),
        genre=row["genre"],
        status=row["status"],
        published_at=parse_timestamp(row["published_at"]),
        synopsis_1=row["synopsis_1"],
        tags=row["tags"],
        cover_url=row["cover_url"],
        cover_image_url=row["cover_image_url"],
        author_id=row["author_id"],
        original_author=row["original_author"],
        is_public_domain=bool(row["is_public_domain"]),
    )


def row_to_visibility(row: sqlite3.Row) -> DBVisibility:
    """Convert a database row to a DBVisibility."""
    return DBVisibility(
        id=row["id"],
        story_id=row["story_id"],
        user_id=row["user_id"],
        anon_session_id=row["anon_session_id"],
        dismissed=bool(row["dismissed"]),
        snooze_until=parse_timestamp(row["snooze_until"]),
    )


def row_to_featured_item(row: sqlite3.Row) -> DBFeaturedItem:
    """Convert a database row to a DBFeaturedItem."""
    return DBFeaturedItem(
        id=row["id"],
        story_id=row["story_id"],
        sort_order=row["sort_order"] or 0,
        title_override=row["title_override"],
        subtitle=row["subtitle"],
        starts_at=parse_timestamp(row["starts_at"]),
        ends_at=parse_timestamp(row["ends_at"]),
        is_active=bool(row["is_active"]),
    )


def row_to_editorial_pick(row: sqlite3.Row) -> DBEditorialPick:
    """Convert a database row to a DBEditorialPick."""
    return DBEditorialPick(
        id=row["id"],
        story_id=row["story_id"],
        month_label=date.fromisoformat(row["month_label"]),
        sort_order=row["sort_order"] or 0,
    )
