"""
Story repository - story rows and the discovery candidate query.
"""

import re
import uuid
from dataclasses import dataclass
from datetime import datetime

from .connection import DatabaseConnection
from .converters import row_to_story, to_timestamp
from .models import DBStory

_LIKE_WILDCARDS = re.compile(r"[%_]")


def clean_search_text(text: str | None) -> str:
    """Trim user search text and drop SQL LIKE wildcards."""
    if not text:
        return ""
    return _LIKE_WILDCARDS.sub("", text.strip())


@dataclass
class StoryQuery:
    """Filters for the candidate query. None means "no filter"."""
    status: str = "published"
    only_public_domain: bool = False
    text: str | None = None
    genre: str | None = None
    length_class: str | None = None
    ids: list[str] | None = None
    exclude_ids: list[str] | None = None
    author_ids: list[str] | None = None
    published_since: datetime | None = None
    limit: int | None = 180


class StoryRepository:
    """Repository for story operations."""

    def __init__(self, db: DatabaseConnection):
        self._db = db

    def add(
        self,
        title: str,
        slug: str,
        length_class: str,
        reading_time: int,
        genre: str,
        body: str = "",
        synopsis_1: str | None = None,
        tags: str | None = None,
        cover_url: str | None = None,
        cover_image_url: str | None = None,
        author_id: str | None = None,
        original_author: str | None = None,
        is_public_domain: bool = False,
        status: str = "draft",
        published_at: datetime | None = None,
        story_id: str | None = None,
    ) -> str:
        """Add a new story. Returns story ID."""
        story_id = story_id or str(uuid.uuid4())
        if status == "published" and published_at is None:
            published_at = datetime.now()
        with self._db.conn("stories") as conn:
            conn.execute(
                """INSERT INTO stories
                   (id, title, slug, synopsis_1, body, length_class, reading_time, genre,
                    tags, cover_url, cover_image_url, author_id, original_author,
                    is_public_domain, status, published_at, created_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (story_id, title, slug, synopsis_1, body, length_class, reading_time, genre,
                 tags, cover_url, cover_image_url, author_id, original_author,
                 is_public_domain, status, to_timestamp(published_at),
                 datetime.now().isoformat())
            )
        return story_id

    def get(self, story_id: str) -> DBStory | None:
        """Get single story by ID, any status."""
        with self._db.conn("stories") as conn:
            row = conn.execute(
                "SELECT * FROM stories WHERE id = ?", (story_id,)
            ).fetchone()
            return row_to_story(row) if row else None

    def get_by_slug(self, slug: str, published_only: bool = True) -> DBStory | None:
        """Get story by slug."""
        query = "SELECT * FROM stories WHERE slug = ?"
        if published_only:
            query += " AND status = 'published'"
        with self._db.conn("stories") as conn:
            row = conn.execute(query, (slug,)).fetchone()
            return row_to_story(row) if row else None

    def query(self, filters: StoryQuery) -> list[DBStory]:
        """
        Run the discovery candidate query.

        Text search matches title, synopsis and genre case-insensitively.
        Results are ordered newest first.
        """
        query = "SELECT * FROM stories WHERE status = ?"
        params: list = [filters.status]

        if filters.only_public_domain:
            query += " AND is_public_domain = 1"

        text = clean_search_text(filters.text)
        if text:
            pattern = f"%{text.casefold()}%"
            query += (
                " AND (casefold(title) LIKE ? OR casefold(COALESCE(synopsis_1, '')) LIKE ?"
                " OR casefold(genre) LIKE ?)"
            )
            params.extend([pattern, pattern, pattern])

        if filters.genre:
            query += " AND genre = ?"
            params.append(filters.genre)
        if filters.length_class:
            query += " AND length_class = ?"
            params.append(filters.length_class)

        if filters.ids is not None:
            if not filters.ids:
                return []
            placeholders = ",".join("?" * len(filters.ids))
            query += f" AND id IN ({placeholders})"
            params.extend(filters.ids)

        if filters.author_ids is not None:
            if not filters.author_ids:
                return []
            placeholders = ",".join("?" * len(filters.author_ids))
            query += f" AND author_id IN ({placeholders})"
            params.extend(filters.author_ids)

        if filters.exclude_ids:
            placeholders = ",".join("?" * len(filters.exclude_ids))
            query += f" AND id NOT IN ({placeholders})"
            params.extend(filters.exclude_ids)

        if filters.published_since is not None:
            query += " AND published_at >= ?"
            params.append(filters.published_since.isoformat())

        query += " ORDER BY published_at DESC, created_at DESC"
        if filters.limit is not None:
            query += " LIMIT ?"
            params.append(filters.limit)

        with self._db.conn("stories") as conn:
            rows = conn.execute(query, params).fetchall()
            return [row_to_story(row) for row in rows]

    def get_by_ids(self, story_ids: list[str]) -> list[DBStory]:
        """Get published stories among the given IDs (no particular order)."""
        return self.query(StoryQuery(ids=list(story_ids), limit=None))

    def update_status(self, story_id: str, status: str) -> bool:
        """
        Move a story to a new status.

        Publishing stamps published_at the first time; later transitions
        keep it. Returns False if the story does not exist.
        """
        with self._db.conn("stories") as conn:
            cursor = conn.execute(
                """UPDATE stories SET
                   status = ?,
                   published_at = CASE
                       WHEN ? = 'published' AND published_at IS NULL THEN ?
                       ELSE published_at
                   END
                   WHERE id = ?""",
                (status, status, datetime.now().isoformat(), story_id)
            )
            return cursor.rowcount > 0
