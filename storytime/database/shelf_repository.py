"""
Shelf repository - reader shelves and the saves signal.
"""

import uuid
from datetime import datetime

from .connection import DatabaseConnection
from .converters import to_timestamp
from .models import SignalRow

DEFAULT_SHELF_NAME = "Read Later"


class ShelfRepository:
    """Repository for shelves and shelf items."""

    def __init__(self, db: DatabaseConnection):
        self._db = db

    def get_shelf_owner(self, shelf_id: str) -> str | None:
        """Return the owning user ID of a shelf, or None if it doesn't exist."""
        with self._db.conn("shelves") as conn:
            row = conn.execute(
                "SELECT user_id FROM shelves WHERE id = ?", (shelf_id,)
            ).fetchone()
            return row["user_id"] if row else None

    def get_or_create_shelf(self, user_id: str, name: str = DEFAULT_SHELF_NAME) -> str:
        """Find a user's shelf by name, creating it if missing. Returns shelf ID."""
        name = name.strip() or DEFAULT_SHELF_NAME
        with self._db.conn("shelves") as conn:
            row = conn.execute(
                "SELECT id FROM shelves WHERE user_id = ? AND name = ?",
                (user_id, name)
            ).fetchone()
            if row:
                return row["id"]

            shelf_id = str(uuid.uuid4())
            conn.execute(
                "INSERT INTO shelves (id, user_id, name, created_at) VALUES (?, ?, ?, ?)",
                (shelf_id, user_id, name, datetime.now().isoformat())
            )
            return shelf_id

    def add_item(
        self,
        shelf_id: str,
        story_id: str,
        created_at: datetime | None = None,
    ) -> bool:
        """
        Put a story on a shelf. Idempotent per (shelf, story).

        Returns True if a new row was inserted.
        """
        with self._db.conn("shelf_items") as conn:
            cursor = conn.execute(
                """INSERT INTO shelf_items (shelf_id, story_id, created_at)
                   VALUES (?, ?, ?)
                   ON CONFLICT(shelf_id, story_id) DO NOTHING""",
                (shelf_id, story_id, to_timestamp(created_at or datetime.now()))
            )
            return cursor.rowcount > 0

    def query_saves(
        self,
        story_ids: list[str],
        since: datetime | None = None,
    ) -> list[SignalRow]:
        """Shelf-add rows for the stories (the saves signal)."""
        if not story_ids:
            return []
        placeholders = ",".join("?" * len(story_ids))
        query = f"SELECT story_id, created_at FROM shelf_items WHERE story_id IN ({placeholders})"
        params: list = list(story_ids)
        if since is not None:
            query += " AND created_at >= ?"
            params.append(since.isoformat())

        with self._db.conn("shelf_items") as conn:
            rows = conn.execute(query, params).fetchall()
            return [SignalRow(row["story_id"], row["created_at"]) for row in rows]
