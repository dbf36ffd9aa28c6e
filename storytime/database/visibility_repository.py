"""
Repository for per-viewer story visibility (dismiss/snooze state).
"""

from datetime import datetime

from ..identity import Identity, identity_columns
from .connection import DatabaseConnection
from .converters import row_to_visibility, to_timestamp
from .models import DBVisibility


class VisibilityRepository:
    """Repository for per-viewer dismiss/snooze records."""

    def __init__(self, db: DatabaseConnection):
        self._db = db

    def _get_or_create_state(self, conn, identity: Identity, story_id: str) -> int:
        """
        Get or create visibility record (internal helper).

        Returns the record ID.
        """
        row = conn.execute(
            f"SELECT id FROM story_visibility WHERE {identity.column} = ? AND story_id = ?",
            (identity.value, story_id)
        ).fetchone()

        if row:
            return row["id"]

        user_id, anon_session_id = identity_columns(identity)
        cursor = conn.execute(
            """
            INSERT INTO story_visibility
                (story_id, user_id, anon_session_id, dismissed, snooze_until, updated_at)
            VALUES (?, ?, ?, FALSE, NULL, ?)
            """,
            (story_id, user_id, anon_session_id, datetime.now().isoformat())
        )
        return cursor.lastrowid

    def dismiss(self, identity: Identity, story_id: str):
        """Hide a story for this viewer until manually reversed."""
        with self._db.conn("story_visibility") as conn:
            record_id = self._get_or_create_state(conn, identity, story_id)
            conn.execute(
                """
                UPDATE story_visibility
                SET dismissed = TRUE, snooze_until = NULL, updated_at = ?
                WHERE id = ?
                """,
                (datetime.now().isoformat(), record_id)
            )

    def snooze(self, identity: Identity, story_id: str, until: datetime):
        """Hide a story for this viewer until the given time."""
        with self._db.conn("story_visibility") as conn:
            record_id = self._get_or_create_state(conn, identity, story_id)
            conn.execute(
                """
                UPDATE story_visibility
                SET dismissed = FALSE, snooze_until = ?, updated_at = ?
                WHERE id = ?
                """,
                (to_timestamp(until), datetime.now().isoformat(), record_id)
            )

    def get_records(self, identity: Identity) -> list[DBVisibility]:
        """All visibility records for a viewer."""
        with self._db.conn("story_visibility") as conn:
            rows = conn.execute(
                f"SELECT * FROM story_visibility WHERE {identity.column} = ?",
                (identity.value,)
            ).fetchall()
            return [row_to_visibility(row) for row in rows]

    def get_hidden_story_ids(self, identity: Identity, now: datetime | None = None) -> set[str]:
        """
        Story IDs currently hidden for a viewer.

        A snooze whose time has passed no longer hides the story; nothing
        needs to clear it.
        """
        now = now or datetime.now()
        return {
            record.story_id
            for record in self.get_records(identity)
            if record.is_hidden(now)
        }
