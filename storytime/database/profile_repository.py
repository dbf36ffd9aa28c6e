"""
Profile repository - author display names.
"""

import uuid
from datetime import datetime

from .connection import DatabaseConnection


class ProfileRepository:
    """Repository for author profiles."""

    def __init__(self, db: DatabaseConnection):
        self._db = db

    def add(self, display_name: str | None, profile_id: str | None = None) -> str:
        """Add a profile. Returns profile ID."""
        profile_id = profile_id or str(uuid.uuid4())
        with self._db.conn("profiles") as conn:
            conn.execute(
                "INSERT INTO profiles (id, display_name, created_at) VALUES (?, ?, ?)",
                (profile_id, display_name, datetime.now().isoformat())
            )
        return profile_id

    def get_display_names(self, profile_ids: list[str]) -> dict[str, str | None]:
        """Map profile ID to display name for the given IDs."""
        if not profile_ids:
            return {}
        placeholders = ",".join("?" * len(profile_ids))
        with self._db.conn("profiles") as conn:
            rows = conn.execute(
                f"SELECT id, display_name FROM profiles WHERE id IN ({placeholders})",
                list(profile_ids)
            ).fetchall()
            return {row["id"]: row["display_name"] for row in rows}
