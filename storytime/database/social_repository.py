"""
Social graph repository - who follows whom.
"""

from datetime import datetime

from .connection import DatabaseConnection


class SocialRepository:
    """Repository for follow relationships."""

    def __init__(self, db: DatabaseConnection):
        self._db = db

    def follow(self, follower_id: str, following_id: str):
        """Follow an author. Following twice is a no-op."""
        with self._db.conn("follows") as conn:
            conn.execute(
                """INSERT INTO follows (follower_id, following_id, created_at)
                   VALUES (?, ?, ?)
                   ON CONFLICT(follower_id, following_id) DO NOTHING""",
                (follower_id, following_id, datetime.now().isoformat())
            )

    def get_following_ids(self, follower_id: str) -> set[str]:
        """Author IDs the user follows."""
        with self._db.conn("follows") as conn:
            rows = conn.execute(
                "SELECT following_id FROM follows WHERE follower_id = ?",
                (follower_id,)
            ).fetchall()
            return {row["following_id"] for row in rows if row["following_id"]}
