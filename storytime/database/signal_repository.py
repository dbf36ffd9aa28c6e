"""
Signal repository - engagement events, reactions, and legacy signal tables.

Each query method reads one signal source for a set of stories, optionally
restricted to rows created at or after a cutoff.
"""

from datetime import datetime

from ..identity import Identity, identity_columns
from .connection import DatabaseConnection
from .converters import to_timestamp
from .models import EventRow, ReactionRow, SignalRow


class SignalRepository:
    """Repository for engagement signal sources."""

    def __init__(self, db: DatabaseConnection):
        self._db = db

    # ─────────────────────────────────────────────────────────────
    # Writes
    # ─────────────────────────────────────────────────────────────

    def record_event(
        self,
        story_id: str,
        event_type: str,
        identity: Identity,
        created_at: datetime | None = None,
    ) -> int:
        """Append an engagement event. Returns event row ID."""
        user_id, anon_session_id = identity_columns(identity)
        with self._db.conn("story_events") as conn:
            cursor = conn.execute(
                """INSERT INTO story_events
                   (story_id, event_type, user_id, anon_session_id, created_at)
                   VALUES (?, ?, ?, ?, ?)""",
                (story_id, event_type, user_id, anon_session_id,
                 to_timestamp(created_at or datetime.now()))
            )
            return cursor.lastrowid

    def add_reaction(
        self,
        story_id: str,
        value: str,
        identity: Identity,
        created_at: datetime | None = None,
    ) -> int:
        """Add a like/dislike to the unified reactions table."""
        user_id, anon_session_id = identity_columns(identity)
        with self._db.conn("reactions") as conn:
            cursor = conn.execute(
                """INSERT INTO reactions
                   (story_id, value, user_id, anon_session_id, created_at)
                   VALUES (?, ?, ?, ?, ?)""",
                (story_id, value, user_id, anon_session_id,
                 to_timestamp(created_at or datetime.now()))
            )
            return cursor.lastrowid

    def add_legacy_like(
        self,
        story_id: str,
        user_id: str | None = None,
        created_at: datetime | None = None,
    ) -> int:
        """Add a row to the legacy story_likes table."""
        with self._db.conn("story_likes") as conn:
            cursor = conn.execute(
                "INSERT INTO story_likes (story_id, user_id, created_at) VALUES (?, ?, ?)",
                (story_id, user_id, to_timestamp(created_at or datetime.now()))
            )
            return cursor.lastrowid

    def add_completion(
        self,
        story_id: str,
        user_id: str | None = None,
        created_at: datetime | None = None,
    ) -> int:
        """Add a row to the legacy completions table."""
        with self._db.conn("completions") as conn:
            cursor = conn.execute(
                "INSERT INTO completions (story_id, user_id, created_at) VALUES (?, ?, ?)",
                (story_id, user_id, to_timestamp(created_at or datetime.now()))
            )
            return cursor.lastrowid

    # ─────────────────────────────────────────────────────────────
    # Reads
    # ─────────────────────────────────────────────────────────────

    def query_events(
        self,
        story_ids: list[str],
        since: datetime | None = None,
    ) -> list[EventRow]:
        """Impression, open and complete events for the stories."""
        rows = self._select("story_events", "story_id, event_type, created_at", story_ids, since)
        return [EventRow(row["story_id"], row["event_type"], row["created_at"]) for row in rows]

    def query_reactions(
        self,
        story_ids: list[str],
        since: datetime | None = None,
    ) -> list[ReactionRow]:
        """Unified like/dislike reactions for the stories."""
        rows = self._select("reactions", "story_id, value, created_at", story_ids, since)
        return [ReactionRow(row["story_id"], row["value"], row["created_at"]) for row in rows]

    def query_legacy_likes(
        self,
        story_ids: list[str],
        since: datetime | None = None,
    ) -> list[SignalRow]:
        """Rows from the legacy story_likes table."""
        rows = self._select("story_likes", "story_id, created_at", story_ids, since)
        return [SignalRow(row["story_id"], row["created_at"]) for row in rows]

    def query_legacy_completions(
        self,
        story_ids: list[str],
        since: datetime | None = None,
    ) -> list[SignalRow]:
        """Rows from the legacy completions table."""
        rows = self._select("completions", "story_id, created_at", story_ids, since)
        return [SignalRow(row["story_id"], row["created_at"]) for row in rows]

    def _select(
        self,
        table: str,
        columns: str,
        story_ids: list[str],
        since: datetime | None,
    ) -> list:
        if not story_ids:
            return []
        placeholders = ",".join("?" * len(story_ids))
        query = f"SELECT {columns} FROM {table} WHERE story_id IN ({placeholders})"
        params: list = list(story_ids)
        if since is not None:
            query += " AND created_at >= ?"
            params.append(since.isoformat())

        with self._db.conn(table) as conn:
            return conn.execute(query, params).fetchall()
