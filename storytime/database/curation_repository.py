"""
Curation repository - featured items and monthly editorial picks.
"""

from datetime import date, datetime

from .connection import DatabaseConnection
from .converters import row_to_editorial_pick, row_to_featured_item, to_timestamp
from .models import DBEditorialPick, DBFeaturedItem


class CurationRepository:
    """Repository for editorially curated story lists."""

    def __init__(self, db: DatabaseConnection):
        self._db = db

    # --- Featured ---

    def add_featured(
        self,
        story_id: str,
        sort_order: int = 0,
        title_override: str | None = None,
        subtitle: str | None = None,
        starts_at: datetime | None = None,
        ends_at: datetime | None = None,
        is_active: bool = True,
    ) -> int:
        """Add a featured item. Returns its ID."""
        with self._db.conn("featured_items") as conn:
            cursor = conn.execute(
                """INSERT INTO featured_items
                   (story_id, sort_order, title_override, subtitle,
                    starts_at, ends_at, is_active, created_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                (story_id, sort_order, title_override, subtitle,
                 to_timestamp(starts_at), to_timestamp(ends_at), is_active,
                 datetime.now().isoformat())
            )
            return cursor.lastrowid

    def get_active_featured(self, now: datetime | None = None) -> list[DBFeaturedItem]:
        """
        Active featured items whose schedule includes now.

        Missing bounds are open. Ordered by sort_order, newest entry first
        within the same slot.
        """
        now = now or datetime.now()
        with self._db.conn("featured_items") as conn:
            rows = conn.execute(
                """SELECT * FROM featured_items
                   WHERE is_active = 1
                   ORDER BY sort_order ASC, created_at DESC, id DESC"""
            ).fetchall()

        items = [row_to_featured_item(row) for row in rows]
        return [
            item for item in items
            if (item.starts_at is None or item.starts_at <= now)
            and (item.ends_at is None or item.ends_at >= now)
        ]

    # --- Editorial picks ---

    def add_editorial_pick(self, story_id: str, month_label: date, sort_order: int = 0) -> int:
        """Add a monthly editorial pick. Returns its ID."""
        with self._db.conn("editorial_picks") as conn:
            cursor = conn.execute(
                "INSERT INTO editorial_picks (story_id, month_label, sort_order) VALUES (?, ?, ?)",
                (story_id, month_label.isoformat(), sort_order)
            )
            return cursor.lastrowid

    def get_editorial_picks(self, start: date, end: date) -> list[DBEditorialPick]:
        """Picks with start <= month_label < end, latest month first."""
        with self._db.conn("editorial_picks") as conn:
            rows = conn.execute(
                """SELECT * FROM editorial_picks
                   WHERE month_label >= ? AND month_label < ?
                   ORDER BY month_label DESC, sort_order ASC, id ASC""",
                (start.isoformat(), end.isoformat())
            ).fetchall()
            return [row_to_editorial_pick(row) for row in rows]
