"""
Database connection management and schema initialization.
"""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from ..errors import StoreTimeoutError, UpstreamQueryError

DEFAULT_TIMEOUT_SECONDS = 5.0

# SQLite reports lock contention through OperationalError messages
_RETRYABLE_MARKERS = ("database is locked", "database table is locked", "busy", "interrupted")


def translate_error(error: sqlite3.Error, source: str | None = None) -> UpstreamQueryError:
    """Map a SQLite error to the store error taxonomy, keeping its message."""
    message = str(error) or error.__class__.__name__
    if isinstance(error, sqlite3.OperationalError) and any(
        marker in message.lower() for marker in _RETRYABLE_MARKERS
    ):
        return StoreTimeoutError(message, source=source)
    return UpstreamQueryError(message, source=source)


def _casefold(value: str | None) -> str | None:
    """Unicode case folding for text search; SQLite LOWER only folds ASCII."""
    return value.casefold() if value is not None else None


class DatabaseConnection:
    """Manages database connection and schema."""

    def __init__(self, db_path: Path, timeout: float = DEFAULT_TIMEOUT_SECONDS):
        self.db_path = db_path
        self.timeout = timeout
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    @contextmanager
    def conn(self, source: str | None = None) -> Iterator[sqlite3.Connection]:
        """
        Get database connection with row factory.

        SQLite errors raised inside the block are re-raised as
        UpstreamQueryError (or StoreTimeoutError for lock timeouts).
        """
        try:
            connection = sqlite3.connect(self.db_path, timeout=self.timeout)
        except sqlite3.Error as e:
            raise translate_error(e, source) from e
        connection.row_factory = sqlite3.Row
        connection.create_function("casefold", 1, _casefold, deterministic=True)
        try:
            connection.execute("PRAGMA foreign_keys = ON")
            yield connection
            connection.commit()
        except sqlite3.Error as e:
            raise translate_error(e, source) from e
        finally:
            connection.close()

    def _init_schema(self):
        """Initialize database schema."""
        with self.conn("schema") as connection:
            connection.executescript("""
                CREATE TABLE IF NOT EXISTS profiles (
                    id TEXT PRIMARY KEY,
                    display_name TEXT,
                    created_at TIMESTAMP
                );

                CREATE TABLE IF NOT EXISTS stories (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    slug TEXT UNIQUE NOT NULL,
                    synopsis_1 TEXT,
                    body TEXT NOT NULL DEFAULT '',
                    length_class TEXT NOT NULL
                        CHECK(length_class IN ('flash', 'short', 'storytime')),
                    reading_time INTEGER NOT NULL CHECK(reading_time > 0),
                    genre TEXT NOT NULL,
                    tags TEXT,
                    cover_url TEXT,
                    cover_image_url TEXT,
                    author_id TEXT REFERENCES profiles(id) ON DELETE SET NULL,
                    original_author TEXT,
                    is_public_domain BOOLEAN DEFAULT FALSE,
                    status TEXT NOT NULL DEFAULT 'draft'
                        CHECK(status IN ('draft', 'pending', 'published', 'hidden')),
                    published_at TIMESTAMP,
                    created_at TIMESTAMP
                );

                CREATE TABLE IF NOT EXISTS story_events (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    story_id TEXT NOT NULL REFERENCES stories(id) ON DELETE CASCADE,
                    event_type TEXT NOT NULL
                        CHECK(event_type IN ('impression', 'open', 'complete')),
                    user_id TEXT,
                    anon_session_id TEXT,
                    created_at TIMESTAMP NOT NULL,
                    CHECK((user_id IS NULL) != (anon_session_id IS NULL))
                );

                CREATE TABLE IF NOT EXISTS reactions (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    story_id TEXT NOT NULL REFERENCES stories(id) ON DELETE CASCADE,
                    value TEXT NOT NULL CHECK(value IN ('like', 'dislike')),
                    user_id TEXT,
                    anon_session_id TEXT,
                    created_at TIMESTAMP NOT NULL
                );

                CREATE TABLE IF NOT EXISTS story_likes (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    story_id TEXT NOT NULL REFERENCES stories(id) ON DELETE CASCADE,
                    user_id TEXT,
                    created_at TIMESTAMP NOT NULL
                );

                CREATE TABLE IF NOT EXISTS completions (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    story_id TEXT NOT NULL REFERENCES stories(id) ON DELETE CASCADE,
                    user_id TEXT,
                    created_at TIMESTAMP NOT NULL
                );

                CREATE TABLE IF NOT EXISTS shelves (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    created_at TIMESTAMP,
                    UNIQUE(user_id, name)
                );

                CREATE TABLE IF NOT EXISTS shelf_items (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    shelf_id TEXT NOT NULL REFERENCES shelves(id) ON DELETE CASCADE,
                    story_id TEXT NOT NULL REFERENCES stories(id) ON DELETE CASCADE,
                    created_at TIMESTAMP NOT NULL,
                    UNIQUE(shelf_id, story_id)
                );

                CREATE TABLE IF NOT EXISTS follows (
                    follower_id TEXT NOT NULL,
                    following_id TEXT NOT NULL,
                    created_at TIMESTAMP,
                    PRIMARY KEY (follower_id, following_id)
                );

                CREATE TABLE IF NOT EXISTS story_visibility (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    story_id TEXT NOT NULL REFERENCES stories(id) ON DELETE CASCADE,
                    user_id TEXT,
                    anon_session_id TEXT,
                    dismissed BOOLEAN DEFAULT FALSE,
                    snooze_until TIMESTAMP,
                    updated_at TIMESTAMP,
                    CHECK((user_id IS NULL) != (anon_session_id IS NULL))
                );

                CREATE TABLE IF NOT EXISTS featured_items (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    story_id TEXT NOT NULL REFERENCES stories(id) ON DELETE CASCADE,
                    sort_order INTEGER DEFAULT 0,
                    title_override TEXT,
                    subtitle TEXT,
                    starts_at TIMESTAMP,
                    ends_at TIMESTAMP,
                    is_active BOOLEAN DEFAULT TRUE,
                    created_at TIMESTAMP
                );

                CREATE TABLE IF NOT EXISTS editorial_picks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    story_id TEXT NOT NULL REFERENCES stories(id) ON DELETE CASCADE,
                    month_label DATE NOT NULL,
                    sort_order INTEGER DEFAULT 0
                );

                CREATE INDEX IF NOT EXISTS idx_stories_published ON stories(status, published_at DESC);
                CREATE INDEX IF NOT EXISTS idx_stories_author ON stories(author_id);
                CREATE INDEX IF NOT EXISTS idx_story_events_story ON story_events(story_id, created_at);
                CREATE INDEX IF NOT EXISTS idx_reactions_story ON reactions(story_id, created_at);
                CREATE INDEX IF NOT EXISTS idx_story_likes_story ON story_likes(story_id, created_at);
                CREATE INDEX IF NOT EXISTS idx_completions_story ON completions(story_id, created_at);
                CREATE INDEX IF NOT EXISTS idx_shelf_items_story ON shelf_items(story_id, created_at);
                CREATE INDEX IF NOT EXISTS idx_visibility_user ON story_visibility(user_id, story_id);
                CREATE INDEX IF NOT EXISTS idx_visibility_anon ON story_visibility(anon_session_id, story_id);
                CREATE INDEX IF NOT EXISTS idx_editorial_picks_month ON editorial_picks(month_label DESC, sort_order);
            """)
