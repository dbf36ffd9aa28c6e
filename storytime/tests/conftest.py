"""
Pytest fixtures for storytime tests.
"""

import itertools
import os
import tempfile
from datetime import datetime, timedelta
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from storytime.config import state
from storytime.database import Database
from storytime.identity import AnonymousIdentity
from storytime.rate_limit import limiter
from storytime.server import app

# Fixed reference time for core tests
NOW = datetime(2026, 3, 15, 12, 0, 0)

READING_TIMES = {"flash": 3, "short": 12, "storytime": 35}


@pytest.fixture
def temp_db_path():
    """Create a temporary database file path."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        yield Path(f.name)
    # Cleanup
    if os.path.exists(f.name):
        os.unlink(f.name)


@pytest.fixture
def test_db(temp_db_path):
    """Create a test database instance."""
    db = Database(temp_db_path)
    yield db


@pytest.fixture
def clock():
    """Clock pinned to NOW."""
    return lambda: NOW


@pytest.fixture
def add_story(test_db):
    """Factory adding a published story; returns its ID."""
    counter = itertools.count(1)

    def _add(
        title: str | None = None,
        length_class: str = "flash",
        genre: str = "Fantasy",
        days_ago: float = 1,
        now: datetime = NOW,
        **fields,
    ) -> str:
        n = next(counter)
        fields.setdefault("reading_time", READING_TIMES[length_class])
        fields.setdefault("status", "published")
        fields.setdefault("published_at", now - timedelta(days=days_ago))
        return test_db.add_story(
            title=title or f"Story {n}",
            slug=f"story-{n}",
            length_class=length_class,
            genre=genre,
            **fields,
        )

    return _add


@pytest.fixture
def add_signals(test_db):
    """
    Factory recording engagement for a story.

    Events come from distinct anonymous sessions; reactions and legacy
    rows are written directly.
    """
    def _add(
        story_id: str,
        opens: int = 0,
        completes: int = 0,
        impressions: int = 0,
        likes: int = 0,
        dislikes: int = 0,
        legacy_likes: int = 0,
        legacy_completions: int = 0,
        at: datetime = NOW - timedelta(hours=1),
    ):
        for event_type, count in (("open", opens), ("complete", completes), ("impression", impressions)):
            for i in range(count):
                identity = AnonymousIdentity(f"{event_type}-{i}")
                test_db.signals.record_event(story_id, event_type, identity, created_at=at)
        for value, count in (("like", likes), ("dislike", dislikes)):
            for i in range(count):
                test_db.signals.add_reaction(story_id, value, AnonymousIdentity(f"{value}-{i}"), created_at=at)
        for _ in range(legacy_likes):
            test_db.signals.add_legacy_like(story_id, created_at=at)
        for _ in range(legacy_completions):
            test_db.signals.add_completion(story_id, created_at=at)

    return _add


@pytest.fixture
def client(test_db):
    """Create a test client with an isolated database."""
    original_db = state.db
    state.db = test_db
    limiter.reset()

    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client

    state.db = original_db


@pytest.fixture
def client_with_data(test_db):
    """Test client with a few published stories relative to the real clock."""
    original_db = state.db
    state.db = test_db
    limiter.reset()

    now = datetime.now()
    author_id = test_db.add_profile("Ada Writer")
    newer_id = test_db.add_story(
        title="The Lantern Keeper",
        slug="the-lantern-keeper",
        length_class="flash",
        reading_time=3,
        genre="Fantasy",
        body="A keeper tends the last lantern. Nobody else remembers why.",
        author_id=author_id,
        status="published",
        published_at=now - timedelta(days=1),
    )
    older_id = test_db.add_story(
        title="Tidewater",
        slug="tidewater",
        length_class="short",
        reading_time=12,
        genre="Mystery",
        synopsis_1="A drowned town resurfaces.",
        author_id=author_id,
        status="published",
        published_at=now - timedelta(days=5),
    )
    draft_id = test_db.add_story(
        title="Unfinished",
        slug="unfinished",
        length_class="flash",
        reading_time=2,
        genre="Horror",
        status="draft",
    )

    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client, {
            "author_id": author_id,
            "story_ids": [newer_id, older_id],
            "draft_id": draft_id,
        }

    state.db = original_db
