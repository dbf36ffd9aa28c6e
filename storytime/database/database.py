"""
Database facade - provides unified access to all repositories.
"""

from datetime import datetime
from pathlib import Path

from .connection import DEFAULT_TIMEOUT_SECONDS, DatabaseConnection
from .curation_repository import CurationRepository
from .models import DBStory
from .profile_repository import ProfileRepository
from .shelf_repository import ShelfRepository
from .signal_repository import SignalRepository
from .social_repository import SocialRepository
from .story_repository import StoryRepository
from .visibility_repository import VisibilityRepository


class Database:
    """
    Unified database access facade.

    Discovery code talks to the repositories directly; the delegates below
    cover the handful of writes the API and seed scripts need.
    """

    def __init__(self, db_path: Path, timeout: float = DEFAULT_TIMEOUT_SECONDS):
        self._connection = DatabaseConnection(db_path, timeout=timeout)

        # Initialize repositories
        self.stories = StoryRepository(self._connection)
        self.profiles = ProfileRepository(self._connection)
        self.signals = SignalRepository(self._connection)
        self.shelves = ShelfRepository(self._connection)
        self.social = SocialRepository(self._connection)
        self.visibility = VisibilityRepository(self._connection)
        self.curation = CurationRepository(self._connection)

    @property
    def timeout(self) -> float:
        return self._connection.timeout

    # ─────────────────────────────────────────────────────────────
    # Story operations (delegated to StoryRepository)
    # ─────────────────────────────────────────────────────────────

    def add_story(self, title: str, slug: str, **fields) -> str:
        return self.stories.add(title=title, slug=slug, **fields)

    def get_story(self, story_id: str) -> DBStory | None:
        return self.stories.get(story_id)

    def publish_story(self, story_id: str) -> bool:
        return self.stories.update_status(story_id, "published")

    def hide_story(self, story_id: str) -> bool:
        return self.stories.update_status(story_id, "hidden")

    # ─────────────────────────────────────────────────────────────
    # Profile & social operations
    # ─────────────────────────────────────────────────────────────

    def add_profile(self, display_name: str | None, profile_id: str | None = None) -> str:
        return self.profiles.add(display_name, profile_id=profile_id)

    def follow(self, follower_id: str, following_id: str):
        return self.social.follow(follower_id, following_id)

    # ─────────────────────────────────────────────────────────────
    # Legacy signal writes
    # ─────────────────────────────────────────────────────────────

    def add_completion(
        self,
        story_id: str,
        user_id: str | None = None,
        created_at: datetime | None = None,
    ) -> int:
        return self.signals.add_completion(story_id, user_id=user_id, created_at=created_at)
