"""
Feed action service: what happens when a reader acts on a feed card.

Actions and their effect on the per-viewer visibility state:
- open: records an "open" engagement event; visibility unchanged
- save: puts the story on a shelf; visibility unchanged
- dismiss: hides the story for this viewer (no way back in this API)
- snooze: hides the story until a given time; afterwards it shows again
  without any stored transition
"""

import logging
from datetime import datetime
from typing import Callable

from ..database import Database
from ..database.models import EVENT_TYPES
from ..database.shelf_repository import DEFAULT_SHELF_NAME
from ..errors import AuthenticationRequiredError, InvalidActionError, StoryNotFoundError
from ..identity import AuthenticatedIdentity, Identity

logger = logging.getLogger(__name__)

ACTION_TYPES = ("open", "save", "dismiss", "snooze")


class FeedActionService:
    """Service for feed actions and engagement event ingestion."""

    def __init__(self, db: Database, clock: Callable[[], datetime] = datetime.now):
        self.db = db
        self._clock = clock

    def apply_action(
        self,
        action: str,
        story_id: str,
        identity: Identity | None,
        shelf_id: str | None = None,
        shelf_name: str | None = None,
        snooze_until: datetime | None = None,
    ) -> None:
        """
        Apply a feed action for a viewer.

        Raises:
            InvalidActionError: Unknown action, missing identity or snooze time
            AuthenticationRequiredError: Save without a signed-in user
            StoryNotFoundError: If the story does not exist
        """
        if not story_id or action not in ACTION_TYPES:
            raise InvalidActionError("Invalid action payload.")
        self._require_story(story_id)

        if action == "save":
            if not isinstance(identity, AuthenticatedIdentity):
                raise AuthenticationRequiredError("Sign in required to save to shelf.")
            self._save(identity.user_id, story_id, shelf_id, shelf_name)
            return

        if identity is None:
            raise InvalidActionError("anonSessionId is required for this action.")

        if action == "open":
            self.db.signals.record_event(story_id, "open", identity, created_at=self._clock())
        elif action == "dismiss":
            self.db.visibility.dismiss(identity, story_id)
        else:
            if snooze_until is None:
                raise InvalidActionError("snoozeUntil is required to snooze a story.")
            self.db.visibility.snooze(identity, story_id, snooze_until)

        logger.debug(f"Applied {action} on story {story_id} for {identity.column}")

    def record_event(self, story_id: str, event_type: str, identity: Identity | None) -> int:
        """
        Record an impression/open/complete event.

        Raises:
            InvalidActionError: Unknown event type or no identity
        """
        if not story_id or not event_type:
            raise InvalidActionError("storyId and eventType are required.")
        if event_type not in EVENT_TYPES:
            raise InvalidActionError("eventType must be one of impression/open/complete.")
        if identity is None:
            raise InvalidActionError("anonSessionId is required for event tracking.")
        self._require_story(story_id)
        return self.db.signals.record_event(story_id, event_type, identity, created_at=self._clock())

    def record_completion(self, story_id: str, user_id: str | None = None) -> int:
        """Record a row in the legacy completions table."""
        if not story_id:
            raise InvalidActionError("story_id is required")
        self._require_story(story_id)
        return self.db.add_completion(story_id, user_id=user_id, created_at=self._clock())

    def _save(
        self,
        user_id: str,
        story_id: str,
        shelf_id: str | None,
        shelf_name: str | None,
    ) -> None:
        if shelf_id:
            if self.db.shelves.get_shelf_owner(shelf_id) != user_id:
                raise InvalidActionError("Shelf not found.")
        else:
            shelf_id = self.db.shelves.get_or_create_shelf(user_id, shelf_name or DEFAULT_SHELF_NAME)
        self.db.shelves.add_item(shelf_id, story_id, created_at=self._clock())

    def _require_story(self, story_id: str) -> None:
        if self.db.get_story(story_id) is None:
            raise StoryNotFoundError(story_id)
