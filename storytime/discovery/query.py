"""
Discovery query service: fetch published stories and enrich them into
scored discovery items.
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable

from ..database import Database, DBStory, StoryQuery
from ..errors import StoryNotFoundError, UpstreamQueryError
from .metrics import MetricsAggregator
from .models import DiscoveryItem, StoryMetrics
from .policy import QUERY_MODES, interleave_by_length, normalize_mode
from .scoring import algo_score
from .store_calls import run_store_call

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 180
UNKNOWN_AUTHOR = "Unknown author"
NO_SYNOPSIS = "No synopsis available."
SYNOPSIS_MAX_LENGTH = 140

_WHITESPACE = re.compile(r"\s+")
_FIRST_SENTENCE = re.compile(r"[^.!?]+[.!?]")


@dataclass
class DiscoveryFilters:
    """
    Filters for the discovery candidate query.

    since_days bounds the metrics window; published_within_days bounds which
    stories are eligible at all.
    """
    query: str | None = None
    only_public_domain: bool = False
    limit: int | None = DEFAULT_LIMIT
    since_days: int | None = None
    published_within_days: int | None = None
    mode: str = "newest"
    genre: str | None = None
    length_class: str | None = None
    exclude_ids: list[str] | None = None
    author_ids: list[str] | None = None


def extract_synopsis(story: DBStory) -> str:
    """
    One-line synopsis for a story.

    Uses the explicit synopsis when set, otherwise the first sentence of the
    body, truncated with an ellipsis past 140 characters.
    """
    preferred = (story.synopsis_1 or "").strip()
    if preferred:
        return preferred

    clean = _WHITESPACE.sub(" ", story.body or "").strip()
    if not clean:
        return NO_SYNOPSIS

    match = _FIRST_SENTENCE.search(clean)
    sentence = match.group(0) if match else clean
    if len(sentence) > SYNOPSIS_MAX_LENGTH:
        return f"{sentence[:SYNOPSIS_MAX_LENGTH - 3]}..."
    return sentence


def resolve_author_name(story: DBStory, display_names: dict[str, str | None]) -> str:
    """Public-domain stories credit the original author; others their profile."""
    if story.is_public_domain:
        return story.original_author or UNKNOWN_AUTHOR
    if not story.author_id:
        return UNKNOWN_AUTHOR
    return display_names.get(story.author_id) or UNKNOWN_AUTHOR


class DiscoveryQueryService:
    """Fetches published stories and turns them into discovery items."""

    def __init__(
        self,
        db: Database,
        aggregator: MetricsAggregator | None = None,
        timeout: float | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.db = db
        self.timeout = timeout if timeout is not None else db.timeout
        self._clock = clock
        self.aggregator = aggregator or MetricsAggregator(db, timeout=self.timeout, clock=clock)

    async def fetch_discovery_items(
        self,
        filters: DiscoveryFilters | None = None,
    ) -> list[DiscoveryItem]:
        """
        Fetch, enrich and order published stories.

        mode=newest keeps publish-date order; mode=algo interleaves the
        length pools by algo score. Unknown modes are treated as newest.

        Raises:
            UpstreamQueryError: If the story query fails (original message kept).
        """
        filters = filters or DiscoveryFilters()
        mode = normalize_mode(filters.mode, QUERY_MODES)
        now = self._clock()

        published_since = None
        if filters.published_within_days is not None:
            published_since = now - timedelta(days=filters.published_within_days)

        story_query = StoryQuery(
            only_public_domain=filters.only_public_domain,
            text=filters.query,
            genre=filters.genre,
            length_class=filters.length_class,
            exclude_ids=filters.exclude_ids,
            author_ids=filters.author_ids,
            published_since=published_since,
            limit=filters.limit,
        )
        stories = await run_store_call(
            lambda: self.db.stories.query(story_query), self.timeout, "stories"
        )
        items = await self.enrich(stories, since_days=filters.since_days, now=now)

        if mode == "algo":
            return interleave_by_length(items)
        return items

    async def fetch_discovery_items_by_story_ids(
        self,
        story_ids: list[str],
        since_days: int | None = None,
    ) -> list[DiscoveryItem]:
        """
        Fetch exactly the given stories, in the caller's order.

        Duplicates keep their first position; IDs that are missing or not
        published are skipped.
        """
        unique_ids = list(dict.fromkeys(story_id for story_id in story_ids if story_id))
        if not unique_ids:
            return []

        stories = await run_store_call(
            lambda: self.db.stories.get_by_ids(unique_ids), self.timeout, "stories"
        )
        items = await self.enrich(stories, since_days=since_days)
        by_id = {item.id: item for item in items}
        return [by_id[story_id] for story_id in unique_ids if story_id in by_id]

    async def fetch_story(self, slug: str, since_days: int | None = None) -> DiscoveryItem:
        """
        Fetch one published story by slug.

        Raises:
            StoryNotFoundError: If no published story has this slug.
        """
        story = await run_store_call(
            lambda: self.db.stories.get_by_slug(slug), self.timeout, "stories"
        )
        if story is None:
            raise StoryNotFoundError(slug)
        items = await self.enrich([story], since_days=since_days)
        return items[0]

    async def enrich(
        self,
        stories: list[DBStory],
        since_days: int | None = None,
        now: datetime | None = None,
    ) -> list[DiscoveryItem]:
        """Attach author names, synopsis, metrics and algo score, keeping order."""
        if not stories:
            return []
        now = now or self._clock()

        author_ids = list(dict.fromkeys(
            story.author_id for story in stories
            if story.author_id and not story.is_public_domain
        ))
        display_names, metrics = await asyncio.gather(
            self._load_display_names(author_ids),
            self.aggregator.compute_metrics([story.id for story in stories], since_days=since_days),
        )

        items = []
        for story in stories:
            story_metrics = metrics.get(story.id, StoryMetrics())
            items.append(DiscoveryItem(
                story=story,
                author_name=resolve_author_name(story, display_names),
                synopsis=extract_synopsis(story),
                metrics=story_metrics,
                score=algo_score(story, story_metrics, now),
            ))
        return items

    async def _load_display_names(self, author_ids: list[str]) -> dict[str, str | None]:
        """Profile lookup; a failure falls back to unknown authors."""
        if not author_ids:
            return {}
        try:
            return await run_store_call(
                lambda: self.db.profiles.get_display_names(author_ids), self.timeout, "profiles"
            )
        except UpstreamQueryError as e:
            logger.warning(f"Profile lookup failed, using fallback author names: {e}")
            return {}
