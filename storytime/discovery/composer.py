"""
Feed composer: turn a FeedPolicy into an ordered list of discovery items.
"""

import logging
from datetime import date, datetime
from typing import Callable

from ..database import Database
from ..identity import AuthenticatedIdentity, Identity
from .models import DiscoveryItem, FeaturedEntry
from .policy import (
    HOT_TOP_N,
    HOT_WINDOWS,
    FeedPolicy,
    filter_by_length,
    normalize_filter,
    order_by_reading_time,
    rank_hot,
    rank_personal,
)
from .query import DEFAULT_LIMIT, DiscoveryFilters, DiscoveryQueryService
from .store_calls import run_store_call

logger = logging.getLogger(__name__)

DEFAULT_ALGO_WINDOW_DAYS = 180
DEFAULT_HOT_CANDIDATE_LIMIT = 320

# Editorial picks cover the current month and the two before it
SUGGESTION_MONTHS_BACK = 2


def month_start(day: date, months_offset: int = 0) -> date:
    """First day of the month `months_offset` months away from `day`."""
    month_index = day.year * 12 + (day.month - 1) + months_offset
    return date(month_index // 12, month_index % 12 + 1, 1)


class FeedComposer:
    """Builds each feed mode on top of the discovery query service."""

    def __init__(
        self,
        db: Database,
        query_service: DiscoveryQueryService | None = None,
        clock: Callable[[], datetime] = datetime.now,
        default_limit: int = DEFAULT_LIMIT,
        algo_window_days: int = DEFAULT_ALGO_WINDOW_DAYS,
        hot_candidate_limit: int = DEFAULT_HOT_CANDIDATE_LIMIT,
    ):
        self.db = db
        self._clock = clock
        self.query_service = query_service or DiscoveryQueryService(db, clock=clock)
        self.timeout = self.query_service.timeout
        self.default_limit = default_limit
        self.algo_window_days = algo_window_days
        self.hot_candidate_limit = hot_candidate_limit

    async def compose(self, policy: FeedPolicy) -> list[DiscoveryItem]:
        """Dispatch a feed request to its mode."""
        policy = policy.normalized()
        hidden_ids = await self.hidden_story_ids(policy.viewer)

        if policy.mode == "algo":
            return await self._algo(policy, hidden_ids)
        if policy.mode == "hot":
            return await self._hot(policy, hidden_ids)
        if policy.mode == "personal":
            return await self._personal(policy, hidden_ids)
        return await self._newest(policy, hidden_ids)

    async def hidden_story_ids(self, viewer: Identity | None) -> list[str]:
        """Stories the viewer dismissed or has snoozed right now."""
        if viewer is None:
            return []
        now = self._clock()
        hidden = await run_store_call(
            lambda: self.db.visibility.get_hidden_story_ids(viewer, now),
            self.timeout,
            "story_visibility",
        )
        return sorted(hidden)

    # ─────────────────────────────────────────────────────────────
    # Feed modes
    # ─────────────────────────────────────────────────────────────

    def _filters(self, policy: FeedPolicy, hidden_ids: list[str], **overrides) -> DiscoveryFilters:
        filters = DiscoveryFilters(
            query=policy.query,
            only_public_domain=policy.only_public_domain,
            limit=policy.limit or self.default_limit,
            since_days=policy.window_days,
            genre=policy.genre_filter,
            length_class=policy.length_filter,
            exclude_ids=hidden_ids or None,
        )
        for key, value in overrides.items():
            setattr(filters, key, value)
        return filters

    async def _newest(self, policy: FeedPolicy, hidden_ids: list[str]) -> list[DiscoveryItem]:
        return await self.query_service.fetch_discovery_items(
            self._filters(policy, hidden_ids, mode="newest")
        )

    async def _algo(self, policy: FeedPolicy, hidden_ids: list[str]) -> list[DiscoveryItem]:
        return await self.query_service.fetch_discovery_items(
            self._filters(
                policy,
                hidden_ids,
                mode="algo",
                since_days=policy.window_days or self.algo_window_days,
            )
        )

    async def _hot(self, policy: FeedPolicy, hidden_ids: list[str]) -> list[DiscoveryItem]:
        days = HOT_WINDOWS[policy.hot_window]
        items = await self.query_service.fetch_discovery_items(
            self._filters(
                policy,
                hidden_ids,
                mode="newest",
                limit=self.hot_candidate_limit,
                since_days=days,
                published_within_days=days,
            )
        )
        return rank_hot(items, top_n=HOT_TOP_N)

    async def _personal(self, policy: FeedPolicy, hidden_ids: list[str]) -> list[DiscoveryItem]:
        overrides: dict = {"mode": "newest"}

        if policy.personal_mode == "following":
            if not isinstance(policy.viewer, AuthenticatedIdentity):
                return []
            user_id = policy.viewer.user_id
            following = await run_store_call(
                lambda: self.db.social.get_following_ids(user_id), self.timeout, "follows"
            )
            if not following:
                return []
            overrides["author_ids"] = sorted(following)
        elif policy.personal_mode == "public_domain":
            overrides["only_public_domain"] = True

        items = await self.query_service.fetch_discovery_items(
            self._filters(policy, hidden_ids, **overrides)
        )
        if policy.personal_mode == "all":
            return rank_personal(items)
        return items

    # ─────────────────────────────────────────────────────────────
    # Curated lists
    # ─────────────────────────────────────────────────────────────

    async def featured(self) -> list[FeaturedEntry]:
        """Currently scheduled featured stories in editorial order."""
        now = self._clock()
        rows = await run_store_call(
            lambda: self.db.curation.get_active_featured(now), self.timeout, "featured_items"
        )
        items = await self.query_service.fetch_discovery_items_by_story_ids(
            [row.story_id for row in rows]
        )

        row_by_story: dict = {}
        for row in rows:
            row_by_story.setdefault(row.story_id, row)

        return [
            FeaturedEntry(
                item=item,
                title_override=row_by_story[item.id].title_override,
                subtitle=row_by_story[item.id].subtitle,
            )
            for item in items
        ]

    async def suggestions(self, length_filter: str | None = None) -> list[DiscoveryItem]:
        """Editorial picks from the rolling three-month window, shortest first."""
        today = self._clock().date()
        start = month_start(today, -SUGGESTION_MONTHS_BACK)
        end = month_start(today, 1)
        picks = await run_store_call(
            lambda: self.db.curation.get_editorial_picks(start, end),
            self.timeout,
            "editorial_picks",
        )
        items = await self.query_service.fetch_discovery_items_by_story_ids(
            [pick.story_id for pick in picks]
        )

        length = normalize_filter(length_filter)
        return filter_by_length(order_by_reading_time(items), length.lower() if length else None)
