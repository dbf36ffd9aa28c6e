"""
Discovery service: feeds, curated lists and metrics for the API layer.

Wraps the discovery engine and retries store failures that are marked
retryable (lock contention, timeouts) before surfacing them.
"""

import logging
from datetime import datetime
from typing import Callable

from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from ..config import config
from ..database import Database
from ..discovery import (
    DiscoveryItem,
    DiscoveryQueryService,
    FeaturedEntry,
    FeedComposer,
    FeedPolicy,
    MetricsAggregator,
    MetricsReport,
    StoryMetrics,
)
from ..errors import is_retryable

logger = logging.getLogger(__name__)


store_retry = retry(
    retry=retry_if_exception(is_retryable),
    stop=stop_after_attempt(max(config.STORE_RETRY_ATTEMPTS, 1)),
    wait=wait_exponential(multiplier=0.1, max=2),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)


class DiscoveryService:
    """Service for discovery feeds and engagement metrics."""

    def __init__(
        self,
        db: Database,
        clock: Callable[[], datetime] = datetime.now,
        default_limit: int = config.DISCOVERY_LIMIT,
        algo_window_days: int = config.ALGO_WINDOW_DAYS,
        hot_candidate_limit: int = config.HOT_CANDIDATE_LIMIT,
    ):
        self.db = db
        self.aggregator = MetricsAggregator(db, clock=clock)
        self.query_service = DiscoveryQueryService(db, aggregator=self.aggregator, clock=clock)
        self.composer = FeedComposer(
            db,
            query_service=self.query_service,
            clock=clock,
            default_limit=default_limit,
            algo_window_days=algo_window_days,
            hot_candidate_limit=hot_candidate_limit,
        )

    # ─────────────────────────────────────────────────────────────
    # Feeds
    # ─────────────────────────────────────────────────────────────

    @store_retry
    async def list_discovery_feed(self, policy: FeedPolicy) -> list[DiscoveryItem]:
        """
        Build the feed a policy describes.

        Args:
            policy: Mode, filters, windows and viewer for the request

        Returns:
            Ordered discovery items

        Raises:
            UpstreamQueryError: If the story query fails after retries
        """
        return await self.composer.compose(policy)

    @store_retry
    async def list_discovery_feed_by_ids(
        self,
        story_ids: list[str],
        since_days: int | None = None,
    ) -> list[DiscoveryItem]:
        """Discovery items for an explicit ID list, in the given order."""
        return await self.query_service.fetch_discovery_items_by_story_ids(
            story_ids, since_days=since_days
        )

    @store_retry
    async def list_featured(self) -> list[FeaturedEntry]:
        """Currently featured stories."""
        return await self.composer.featured()

    @store_retry
    async def list_suggestions(self, length_filter: str | None = None) -> list[DiscoveryItem]:
        """Recent editorial picks, shortest reads first."""
        return await self.composer.suggestions(length_filter)

    @store_retry
    async def get_story(self, slug: str) -> DiscoveryItem:
        """
        A single published story as a discovery item.

        Raises:
            StoryNotFoundError: If no published story has the slug
        """
        return await self.query_service.fetch_story(slug)

    # ─────────────────────────────────────────────────────────────
    # Metrics
    # ─────────────────────────────────────────────────────────────

    async def compute_metrics(
        self,
        story_ids: list[str],
        since_days: int | None = None,
    ) -> dict[str, StoryMetrics]:
        """Per-story metrics within the optional window."""
        return await self.aggregator.compute_metrics(story_ids, since_days=since_days)

    async def compute_metrics_report(
        self,
        story_ids: list[str],
        since_days: int | None = None,
    ) -> MetricsReport:
        """Per-story metrics plus any degraded signal sources."""
        report = await self.aggregator.compute_metrics_report(story_ids, since_days=since_days)
        if report.degraded:
            logger.info(f"Metrics computed with degraded sources: {', '.join(report.degraded_sources)}")
        return report
