"""
Metrics aggregator: reduce raw engagement signals to one record per story.

Five signal sources feed the metrics:
- story_events: impression / open / complete events
- reactions: unified like / dislike reactions
- story_likes: legacy likes
- shelf_items: saves
- completions: legacy completions

Legacy and unified sources are merged by the per-metric reconcilers in
RECONCILERS. A source that errors or times out is read as empty; the
report lists it in degraded_sources.
"""

import asyncio
import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable

from ..database import Database
from ..database.models import EventRow, ReactionRow, SignalRow
from ..errors import UpstreamQueryError
from .models import MetricsReport, StoryMetrics
from .store_calls import run_store_call

logger = logging.getLogger(__name__)

SIGNAL_SOURCES = ("story_events", "reactions", "story_likes", "shelf_items", "completions")


def reconcile_likes(unified: int, legacy: int) -> int:
    """Unified reactions win whenever a story has any unified likes."""
    return unified if unified > 0 else legacy


def reconcile_completions(unified: int, legacy: int) -> int:
    """Completions are the larger of the two tallies."""
    return max(unified, legacy)


RECONCILERS: dict[str, Callable[[int, int], int]] = {
    "likes": reconcile_likes,
    "completions": reconcile_completions,
}


@dataclass
class MetricRows:
    """Raw rows from each signal source."""
    events: list[EventRow] = field(default_factory=list)
    reactions: list[ReactionRow] = field(default_factory=list)
    legacy_likes: list[SignalRow] = field(default_factory=list)
    saves: list[SignalRow] = field(default_factory=list)
    legacy_completions: list[SignalRow] = field(default_factory=list)


def _ratio(numerator: int, denominator: int) -> float:
    if denominator <= 0:
        return 0.0
    return min(max(numerator / denominator, 0.0), 1.0)


def build_metrics_map(story_ids: list[str], rows: MetricRows) -> dict[str, StoryMetrics]:
    """
    Fold signal rows into metrics for every requested story.

    Stories with no rows get zeroed metrics, so every ID is present.
    """
    events = Counter((row.story_id, row.event_type) for row in rows.events)
    reactions = Counter((row.story_id, row.value) for row in rows.reactions)
    legacy_likes = Counter(row.story_id for row in rows.legacy_likes)
    saves = Counter(row.story_id for row in rows.saves)
    legacy_completions = Counter(row.story_id for row in rows.legacy_completions)

    metrics: dict[str, StoryMetrics] = {}
    for story_id in story_ids:
        opens = events[(story_id, "open")]
        dislikes = reactions[(story_id, "dislike")]
        likes = RECONCILERS["likes"](reactions[(story_id, "like")], legacy_likes[story_id])
        completions = RECONCILERS["completions"](
            events[(story_id, "complete")], legacy_completions[story_id]
        )
        sample_size = max(opens, 1)

        metrics[story_id] = StoryMetrics(
            views=opens,
            impressions=events[(story_id, "impression")],
            opens=opens,
            likes=likes,
            dislikes=dislikes,
            saves=saves[story_id],
            completions=completions,
            completion_rate=_ratio(completions, sample_size),
            like_ratio=_ratio(likes, likes + dislikes),
            sample_size=sample_size,
        )
    return metrics


class MetricsAggregator:
    """Computes per-story metrics from the signal repositories."""

    def __init__(
        self,
        db: Database,
        timeout: float | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.db = db
        self.timeout = timeout if timeout is not None else db.timeout
        self._clock = clock

    async def compute_metrics(
        self,
        story_ids: list[str],
        since_days: int | None = None,
    ) -> dict[str, StoryMetrics]:
        """Map each story ID to its metrics within the optional window."""
        report = await self.compute_metrics_report(story_ids, since_days=since_days)
        return report.metrics

    async def compute_metrics_report(
        self,
        story_ids: list[str],
        since_days: int | None = None,
    ) -> MetricsReport:
        """
        Compute metrics and report which sources were degraded.

        Args:
            story_ids: Stories to measure. Empty input performs no queries.
            since_days: Only count rows from the last N days; None is all-time.
        """
        ids = list(dict.fromkeys(story_ids))
        if not ids:
            return MetricsReport(metrics={})

        since = self._clock() - timedelta(days=since_days) if since_days is not None else None

        fetchers: dict[str, Callable[[], list]] = {
            "story_events": lambda: self.db.signals.query_events(ids, since),
            "reactions": lambda: self.db.signals.query_reactions(ids, since),
            "story_likes": lambda: self.db.signals.query_legacy_likes(ids, since),
            "shelf_items": lambda: self.db.shelves.query_saves(ids, since),
            "completions": lambda: self.db.signals.query_legacy_completions(ids, since),
        }

        results = await asyncio.gather(
            *(
                run_store_call(fetch, self.timeout, source)
                for source, fetch in fetchers.items()
            ),
            return_exceptions=True,
        )

        by_source: dict[str, list] = {}
        degraded: list[str] = []
        for source, result in zip(fetchers, results):
            if isinstance(result, UpstreamQueryError):
                logger.warning(f"Signal source {source} unavailable, counting as empty: {result}")
                degraded.append(source)
                by_source[source] = []
            elif isinstance(result, BaseException):
                raise result
            else:
                by_source[source] = result

        rows = MetricRows(
            events=by_source["story_events"],
            reactions=by_source["reactions"],
            legacy_likes=by_source["story_likes"],
            saves=by_source["shelf_items"],
            legacy_completions=by_source["completions"],
        )
        return MetricsReport(metrics=build_metrics_map(ids, rows), degraded_sources=degraded)
