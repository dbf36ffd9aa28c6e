"""
Ranking score formulas.

All functions are pure: the same story, metrics and reference time always
give the same score.
"""

from datetime import datetime, timedelta

from ..database.models import DBStory
from .models import StoryMetrics

# (max age in days, bonus); first matching tier wins
FRESHNESS_TIERS: tuple[tuple[int, float], ...] = ((3, 12.0), (14, 7.0), (30, 3.0))

# Opens a story needs before it can rank as hot
HOT_MIN_SAMPLE_SIZE = 5


def is_within_days(value: datetime | None, days: int, now: datetime) -> bool:
    """True if value is no older than `days` days before now."""
    if value is None:
        return False
    return value >= now - timedelta(days=days)


def freshness_bonus(published_at: datetime | None, now: datetime) -> float:
    """12 for the last 3 days, 7 for 14, 3 for 30, otherwise 0."""
    for days, bonus in FRESHNESS_TIERS:
        if is_within_days(published_at, days, now):
            return bonus
    return 0.0


def algo_score(story: DBStory, metrics: StoryMetrics, now: datetime) -> float:
    """Completion-first score used by the algo and curated feeds."""
    return (
        metrics.completion_rate * 100
        + metrics.saves * 1.8
        + metrics.likes * 1.2
        - metrics.dislikes * 0.8
        + freshness_bonus(story.published_at, now)
    )


def hot_score(metrics: StoryMetrics) -> float:
    """Trending score: finishes, like ratio and raw reactions."""
    return (
        metrics.completions * 2
        + metrics.like_ratio * 20
        + metrics.likes
        - metrics.dislikes * 0.5
    )


def is_hot_eligible(metrics: StoryMetrics) -> bool:
    """Stories with too few opens are noise for hot ranking."""
    return metrics.views >= HOT_MIN_SAMPLE_SIZE


def personal_score(metrics: StoryMetrics) -> float:
    """Simple engagement ordering for personalized feeds."""
    return metrics.likes + metrics.completions * 2


def has_signal(metrics: StoryMetrics) -> bool:
    """Cold-start filter: at least one like or completion."""
    return metrics.likes > 0 or metrics.completions > 0
