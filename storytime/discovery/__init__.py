"""
Discovery ranking engine.

Metrics aggregation, score formulas, the discovery query service and the
feed composer that combines them.
"""

from .models import DiscoveryItem, FeaturedEntry, MetricsReport, StoryMetrics
from .metrics import MetricsAggregator, build_metrics_map, reconcile_completions, reconcile_likes
from .scoring import algo_score, freshness_bonus, hot_score, personal_score
from .policy import FeedPolicy, interleave_by_length, rank_hot, rank_personal
from .query import DiscoveryFilters, DiscoveryQueryService
from .composer import FeedComposer

__all__ = [
    "DiscoveryItem",
    "FeaturedEntry",
    "MetricsReport",
    "StoryMetrics",
    "MetricsAggregator",
    "build_metrics_map",
    "reconcile_likes",
    "reconcile_completions",
    "algo_score",
    "freshness_bonus",
    "hot_score",
    "personal_score",
    "FeedPolicy",
    "interleave_by_length",
    "rank_hot",
    "rank_personal",
    "DiscoveryFilters",
    "DiscoveryQueryService",
    "FeedComposer",
]
