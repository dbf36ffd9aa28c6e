"""
Feed composition policy: the configuration value that selects a feed and
the pure ordering rules each feed applies.
"""

from dataclasses import dataclass, replace
from datetime import datetime

from ..database.models import LENGTH_CLASSES
from ..identity import Identity
from .models import DiscoveryItem
from .scoring import has_signal, hot_score, is_hot_eligible, personal_score

FEED_MODES = ("newest", "algo", "hot", "personal")
QUERY_MODES = ("newest", "algo")

HOT_WINDOWS = {"month": 30, "year": 365}
HOT_TOP_N = 10

PERSONAL_MODES = ("all", "following", "public_domain")

# Round-robin order for the algo feed
LENGTH_POOLS = LENGTH_CLASSES


def _normalize_choice(value: str | None, choices, default: str) -> str:
    if not value:
        return default
    value = value.strip().lower().replace("-", "_")
    return value if value in choices else default


def normalize_mode(mode: str | None, choices=FEED_MODES) -> str:
    """Unknown or empty modes fall back to newest."""
    return _normalize_choice(mode, choices, "newest")


def normalize_filter(value: str | None) -> str | None:
    """Treat "All", blank and None as no filter."""
    if value is None:
        return None
    value = value.strip()
    if not value or value.lower() == "all":
        return None
    return value


@dataclass
class FeedPolicy:
    """
    Everything that selects and shapes one feed request.

    mode picks the feed (newest, algo, hot, personal). hot_window applies to
    hot, personal_mode to personal. window_days bounds the metrics window
    (algo falls back to its default window). A viewer enables per-viewer
    suppression of dismissed and snoozed stories.
    """
    mode: str = "newest"
    genre_filter: str | None = None
    length_filter: str | None = None
    window_days: int | None = None
    hot_window: str = "month"
    personal_mode: str = "all"
    query: str | None = None
    only_public_domain: bool = False
    limit: int | None = None
    viewer: Identity | None = None

    def normalized(self) -> "FeedPolicy":
        """Return a copy with unknown values replaced by their defaults."""
        length = normalize_filter(self.length_filter)
        if length is not None:
            length = length.lower()
        window_days = self.window_days if self.window_days and self.window_days > 0 else None
        limit = self.limit if self.limit and self.limit > 0 else None
        return replace(
            self,
            mode=normalize_mode(self.mode),
            genre_filter=normalize_filter(self.genre_filter),
            length_filter=length,
            window_days=window_days,
            hot_window=_normalize_choice(self.hot_window, HOT_WINDOWS, "month"),
            personal_mode=_normalize_choice(self.personal_mode, PERSONAL_MODES, "all"),
            query=(self.query or "").strip() or None,
            limit=limit,
        )


def interleave_by_length(items: list[DiscoveryItem]) -> list[DiscoveryItem]:
    """
    Round-robin items across length pools.

    Each pool (flash, short, storytime) is sorted by score, then one item is
    taken from every non-empty pool in that order until all are drained.
    """
    pools = {
        length: sorted(
            (item for item in items if item.length_class == length),
            key=lambda item: item.score,
            reverse=True,
        )
        for length in LENGTH_POOLS
    }

    ranked: list[DiscoveryItem] = []
    depth = max((len(pool) for pool in pools.values()), default=0)
    for index in range(depth):
        for length in LENGTH_POOLS:
            if index < len(pools[length]):
                ranked.append(pools[length][index])
    return ranked


def filter_by_length(items: list[DiscoveryItem], length_filter: str | None) -> list[DiscoveryItem]:
    """Keep only items in the given length class (None keeps everything)."""
    if length_filter is None:
        return list(items)
    return [item for item in items if item.length_class == length_filter]


def _published_key(item: DiscoveryItem) -> datetime:
    return item.published_at or datetime.min


def rank_hot(items: list[DiscoveryItem], top_n: int = HOT_TOP_N) -> list[DiscoveryItem]:
    """Drop low-sample stories, sort by hot score then recency, keep the top N."""
    eligible = [item for item in items if is_hot_eligible(item.metrics)]
    eligible.sort(key=lambda item: (hot_score(item.metrics), _published_key(item)), reverse=True)
    return eligible[:top_n]


def rank_personal(items: list[DiscoveryItem]) -> list[DiscoveryItem]:
    """Drop stories without likes or completions, sort by personal score."""
    with_signal = [item for item in items if has_signal(item.metrics)]
    with_signal.sort(
        key=lambda item: (personal_score(item.metrics), _published_key(item)),
        reverse=True,
    )
    return with_signal


def order_by_reading_time(items: list[DiscoveryItem]) -> list[DiscoveryItem]:
    """Shortest reads first, keeping curated order among equals."""
    return sorted(items, key=lambda item: item.reading_time)
