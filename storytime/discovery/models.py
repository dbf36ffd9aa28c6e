"""
Discovery data types: per-story metrics and enriched feed items.
"""

from dataclasses import dataclass, field
from datetime import datetime

from ..database.models import DBStory


@dataclass(frozen=True)
class StoryMetrics:
    """Engagement metrics for one story within a window. Never persisted."""
    views: int = 0
    impressions: int = 0
    opens: int = 0
    likes: int = 0
    dislikes: int = 0
    saves: int = 0
    completions: int = 0
    completion_rate: float = 0.0
    like_ratio: float = 0.0
    sample_size: int = 1


@dataclass
class MetricsReport:
    """Metrics plus the signal sources that failed and were read as empty."""
    metrics: dict[str, StoryMetrics]
    degraded_sources: list[str] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return bool(self.degraded_sources)


@dataclass
class DiscoveryItem:
    """A published story enriched with author name, synopsis, metrics and score."""
    story: DBStory
    author_name: str
    synopsis: str
    metrics: StoryMetrics
    score: float

    @property
    def id(self) -> str:
        return self.story.id

    @property
    def length_class(self) -> str:
        return self.story.length_class

    @property
    def genre(self) -> str:
        return self.story.genre

    @property
    def published_at(self) -> datetime | None:
        return self.story.published_at

    @property
    def reading_time(self) -> int:
        return self.story.reading_time


@dataclass
class FeaturedEntry:
    """A featured discovery item with its editorial overrides."""
    item: DiscoveryItem
    title_override: str | None = None
    subtitle: str | None = None
