"""
Pydantic models for API request/response validation.
"""

from datetime import datetime

from pydantic import AliasChoices, BaseModel, Field

from .discovery import DiscoveryItem, FeaturedEntry, MetricsReport, StoryMetrics


def _either(snake: str, camel: str) -> AliasChoices:
    """Accept both snake_case and camelCase keys from clients."""
    return AliasChoices(snake, camel)


# ─────────────────────────────────────────────────────────────
# Discovery Schemas
# ─────────────────────────────────────────────────────────────

class DiscoveryItemResponse(BaseModel):
    """Story card for discovery feeds."""
    id: str
    title: str
    slug: str
    synopsis: str
    length_class: str
    reading_time: int
    genre: str
    tags: str | None = None
    cover_url: str | None = None
    cover_image_url: str | None = None
    author_id: str | None = None
    author_name: str
    original_author: str | None = None
    is_public_domain: bool = False
    published_at: str | None

    # Metrics
    views: int
    likes: int
    dislikes: int
    saves: int
    completions: int
    completion_rate: float
    like_ratio: float
    score: float

    @classmethod
    def from_item(cls, item: DiscoveryItem) -> "DiscoveryItemResponse":
        story = item.story
        return cls(
            id=story.id,
            title=story.title,
            slug=story.slug,
            synopsis=item.synopsis,
            length_class=story.length_class,
            reading_time=story.reading_time,
            genre=story.genre,
            tags=story.tags,
            cover_url=story.cover_url,
            cover_image_url=story.cover_image_url,
            author_id=story.author_id,
            author_name=item.author_name,
            original_author=story.original_author,
            is_public_domain=story.is_public_domain,
            published_at=story.published_at.isoformat() if story.published_at else None,
            views=item.metrics.views,
            likes=item.metrics.likes,
            dislikes=item.metrics.dislikes,
            saves=item.metrics.saves,
            completions=item.metrics.completions,
            completion_rate=item.metrics.completion_rate,
            like_ratio=item.metrics.like_ratio,
            score=round(item.score, 4),
        )


class StoryDetailResponse(DiscoveryItemResponse):
    """Full story for the reader view."""
    body: str

    @classmethod
    def from_item(cls, item: DiscoveryItem) -> "StoryDetailResponse":
        base = DiscoveryItemResponse.from_item(item)
        return cls(**base.model_dump(), body=item.story.body)


class FeaturedItemResponse(BaseModel):
    """Featured story with editorial overrides."""
    item: DiscoveryItemResponse
    title_override: str | None = None
    subtitle: str | None = None

    @classmethod
    def from_entry(cls, entry: FeaturedEntry) -> "FeaturedItemResponse":
        return cls(
            item=DiscoveryItemResponse.from_item(entry.item),
            title_override=entry.title_override,
            subtitle=entry.subtitle,
        )


class StoryIdsRequest(BaseModel):
    """Explicit story ID list (curation, featured, metrics)."""
    story_ids: list[str] = Field(validation_alias=_either("story_ids", "storyIds"))
    since_days: int | None = Field(
        default=None, ge=1, validation_alias=_either("since_days", "sinceDays")
    )


class StoryMetricsResponse(BaseModel):
    """Engagement metrics for one story."""
    views: int
    impressions: int
    opens: int
    likes: int
    dislikes: int
    saves: int
    completions: int
    completion_rate: float
    like_ratio: float
    sample_size: int

    @classmethod
    def from_metrics(cls, metrics: StoryMetrics) -> "StoryMetricsResponse":
        return cls(
            views=metrics.views,
            impressions=metrics.impressions,
            opens=metrics.opens,
            likes=metrics.likes,
            dislikes=metrics.dislikes,
            saves=metrics.saves,
            completions=metrics.completions,
            completion_rate=metrics.completion_rate,
            like_ratio=metrics.like_ratio,
            sample_size=metrics.sample_size,
        )


class MetricsReportResponse(BaseModel):
    """Metrics keyed by story ID, plus degraded signal sources."""
    metrics: dict[str, StoryMetricsResponse]
    degraded_sources: list[str] = []

    @classmethod
    def from_report(cls, report: MetricsReport) -> "MetricsReportResponse":
        return cls(
            metrics={
                story_id: StoryMetricsResponse.from_metrics(metrics)
                for story_id, metrics in report.metrics.items()
            },
            degraded_sources=report.degraded_sources,
        )


# ─────────────────────────────────────────────────────────────
# Engagement & Feed Action Schemas
# ─────────────────────────────────────────────────────────────

class EngagementEventRequest(BaseModel):
    """Client-side engagement event."""
    story_id: str | None = Field(default=None, validation_alias=_either("story_id", "storyId"))
    event_type: str | None = Field(default=None, validation_alias=_either("event_type", "eventType"))
    anon_session_id: str | None = Field(
        default=None, validation_alias=_either("anon_session_id", "anonSessionId")
    )


class FeedActionRequest(BaseModel):
    """Open, save, dismiss or snooze a story from a feed."""
    action: str | None = None
    story_id: str | None = Field(default=None, validation_alias=_either("story_id", "storyId"))
    anon_session_id: str | None = Field(
        default=None, validation_alias=_either("anon_session_id", "anonSessionId")
    )
    shelf_id: str | None = Field(default=None, validation_alias=_either("shelf_id", "shelfId"))
    shelf_name: str | None = Field(default=None, validation_alias=_either("shelf_name", "shelfName"))
    snooze_until: datetime | None = Field(
        default=None, validation_alias=_either("snooze_until", "snoozeUntil")
    )


class CompletionRequest(BaseModel):
    """Legacy completion record."""
    story_id: str | None = Field(default=None, validation_alias=_either("story_id", "storyId"))


class OkResponse(BaseModel):
    ok: bool = True
