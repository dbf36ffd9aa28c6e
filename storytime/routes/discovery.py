"""
Discovery routes: feeds, curated lists, story lookup and metrics.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from ..auth import get_viewer, verify_api_key
from ..discovery import FeedPolicy
from ..identity import Identity
from ..schemas import (
    DiscoveryItemResponse,
    FeaturedItemResponse,
    MetricsReportResponse,
    StoryDetailResponse,
    StoryIdsRequest,
)
from ..services import DiscoveryServiceDep

router = APIRouter(tags=["discovery"], dependencies=[Depends(verify_api_key)])

ViewerDep = Annotated[Identity | None, Depends(get_viewer)]


# ─────────────────────────────────────────────────────────────
# Feeds
# ─────────────────────────────────────────────────────────────

@router.get("/discovery/feed")
async def discovery_feed(
    service: DiscoveryServiceDep,
    viewer: ViewerDep,
    mode: str = "newest",
    genre: str | None = None,
    length: str | None = None,
    q: str | None = None,
    public_domain: bool = False,
    window_days: int | None = Query(default=None, ge=1),
    limit: int | None = Query(default=None, ge=1, le=500),
) -> list[DiscoveryItemResponse]:
    """
    Main discovery feed.

    Modes:
    - newest: most recently published first
    - algo: scored, round-robin across flash/short/storytime
    - hot / personal: same as their dedicated endpoints with defaults
    Unknown modes fall back to newest.
    """
    policy = FeedPolicy(
        mode=mode,
        genre_filter=genre,
        length_filter=length,
        window_days=window_days,
        query=q,
        only_public_domain=public_domain,
        limit=limit,
        viewer=viewer,
    )
    items = await service.list_discovery_feed(policy)
    return [DiscoveryItemResponse.from_item(item) for item in items]


@router.get("/discovery/hot")
async def hot_feed(
    service: DiscoveryServiceDep,
    viewer: ViewerDep,
    window: str = "month",
    genre: str | None = None,
    length: str | None = None,
) -> list[DiscoveryItemResponse]:
    """Top stories of the month or year (needs at least 5 views)."""
    policy = FeedPolicy(
        mode="hot",
        hot_window=window,
        genre_filter=genre,
        length_filter=length,
        viewer=viewer,
    )
    items = await service.list_discovery_feed(policy)
    return [DiscoveryItemResponse.from_item(item) for item in items]


@router.get("/discovery/personal")
async def personal_feed(
    service: DiscoveryServiceDep,
    viewer: ViewerDep,
    mode: str = "all",
    genre: str | None = None,
    length: str | None = None,
    q: str | None = None,
) -> list[DiscoveryItemResponse]:
    """Stories with likes or completions; following and public-domain variants."""
    policy = FeedPolicy(
        mode="personal",
        personal_mode=mode,
        genre_filter=genre,
        length_filter=length,
        query=q,
        viewer=viewer,
    )
    items = await service.list_discovery_feed(policy)
    return [DiscoveryItemResponse.from_item(item) for item in items]


@router.post("/discovery/by-ids")
async def feed_by_ids(
    request: StoryIdsRequest,
    service: DiscoveryServiceDep,
) -> list[DiscoveryItemResponse]:
    """Discovery items for an explicit ID list, in the order given."""
    items = await service.list_discovery_feed_by_ids(
        request.story_ids, since_days=request.since_days
    )
    return [DiscoveryItemResponse.from_item(item) for item in items]


# ─────────────────────────────────────────────────────────────
# Curated Lists
# ─────────────────────────────────────────────────────────────

@router.get("/discovery/featured")
async def featured(service: DiscoveryServiceDep) -> list[FeaturedItemResponse]:
    """Currently scheduled featured stories."""
    entries = await service.list_featured()
    return [FeaturedItemResponse.from_entry(entry) for entry in entries]


@router.get("/discovery/suggestions")
async def suggestions(
    service: DiscoveryServiceDep,
    length: str | None = None,
) -> list[DiscoveryItemResponse]:
    """Editorial picks from the last three months, shortest reads first."""
    items = await service.list_suggestions(length)
    return [DiscoveryItemResponse.from_item(item) for item in items]


# ─────────────────────────────────────────────────────────────
# Stories & Metrics
# ─────────────────────────────────────────────────────────────

@router.get("/stories/{slug}")
async def get_story(slug: str, service: DiscoveryServiceDep) -> StoryDetailResponse:
    """Single published story with its metrics."""
    item = await service.get_story(slug)
    return StoryDetailResponse.from_item(item)


@router.post("/discovery/metrics")
async def story_metrics(
    request: StoryIdsRequest,
    service: DiscoveryServiceDep,
) -> MetricsReportResponse:
    """Per-story engagement metrics, with any degraded signal sources."""
    report = await service.compute_metrics_report(
        request.story_ids, since_days=request.since_days
    )
    return MetricsReportResponse.from_report(report)
