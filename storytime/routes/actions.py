"""
Engagement routes: event ingestion, feed actions and legacy completions.

These endpoints write per-viewer state and are rate limited per viewer.
"""

from fastapi import APIRouter, Depends, Header, Request

from ..auth import verify_api_key
from ..identity import AuthenticatedIdentity, Identity, resolve_identity
from ..rate_limit import get_rate_limit, limiter
from ..schemas import CompletionRequest, EngagementEventRequest, FeedActionRequest, OkResponse
from ..services import FeedActionServiceDep

router = APIRouter(tags=["engagement"], dependencies=[Depends(verify_api_key)])


def _viewer(
    user_id: str | None,
    header_session_id: str | None,
    body_session_id: str | None,
) -> Identity | None:
    # The body's session ID takes precedence over the header's
    return resolve_identity(user_id, body_session_id or header_session_id)


@router.post("/events")
@limiter.limit(get_rate_limit)
async def record_event(
    request: Request,
    payload: EngagementEventRequest,
    service: FeedActionServiceDep,
    x_user_id: str | None = Header(default=None),
    x_anon_session_id: str | None = Header(default=None),
) -> OkResponse:
    """Record an impression, open or complete event."""
    viewer = _viewer(x_user_id, x_anon_session_id, payload.anon_session_id)
    service.record_event(payload.story_id, payload.event_type, viewer)
    return OkResponse()


@router.post("/feed/actions")
@limiter.limit(get_rate_limit)
async def feed_action(
    request: Request,
    payload: FeedActionRequest,
    service: FeedActionServiceDep,
    x_user_id: str | None = Header(default=None),
    x_anon_session_id: str | None = Header(default=None),
) -> OkResponse:
    """
    Act on a feed card.

    Actions:
    - open: records an open event
    - save: adds to a shelf (signed-in users only)
    - dismiss: hides the story for this viewer
    - snooze: hides the story until snooze_until
    """
    viewer = _viewer(x_user_id, x_anon_session_id, payload.anon_session_id)
    service.apply_action(
        payload.action,
        payload.story_id,
        viewer,
        shelf_id=payload.shelf_id,
        shelf_name=payload.shelf_name,
        snooze_until=payload.snooze_until,
    )
    return OkResponse()


@router.post("/stories/completion")
@limiter.limit(get_rate_limit)
async def record_completion(
    request: Request,
    payload: CompletionRequest,
    service: FeedActionServiceDep,
    x_user_id: str | None = Header(default=None),
) -> OkResponse:
    """Record a completion in the legacy completions table."""
    viewer = resolve_identity(x_user_id)
    user_id = viewer.user_id if isinstance(viewer, AuthenticatedIdentity) else None
    service.record_completion(payload.story_id, user_id=user_id)
    return OkResponse()
