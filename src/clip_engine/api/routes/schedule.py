"""Post scheduling endpoints."""

from datetime import datetime

from fastapi import APIRouter, Query, status
from pydantic import BaseModel, Field

from clip_engine.api.deps import CurrentUserDep, SessionDep
from clip_engine.api.routes.schemas import ScheduledPostResponse
from clip_engine.services import scheduler

router = APIRouter(prefix="/schedule", tags=["Schedule"])


class ScheduleRequest(BaseModel):
    """Request to schedule a clip."""

    clip_id: int
    platforms: list[str] = Field(default_factory=list)
    caption: str | None = Field(None, max_length=5000)
    hashtags: str | None = Field(None, max_length=1000)
    scheduled_at: datetime | None = None


@router.post(
    "",
    response_model=ScheduledPostResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Schedule clip",
)
def schedule_clip(
    request: ScheduleRequest, user: CurrentUserDep, session: SessionDep
) -> ScheduledPostResponse:
    """Schedule one of the user's ready clips to one or more platforms."""
    post = scheduler.schedule_clip(
        session,
        user.id,
        clip_id=request.clip_id,
        platforms=request.platforms,
        caption=request.caption,
        hashtags=request.hashtags,
        scheduled_at=request.scheduled_at,
    )
    return ScheduledPostResponse.model_validate(post)


@router.get("", response_model=list[ScheduledPostResponse], summary="List scheduled posts")
def list_posts(
    user: CurrentUserDep,
    session: SessionDep,
    include_canceled: bool = Query(default=False),
) -> list[ScheduledPostResponse]:
    posts = scheduler.list_posts(session, user.id, include_canceled=include_canceled)
    return [ScheduledPostResponse.model_validate(p) for p in posts]


@router.delete("/{schedule_id}", summary="Cancel scheduled post")
def cancel_post(schedule_id: int, user: CurrentUserDep, session: SessionDep) -> dict[str, bool]:
    """Cancel a pending post. Canceling twice reports the post as missing."""
    scheduler.cancel_post(session, user.id, schedule_id)
    return {"success": True}
