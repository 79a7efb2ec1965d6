"""Clip listing endpoints."""

from fastapi import APIRouter, Query

from clip_engine.api.deps import CurrentUserDep, SessionDep
from clip_engine.api.routes.schemas import ClipResponse
from clip_engine.services import videos as video_service

router = APIRouter(prefix="/clips", tags=["Clips"])


@router.get("", response_model=list[ClipResponse], summary="List clips")
def list_clips(
    user: CurrentUserDep,
    session: SessionDep,
    video_id: int | None = Query(default=None, description="Only clips of this video"),
) -> list[ClipResponse]:
    """Clips of one video by score, or all of the user's clips newest first."""
    clips = video_service.list_clips(session, user.id, video_id=video_id)
    return [ClipResponse.model_validate(c) for c in clips]
