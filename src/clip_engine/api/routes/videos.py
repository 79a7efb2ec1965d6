"""Video upload and status endpoints."""

from fastapi import APIRouter, File, Query, UploadFile, status
from pydantic import BaseModel

from clip_engine.api.deps import CurrentUserDep, RateLimitDep, SessionDep, StorageDep
from clip_engine.api.routes.schemas import JobResponse, VideoResponse
from clip_engine.jobs.tasks import dispatch_generation
from clip_engine.logging import get_logger
from clip_engine.services import videos as video_service
from clip_engine.services.ingest import ingest_video

router = APIRouter(prefix="/videos", tags=["Videos"])
logger = get_logger(__name__)


class UploadResponse(BaseModel):
    """Response when an upload is accepted."""

    success: bool
    video: VideoResponse
    job_id: int
    message: str


@router.post(
    "/upload",
    response_model=UploadResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Upload video",
    description="Store a video and start clip generation in the background.",
    dependencies=[RateLimitDep],
)
def upload_video(
    user: CurrentUserDep,
    session: SessionDep,
    storage: StorageDep,
    video: UploadFile = File(...),
) -> UploadResponse:
    """Accept an upload; generation runs asynchronously and is observed by polling."""
    record, job = ingest_video(
        session,
        storage,
        user_id=user.id,
        stream=video.file,
        original_name=video.filename,
        content_type=video.content_type,
        declared_size=video.size,
    )

    dispatch_generation(session, job)

    return UploadResponse(
        success=True,
        video=VideoResponse.model_validate(record),
        job_id=job.id,
        message="Video uploaded, clip generation started",
    )


@router.get("", response_model=list[VideoResponse], summary="List videos")
def list_videos(
    user: CurrentUserDep,
    session: SessionDep,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
) -> list[VideoResponse]:
    """The user's videos, newest first."""
    records = video_service.list_videos(session, user.id, limit=limit, offset=offset)
    return [VideoResponse.model_validate(v) for v in records]


@router.get("/{video_id}", response_model=VideoResponse, summary="Get video")
def get_video(video_id: int, user: CurrentUserDep, session: SessionDep) -> VideoResponse:
    return VideoResponse.model_validate(video_service.get_video(session, user.id, video_id))


@router.get("/{video_id}/job", response_model=JobResponse, summary="Get generation job")
def get_video_job(video_id: int, user: CurrentUserDep, session: SessionDep) -> JobResponse:
    """Generation job state for one of the user's videos."""
    job = video_service.get_job_for_video(session, user.id, video_id)
    return JobResponse.model_validate(job)
