"""Read-side queries for videos, clips and generation jobs.

Every query is scoped to the requesting user. Records owned by someone else
are reported as missing.
"""

from sqlalchemy import select
from sqlalchemy.orm import Session

from clip_engine.db.models import ClipModel, GenerationJobModel, VideoModel
from clip_engine.domain.errors import NotFoundError


def list_videos(session: Session, user_id: int, limit: int = 50, offset: int = 0) -> list[VideoModel]:
    """List a user's videos, newest first."""
    stmt = (
        select(VideoModel)
        .where(VideoModel.user_id == user_id)
        .order_by(VideoModel.created_at.desc(), VideoModel.id.desc())
        .offset(offset)
        .limit(limit)
    )
    return list(session.execute(stmt).scalars())


def get_video(session: Session, user_id: int, video_id: int) -> VideoModel:
    """Get one of the user's videos.

    Raises:
        NotFoundError: If the video does not exist or belongs to another user.
    """
    video = session.execute(
        select(VideoModel).where(VideoModel.id == video_id, VideoModel.user_id == user_id)
    ).scalar_one_or_none()
    if not video:
        raise NotFoundError("Video not found")
    return video


def list_clips(session: Session, user_id: int, video_id: int | None = None) -> list[ClipModel]:
    """List a user's clips.

    With ``video_id``, returns that video's clips by score (best first).
    Otherwise returns all of the user's clips, newest first.

    Raises:
        NotFoundError: If ``video_id`` is given and is not one of the user's videos.
    """
    stmt = select(ClipModel).where(ClipModel.user_id == user_id)

    if video_id is not None:
        get_video(session, user_id, video_id)
        stmt = stmt.where(ClipModel.video_id == video_id).order_by(
            ClipModel.ai_score.desc(), ClipModel.start_time
        )
    else:
        stmt = stmt.order_by(ClipModel.created_at.desc(), ClipModel.id.desc())

    return list(session.execute(stmt).scalars())


def get_clip(session: Session, user_id: int, clip_id: int) -> ClipModel:
    """Get one of the user's clips.

    Raises:
        NotFoundError: If the clip does not exist or belongs to another user.
    """
    clip = session.execute(
        select(ClipModel).where(ClipModel.id == clip_id, ClipModel.user_id == user_id)
    ).scalar_one_or_none()
    if not clip:
        raise NotFoundError("Clip not found")
    return clip


def get_job_for_video(session: Session, user_id: int, video_id: int) -> GenerationJobModel:
    """Get the generation job of one of the user's videos."""
    get_video(session, user_id, video_id)
    job = session.execute(
        select(GenerationJobModel).where(GenerationJobModel.video_id == video_id)
    ).scalar_one_or_none()
    if not job:
        raise NotFoundError("Generation job not found")
    return job
