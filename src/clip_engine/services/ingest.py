"""Media ingest: validate an upload, store it and register the video."""

from pathlib import Path
from typing import BinaryIO

from sqlalchemy.orm import Session

from clip_engine.config import settings
from clip_engine.db.models import GenerationJobModel, VideoModel
from clip_engine.domain.enums import JobStatus, VideoStatus
from clip_engine.domain.errors import PayloadTooLargeError, UnsupportedFormatError
from clip_engine.logging import get_logger
from clip_engine.services.storage import EXTENSION_BY_MIME, StorageService
from clip_engine.services.users import ensure_quota_available, get_user

logger = get_logger(__name__)

# Content types browsers send when they don't know better
GENERIC_CONTENT_TYPES = {"", "application/octet-stream", "binary/octet-stream"}


def resolve_content_type(original_name: str | None, content_type: str | None) -> str:
    """Return the recognized video content type of an upload.

    Falls back to the file extension only when the declared type is generic.

    Raises:
        UnsupportedFormatError: If the upload is not an accepted container.
    """
    declared = (content_type or "").split(";")[0].strip().lower()
    allowed = set(settings.allowed_video_types)

    if declared in allowed:
        return declared

    if declared in GENERIC_CONTENT_TYPES and original_name:
        suffix = Path(original_name).suffix.lower()
        for mime, ext in EXTENSION_BY_MIME.items():
            if ext == suffix and mime in allowed:
                return mime

    raise UnsupportedFormatError(f"Unsupported video format: {content_type or 'unknown'}")


def ingest_video(
    session: Session,
    storage: StorageService,
    user_id: int,
    stream: BinaryIO,
    original_name: str | None,
    content_type: str | None,
    declared_size: int | None = None,
) -> tuple[VideoModel, GenerationJobModel]:
    """Store an upload and create its Video (``uploaded``) and queued job.

    Format, declared size and quota are checked before anything is written.
    Dispatching the job to a worker is left to the caller.

    Raises:
        NotFoundError: If the user does not exist.
        UnsupportedFormatError: If the content type is not an accepted video container.
        PayloadTooLargeError: If the upload exceeds the size ceiling.
        QuotaExceededError: If the user's clip quota is exhausted.
    """
    user = get_user(session, user_id)
    mime = resolve_content_type(original_name, content_type)

    max_bytes = settings.max_upload_bytes
    if declared_size is not None and declared_size > max_bytes:
        raise PayloadTooLargeError(f"Upload exceeds the {max_bytes} byte limit")

    ensure_quota_available(user)

    stored = storage.store_upload(
        user_id=user.id,
        stream=stream,
        original_name=original_name,
        content_type=mime,
        max_bytes=max_bytes,
    )

    try:
        video = VideoModel(
            user_id=user.id,
            filename=stored.handle,
            original_name=original_name,
            content_type=mime,
            size=stored.size,
            status=VideoStatus.UPLOADED,
        )
        session.add(video)
        session.flush()

        job = GenerationJobModel(
            video_id=video.id,
            user_id=user.id,
            status=JobStatus.QUEUED,
            clips_created=0,
        )
        session.add(job)
        session.commit()
    except Exception:
        session.rollback()
        storage.delete(stored.handle)
        raise

    session.refresh(video)
    session.refresh(job)

    logger.info(
        "video_ingested",
        user_id=user.id,
        video_id=video.id,
        job_id=job.id,
        size=stored.size,
        content_type=mime,
    )
    return video, job
