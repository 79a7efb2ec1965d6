"""Clip generation engine.

Drives a video through ``uploaded -> processing -> ready | failed``:

1. Claim - a conditional UPDATE moves the video from ``uploaded`` to
   ``processing`` and the job to ``running``. If no row matches, another run
   already owns the video and this call is a no-op.
2. Analyze - the media analysis collaborator reports duration and scored
   intervals, under a timeout.
3. Validate - intervals are checked against the interval policy.
4. Commit - clips, the video's ``ready`` state, the user's quota increment and
   the job's ``succeeded`` state are written in one transaction.

Any failure in 2-4 rolls back and marks the video and job ``failed`` in a
fresh transaction. A run that loses its video to stale-job recovery fails
only its job. Runs are never retried automatically.
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from pathlib import Path

from sqlalchemy import and_, or_, select, update
from sqlalchemy.orm import Session

from clip_engine.adapters.media_analysis.base import MediaAnalysisError, MediaAnalyzer
from clip_engine.adapters.media_analysis.stub import StubMediaAnalyzer
from clip_engine.config import settings
from clip_engine.db.models import ClipModel, GenerationJobModel, UserModel, VideoModel
from clip_engine.db.session import SessionLocal
from clip_engine.domain.enums import ClipStatus, JobStatus, VideoStatus
from clip_engine.domain.errors import (
    ClipEngineError,
    DependencyFailureError,
    NotFoundError,
    QuotaExceededError,
)
from clip_engine.domain.intervals import validate_analysis
from clip_engine.domain.models import AnalysisResult, ClipCandidate
from clip_engine.logging import get_logger
from clip_engine.services.storage import StorageService
from clip_engine.services.users import add_clips_used
from clip_engine.utils import run_async

logger = get_logger(__name__)


@dataclass
class GenerationOutcome:
    """What a generation call did. Callers outside the worker poll state instead."""

    video_id: int
    status: str
    clips_created: int = 0
    skipped: bool = False
    error_message: str | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "success": self.status == VideoStatus.READY and not self.skipped,
            "video_id": self.video_id,
            "status": self.status,
            "clips_created": self.clips_created,
            "skipped": self.skipped,
            "error": self.error_message,
        }


def get_media_analyzer() -> MediaAnalyzer:
    """Get the configured media analysis provider."""
    provider = settings.media_analysis_provider.lower()

    if provider != "stub":
        logger.warning(f"Unknown media_analysis_provider '{provider}', using stub")

    return StubMediaAnalyzer(
        duration_seconds=settings.stub_video_duration,
        clip_length_seconds=settings.stub_clip_length,
    )


class ClipGenerationEngine:
    """Runs generation for one video at a time; safe to run concurrently across videos."""

    def __init__(
        self,
        session_factory: Callable[[], Session] | None = None,
        analyzer: MediaAnalyzer | None = None,
        storage: StorageService | None = None,
        timeout_seconds: float | None = None,
        min_clips: int | None = None,
        max_clips: int | None = None,
    ) -> None:
        self.session_factory = session_factory or SessionLocal
        self.analyzer = analyzer or get_media_analyzer()
        self.storage = storage or StorageService()
        self.timeout_seconds = timeout_seconds or settings.analysis_timeout_seconds
        self.min_clips = settings.min_clips_per_video if min_clips is None else min_clips
        self.max_clips = settings.max_clips_per_video if max_clips is None else max_clips

    def generate(self, video_id: int, user_id: int) -> GenerationOutcome:
        """Run generation once for a video.

        Returns immediately with ``skipped=True`` if the video is not in
        ``uploaded`` state. Collaborator failures leave the video ``failed``
        and are reported in the outcome; unexpected errors are re-raised after
        the failure state is written.
        """
        log = logger.bind(video_id=video_id, user_id=user_id)

        claimed = self._claim(video_id, user_id)
        if isinstance(claimed, GenerationOutcome):
            return claimed
        video_handle = claimed

        log.info("generation_started", analyzer=self.analyzer.name)

        try:
            analysis = self._analyze(self.storage.resolve(video_handle))
            candidates = validate_analysis(analysis, self.min_clips, self.max_clips)
            created = self._commit(video_id, user_id, video_handle, analysis, candidates)
        except (ClipEngineError, MediaAnalysisError, TimeoutError) as e:
            error = DependencyFailureError(str(e) or type(e).__name__)
            log.error("generation_failed", error=error.message, error_type=type(e).__name__)
            self._fail(video_id, error.message)
            return GenerationOutcome(
                video_id=video_id,
                status=VideoStatus.FAILED,
                error_message=error.message,
            )
        except Exception as e:
            log.exception("generation_crashed", error=str(e))
            self._fail(video_id, f"Unexpected error: {e}")
            raise

        if created is None:
            # The video left ``processing`` while analysis ran (stale-job recovery)
            log.warning("generation_discarded")
            with self.session_factory() as session:
                fail_generation(session, video_id, "Run was superseded", fail_video=False)
            return GenerationOutcome(
                video_id=video_id,
                status=VideoStatus.FAILED,
                error_message="Run was superseded",
            )

        log.info("generation_completed", clips_created=created, duration=analysis.duration)
        return GenerationOutcome(video_id=video_id, status=VideoStatus.READY, clips_created=created)

    def _claim(self, video_id: int, user_id: int) -> str | GenerationOutcome:
        """Move the video to ``processing``. Returns its storage handle, or an outcome if not claimed."""
        with self.session_factory() as session:
            result = session.execute(
                update(VideoModel)
                .where(
                    VideoModel.id == video_id,
                    VideoModel.user_id == user_id,
                    VideoModel.status == VideoStatus.UPLOADED,
                )
                .values(status=VideoStatus.PROCESSING)
                .execution_options(synchronize_session=False)
            )

            if result.rowcount != 1:
                session.rollback()
                current = session.execute(
                    select(VideoModel.status).where(
                        VideoModel.id == video_id, VideoModel.user_id == user_id
                    )
                ).scalar_one_or_none()
                logger.info(
                    "generation_skipped",
                    video_id=video_id,
                    user_id=user_id,
                    status=current,
                )
                return GenerationOutcome(
                    video_id=video_id,
                    status=current or "missing",
                    skipped=True,
                )

            video = session.get(VideoModel, video_id)
            job = self._job_for(session, video_id, user_id)
            job.status = JobStatus.RUNNING
            job.started_at = datetime.now(UTC)

            user = session.get(UserModel, user_id)
            if settings.quota_enforced and user.clips_used >= user.clips_limit:
                error = QuotaExceededError(
                    f"Clip quota exhausted ({user.clips_used}/{user.clips_limit})"
                )
                video.status = VideoStatus.FAILED
                video.error_message = error.message
                job.status = JobStatus.FAILED
                job.error_message = error.message
                job.completed_at = datetime.now(UTC)
                session.commit()
                logger.warning("generation_quota_exceeded", video_id=video_id, user_id=user_id)
                return GenerationOutcome(
                    video_id=video_id,
                    status=VideoStatus.FAILED,
                    error_message=error.message,
                )

            handle = video.filename
            session.commit()
            return handle

    def _job_for(self, session: Session, video_id: int, user_id: int) -> GenerationJobModel:
        job = session.execute(
            select(GenerationJobModel).where(GenerationJobModel.video_id == video_id)
        ).scalar_one_or_none()
        if job is None:
            job = GenerationJobModel(video_id=video_id, user_id=user_id, clips_created=0)
            session.add(job)
        return job

    def _analyze(self, video_path: Path) -> AnalysisResult:
        async def _bounded() -> AnalysisResult:
            return await asyncio.wait_for(
                self.analyzer.analyze(video_path), timeout=self.timeout_seconds
            )

        try:
            return run_async(_bounded())
        except asyncio.TimeoutError as e:
            raise TimeoutError(
                f"Media analysis timed out after {self.timeout_seconds}s"
            ) from e

    def _commit(
        self,
        video_id: int,
        user_id: int,
        video_handle: str,
        analysis: AnalysisResult,
        candidates: list[ClipCandidate],
    ) -> int | None:
        """Write clips, video state, quota and job state atomically.

        Returns the number of clips created, or None if the video is no longer
        ``processing``.
        """
        with self.session_factory() as session:
            try:
                result = session.execute(
                    update(VideoModel)
                    .where(
                        VideoModel.id == video_id,
                        VideoModel.status == VideoStatus.PROCESSING,
                    )
                    .values(
                        status=VideoStatus.READY,
                        duration=analysis.duration,
                        error_message=None,
                    )
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    session.rollback()
                    return None

                for index, candidate in enumerate(candidates, start=1):
                    session.add(
                        ClipModel(
                            video_id=video_id,
                            user_id=user_id,
                            title=candidate.title or f"Clip #{index}",
                            filename=self.storage.clip_handle(video_handle, index),
                            start_time=candidate.start,
                            end_time=candidate.end,
                            duration=candidate.end - candidate.start,
                            ai_score=candidate.score,
                            status=ClipStatus.READY,
                        )
                    )

                add_clips_used(session, user_id, len(candidates))

                job = self._job_for(session, video_id, user_id)
                job.status = JobStatus.SUCCEEDED
                job.clips_created = len(candidates)
                job.error_message = None
                job.completed_at = datetime.now(UTC)
                job.output_data = {
                    "duration": analysis.duration,
                    "analyzer": self.analyzer.name,
                    **analysis.metadata,
                }

                session.commit()
            except Exception:
                session.rollback()
                raise

        return len(candidates)

    def _fail(self, video_id: int, error_message: str) -> None:
        """Mark the video and its job ``failed`` in a fresh transaction."""
        with self.session_factory() as session:
            fail_generation(session, video_id, error_message)


def fail_generation(
    session: Session,
    video_id: int,
    error_message: str,
    fail_video: bool = True,
) -> None:
    """Move an unfinished video and its unfinished job to ``failed`` and commit.

    Videos already ``ready`` or ``failed`` and finished jobs are left as they are.
    """
    now = datetime.now(UTC)
    if fail_video:
        session.execute(
            update(VideoModel)
            .where(
                VideoModel.id == video_id,
                VideoModel.status.in_([VideoStatus.UPLOADED, VideoStatus.PROCESSING]),
            )
            .values(status=VideoStatus.FAILED, error_message=error_message)
            .execution_options(synchronize_session=False)
        )
    session.execute(
        update(GenerationJobModel)
        .where(
            GenerationJobModel.video_id == video_id,
            GenerationJobModel.status.in_([JobStatus.QUEUED, JobStatus.RUNNING]),
        )
        .values(status=JobStatus.FAILED, error_message=error_message, completed_at=now)
        .execution_options(synchronize_session=False)
    )
    session.commit()


def mark_clip_failed(session: Session, user_id: int, clip_id: int, reason: str) -> ClipModel:
    """Move a single clip to ``failed`` after its video succeeded.

    The parent video stays ``ready`` and the user's quota is not refunded.

    Raises:
        NotFoundError: If the clip does not exist or belongs to another user.
    """
    clip = session.execute(
        select(ClipModel).where(ClipModel.id == clip_id, ClipModel.user_id == user_id)
    ).scalar_one_or_none()
    if not clip:
        raise NotFoundError("Clip not found")

    clip.status = ClipStatus.FAILED
    clip.error_message = reason
    session.commit()
    session.refresh(clip)

    logger.warning("clip_marked_failed", clip_id=clip_id, video_id=clip.video_id, reason=reason)
    return clip


def recover_stale_jobs(session: Session, older_than: timedelta | None = None) -> list[int]:
    """Fail jobs that will never finish on their own.

    Two cases are covered: jobs stuck in ``running`` (the worker died
    mid-run) and jobs still ``queued`` with no Celery task ID (the enqueue
    never happened). Their videos move to ``failed`` so the crash is visible
    to pollers. Returns the IDs of recovered jobs.
    """
    if older_than is None:
        older_than = timedelta(minutes=settings.stale_job_minutes)
    cutoff = datetime.now(UTC) - older_than
    message = f"Generation did not finish within {int(older_than.total_seconds())}s"

    stale = list(
        session.execute(
            select(GenerationJobModel)
            .where(
                or_(
                    and_(
                        GenerationJobModel.status == JobStatus.RUNNING,
                        GenerationJobModel.started_at < cutoff,
                    ),
                    and_(
                        GenerationJobModel.status == JobStatus.QUEUED,
                        GenerationJobModel.celery_task_id.is_(None),
                        GenerationJobModel.created_at < cutoff,
                    ),
                )
            )
            .order_by(GenerationJobModel.id)
        ).scalars()
    )

    for job in stale:
        job.status = JobStatus.FAILED
        job.error_message = message
        job.completed_at = datetime.now(UTC)
        session.execute(
            update(VideoModel)
            .where(
                VideoModel.id == job.video_id,
                VideoModel.status.in_([VideoStatus.UPLOADED, VideoStatus.PROCESSING]),
            )
            .values(status=VideoStatus.FAILED, error_message=message)
            .execution_options(synchronize_session=False)
        )

    session.commit()

    if stale:
        logger.warning("stale_jobs_recovered", job_ids=[j.id for j in stale])
    return [job.id for job in stale]
