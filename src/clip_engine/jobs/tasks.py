"""Celery task definitions for clip generation and maintenance."""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy.orm import Session

from clip_engine.db.models import GenerationJobModel
from clip_engine.db.session import get_session_context
from clip_engine.domain.errors import DependencyFailureError
from clip_engine.logging import get_logger
from clip_engine.services.analytics import ingest_post_metrics
from clip_engine.services.generation import (
    ClipGenerationEngine,
    fail_generation,
    recover_stale_jobs,
)
from clip_engine.worker import celery_app

logger = get_logger(__name__)


@celery_app.task(bind=True, name="generation.run_clip_generation", max_retries=0)
def run_clip_generation_task(self: Any, job_id: int) -> dict[str, Any]:
    """Run clip generation for the video behind a generation job.

    Runs are not retried. A second delivery of the same job finds the video
    no longer ``uploaded`` and returns without doing anything.
    """
    task_id = self.request.id
    logger.info("clip_generation_task_started", task_id=task_id, job_id=job_id)

    with get_session_context() as session:
        job = session.get(GenerationJobModel, job_id)
        if not job:
            logger.error("clip_generation_job_missing", task_id=task_id, job_id=job_id)
            return {"success": False, "job_id": job_id, "error": "Job not found"}
        video_id, user_id = job.video_id, job.user_id

    outcome = ClipGenerationEngine().generate(video_id, user_id)

    result = {
        "task_id": task_id,
        "job_id": job_id,
        "completed_at": datetime.now(UTC).isoformat(),
        **outcome.to_dict(),
    }
    logger.info("clip_generation_task_completed", **result)
    return result


@celery_app.task(bind=True, name="maintenance.recover_stale_jobs")
def recover_stale_jobs_task(self: Any) -> dict[str, Any]:
    """Fail generation jobs whose worker died mid-run."""
    with get_session_context() as session:
        recovered = recover_stale_jobs(session)
    return {"task_id": self.request.id, "recovered_job_ids": recovered}


@celery_app.task(bind=True, name="analytics.ingest_post_metrics")
def ingest_post_metrics_task(self: Any) -> dict[str, Any]:
    """Pull engagement for due scheduled posts."""
    with get_session_context() as session:
        written = ingest_post_metrics(session)
    return {"task_id": self.request.id, "records_written": written}


def dispatch_generation(session: Session, job: GenerationJobModel) -> str:
    """Enqueue generation for a queued job and remember the Celery task ID.

    Returns without waiting; callers poll the video or job for the result.

    Raises:
        DependencyFailureError: If the broker rejects the task. The video and
            job are marked ``failed`` first.
    """
    try:
        task = run_clip_generation_task.delay(job.id)
    except Exception as e:
        message = f"Could not enqueue clip generation: {e}"
        logger.error(
            "clip_generation_dispatch_failed",
            job_id=job.id,
            video_id=job.video_id,
            error=str(e),
        )
        fail_generation(session, job.video_id, message)
        raise DependencyFailureError(message) from e

    job.celery_task_id = task.id
    session.commit()

    logger.info(
        "clip_generation_dispatched",
        job_id=job.id,
        video_id=job.video_id,
        task_id=task.id,
    )
    return task.id
