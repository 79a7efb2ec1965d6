"""Celery job definitions."""

from clip_engine.jobs.tasks import (
    dispatch_generation,
    ingest_post_metrics_task,
    recover_stale_jobs_task,
    run_clip_generation_task,
)

__all__ = [
    "dispatch_generation",
    "ingest_post_metrics_task",
    "recover_stale_jobs_task",
    "run_clip_generation_task",
]
