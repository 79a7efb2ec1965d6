"""Celery worker configuration."""

from celery import Celery

from clip_engine.config import settings
from clip_engine.logging import setup_logging

# Setup logging before anything else
setup_logging()

# Create Celery app
celery_app = Celery(
    "clip_engine",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
)

# Celery configuration
celery_app.conf.update(
    # Task settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    # Task execution
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_time_limit=600,  # 10 minutes max
    task_soft_time_limit=540,  # 9 minutes soft limit
    # Worker settings
    worker_prefetch_multiplier=1,
    worker_concurrency=4,
    # Result backend
    result_expires=86400,  # 24 hours
    # Task routing
    task_routes={
        "generation.run_clip_generation": {"queue": "high"},
        "maintenance.recover_stale_jobs": {"queue": "low"},
        "analytics.ingest_post_metrics": {"queue": "low"},
    },
    # Beat scheduler (for periodic tasks)
    beat_schedule={
        "recover-stale-jobs": {
            "task": "maintenance.recover_stale_jobs",
            "schedule": 300.0,  # 5 minutes
            "options": {"queue": "low"},
        },
        "ingest-post-metrics-hourly": {
            "task": "analytics.ingest_post_metrics",
            "schedule": 3600.0,  # 1 hour
            "options": {"queue": "low"},
        },
    },
)

# Auto-discover tasks
celery_app.autodiscover_tasks(["clip_engine.jobs"])
