"""Database layer."""

from clip_engine.db.models import (
    AnalyticsRecordModel,
    Base,
    ClipModel,
    GenerationJobModel,
    ScheduledPostModel,
    UserModel,
    VideoModel,
)
from clip_engine.db.session import get_session, get_session_context, init_db

__all__ = [
    "Base",
    "get_session",
    "get_session_context",
    "init_db",
    # Models
    "AnalyticsRecordModel",
    "ClipModel",
    "GenerationJobModel",
    "ScheduledPostModel",
    "UserModel",
    "VideoModel",
]
