"""Response models shared by several routers."""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict

from clip_engine.domain.enums import Platform


class UserResponse(BaseModel):
    """The calling user's profile and quota."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    avatar: str | None = None
    plan: str
    clips_used: int
    clips_limit: int
    clips_remaining: int
    created_at: datetime | None = None


class VideoResponse(BaseModel):
    """An uploaded video and its processing state."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    filename: str
    original_name: str | None = None
    content_type: str | None = None
    size: int
    duration: float | None = None
    status: str
    error_message: str | None = None
    created_at: datetime | None = None


class ClipResponse(BaseModel):
    """A generated clip."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    video_id: int
    title: str | None = None
    filename: str | None = None
    start_time: float
    end_time: float
    duration: float
    ai_score: int
    subtitle_file: str | None = None
    status: str
    created_at: datetime | None = None


class JobResponse(BaseModel):
    """State of a video's generation job."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    video_id: int
    status: str
    celery_task_id: str | None = None
    clips_created: int
    error_message: str | None = None
    output_data: dict[str, Any] | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None


class ScheduledPostResponse(BaseModel):
    """A scheduled post."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    clip_id: int
    platforms: list[str]
    caption: str | None = None
    hashtags: str | None = None
    scheduled_at: datetime
    status: str
    created_at: datetime | None = None


class AnalyticsSummaryResponse(BaseModel):
    """Engagement totals."""

    model_config = ConfigDict(from_attributes=True)

    total_views: int
    total_likes: int
    total_comments: int
    total_shares: int
    total_posts: int
    platform: Platform | None = None


class AnalyticsRecordResponse(BaseModel):
    """One stored engagement record."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    clip_id: int
    platform: str
    bucket_date: date
    views: int
    likes: int
    comments: int
    shares: int
