"""Domain enumerations."""

from enum import StrEnum


class PlanTier(StrEnum):
    """Subscription tier of a user."""

    FREE = "free"
    PRO = "pro"
    BUSINESS = "business"


class VideoStatus(StrEnum):
    """Lifecycle of an uploaded video."""

    UPLOADED = "uploaded"
    PROCESSING = "processing"
    READY = "ready"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (VideoStatus.READY, VideoStatus.FAILED)


class ClipStatus(StrEnum):
    """Lifecycle of a derived clip."""

    PROCESSING = "processing"
    READY = "ready"
    FAILED = "failed"


class PostStatus(StrEnum):
    """Lifecycle of a scheduled post."""

    PENDING = "pending"
    POSTED = "posted"
    CANCELED = "canceled"
    FAILED = "failed"


class JobStatus(StrEnum):
    """Status of a generation job."""

    QUEUED = "queued"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class Platform(StrEnum):
    """Social platforms a clip can be scheduled to."""

    TIKTOK = "tiktok"
    INSTAGRAM = "instagram"
    YOUTUBE = "youtube"
    FACEBOOK = "facebook"
    X = "x"
