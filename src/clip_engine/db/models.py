"""SQLAlchemy ORM models."""

from datetime import date, datetime
from typing import Any

from sqlalchemy import (
    JSON,
    BigInteger,
    CheckConstraint,
    Date,
    DateTime,
    Float,
    ForeignKey,
    ForeignKeyConstraint,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


# =============================================================================
# Identity
# =============================================================================


class UserModel(Base):
    """User account with plan tier and clip quota."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True, index=True)
    avatar: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    plan: Mapped[str] = mapped_column(String(50), server_default="free")
    clips_used: Mapped[int] = mapped_column(Integer, server_default="0", nullable=False)
    clips_limit: Mapped[int] = mapped_column(Integer, server_default="50", nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (CheckConstraint("clips_used >= 0", name="ck_users_clips_used"),)

    videos: Mapped[list["VideoModel"]] = relationship(
        "VideoModel", back_populates="user", cascade="all, delete-orphan"
    )

    @property
    def clips_remaining(self) -> int:
        return max(0, (self.clips_limit or 0) - (self.clips_used or 0))


# =============================================================================
# Pipeline
# =============================================================================


class VideoModel(Base):
    """Uploaded source video."""

    __tablename__ = "videos"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    filename: Mapped[str] = mapped_column(String(1024), nullable=False)
    original_name: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    content_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    duration: Mapped[float | None] = mapped_column(Float, nullable=True)
    status: Mapped[str] = mapped_column(String(50), server_default="uploaded", index=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), index=True
    )

    # Target of the clips (video_id, user_id) foreign key
    __table_args__ = (UniqueConstraint("id", "user_id", name="uq_videos_id_user"),)

    user: Mapped["UserModel"] = relationship("UserModel", back_populates="videos")
    clips: Mapped[list["ClipModel"]] = relationship(
        "ClipModel",
        back_populates="video",
        cascade="all, delete-orphan",
        order_by="ClipModel.start_time",
    )
    job: Mapped["GenerationJobModel | None"] = relationship(
        "GenerationJobModel", back_populates="video", uselist=False, cascade="all, delete-orphan"
    )


class ClipModel(Base):
    """Scored, time-bounded derivative of a video."""

    __tablename__ = "clips"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    video_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    filename: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    start_time: Mapped[float] = mapped_column(Float, nullable=False)
    end_time: Mapped[float] = mapped_column(Float, nullable=False)
    duration: Mapped[float] = mapped_column(Float, nullable=False)
    ai_score: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    subtitle_file: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    status: Mapped[str] = mapped_column(String(50), server_default="processing", index=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), index=True
    )

    __table_args__ = (
        # A clip's owner is always its video's owner
        ForeignKeyConstraint(
            ["video_id", "user_id"],
            ["videos.id", "videos.user_id"],
            ondelete="CASCADE",
            name="fk_clips_video_owner",
        ),
        CheckConstraint("start_time >= 0", name="ck_clips_start"),
        CheckConstraint("end_time > start_time", name="ck_clips_interval"),
        CheckConstraint("ai_score >= 0 AND ai_score <= 100", name="ck_clips_score"),
    )

    video: Mapped["VideoModel"] = relationship("VideoModel", back_populates="clips")


class GenerationJobModel(Base):
    """Durable record of one clip generation run."""

    __tablename__ = "generation_jobs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    video_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("videos.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(String(50), server_default="queued", index=True)
    celery_task_id: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    clips_created: Mapped[int] = mapped_column(Integer, server_default="0")
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    output_data: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    video: Mapped["VideoModel"] = relationship("VideoModel", back_populates="job")


# =============================================================================
# Scheduling & Analytics
# =============================================================================


class ScheduledPostModel(Base):
    """A user's intent to publish a clip to one or more platforms."""

    __tablename__ = "scheduled_posts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    clip_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("clips.id", ondelete="CASCADE"), nullable=False, index=True
    )
    platforms: Mapped[list[str]] = mapped_column(JSON, nullable=False)
    caption: Mapped[str | None] = mapped_column(Text, nullable=True)
    hashtags: Mapped[str | None] = mapped_column(Text, nullable=True)
    scheduled_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[str] = mapped_column(String(50), server_default="pending", index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    clip: Mapped["ClipModel"] = relationship("ClipModel")


class AnalyticsRecordModel(Base):
    """Engagement counters for one clip on one platform for one date bucket."""

    __tablename__ = "analytics_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    clip_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("clips.id", ondelete="CASCADE"), nullable=False, index=True
    )
    platform: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    # Set on rows pulled from platform adapters; NULL for manually recorded counters
    schedule_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("scheduled_posts.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    bucket_date: Mapped[date] = mapped_column(
        "date", Date, nullable=False, server_default=func.current_date()
    )
    views: Mapped[int] = mapped_column(BigInteger, server_default="0", nullable=False)
    likes: Mapped[int] = mapped_column(BigInteger, server_default="0", nullable=False)
    comments: Mapped[int] = mapped_column(BigInteger, server_default="0", nullable=False)
    shares: Mapped[int] = mapped_column(BigInteger, server_default="0", nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint(
            "views >= 0 AND likes >= 0 AND comments >= 0 AND shares >= 0",
            name="ck_analytics_counters",
        ),
        UniqueConstraint("schedule_id", "platform", name="uq_analytics_post_platform"),
    )
