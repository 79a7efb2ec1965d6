"""Scheduler: record a user's intent to publish a ready clip.

Posts are created ``pending`` and only move to ``canceled`` here. Actual
publishing to platforms is out of scope.
"""

from collections.abc import Iterable
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from clip_engine.db.models import ScheduledPostModel
from clip_engine.domain.enums import ClipStatus, Platform, PostStatus
from clip_engine.domain.errors import ClipNotReadyError, NotFoundError, ValidationError
from clip_engine.logging import get_logger
from clip_engine.services.videos import get_clip

logger = get_logger(__name__)


def normalize_platforms(platforms: Iterable[str] | None) -> list[Platform]:
    """Parse platform names, dropping duplicates while keeping order.

    Raises:
        ValidationError: If the list is empty or names an unknown platform.
    """
    result: list[Platform] = []
    for name in platforms or []:
        try:
            platform = Platform(str(name).strip().lower())
        except ValueError as e:
            raise ValidationError(f"Unknown platform: {name}") from e
        if platform not in result:
            result.append(platform)

    if not result:
        raise ValidationError("At least one platform is required")
    return result


def to_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def schedule_clip(
    session: Session,
    user_id: int,
    clip_id: int,
    platforms: Iterable[str] | None,
    caption: str | None = None,
    hashtags: str | None = None,
    scheduled_at: datetime | None = None,
) -> ScheduledPostModel:
    """Schedule one of the user's ready clips for posting.

    Raises:
        NotFoundError: If the clip does not exist or belongs to another user.
        ValidationError: If platforms are missing or unknown.
        ClipNotReadyError: If the clip is not ``ready``.
    """
    clip = get_clip(session, user_id, clip_id)
    targets = normalize_platforms(platforms)

    if clip.status != ClipStatus.READY:
        raise ClipNotReadyError(f"Clip {clip_id} is {clip.status}, not ready")

    post = ScheduledPostModel(
        user_id=user_id,
        clip_id=clip.id,
        platforms=[str(p) for p in targets],
        caption=caption,
        hashtags=hashtags,
        scheduled_at=to_utc(scheduled_at) if scheduled_at else datetime.now(UTC),
        status=PostStatus.PENDING,
    )
    session.add(post)
    session.commit()
    session.refresh(post)

    logger.info(
        "post_scheduled",
        user_id=user_id,
        clip_id=clip_id,
        schedule_id=post.id,
        platforms=post.platforms,
    )
    return post


def cancel_post(session: Session, user_id: int, schedule_id: int) -> ScheduledPostModel:
    """Cancel one of the user's pending posts.

    Raises:
        NotFoundError: If the post does not exist, belongs to another user, or
            is no longer pending.
    """
    post = session.execute(
        select(ScheduledPostModel).where(
            ScheduledPostModel.id == schedule_id,
            ScheduledPostModel.user_id == user_id,
            ScheduledPostModel.status == PostStatus.PENDING,
        )
    ).scalar_one_or_none()
    if not post:
        raise NotFoundError("Scheduled post not found")

    post.status = PostStatus.CANCELED
    session.commit()
    session.refresh(post)

    logger.info("post_canceled", user_id=user_id, schedule_id=schedule_id)
    return post


def list_posts(
    session: Session, user_id: int, include_canceled: bool = False
) -> list[ScheduledPostModel]:
    """List a user's scheduled posts, soonest first."""
    stmt = select(ScheduledPostModel).where(ScheduledPostModel.user_id == user_id)
    if not include_canceled:
        stmt = stmt.where(ScheduledPostModel.status != PostStatus.CANCELED)
    stmt = stmt.order_by(ScheduledPostModel.scheduled_at, ScheduledPostModel.id)
    return list(session.execute(stmt).scalars())
