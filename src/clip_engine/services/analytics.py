"""Analytics aggregator: engagement records and per-user rollups."""

from datetime import UTC, date, datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from clip_engine.adapters.analytics import AnalyticsAdapter, StubAnalyticsAdapter
from clip_engine.config import settings
from clip_engine.db.models import AnalyticsRecordModel, ScheduledPostModel
from clip_engine.domain.enums import Platform, PostStatus
from clip_engine.domain.errors import ValidationError
from clip_engine.domain.models import AnalyticsSummary, EngagementCounters
from clip_engine.logging import get_logger
from clip_engine.services.videos import get_clip
from clip_engine.utils import run_async

logger = get_logger(__name__)


def record_metrics(
    session: Session,
    user_id: int,
    clip_id: int,
    platform: str,
    counters: EngagementCounters,
    bucket_date: date | None = None,
) -> AnalyticsRecordModel:
    """Append an engagement record for one of the user's clips.

    Raises:
        NotFoundError: If the clip does not exist or belongs to another user.
        ValidationError: If the platform is unknown or a counter is negative.
    """
    clip = get_clip(session, user_id, clip_id)

    try:
        target = Platform(str(platform).strip().lower())
    except ValueError as e:
        raise ValidationError(f"Unknown platform: {platform}") from e

    values = (counters.views, counters.likes, counters.comments, counters.shares)
    if any(v < 0 for v in values):
        raise ValidationError("Engagement counters must be non-negative")

    record = AnalyticsRecordModel(
        user_id=user_id,
        clip_id=clip.id,
        platform=target,
        bucket_date=bucket_date or datetime.now(UTC).date(),
        views=counters.views,
        likes=counters.likes,
        comments=counters.comments,
        shares=counters.shares,
    )
    session.add(record)
    session.commit()
    session.refresh(record)

    logger.info(
        "analytics_recorded",
        user_id=user_id,
        clip_id=clip_id,
        platform=target,
        views=counters.views,
    )
    return record


def _totals():
    return (
        func.coalesce(func.sum(AnalyticsRecordModel.views), 0),
        func.coalesce(func.sum(AnalyticsRecordModel.likes), 0),
        func.coalesce(func.sum(AnalyticsRecordModel.comments), 0),
        func.coalesce(func.sum(AnalyticsRecordModel.shares), 0),
        func.count(AnalyticsRecordModel.id),
    )


def summarize(session: Session, user_id: int) -> AnalyticsSummary:
    """Lifetime totals over the user's analytics records. Zeros when there are none."""
    views, likes, comments, shares, posts = session.execute(
        select(*_totals()).where(AnalyticsRecordModel.user_id == user_id)
    ).one()

    return AnalyticsSummary(
        total_views=int(views),
        total_likes=int(likes),
        total_comments=int(comments),
        total_shares=int(shares),
        total_posts=int(posts),
    )


def breakdown_by_platform(session: Session, user_id: int) -> list[AnalyticsSummary]:
    """Same totals as :func:`summarize`, grouped by platform."""
    rows = session.execute(
        select(AnalyticsRecordModel.platform, *_totals())
        .where(AnalyticsRecordModel.user_id == user_id)
        .group_by(AnalyticsRecordModel.platform)
        .order_by(AnalyticsRecordModel.platform)
    ).all()

    return [
        AnalyticsSummary(
            platform=Platform(platform),
            total_views=int(views),
            total_likes=int(likes),
            total_comments=int(comments),
            total_shares=int(shares),
            total_posts=int(posts),
        )
        for platform, views, likes, comments, shares, posts in rows
    ]


def get_analytics_adapters() -> dict[Platform, AnalyticsAdapter]:
    """Analytics adapters keyed by platform."""
    return {platform: StubAnalyticsAdapter(platform=platform) for platform in Platform}


def _upsert_statement(session: Session):
    """INSERT .. ON CONFLICT for the bound dialect."""
    if session.get_bind().dialect.name == "postgresql":
        return pg_insert(AnalyticsRecordModel.__table__)
    return sqlite_insert(AnalyticsRecordModel.__table__)


def ingest_post_metrics(
    session: Session,
    adapters: dict[Platform, AnalyticsAdapter] | None = None,
    now: datetime | None = None,
    since_hours: int | None = None,
) -> int:
    """Pull engagement for due, non-canceled posts from their platforms.

    Adapters report lifetime counters, so each post keeps exactly one record
    per platform that is overwritten on every run. Posts scheduled more than
    ``since_hours`` ago are no longer polled. Returns the number of records
    written or refreshed.
    """
    adapters = adapters if adapters is not None else get_analytics_adapters()
    now = now or datetime.now(UTC)
    since_hours = since_hours or settings.analytics_since_hours
    cutoff = now - timedelta(hours=since_hours)

    posts = session.execute(
        select(ScheduledPostModel)
        .where(
            ScheduledPostModel.status != PostStatus.CANCELED,
            ScheduledPostModel.scheduled_at <= now,
            ScheduledPostModel.scheduled_at >= cutoff,
        )
        .order_by(ScheduledPostModel.id)
    ).scalars().all()

    written = 0
    for post in posts:
        for name in post.platforms:
            adapter = adapters.get(Platform(name))
            if adapter is None:
                logger.warning("analytics_adapter_missing", platform=name, schedule_id=post.id)
                continue

            snapshot = run_async(adapter.fetch_metrics(post.clip_id))
            stmt = _upsert_statement(session).values(
                user_id=post.user_id,
                clip_id=post.clip_id,
                schedule_id=post.id,
                platform=str(adapter.platform),
                date=snapshot.fetched_at.date(),
                views=snapshot.counters.views,
                likes=snapshot.counters.likes,
                comments=snapshot.counters.comments,
                shares=snapshot.counters.shares,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=["schedule_id", "platform"],
                set_={
                    column: stmt.excluded[column]
                    for column in ("date", "views", "likes", "comments", "shares")
                },
            )
            session.execute(stmt)
            written += 1

    session.commit()
    logger.info("analytics_ingested", records=written, since_hours=since_hours)
    return written
