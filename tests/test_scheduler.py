"""Tests for the scheduler."""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from clip_engine.domain.enums import ClipStatus, Platform, PostStatus
from clip_engine.domain.errors import ClipNotReadyError, NotFoundError, ValidationError
from clip_engine.services.scheduler import (
    cancel_post,
    list_posts,
    normalize_platforms,
    schedule_clip,
    to_utc,
)


def test_schedule_ready_clip(session, user, make_clip) -> None:
    clip = make_clip(user.id)
    when = datetime(2030, 1, 1, 12, 0, tzinfo=UTC)

    post = schedule_clip(
        session,
        user.id,
        clip.id,
        ["youtube", "x"],
        caption="Watch this",
        hashtags="#fyp",
        scheduled_at=when,
    )

    assert post.status == PostStatus.PENDING
    assert post.platforms == ["youtube", "x"]
    assert post.caption == "Watch this"
    assert to_utc(post.scheduled_at) == when


def test_schedule_defaults_to_now(session, user, make_clip) -> None:
    clip = make_clip(user.id)

    before = datetime.now(UTC)
    post = schedule_clip(session, user.id, clip.id, ["tiktok"])
    after = datetime.now(UTC)

    assert before - timedelta(seconds=1) <= to_utc(post.scheduled_at) <= after + timedelta(seconds=1)


def test_schedule_other_users_clip_is_not_found(session, user, other_user, make_clip) -> None:
    clip = make_clip(other_user.id)

    with pytest.raises(NotFoundError):
        schedule_clip(session, user.id, clip.id, ["tiktok"])


def test_schedule_missing_clip_is_not_found(session, user) -> None:
    with pytest.raises(NotFoundError):
        schedule_clip(session, user.id, 12345, ["tiktok"])


@pytest.mark.parametrize("status", [ClipStatus.PROCESSING, ClipStatus.FAILED])
def test_schedule_requires_ready_clip(session, user, make_clip, status) -> None:
    clip = make_clip(user.id, status=status)

    with pytest.raises(ClipNotReadyError):
        schedule_clip(session, user.id, clip.id, ["tiktok"])


def test_schedule_validates_platforms(session, user, make_clip) -> None:
    clip = make_clip(user.id)

    with pytest.raises(ValidationError):
        schedule_clip(session, user.id, clip.id, [])

    with pytest.raises(ValidationError, match="myspace"):
        schedule_clip(session, user.id, clip.id, ["tiktok", "myspace"])


def test_normalize_platforms_dedupes_in_order() -> None:
    assert normalize_platforms(["Instagram", "tiktok", "instagram "]) == [
        Platform.INSTAGRAM,
        Platform.TIKTOK,
    ]


def test_to_utc() -> None:
    naive = datetime(2030, 5, 1, 9, 30)
    offset = datetime(2030, 5, 1, 11, 30, tzinfo=timezone(timedelta(hours=2)))

    assert to_utc(naive) == datetime(2030, 5, 1, 9, 30, tzinfo=UTC)
    assert to_utc(offset) == datetime(2030, 5, 1, 9, 30, tzinfo=UTC)


def test_cancel_only_pending_posts_once(session, user, other_user, make_clip) -> None:
    clip = make_clip(user.id)
    post = schedule_clip(session, user.id, clip.id, ["tiktok"])

    with pytest.raises(NotFoundError):
        cancel_post(session, other_user.id, post.id)

    canceled = cancel_post(session, user.id, post.id)
    assert canceled.status == PostStatus.CANCELED

    with pytest.raises(NotFoundError):
        cancel_post(session, user.id, post.id)

    with pytest.raises(NotFoundError):
        cancel_post(session, user.id, 999)


def test_list_posts_orders_by_schedule_and_hides_canceled(session, user, make_clip) -> None:
    clip = make_clip(user.id)
    later = schedule_clip(
        session, user.id, clip.id, ["tiktok"], scheduled_at=datetime(2030, 2, 1, tzinfo=UTC)
    )
    sooner = schedule_clip(
        session, user.id, clip.id, ["x"], scheduled_at=datetime(2030, 1, 1, tzinfo=UTC)
    )
    dropped = schedule_clip(
        session, user.id, clip.id, ["youtube"], scheduled_at=datetime(2029, 1, 1, tzinfo=UTC)
    )
    cancel_post(session, user.id, dropped.id)

    assert [p.id for p in list_posts(session, user.id)] == [sooner.id, later.id]
    assert [p.id for p in list_posts(session, user.id, include_canceled=True)] == [
        dropped.id,
        sooner.id,
        later.id,
    ]
