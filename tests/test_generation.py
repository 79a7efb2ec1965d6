"""Tests for the clip generation engine."""

import asyncio
import io
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from sqlalchemy import create_engine, event, select, update
from sqlalchemy.orm import sessionmaker

from clip_engine.adapters.media_analysis.base import MediaAnalysisError, MediaAnalyzer
from clip_engine.adapters.media_analysis.stub import StubMediaAnalyzer
from clip_engine.db.models import Base, ClipModel, GenerationJobModel, UserModel, VideoModel
from clip_engine.domain.enums import ClipStatus, JobStatus, PostStatus, VideoStatus
from clip_engine.domain.errors import ClipNotReadyError, NotFoundError
from clip_engine.domain.models import AnalysisResult, ClipCandidate
from clip_engine.services.generation import (
    ClipGenerationEngine,
    mark_clip_failed,
    recover_stale_jobs,
)
from clip_engine.services.ingest import ingest_video
from clip_engine.services.scheduler import cancel_post, schedule_clip, to_utc
from clip_engine.services.users import add_clips_used, create_user
from clip_engine.services.videos import list_clips


class FixedAnalyzer(MediaAnalyzer):
    """Returns a preset result."""

    def __init__(self, result: AnalysisResult) -> None:
        self.result = result

    @property
    def name(self) -> str:
        return "fixed"

    async def analyze(self, video_path: Path) -> AnalysisResult:
        return self.result


class FailingAnalyzer(MediaAnalyzer):
    def __init__(self, error: Exception) -> None:
        self.error = error

    @property
    def name(self) -> str:
        return "failing"

    async def analyze(self, video_path: Path) -> AnalysisResult:
        raise self.error


class SlowAnalyzer(MediaAnalyzer):
    @property
    def name(self) -> str:
        return "slow"

    async def analyze(self, video_path: Path) -> AnalysisResult:
        await asyncio.sleep(5)
        return AnalysisResult(duration=10.0, clips=[ClipCandidate(start=0, end=5, score=80)])


def make_engine(session_factory, storage, analyzer: MediaAnalyzer, **kwargs) -> ClipGenerationEngine:
    return ClipGenerationEngine(
        session_factory=session_factory,
        analyzer=analyzer,
        storage=storage,
        **kwargs,
    )


def reload(session, model, pk):
    session.expire_all()
    return session.get(model, pk)


def clip_count(session, video_id: int) -> int:
    return len(session.execute(select(ClipModel).where(ClipModel.video_id == video_id)).all())


def test_end_to_end_240_second_video(session, session_factory, storage, user, upload) -> None:
    video, job = upload(user.id)
    engine = make_engine(
        session_factory,
        storage,
        StubMediaAnalyzer(duration_seconds=240.0, min_clips=5, max_clips=6),
    )

    outcome = engine.generate(video.id, user.id)

    assert outcome.status == VideoStatus.READY
    assert outcome.clips_created == 5
    assert not outcome.skipped

    video = reload(session, VideoModel, video.id)
    assert video.status == VideoStatus.READY
    assert video.duration == 240.0

    clips = list_clips(session, user.id, video_id=video.id)
    assert sorted(c.start_time for c in clips) == [0, 45, 90, 135, 180]
    assert all(70 <= c.ai_score < 100 for c in clips)
    assert all(c.status == ClipStatus.READY for c in clips)
    assert all(c.user_id == user.id for c in clips)
    assert [c.ai_score for c in clips] == sorted((c.ai_score for c in clips), reverse=True)

    assert reload(session, UserModel, user.id).clips_used == 5

    job = reload(session, GenerationJobModel, job.id)
    assert job.status == JobStatus.SUCCEEDED
    assert job.clips_created == 5
    assert job.started_at is not None
    assert job.completed_at is not None

    before = datetime.now(UTC)
    post = schedule_clip(session, user.id, clips[0].id, ["tiktok", "instagram"])
    after = datetime.now(UTC)

    assert post.status == PostStatus.PENDING
    assert set(post.platforms) == {"tiktok", "instagram"}
    assert before - timedelta(seconds=1) <= to_utc(post.scheduled_at) <= after + timedelta(seconds=1)

    cancel_post(session, user.id, post.id)
    with pytest.raises(NotFoundError):
        cancel_post(session, user.id, post.id)


def test_generate_is_idempotent(session, session_factory, storage, user, upload) -> None:
    video, _ = upload(user.id)
    engine = make_engine(session_factory, storage, StubMediaAnalyzer(seed=1))

    first = engine.generate(video.id, user.id)
    created = clip_count(session, video.id)
    used = reload(session, UserModel, user.id).clips_used

    second = engine.generate(video.id, user.id)

    assert first.status == VideoStatus.READY
    assert second.skipped is True
    assert second.status == VideoStatus.READY
    assert clip_count(session, video.id) == created == first.clips_created
    assert reload(session, UserModel, user.id).clips_used == used


def test_generate_for_other_users_video_is_noop(
    session, session_factory, storage, user, other_user, upload
) -> None:
    video, _ = upload(user.id)
    engine = make_engine(session_factory, storage, StubMediaAnalyzer())

    outcome = engine.generate(video.id, other_user.id)

    assert outcome.skipped is True
    assert reload(session, VideoModel, video.id).status == VideoStatus.UPLOADED


def test_analysis_failure_leaves_no_clips(session, session_factory, storage, user, upload) -> None:
    video, job = upload(user.id)
    engine = make_engine(
        session_factory, storage, FailingAnalyzer(MediaAnalysisError("decoder crashed"))
    )

    outcome = engine.generate(video.id, user.id)

    assert outcome.status == VideoStatus.FAILED
    assert "decoder crashed" in outcome.error_message

    video = reload(session, VideoModel, video.id)
    assert video.status == VideoStatus.FAILED
    assert "decoder crashed" in video.error_message
    assert clip_count(session, video.id) == 0
    assert reload(session, UserModel, user.id).clips_used == 0

    job = reload(session, GenerationJobModel, job.id)
    assert job.status == JobStatus.FAILED
    assert job.completed_at is not None


def test_invalid_intervals_fail_the_run(session, session_factory, storage, user, upload) -> None:
    video, _ = upload(user.id)
    overlapping = AnalysisResult(
        duration=100.0,
        clips=[
            ClipCandidate(start=0, end=50, score=80),
            ClipCandidate(start=40, end=90, score=70),
        ],
    )
    engine = make_engine(session_factory, storage, FixedAnalyzer(overlapping))

    outcome = engine.generate(video.id, user.id)

    assert outcome.status == VideoStatus.FAILED
    assert "overlaps" in outcome.error_message
    assert clip_count(session, video.id) == 0
    assert reload(session, UserModel, user.id).clips_used == 0


def test_analysis_timeout_fails_the_run(session, session_factory, storage, user, upload) -> None:
    video, _ = upload(user.id)
    engine = make_engine(session_factory, storage, SlowAnalyzer(), timeout_seconds=0.05)

    outcome = engine.generate(video.id, user.id)

    assert outcome.status == VideoStatus.FAILED
    assert "timed out" in outcome.error_message
    assert reload(session, VideoModel, video.id).status == VideoStatus.FAILED


def test_missing_stored_file_fails_the_run(session, session_factory, storage, user, upload) -> None:
    video, _ = upload(user.id)
    storage.delete(video.filename)
    engine = make_engine(session_factory, storage, StubMediaAnalyzer())

    outcome = engine.generate(video.id, user.id)

    assert outcome.status == VideoStatus.FAILED
    assert reload(session, VideoModel, video.id).status == VideoStatus.FAILED


def test_unexpected_error_is_reraised_after_marking_failed(
    session, session_factory, storage, user, upload
) -> None:
    video, job = upload(user.id)
    engine = make_engine(session_factory, storage, FailingAnalyzer(RuntimeError("bug")))

    with pytest.raises(RuntimeError, match="bug"):
        engine.generate(video.id, user.id)

    assert reload(session, VideoModel, video.id).status == VideoStatus.FAILED
    assert reload(session, GenerationJobModel, job.id).status == JobStatus.FAILED


def test_quota_rechecked_at_claim(session, session_factory, storage, make_user, upload) -> None:
    user = make_user(clips_limit=5)
    video, job = upload(user.id)
    user.clips_used = 5
    session.commit()

    engine = make_engine(session_factory, storage, StubMediaAnalyzer())
    outcome = engine.generate(video.id, user.id)

    assert outcome.status == VideoStatus.FAILED
    assert "quota" in outcome.error_message.lower()
    assert reload(session, VideoModel, video.id).status == VideoStatus.FAILED
    assert reload(session, GenerationJobModel, job.id).status == JobStatus.FAILED
    assert clip_count(session, video.id) == 0
    assert reload(session, UserModel, user.id).clips_used == 5


def test_last_run_may_overshoot_quota(session, session_factory, storage, make_user, upload) -> None:
    user = make_user(clips_limit=3)
    video, _ = upload(user.id)
    engine = make_engine(
        session_factory,
        storage,
        StubMediaAnalyzer(duration_seconds=240.0, min_clips=5, max_clips=5),
    )

    outcome = engine.generate(video.id, user.id)

    assert outcome.clips_created == 5
    assert reload(session, UserModel, user.id).clips_used == 5


def test_run_superseded_while_analyzing(session, session_factory, storage, user, upload) -> None:
    video, job = upload(user.id)

    class RecoveredMidRun(MediaAnalyzer):
        @property
        def name(self) -> str:
            return "recovered"

        async def analyze(self, video_path: Path) -> AnalysisResult:
            with session_factory() as other:
                other.execute(
                    update(VideoModel)
                    .where(VideoModel.id == video.id)
                    .values(status=VideoStatus.FAILED)
                )
                other.commit()
            return AnalysisResult(duration=90.0, clips=[ClipCandidate(start=0, end=45, score=90)])

    outcome = make_engine(session_factory, storage, RecoveredMidRun()).generate(video.id, user.id)

    assert outcome.status == VideoStatus.FAILED
    assert clip_count(session, video.id) == 0
    assert reload(session, UserModel, user.id).clips_used == 0

    job = reload(session, GenerationJobModel, job.id)
    assert job.status == JobStatus.FAILED
    assert job.error_message == "Run was superseded"
    assert job.completed_at is not None


def test_add_clips_used_does_not_lose_updates(session_factory, user) -> None:
    first = session_factory()
    second = session_factory()
    try:
        # Both sessions observe the same starting value
        assert first.get(UserModel, user.id).clips_used == 0
        assert second.get(UserModel, user.id).clips_used == 0

        add_clips_used(first, user.id, 3)
        first.commit()
        add_clips_used(second, user.id, 4)
        second.commit()
    finally:
        first.close()
        second.close()

    with session_factory() as check:
        assert check.get(UserModel, user.id).clips_used == 7


def test_add_clips_used_rejects_negative(session, user) -> None:
    with pytest.raises(ValueError):
        add_clips_used(session, user.id, -1)


def test_recover_stale_jobs(session, user, upload) -> None:
    stale_video, stale_job = upload(user.id)
    fresh_video, fresh_job = upload(user.id)

    for video, job, started in (
        (stale_video, stale_job, datetime.now(UTC) - timedelta(hours=2)),
        (fresh_video, fresh_job, datetime.now(UTC)),
    ):
        video.status = VideoStatus.PROCESSING
        job.status = JobStatus.RUNNING
        job.started_at = started
    session.commit()

    recovered = recover_stale_jobs(session, timedelta(minutes=30))

    assert recovered == [stale_job.id]
    assert reload(session, VideoModel, stale_video.id).status == VideoStatus.FAILED
    assert reload(session, GenerationJobModel, stale_job.id).status == JobStatus.FAILED
    assert reload(session, VideoModel, fresh_video.id).status == VideoStatus.PROCESSING
    assert reload(session, GenerationJobModel, fresh_job.id).status == JobStatus.RUNNING


def test_recover_jobs_that_were_never_enqueued(session, user, upload) -> None:
    orphan_video, orphan_job = upload(user.id)
    sent_video, sent_job = upload(user.id)
    sent_job.celery_task_id = "task-1"
    for job in (orphan_job, sent_job):
        job.created_at = datetime.now(UTC) - timedelta(hours=1)
    session.commit()

    recovered = recover_stale_jobs(session, timedelta(minutes=30))

    assert recovered == [orphan_job.id]
    assert reload(session, VideoModel, orphan_video.id).status == VideoStatus.FAILED
    assert reload(session, GenerationJobModel, orphan_job.id).status == JobStatus.FAILED
    assert reload(session, VideoModel, sent_video.id).status == VideoStatus.UPLOADED
    assert reload(session, GenerationJobModel, sent_job.id).status == JobStatus.QUEUED


def test_recover_accepts_zero_threshold(session, user, upload) -> None:
    video, job = upload(user.id)
    job.created_at = datetime.now(UTC) - timedelta(seconds=5)
    session.commit()

    assert recover_stale_jobs(session, timedelta(0)) == [job.id]
    assert reload(session, VideoModel, video.id).status == VideoStatus.FAILED


def test_mark_clip_failed(session, session_factory, storage, user, other_user, upload) -> None:
    video, _ = upload(user.id)
    make_engine(
        session_factory,
        storage,
        StubMediaAnalyzer(duration_seconds=240.0, min_clips=5, max_clips=5),
    ).generate(video.id, user.id)
    session.expire_all()
    clip = list_clips(session, user.id, video_id=video.id)[0]

    with pytest.raises(NotFoundError):
        mark_clip_failed(session, other_user.id, clip.id, "render failed")

    failed = mark_clip_failed(session, user.id, clip.id, "render failed")

    assert failed.status == ClipStatus.FAILED
    assert failed.error_message == "render failed"
    assert reload(session, VideoModel, video.id).status == VideoStatus.READY
    assert reload(session, UserModel, user.id).clips_used == 5

    with pytest.raises(ClipNotReadyError):
        schedule_clip(session, user.id, clip.id, ["youtube"])


def test_outcome_to_dict(session_factory, storage, user, upload) -> None:
    video, _ = upload(user.id)

    outcome = make_engine(session_factory, storage, StubMediaAnalyzer(seed=3)).generate(
        video.id, user.id
    )
    data = outcome.to_dict()

    assert data["success"] is True
    assert data["video_id"] == video.id
    assert data["clips_created"] == outcome.clips_created
    assert data["error"] is None


def test_concurrent_runs_for_one_user_keep_every_increment(tmp_path, storage) -> None:
    db = create_engine(
        f"sqlite:///{tmp_path / 'concurrent.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )

    @event.listens_for(db, "connect")
    def _driver_autocommit(dbapi_connection, _record) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(db, "begin")
    def _begin_immediate(connection) -> None:
        # Writers queue on the busy timeout instead of failing on lock upgrade
        connection.exec_driver_sql("BEGIN IMMEDIATE")

    Base.metadata.create_all(db)
    factory = sessionmaker(bind=db, autoflush=False, expire_on_commit=False)

    with factory() as setup:
        owner = create_user(setup, "Parallel", "parallel@example.com", clips_limit=100)
        videos = [
            ingest_video(
                setup,
                storage,
                user_id=owner.id,
                stream=io.BytesIO(b"\x00\x00\x00\x18ftypmp42" + b"\x00" * 512),
                original_name=f"part{n}.mp4",
                content_type="video/mp4",
            )[0]
            for n in range(2)
        ]

    # Both runs have claimed and read the user before either commits
    barrier = threading.Barrier(2, timeout=10)

    class RendezvousAnalyzer(MediaAnalyzer):
        def __init__(self, count: int) -> None:
            self.count = count

        @property
        def name(self) -> str:
            return "rendezvous"

        async def analyze(self, video_path: Path) -> AnalysisResult:
            barrier.wait()
            clips = [
                ClipCandidate(start=n * 30, end=n * 30 + 20, score=75) for n in range(self.count)
            ]
            return AnalysisResult(duration=300.0, clips=clips)

    runs = [(videos[0], 3), (videos[1], 4)]
    try:
        with ThreadPoolExecutor(max_workers=2) as pool:
            futures = [
                pool.submit(
                    make_engine(factory, storage, RendezvousAnalyzer(count)).generate,
                    video.id,
                    owner.id,
                )
                for video, count in runs
            ]
            outcomes = [future.result(timeout=60) for future in futures]

        assert [o.status for o in outcomes] == [VideoStatus.READY, VideoStatus.READY]
        assert [o.clips_created for o in outcomes] == [3, 4]
        with factory() as check:
            assert check.get(UserModel, owner.id).clips_used == 7
    finally:
        db.dispose()
