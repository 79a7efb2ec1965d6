"""Pytest configuration and fixtures."""

import io
import os
import tempfile
from collections.abc import Callable, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment before importing app modules
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REDIS_URL"] = "redis://localhost:6379/1"
os.environ["CELERY_BROKER_URL"] = "redis://localhost:6379/1"
os.environ["CELERY_RESULT_BACKEND"] = "redis://localhost:6379/1"
os.environ["STORAGE_PATH"] = tempfile.mkdtemp(prefix="clip-engine-test-")
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["MEDIA_ANALYSIS_PROVIDER"] = "stub"
os.environ["CAPTION_PROVIDER"] = "stub"

from clip_engine.db.models import Base, ClipModel, UserModel, VideoModel  # noqa: E402
from clip_engine.domain.enums import ClipStatus, VideoStatus  # noqa: E402
from clip_engine.services.storage import StorageService  # noqa: E402


@pytest.fixture(scope="session")
def test_client() -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI app."""
    from clip_engine.main import app

    with TestClient(app) as client:
        yield client


@pytest.fixture
def db_engine() -> Generator[Engine, None, None]:
    """In-memory SQLite database shared by every session of a test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _record) -> None:
        dbapi_connection.execute("PRAGMA foreign_keys=ON")

    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine: Engine) -> sessionmaker:
    return sessionmaker(bind=db_engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def session(session_factory: sessionmaker) -> Generator[Session, None, None]:
    db = session_factory()
    yield db
    db.close()


@pytest.fixture
def storage(tmp_path) -> StorageService:
    return StorageService(base_path=tmp_path / "uploads")


@pytest.fixture
def make_user(session: Session) -> Callable[..., UserModel]:
    """Factory for users with a unique email."""
    from clip_engine.services.users import create_user

    counter = iter(range(1, 1000))

    def _make(clips_limit: int | None = 50, **kwargs) -> UserModel:
        n = next(counter)
        return create_user(
            session,
            name=kwargs.pop("name", f"User {n}"),
            email=kwargs.pop("email", f"user{n}@example.com"),
            clips_limit=clips_limit,
            **kwargs,
        )

    return _make


@pytest.fixture
def user(make_user) -> UserModel:
    return make_user()


@pytest.fixture
def other_user(make_user) -> UserModel:
    return make_user()


@pytest.fixture
def upload(session: Session, storage: StorageService):
    """Ingest a small fake video for a user and return ``(video, job)``."""
    from clip_engine.services.ingest import ingest_video

    def _upload(
        user_id: int,
        data: bytes = b"\x00\x00\x00\x18ftypmp42" + b"\x00" * 1024,
        name: str = "talk.mp4",
        content_type: str = "video/mp4",
    ):
        return ingest_video(
            session,
            storage,
            user_id=user_id,
            stream=io.BytesIO(data),
            original_name=name,
            content_type=content_type,
            declared_size=len(data),
        )

    return _upload


@pytest.fixture
def make_clip(session: Session) -> Callable[..., ClipModel]:
    """Create a video and one clip directly, bypassing generation."""

    def _make(
        user_id: int,
        status: ClipStatus = ClipStatus.READY,
        start: float = 0.0,
        end: float = 45.0,
        score: int = 80,
    ) -> ClipModel:
        video = VideoModel(
            user_id=user_id,
            filename=f"user_{user_id}/video.mp4",
            original_name="video.mp4",
            content_type="video/mp4",
            size=1024,
            duration=240.0,
            status=VideoStatus.READY,
        )
        session.add(video)
        session.flush()

        clip = ClipModel(
            video_id=video.id,
            user_id=user_id,
            title="Best Moment #1",
            start_time=start,
            end_time=end,
            duration=end - start,
            ai_score=score,
            status=status,
        )
        session.add(clip)
        session.commit()
        session.refresh(clip)
        return clip

    return _make


@pytest.fixture
def api_client(session_factory: sessionmaker, storage: StorageService):
    """Test client bound to the per-test database and storage."""
    from clip_engine.api.deps import get_storage_service
    from clip_engine.db.session import get_session
    from clip_engine.main import app

    def _get_session():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_session] = _get_session
    app.dependency_overrides[get_storage_service] = lambda: storage

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> Callable[[UserModel], dict[str, str]]:
    from clip_engine.api.security import issue_token

    def _headers(user: UserModel) -> dict[str, str]:
        return {"Authorization": f"Bearer {issue_token(user.id)}"}

    return _headers
