"""Identity store: user accounts, plan tier and clip quota."""

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from clip_engine.config import settings
from clip_engine.db.models import UserModel
from clip_engine.domain.enums import PlanTier
from clip_engine.domain.errors import NotFoundError, QuotaExceededError, ValidationError
from clip_engine.logging import get_logger

logger = get_logger(__name__)


def create_user(
    session: Session,
    name: str,
    email: str,
    plan: PlanTier = PlanTier.FREE,
    clips_limit: int | None = None,
) -> UserModel:
    """Register a user.

    Raises:
        ValidationError: If name or email is missing, or the email is taken.
    """
    name = (name or "").strip()
    email = (email or "").strip().lower()
    if not name or not email:
        raise ValidationError("Name and email are required")

    user = UserModel(
        name=name,
        email=email,
        plan=PlanTier(plan),
        clips_used=0,
        clips_limit=settings.default_clips_limit if clips_limit is None else clips_limit,
    )
    session.add(user)
    try:
        session.commit()
    except IntegrityError as e:
        session.rollback()
        raise ValidationError(f"Email already registered: {email}") from e
    session.refresh(user)

    logger.info("user_created", user_id=user.id, plan=user.plan)
    return user


def get_user(session: Session, user_id: int) -> UserModel:
    """Get a user by ID.

    Raises:
        NotFoundError: If the user does not exist.
    """
    user = session.get(UserModel, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def get_user_by_email(session: Session, email: str) -> UserModel:
    """Get a user by email.

    Raises:
        NotFoundError: If no user has this email.
    """
    user = session.execute(
        select(UserModel).where(UserModel.email == email.strip().lower())
    ).scalar_one_or_none()
    if not user:
        raise NotFoundError("User not found")
    return user


def ensure_quota_available(user: UserModel) -> None:
    """Raise if the user has no clip quota left and enforcement is on."""
    if settings.quota_enforced and user.clips_used >= user.clips_limit:
        raise QuotaExceededError(
            f"Clip quota exhausted ({user.clips_used}/{user.clips_limit})"
        )


def add_clips_used(session: Session, user_id: int, count: int) -> None:
    """Atomically add ``count`` to a user's clips_used within the current transaction.

    The increment is computed by the database so concurrent runs for the same
    user never lose an update.
    """
    if count < 0:
        raise ValueError("clips_used is monotonic; count must be non-negative")
    session.execute(
        update(UserModel)
        .where(UserModel.id == user_id)
        .values(clips_used=UserModel.clips_used + count)
        .execution_options(synchronize_session=False)
    )
