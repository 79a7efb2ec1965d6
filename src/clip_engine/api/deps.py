"""FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from clip_engine.api.security import InvalidTokenError, decode_token
from clip_engine.db.models import UserModel
from clip_engine.db.session import get_session
from clip_engine.domain.errors import RateLimitedError
from clip_engine.services.rate_limit import RateLimiter
from clip_engine.services.storage import StorageService

# Database session dependency
SessionDep = Annotated[Session, Depends(get_session)]

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    session: SessionDep,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> UserModel:
    """Resolve the calling user from the bearer token."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        user_id = decode_token(credentials.credentials)
    except InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    user = session.get(UserModel, user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


CurrentUserDep = Annotated[UserModel, Depends(get_current_user)]


def get_storage_service() -> StorageService:
    """Get the storage service instance."""
    return StorageService()


StorageDep = Annotated[StorageService, Depends(get_storage_service)]


def enforce_rate_limit(request: Request, user: CurrentUserDep) -> None:
    """Apply the app's rate limiter, keyed by user, to the current route."""
    limiter: RateLimiter | None = getattr(request.app.state, "rate_limiter", None)
    if limiter is None:
        return

    key = f"user:{user.id}:{request.url.path}"
    if not limiter.allow(key):
        raise RateLimitedError(
            f"Too many requests, retry in {limiter.retry_after(key)}s"
        )


RateLimitDep = Depends(enforce_rate_limit)
