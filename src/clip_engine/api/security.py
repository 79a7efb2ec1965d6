"""Bearer token issue and verification."""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from clip_engine.config import settings


class InvalidTokenError(Exception):
    """Raised when a bearer token cannot be verified."""

    pass


def issue_token(user_id: int, expires_in: timedelta | None = None) -> str:
    """Sign a token whose subject is the user ID."""
    now = datetime.now(UTC)
    expires_at = now + (expires_in or timedelta(days=settings.jwt_expires_days))
    payload = {"sub": str(user_id), "iat": now, "exp": expires_at}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> int:
    """Verify a token and return the user ID it was issued for.

    Raises:
        InvalidTokenError: If the signature, expiry or subject is invalid.
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        raise InvalidTokenError("Invalid or expired token") from e

    subject = payload.get("sub")
    try:
        return int(subject)
    except (TypeError, ValueError) as e:
        raise InvalidTokenError("Invalid token payload") from e
