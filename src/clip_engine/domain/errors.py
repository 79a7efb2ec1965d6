"""Domain exceptions.

Each error carries a stable ``code`` used by the API layer when rendering the
response body, and a ``status_code`` for the HTTP mapping.
"""


class ClipEngineError(Exception):
    """Base class for all domain errors."""

    code = "clip_engine_error"
    status_code = 500

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code)
        self.message = message or self.code


class ValidationError(ClipEngineError):
    """Raised for malformed or missing input."""

    code = "validation_error"
    status_code = 422


class NotFoundError(ClipEngineError):
    """Raised when an entity does not exist or is not owned by the caller.

    Both cases deliberately share this error so callers cannot probe for
    other users' records.
    """

    code = "not_found"
    status_code = 404


class UnsupportedFormatError(ValidationError):
    """Raised when an upload is not a recognized video container."""

    code = "unsupported_format"
    status_code = 415


class PayloadTooLargeError(ValidationError):
    """Raised when an upload exceeds the size ceiling."""

    code = "payload_too_large"
    status_code = 413


class ClipNotReadyError(ClipEngineError):
    """Raised when scheduling a clip that is not ready."""

    code = "clip_not_ready"
    status_code = 409


class QuotaExceededError(ClipEngineError):
    """Raised when a user has used up their clip quota."""

    code = "quota_exceeded"
    status_code = 403


class DependencyFailureError(ClipEngineError):
    """Raised when a storage or analysis collaborator fails."""

    code = "dependency_failure"
    status_code = 502


class RateLimitedError(ClipEngineError):
    """Raised when a client exceeds the request rate on a limited route."""

    code = "rate_limited"
    status_code = 429
