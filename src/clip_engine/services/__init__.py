"""Application services."""

from clip_engine.services.generation import ClipGenerationEngine, GenerationOutcome
from clip_engine.services.rate_limit import RateLimiter
from clip_engine.services.storage import StorageService, StoredVideo

__all__ = [
    "ClipGenerationEngine",
    "GenerationOutcome",
    "RateLimiter",
    "StorageService",
    "StoredVideo",
]
