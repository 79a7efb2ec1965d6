"""Health check endpoints."""

from fastapi import APIRouter, status
from pydantic import BaseModel
from sqlalchemy import text

from clip_engine.config import settings
from clip_engine.logging import get_logger
from clip_engine.services.captions import get_caption_provider
from clip_engine.services.generation import get_media_analyzer

router = APIRouter(tags=["Health"])
logger = get_logger(__name__)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    components: dict[str, bool] | None = None


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    ready: bool
    database: bool
    redis: bool
    components: dict[str, bool] | None = None


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check",
    description="Basic health check endpoint that verifies the API is running.",
)
async def health_check() -> HealthResponse:
    """Basic health check - is the API up?

    Reports which providers are configured with something other than a stub.
    """
    from clip_engine import __version__

    components = {
        "media_analysis": settings.media_analysis_provider,
        "captions": settings.caption_provider,
    }

    return HealthResponse(
        status="healthy",
        version=__version__,
        components={k: v != "stub" for k, v in components.items()},
    )


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    description="Comprehensive readiness check that verifies all dependencies.",
)
async def readiness_check() -> ReadinessResponse:
    """Comprehensive readiness check including dependencies."""
    # Check database
    database_ok = False
    try:
        from clip_engine.db.session import engine

        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            database_ok = True
    except Exception as e:
        logger.error("database_health_check_failed", error=str(e))

    # Check Redis
    redis_ok = False
    try:
        import redis

        r = redis.from_url(settings.redis_url)
        r.ping()
        redis_ok = True
    except Exception as e:
        logger.error("redis_health_check_failed", error=str(e))

    components = {
        "media_analysis": await get_media_analyzer().health_check(),
        "captions": await get_caption_provider().health_check(),
    }

    ready = database_ok and redis_ok and all(components.values())

    return ReadinessResponse(
        ready=ready,
        database=database_ok,
        redis=redis_ok,
        components=components,
    )


@router.get(
    "/health/live",
    status_code=status.HTTP_200_OK,
    summary="Liveness probe",
    description="Simple liveness probe for Kubernetes.",
)
async def liveness_check() -> dict[str, str]:
    """Kubernetes liveness probe - is the process alive?"""
    return {"status": "alive"}
