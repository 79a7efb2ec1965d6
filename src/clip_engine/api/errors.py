"""Mapping of domain errors to HTTP responses."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from clip_engine.domain.errors import ClipEngineError
from clip_engine.logging import get_logger

logger = get_logger(__name__)


async def clip_engine_error_handler(request: Request, exc: ClipEngineError) -> JSONResponse:
    """Render a domain error as ``{"error": code, "detail": message}``."""
    if exc.status_code >= 500:
        logger.error("request_failed", path=request.url.path, code=exc.code, error=exc.message)
    else:
        logger.info("request_rejected", path=request.url.path, code=exc.code, error=exc.message)

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "detail": exc.message},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ClipEngineError, clip_engine_error_handler)
