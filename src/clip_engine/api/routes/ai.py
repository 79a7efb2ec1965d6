"""AI helper endpoints."""

from fastapi import APIRouter
from pydantic import BaseModel, Field

from clip_engine.api.deps import RateLimitDep
from clip_engine.services.captions import suggest_caption

router = APIRouter(prefix="/ai", tags=["AI"])


class CaptionRequest(BaseModel):
    """Request for a caption suggestion."""

    context: str | None = Field(None, max_length=2000)


class CaptionResponse(BaseModel):
    caption: str


@router.post(
    "/caption",
    response_model=CaptionResponse,
    summary="Suggest caption",
    dependencies=[RateLimitDep],
)
async def caption(request: CaptionRequest) -> CaptionResponse:
    """Suggest a social caption for a clip."""
    return CaptionResponse(caption=await suggest_caption(request.context))
