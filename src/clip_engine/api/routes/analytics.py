"""Analytics endpoints."""

from datetime import date

from fastapi import APIRouter, status
from pydantic import BaseModel, ConfigDict, Field

from clip_engine.api.deps import CurrentUserDep, SessionDep
from clip_engine.api.routes.schemas import AnalyticsRecordResponse, AnalyticsSummaryResponse
from clip_engine.domain.models import EngagementCounters
from clip_engine.services import analytics as analytics_service

router = APIRouter(prefix="/analytics", tags=["Analytics"])


class RecordMetricsRequest(BaseModel):
    """Engagement counters for one clip on one platform."""

    model_config = ConfigDict(populate_by_name=True)

    clip_id: int
    platform: str
    bucket_date: date | None = Field(None, alias="date")
    views: int = Field(default=0, ge=0)
    likes: int = Field(default=0, ge=0)
    comments: int = Field(default=0, ge=0)
    shares: int = Field(default=0, ge=0)


@router.get("", response_model=AnalyticsSummaryResponse, summary="Analytics summary")
def get_summary(user: CurrentUserDep, session: SessionDep) -> AnalyticsSummaryResponse:
    """Lifetime engagement totals for the user."""
    summary = analytics_service.summarize(session, user.id)
    return AnalyticsSummaryResponse.model_validate(summary)


@router.get(
    "/platforms",
    response_model=list[AnalyticsSummaryResponse],
    summary="Analytics by platform",
)
def get_platform_breakdown(
    user: CurrentUserDep, session: SessionDep
) -> list[AnalyticsSummaryResponse]:
    rows = analytics_service.breakdown_by_platform(session, user.id)
    return [AnalyticsSummaryResponse.model_validate(r) for r in rows]


@router.post(
    "",
    response_model=AnalyticsRecordResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record engagement",
)
def record_metrics(
    request: RecordMetricsRequest, user: CurrentUserDep, session: SessionDep
) -> AnalyticsRecordResponse:
    record = analytics_service.record_metrics(
        session,
        user.id,
        clip_id=request.clip_id,
        platform=request.platform,
        counters=EngagementCounters(
            views=request.views,
            likes=request.likes,
            comments=request.comments,
            shares=request.shares,
        ),
        bucket_date=request.bucket_date,
    )
    return AnalyticsRecordResponse.model_validate(record)
