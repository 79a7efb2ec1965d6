"""User profile endpoints."""

from fastapi import APIRouter

from clip_engine.api.deps import CurrentUserDep
from clip_engine.api.routes.schemas import UserResponse

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me", response_model=UserResponse, summary="Current user")
def get_me(user: CurrentUserDep) -> UserResponse:
    """Profile, plan and quota of the authenticated user."""
    return UserResponse.model_validate(user)
