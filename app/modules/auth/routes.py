from fastapi import APIRouter, Depends
from app.core.dependencies import get_current_user_id, get_subscription_tier
from app.modules.auth.schemas import CurrentUserResponse
from typing import Dict

router = APIRouter(tags=["auth"])


@router.get("/me", response_model=CurrentUserResponse)
async def get_current_user(
    current_user: Dict = Depends(get_current_user_id),
    tier: str = Depends(get_subscription_tier),
):
    """Get current authenticated user and their subscription tier."""
    return CurrentUserResponse(
        id=current_user["id"],
        email=current_user.get("email"),
        subscription_tier=tier,
    )
