from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.usage.schemas import (
    UsageLimitsResponse, TranscriptionUsageResponse, SubscriptionTiersResponse,
    StorageCapRequest, StorageCapResponse
)
from app.modules.usage.service import UsageService
from app.core.dependencies import get_current_user_id, get_subscription_tier
from supabase import Client
from typing import Dict

router = APIRouter(tags=["usage"])


def get_usage_service(supabase: Client = Depends(get_supabase)) -> UsageService:
    return UsageService(supabase)


@router.get("/subscription/tiers", response_model=SubscriptionTiersResponse)
async def get_subscription_tiers(
    current_user: Dict = Depends(get_current_user_id),
    service: UsageService = Depends(get_usage_service)
):
    """Limits for every tier and metered feature"""
    return SubscriptionTiersResponse(tiers=service.get_subscription_tiers())


@router.get("/usage/limits", response_model=UsageLimitsResponse)
async def get_usage_limits(
    current_user: Dict = Depends(get_current_user_id),
    tier: str = Depends(get_subscription_tier),
    service: UsageService = Depends(get_usage_service)
):
    """Current month usage against the caller's plan"""
    return service.get_usage_limits(current_user["id"], tier)


@router.api_route("/usage/transcription", methods=["GET", "POST"], response_model=TranscriptionUsageResponse)
async def get_transcription_usage(
    current_user: Dict = Depends(get_current_user_id),
    tier: str = Depends(get_subscription_tier),
    service: UsageService = Depends(get_usage_service)
):
    """Transcription minutes used this month"""
    return service.get_transcription_minutes(current_user["id"], tier)


@router.post("/storage/check-cap", response_model=StorageCapResponse, response_model_exclude_none=True)
async def check_storage_cap(
    request: StorageCapRequest,
    current_user: Dict = Depends(get_current_user_id),
    tier: str = Depends(get_subscription_tier),
    service: UsageService = Depends(get_usage_service)
):
    """Check whether an upload of incoming_bytes fits the caller's storage cap"""
    return service.check_storage_cap(current_user["id"], tier, request.incoming_bytes)
