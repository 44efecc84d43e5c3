from supabase import Client
from app.modules.profiles.schemas import ProfileUpdate, ProfileResponse
from app.config.tiers_config import normalize_tier
from fastapi import HTTPException
from datetime import datetime
import logging

logger = logging.getLogger(__name__)


class ProfileService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_profile(self, user_id: str) -> ProfileResponse:
        """Get profile by user ID"""
        try:
            result = self.supabase.table("profiles")\
                .select("*")\
                .eq("id", user_id)\
                .maybe_single()\
                .execute()

            if not result or not result.data:
                raise HTTPException(status_code=404, detail="Profile not found")

            return ProfileResponse(**result.data)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_subscription_tier(self, user_id: str) -> str:
        """Tier used for feature gating. Missing profile or read errors fall back to the free tier."""
        try:
            result = self.supabase.table("profiles")\
                .select("subscription_tier")\
                .eq("id", user_id)\
                .maybe_single()\
                .execute()
            tier = result.data.get("subscription_tier") if result and result.data else None
            return normalize_tier(tier)
        except Exception as e:
            logger.warning(f"Could not read subscription tier for {user_id}: {e}")
            return normalize_tier(None)

    def update_profile(self, user_id: str, profile_data: ProfileUpdate) -> ProfileResponse:
        """Update profile"""
        try:
            update_data = {"updated_at": datetime.utcnow().isoformat()}
            if profile_data.display_name is not None:
                update_data["display_name"] = profile_data.display_name
            if profile_data.timezone is not None:
                update_data["timezone"] = profile_data.timezone

            result = self.supabase.table("profiles")\
                .update(update_data)\
                .eq("id", user_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Profile not found")

            return ProfileResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
