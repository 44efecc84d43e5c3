from supabase import Client
from fastapi import HTTPException
from app.config import settings
from app.core.exceptions import FeatureLimitExceeded
from app.config.tiers_config import (
    UNLIMITED, TIERS, FEATURES, TRANSCRIPTION_MONTHLY_LIMITS,
    get_limit, get_upgrade_tier, normalize_tier
)
from app.modules.usage.schemas import (
    UsageCounter, AudioTranscriptionUsage, UsageLimitsResponse,
    TranscriptionUsageResponse, StorageCapResponse
)
from datetime import date, datetime, timedelta
from typing import Optional, Dict, Any, Tuple
import math
import logging

logger = logging.getLogger(__name__)

TRANSCRIPTION_USAGE_FEATURE = "audio_transcription"


def billing_period(today: Optional[date] = None) -> Tuple[date, date]:
    """First and last day of the month containing today (UTC)."""
    today = today or datetime.utcnow().date()
    start = today.replace(day=1)
    next_month = (start + timedelta(days=32)).replace(day=1)
    return start, next_month - timedelta(days=1)


def _remaining(limit: int, current: int) -> int:
    return UNLIMITED if limit == UNLIMITED else max(0, limit - current)


class UsageService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def check_feature_limit(self, user_id: str, feature_name: str, limit_type: str) -> Any:
        """Ask the database whether the user may use a feature. Returns the raw RPC payload."""
        result = self.supabase.rpc("check_feature_limit", {
            "p_user_id": user_id,
            "p_feature_name": feature_name,
            "p_limit_type": limit_type,
        }).execute()
        return result.data

    def enforce_feature_limit(
        self,
        user_id: str,
        tier: str,
        feature_name: str,
        limit_type: str,
        monthly_limit: Optional[int] = None,
        message: str = "Monthly AI interaction limit reached"
    ) -> int:
        """
        Raise FeatureLimitExceeded when the monthly quota is used up.
        Unlimited tiers skip the RPC. Returns the current usage reported by the database.
        """
        if monthly_limit is None:
            monthly_limit = get_limit(tier, feature_name)
        if monthly_limit == UNLIMITED:
            return 0
        try:
            data = self.check_feature_limit(user_id, feature_name, limit_type)
        except Exception as e:
            logger.error(f"check_feature_limit failed for {user_id}/{feature_name}: {e}")
            raise HTTPException(status_code=500, detail="Failed to check usage limits")

        if isinstance(data, list):
            data = data[0] if data else None
        if isinstance(data, dict):
            current_usage = int(data.get("current_usage") or 0)
            exceeded = current_usage >= monthly_limit
        else:
            current_usage = 0
            exceeded = data is False

        if exceeded:
            logger.info(f"User {user_id} hit {feature_name} limit ({current_usage}/{monthly_limit})")
            raise FeatureLimitExceeded(
                message,
                limit=monthly_limit,
                current_usage=current_usage,
                upgrade_required=get_upgrade_tier(tier),
            )
        return current_usage

    def record_feature_usage(
        self,
        user_id: str,
        feature_name: str,
        usage_type: str = "monthly_count",
        usage_count: int = 1,
        metadata: Optional[Dict[str, Any]] = None
    ) -> bool:
        """Record one metered use. Failures are logged; the caller already delivered the result."""
        try:
            self.supabase.rpc("record_feature_usage", {
                "p_user_id": user_id,
                "p_feature_name": feature_name,
                "p_usage_type": usage_type,
                "p_usage_count": usage_count,
                "p_metadata": metadata or {},
            }).execute()
            return True
        except Exception as e:
            logger.error(f"Failed to record usage for {user_id}/{feature_name}: {e}")
            return False

    def record_transcription_usage(self, user_id: str, details: Dict[str, Any]) -> bool:
        """Append a usage_tracking row for one completed transcription."""
        period_start, period_end = billing_period()
        try:
            self.supabase.table("usage_tracking")\
                .insert({
                    "user_id": user_id,
                    "feature_name": "ai_interactions",
                    "usage_type": "monthly_count",
                    "usage_count": 1,
                    "usage_metadata": {
                        "feature": TRANSCRIPTION_USAGE_FEATURE,
                        "duration": details.get("duration"),
                        "language": details.get("language"),
                        "confidence": details.get("confidence"),
                    },
                    "billing_period_start": period_start.isoformat(),
                    "billing_period_end": period_end.isoformat(),
                })\
                .execute()
            return True
        except Exception as e:
            logger.error(f"Failed to record transcription usage for {user_id}: {e}")
            return False

    def count_usage_this_month(self, user_id: str, feature_name: str, usage_type: str = "monthly_count") -> int:
        """Sum of usage_tracking counts for a feature in the current billing period."""
        period_start, _ = billing_period()
        result = self.supabase.table("usage_tracking")\
            .select("usage_count")\
            .eq("user_id", user_id)\
            .eq("feature_name", feature_name)\
            .eq("usage_type", usage_type)\
            .eq("billing_period_start", period_start.isoformat())\
            .execute()
        return sum((r.get("usage_count") or 0) for r in result.data or [])

    def count_transcriptions_this_month(self, user_id: str) -> int:
        period_start, _ = billing_period()
        result = self.supabase.table("usage_tracking")\
            .select("usage_count, usage_metadata")\
            .eq("user_id", user_id)\
            .eq("feature_name", "ai_interactions")\
            .eq("usage_type", "monthly_count")\
            .eq("billing_period_start", period_start.isoformat())\
            .execute()
        total = 0
        for row in result.data or []:
            metadata = row.get("usage_metadata") or {}
            if metadata.get("feature") == TRANSCRIPTION_USAGE_FEATURE:
                total += row.get("usage_count") or 0
        return total

    def enforce_transcription_limit(self, user_id: str, tier: str) -> int:
        tier = normalize_tier(tier)
        monthly_limit = TRANSCRIPTION_MONTHLY_LIMITS[tier]
        if monthly_limit == UNLIMITED:
            return 0
        try:
            current = self.count_transcriptions_this_month(user_id)
        except Exception as e:
            logger.error(f"Failed to count transcriptions for {user_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to check usage limits")
        if current >= monthly_limit:
            raise FeatureLimitExceeded(
                "Monthly transcription limit reached",
                limit=monthly_limit,
                current_usage=current,
                upgrade_required=get_upgrade_tier(tier),
            )
        return current

    def get_plan_limit(self, tier: str, feature_name: str, limit_type: str) -> int:
        """Limit value from feature_limits; a missing row means unlimited."""
        try:
            result = self.supabase.table("feature_limits")\
                .select("limit_value")\
                .eq("subscription_tier", normalize_tier(tier))\
                .eq("feature_name", feature_name)\
                .eq("limit_type", limit_type)\
                .maybe_single()\
                .execute()
        except Exception as e:
            logger.error(f"Failed to read plan limit {feature_name}:{limit_type} for {tier}: {e}")
            raise HTTPException(status_code=500, detail="Failed to read plan limits")
        if not result or not result.data:
            return UNLIMITED
        value = result.data.get("limit_value")
        return value if isinstance(value, int) else UNLIMITED

    def get_subscription_tiers(self) -> Dict[str, Dict[str, int]]:
        tiers = {}
        for tier in TIERS:
            tiers[tier] = {}
            for feature_name, feature_config in FEATURES.items():
                limit_type = feature_config["limit_type"]
                tiers[tier][f"{feature_name}:{limit_type}"] = self.get_plan_limit(tier, feature_name, limit_type)
        return tiers

    def _transcribed_seconds_since(self, user_id: str, since: str) -> Tuple[int, float]:
        result = self.supabase.table("evidence_files")\
            .select("duration_seconds, uploaded_at, storage_bucket")\
            .eq("user_id", user_id)\
            .gte("uploaded_at", since)\
            .in_("storage_bucket", [settings.evidence_audio_bucket])\
            .limit(5000)\
            .execute()
        rows = result.data or []
        seconds = 0.0
        for row in rows:
            try:
                seconds += float(row.get("duration_seconds") or 0)
            except (TypeError, ValueError):
                continue
        return len(rows), seconds

    def get_usage_limits(self, user_id: str, tier: str) -> UsageLimitsResponse:
        """AI, transcription and pattern-analysis usage for the current month."""
        tier = normalize_tier(tier)
        period_start, _ = billing_period()
        period_start_iso = period_start.isoformat()
        since = datetime(period_start.year, period_start.month, 1).isoformat()
        try:
            ai_limit = self.get_plan_limit(tier, "ai_interactions", "monthly_count")
            ai_current = self.count_usage_this_month(user_id, "ai_interactions")

            minutes_limit = self.get_plan_limit(tier, "transcription_minutes", "minutes")
            transcriptions, seconds = self._transcribed_seconds_since(user_id, since)
            used_minutes = math.ceil(seconds / 60)

            pattern_limit = self.get_plan_limit(tier, "pattern_analysis", "monthly_count")
            analyses = self.supabase.table("pattern_analysis")\
                .select("id, created_at")\
                .eq("user_id", user_id)\
                .gte("created_at", since)\
                .execute()
            pattern_current = len(analyses.data or [])

            return UsageLimitsResponse(
                subscription_tier=tier,
                period_start=period_start_iso,
                ai_interactions=UsageCounter(
                    current=ai_current, limit=ai_limit, remaining=_remaining(ai_limit, ai_current)
                ),
                audio_transcription=AudioTranscriptionUsage(
                    current=transcriptions,
                    duration_minutes=used_minutes,
                    minutes_limit=minutes_limit,
                    minutes_remaining=_remaining(minutes_limit, used_minutes),
                ),
                pattern_analysis=UsageCounter(
                    current=pattern_current, limit=pattern_limit,
                    remaining=_remaining(pattern_limit, pattern_current)
                ),
            )
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"usage/limits error for {user_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to read usage")

    def get_transcription_minutes(self, user_id: str, tier: str) -> TranscriptionUsageResponse:
        tier = normalize_tier(tier)
        period_start, _ = billing_period()
        since = datetime(period_start.year, period_start.month, 1).isoformat()
        limit_minutes = self.get_plan_limit(tier, "transcription_minutes", "minutes")
        try:
            _, seconds = self._transcribed_seconds_since(user_id, since)
        except Exception as e:
            logger.error(f"Failed to load transcription usage for {user_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to load usage")
        used_minutes = math.ceil(seconds / 60)
        if limit_minutes == UNLIMITED:
            remaining = "unlimited"
        else:
            remaining = max(limit_minutes - used_minutes, 0)
        return TranscriptionUsageResponse(
            tier=tier,
            usedMinutes=used_minutes,
            limitMinutes="unlimited" if limit_minutes == UNLIMITED else limit_minutes,
            remainingMinutes=remaining,
            since=since,
        )

    def check_storage_cap(self, user_id: str, tier: str, incoming_bytes: int) -> StorageCapResponse:
        """Check an upload against the plan's storage cap. Raises 429 when it would not fit."""
        storage_mb = self.get_plan_limit(tier, "storage", "storage_mb")
        if storage_mb == UNLIMITED:
            return StorageCapResponse(allowed=True, remaining_bytes=UNLIMITED)
        cap_bytes = storage_mb * 1024 * 1024
        try:
            result = self.supabase.table("evidence_files")\
                .select("file_size")\
                .eq("user_id", user_id)\
                .execute()
        except Exception as e:
            logger.error(f"Failed to fetch storage usage for {user_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to verify storage usage")
        used = sum(
            r["file_size"] for r in result.data or []
            if isinstance(r.get("file_size"), int)
        )
        remaining = max(0, cap_bytes - used)
        if incoming_bytes > remaining:
            raise FeatureLimitExceeded(
                "Storage limit exceeded for your plan",
                upgrade_required=True,
                allowed=False,
                cap_bytes=cap_bytes,
                used_bytes=used,
                remaining_bytes=remaining,
            )
        return StorageCapResponse(
            allowed=True, cap_bytes=cap_bytes, used_bytes=used, remaining_bytes=remaining
        )
