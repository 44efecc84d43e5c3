from pydantic import BaseModel, Field
from typing import Optional, Dict, Union


class UsageCounter(BaseModel):
    current: int = 0
    limit: int = -1
    remaining: int = -1


class AudioTranscriptionUsage(UsageCounter):
    duration_minutes: int = 0
    minutes_limit: int = -1
    minutes_remaining: int = -1


class UsageLimitsResponse(BaseModel):
    ok: bool = True
    subscription_tier: str
    period_start: str
    ai_interactions: UsageCounter
    audio_transcription: AudioTranscriptionUsage
    pattern_analysis: UsageCounter


class TranscriptionUsageResponse(BaseModel):
    ok: bool = True
    tier: str
    usedMinutes: int
    limitMinutes: Union[int, str]
    remainingMinutes: Union[int, str]
    since: str


class SubscriptionTiersResponse(BaseModel):
    tiers: Dict[str, Dict[str, int]]


class StorageCapRequest(BaseModel):
    incoming_bytes: int = Field(0, ge=0)


class StorageCapResponse(BaseModel):
    allowed: bool
    cap_bytes: Optional[int] = None
    used_bytes: Optional[int] = None
    remaining_bytes: int
