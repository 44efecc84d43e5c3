from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Required for writes that bypass RLS (evidence status, usage)

    # Supabase Storage
    evidence_audio_bucket: str = "evidence-audio"
    signed_url_ttl_seconds: int = 3600

    # Gladia (speech-to-text)
    gladia_api_key: Optional[str] = None
    gladia_base_url: str = "https://api.gladia.io/v2"
    gladia_request_timeout: float = 30.0

    # Transcription polling: 1s, 2s, 4s, 8s, then capped
    transcription_poll_initial_delay: float = 1.0
    transcription_poll_max_delay: float = 10.0
    transcription_poll_timeout: float = 300.0

    # Stuck transcription reconciler
    transcription_reconciler_enabled: bool = False
    transcription_reconciler_interval: int = 300
    transcription_stuck_after_minutes: int = 10
    transcription_reconciler_batch_size: int = 25

    # Gemini (Generative Language API)
    google_ai_api_key: Optional[str] = None
    gemini_free_tier_model: str = "gemini-2.5-flash-lite"
    gemini_paid_tier_model: str = "gemini-1.5-flash"
    ai_title_cache_ttl_seconds: int = 600

    # App
    app_name: str = "reclaim-backend"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
