# Supabase tables: usage_tracking, feature_limits
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

usage_tracking (append-only metering rows):
- id: uuid (primary key)
- user_id: uuid (foreign key to auth.users.id)
- feature_name: text (not null) - e.g. 'ai_interactions', 'pattern_analysis'
- usage_type: text (not null) - e.g. 'monthly_count'
- usage_count: integer (default: 1)
- usage_metadata: jsonb (nullable) - e.g. {"feature": "audio_transcription", "duration": 42.1}
- billing_period_start: date (not null) - first day of the month
- billing_period_end: date (not null) - last day of the month
- created_at: timestamp (default: now())

feature_limits:
- subscription_tier: text (not null) - foundation, recovery, empowerment
- feature_name: text (not null)
- limit_type: text (not null) - monthly_count, minutes, storage_mb
- limit_value: integer (not null) - -1 means unlimited
- unique (subscription_tier, feature_name, limit_type)

Database RPCs:
- check_feature_limit(p_user_id, p_feature_name, p_limit_type) -> boolean or {"current_usage": int, ...}
- record_feature_usage(p_user_id, p_feature_name, p_usage_type, p_usage_count, p_metadata)
"""
