# Supabase table: profiles
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# Authentication is handled by Supabase Auth (auth.users table)

"""
Expected Supabase table structure:

profiles:
- id: uuid (primary key, references auth.users.id)
- email: text (not null) - synced from auth.users
- display_name: text (nullable)
- subscription_tier: text (not null, default: 'foundation') - values: foundation, recovery, empowerment
- is_active: boolean (default: true)
- timezone: text (default: 'UTC')
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

subscription_tier drives every feature-limit gate (see app/config/tiers_config.py).
"""
