# Supabase table: boundaries
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

boundaries:
- id: uuid (primary key)
- user_id: uuid (foreign key to auth.users.id)
- title: text (not null)
- description: text (nullable)
- category: text (not null) - values: communication, emotional, physical, time, social, workplace
- priority: text (not null, default: 'medium') - values: high, medium, low
- status: text (not null, default: 'active') - values: active, working-on, needs-attention
- is_active: boolean (default: true) - false while status is 'needs-attention'
- last_reviewed: timestamp (nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)
"""
