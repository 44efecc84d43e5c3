# Supabase table: community_posts
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

community_posts:
- id: uuid (primary key)
- author_id: uuid (foreign key to auth.users.id)
- title: text (not null)
- content: text (not null)
- is_anonymous: boolean (default: false)
- category: text (nullable)
- created_at: timestamp (default: now()) - keyset pagination cursor
- updated_at: timestamp (nullable)
"""
