# Supabase table: journal_entries
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

journal_entries:
- id: uuid (primary key)
- user_id: uuid (foreign key to auth.users.id)
- title: text (not null)
- description: text (nullable)
- incident_date: date (not null)
- incident_time: time (nullable)
- location: text (nullable)
- safety_rating: integer (1-5)
- mood_rating: integer (nullable, 1-10)
- abuse_types: text[] (default: {})
- behavior_categories: text[] (default: {})
- emotional_state_before: text (nullable)
- emotional_state_after: text (nullable)
- evidence_notes: text (nullable)
- witnesses: text[] (default: {})
- trigger_level: integer (nullable, 1-5)
- is_evidence: boolean (default: false)
- is_draft: boolean (default: false)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

Evidence attachments live in evidence_files (see app/modules/evidence/models.py).
"""
