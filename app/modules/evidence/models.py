# Supabase table: evidence_files
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# Objects themselves live in Supabase Storage (bucket per media type, audio in 'evidence-audio')

"""
Expected Supabase table structure:

evidence_files:
- id: uuid (primary key)
- user_id: uuid (foreign key to auth.users.id)
- journal_entry_id: uuid (nullable, foreign key to journal_entries.id)
- file_name: text (not null)
- storage_bucket: text (not null)
- storage_path: text (not null) - object path inside the bucket, no leading '/'
- file_type: text (not null) - MIME type, audio/* for transcribable evidence
- file_size: integer (bytes)
- caption: text (nullable)
- duration_seconds: integer (default: 0)
- transcription: text (nullable)
- transcription_status: text (nullable) - values: pending, processing, completed, failed
- processing_status: text (nullable) - mirrors the terminal transcription outcome
- processed_at: timestamp (nullable)
- metadata: jsonb (default: {}) - transcription_job_id, transcription_started_at,
  transcription_completed_at, transcription_error, language, confidence, duration,
  word_timestamps
- uploaded_at: timestamp (default: now())
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)
"""
