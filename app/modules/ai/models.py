# Supabase tables: pattern_analysis, ai_conversations, ai_messages
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

pattern_analysis:
- id: uuid (primary key)
- user_id: uuid (foreign key to auth.users.id)
- analysis_type: text (not null, default: 'abuse_patterns')
- analysis_period_start: date (nullable)
- analysis_period_end: date (nullable)
- patterns_identified: jsonb (default: [])
- insights: jsonb (default: {})
- recommendations: jsonb (default: [])
- risk_assessment: jsonb (default: {})
- confidence_score: numeric (nullable)
- data_points_analyzed: integer (default: 0)
- ai_model_version: text (nullable)
- created_at: timestamp (default: now())

ai_conversations:
- id: uuid (primary key)
- user_id: uuid (foreign key to auth.users.id)
- title: text (first 60 characters of the opening message)
- context_type: text (general | crisis | pattern-analysis | mind-reset | grey-rock)
- created_at: timestamp (default: now())
- updated_at: timestamp (bumped on every message)

ai_messages:
- id: uuid (primary key)
- conversation_id: uuid (foreign key to ai_conversations.id)
- user_id: uuid (foreign key to auth.users.id)
- role: text (user | assistant)
- content: text
- metadata: jsonb ({context_type})
- created_at: timestamp (default: now())

AI text helpers (titles, metadata, coping strategies) are stateless; their
usage is metered through the record_feature_usage RPC (see app/modules/usage/models.py).
"""
