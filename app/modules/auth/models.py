# Supabase Auth
# This module uses Supabase's built-in authentication system
# No custom tables are required - Supabase Auth handles:
# - User registration and login (done client-side by the web app)
# - JWT token generation and validation
# - Password hashing and security

"""
This service only verifies tokens:
- auth.get_user(jwt=token) - Resolve the current user from a bearer token

Profile data (subscription_tier, display_name, timezone) lives in the
profiles table, see app/modules/profiles/models.py.
"""
