# Supabase tables: user_profiles, auth.users
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# Authentication is handled by Supabase Auth (auth.users table)

"""
Expected Supabase table structure:

user_profiles:
- id: uuid (primary key, references auth.users.id)
- email: text (not null) - synced from auth.users
- display_name: text (default: '')
- photo_url: text (nullable)
- role: text (not null, default: 'user') - values: user, moderator, admin
- created_at: timestamp (default: now())

Profiles are created on registration, or lazily on the first authenticated
request of a user that has none. They are never hard-deleted by the API.
"""

USER_PROFILES_TABLE = "user_profiles"
