# Supabase table: sessions
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

sessions:
- id: uuid (primary key, default: gen_random_uuid())
- game_id: uuid (foreign key to games.id, not null)
- game_title: text (not null) - denormalized from games.title at creation
- host_id: uuid (foreign key to user_profiles.id, not null)
- host_email: text (not null)
- title: text (not null)
- description: text (not null)
- max_players: int (not null, check: between 2 and 100)
- current_players: text[] (not null) - ordered, host first
- scheduled_time: timestamp (not null)
- status: text (not null, default: 'open') - values: open, full, closed
- version: int (not null, default: 0) - bumped by every conditional update
- created_at: timestamp (default: now())

A "session" here is a scheduled multiplayer meetup, not a login session.
"""

SESSIONS_TABLE = "sessions"
