# Supabase table: reviews
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

reviews:
- id: uuid (primary key, default: gen_random_uuid())
- game_id: uuid (foreign key to games.id, not null)
- user_id: uuid (foreign key to user_profiles.id, not null)
- user_email: text (not null)
- rating: int (not null, check: rating between 1 and 5)
- comment: text (not null)
- created_at: timestamp (default: now())
- unique constraint on (game_id, user_id) - one review per user per game

Every insert/delete adjusts games.reviews_count, games.rating_sum and
games.average_rating through a version-checked update of the game row.
"""

REVIEWS_TABLE = "reviews"
