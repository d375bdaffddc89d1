# Supabase table: games
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

games:
- id: uuid (primary key, default: gen_random_uuid())
- title: text (not null)
- genre: text (not null)
- description: text (not null)
- image_url: text (nullable)
- platform: text[] (not null)
- release_year: int (not null)
- author_id: uuid (foreign key to user_profiles.id, not null)
- author_email: text (not null)
- reviews_count: int (not null, default: 0) - denormalized from reviews
- rating_sum: int (not null, default: 0) - running sum of review ratings
- average_rating: numeric(2,1) (not null, default: 0) - rating_sum / reviews_count, one decimal
- version: int (not null, default: 0) - bumped by every conditional aggregate update
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

Deleting a game removes its reviews and sessions first (see GameService.delete_game).
"""

GAMES_TABLE = "games"
