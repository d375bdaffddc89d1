from supabase import Client
from app.modules.games.schemas import GameCreate, GameUpdate, GameResponse
from app.modules.games.models import GAMES_TABLE
from app.modules.reviews.models import REVIEWS_TABLE
from app.modules.sessions.models import SESSIONS_TABLE
from app.modules.auth.schemas import CurrentUser
from app.core.access import ensure_can_modify
from typing import Any, Dict, List, Optional
from fastapi import HTTPException
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


class GameService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _get_game_row(self, game_id: str) -> Dict[str, Any]:
        result = self.supabase.table(GAMES_TABLE)\
            .select("*")\
            .eq("id", game_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Game not found")
        return result.data[0]

    def create_game(self, game_data: GameCreate, actor: CurrentUser) -> GameResponse:
        """Create a new game authored by the actor"""
        try:
            now = datetime.now(timezone.utc).isoformat()
            result = self.supabase.table(GAMES_TABLE).insert({
                "title": game_data.title,
                "genre": game_data.genre,
                "description": game_data.description,
                "image_url": game_data.image_url,
                "platform": game_data.platform,
                "release_year": game_data.release_year,
                "author_id": actor.id,
                "author_email": actor.email,
                "created_at": now,
                "updated_at": now,
                "reviews_count": 0,
                "rating_sum": 0,
                "average_rating": 0,
                "version": 0
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create game")

            logger.info(f"Game {result.data[0]['id']} created by {actor.id}")
            return GameResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating game: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def get_game_by_id(self, game_id: str) -> GameResponse:
        """Get game by ID"""
        try:
            return GameResponse(**self._get_game_row(game_id))
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error fetching game {game_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def list_games(self, limit: Optional[int] = None, offset: int = 0) -> List[GameResponse]:
        """List games, newest first"""
        try:
            query = self.supabase.table(GAMES_TABLE).select("*").order("created_at", desc=True)
            if limit is not None:
                query = query.limit(limit).offset(offset)
            result = query.execute()
            return [GameResponse(**game) for game in result.data]
        except Exception as e:
            logger.error(f"Error listing games: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def list_games_by_author(self, author_id: str) -> List[GameResponse]:
        try:
            result = self.supabase.table(GAMES_TABLE)\
                .select("*")\
                .eq("author_id", author_id)\
                .order("created_at", desc=True)\
                .execute()
            return [GameResponse(**game) for game in result.data]
        except Exception as e:
            logger.error(f"Error listing games of author {author_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def search_games(self, term: str = "", genre: Optional[str] = None) -> List[GameResponse]:
        """Case-insensitive substring search over title and genre.

        There is no index behind this: the whole catalog is fetched and
        filtered in memory.
        """
        needle = (term or "").strip().lower()
        games = self.list_games()
        if needle:
            games = [
                g for g in games
                if needle in g.title.lower() or needle in g.genre.lower()
            ]
        if genre:
            games = [g for g in games if g.genre == genre]
        return games

    def list_genres(self) -> List[str]:
        """Distinct genres present in the catalog, sorted"""
        try:
            result = self.supabase.table(GAMES_TABLE).select("genre").execute()
            return sorted({row["genre"] for row in result.data if row.get("genre")})
        except Exception as e:
            logger.error(f"Error listing genres: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def ensure_author(self, game: GameResponse, actor: CurrentUser) -> None:
        """Only the author may edit a game"""
        ensure_can_modify(actor, game.author_id, "You are not authorized to edit this game")

    def update_game(self, game_id: str, game_data: GameUpdate, actor: CurrentUser) -> GameResponse:
        """Partial update; only the author may edit a game"""
        try:
            game = self._get_game_row(game_id)
            self.ensure_author(GameResponse(**game), actor)

            update_data = game_data.model_dump(exclude_unset=True, exclude_none=True)
            update_data["updated_at"] = datetime.now(timezone.utc).isoformat()

            result = self.supabase.table(GAMES_TABLE)\
                .update(update_data)\
                .eq("id", game_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Game not found")

            return GameResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating game {game_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def delete_game(self, game_id: str, actor: CurrentUser) -> bool:
        """Delete a game together with its reviews and sessions"""
        try:
            game = self._get_game_row(game_id)
            ensure_can_modify(
                actor,
                game.get("author_id"),
                "You are not authorized to delete this game",
                override_capability="games:delete_any"
            )

            # Delete dependent reviews and sessions first
            self.supabase.table(REVIEWS_TABLE)\
                .delete()\
                .eq("game_id", game_id)\
                .execute()

            self.supabase.table(SESSIONS_TABLE)\
                .delete()\
                .eq("game_id", game_id)\
                .execute()

            result = self.supabase.table(GAMES_TABLE)\
                .delete()\
                .eq("id", game_id)\
                .execute()

            logger.info(f"Game {game_id} deleted by {actor.id}")
            return len(result.data) > 0
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error deleting game {game_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))
