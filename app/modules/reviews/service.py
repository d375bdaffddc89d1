from supabase import Client
from app.modules.reviews.schemas import ReviewCreate, ReviewResponse, GameRatingResponse
from app.modules.reviews.models import REVIEWS_TABLE
from app.modules.games.models import GAMES_TABLE
from app.modules.auth.schemas import CurrentUser
from app.core.access import ensure_can_modify
from app.database.conditional import row_version, update_if_version
from app.config import settings
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List
from fastapi import HTTPException
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


def average_rating(rating_sum: int, reviews_count: int) -> float:
    """Mean rating rounded half-up to one decimal; 0 when there are no reviews"""
    if reviews_count <= 0:
        return 0.0
    mean = Decimal(rating_sum) / Decimal(reviews_count)
    return float(mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def _is_unique_violation(error: Exception) -> bool:
    message = str(error).lower()
    return "23505" in message or "duplicate key" in message or "unique" in message


class ReviewService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.max_attempts = settings.conditional_update_attempts

    def _get_review_row(self, review_id: str) -> Dict[str, Any]:
        result = self.supabase.table(REVIEWS_TABLE)\
            .select("*")\
            .eq("id", review_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Review not found")
        return result.data[0]

    def _get_game_aggregate(self, game_id: str) -> Dict[str, Any]:
        result = self.supabase.table(GAMES_TABLE)\
            .select("id, reviews_count, rating_sum, average_rating, version")\
            .eq("id", game_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Game not found")
        return result.data[0]

    def _write_aggregate(self, game_id: str, compute) -> GameRatingResponse:
        """Read the game's aggregate, compute new (sum, count), write it back if nobody else did meanwhile"""
        for attempt in range(1, self.max_attempts + 1):
            game = self._get_game_aggregate(game_id)
            rating_sum, reviews_count = compute(game)
            changes = {
                "rating_sum": rating_sum,
                "reviews_count": reviews_count,
                "average_rating": average_rating(rating_sum, reviews_count),
            }
            updated = update_if_version(self.supabase, GAMES_TABLE, game_id, row_version(game), changes)
            if updated is not None:
                return GameRatingResponse(
                    game_id=game_id,
                    reviews_count=reviews_count,
                    average_rating=changes["average_rating"],
                )
            logger.info(f"Rating of game {game_id} changed concurrently (attempt {attempt}/{self.max_attempts})")
        raise HTTPException(status_code=409, detail="Game rating was modified concurrently, please retry")

    def _apply_rating_delta(self, game_id: str, rating_delta: int, count_delta: int) -> GameRatingResponse:
        def compute(game: Dict[str, Any]):
            reviews_count = max(int(game.get("reviews_count") or 0) + count_delta, 0)
            rating_sum = int(game.get("rating_sum") or 0) + rating_delta if reviews_count else 0
            return rating_sum, reviews_count
        return self._write_aggregate(game_id, compute)

    def has_user_reviewed(self, game_id: str, user_id: str) -> bool:
        """Check if user has already reviewed a game"""
        try:
            result = self.supabase.table(REVIEWS_TABLE)\
                .select("id")\
                .eq("game_id", game_id)\
                .eq("user_id", user_id)\
                .limit(1)\
                .execute()
            return bool(result.data)
        except Exception as e:
            logger.error(f"Error checking review of {user_id} for game {game_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def create_review(self, game_id: str, review_data: ReviewCreate, actor: CurrentUser) -> ReviewResponse:
        """Write a review, then fold its rating into the game's aggregate.

        If the aggregate cannot be updated the review is removed again so the
        two never disagree.
        """
        try:
            self._get_game_aggregate(game_id)
            if self.has_user_reviewed(game_id, actor.id):
                raise HTTPException(status_code=400, detail="You have already reviewed this game")

            try:
                result = self.supabase.table(REVIEWS_TABLE).insert({
                    "game_id": game_id,
                    "user_id": actor.id,
                    "user_email": actor.email,
                    "rating": review_data.rating,
                    "comment": review_data.comment,
                    "created_at": datetime.now(timezone.utc).isoformat()
                }).execute()
            except Exception as e:
                if _is_unique_violation(e):
                    raise HTTPException(status_code=400, detail="You have already reviewed this game")
                raise

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create review")
            review = result.data[0]

            try:
                self._apply_rating_delta(game_id, review_data.rating, 1)
            except Exception:
                logger.error(f"Rating update failed for game {game_id}; removing review {review['id']}")
                try:
                    self.supabase.table(REVIEWS_TABLE).delete().eq("id", review["id"]).execute()
                except Exception as cleanup_error:
                    logger.error(f"Failed to remove review {review['id']} after rating failure: {cleanup_error}")
                raise

            logger.info(f"Review {review['id']} for game {game_id} created by {actor.id}")
            return ReviewResponse(**review)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating review for game {game_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def list_reviews_by_game(self, game_id: str) -> List[ReviewResponse]:
        """Get all reviews for a game, newest first"""
        try:
            result = self.supabase.table(REVIEWS_TABLE)\
                .select("*")\
                .eq("game_id", game_id)\
                .order("created_at", desc=True)\
                .execute()
            return [ReviewResponse(**review) for review in result.data]
        except Exception as e:
            logger.error(f"Error listing reviews of game {game_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def list_reviews_by_user(self, user_id: str) -> List[ReviewResponse]:
        """Get all reviews written by a user, newest first"""
        try:
            result = self.supabase.table(REVIEWS_TABLE)\
                .select("*")\
                .eq("user_id", user_id)\
                .order("created_at", desc=True)\
                .execute()
            return [ReviewResponse(**review) for review in result.data]
        except Exception as e:
            logger.error(f"Error listing reviews of user {user_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def delete_review(self, review_id: str, actor: CurrentUser) -> bool:
        """Delete a review (its author or a moderator) and take it out of the game's aggregate"""
        try:
            review = self._get_review_row(review_id)
            ensure_can_modify(
                actor,
                review.get("user_id"),
                "You are not authorized to delete this review",
                override_capability="reviews:delete_any"
            )

            result = self.supabase.table(REVIEWS_TABLE)\
                .delete()\
                .eq("id", review_id)\
                .execute()
            if not result.data:
                return False

            # The review is gone from here on: rating failures are repaired, not reported
            try:
                self._apply_rating_delta(review["game_id"], -int(review["rating"]), -1)
            except HTTPException as e:
                if e.status_code == 404:
                    logger.warning(f"Review {review_id} referenced missing game {review['game_id']}")
                else:
                    self._recompute_after_failed_delta(review["game_id"], review_id, e.detail)
            except Exception as e:
                self._recompute_after_failed_delta(review["game_id"], review_id, str(e))

            logger.info(f"Review {review_id} deleted by {actor.id}")
            return True
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error deleting review {review_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def _recompute_after_failed_delta(self, game_id: str, review_id: str, reason: str) -> None:
        logger.warning(
            f"Rating update after deleting review {review_id} failed ({reason}); recomputing game {game_id}"
        )
        try:
            self.recompute_game_rating(game_id)
        except HTTPException as e:
            logger.error(
                f"Rating of game {game_id} is stale after deleting review {review_id}: {e.detail}"
            )

    def recompute_game_rating(self, game_id: str) -> GameRatingResponse:
        """Rebuild a game's aggregate from every one of its reviews (repair operation)"""
        try:
            def compute(game: Dict[str, Any]):
                reviews = self.list_reviews_by_game(game_id)
                return sum(r.rating for r in reviews), len(reviews)

            rating = self._write_aggregate(game_id, compute)
            logger.info(
                f"Recomputed rating of game {game_id}: {rating.average_rating} over {rating.reviews_count} reviews"
            )
            return rating
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error recomputing rating of game {game_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))
