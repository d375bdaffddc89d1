from fastapi import APIRouter, Depends, HTTPException
from app.database.supabase_client import get_supabase
from app.modules.auth.schemas import CurrentUser
from app.modules.reviews.service import ReviewService
from app.core.dependencies import require_capability
from supabase import Client

router = APIRouter(prefix="/reviews", tags=["reviews"])


def get_review_service(supabase: Client = Depends(get_supabase)) -> ReviewService:
    return ReviewService(supabase)


@router.delete("/{review_id}", status_code=204)
async def delete_review(
    review_id: str,
    current_user: CurrentUser = Depends(require_capability("reviews:delete_own")),
    service: ReviewService = Depends(get_review_service)
):
    """Delete a review (its author or a moderator); the game's rating is adjusted"""
    if not service.delete_review(review_id, current_user):
        raise HTTPException(status_code=404, detail="Review not found")
    return None
