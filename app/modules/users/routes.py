from fastapi import APIRouter, Depends, HTTPException, status
from app.modules.auth.schemas import CurrentUser
from app.modules.auth.service import AuthService
from app.modules.users.schemas import (
    UserProfileUpdate, UserRoleUpdate, UserResponse, ProfileOverviewResponse
)
from app.modules.users.service import UserService
from app.modules.games.routes import get_game_service
from app.modules.games.service import GameService
from app.modules.reviews.routes import get_review_service
from app.modules.reviews.schemas import ReviewResponse
from app.modules.reviews.service import ReviewService
from app.modules.sessions.routes import get_session_service
from app.modules.sessions.service import SessionService
from app.core.dependencies import (
    get_auth_service, get_current_user, get_user_service, require_capability, require_role
)
from typing import List
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


def _as_response(current_user: CurrentUser) -> UserResponse:
    return UserResponse(**current_user.model_dump(exclude={"is_fallback"}))


@router.get("", response_model=List[UserResponse])
async def list_users(
    limit: int = 20,
    offset: int = 0,
    current_user: CurrentUser = Depends(require_role("admin")),
    service: UserService = Depends(get_user_service)
):
    """List user profiles (admin)"""
    return service.list_users(limit=limit, offset=offset)


@router.get("/me", response_model=UserResponse)
async def get_my_profile(current_user: CurrentUser = Depends(get_current_user)):
    return _as_response(current_user)


@router.put("/me", response_model=UserResponse)
async def update_my_profile(
    profile_data: UserProfileUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
    auth_service: AuthService = Depends(get_auth_service)
):
    """Update display name / photo in both the auth user and the profile row"""
    auth_service.update_auth_profile(current_user.id, profile_data.display_name, profile_data.photo_url)
    try:
        return service.update_user_profile(current_user.id, profile_data)
    except HTTPException as e:
        if e.status_code != 500:
            raise
        # Profile row unreachable: answer with the locally merged values so the client stays in sync
        logger.warning(f"Could not update profile row of {current_user.id}; returning merged values")
        merged = _as_response(current_user)
        if profile_data.display_name:
            merged.display_name = profile_data.display_name
        if profile_data.photo_url:
            merged.photo_url = profile_data.photo_url
        return merged


@router.get("/me/overview", response_model=ProfileOverviewResponse)
async def get_my_overview(
    current_user: CurrentUser = Depends(get_current_user),
    game_service: GameService = Depends(get_game_service),
    session_service: SessionService = Depends(get_session_service),
    review_service: ReviewService = Depends(get_review_service)
):
    """Profile page: games authored, sessions hosted and reviews written by the current user"""
    return ProfileOverviewResponse(
        user=_as_response(current_user),
        games=game_service.list_games_by_author(current_user.id),
        sessions=session_service.list_sessions_by_host(current_user.id),
        reviews=review_service.list_reviews_by_user(current_user.id),
    )


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    current_user: CurrentUser = Depends(require_capability("users:read")),
    service: UserService = Depends(get_user_service)
):
    profile = service.get_user_by_id(user_id)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return profile


@router.get("/{user_id}/reviews", response_model=List[ReviewResponse])
async def list_user_reviews(
    user_id: str,
    current_user: CurrentUser = Depends(require_capability("users:read")),
    service: ReviewService = Depends(get_review_service)
):
    return service.list_reviews_by_user(user_id)


@router.put("/{user_id}/role", response_model=UserResponse)
async def update_user_role(
    user_id: str,
    role_data: UserRoleUpdate,
    current_user: CurrentUser = Depends(require_capability("users:assign_role")),
    service: UserService = Depends(get_user_service)
):
    """Change a user's role (admin only)"""
    if user_id == current_user.id and role_data.role != "admin":
        raise HTTPException(status_code=400, detail="Admins cannot demote themselves")
    return service.update_user_role(user_id, role_data.role)
