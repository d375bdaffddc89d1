from fastapi import APIRouter, Depends, HTTPException, UploadFile, File
from app.database.supabase_client import get_supabase
from app.modules.auth.schemas import CurrentUser
from app.modules.games.schemas import GameCreate, GameUpdate, GameResponse, GENRES, PLATFORMS
from app.modules.games.service import GameService
from app.modules.reviews.schemas import ReviewCreate, ReviewResponse, ReviewStatusResponse, GameRatingResponse
from app.modules.reviews.service import ReviewService
from app.modules.reviews.routes import get_review_service
from app.modules.sessions.schemas import SessionResponse
from app.modules.sessions.service import SessionService
from app.modules.sessions.routes import get_session_service
from app.modules.uploads.service import ImageStorage
from app.modules.uploads.routes import get_image_storage
from app.core.dependencies import get_current_user, require_capability
from supabase import Client
from typing import List, Optional

router = APIRouter(prefix="/games", tags=["games"])


def get_game_service(supabase: Client = Depends(get_supabase)) -> GameService:
    return GameService(supabase)


@router.get("", response_model=List[GameResponse])
async def list_games(
    limit: Optional[int] = None,
    offset: int = 0,
    current_user: CurrentUser = Depends(get_current_user),
    service: GameService = Depends(get_game_service)
):
    """Game catalog, newest first"""
    return service.list_games(limit=limit, offset=offset)


@router.get("/search", response_model=List[GameResponse])
async def search_games(
    q: str = "",
    genre: Optional[str] = None,
    current_user: CurrentUser = Depends(get_current_user),
    service: GameService = Depends(get_game_service)
):
    """Search by title/genre substring, optionally restricted to one genre"""
    return service.search_games(q, genre=genre)


@router.get("/genres", response_model=List[str])
async def list_genres(
    current_user: CurrentUser = Depends(get_current_user),
    service: GameService = Depends(get_game_service)
):
    """Genres currently present in the catalog"""
    return service.list_genres()


@router.get("/options")
async def get_form_options():
    """Allowed genres and platforms for the game form"""
    return {"genres": GENRES, "platforms": PLATFORMS}


@router.post("", response_model=GameResponse, status_code=201)
async def create_game(
    game_data: GameCreate,
    current_user: CurrentUser = Depends(require_capability("games:create")),
    service: GameService = Depends(get_game_service)
):
    return service.create_game(game_data, current_user)


@router.get("/{game_id}", response_model=GameResponse)
async def get_game(
    game_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: GameService = Depends(get_game_service)
):
    return service.get_game_by_id(game_id)


@router.put("/{game_id}", response_model=GameResponse)
async def update_game(
    game_id: str,
    game_data: GameUpdate,
    current_user: CurrentUser = Depends(require_capability("games:update_own")),
    service: GameService = Depends(get_game_service)
):
    """Update game (author only)"""
    return service.update_game(game_id, game_data, current_user)


@router.delete("/{game_id}", status_code=204)
async def delete_game(
    game_id: str,
    current_user: CurrentUser = Depends(require_capability("games:delete_own")),
    service: GameService = Depends(get_game_service)
):
    """Delete game with its reviews and sessions (author or moderator)"""
    if not service.delete_game(game_id, current_user):
        raise HTTPException(status_code=404, detail="Game not found")
    return None


@router.post("/{game_id}/image", response_model=GameResponse)
async def upload_game_image(
    game_id: str,
    file: UploadFile = File(...),
    current_user: CurrentUser = Depends(require_capability("games:update_own")),
    service: GameService = Depends(get_game_service),
    storage: ImageStorage = Depends(get_image_storage)
):
    """Replace the game's cover image (author only). The old image is removed best-effort."""
    previous = service.get_game_by_id(game_id)
    # Check ownership before uploading anything
    service.ensure_author(previous, current_user)
    content = await file.read()
    url = storage.upload_image(content, file.filename, file.content_type)
    game = service.update_game(game_id, GameUpdate(image_url=url), current_user)
    if previous.image_url and previous.image_url != url:
        storage.delete_image(previous.image_url)
    return game


@router.get("/{game_id}/reviews", response_model=List[ReviewResponse])
async def list_game_reviews(
    game_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service)
):
    return service.list_reviews_by_game(game_id)


@router.post("/{game_id}/reviews", response_model=ReviewResponse, status_code=201)
async def create_game_review(
    game_id: str,
    review_data: ReviewCreate,
    current_user: CurrentUser = Depends(require_capability("reviews:create")),
    service: ReviewService = Depends(get_review_service)
):
    """Add a review; one per user per game"""
    return service.create_review(game_id, review_data, current_user)


@router.get("/{game_id}/reviews/mine", response_model=ReviewStatusResponse)
async def has_reviewed_game(
    game_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service)
):
    """Whether the current user has already reviewed this game"""
    return ReviewStatusResponse(
        game_id=game_id,
        user_id=current_user.id,
        has_reviewed=service.has_user_reviewed(game_id, current_user.id)
    )


@router.post("/{game_id}/rating/recompute", response_model=GameRatingResponse)
async def recompute_game_rating(
    game_id: str,
    current_user: CurrentUser = Depends(require_capability("reviews:recompute")),
    service: ReviewService = Depends(get_review_service)
):
    """Rebuild the denormalized rating from all reviews (moderators)"""
    return service.recompute_game_rating(game_id)


@router.get("/{game_id}/sessions", response_model=List[SessionResponse])
async def list_game_sessions(
    game_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: SessionService = Depends(get_session_service)
):
    return service.list_sessions_by_game(game_id)
