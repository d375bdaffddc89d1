from fastapi import APIRouter, Depends, UploadFile, File
from app.database.supabase_client import get_supabase
from app.modules.auth.schemas import CurrentUser
from app.modules.games.schemas import ImageUploadResponse
from app.modules.uploads.service import ImageStorage
from app.core.dependencies import require_capability
from supabase import Client

router = APIRouter(prefix="/uploads", tags=["uploads"])


def get_image_storage(supabase: Client = Depends(get_supabase)) -> ImageStorage:
    return ImageStorage(supabase)


@router.post("/images", response_model=ImageUploadResponse, status_code=201)
async def upload_image(
    file: UploadFile = File(...),
    current_user: CurrentUser = Depends(require_capability("games:create")),
    storage: ImageStorage = Depends(get_image_storage)
):
    """Upload a game cover image and return its URL (used before creating a game)"""
    content = await file.read()
    url = storage.upload_image(content, file.filename, file.content_type)
    return ImageUploadResponse(url=url)
