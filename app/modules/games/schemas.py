from pydantic import AfterValidator, BaseModel, Field
from typing import Annotated, Optional, List
from datetime import datetime
from urllib.parse import urlparse

GENRES = [
    "Action",
    "Adventure",
    "RPG",
    "Strategy",
    "Sports",
    "Racing",
    "Puzzle",
    "Simulation",
    "Fighting",
    "Shooter",
    "Horror",
    "Platform",
    "MMORPG",
    "Battle Royale",
]

PLATFORMS = [
    "PC",
    "PlayStation 5",
    "PlayStation 4",
    "Xbox Series X/S",
    "Xbox One",
    "Nintendo Switch",
    "Mobile",
    "VR",
]

MIN_RELEASE_YEAR = 1970


def max_release_year() -> int:
    return datetime.now().year + 1


def _check_genre(value: str) -> str:
    if value not in GENRES:
        raise ValueError(f"Genre must be one of: {', '.join(GENRES)}")
    return value


def _check_image_url(value: str) -> str:
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError("Please enter a valid URL")
    return value


def _check_platforms(value: List[str]) -> List[str]:
    if not value:
        raise ValueError("Please select at least one platform")
    unknown = [p for p in value if p not in PLATFORMS]
    if unknown:
        raise ValueError(f"Unknown platform(s): {', '.join(unknown)}")
    # keep first occurrence order
    return list(dict.fromkeys(value))


def _check_release_year(value: int) -> int:
    upper = max_release_year()
    if not MIN_RELEASE_YEAR <= value <= upper:
        raise ValueError(f"Year must be between {MIN_RELEASE_YEAR} and {upper}")
    return value


Genre = Annotated[str, AfterValidator(_check_genre)]
ImageUrl = Annotated[str, AfterValidator(_check_image_url)]
PlatformList = Annotated[List[str], AfterValidator(_check_platforms)]
ReleaseYear = Annotated[int, AfterValidator(_check_release_year)]


class GameCreate(BaseModel):
    title: str = Field(..., min_length=3)
    genre: Genre
    description: str = Field(..., min_length=20)
    image_url: ImageUrl
    platform: PlatformList
    release_year: ReleaseYear


class GameUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=3)
    genre: Optional[Genre] = None
    description: Optional[str] = Field(None, min_length=20)
    image_url: Optional[ImageUrl] = None
    platform: Optional[PlatformList] = None
    release_year: Optional[ReleaseYear] = None


class GameResponse(BaseModel):
    id: str
    title: str
    genre: str
    description: str
    image_url: Optional[str] = None
    platform: List[str] = []
    release_year: int
    author_id: str
    author_email: str
    created_at: datetime
    updated_at: Optional[datetime] = None
    reviews_count: int = 0
    average_rating: float = 0.0

    class Config:
        from_attributes = True


class ImageUploadResponse(BaseModel):
    url: str
    message: str = "Image uploaded successfully"
