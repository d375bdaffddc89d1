from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from app.modules.auth.schemas import UserRole
from app.modules.games.schemas import GameResponse
from app.modules.reviews.schemas import ReviewResponse
from app.modules.sessions.schemas import SessionResponse


class UserProfileUpdate(BaseModel):
    display_name: Optional[str] = Field(None, max_length=100)
    photo_url: Optional[str] = None


class UserRoleUpdate(BaseModel):
    role: UserRole


class UserResponse(BaseModel):
    id: str
    email: str
    display_name: Optional[str] = None
    photo_url: Optional[str] = None
    role: UserRole = "user"
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProfileOverviewResponse(BaseModel):
    """Everything the profile page shows: the profile plus the user's games, hosted sessions and reviews"""
    user: UserResponse
    games: List[GameResponse]
    sessions: List[SessionResponse]
    reviews: List[ReviewResponse]
