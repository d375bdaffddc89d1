from pydantic import BaseModel, Field
from datetime import datetime


class ReviewCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: str = Field(..., min_length=10)


class ReviewResponse(BaseModel):
    id: str
    game_id: str
    user_id: str
    user_email: str
    rating: int
    comment: str
    created_at: datetime

    class Config:
        from_attributes = True


class ReviewStatusResponse(BaseModel):
    game_id: str
    user_id: str
    has_reviewed: bool


class GameRatingResponse(BaseModel):
    game_id: str
    reviews_count: int
    average_rating: float
