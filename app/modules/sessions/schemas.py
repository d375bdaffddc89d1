from pydantic import BaseModel, Field
from typing import Literal, Optional, List
from datetime import datetime

SessionStatus = Literal["open", "full", "closed"]

MIN_PLAYERS = 2
MAX_PLAYERS = 100


class SessionCreate(BaseModel):
    game_id: str
    title: str = Field(..., min_length=5)
    description: str = Field(..., min_length=10)
    max_players: int = Field(..., ge=MIN_PLAYERS, le=MAX_PLAYERS)
    scheduled_time: datetime


class SessionUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=5)
    description: Optional[str] = Field(None, min_length=10)
    max_players: Optional[int] = Field(None, ge=MIN_PLAYERS, le=MAX_PLAYERS)
    scheduled_time: Optional[datetime] = None


class SessionResponse(BaseModel):
    id: str
    game_id: str
    game_title: str
    host_id: str
    host_email: str
    title: str
    description: str
    max_players: int
    current_players: List[str] = []
    scheduled_time: datetime
    status: SessionStatus = "open"
    created_at: datetime

    class Config:
        from_attributes = True
