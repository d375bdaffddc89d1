from pydantic import BaseModel, EmailStr, Field
from typing import Literal, Optional
from datetime import datetime

UserRole = Literal["user", "moderator", "admin"]


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    email: str
    role: UserRole = "user"


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    display_name: Optional[str] = None


class RegisterResponse(BaseModel):
    user_id: str
    email: str
    display_name: Optional[str] = None
    role: UserRole = "user"
    message: str


class CurrentUser(BaseModel):
    """Identity of the caller, resolved once per request and passed to services.

    is_fallback is set when the profile could not be read from the backend and
    a default (role "user") was used instead; that default is never persisted.
    """
    id: str
    email: str
    display_name: Optional[str] = None
    photo_url: Optional[str] = None
    role: UserRole = "user"
    created_at: Optional[datetime] = None
    is_fallback: bool = False

    def has_role(self, *roles: str) -> bool:
        return self.role in roles
