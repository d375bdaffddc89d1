from fastapi import APIRouter, Depends
from app.modules.auth.schemas import (
    LoginRequest, RegisterRequest, TokenResponse, RegisterResponse, CurrentUser
)
from app.modules.auth.service import AuthService
from app.modules.users.service import UserService
from app.core.dependencies import get_auth_service, get_current_token, get_current_user, get_user_service
from app.config.permissions_config import CAPABILITY_MATRIX

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    register_data: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
    user_service: UserService = Depends(get_user_service)
):
    """Register a new user; the profile is created with the default role"""
    auth_user = service.register(register_data)
    current_user = user_service.resolve_current_user(auth_user)
    return RegisterResponse(
        user_id=current_user.id,
        email=current_user.email,
        display_name=current_user.display_name,
        role=current_user.role,
        message="User registered successfully"
    )


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service),
    user_service: UserService = Depends(get_user_service)
):
    """Login and get access token"""
    access_token, auth_user = service.login(login_data)
    current_user = user_service.resolve_current_user(auth_user)
    return TokenResponse(
        access_token=access_token,
        user_id=current_user.id,
        email=current_user.email,
        role=current_user.role
    )


@router.post("/logout", status_code=200)
async def logout(
    token: str = Depends(get_current_token),
    service: AuthService = Depends(get_auth_service)
):
    """Logout and invalidate token"""
    service.logout(token)
    return {"message": "Logged out successfully"}


@router.get("/me")
async def get_me(current_user: CurrentUser = Depends(get_current_user)):
    """Get current authenticated user, role and capabilities (for frontend UI gating)."""
    capabilities = sorted(CAPABILITY_MATRIX.get(current_user.role, frozenset()))
    return {**current_user.model_dump(), "capabilities": capabilities}
