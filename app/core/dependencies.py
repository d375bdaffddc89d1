"""
Core dependencies for route protection and role/capability checking
"""

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.database.supabase_client import get_supabase
from app.modules.auth.schemas import CurrentUser
from app.modules.auth.service import AuthService
from app.modules.users.service import UserService
from app.config.permissions_config import has_capability
from supabase import Client
from typing import Optional
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_user_service(supabase: Client = Depends(get_supabase)) -> UserService:
    return UserService(supabase)


def get_current_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security)
) -> str:
    """Extract JWT token from Authorization header"""
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return credentials.credentials


def get_current_user(
    token: str = Depends(get_current_token),
    auth_service: AuthService = Depends(get_auth_service),
    user_service: UserService = Depends(get_user_service)
) -> CurrentUser:
    """Resolve the caller: token -> Supabase auth user -> profile (with default-role fallback)"""
    auth_user = auth_service.get_current_user(token)
    return user_service.resolve_current_user(auth_user)


def require_role(*allowed_roles: str):
    """Factory function to create a role check dependency"""
    def check_role(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if not current_user.has_role(*allowed_roles):
            logger.info(
                f"User {current_user.id} with role {current_user.role} denied; requires {allowed_roles}"
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required role: {' or '.join(allowed_roles)}"
            )
        return current_user
    return check_role


def require_capability(capability: str):
    """Factory function to create a capability check dependency"""
    def check_capability(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if not has_capability(current_user.role, capability):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required: {capability}"
            )
        return current_user
    return check_capability
