from supabase import Client
from app.modules.users.schemas import UserProfileUpdate, UserResponse
from app.modules.users.models import USER_PROFILES_TABLE
from app.modules.auth.schemas import CurrentUser
from app.config.permissions_config import DEFAULT_ROLE, ROLES
from typing import Any, Dict, List, Optional
from fastapi import HTTPException
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


def _to_user_response(row: Dict[str, Any]) -> UserResponse:
    data = dict(row)
    data["role"] = data.get("role") or DEFAULT_ROLE
    return UserResponse(**data)


class UserService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def create_user(
        self,
        user_id: str,
        email: str,
        display_name: Optional[str] = None,
        role: str = DEFAULT_ROLE
    ) -> UserResponse:
        """Create (or overwrite) the profile row for an auth user"""
        try:
            result = self.supabase.table(USER_PROFILES_TABLE).upsert({
                "id": user_id,
                "email": email,
                "display_name": display_name or "",
                "role": role,
                "created_at": datetime.now(timezone.utc).isoformat()
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create user profile")

            logger.info(f"Created profile for user {user_id} with role {role}")
            return _to_user_response(result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating user profile {user_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def get_user_by_id(self, user_id: str) -> Optional[UserResponse]:
        """Get user profile by ID; None when the profile does not exist"""
        try:
            result = self.supabase.table(USER_PROFILES_TABLE)\
                .select("*")\
                .eq("id", user_id)\
                .limit(1)\
                .execute()

            if not result.data:
                return None

            return _to_user_response(result.data[0])
        except Exception as e:
            logger.error(f"Error fetching user profile {user_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def list_users(self, limit: int = 20, offset: int = 0) -> List[UserResponse]:
        try:
            result = self.supabase.table(USER_PROFILES_TABLE)\
                .select("*")\
                .order("created_at", desc=True)\
                .limit(limit)\
                .offset(offset)\
                .execute()
            return [_to_user_response(user) for user in result.data]
        except Exception as e:
            logger.error(f"Error listing users: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def update_user_role(self, user_id: str, role: str) -> UserResponse:
        """Change a user's role (admin only; enforced by the route guard)"""
        if role not in ROLES:
            raise HTTPException(status_code=400, detail=f"Unknown role: {role}")
        try:
            result = self.supabase.table(USER_PROFILES_TABLE)\
                .update({"role": role})\
                .eq("id", user_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="User not found")

            logger.info(f"Role of user {user_id} set to {role}")
            return _to_user_response(result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating role of user {user_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def update_user_profile(self, user_id: str, user_data: UserProfileUpdate) -> UserResponse:
        """Update display name and/or photo URL"""
        try:
            update_data = {}
            if user_data.display_name is not None:
                update_data["display_name"] = user_data.display_name
            if user_data.photo_url is not None:
                update_data["photo_url"] = user_data.photo_url

            if not update_data:
                profile = self.get_user_by_id(user_id)
                if profile is None:
                    raise HTTPException(status_code=404, detail="User not found")
                return profile

            result = self.supabase.table(USER_PROFILES_TABLE)\
                .update(update_data)\
                .eq("id", user_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="User not found")

            return _to_user_response(result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating profile of user {user_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def resolve_current_user(self, auth_user: Dict[str, Any]) -> CurrentUser:
        """Map an authenticated Supabase user to the caller identity.

        Reads the profile, creating it with the default role when missing. If the
        backend cannot be reached or refuses the read, a default identity with
        role "user" is returned instead (flagged is_fallback, not persisted).
        """
        user_id = auth_user["id"]
        email = auth_user.get("email") or ""
        metadata = auth_user.get("user_metadata") or {}
        display_name = metadata.get("display_name") or metadata.get("full_name")
        try:
            profile = self.get_user_by_id(user_id)
            if profile is None:
                profile = self.create_user(user_id, email, display_name)
            return CurrentUser(**profile.model_dump())
        except Exception as e:
            logger.warning(
                f"Could not load profile for user {user_id}, using default role: {e}"
            )
            return CurrentUser(
                id=user_id,
                email=email,
                display_name=display_name,
                photo_url=metadata.get("photo_url"),
                role=DEFAULT_ROLE,
                created_at=datetime.now(timezone.utc),
                is_fallback=True,
            )
