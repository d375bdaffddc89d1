"""
Ownership checks applied inside the services, so that every write path is
guarded regardless of which route (or script) calls it.
"""

from fastapi import HTTPException, status
from app.config.permissions_config import has_capability
from app.modules.auth.schemas import CurrentUser
from typing import Optional


def can_modify(actor: CurrentUser, owner_id: Optional[str], override_capability: Optional[str] = None) -> bool:
    """True if actor owns the record, or holds the capability that overrides ownership"""
    if owner_id is not None and actor.id == owner_id:
        return True
    if override_capability and has_capability(actor.role, override_capability):
        return True
    return False


def ensure_can_modify(
    actor: CurrentUser,
    owner_id: Optional[str],
    detail: str,
    override_capability: Optional[str] = None
) -> None:
    if not can_modify(actor, owner_id, override_capability):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)
