from fastapi import APIRouter, Depends, HTTPException
from app.database.supabase_client import get_supabase
from app.modules.auth.schemas import CurrentUser
from app.modules.sessions.schemas import SessionCreate, SessionUpdate, SessionResponse
from app.modules.sessions.service import SessionService
from app.core.dependencies import get_current_user, require_capability
from supabase import Client
from typing import List

router = APIRouter(prefix="/sessions", tags=["sessions"])


def get_session_service(supabase: Client = Depends(get_supabase)) -> SessionService:
    return SessionService(supabase)


@router.get("", response_model=List[SessionResponse])
async def list_sessions(
    current_user: CurrentUser = Depends(get_current_user),
    service: SessionService = Depends(get_session_service)
):
    """All gaming sessions, newest first"""
    return service.list_sessions()


@router.get("/open", response_model=List[SessionResponse])
async def list_open_sessions(
    current_user: CurrentUser = Depends(get_current_user),
    service: SessionService = Depends(get_session_service)
):
    """Open sessions ordered by scheduled time"""
    return service.list_open_sessions()


@router.post("", response_model=SessionResponse, status_code=201)
async def create_session(
    session_data: SessionCreate,
    current_user: CurrentUser = Depends(require_capability("sessions:create")),
    service: SessionService = Depends(get_session_service)
):
    return service.create_session(session_data, current_user)


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: str,
    service: SessionService = Depends(get_session_service)
):
    """Session details are public"""
    return service.get_session_by_id(session_id)


@router.put("/{session_id}", response_model=SessionResponse)
async def update_session(
    session_id: str,
    session_data: SessionUpdate,
    current_user: CurrentUser = Depends(require_capability("sessions:manage_own")),
    service: SessionService = Depends(get_session_service)
):
    return service.update_session(session_id, session_data, current_user)


@router.delete("/{session_id}", status_code=204)
async def delete_session(
    session_id: str,
    current_user: CurrentUser = Depends(require_capability("sessions:manage_own")),
    service: SessionService = Depends(get_session_service)
):
    if not service.delete_session(session_id, current_user):
        raise HTTPException(status_code=404, detail="Session not found")
    return None


@router.post("/{session_id}/join", response_model=SessionResponse)
async def join_session(
    session_id: str,
    current_user: CurrentUser = Depends(require_capability("sessions:join")),
    service: SessionService = Depends(get_session_service)
):
    return service.join_session(session_id, current_user)


@router.post("/{session_id}/leave", response_model=SessionResponse)
async def leave_session(
    session_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: SessionService = Depends(get_session_service)
):
    return service.leave_session(session_id, current_user)


@router.post("/{session_id}/close", response_model=SessionResponse)
async def close_session(
    session_id: str,
    current_user: CurrentUser = Depends(require_capability("sessions:manage_own")),
    service: SessionService = Depends(get_session_service)
):
    """Close the session to new players (host or moderator)"""
    return service.close_session(session_id, current_user)
