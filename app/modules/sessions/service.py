from supabase import Client
from app.modules.sessions.schemas import SessionCreate, SessionUpdate, SessionResponse
from app.modules.sessions.models import SESSIONS_TABLE
from app.modules.games.models import GAMES_TABLE
from app.modules.auth.schemas import CurrentUser
from app.core.access import ensure_can_modify
from app.database.conditional import row_version, update_if_version
from app.config import settings
from typing import Any, Callable, Dict, List
from fastapi import HTTPException
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


class SessionService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.max_attempts = settings.conditional_update_attempts

    def _get_session_row(self, session_id: str) -> Dict[str, Any]:
        result = self.supabase.table(SESSIONS_TABLE)\
            .select("*")\
            .eq("id", session_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Session not found")
        return result.data[0]

    def _modify(self, session_id: str, mutate: Callable[[Dict[str, Any]], Dict[str, Any]], action: str) -> SessionResponse:
        """Read-check-write loop: mutate() sees the current row and returns the changes
        (or raises), and the write only lands if the row's version is unchanged."""
        try:
            for attempt in range(1, self.max_attempts + 1):
                session = self._get_session_row(session_id)
                changes = mutate(session)
                updated = update_if_version(self.supabase, SESSIONS_TABLE, session_id, row_version(session), changes)
                if updated is not None:
                    return SessionResponse(**updated)
                logger.info(
                    f"Session {session_id} changed during {action} (attempt {attempt}/{self.max_attempts})"
                )
            raise HTTPException(status_code=409, detail="Session was modified concurrently, please retry")
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error during {action} of session {session_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def create_session(self, session_data: SessionCreate, actor: CurrentUser) -> SessionResponse:
        """Create a session for an existing game; the host is its first player"""
        try:
            game_result = self.supabase.table(GAMES_TABLE)\
                .select("id, title")\
                .eq("id", session_data.game_id)\
                .limit(1)\
                .execute()
            if not game_result.data:
                raise HTTPException(status_code=400, detail="Please select a valid game")

            result = self.supabase.table(SESSIONS_TABLE).insert({
                "game_id": session_data.game_id,
                "game_title": game_result.data[0]["title"],
                "host_id": actor.id,
                "host_email": actor.email,
                "title": session_data.title,
                "description": session_data.description,
                "max_players": session_data.max_players,
                "current_players": [actor.id],
                "scheduled_time": session_data.scheduled_time.isoformat(),
                "status": "open",
                "version": 0,
                "created_at": datetime.now(timezone.utc).isoformat()
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create session")

            logger.info(f"Session {result.data[0]['id']} created by {actor.id}")
            return SessionResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating session: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def get_session_by_id(self, session_id: str) -> SessionResponse:
        try:
            return SessionResponse(**self._get_session_row(session_id))
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error fetching session {session_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def _list(self, description: str, build_query) -> List[SessionResponse]:
        try:
            result = build_query(self.supabase.table(SESSIONS_TABLE).select("*")).execute()
            return [SessionResponse(**session) for session in result.data]
        except Exception as e:
            logger.error(f"Error listing {description}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def list_sessions(self) -> List[SessionResponse]:
        """All sessions, newest first"""
        return self._list("sessions", lambda q: q.order("created_at", desc=True))

    def list_open_sessions(self) -> List[SessionResponse]:
        """Open sessions, soonest first"""
        return self._list(
            "open sessions",
            lambda q: q.eq("status", "open").order("scheduled_time", desc=False)
        )

    def list_sessions_by_game(self, game_id: str) -> List[SessionResponse]:
        return self._list(
            f"sessions of game {game_id}",
            lambda q: q.eq("game_id", game_id).order("created_at", desc=True)
        )

    def list_sessions_by_host(self, host_id: str) -> List[SessionResponse]:
        return self._list(
            f"sessions of host {host_id}",
            lambda q: q.eq("host_id", host_id).order("created_at", desc=True)
        )

    def join_session(self, session_id: str, actor: CurrentUser) -> SessionResponse:
        """Add the actor to the player list; the session becomes "full" on its last free slot"""
        def mutate(session: Dict[str, Any]) -> Dict[str, Any]:
            players = list(session.get("current_players") or [])
            max_players = int(session["max_players"])
            if actor.id in players:
                raise HTTPException(status_code=400, detail="You have already joined this session")
            if len(players) >= max_players:
                raise HTTPException(status_code=400, detail="Session is full")
            players.append(actor.id)
            return {
                "current_players": players,
                "status": "full" if len(players) >= max_players else "open",
            }

        session = self._modify(session_id, mutate, "join")
        logger.info(f"User {actor.id} joined session {session_id} ({len(session.current_players)}/{session.max_players})")
        return session

    def leave_session(self, session_id: str, actor: CurrentUser) -> SessionResponse:
        """Remove the actor from the player list.

        The status is always reset to "open", a closed session included.
        """
        def mutate(session: Dict[str, Any]) -> Dict[str, Any]:
            players = list(session.get("current_players") or [])
            if actor.id not in players:
                raise HTTPException(status_code=400, detail="You are not in this session")
            return {
                "current_players": [p for p in players if p != actor.id],
                "status": "open",
            }

        session = self._modify(session_id, mutate, "leave")
        logger.info(f"User {actor.id} left session {session_id}")
        return session

    def update_session(self, session_id: str, session_data: SessionUpdate, actor: CurrentUser) -> SessionResponse:
        """Partial update by the host (or a moderator)"""
        def mutate(session: Dict[str, Any]) -> Dict[str, Any]:
            ensure_can_modify(
                actor,
                session.get("host_id"),
                "Only the host can edit this session",
                override_capability="sessions:manage_any"
            )
            changes = session_data.model_dump(exclude_unset=True, exclude_none=True)
            if "scheduled_time" in changes:
                changes["scheduled_time"] = session_data.scheduled_time.isoformat()
            if "max_players" in changes:
                players = session.get("current_players") or []
                if changes["max_players"] < len(players):
                    raise HTTPException(
                        status_code=400,
                        detail="Maximum players cannot be lower than the current number of players"
                    )
                if session.get("status") != "closed":
                    changes["status"] = "full" if len(players) >= changes["max_players"] else "open"
            return changes

        return self._modify(session_id, mutate, "update")

    def close_session(self, session_id: str, actor: CurrentUser) -> SessionResponse:
        """Set status to "closed" (host or moderator)"""
        def mutate(session: Dict[str, Any]) -> Dict[str, Any]:
            ensure_can_modify(
                actor,
                session.get("host_id"),
                "Only the host can close this session",
                override_capability="sessions:manage_any"
            )
            return {"status": "closed"}

        session = self._modify(session_id, mutate, "close")
        logger.info(f"Session {session_id} closed by {actor.id}")
        return session

    def delete_session(self, session_id: str, actor: CurrentUser) -> bool:
        try:
            session = self._get_session_row(session_id)
            ensure_can_modify(
                actor,
                session.get("host_id"),
                "Only the host can delete this session",
                override_capability="sessions:manage_any"
            )
            result = self.supabase.table(SESSIONS_TABLE)\
                .delete()\
                .eq("id", session_id)\
                .execute()
            logger.info(f"Session {session_id} deleted by {actor.id}")
            return len(result.data) > 0
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error deleting session {session_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))
