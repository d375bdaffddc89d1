from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from app.database.supabase_client import get_supabase
from app.main import app
from app.modules.auth.schemas import CurrentUser
from app.modules.auth.service import clear_auth_cache
from app.modules.games.schemas import GameCreate
from app.modules.games.service import GameService
from app.modules.reviews.service import ReviewService
from app.modules.sessions.schemas import SessionCreate
from app.modules.sessions.service import SessionService
from app.modules.users.service import UserService
from tests.fakes import FakeSupabase


def make_user(user_id: str, role: str = "user") -> CurrentUser:
    return CurrentUser(id=user_id, email=f"{user_id}@example.com", role=role)


@pytest.fixture
def fake_db():
    return FakeSupabase()


@pytest.fixture
def host():
    return make_user("host")


@pytest.fixture
def alice():
    return make_user("alice")


@pytest.fixture
def bob():
    return make_user("bob")


@pytest.fixture
def moderator():
    return make_user("mod", role="moderator")


@pytest.fixture
def game_service(fake_db):
    return GameService(fake_db)


@pytest.fixture
def review_service(fake_db):
    return ReviewService(fake_db)


@pytest.fixture
def session_service(fake_db):
    return SessionService(fake_db)


@pytest.fixture
def user_service(fake_db):
    return UserService(fake_db)


def game_payload(**overrides) -> GameCreate:
    data = {
        "title": "Stardew Valley",
        "genre": "Simulation",
        "description": "Farming, fishing and friendship in a small valley town.",
        "image_url": "https://images.example.com/stardew.png",
        "platform": ["PC", "Nintendo Switch"],
        "release_year": 2016,
    }
    data.update(overrides)
    return GameCreate(**data)


def session_payload(game_id: str, **overrides) -> SessionCreate:
    data = {
        "game_id": game_id,
        "title": "Friday night co-op",
        "description": "Relaxed farming run, all welcome.",
        "max_players": 3,
        "scheduled_time": datetime.now(timezone.utc) + timedelta(days=1),
    }
    data.update(overrides)
    return SessionCreate(**data)


@pytest.fixture
def game(game_service, host):
    return game_service.create_game(game_payload(), host)


@pytest.fixture
def session(session_service, game, host):
    return session_service.create_session(session_payload(game.id), host)


@pytest.fixture
def client(fake_db):
    clear_auth_cache()
    app.dependency_overrides[get_supabase] = lambda: fake_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    clear_auth_cache()


def auth_headers(fake_db, user_id: str, role: str = None) -> dict:
    """Register an auth user (and optionally a profile with a role); returns bearer headers"""
    token = fake_db.auth.add_user(user_id, f"{user_id}@example.com")
    if role is not None:
        fake_db.seed("user_profiles", {
            "id": user_id,
            "email": f"{user_id}@example.com",
            "display_name": user_id,
            "role": role,
            "created_at": "2025-01-01T00:00:00+00:00",
        })
    return {"Authorization": f"Bearer {token}"}
