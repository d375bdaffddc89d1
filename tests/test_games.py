"""
Tests for the game catalog: validation, author-only edits, search and
cascading deletes.
"""
from datetime import datetime

import pytest
from fastapi import HTTPException

from app.modules.games.schemas import GameUpdate, MIN_RELEASE_YEAR, max_release_year
from app.modules.reviews.schemas import ReviewCreate
from tests.conftest import game_payload, session_payload


class TestGameValidation:

    def test_valid_payload(self):
        game = game_payload()
        assert game.platform == ["PC", "Nintendo Switch"]

    @pytest.mark.parametrize("overrides", [
        {"title": "ab"},
        {"description": "Too short"},
        {"genre": "Cooking"},
        {"image_url": "not-a-url"},
        {"image_url": "ftp://images.example.com/a.png"},
        {"platform": []},
        {"platform": ["Dreamcast"]},
        {"release_year": MIN_RELEASE_YEAR - 1},
        {"release_year": max_release_year() + 1},
    ])
    def test_invalid_payloads(self, overrides):
        with pytest.raises(ValueError):
            game_payload(**overrides)

    def test_next_year_is_allowed(self):
        game = game_payload(release_year=datetime.now().year + 1)
        assert game.release_year == datetime.now().year + 1

    def test_duplicate_platforms_are_collapsed(self):
        game = game_payload(platform=["PC", "VR", "PC"])
        assert game.platform == ["PC", "VR"]

    def test_update_validates_present_fields_only(self):
        assert GameUpdate(title="New title").model_dump(exclude_unset=True) == {"title": "New title"}
        with pytest.raises(ValueError):
            GameUpdate(genre="Cooking")


class TestGameCrud:

    def test_create_sets_author_and_counters(self, game, host, fake_db):
        assert game.author_id == host.id
        assert game.author_email == host.email
        assert game.reviews_count == 0
        assert game.average_rating == 0.0
        row = fake_db.find("games", game.id)
        assert row["rating_sum"] == 0
        assert row["version"] == 0

    def test_get_missing_game(self, game_service):
        with pytest.raises(HTTPException) as exc:
            game_service.get_game_by_id("missing")
        assert exc.value.status_code == 404

    def test_author_can_update(self, game_service, game, host):
        updated = game_service.update_game(game.id, GameUpdate(title="Stardew Valley 1.6"), host)
        assert updated.title == "Stardew Valley 1.6"
        assert updated.genre == game.genre

    def test_non_author_cannot_update(self, game_service, game, alice):
        with pytest.raises(HTTPException) as exc:
            game_service.update_game(game.id, GameUpdate(title="Not yours"), alice)
        assert exc.value.status_code == 403

    def test_moderator_cannot_update(self, game_service, game, moderator):
        with pytest.raises(HTTPException) as exc:
            game_service.update_game(game.id, GameUpdate(title="Not yours"), moderator)
        assert exc.value.status_code == 403

    def test_list_newest_first_with_paging(self, game_service, fake_db, host):
        for title, created_at in (("Old", "2024-01-01T00:00:00+00:00"), ("New", "2025-01-01T00:00:00+00:00")):
            game_service.create_game(game_payload(title=title + " game"), host)
            fake_db.rows("games")[-1]["created_at"] = created_at

        assert [g.title for g in game_service.list_games()] == ["New game", "Old game"]
        assert [g.title for g in game_service.list_games(limit=1, offset=1)] == ["Old game"]

    def test_list_by_author(self, game_service, game, host, alice):
        assert [g.id for g in game_service.list_games_by_author(host.id)] == [game.id]
        assert game_service.list_games_by_author(alice.id) == []


class TestSearch:

    @pytest.fixture
    def catalog(self, game_service, host):
        game_service.create_game(game_payload(title="Elden Ring", genre="RPG"), host)
        game_service.create_game(game_payload(title="Forza Horizon", genre="Racing"), host)
        game_service.create_game(game_payload(title="Rocket League", genre="Sports"), host)

    def test_matches_title_case_insensitively(self, game_service, catalog):
        assert [g.title for g in game_service.search_games("elden")] == ["Elden Ring"]

    def test_matches_genre(self, game_service, catalog):
        assert [g.title for g in game_service.search_games("racing")] == ["Forza Horizon"]

    def test_empty_term_returns_all(self, game_service, catalog):
        assert len(game_service.search_games("  ")) == 3

    def test_genre_filter(self, game_service, catalog):
        assert [g.title for g in game_service.search_games("", genre="Sports")] == ["Rocket League"]
        assert game_service.search_games("elden", genre="Sports") == []

    def test_list_genres(self, game_service, catalog):
        assert game_service.list_genres() == ["RPG", "Racing", "Sports"]


class TestDeleteGame:

    def test_delete_removes_reviews_and_sessions(
        self, game_service, review_service, session_service, game, host, alice, fake_db
    ):
        review_service.create_review(game.id, ReviewCreate(rating=5, comment="A cozy classic."), alice)
        session_service.create_session(session_payload(game.id), host)

        assert game_service.delete_game(game.id, host) is True
        assert fake_db.rows("games") == []
        assert fake_db.rows("reviews") == []
        assert fake_db.rows("sessions") == []

    def test_delete_keeps_other_games_data(self, game_service, session_service, game, host, fake_db):
        other = game_service.create_game(game_payload(title="Terraria"), host)
        kept = session_service.create_session(session_payload(other.id), host)

        game_service.delete_game(game.id, host)
        assert [s["id"] for s in fake_db.rows("sessions")] == [kept.id]

    def test_non_author_cannot_delete(self, game_service, game, alice, fake_db):
        with pytest.raises(HTTPException) as exc:
            game_service.delete_game(game.id, alice)
        assert exc.value.status_code == 403
        assert fake_db.find("games", game.id) is not None

    def test_moderator_can_delete(self, game_service, game, moderator):
        assert game_service.delete_game(game.id, moderator) is True

    def test_backend_failure_is_500(self, game_service, game, host, fake_db):
        fake_db.failing_tables.add("reviews")
        with pytest.raises(HTTPException) as exc:
            game_service.delete_game(game.id, host)
        assert exc.value.status_code == 500
