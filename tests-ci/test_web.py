"""
Tests de l'API du dashboard (web/backend/)
La base de test remplace le singleton via dependency_overrides
"""
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from modules.fishing.models import Catch
from web.backend.api.router import UserName
from web.backend.dependencies import get_database
from web.backend.main import app


@pytest.fixture
def client(seeded_db):
    app.dependency_overrides[get_database] = lambda: seeded_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def add_catch(db, user, fish_name, weight, value, when):
    season = db.get_active_season()
    fish = next(f for f in db.list_active_fishes(season["id"]) if f.name == fish_name)
    db.set_last_action(user, when)
    db.record_catch(user, Catch(fish.id, fish.name, weight, value, when), season["id"])


@pytest.fixture
def fished_db(seeded_db):
    start = datetime.now(timezone.utc) - timedelta(hours=2)
    add_catch(seeded_db, "alice", "🐟", 1.5, 120.0, start)
    add_catch(seeded_db, "alice", "👢", None, -50.0, start + timedelta(minutes=30))
    add_catch(seeded_db, "bob", "🦈", 700.0, 4200.0, start + timedelta(minutes=10))
    add_catch(seeded_db, "fishbot", "🐋", 90000.0, 15000.0, start + timedelta(minutes=20))
    seeded_db.designate_bot("fishbot")
    return seeded_db


@pytest.mark.unit
class TestUserName:

    @pytest.mark.parametrize("raw, expected", [
        ("alice", "alice"),
        ("@Alice", "alice"),
        ("  Bob_42 ", "bob_42"),
    ])
    def test_normalized(self, raw, expected):
        assert UserName(name=raw).name == expected

    @pytest.mark.parametrize("raw", ["", "bad!name", "a" * 26, "ünïcode"])
    def test_rejected(self, raw):
        with pytest.raises(ValueError):
            UserName(name=raw)


@pytest.mark.integration
class TestHealth:

    def test_health_and_headers(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}
        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert "default-src 'none'" in response.headers["Content-Security-Policy"]


@pytest.mark.integration
class TestApi:

    def test_fishes(self, client):
        data = client.get("/api/fishes").json()

        assert data["count"] == 12
        chances = [fish["chance"] for fish in data["fishes"]]
        assert chances == sorted(chances, reverse=True)
        assert sum(chances) == pytest.approx(1.0)
        assert data["fishes"][0]["html_name"] == "Fish"

    def test_empty_leaderboard(self, client):
        data = client.get("/api/leaderboard").json()
        assert data == {"include_bots": False, "entries": [], "count": 0}

    def test_stats_without_catches(self, client):
        assert client.get("/api/stats").status_code == 404

    def test_invalid_user_name(self, client):
        assert client.get("/api/user/bad!name").status_code == 400

    def test_unknown_user(self, client):
        assert client.get("/api/user/nobody").status_code == 404

    def test_leaderboard(self, client, fished_db):
        data = client.get("/api/leaderboard").json()

        assert [entry["name"] for entry in data["entries"]] == ["bob", "alice"]
        assert data["entries"][1]["score"] == pytest.approx(70.0)

        with_bots = client.get("/api/leaderboard", params={"include_bots": True}).json()
        assert [entry["name"] for entry in with_bots["entries"]] == ["fishbot", "bob", "alice"]
        assert with_bots["entries"][0]["is_bot"] is True

    def test_user_stats(self, client, fished_db):
        data = client.get("/api/user/@Alice").json()

        assert data["user_name"] == "alice"
        assert data["total_catches"] == 2
        assert data["total_score"] == pytest.approx(70.0)
        assert data["avg_catch_value"] == pytest.approx(35.0)
        assert data["top_catch"] == {"name": "🐟", "weight": 1.5, "value": 120.0}
        assert [point["value"] for point in data["catches"]] == [120.0, 70.0]

    def test_global_stats(self, client, fished_db):
        data = client.get("/api/stats").json()

        assert data["total_catches"] == 4
        assert data["total_trash"] == 1
        assert data["top_catch"]["user_name"] == "fishbot"
        assert len(data["fishes"]) == 12
        assert data["fishes"][0]["catches"] == 1
        assert {user["name"] for user in data["users"]} == {"alice", "bob", "fishbot"}
