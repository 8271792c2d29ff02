"""
Pytest configuration for CI tests
Provides common fixtures and test config
"""
from datetime import datetime, timezone

import pytest

from database.init_db import init_database, seed_defaults
from database.manager import DatabaseManager

# Mid-Spring 2024, inside a seeded season
NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def mock_config():
    """Mock configuration for tests (no real API keys needed)"""
    return {
        'twitch': {
            'client_id': 'test_client_id_mock',
            'client_secret': 'test_client_secret_mock',
            'channels': ['test_channel'],
        },
        'bot': {
            'name': 'test_bot',
            'owner': 'test_owner',
            'web_url': 'https://fishinge.test/',
            'mode': 'fishinge',
        },
        'fishing': {
            'cooldown_hours': 4,
        },
        'supinic': {
            'bot_login': 'supibot',
            'response_timeout': 0.01,
        },
    }


class FakeBus:
    """MessageBus minimal : garde les publications au lieu de les dispatcher"""

    def __init__(self):
        self.subscribers = {}
        self.published = []

    def subscribe(self, topic, handler):
        self.subscribers.setdefault(topic, []).append(handler)

    async def publish(self, topic, data):
        self.published.append((topic, data))

    def texts(self, topic="chat.outbound"):
        return [data.text for published_topic, data in self.published if published_topic == topic]


@pytest.fixture
def fake_bus():
    return FakeBus()


@pytest.fixture
def db_path(tmp_path):
    """Base vide (schéma uniquement)"""
    path = tmp_path / "fishinge_test.db"
    assert init_database(str(path))
    return str(path)


@pytest.fixture
def db(db_path, tmp_path):
    return DatabaseManager(db_path=db_path, key_file=str(tmp_path / ".fishinge_test.key"))


@pytest.fixture
def seeded_db(db):
    """Bundle par défaut, saison courante (horloge réelle) et messages de cooldown"""
    seed_defaults(db.db_path)
    return db
