"""Shared fixtures for the faction selector tests."""

import os

# Keep the module-level app off the filesystem during tests.
os.environ.setdefault("STORE_BACKEND", "memory")

import pytest
from fastapi.testclient import TestClient

from faction_selector.config import Settings
from faction_selector.main import create_app
from faction_selector.models.game import Faction
from faction_selector.services.catalog import FactionCatalog
from faction_selector.services.game_store import InMemoryGameStore


@pytest.fixture
def catalog():
    """Eight factions: enough for two hands of four or two of three."""
    return FactionCatalog(
        Faction(id=f"f{i}", name=f"Faction {chr(ord('A') + i)}", expansion="test")
        for i in range(8)
    )


@pytest.fixture
def settings():
    return Settings(
        store_backend="memory",
        bcrypt_rounds=4,
        jwt_secret="test-secret",
        max_games_per_creator=0,
        log_level="WARNING",
    )


@pytest.fixture
def store():
    return InMemoryGameStore()


@pytest.fixture
def client(settings, store, catalog):
    app = create_app(settings, store=store, catalog=catalog)
    return TestClient(app)
