import pytest

from cardwise.infrastructure.repositories import (
    CardRepository,
    DeckRepository,
    Repositories,
    StatsRepository,
)
from cardwise.infrastructure.stores.memory import InMemoryStore


@pytest.fixture
def repos():
    """Repositories backed by fresh in-memory stores."""
    return Repositories(
        cards=CardRepository(InMemoryStore()),
        decks=DeckRepository(InMemoryStore()),
        stats=StatsRepository(InMemoryStore(), InMemoryStore()),
    )


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config/data
    monkeypatch.setenv("HOME", str(home))
    for var in (
        "CARDWISE_DATA_DIR",
        "CARDWISE_TIMEZONE",
        "CARDWISE_DAILY_GOAL",
        "CARDWISE_STORAGE",
    ):
        monkeypatch.delenv(var, raising=False)
    return home
