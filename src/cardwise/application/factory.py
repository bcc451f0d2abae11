"""
Record and repository factories.

Centralizes default construction of new cards and decks, and the selection of
the storage backend from configuration.
"""

from datetime import tzinfo

from cardwise.application.config import AppConfig
from cardwise.application.id_service import generate_card_id, generate_deck_id
from cardwise.application.utils.dates import UTC, start_of_day
from cardwise.domain.constants import (
    CARDS_NAMESPACE,
    DECKS_NAMESPACE,
    DEFAULT_EASINESS_FACTOR,
    SESSIONS_NAMESPACE,
    STATS_NAMESPACE,
)
from cardwise.domain.models import CardRecord, Deck
from cardwise.domain.ports import KeyValueStore
from cardwise.infrastructure.repositories import (
    CardRepository,
    DeckRepository,
    Repositories,
    StatsRepository,
)
from cardwise.infrastructure.stores.json_file import JsonFileStore
from cardwise.infrastructure.stores.memory import InMemoryStore


def new_card(
    deck_id: str | None,
    front: str,
    back: str,
    now: int,
    card_id: str | None = None,
    tz: tzinfo = UTC,
) -> CardRecord:
    """
    A freshly added card in its default scheduling state.

    The due date is today's midnight so the card is immediately eligible.
    """
    return CardRecord(
        id=card_id or generate_card_id(),
        easiness_factor=DEFAULT_EASINESS_FACTOR,
        repetitions=0,
        interval=0,
        due_date=start_of_day(now, tz),
        last_reviewed=None,
        deck_id=deck_id,
        front=front,
        back=back,
        created_at=now,
        updated_at=now,
    )


def new_deck(
    name: str,
    now: int,
    description: str = "",
    tags: list[str] | tuple[str, ...] = (),
    deck_id: str | None = None,
) -> Deck:
    return Deck(
        id=deck_id or generate_deck_id(),
        name=name,
        description=description,
        tags=tuple(tags),
        card_ids=(),
        created_at=now,
        updated_at=now,
    )


def _make_store(config: AppConfig, namespace: str) -> KeyValueStore:
    if config.storage == "memory":
        return InMemoryStore()
    return JsonFileStore(config.data_dir / f"{namespace}.json")


def get_repositories(config: AppConfig) -> Repositories:
    """
    Returns repositories backed by the storage selected in config.
    """
    return Repositories(
        cards=CardRepository(_make_store(config, CARDS_NAMESPACE), tz=config.tz),
        decks=DeckRepository(_make_store(config, DECKS_NAMESPACE)),
        stats=StatsRepository(
            _make_store(config, STATS_NAMESPACE),
            _make_store(config, SESSIONS_NAMESPACE),
        ),
    )
