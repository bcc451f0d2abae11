"""
Repositories over the key-value store port.

Translate between domain records and stored documents; the stores themselves
know nothing about cards or decks.
"""

import asyncio
import logging
from collections import Counter
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, replace
from datetime import tzinfo

from cardwise.application.scheduler import compute_next_state
from cardwise.application.utils.dates import UTC
from cardwise.domain.errors import CardNotFound, DeckNotFound
from cardwise.domain.models import CardRecord, Deck, ReviewOutcome, ReviewSession, UserStats
from cardwise.domain.ports import KeyValueStore
from cardwise.infrastructure.codecs import (
    decode_card,
    decode_deck,
    decode_session,
    decode_stats,
    encode_card,
    encode_deck,
    encode_session,
    encode_stats,
)

logger = logging.getLogger(__name__)

STATS_KEY = "user"


class CardRepository:
    """
    Card persistence.

    `review` and `edit` are read-modify-write paths and are serialized per
    card id, so two concurrent updates of the same card cannot interleave.
    A card's lock is dropped once nobody holds or awaits it.
    """

    def __init__(self, store: KeyValueStore, tz: tzinfo = UTC):
        self._store = store
        self._tz = tz
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: Counter[str] = Counter()

    @asynccontextmanager
    async def _card_lock(self, card_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(card_id, asyncio.Lock())
        self._lock_users[card_id] += 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[card_id] -= 1
            if self._lock_users[card_id] == 0:
                del self._lock_users[card_id]
                del self._locks[card_id]

    async def find(self, card_id: str) -> CardRecord | None:
        raw = await self._store.get(card_id)
        if raw is None:
            return None
        return decode_card(card_id, raw)

    async def get(self, card_id: str) -> CardRecord:
        card = await self.find(card_id)
        if card is None:
            raise CardNotFound(card_id)
        return card

    async def save(self, card: CardRecord) -> None:
        await self._store.set(card.id, encode_card(card))

    async def delete(self, card_id: str) -> None:
        await self._store.delete(card_id)

    async def list_all(self) -> list[CardRecord]:
        cards = []
        for key in await self._store.keys():
            card = await self.find(key)
            if card is not None:
                cards.append(card)
        return cards

    async def list_many(self, card_ids: list[str] | tuple[str, ...]) -> list[CardRecord]:
        """
        Load the given cards in order. Ids without a stored card are skipped.
        """
        cards = []
        for card_id in card_ids:
            card = await self.find(card_id)
            if card is None:
                logger.warning(f"Deck references missing card {card_id}")
                continue
            cards.append(card)
        return cards

    async def review(self, card_id: str, outcome: ReviewOutcome, now: int) -> CardRecord:
        """Schedule a stored card after a review and persist the result."""
        async with self._card_lock(card_id):
            card = await self.get(card_id)
            updated = replace(compute_next_state(card, outcome, now, self._tz), updated_at=now)
            await self.save(updated)
            return updated

    async def edit(
        self,
        card_id: str,
        now: int,
        front: str | None = None,
        back: str | None = None,
    ) -> CardRecord:
        """Replace a card's content, leaving its schedule alone."""
        async with self._card_lock(card_id):
            card = await self.get(card_id)
            updated = replace(
                card,
                front=card.front if front is None else front,
                back=card.back if back is None else back,
                updated_at=now,
            )
            await self.save(updated)
            return updated


class DeckRepository:
    def __init__(self, store: KeyValueStore):
        self._store = store

    async def find(self, deck_id: str) -> Deck | None:
        raw = await self._store.get(deck_id)
        if raw is None:
            return None
        return decode_deck(deck_id, raw)

    async def get(self, deck_id: str) -> Deck:
        deck = await self.find(deck_id)
        if deck is None:
            raise DeckNotFound(deck_id)
        return deck

    async def save(self, deck: Deck) -> None:
        await self._store.set(deck.id, encode_deck(deck))

    async def delete(self, deck_id: str) -> None:
        await self._store.delete(deck_id)

    async def list_all(self) -> list[Deck]:
        decks = []
        for key in await self._store.keys():
            deck = await self.find(key)
            if deck is not None:
                decks.append(deck)
        return decks

    async def add_card(self, deck_id: str, card_id: str, now: int) -> Deck:
        deck = (await self.get(deck_id)).with_card(card_id, now)
        await self.save(deck)
        return deck

    async def remove_card(self, deck_id: str, card_id: str, now: int) -> Deck:
        deck = (await self.get(deck_id)).without_card(card_id, now)
        await self.save(deck)
        return deck


class StatsRepository:
    """User stats plus the log of completed review sessions."""

    def __init__(self, stats_store: KeyValueStore, sessions_store: KeyValueStore):
        self._stats = stats_store
        self._sessions = sessions_store

    async def load(self) -> UserStats:
        raw = await self._stats.get(STATS_KEY)
        if raw is None:
            return UserStats()
        return decode_stats(STATS_KEY, raw)

    async def save(self, stats: UserStats) -> None:
        await self._stats.set(STATS_KEY, encode_stats(stats))

    async def add_session(self, session: ReviewSession) -> None:
        await self._sessions.set(session.id, encode_session(session))

    async def list_sessions(self) -> list[ReviewSession]:
        sessions = []
        for key in await self._sessions.keys():
            raw = await self._sessions.get(key)
            if raw is not None:
                sessions.append(decode_session(key, raw))
        return sessions


@dataclass
class Repositories:
    cards: CardRepository
    decks: DeckRepository
    stats: StatsRepository
