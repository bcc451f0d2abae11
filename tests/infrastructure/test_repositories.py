import asyncio

import pytest

from cardwise.domain.errors import CardNotFound, CorruptRecordError, DeckNotFound
from cardwise.domain.models import CardRecord, Deck, ReviewOutcome, UserStats
from cardwise.infrastructure.repositories import CardRepository
from cardwise.infrastructure.stores.memory import InMemoryStore

DAY = 86_400_000
JAN_1 = 1_704_067_200_000


@pytest.mark.asyncio
async def test_card_save_get_delete(repos):
    card = CardRecord(id="c1", front="uno", back="one")
    await repos.cards.save(card)

    assert await repos.cards.get("c1") == card

    await repos.cards.delete("c1")
    assert await repos.cards.find("c1") is None
    with pytest.raises(CardNotFound):
        await repos.cards.get("c1")


@pytest.mark.asyncio
async def test_list_many_preserves_order_and_skips_missing(repos):
    for cid in ("a", "b", "c"):
        await repos.cards.save(CardRecord(id=cid))

    cards = await repos.cards.list_many(["c", "ghost", "a"])
    assert [c.id for c in cards] == ["c", "a"]


@pytest.mark.asyncio
async def test_review_persists_next_state(repos):
    await repos.cards.save(CardRecord(id="c1"))

    updated = await repos.cards.review("c1", ReviewOutcome.GOOD, JAN_1)

    assert updated.repetitions == 1
    assert updated.due_date == JAN_1 + DAY
    assert updated.updated_at == JAN_1
    assert await repos.cards.get("c1") == updated


@pytest.mark.asyncio
async def test_review_unknown_card(repos):
    with pytest.raises(CardNotFound):
        await repos.cards.review("nope", ReviewOutcome.GOOD, JAN_1)


class SlowStore(InMemoryStore):
    """Yields control between read and write to expose lost updates."""

    async def get(self, key):
        value = await super().get(key)
        await asyncio.sleep(0)
        return value


@pytest.mark.asyncio
async def test_concurrent_reviews_of_same_card_are_serialized():
    cards = CardRepository(SlowStore())
    await cards.save(CardRecord(id="c1"))

    await asyncio.gather(
        cards.review("c1", ReviewOutcome.GOOD, JAN_1),
        cards.review("c1", ReviewOutcome.GOOD, JAN_1 + DAY),
    )

    card = await cards.get("c1")
    assert card.repetitions == 2
    assert card.interval == 6
    assert cards._locks == {}


@pytest.mark.asyncio
async def test_lock_released_after_failed_review(repos):
    with pytest.raises(CardNotFound):
        await repos.cards.review("ghost", ReviewOutcome.GOOD, JAN_1)

    assert repos.cards._locks == {}


@pytest.mark.asyncio
async def test_edit_replaces_content_and_keeps_schedule(repos):
    reviewed = CardRecord(id="c1", front="uno", back="one", repetitions=2, interval=6)
    await repos.cards.save(reviewed)

    updated = await repos.cards.edit("c1", JAN_1, back="1")

    assert updated.front == "uno"
    assert updated.back == "1"
    assert updated.updated_at == JAN_1
    assert updated.interval == 6
    assert await repos.cards.get("c1") == updated


@pytest.mark.asyncio
async def test_edit_unknown_card(repos):
    with pytest.raises(CardNotFound):
        await repos.cards.edit("nope", JAN_1, front="x")


@pytest.mark.asyncio
async def test_corrupt_stored_card_surfaces():
    cards = CardRepository(InMemoryStore({"bad": {"id": "bad", "easinessFactor": 0.2}}))
    with pytest.raises(CorruptRecordError):
        await cards.get("bad")


@pytest.mark.asyncio
async def test_deck_membership(repos):
    await repos.decks.save(Deck(id="d1", name="Colors"))

    await repos.decks.add_card("d1", "red", JAN_1)
    await repos.decks.add_card("d1", "blue", JAN_1)
    await repos.decks.add_card("d1", "red", JAN_1)
    deck = await repos.decks.remove_card("d1", "blue", JAN_1 + 1)

    assert deck.card_ids == ("red",)
    assert (await repos.decks.get("d1")).card_ids == ("red",)
    assert [d.id for d in await repos.decks.list_all()] == ["d1"]


@pytest.mark.asyncio
async def test_unknown_deck(repos):
    with pytest.raises(DeckNotFound):
        await repos.decks.add_card("nope", "c", JAN_1)


@pytest.mark.asyncio
async def test_stats_default_and_save(repos):
    assert await repos.stats.load() == UserStats()

    await repos.stats.save(UserStats(streak=4, xp_points=120, level=2))
    assert (await repos.stats.load()).streak == 4
