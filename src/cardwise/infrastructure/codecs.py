"""
Persisted representation of domain records.

Documents use camelCase keys and integer epoch-millisecond timestamps.
Optional timestamps are omitted rather than written as null or zero.
Every document is validated on the way in; anything malformed surfaces as
CorruptRecordError instead of leaking into the scheduler.
"""

from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from cardwise.domain.constants import (
    MAX_INTERVAL,
    MAX_TIMESTAMP_MS,
    MIN_EASINESS_FACTOR,
    MS_PER_DAY,
)
from cardwise.domain.errors import CorruptRecordError
from cardwise.domain.models import (
    CardRecord,
    Deck,
    ReviewedCard,
    ReviewOutcome,
    ReviewSession,
    UserStats,
)

Timestamp = Annotated[int, Field(ge=0, le=MAX_TIMESTAMP_MS)]
# Due dates may run MAX_INTERVAL days past the latest accepted timestamp
DueTimestamp = Annotated[int, Field(ge=0, le=MAX_TIMESTAMP_MS + (MAX_INTERVAL + 1) * MS_PER_DAY)]


class _Document(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def dump(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class CardDocument(_Document):
    id: str
    easiness_factor: float = Field(ge=MIN_EASINESS_FACTOR, allow_inf_nan=False)
    repetitions: int = Field(ge=0)
    interval: int = Field(ge=0)
    due_date: DueTimestamp | None = None
    last_reviewed: Timestamp | None = None
    deck_id: str | None = None
    front: str = ""
    back: str = ""
    created_at: Timestamp | None = None
    updated_at: Timestamp | None = None


class DeckDocument(_Document):
    id: str
    name: str
    description: str = ""
    tags: list[str] = Field(default_factory=list)
    card_ids: list[str] = Field(default_factory=list)
    created_at: Timestamp | None = None
    updated_at: Timestamp | None = None


class StatsDocument(_Document):
    streak: int = Field(default=0, ge=0)
    last_study_date: Timestamp | None = None
    total_cards_reviewed: int = Field(default=0, ge=0)
    total_study_time: int = Field(default=0, ge=0)
    xp_points: int = Field(default=0, ge=0)
    level: int = Field(default=1, ge=1)


class ReviewedCardDocument(_Document):
    card_id: str
    result: ReviewOutcome


class SessionDocument(_Document):
    id: str
    date: Timestamp
    deck_id: str
    duration: int = Field(ge=0)
    cards_reviewed: list[ReviewedCardDocument] = Field(default_factory=list)


def _validate(model: type[_Document], key: str, raw: dict[str, Any]) -> Any:
    try:
        return model.model_validate(raw)
    except ValidationError as e:
        raise CorruptRecordError(key, f"{e.error_count()} validation error(s)") from e


# ---------- Cards ----------


def encode_card(card: CardRecord) -> dict[str, Any]:
    return CardDocument(**card.__dict__).dump()


def decode_card(key: str, raw: dict[str, Any]) -> CardRecord:
    doc = _validate(CardDocument, key, raw)
    return CardRecord(**doc.model_dump())


# ---------- Decks ----------


def encode_deck(deck: Deck) -> dict[str, Any]:
    return DeckDocument(
        id=deck.id,
        name=deck.name,
        description=deck.description,
        tags=list(deck.tags),
        card_ids=list(deck.card_ids),
        created_at=deck.created_at,
        updated_at=deck.updated_at,
    ).dump()


def decode_deck(key: str, raw: dict[str, Any]) -> Deck:
    doc = _validate(DeckDocument, key, raw)
    return Deck(
        id=doc.id,
        name=doc.name,
        description=doc.description,
        tags=tuple(doc.tags),
        card_ids=tuple(doc.card_ids),
        created_at=doc.created_at,
        updated_at=doc.updated_at,
    )


# ---------- Stats ----------


def encode_stats(stats: UserStats) -> dict[str, Any]:
    return StatsDocument(
        streak=stats.streak,
        last_study_date=stats.last_study_date,
        total_cards_reviewed=stats.total_cards_reviewed,
        total_study_time=stats.total_study_time_ms,
        xp_points=stats.xp_points,
        level=stats.level,
    ).dump()


def decode_stats(key: str, raw: dict[str, Any]) -> UserStats:
    doc = _validate(StatsDocument, key, raw)
    return UserStats(
        streak=doc.streak,
        last_study_date=doc.last_study_date,
        total_cards_reviewed=doc.total_cards_reviewed,
        total_study_time_ms=doc.total_study_time,
        xp_points=doc.xp_points,
        level=doc.level,
    )


# ---------- Sessions ----------


def encode_session(session: ReviewSession) -> dict[str, Any]:
    return SessionDocument(
        id=session.id,
        date=session.date,
        deck_id=session.deck_id,
        duration=session.duration_ms,
        cards_reviewed=[
            ReviewedCardDocument(card_id=rc.card_id, result=rc.outcome)
            for rc in session.cards_reviewed
        ],
    ).dump()


def decode_session(key: str, raw: dict[str, Any]) -> ReviewSession:
    doc = _validate(SessionDocument, key, raw)
    return ReviewSession(
        id=doc.id,
        date=doc.date,
        deck_id=doc.deck_id,
        duration_ms=doc.duration,
        cards_reviewed=tuple(
            ReviewedCard(card_id=rc.card_id, outcome=rc.result) for rc in doc.cards_reviewed
        ),
    )
