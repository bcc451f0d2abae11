"""
Domain models for cards, decks and study statistics.

These are pure data structures with no I/O or external dependencies.
All timestamps are integer epoch milliseconds.
"""

from dataclasses import dataclass, field, replace
from enum import IntEnum

from .constants import DEFAULT_EASINESS_FACTOR, STARTING_LEVEL
from .errors import InvalidOutcome


class ReviewOutcome(IntEnum):
    """
    Recall grade supplied by the reviewer, ordered from worst to best.

    GOOD is the threshold between a lapse and a successful review.
    """

    FORGOT = 0  # Complete blackout
    HARD = 1  # Recalled with significant difficulty
    GOOD = 2  # Recalled with some effort
    EASY = 3  # Recalled effortlessly

    @property
    def is_lapse(self) -> bool:
        return self < ReviewOutcome.GOOD


def parse_outcome(value: "ReviewOutcome | int | str") -> ReviewOutcome:
    """
    Coerce a member, its ordinal, or its (case-insensitive) name into a ReviewOutcome.

    Raises:
        InvalidOutcome: for anything outside the four defined grades.
    """
    if isinstance(value, ReviewOutcome):
        return value
    if isinstance(value, bool):
        raise InvalidOutcome(value)
    if isinstance(value, int):
        try:
            return ReviewOutcome(value)
        except ValueError:
            raise InvalidOutcome(value) from None
    if isinstance(value, str):
        name = value.strip().upper()
        if name in ReviewOutcome.__members__:
            return ReviewOutcome[name]
    raise InvalidOutcome(value)


@dataclass(frozen=True)
class CardRecord:
    """
    A flashcard and its spaced-repetition state.

    Attributes:
        id: Opaque identifier, stable for the card's lifetime.
        easiness_factor: Interval growth multiplier, never below 1.3.
        repetitions: Consecutive successful reviews since the last lapse.
        interval: Days until the next review, as of the last scheduling.
        due_date: Epoch ms after which the card is due. None means never scheduled.
        last_reviewed: Epoch ms of the most recent review. None for a new card.
    """

    id: str
    easiness_factor: float = DEFAULT_EASINESS_FACTOR
    repetitions: int = 0
    interval: int = 0
    due_date: int | None = None
    last_reviewed: int | None = None

    # Content and bookkeeping, carried through scheduling untouched
    deck_id: str | None = None
    front: str = ""
    back: str = ""
    created_at: int | None = None
    updated_at: int | None = None

    @property
    def is_new(self) -> bool:
        return self.last_reviewed is None


@dataclass(frozen=True)
class Deck:
    """A named, ordered collection of card ids."""

    id: str
    name: str
    description: str = ""
    tags: tuple[str, ...] = ()
    card_ids: tuple[str, ...] = ()
    created_at: int | None = None
    updated_at: int | None = None

    def with_card(self, card_id: str, now: int) -> "Deck":
        if card_id in self.card_ids:
            return self
        return replace(self, card_ids=(*self.card_ids, card_id), updated_at=now)

    def without_card(self, card_id: str, now: int) -> "Deck":
        if card_id not in self.card_ids:
            return self
        remaining = tuple(cid for cid in self.card_ids if cid != card_id)
        return replace(self, card_ids=remaining, updated_at=now)


@dataclass(frozen=True)
class UserStats:
    """Motivation counters maintained across study sessions."""

    streak: int = 0
    last_study_date: int | None = None
    total_cards_reviewed: int = 0
    total_study_time_ms: int = 0
    xp_points: int = 0
    level: int = STARTING_LEVEL


@dataclass(frozen=True)
class ReviewedCard:
    card_id: str
    outcome: ReviewOutcome


@dataclass(frozen=True)
class ReviewSession:
    """Record of one completed study session."""

    id: str
    date: int
    deck_id: str
    duration_ms: int
    cards_reviewed: tuple[ReviewedCard, ...] = field(default_factory=tuple)
