"""
Study session orchestrator.

Builds a working set for one deck, feeds review outcomes through the
scheduler one card at a time, and keeps user stats in step:
1. Select the due cards (or every card, for a cram run)
2. Shuffle and cap at the daily goal
3. For each answer: schedule, persist, award XP
4. On finish: log the session, extend the streak, add study time
"""

import logging
import random
from dataclasses import dataclass
from datetime import tzinfo

from cardwise.application.due import select_due
from cardwise.application.id_service import generate_session_id
from cardwise.application.rewards import (
    add_study_time,
    record_review,
    update_streak,
    xp_for_outcome,
)
from cardwise.application.utils.dates import UTC
from cardwise.domain.errors import SessionError
from cardwise.domain.models import (
    CardRecord,
    ReviewedCard,
    ReviewOutcome,
    ReviewSession,
    UserStats,
    parse_outcome,
)
from cardwise.infrastructure.repositories import Repositories

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnswerResult:
    """Outcome of answering one card."""

    card: CardRecord  # Rescheduled card as persisted
    xp_earned: int
    stats: UserStats
    leveled_up: bool


class StudySession:
    def __init__(
        self,
        repos: Repositories,
        deck_id: str,
        rng: random.Random | None = None,
        tz: tzinfo = UTC,
        daily_goal: int = 0,
    ):
        """
        Args:
            repos: Storage collaborators.
            deck_id: Deck to study.
            rng: Source of shuffle randomness; inject a seeded one for tests.
            tz: Timezone for due checks and streak days.
            daily_goal: Maximum cards per session. 0 means no cap.
        """
        self._repos = repos
        self.deck_id = deck_id
        self._rng = rng or random.Random()
        self._tz = tz
        self._daily_goal = daily_goal

        self._queue: list[CardRecord] = []
        self._deck_size = 0
        self._position = 0
        self._reviewed: list[ReviewedCard] = []
        self._started_at: int | None = None
        self._closed = False

    @property
    def current(self) -> CardRecord | None:
        if self._position < len(self._queue):
            return self._queue[self._position]
        return None

    @property
    def remaining(self) -> int:
        return len(self._queue) - self._position

    @property
    def finished(self) -> bool:
        return self._started_at is not None and self.current is None

    @property
    def reviewed(self) -> list[ReviewedCard]:
        return list(self._reviewed)

    @property
    def deck_size(self) -> int:
        """Cards in the deck when the session started, due or not."""
        return self._deck_size

    async def start(self, now: int, include_all: bool = False) -> int:
        """
        Load and shuffle the working set.

        Args:
            now: Session start, epoch ms.
            include_all: Study every card in the deck, due or not.

        Returns:
            Number of cards queued.

        Raises:
            DeckNotFound: if the deck does not exist.
        """
        if self._started_at is not None:
            raise SessionError("Session already started")

        deck = await self._repos.decks.get(self.deck_id)
        cards = await self._repos.cards.list_many(deck.card_ids)

        pool = cards if include_all else select_due(cards, now, self._tz)
        pool = list(pool)
        self._rng.shuffle(pool)

        if self._daily_goal > 0:
            pool = pool[: self._daily_goal]

        self._queue = pool
        self._deck_size = len(cards)
        self._started_at = now
        logger.info(
            f"Started session on deck {deck.name!r}: {len(pool)} of {len(cards)} cards queued"
        )
        return len(pool)

    async def answer(self, outcome: ReviewOutcome | int | str, now: int) -> AnswerResult:
        """
        Grade the current card and advance.

        Raises:
            InvalidOutcome: for an unknown grade; the session does not advance.
            SessionError: if there is no current card.
        """
        outcome = parse_outcome(outcome)
        card = self.current
        if card is None:
            raise SessionError("No card to answer")

        updated = await self._repos.cards.review(card.id, outcome, now)

        before = await self._repos.stats.load()
        stats = record_review(before, outcome)
        await self._repos.stats.save(stats)

        self._reviewed.append(ReviewedCard(card_id=card.id, outcome=outcome))
        self._position += 1

        logger.debug(
            f"Reviewed {card.id} as {outcome.name}: next in {updated.interval} day(s)"
        )
        return AnswerResult(
            card=updated,
            xp_earned=xp_for_outcome(outcome),
            stats=stats,
            leveled_up=stats.level > before.level,
        )

    async def finish(self, now: int) -> ReviewSession:
        """
        Close the session and persist its record.

        The streak only moves when at least one card was reviewed.
        """
        if self._started_at is None:
            raise SessionError("Session not started")
        if self._closed:
            raise SessionError("Session already finished")

        session = ReviewSession(
            id=generate_session_id(),
            date=now,
            deck_id=self.deck_id,
            duration_ms=max(0, now - self._started_at),
            cards_reviewed=tuple(self._reviewed),
        )
        await self._repos.stats.add_session(session)

        stats = await self._repos.stats.load()
        if self._reviewed:
            stats = update_streak(stats, now, self._tz)
        stats = add_study_time(stats, session.duration_ms)
        await self._repos.stats.save(stats)

        self._closed = True
        logger.info(
            f"Finished session {session.id}: {len(self._reviewed)} reviewed, streak {stats.streak}"
        )
        return session
