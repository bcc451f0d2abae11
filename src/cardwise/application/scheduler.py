"""
SM-2 scheduler.

Computes a card's next scheduling state from its current state and a graded
review outcome. This is a pure computation module with no I/O and no clock:
`now` is always passed in.

Lapses (FORGOT, HARD) reset the repetition streak and schedule the card for
tomorrow without touching the easiness factor. Successes (GOOD, EASY) adjust
the easiness factor and grow the interval 1 -> 6 -> interval * EF.
"""

import math
from dataclasses import replace
from datetime import tzinfo

from cardwise.application.utils.dates import UTC, add_days
from cardwise.domain.constants import (
    FIRST_INTERVAL,
    LAPSE_INTERVAL,
    MAX_INTERVAL,
    MIN_EASINESS_FACTOR,
    PERFECT_QUALITY,
    SECOND_INTERVAL,
)
from cardwise.domain.models import CardRecord, ReviewOutcome, parse_outcome

# Quality value fed into the easiness-factor formula. Not the XP scale;
# see cardwise.application.rewards.XP_REWARDS for that.
EF_QUALITY: dict[ReviewOutcome, int] = {
    ReviewOutcome.FORGOT: 0,
    ReviewOutcome.HARD: 1,
    ReviewOutcome.GOOD: 2,
    ReviewOutcome.EASY: 3,
}


def next_easiness_factor(easiness_factor: float, outcome: ReviewOutcome) -> float:
    """
    Classic SM-2 easiness update, clamped to the 1.3 floor.

    EF' = EF + (0.1 - (4 - q) * (0.08 + (4 - q) * 0.02))
    """
    penalty = PERFECT_QUALITY - EF_QUALITY[outcome]
    updated = easiness_factor + (0.1 - penalty * (0.08 + penalty * 0.02))
    return max(MIN_EASINESS_FACTOR, updated)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def next_interval(repetitions: int, interval: int, easiness_factor: float) -> int:
    """
    Interval in days for a successful review, capped at MAX_INTERVAL.

    Args:
        repetitions: Repetition count *before* this review.
        interval: Interval assigned by the previous review.
        easiness_factor: The already-updated easiness factor.
    """
    if repetitions <= 0:
        return FIRST_INTERVAL
    if repetitions == 1:
        return SECOND_INTERVAL
    grown = interval * easiness_factor
    if grown >= MAX_INTERVAL:
        return MAX_INTERVAL
    return max(FIRST_INTERVAL, _round_half_up(grown))


def compute_next_state(
    card: CardRecord,
    outcome: ReviewOutcome | int | str,
    now: int,
    tz: tzinfo = UTC,
) -> CardRecord:
    """
    Schedule a card after a review.

    Args:
        card: The card's current state. Not modified.
        outcome: The reviewer's grade.
        now: Review time, epoch ms.
        tz: Timezone whose midnights due dates snap to.

    Returns:
        A new CardRecord with easiness_factor, repetitions, interval,
        due_date and last_reviewed replaced; every other field copied.

    Raises:
        InvalidOutcome: if outcome is not one of the four grades.
    """
    outcome = parse_outcome(outcome)

    if outcome.is_lapse:
        easiness_factor = card.easiness_factor
        repetitions = 0
        interval = LAPSE_INTERVAL
    else:
        easiness_factor = next_easiness_factor(card.easiness_factor, outcome)
        interval = next_interval(card.repetitions, card.interval, easiness_factor)
        repetitions = card.repetitions + 1

    return replace(
        card,
        easiness_factor=easiness_factor,
        repetitions=repetitions,
        interval=interval,
        due_date=add_days(now, interval, tz),
        last_reviewed=now,
    )
