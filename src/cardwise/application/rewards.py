"""
Gamification bookkeeping: experience points, levels, streaks and counters.

Layered on top of the scheduler by the session orchestrator. Every function
takes a UserStats and returns a new one.
"""

from dataclasses import replace
from datetime import tzinfo

from cardwise.application.utils.dates import UTC, days_between
from cardwise.domain.constants import XP_PER_LEVEL_STEP
from cardwise.domain.models import ReviewOutcome, UserStats

# Flat XP reward per grade. Deliberately independent of the scheduler's
# EF_QUALITY table even though both are keyed by outcome.
XP_REWARDS: dict[ReviewOutcome, int] = {
    ReviewOutcome.FORGOT: 1,
    ReviewOutcome.HARD: 2,
    ReviewOutcome.GOOD: 3,
    ReviewOutcome.EASY: 5,
}


def xp_for_outcome(outcome: object) -> int:
    """XP earned for a grade. Unrecognized values earn nothing."""
    if isinstance(outcome, bool) or not isinstance(outcome, int):
        return 0
    try:
        return XP_REWARDS[ReviewOutcome(outcome)]
    except ValueError:
        return 0


def level_for(xp_points: int, current_level: int) -> int:
    """
    Level reached with xp_points, starting from current_level.

    The threshold scales with the current level and levels never go down.
    """
    candidate = xp_points // (current_level * XP_PER_LEVEL_STEP) + 1
    return max(current_level, candidate)


def add_xp(stats: UserStats, points: int) -> UserStats:
    xp_points = stats.xp_points + points
    return replace(stats, xp_points=xp_points, level=level_for(xp_points, stats.level))


def record_review(stats: UserStats, outcome: ReviewOutcome) -> UserStats:
    """Count one reviewed card and award its XP."""
    counted = replace(stats, total_cards_reviewed=stats.total_cards_reviewed + 1)
    return add_xp(counted, xp_for_outcome(outcome))


def update_streak(stats: UserStats, now: int, tz: tzinfo = UTC) -> UserStats:
    """
    Register a study day.

    Studying the day after the last study day extends the streak, studying
    again on the same day leaves it alone, and any gap restarts it at 1.
    """
    if stats.last_study_date is None:
        streak = 1
    else:
        gap = days_between(stats.last_study_date, now, tz)
        if gap == 1:
            streak = stats.streak + 1
        elif gap == 0:
            streak = stats.streak
        else:
            streak = 1
    return replace(stats, streak=streak, last_study_date=now)


def add_study_time(stats: UserStats, duration_ms: int) -> UserStats:
    return replace(stats, total_study_time_ms=stats.total_study_time_ms + max(0, duration_ms))
