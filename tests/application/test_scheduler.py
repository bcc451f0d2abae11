from datetime import timedelta, timezone

import pytest

from cardwise.application.scheduler import (
    EF_QUALITY,
    compute_next_state,
    next_easiness_factor,
    next_interval,
)
from cardwise.domain.constants import MAX_INTERVAL
from cardwise.domain.errors import InvalidOutcome
from cardwise.domain.models import CardRecord, ReviewOutcome

DAY = 86_400_000
HOUR = 3_600_000
JAN_1 = 1_704_067_200_000  # 2024-01-01T00:00:00Z
JAN_2 = JAN_1 + DAY


def make_card(**overrides) -> CardRecord:
    fields = {"id": "c1", "easiness_factor": 2.5, "repetitions": 0, "interval": 0}
    fields.update(overrides)
    return CardRecord(**fields)


# --- Worked scenarios ---


def test_new_card_good_first_review():
    card = make_card(due_date=None)

    result = compute_next_state(card, ReviewOutcome.GOOD, JAN_1)

    assert result.repetitions == 1
    assert result.interval == 1
    assert result.due_date == JAN_2
    assert result.easiness_factor == pytest.approx(2.36)
    assert result.last_reviewed == JAN_1


def test_second_review_easy_jumps_to_six_days():
    card = make_card(repetitions=1, interval=1, easiness_factor=2.36)

    result = compute_next_state(card, ReviewOutcome.EASY, JAN_1)

    assert result.easiness_factor == pytest.approx(2.36)
    assert result.interval == 6
    assert result.repetitions == 2
    assert result.due_date == JAN_1 + 6 * DAY


def test_forgot_resets_streak_and_keeps_easiness():
    card = make_card(repetitions=2, interval=6, easiness_factor=2.36)

    result = compute_next_state(card, ReviewOutcome.FORGOT, JAN_1)

    assert result.repetitions == 0
    assert result.interval == 1
    assert result.easiness_factor == 2.36
    assert result.due_date == JAN_2


def test_third_success_multiplies_by_updated_easiness():
    card = make_card(repetitions=2, interval=6, easiness_factor=2.36)

    result = compute_next_state(card, ReviewOutcome.GOOD, JAN_1)

    # EF 2.36 -> 2.22; 6 * 2.22 = 13.32
    assert result.easiness_factor == pytest.approx(2.22)
    assert result.interval == 13
    assert result.repetitions == 3


# --- Branch details ---


def test_hard_is_a_lapse():
    card = make_card(repetitions=5, interval=40, easiness_factor=2.7)

    result = compute_next_state(card, ReviewOutcome.HARD, JAN_1)

    assert result.repetitions == 0
    assert result.interval == 1
    assert result.easiness_factor == 2.7


def test_easiness_floor_holds_on_good():
    card = make_card(repetitions=3, interval=10, easiness_factor=1.3)

    result = compute_next_state(card, ReviewOutcome.GOOD, JAN_1)

    assert result.easiness_factor == 1.3
    assert result.interval == 13


def test_interval_rounds_halves_up():
    card = make_card(repetitions=2, interval=1, easiness_factor=2.5)

    result = compute_next_state(card, ReviewOutcome.EASY, JAN_1)

    # 1 * 2.5 = 2.5 rounds to 3, not to the even 2
    assert result.interval == 3


def test_due_date_ignores_time_of_day():
    late_evening = JAN_1 + 23 * HOUR + 59 * 60_000

    result = compute_next_state(make_card(), ReviewOutcome.GOOD, late_evening)

    assert result.due_date == JAN_2
    assert result.last_reviewed == late_evening


def test_due_date_uses_local_midnight():
    eastern = timezone(timedelta(hours=-5))
    # 2024-01-02T03:30Z is 2024-01-01 22:30 at UTC-5
    now = JAN_2 + 3 * HOUR + 30 * 60_000

    result = compute_next_state(make_card(), ReviewOutcome.GOOD, now, tz=eastern)

    # Midnight of 2024-01-02 at UTC-5
    assert result.due_date == JAN_2 + 5 * HOUR


def test_other_fields_are_copied():
    card = make_card(
        deck_id="d1", front="hola", back="hello", created_at=JAN_1 - DAY, updated_at=JAN_1 - DAY
    )

    result = compute_next_state(card, ReviewOutcome.EASY, JAN_1)

    assert result.id == "c1"
    assert result.deck_id == "d1"
    assert (result.front, result.back) == ("hola", "hello")
    assert result.created_at == JAN_1 - DAY
    assert result.updated_at == JAN_1 - DAY


def test_input_card_is_not_modified():
    card = make_card(repetitions=1, interval=1)

    result = compute_next_state(card, ReviewOutcome.GOOD, JAN_1)

    assert result is not card
    assert card.repetitions == 1
    assert card.interval == 1
    assert card.due_date is None
    assert card.last_reviewed is None


def test_same_inputs_same_output():
    card = make_card(repetitions=4, interval=20, easiness_factor=2.1)
    assert compute_next_state(card, ReviewOutcome.GOOD, JAN_1) == compute_next_state(
        card, ReviewOutcome.GOOD, JAN_1
    )


# --- Invariants across states ---


CARD_STATES = [
    make_card(),
    make_card(repetitions=1, interval=1, easiness_factor=1.3),
    make_card(repetitions=2, interval=6, easiness_factor=1.31),
    make_card(repetitions=7, interval=180, easiness_factor=2.9),
    make_card(repetitions=3, interval=0, easiness_factor=1.3),
    make_card(repetitions=5, interval=2_000_000, easiness_factor=2.5),
]


@pytest.mark.parametrize("card", CARD_STATES)
@pytest.mark.parametrize("outcome", list(ReviewOutcome))
def test_invariants_hold_after_any_review(card, outcome):
    result = compute_next_state(card, outcome, JAN_1)

    assert result.easiness_factor >= 1.3
    assert result.interval >= 1
    assert result.due_date > JAN_1
    if outcome < ReviewOutcome.GOOD:
        assert result.repetitions == 0
        assert result.interval == 1
    else:
        assert result.repetitions == card.repetitions + 1


@pytest.mark.parametrize("card", [c for c in CARD_STATES if c.repetitions >= 2])
def test_easy_never_schedules_sooner_than_good(card):
    good = compute_next_state(card, ReviewOutcome.GOOD, JAN_1)
    easy = compute_next_state(card, ReviewOutcome.EASY, JAN_1)

    assert easy.easiness_factor >= good.easiness_factor
    assert easy.interval >= good.interval


# --- Outcome coercion ---


@pytest.mark.parametrize("value", [2, "good", "GOOD", " Good "])
def test_accepts_outcome_aliases(value):
    result = compute_next_state(make_card(), value, JAN_1)
    assert result.repetitions == 1


@pytest.mark.parametrize("value", [4, -1, "meh", None, True, 2.0])
def test_rejects_unknown_outcomes(value):
    with pytest.raises(InvalidOutcome):
        compute_next_state(make_card(), value, JAN_1)


# --- Helpers ---


def test_quality_table_covers_every_outcome():
    assert set(EF_QUALITY) == set(ReviewOutcome)
    assert EF_QUALITY[ReviewOutcome.GOOD] == 2
    assert EF_QUALITY[ReviewOutcome.EASY] == 3


def test_next_easiness_factor_values():
    assert next_easiness_factor(2.5, ReviewOutcome.GOOD) == pytest.approx(2.36)
    assert next_easiness_factor(2.5, ReviewOutcome.EASY) == pytest.approx(2.5)
    assert next_easiness_factor(1.35, ReviewOutcome.GOOD) == 1.3


def test_next_interval_ladder():
    assert next_interval(0, 0, 2.5) == 1
    assert next_interval(1, 1, 2.5) == 6
    assert next_interval(2, 6, 2.5) == 15


def test_next_interval_is_capped():
    assert next_interval(5, 30_000, 2.5) == MAX_INTERVAL
    assert next_interval(5, 6, 1e300) == MAX_INTERVAL


def test_very_long_interval_still_schedules():
    card = make_card(repetitions=5, interval=2_000_000)

    result = compute_next_state(card, ReviewOutcome.GOOD, JAN_1)

    assert result.interval == MAX_INTERVAL
    assert result.due_date == JAN_1 + MAX_INTERVAL * DAY
