"""Due-set selection. Pure, order-preserving filters over card collections."""

from collections.abc import Iterable
from datetime import tzinfo

from cardwise.application.utils.dates import UTC, start_of_day
from cardwise.domain.models import CardRecord


def is_due(card: CardRecord, now: int, tz: tzinfo = UTC) -> bool:
    """
    True if the card should be reviewed today.

    Unscheduled cards are always due. Otherwise the comparison is against
    today's midnight, matching the scheduler's date-only due dates.
    """
    if card.due_date is None:
        return True
    return card.due_date <= start_of_day(now, tz)


def select_due(cards: Iterable[CardRecord], now: int, tz: tzinfo = UTC) -> list[CardRecord]:
    """Filter cards down to the due ones, keeping their relative order."""
    return [card for card in cards if is_due(card, now, tz)]


def count_due(cards: Iterable[CardRecord], now: int, tz: tzinfo = UTC) -> int:
    return sum(1 for card in cards if is_due(card, now, tz))
