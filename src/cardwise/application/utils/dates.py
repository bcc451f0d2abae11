"""
Day-granular date arithmetic on epoch-millisecond timestamps.

Scheduling compares dates, not times: every due date is a local midnight in
the configured timezone.
"""

import time
from datetime import datetime, timedelta, timezone, tzinfo
from datetime import time as dtime

UTC = timezone.utc


def now_ms() -> int:
    """Current wall-clock time. Only outer surfaces should call this."""
    return int(time.time() * 1000)


def _local(ts_ms: int, tz: tzinfo) -> datetime:
    return datetime.fromtimestamp(ts_ms // 1000, tz)


def _midnight(day, tz: tzinfo) -> int:
    return int(datetime.combine(day, dtime.min, tzinfo=tz).timestamp()) * 1000


def start_of_day(ts_ms: int, tz: tzinfo = UTC) -> int:
    """Midnight of the calendar day containing ts_ms, in tz."""
    return _midnight(_local(ts_ms, tz).date(), tz)


def add_days(ts_ms: int, days: int, tz: tzinfo = UTC) -> int:
    """
    Midnight of the calendar day `days` after the one containing ts_ms.

    Counts calendar days rather than 24h blocks so DST shifts never move a
    due date off midnight.
    """
    target = _local(ts_ms, tz).date() + timedelta(days=days)
    return _midnight(target, tz)


def days_between(start_ms: int, end_ms: int, tz: tzinfo = UTC) -> int:
    """Whole calendar days from start to end (negative if end is earlier)."""
    return (_local(end_ms, tz).date() - _local(start_ms, tz).date()).days


def describe_due(due_ms: int | None, now: int, tz: tzinfo = UTC) -> str:
    """Human-readable due label, e.g. 'Due tomorrow' or 'Overdue by 2 days'."""
    if due_ms is None:
        return "New"

    days = days_between(now, due_ms, tz)
    if days == 0:
        return "Due today"
    if days == 1:
        return "Due tomorrow"
    if days < 0:
        overdue = abs(days)
        return f"Overdue by {overdue} day{'s' if overdue > 1 else ''}"
    return f"Due in {days} days"


def format_study_time(milliseconds: int) -> str:
    seconds = milliseconds // 1000
    minutes = seconds // 60
    hours = minutes // 60

    if hours > 0:
        return f"{hours}h {minutes % 60}m"
    if minutes > 0:
        return f"{minutes}m {seconds % 60}s"
    return f"{seconds}s"
