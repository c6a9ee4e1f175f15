"""Calendar helpers shared by the analytics services.

Every comparison between a stored log and a computed day goes through the
canonical ``YYYY-MM-DD`` key, and "today" is always resolved in one
configured timezone so the day boundary never drifts between callers.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Iterator, Optional, Union
from zoneinfo import ZoneInfo

DateLike = Union[date, datetime, str]

CHART_WINDOW_DAYS = 30
HEATMAP_WINDOW_DAYS = 90
DATE_KEY_FORMAT = "%Y-%m-%d"


def local_today(tz_name: Optional[str] = None) -> date:
    """Return today's date at the configured day boundary (UTC by default)."""

    return datetime.now(ZoneInfo(tz_name or "UTC")).date()


def local_date(moment: datetime, tz_name: Optional[str] = None) -> date:
    """Return the calendar day of ``moment`` in the configured timezone.

    Naive datetimes are read as UTC, which is how timestamps are stored.
    """

    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(ZoneInfo(tz_name or "UTC")).date()


def parse_date_key(value: object) -> Optional[date]:
    """Coerce a stored date value into a ``date``; malformed input yields None."""

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        # Timestamps such as "2024-03-01T00:00:00Z" still carry a usable day.
        if len(text) > 10 and text[10] in "T ":
            text = text[:10]
        try:
            return datetime.strptime(text, DATE_KEY_FORMAT).date()
        except ValueError:
            return None
    return None


def to_date_key(value: DateLike) -> str:
    """Return the canonical ``YYYY-MM-DD`` key for a date-like value."""

    parsed = parse_date_key(value)
    if parsed is None:
        raise ValueError(f"Not a calendar date: {value!r}")
    return parsed.strftime(DATE_KEY_FORMAT)


def weekday(day: DateLike) -> int:
    """Return the weekday index with 0 = Sunday through 6 = Saturday."""

    parsed = parse_date_key(day)
    if parsed is None:
        raise ValueError(f"Not a calendar date: {day!r}")
    # date.weekday() is Monday-based; shift so Sunday is 0.
    return (parsed.weekday() + 1) % 7


def days_in_window(end: date, window_size: int) -> list[date]:
    """Return ``window_size`` consecutive days ending at ``end``, oldest first."""

    if window_size <= 0:
        return []
    start = end - timedelta(days=window_size - 1)
    return [start + timedelta(days=offset) for offset in range(window_size)]


def iter_days(start: date, end: date, *, reverse: bool = False) -> Iterator[date]:
    """Yield each day between ``start`` and ``end`` inclusive."""

    if start > end:
        return
    span = (end - start).days
    offsets = range(span, -1, -1) if reverse else range(span + 1)
    for offset in offsets:
        yield start + timedelta(days=offset)


def date_range(start: date, end: date) -> list[date]:
    return list(iter_days(start, end))


def week_dates(day: date) -> list[date]:
    """Return the Sunday-to-Saturday week containing ``day``."""

    start = day - timedelta(days=weekday(day))
    return [start + timedelta(days=offset) for offset in range(7)]


def week_start(day: date, *, first_weekday: int = 1) -> date:
    """Return the first day of the week containing ``day``.

    ``first_weekday`` uses the Sunday = 0 convention; Monday-start weeks are
    the default for progress rollups.
    """

    shift = (weekday(day) - first_weekday) % 7
    return day - timedelta(days=shift)


def is_date_in_past(day: DateLike, today: date) -> bool:
    parsed = parse_date_key(day)
    return parsed is not None and parsed < today


def week_number(day: date) -> int:
    """Week of the year counting from the week that holds January 1st."""

    first = date(day.year, 1, 1)
    past_days = (day - first).days
    return (past_days + weekday(first) + 7) // 7


__all__ = [
    "CHART_WINDOW_DAYS",
    "HEATMAP_WINDOW_DAYS",
    "date_range",
    "days_in_window",
    "is_date_in_past",
    "iter_days",
    "local_date",
    "local_today",
    "parse_date_key",
    "to_date_key",
    "week_dates",
    "week_number",
    "week_start",
    "weekday",
]
