"""Due-day predicate for habits.

The same ``is_due_on`` backs UI gating ("can I complete this today") and the
streak/aggregation denominators, so the two can never disagree.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Iterable, Optional

from ..logging_config import get_logger
from ..models.habit import HabitFrequency
from .dates import weekday

logger = get_logger(__name__)

_RESTRICTED = {HabitFrequency.WEEKLY.value, HabitFrequency.CUSTOM.value}


def _attr(habit: Any, name: str, default: Any = None) -> Any:
    if isinstance(habit, dict):
        return habit.get(name, default)
    return getattr(habit, name, default)


def normalize_target_days(values: Optional[Iterable[Any]]) -> frozenset[int]:
    """Return the valid weekday indices (0..6) from ``values``.

    Out-of-range or non-integer entries are dropped rather than rejected.
    """

    if not values:
        return frozenset()
    valid: set[int] = set()
    for raw in values:
        if isinstance(raw, bool):
            logger.debug("Ignoring boolean target day", extra={"value": raw})
            continue
        try:
            day = int(raw)
        except (TypeError, ValueError):
            logger.debug("Ignoring non-integer target day", extra={"value": raw})
            continue
        if 0 <= day <= 6:
            valid.add(day)
        else:
            logger.debug("Ignoring out-of-range target day", extra={"value": raw})
    return frozenset(valid)


def frequency_of(habit: Any) -> str:
    raw = _attr(habit, "frequency", HabitFrequency.DAILY.value)
    if isinstance(raw, HabitFrequency):
        return raw.value
    return str(raw or HabitFrequency.DAILY.value).lower()


def is_due_on(habit: Any, day: date) -> bool:
    """Return True when ``habit`` counts on ``day``.

    Daily habits are always due. Weekly and custom habits are due on their
    ``target_days``; with no usable target days they behave like daily ones.
    """

    if frequency_of(habit) not in _RESTRICTED:
        return True
    targets = normalize_target_days(_attr(habit, "target_days"))
    if not targets:
        return True
    return weekday(day) in targets


def can_complete_today(habit: Any, today: date) -> bool:
    return is_due_on(habit, today)


def next_due_date(habit: Any, after: date) -> date:
    """Return the first due day strictly after ``after``.

    Habits without a weekday restriction are due every day, so ``after``
    itself is returned, matching how the dashboard labels them.
    """

    if frequency_of(habit) not in _RESTRICTED or not normalize_target_days(
        _attr(habit, "target_days")
    ):
        return after
    for offset in range(1, 8):
        candidate = after + timedelta(days=offset)
        if is_due_on(habit, candidate):
            return candidate
    return after


__all__ = [
    "can_complete_today",
    "frequency_of",
    "is_due_on",
    "next_due_date",
    "normalize_target_days",
]
