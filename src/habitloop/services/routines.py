"""Morning / evening / anytime partitioning of a day's habits."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable, Mapping, Optional

from ..models.habit import RoutineType
from .dates import parse_date_key
from .numbers import percentage
from .schedule import can_complete_today

ROUTINE_ORDER = (RoutineType.MORNING.value, RoutineType.EVENING.value, RoutineType.ANYTIME.value)


@dataclass(slots=True)
class RoutineBuckets:
    morning: list[Any] = field(default_factory=list)
    evening: list[Any] = field(default_factory=list)
    anytime: list[Any] = field(default_factory=list)

    def items(self) -> Iterable[tuple[str, list[Any]]]:
        for name in ROUTINE_ORDER:
            yield name, getattr(self, name)


@dataclass(frozen=True, slots=True)
class DailyHabitStatus:
    """A habit as it stands on one day."""

    habit: Any
    is_completed: bool
    can_complete: bool
    log: Optional[Any] = None


@dataclass(frozen=True, slots=True)
class RoutineProgress:
    completed_count: int = 0
    total: int = 0
    percentage: int = 0


def _value(obj: Any, name: str, default: Any = None) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name, default)
    return getattr(obj, name, default)


def routine_of(habit: Any) -> str:
    """Return the habit's routine bucket; unknown values land in ``anytime``."""

    raw = _value(habit, "routine_type")
    value = str(getattr(raw, "value", raw) or "").lower()
    return value if value in ROUTINE_ORDER else RoutineType.ANYTIME.value


def classify(habits: Iterable[Any]) -> RoutineBuckets:
    buckets = RoutineBuckets()
    for habit in habits:
        getattr(buckets, routine_of(habit)).append(habit)
    return buckets


def daily_statuses(habits: Iterable[Any], logs: Iterable[Any], day: date) -> list[DailyHabitStatus]:
    """Pair each habit with its log for ``day``.

    ``logs`` may span several days and habits; only the ones on ``day`` are used.
    """

    by_habit: dict[Any, Any] = {}
    for log in logs:
        if parse_date_key(_value(log, "log_date")) == day:
            by_habit[_value(log, "habit_id")] = log

    statuses: list[DailyHabitStatus] = []
    for habit in habits:
        log = by_habit.get(_value(habit, "id"))
        statuses.append(
            DailyHabitStatus(
                habit=habit,
                is_completed=bool(log is not None and _value(log, "completed", False)),
                can_complete=can_complete_today(habit, day),
                log=log,
            )
        )
    return statuses


def routine_progress(habits: Iterable[Any], logs: Iterable[Any], day: date) -> dict[str, RoutineProgress]:
    """Completed / total / percentage per routine, counting habits due on ``day``."""

    logs = list(logs)
    result: dict[str, RoutineProgress] = {}
    for name, bucket in classify(habits).items():
        statuses = daily_statuses(bucket, logs, day)
        due = [status for status in statuses if status.can_complete]
        completed = sum(1 for status in due if status.is_completed)
        result[name] = RoutineProgress(
            completed_count=completed,
            total=len(due),
            percentage=percentage(completed, len(due)),
        )
    return result


__all__ = [
    "DailyHabitStatus",
    "ROUTINE_ORDER",
    "RoutineBuckets",
    "RoutineProgress",
    "classify",
    "daily_statuses",
    "routine_of",
    "routine_progress",
]
