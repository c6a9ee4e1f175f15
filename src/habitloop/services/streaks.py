"""Streak calculations derived from raw habit logs.

Both the current and the longest streak walk the same sequence of eligible
(due) days produced by :func:`eligible_days`: days the habit is not scheduled
are skipped without breaking continuity, and a scheduled day without a
completion ends a run. For daily habits this is the plain "consecutive
calendar days" rule.

Nothing here reads the ``current_streak``/``longest_streak`` columns cached
on the habit row.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Iterable, Iterator, Mapping, Optional, Sequence

from ..logging_config import get_logger
from .dates import iter_days, parse_date_key
from .numbers import round_half_up
from .schedule import is_due_on

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class StreakResult:
    """Current and longest streak for one habit."""

    current: int = 0
    longest: int = 0
    last_completed: Optional[date] = None


@dataclass(frozen=True, slots=True)
class HabitStreak:
    habit_id: Any
    habit_name: str
    current_streak: int
    longest_streak: int
    last_completed_date: Optional[date]
    is_active_today: bool


@dataclass(frozen=True, slots=True)
class StreakOverview:
    """Streaks for every habit plus the headline numbers shown on the dashboard."""

    streaks: list[HabitStreak] = field(default_factory=list)
    average_current: int = 0
    best: Optional[HabitStreak] = None


def _log_value(log: Any, name: str, default: Any = None) -> Any:
    if isinstance(log, Mapping):
        return log.get(name, default)
    return getattr(log, name, default)


def completed_dates(logs: Iterable[Any], *, until: Optional[date] = None) -> set[date]:
    """Return the distinct days with a completed log.

    Logs whose date cannot be parsed are skipped. When ``until`` is given,
    completions after it are ignored.
    """

    days: set[date] = set()
    for log in logs:
        if not _log_value(log, "completed", False):
            continue
        raw = _log_value(log, "log_date")
        day = parse_date_key(raw)
        if day is None:
            logger.warning(
                "Skipping log with malformed date",
                extra={"log_id": _log_value(log, "id"), "log_date": raw},
            )
            continue
        if until is not None and day > until:
            continue
        days.add(day)
    return days


def eligible_days(habit: Any, start: date, end: date, *, reverse: bool = False) -> Iterator[date]:
    """Yield the days between ``start`` and ``end`` on which ``habit`` is due."""

    for day in iter_days(start, end, reverse=reverse):
        if is_due_on(habit, day):
            yield day


def _current_from(habit: Any, done: set[date], today: date) -> int:
    if not done:
        return 0
    # An unfinished today is still open: the chain is judged from yesterday.
    cursor = today if today in done else today - timedelta(days=1)
    earliest = min(done)
    streak = 0
    for day in eligible_days(habit, earliest, cursor, reverse=True):
        if day not in done:
            break
        streak += 1
    return streak


def _longest_from(habit: Any, done: set[date]) -> int:
    if not done:
        return 0
    longest = run = 0
    for day in eligible_days(habit, min(done), max(done)):
        if day in done:
            run += 1
            longest = max(longest, run)
        else:
            run = 0
    return longest


def current_streak(habit: Any, logs: Iterable[Any], today: date) -> int:
    """Return the run of completed due days ending today (or yesterday)."""

    return _current_from(habit, completed_dates(logs, until=today), today)


def longest_streak(habit: Any, logs: Iterable[Any], today: Optional[date] = None) -> int:
    """Return the longest run of completed due days in the history."""

    return _longest_from(habit, completed_dates(logs, until=today))


def compute_streaks(habit: Any, logs: Iterable[Any], today: date) -> StreakResult:
    """Return current and longest streaks from a single pass over ``logs``."""

    done = completed_dates(logs, until=today)
    return StreakResult(
        current=_current_from(habit, done, today),
        longest=_longest_from(habit, done),
        last_completed=max(done) if done else None,
    )


def streak_overview(
    habits: Sequence[Any],
    logs_by_habit: Mapping[Any, Sequence[Any]],
    today: date,
) -> StreakOverview:
    """Recompute streaks for every habit and summarise them."""

    rows: list[HabitStreak] = []
    for habit in habits:
        habit_id = _log_value(habit, "id")
        logs = logs_by_habit.get(habit_id, ())
        result = compute_streaks(habit, logs, today)
        rows.append(
            HabitStreak(
                habit_id=habit_id,
                habit_name=_log_value(habit, "name", ""),
                current_streak=result.current,
                longest_streak=result.longest,
                last_completed_date=result.last_completed,
                is_active_today=result.last_completed == today,
            )
        )

    if not rows:
        return StreakOverview()

    average = round_half_up(sum(row.current_streak for row in rows) / len(rows))
    best = rows[0]
    for row in rows[1:]:
        if row.longest_streak > best.longest_streak:
            best = row
    return StreakOverview(streaks=rows, average_current=average, best=best)


__all__ = [
    "HabitStreak",
    "StreakOverview",
    "StreakResult",
    "completed_dates",
    "compute_streaks",
    "current_streak",
    "eligible_days",
    "longest_streak",
    "streak_overview",
]
