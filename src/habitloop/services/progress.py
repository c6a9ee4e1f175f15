"""Progress aggregation over habits and their logs.

All functions are pure and total: empty inputs produce zero-valued results
and logs with unusable dates are skipped.
"""

from __future__ import annotations

import calendar
import math
from dataclasses import asdict, dataclass
from datetime import date, datetime, timedelta
from typing import Any, Iterable, Mapping, Optional, Sequence

from .dates import (
    CHART_WINDOW_DAYS,
    HEATMAP_WINDOW_DAYS,
    days_in_window,
    local_date,
    parse_date_key,
    week_start,
)
from .numbers import percentage, round_half_up
from .routines import ROUTINE_ORDER, routine_of
from .schedule import is_due_on
from .streaks import completed_dates

HEAT_LEVELS = 4


@dataclass(frozen=True, slots=True)
class ProgressPoint:
    """Completion totals for one day of a chart."""

    date: date
    completed_count: int
    total_count: int
    percentage: int

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["date"] = self.date.isoformat()
        return payload


@dataclass(frozen=True, slots=True)
class HeatCell:
    date: date
    count: int
    level: int

    def to_dict(self) -> dict[str, Any]:
        return {"date": self.date.isoformat(), "count": self.count, "level": self.level}


@dataclass(frozen=True, slots=True)
class SummaryStats:
    total_completions: int = 0
    total_logged_days: int = 0
    longest_streak_across_habits: int = 0
    completion_rate: int = 0


@dataclass(frozen=True, slots=True)
class ProgressStats:
    """Completion rates for today, this week, this month and all time."""

    daily: int = 0
    weekly: int = 0
    monthly: int = 0
    all_time: int = 0


@dataclass(frozen=True, slots=True)
class HabitProgress:
    habit_id: Any
    habit_name: str
    completion_rate: int
    total_completed: int
    total_days: int


@dataclass(frozen=True, slots=True)
class ExportStats:
    daily: int = 0
    weekly: int = 0
    monthly: int = 0


@dataclass(frozen=True, slots=True)
class WeeklyStats:
    week_start: date
    total_completions: int
    completion_rate: int
    habits_tracked: int


def _value(obj: Any, name: str, default: Any = None) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name, default)
    return getattr(obj, name, default)


def _valid_logs(logs: Iterable[Any]) -> Iterable[tuple[date, Any]]:
    for log in logs:
        day = parse_date_key(_value(log, "log_date"))
        if day is not None:
            yield day, log


def _logs_for(logs_by_habit: Mapping[Any, Sequence[Any]], habit: Any) -> Sequence[Any]:
    return logs_by_habit.get(_value(habit, "id"), ())


def daily_series(
    habits: Sequence[Any],
    logs_by_habit: Mapping[Any, Sequence[Any]],
    window_days: int = CHART_WINDOW_DAYS,
    *,
    end: date,
    due_only: bool = False,
) -> list[ProgressPoint]:
    """Return one point per day of the window ending at ``end``.

    By default every habit counts toward each day's total. With
    ``due_only`` the total is restricted to habits due on that day, and a
    completion on a non-due day is not counted either.
    """

    done_by_habit = [
        (habit, completed_dates(_logs_for(logs_by_habit, habit))) for habit in habits
    ]
    points: list[ProgressPoint] = []
    for day in days_in_window(end, window_days):
        if due_only:
            counted = [(habit, done) for habit, done in done_by_habit if is_due_on(habit, day)]
        else:
            counted = done_by_habit
        total = len(counted)
        completed = sum(1 for _, done in counted if day in done)
        points.append(
            ProgressPoint(
                date=day,
                completed_count=completed,
                total_count=total,
                percentage=percentage(completed, total),
            )
        )
    return points


def heat_intensity(log: Optional[Any]) -> int:
    """Binary intensity for a single habit: 0 without a completion, 4 with one."""

    if log is not None and _value(log, "completed", False):
        return HEAT_LEVELS
    return 0


def heat_map(
    logs: Iterable[Any],
    window_days: int = HEATMAP_WINDOW_DAYS,
    *,
    end: date,
) -> list[HeatCell]:
    """Return heat map cells for one habit over the window ending at ``end``."""

    by_day: dict[date, Any] = {}
    for day, log in _valid_logs(logs):
        by_day[day] = log
    cells: list[HeatCell] = []
    for day in days_in_window(end, window_days):
        level = heat_intensity(by_day.get(day))
        cells.append(HeatCell(date=day, count=1 if level else 0, level=level))
    return cells


def graduated_level(completed: int, total: int) -> int:
    """Map a share of completed habits onto levels 0..4."""

    if completed <= 0 or total <= 0:
        return 0
    return min(HEAT_LEVELS, math.ceil(completed / total * HEAT_LEVELS))


def combined_heat_map(
    habits: Sequence[Any],
    logs_by_habit: Mapping[Any, Sequence[Any]],
    window_days: int = HEATMAP_WINDOW_DAYS,
    *,
    end: date,
) -> list[HeatCell]:
    """Heat map across all habits with graduated intensity per day."""

    return [
        HeatCell(
            date=point.date,
            count=point.completed_count,
            level=graduated_level(point.completed_count, point.total_count),
        )
        for point in daily_series(habits, logs_by_habit, window_days, end=end)
    ]


def summary_stats(
    habits: Sequence[Any],
    logs_by_habit: Mapping[Any, Sequence[Any]],
) -> SummaryStats:
    """Totals across every habit's logs.

    ``total_logged_days`` counts log rows that exist, not habits times days.
    """

    total_completions = 0
    total_logged = 0
    for habit in habits:
        for _, log in _valid_logs(_logs_for(logs_by_habit, habit)):
            total_logged += 1
            if _value(log, "completed", False):
                total_completions += 1

    longest = max((int(_value(habit, "longest_streak", 0) or 0) for habit in habits), default=0)
    return SummaryStats(
        total_completions=total_completions,
        total_logged_days=total_logged,
        longest_streak_across_habits=longest,
        completion_rate=percentage(total_completions, total_logged),
    )


def system_health_score(
    habits: Sequence[Any],
    completion_rate: float,
    *,
    streaks: Optional[Sequence[int]] = None,
) -> int:
    """Weighted 0..100 score describing how established the habit system is.

    ``streaks`` holds recomputed current streaks, one per habit; without it the
    counters cached on the habits are used.
    """

    if not habits:
        return 0
    count = len(habits)
    habit_score = min(count * 2, 10)
    completion_score = min(max(completion_rate, 0), 100) * 0.5
    if streaks is None:
        streaks = [int(_value(h, "current_streak", 0) or 0) for h in habits]
    average_streak = sum(streaks) / count
    streak_score = min(average_streak * 2, 20)
    covered = len({routine_of(h) for h in habits})
    routine_score = covered / len(ROUTINE_ORDER) * 20
    total = habit_score + completion_score + streak_score + routine_score
    return max(0, min(100, round_half_up(total)))


def _completed_between(logs: Iterable[Any], start: date, end: date) -> int:
    return sum(
        1
        for day, log in _valid_logs(logs)
        if start <= day <= end and _value(log, "completed", False)
    )


def progress_stats(habits: Sequence[Any], logs: Sequence[Any], today: date) -> ProgressStats:
    """Completion rates for today, the Monday-start week, the month and all time."""

    logs = list(logs)
    habit_count = len(habits) or 1

    daily = percentage(_completed_between(logs, today, today), habit_count)

    monday = week_start(today, first_weekday=1)
    weekly = percentage(
        _completed_between(logs, monday, monday + timedelta(days=6)), habit_count * 7
    )

    month_days = calendar.monthrange(today.year, today.month)[1]
    month_start = today.replace(day=1)
    monthly = percentage(
        _completed_between(logs, month_start, today.replace(day=month_days)),
        habit_count * month_days,
    )

    valid = [log for _, log in _valid_logs(logs)]
    all_completed = sum(1 for log in valid if _value(log, "completed", False))
    all_time = percentage(all_completed, len(valid) or 1)

    return ProgressStats(daily=daily, weekly=weekly, monthly=monthly, all_time=all_time)


def completion_rate(logs: Sequence[Any], days: int = CHART_WINDOW_DAYS) -> int:
    """Completed logs over a fixed number of days, capped at 100."""

    if not logs or days <= 0:
        return 0
    completed = sum(1 for _, log in _valid_logs(logs) if _value(log, "completed", False))
    return min(percentage(completed, days), 100)


def habit_progress(
    habits: Sequence[Any],
    logs_by_habit: Mapping[Any, Sequence[Any]],
    today: date,
    *,
    tz_name: Optional[str] = None,
) -> list[HabitProgress]:
    """Completion rate of each habit since the day it was created.

    Creation timestamps are converted to ``tz_name`` before taking the day.
    """

    rows: list[HabitProgress] = []
    for habit in habits:
        created = _value(habit, "created_at")
        created_day = local_date(created, tz_name) if isinstance(created, datetime) else parse_date_key(created)
        total_days = max(1, (today - created_day).days) if created_day else 1
        logs = _logs_for(logs_by_habit, habit)
        completed = len(completed_dates(logs, until=today))
        rows.append(
            HabitProgress(
                habit_id=_value(habit, "id"),
                habit_name=_value(habit, "name", ""),
                completion_rate=min(percentage(completed, total_days), 100),
                total_completed=completed,
                total_days=total_days,
            )
        )
    return rows


def export_stats(habits: Sequence[Any], logs: Sequence[Any], today: date) -> ExportStats:
    """Rates for today and the trailing 7 and 30 days, as printed in summaries."""

    count = len(habits)
    if count == 0:
        return ExportStats()
    logs = list(logs)
    daily = percentage(_completed_between(logs, today, today), count)
    weekly = percentage(_completed_between(logs, today - timedelta(days=7), today), count * 7)
    monthly = percentage(_completed_between(logs, today - timedelta(days=30), today), count * 30)
    return ExportStats(daily=daily, weekly=weekly, monthly=monthly)


def weekly_stats(points: Sequence[ProgressPoint]) -> list[WeeklyStats]:
    """Roll a daily series up into Monday-start weeks; partial weeks are kept."""

    buckets: dict[date, list[ProgressPoint]] = {}
    for point in points:
        buckets.setdefault(week_start(point.date, first_weekday=1), []).append(point)
    rows: list[WeeklyStats] = []
    for start in sorted(buckets):
        bucket = buckets[start]
        completed = sum(p.completed_count for p in bucket)
        possible = sum(p.total_count for p in bucket)
        rows.append(
            WeeklyStats(
                week_start=start,
                total_completions=completed,
                completion_rate=percentage(completed, possible),
                habits_tracked=max((p.total_count for p in bucket), default=0),
            )
        )
    return rows


__all__ = [
    "ExportStats",
    "HabitProgress",
    "HeatCell",
    "ProgressPoint",
    "ProgressStats",
    "SummaryStats",
    "WeeklyStats",
    "combined_heat_map",
    "completion_rate",
    "daily_series",
    "export_stats",
    "graduated_level",
    "habit_progress",
    "heat_intensity",
    "heat_map",
    "progress_stats",
    "summary_stats",
    "system_health_score",
    "weekly_stats",
]
