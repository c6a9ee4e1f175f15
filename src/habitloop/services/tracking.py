"""Habit log writes and the read model built on top of them.

Writes go to the repository first; in-memory state (the keyed
:class:`HabitDataCache` and the streak counters cached on the habit row) only
changes after the write has been confirmed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from threading import Lock
from typing import Any, Callable, Hashable, Optional

from ..domain.repositories import HabitRepository
from ..errors import NotDueError, NotFoundError, PersistenceError, ValidationError, persistence_guard
from ..logging_config import get_logger
from ..models.habit import Habit, HabitLog
from .dates import local_today, to_date_key
from .guidance import health_message
from .numbers import percentage
from .progress import (
    HeatCell,
    ProgressPoint,
    combined_heat_map,
    daily_series,
    habit_progress,
    heat_map,
    progress_stats,
    summary_stats,
    system_health_score,
    weekly_stats,
)
from .routines import classify, daily_statuses, routine_progress
from .schedule import is_due_on
from .streaks import StreakResult, compute_streaks, streak_overview

logger = get_logger(__name__)


class HabitDataCache:
    """Thread-safe keyed cache for per-user reads.

    Keys are tuples whose second element is the user id, e.g.
    ``("habits", user_id)`` or ``("logs_on", user_id, "2024-03-01")``.
    Entries never expire on their own; writers invalidate the keys they touch.
    """

    def __init__(self) -> None:
        self._entries: dict[Hashable, Any] = {}
        self._lock = Lock()

    def get_or_load(self, key: Hashable, loader: Callable[[], Any]) -> Any:
        with self._lock:
            if key in self._entries:
                return self._entries[key]
        value = loader()
        with self._lock:
            self._entries[key] = value
        return value

    def peek(self, key: Hashable) -> Optional[Any]:
        with self._lock:
            return self._entries.get(key)

    def invalidate(self, *keys: Hashable) -> None:
        with self._lock:
            for key in keys:
                self._entries.pop(key, None)

    def invalidate_user(self, user_id: int) -> None:
        """Drop every entry belonging to one user."""

        with self._lock:
            stale = [
                key
                for key in self._entries
                if isinstance(key, tuple) and len(key) > 1 and key[1] == user_id
            ]
            for key in stale:
                del self._entries[key]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class MutationStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


@dataclass
class LogMutation:
    """One requested change to a habit's completion on a day.

    ``displayed`` is what a client should show: the requested value while the
    write is pending or once confirmed, the previous value after a failure.
    """

    habit_id: int
    day: date
    previous: bool
    requested: bool
    status: MutationStatus = MutationStatus.PENDING
    log: Optional[HabitLog] = None
    error: Optional[str] = None

    @property
    def displayed(self) -> bool:
        if self.status is MutationStatus.FAILED:
            return self.previous
        return self.requested

    def confirm(self, log: HabitLog) -> None:
        self._require_pending()
        self.status = MutationStatus.CONFIRMED
        self.log = log

    def fail(self, error: BaseException) -> None:
        self._require_pending()
        self.status = MutationStatus.FAILED
        self.error = type(error).__name__

    def _require_pending(self) -> None:
        if self.status is not MutationStatus.PENDING:
            raise RuntimeError(f"Mutation already {self.status.value}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "habit_id": self.habit_id,
            "date": to_date_key(self.day),
            "status": self.status.value,
            "completed": self.displayed,
            "previous": self.previous,
        }


@dataclass(frozen=True)
class ToggleOutcome:
    mutation: LogMutation
    streaks: StreakResult = field(default_factory=StreakResult)


class HabitTracker:
    """Service object behind the habit, progress and CLI surfaces."""

    def __init__(
        self,
        habit_repo: HabitRepository,
        *,
        timezone: str = "UTC",
        cache: Optional[HabitDataCache] = None,
    ):
        self.habit_repo = habit_repo
        self.timezone = timezone
        self.cache = cache if cache is not None else HabitDataCache()

    def today(self) -> date:
        return local_today(self.timezone)

    # Reads
    def habits(self, *, user_id: int) -> list[Habit]:
        def load() -> list[Habit]:
            with persistence_guard("list habits"):
                return self.habit_repo.list_habits(user_id=user_id)

        return self.cache.get_or_load(("habits", user_id), load)

    def require_habit(self, habit_id: int, *, user_id: int) -> Habit:
        with persistence_guard("load habit"):
            habit = self.habit_repo.get_habit(habit_id, user_id=user_id)
        if habit is None or not habit.is_active:
            raise NotFoundError(f"Habit {habit_id} not found.", details={"habit_id": habit_id})
        return habit

    def logs_on(self, day: date, *, user_id: int) -> list[HabitLog]:
        def load() -> list[HabitLog]:
            with persistence_guard("list logs for day"):
                return self.habit_repo.list_logs_on_date(day, user_id=user_id)

        return self.cache.get_or_load(("logs_on", user_id, to_date_key(day)), load)

    def logs_by_habit(
        self, habits: list[Habit], *, user_id: int, start: Optional[date] = None, end: Optional[date] = None
    ) -> dict[int, list[HabitLog]]:
        ids = [habit.id for habit in habits if habit.id is not None]
        with persistence_guard("list habit logs"):
            return self.habit_repo.list_logs_for_habits(ids, user_id=user_id, start=start, end=end)

    def invalidate(self, *, user_id: int) -> None:
        self.cache.invalidate_user(user_id)

    # Writes
    def toggle(
        self,
        habit_id: int,
        *,
        user_id: int,
        day: Optional[date] = None,
        completed: Optional[bool] = None,
        notes: Optional[str] = None,
    ) -> ToggleOutcome:
        """Set (or flip) one day's completion and refresh the streak cache.

        Marking a habit complete on a day it is not scheduled raises
        :class:`NotDueError`; clearing a completion is always allowed. Days
        after today are rejected.
        """

        today = self.today()
        day = day or today
        if day > today:
            raise ValidationError({"date": ["Cannot log a habit for a future day."]})
        habit = self.require_habit(habit_id, user_id=user_id)
        with persistence_guard("load habit log"):
            existing = self.habit_repo.get_log(habit_id, day, user_id=user_id)
        previous = bool(existing and existing.completed)
        requested = (not previous) if completed is None else bool(completed)

        if requested and not is_due_on(habit, day):
            raise NotDueError(
                f"{habit.name} is not scheduled on {to_date_key(day)}.",
                details={"habit_id": habit_id, "date": to_date_key(day)},
            )

        mutation = LogMutation(habit_id=habit_id, day=day, previous=previous, requested=requested)
        try:
            with persistence_guard("write habit log"):
                log = self.habit_repo.upsert_log(
                    habit_id, day, requested, user_id=user_id, notes=notes
                )
        except PersistenceError as exc:
            mutation.fail(exc.cause or exc)
            exc.details.update(mutation.to_dict())
            logger.warning(
                "Habit log write failed; keeping previous state",
                extra={"habit_id": habit_id, "day": to_date_key(day), "completed": previous},
            )
            raise

        mutation.confirm(log)
        self.cache.invalidate(("habits", user_id), ("logs_on", user_id, to_date_key(day)))
        try:
            streaks = self.refresh_streaks(habit, user_id=user_id, today=today)
        except PersistenceError:
            # The log is saved; stale counters are repaired by the next refresh.
            logger.exception(
                "Streak cache refresh failed after a confirmed write",
                extra={"habit_id": habit_id, "day": to_date_key(day)},
            )
            streaks = StreakResult(current=habit.current_streak, longest=habit.longest_streak)
        logger.info(
            "Habit log updated",
            extra={
                "habit_id": habit_id,
                "day": to_date_key(day),
                "completed": requested,
                "current_streak": streaks.current,
            },
        )
        return ToggleOutcome(mutation=mutation, streaks=streaks)

    def refresh_streaks(self, habit: Habit, *, user_id: int, today: Optional[date] = None) -> StreakResult:
        """Recompute both streaks from the full log history and cache them on the row."""

        if habit.id is None:
            raise NotFoundError("Habit has not been saved yet.", details={"habit_id": None})
        today = today or self.today()
        with persistence_guard("recompute streaks"):
            logs = self.habit_repo.list_logs(habit.id, user_id=user_id)
            result = compute_streaks(habit, logs, today)
            self.habit_repo.update_streak_cache(
                habit.id, result.current, result.longest, user_id=user_id
            )
        self.cache.invalidate(("habits", user_id))
        return result

    def recompute_all(self, *, user_id: int, today: Optional[date] = None) -> dict[int, StreakResult]:
        results: dict[int, StreakResult] = {}
        with persistence_guard("list habits"):
            habits = self.habit_repo.list_habits(user_id=user_id, include_inactive=True)
        for habit in habits:
            results[habit.id] = self.refresh_streaks(habit, user_id=user_id, today=today)  # type: ignore[index]
        return results

    # Read models
    def today_view(self, *, user_id: int, day: Optional[date] = None) -> dict[str, Any]:
        """Habits of one day grouped by routine, with per-routine progress."""

        day = day or self.today()
        habits = self.habits(user_id=user_id)
        logs = self.logs_on(day, user_id=user_id)
        grouped = {name: daily_statuses(bucket, logs, day) for name, bucket in classify(habits).items()}
        progress = routine_progress(habits, logs, day)
        return {
            "date": to_date_key(day),
            "routines": {
                name: {
                    "habits": [
                        {
                            "habit_id": status.habit.id,
                            "name": status.habit.name,
                            "two_minute_version": status.habit.two_minute_version,
                            "is_completed": status.is_completed,
                            "can_complete": status.can_complete,
                            "current_streak": status.habit.current_streak,
                        }
                        for status in statuses
                    ],
                    "completed": progress[name].completed_count,
                    "total": progress[name].total,
                    "percentage": progress[name].percentage,
                }
                for name, statuses in grouped.items()
            },
        }

    def series(
        self, *, user_id: int, days: int, due_only: bool = False, end: Optional[date] = None
    ) -> list[ProgressPoint]:
        end = end or self.today()
        habits = self.habits(user_id=user_id)
        logs = self.logs_by_habit(habits, user_id=user_id)
        return daily_series(habits, logs, days, end=end, due_only=due_only)

    def heat_map(
        self, *, user_id: int, days: int, habit_id: Optional[int] = None, end: Optional[date] = None
    ) -> list[HeatCell]:
        end = end or self.today()
        if habit_id is not None:
            self.require_habit(habit_id, user_id=user_id)
            with persistence_guard("list habit logs"):
                logs = self.habit_repo.list_logs(habit_id, user_id=user_id)
            return heat_map(logs, days, end=end)
        habits = self.habits(user_id=user_id)
        logs_by_habit = self.logs_by_habit(habits, user_id=user_id)
        return combined_heat_map(habits, logs_by_habit, days, end=end)

    def summary(self, *, user_id: int, today: Optional[date] = None) -> dict[str, Any]:
        """Dashboard numbers; streaks are recomputed rather than read from the cache."""

        today = today or self.today()
        habits = self.habits(user_id=user_id)
        logs_by_habit = self.logs_by_habit(habits, user_id=user_id)
        all_logs = [log for logs in logs_by_habit.values() for log in logs]

        overview = streak_overview(habits, logs_by_habit, today)
        summary = summary_stats(habits, logs_by_habit)
        # Longest streak comes from the recomputation, not the cached column.
        longest = max((row.longest_streak for row in overview.streaks), default=0)
        stats = progress_stats(habits, all_logs, today)
        routines = routine_progress(habits, all_logs, today)
        # Health is scored against today's rate over the habits due today.
        due_today = sum(p.total for p in routines.values())
        done_today = sum(p.completed_count for p in routines.values())
        score = system_health_score(
            habits,
            percentage(done_today, due_today),
            streaks=[row.current_streak for row in overview.streaks],
        )
        per_habit = habit_progress(habits, logs_by_habit, today, tz_name=self.timezone)
        weeks = weekly_stats(daily_series(habits, logs_by_habit, end=today))

        return {
            "date": to_date_key(today),
            "summary": {
                "total_completions": summary.total_completions,
                "total_logged_days": summary.total_logged_days,
                "longest_streak": longest,
                "completion_rate": summary.completion_rate,
            },
            "progress": {
                "daily": stats.daily,
                "weekly": stats.weekly,
                "monthly": stats.monthly,
                "all_time": stats.all_time,
            },
            "health": {"score": score, "message": health_message(score)},
            "habits": [
                {
                    "habit_id": row.habit_id,
                    "habit_name": row.habit_name,
                    "completion_rate": row.completion_rate,
                    "total_completed": row.total_completed,
                    "total_days": row.total_days,
                }
                for row in per_habit
            ],
            "streaks": {
                "average_current": overview.average_current,
                "best": _streak_row(overview.best) if overview.best else None,
                "habits": [_streak_row(row) for row in overview.streaks],
            },
            "routines": {
                name: {"completed": p.completed_count, "total": p.total, "percentage": p.percentage}
                for name, p in routines.items()
            },
            "weeks": [
                {
                    "week_start": to_date_key(week.week_start),
                    "total_completions": week.total_completions,
                    "completion_rate": week.completion_rate,
                    "habits_tracked": week.habits_tracked,
                }
                for week in weeks
            ],
        }


def _streak_row(row: Any) -> dict[str, Any]:
    return {
        "habit_id": row.habit_id,
        "habit_name": row.habit_name,
        "current_streak": row.current_streak,
        "longest_streak": row.longest_streak,
        "last_completed_date": to_date_key(row.last_completed_date) if row.last_completed_date else None,
        "is_active_today": row.is_active_today,
    }


__all__ = [
    "HabitDataCache",
    "HabitTracker",
    "LogMutation",
    "MutationStatus",
    "ToggleOutcome",
]
