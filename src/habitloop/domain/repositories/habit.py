"""Habit repository protocol."""

from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Protocol

from ...models.habit import Habit, HabitLog


class HabitRepository(Protocol):
    """Persistence contract for habits and their daily logs."""

    def list_habits(self, *, user_id: int, include_inactive: bool = False) -> list[Habit]:
        """List a user's habits, oldest first."""
        ...

    def get_habit(self, habit_id: int, *, user_id: int) -> Optional[Habit]:
        """Retrieve one habit owned by the user."""
        ...

    def create_habit(self, habit: Habit, *, user_id: int) -> Habit:
        """Create a new habit."""
        ...

    def update_habit(self, habit: Habit, *, user_id: int) -> Habit:
        """Persist changes to an existing habit."""
        ...

    def soft_delete_habit(self, habit_id: int, *, user_id: int) -> bool:
        """Mark a habit inactive; returns False when it does not exist."""
        ...

    # Habit log operations
    def list_logs(
        self,
        habit_id: int,
        *,
        user_id: int,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> list[HabitLog]:
        """Logs of one habit, optionally within a date range."""
        ...

    def list_logs_for_habits(
        self,
        habit_ids: Iterable[int],
        *,
        user_id: int,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> dict[int, list[HabitLog]]:
        """Logs grouped by habit id; every requested id gets a list."""
        ...

    def list_logs_on_date(self, day: date, *, user_id: int) -> list[HabitLog]:
        """Every log the user has on one day."""
        ...

    def list_all_logs(self, *, user_id: int) -> list[HabitLog]:
        """Every log the user owns."""
        ...

    def get_log(self, habit_id: int, day: date, *, user_id: int) -> Optional[HabitLog]:
        """The log for one habit and day, if any."""
        ...

    def upsert_log(
        self,
        habit_id: int,
        day: date,
        completed: bool,
        *,
        user_id: int,
        notes: Optional[str] = None,
    ) -> HabitLog:
        """Find-or-create the (habit, day) log and set its status."""
        ...

    def update_streak_cache(
        self, habit_id: int, current: int, longest: int, *, user_id: int
    ) -> Optional[Habit]:
        """Write recomputed streak counters onto the habit row."""
        ...
