"""SQLModel implementation of the habit repository."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Callable, Iterable, Optional

from sqlmodel import Session, select

from ...models.habit import Habit, HabitLog


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SQLModelHabitRepository:
    """SQLModel-based habit repository implementation."""

    def __init__(self, session_factory: Callable[[], Session]):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def list_habits(self, *, user_id: int, include_inactive: bool = False) -> list[Habit]:
        """List a user's habits, oldest first."""
        with self.session_factory() as session:
            statement = (
                select(Habit)
                .where(Habit.user_id == user_id)
                .order_by(Habit.created_at, Habit.id)  # type: ignore[arg-type]
            )
            if not include_inactive:
                statement = statement.where(Habit.is_active == True)  # noqa: E712

            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def get_habit(self, habit_id: int, *, user_id: int) -> Optional[Habit]:
        """Retrieve one habit owned by the user."""
        with self.session_factory() as session:
            obj = session.exec(
                select(Habit).where(Habit.id == habit_id, Habit.user_id == user_id)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def create_habit(self, habit: Habit, *, user_id: int) -> Habit:
        """Create a new habit."""
        with self.session_factory() as session:
            habit.user_id = user_id
            session.add(habit)
            session.commit()
            session.refresh(habit)
            session.expunge(habit)
            return habit

    def update_habit(self, habit: Habit, *, user_id: int) -> Habit:
        """Persist changes to an existing habit."""
        with self.session_factory() as session:
            habit.user_id = user_id
            habit.updated_at = _utcnow()
            merged = session.merge(habit)
            session.commit()
            session.refresh(merged)
            session.expunge(merged)
            return merged

    def soft_delete_habit(self, habit_id: int, *, user_id: int) -> bool:
        """Flip ``is_active`` off; habits are never hard-deleted."""
        with self.session_factory() as session:
            habit = session.exec(
                select(Habit).where(Habit.id == habit_id, Habit.user_id == user_id)
            ).first()
            if habit is None:
                return False
            habit.is_active = False
            habit.updated_at = _utcnow()
            session.add(habit)
            session.commit()
            return True

    # Habit log operations
    def list_logs(
        self,
        habit_id: int,
        *,
        user_id: int,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> list[HabitLog]:
        """Logs of one habit ordered by day, optionally within a range."""
        return self.list_logs_for_habits([habit_id], user_id=user_id, start=start, end=end)[
            habit_id
        ]

    def list_logs_for_habits(
        self,
        habit_ids: Iterable[int],
        *,
        user_id: int,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> dict[int, list[HabitLog]]:
        """Logs grouped by habit id; every requested id gets a list."""
        ids = [habit_id for habit_id in habit_ids if habit_id is not None]
        grouped: dict[int, list[HabitLog]] = {habit_id: [] for habit_id in ids}
        if not ids:
            return grouped

        with self.session_factory() as session:
            statement = (
                select(HabitLog)
                .where(HabitLog.user_id == user_id)
                .where(HabitLog.habit_id.in_(ids))  # type: ignore[attr-defined]
            )
            if start is not None:
                statement = statement.where(HabitLog.log_date >= start)
            if end is not None:
                statement = statement.where(HabitLog.log_date <= end)
            statement = statement.order_by(HabitLog.log_date)  # type: ignore[arg-type]

            rows = list(session.exec(statement).all())
            session.expunge_all()

        for row in rows:
            grouped.setdefault(row.habit_id, []).append(row)
        return grouped

    def list_logs_on_date(self, day: date, *, user_id: int) -> list[HabitLog]:
        """Every log the user has on one day."""
        with self.session_factory() as session:
            rows = list(
                session.exec(
                    select(HabitLog)
                    .where(HabitLog.user_id == user_id)
                    .where(HabitLog.log_date == day)
                ).all()
            )
            session.expunge_all()
            return rows

    def list_all_logs(self, *, user_id: int) -> list[HabitLog]:
        """Every log the user owns, ordered by habit then day."""
        with self.session_factory() as session:
            rows = list(
                session.exec(
                    select(HabitLog)
                    .where(HabitLog.user_id == user_id)
                    .order_by(HabitLog.habit_id, HabitLog.log_date)  # type: ignore[arg-type]
                ).all()
            )
            session.expunge_all()
            return rows

    def get_log(self, habit_id: int, day: date, *, user_id: int) -> Optional[HabitLog]:
        """The log for one habit and day, if any."""
        with self.session_factory() as session:
            obj = session.exec(
                select(HabitLog)
                .where(HabitLog.user_id == user_id)
                .where(HabitLog.habit_id == habit_id)
                .where(HabitLog.log_date == day)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

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
        with self.session_factory() as session:
            existing = session.exec(
                select(HabitLog)
                .where(HabitLog.user_id == user_id)
                .where(HabitLog.habit_id == habit_id)
                .where(HabitLog.log_date == day)
            ).first()

            if existing:
                existing.completed = completed
                if notes is not None:
                    existing.notes = notes
                existing.updated_at = _utcnow()
                log = existing
            else:
                log = HabitLog(
                    habit_id=habit_id,
                    user_id=user_id,
                    log_date=day,
                    completed=completed,
                    notes=notes,
                )
            session.add(log)
            session.commit()
            session.refresh(log)
            session.expunge(log)
            return log

    def update_streak_cache(
        self, habit_id: int, current: int, longest: int, *, user_id: int
    ) -> Optional[Habit]:
        """Write recomputed streak counters onto the habit row."""
        with self.session_factory() as session:
            habit = session.exec(
                select(Habit).where(Habit.id == habit_id, Habit.user_id == user_id)
            ).first()
            if habit is None:
                return None
            habit.current_streak = current
            habit.longest_streak = longest
            session.add(habit)
            session.commit()
            session.refresh(habit)
            session.expunge(habit)
            return habit


__all__ = ["SQLModelHabitRepository"]
