"""SQLModel implementation of the bad habit repository."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Optional

from sqlmodel import Session, select

from ...models.bad_habit import BadHabit


class SQLModelBadHabitRepository:
    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def list_active(self, *, user_id: int) -> list[BadHabit]:
        with self.session_factory() as session:
            rows = list(
                session.exec(
                    select(BadHabit)
                    .where(BadHabit.user_id == user_id)
                    .where(BadHabit.is_active == True)  # noqa: E712
                    .order_by(BadHabit.created_at, BadHabit.id)  # type: ignore[arg-type]
                ).all()
            )
            session.expunge_all()
            return rows

    def get(self, bad_habit_id: int, *, user_id: int) -> Optional[BadHabit]:
        with self.session_factory() as session:
            obj = session.exec(
                select(BadHabit).where(BadHabit.id == bad_habit_id, BadHabit.user_id == user_id)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def create(self, bad_habit: BadHabit, *, user_id: int) -> BadHabit:
        with self.session_factory() as session:
            bad_habit.user_id = user_id
            session.add(bad_habit)
            session.commit()
            session.refresh(bad_habit)
            session.expunge(bad_habit)
            return bad_habit

    def update(self, bad_habit: BadHabit, *, user_id: int) -> BadHabit:
        with self.session_factory() as session:
            bad_habit.user_id = user_id
            bad_habit.updated_at = datetime.now(timezone.utc)
            merged = session.merge(bad_habit)
            session.commit()
            session.refresh(merged)
            session.expunge(merged)
            return merged

    def soft_delete(self, bad_habit_id: int, *, user_id: int) -> bool:
        with self.session_factory() as session:
            bad_habit = session.exec(
                select(BadHabit).where(BadHabit.id == bad_habit_id, BadHabit.user_id == user_id)
            ).first()
            if bad_habit is None:
                return False
            bad_habit.is_active = False
            bad_habit.updated_at = datetime.now(timezone.utc)
            session.add(bad_habit)
            session.commit()
            return True


__all__ = ["SQLModelBadHabitRepository"]
