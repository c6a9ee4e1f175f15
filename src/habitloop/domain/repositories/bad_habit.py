"""Bad habit repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.bad_habit import BadHabit


class BadHabitRepository(Protocol):
    def list_active(self, *, user_id: int) -> list[BadHabit]:
        ...

    def get(self, bad_habit_id: int, *, user_id: int) -> Optional[BadHabit]:
        ...

    def create(self, bad_habit: BadHabit, *, user_id: int) -> BadHabit:
        ...

    def update(self, bad_habit: BadHabit, *, user_id: int) -> BadHabit:
        ...

    def soft_delete(self, bad_habit_id: int, *, user_id: int) -> bool:
        ...
