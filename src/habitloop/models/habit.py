"""Habit tracking data structures."""

from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from typing import ClassVar, Optional

from sqlalchemy import JSON, Column, UniqueConstraint
from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class HabitFrequency(str, Enum):
    """How often a habit is expected to be completed."""

    DAILY = "daily"
    WEEKLY = "weekly"
    CUSTOM = "custom"


class RoutineType(str, Enum):
    """Time-of-day bucket a habit is displayed under."""

    MORNING = "morning"
    EVENING = "evening"
    ANYTIME = "anytime"


class Habit(SQLModel, table=True):
    """A recurring behaviour designed with the four laws.

    ``current_streak`` and ``longest_streak`` are a denormalized cache that is
    refreshed after every confirmed log write; read paths that need exact
    numbers recompute them from the logs.
    """

    __tablename__: ClassVar[str] = "habit"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    name: str = Field(nullable=False, max_length=100, index=True)
    identity_reason: str = Field(default="", max_length=500)

    # Implementation intention
    action: str = Field(default="", max_length=255)
    time_of_day: str = Field(default="", max_length=100)
    location: str = Field(default="", max_length=255)
    two_minute_version: str = Field(default="", max_length=255)

    # Make it obvious
    cue: str = Field(default="", max_length=255)
    context: Optional[str] = Field(default=None, max_length=500)
    habit_stacking: Optional[str] = Field(default=None, max_length=500)

    # Make it attractive
    temptation_bundling: Optional[str] = Field(default=None, max_length=500)
    emotional_why: Optional[str] = Field(default=None, max_length=500)
    anticipated_reward: Optional[str] = Field(default=None, max_length=500)

    # Make it easy
    friction_reducers: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    friction_adders_for_bad: list[str] = Field(
        default_factory=list, sa_column=Column(JSON, nullable=False)
    )

    # Make it satisfying
    immediate_reward: Optional[str] = Field(default=None, max_length=500)

    frequency: str = Field(default=HabitFrequency.DAILY.value, max_length=16)
    target_days: Optional[list[int]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    routine_type: str = Field(default=RoutineType.ANYTIME.value, max_length=16, index=True)

    is_active: bool = Field(default=True, nullable=False)
    current_streak: int = Field(default=0, nullable=False)
    longest_streak: int = Field(default=0, nullable=False)

    created_at: datetime = Field(default_factory=_utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=_utcnow, nullable=False)


class HabitLog(SQLModel, table=True):
    """Completion status for one habit on one calendar day."""

    __tablename__: ClassVar[str] = "habit_log"
    __table_args__ = (UniqueConstraint("habit_id", "log_date", name="uq_habit_log_day"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    habit_id: int = Field(foreign_key="habit.id", nullable=False, index=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    log_date: date = Field(nullable=False, index=True)
    completed: bool = Field(default=False, nullable=False)
    notes: Optional[str] = Field(default=None, max_length=1000)

    created_at: datetime = Field(default_factory=_utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=_utcnow, nullable=False)
