"""Bad habit analysis using the inverted four laws."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel


class BadHabit(SQLModel, table=True):
    """Loop breakdown of an undesired habit and the plan to break it."""

    __tablename__: ClassVar[str] = "bad_habit"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    name: str = Field(nullable=False, max_length=100)

    cue: str = Field(default="", max_length=500)
    craving: str = Field(default="", max_length=500)
    response: str = Field(default="", max_length=500)
    reward: str = Field(default="", max_length=500)

    make_invisible: Optional[str] = Field(default=None, max_length=500)
    make_unattractive: Optional[str] = Field(default=None, max_length=500)
    make_difficult: Optional[str] = Field(default=None, max_length=500)
    make_unsatisfying: Optional[str] = Field(default=None, max_length=500)

    is_active: bool = Field(default=True, nullable=False)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), nullable=False)
