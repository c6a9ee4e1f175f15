"""Habit scorecard inventory."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel


class Rating(str, Enum):
    """How an existing habit serves the desired identity."""

    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class ScorecardItem(SQLModel, table=True):
    """A pre-existing habit rated while taking inventory."""

    __tablename__: ClassVar[str] = "scorecard_item"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    habit_name: str = Field(nullable=False, max_length=255)
    rating: str = Field(default=Rating.NEUTRAL.value, max_length=16)
    notes: Optional[str] = Field(default=None, max_length=1000)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), nullable=False)
