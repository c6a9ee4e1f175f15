"""Identity statement captured during onboarding."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import ClassVar, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


class Identity(SQLModel, table=True):
    """Who the user wants to become, plus the values behind it."""

    __tablename__: ClassVar[str] = "identity"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, unique=True, index=True)
    who_you_want_to_be: str = Field(nullable=False, max_length=500)
    core_values: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), nullable=False)
