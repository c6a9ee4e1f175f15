"""Per-user settings stored in the database."""

from __future__ import annotations

from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel


class UserSetting(SQLModel, table=True):
    """Key-value storage for user preferences such as the theme."""

    __tablename__: ClassVar[str] = "user_setting"

    user_id: int = Field(foreign_key="user.id", primary_key=True)
    key: str = Field(primary_key=True, max_length=64)
    value: str = Field(nullable=False, max_length=255)
    description: Optional[str] = Field(default=None, max_length=255)
