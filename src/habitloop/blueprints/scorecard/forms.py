"""Scorecard item form."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...models.scorecard import Rating


class ScorecardItemForm(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, validate_default=True)

    habit_name: str = Field(default="", max_length=255)
    rating: Rating = Field(default=Rating.NEUTRAL)
    notes: Optional[str] = Field(default=None, max_length=1000)

    @field_validator("habit_name")
    @classmethod
    def require_name(cls, value: str) -> str:
        if not value:
            raise ValueError("Name the habit you are rating.")
        return value

    @field_validator("notes")
    @classmethod
    def blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        return value or None


__all__ = ["ScorecardItemForm"]
