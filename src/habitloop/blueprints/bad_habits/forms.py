"""Bad habit analysis form."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BadHabitForm(BaseModel):
    """The habit loop of an unwanted habit and the inverted laws to break it."""

    model_config = ConfigDict(str_strip_whitespace=True, validate_default=True)

    name: str = Field(default="", max_length=100)
    cue: str = Field(default="", max_length=500)
    craving: str = Field(default="", max_length=500)
    response: str = Field(default="", max_length=500)
    reward: str = Field(default="", max_length=500)

    make_invisible: Optional[str] = Field(default=None, max_length=500)
    make_unattractive: Optional[str] = Field(default=None, max_length=500)
    make_difficult: Optional[str] = Field(default=None, max_length=500)
    make_unsatisfying: Optional[str] = Field(default=None, max_length=500)

    @field_validator("name")
    @classmethod
    def require_name(cls, value: str) -> str:
        if not value:
            raise ValueError("Please provide a habit name.")
        return value

    @field_validator("make_invisible", "make_unattractive", "make_difficult", "make_unsatisfying")
    @classmethod
    def blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        return value or None


__all__ = ["BadHabitForm"]
