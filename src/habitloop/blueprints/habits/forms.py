"""Habit form definitions."""

from __future__ import annotations

from datetime import date
from typing import Any, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator

from ...models.habit import HabitFrequency, RoutineType

REQUIRED_FIELDS = {
    "name": "habit name",
    "identity_reason": "identity reason",
    "action": "action",
    "time_of_day": "time of day",
    "location": "location",
    "two_minute_version": "two-minute version",
    "cue": "cue",
}


def _split_list(value: Any) -> Any:
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return value


class HabitForm(BaseModel):
    """Form model for creating or editing a habit."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore", validate_default=True)

    name: str = Field(default="", max_length=100)
    identity_reason: str = Field(default="", max_length=500)

    action: str = Field(default="", max_length=255)
    time_of_day: str = Field(default="", max_length=100)
    location: str = Field(default="", max_length=255)
    two_minute_version: str = Field(default="", max_length=255)

    cue: str = Field(default="", max_length=255)
    context: Optional[str] = Field(default=None, max_length=500)
    habit_stacking: Optional[str] = Field(default=None, max_length=500)

    temptation_bundling: Optional[str] = Field(default=None, max_length=500)
    emotional_why: Optional[str] = Field(default=None, max_length=500)
    anticipated_reward: Optional[str] = Field(default=None, max_length=500)

    friction_reducers: list[str] = Field(default_factory=list)
    friction_adders_for_bad: list[str] = Field(default_factory=list)
    immediate_reward: Optional[str] = Field(default=None, max_length=500)

    frequency: HabitFrequency = Field(default=HabitFrequency.DAILY)
    target_days: Optional[list[int]] = Field(default=None)
    routine_type: RoutineType = Field(default=RoutineType.ANYTIME)

    @field_validator(*REQUIRED_FIELDS)
    @classmethod
    def require_text(cls, value: str, info: ValidationInfo) -> str:
        if not value:
            raise ValueError(f"Please provide the {REQUIRED_FIELDS[info.field_name]}.")
        return value

    @field_validator(
        "context",
        "habit_stacking",
        "temptation_bundling",
        "emotional_why",
        "anticipated_reward",
        "immediate_reward",
    )
    @classmethod
    def blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        return value or None

    @field_validator("friction_reducers", "friction_adders_for_bad", mode="before")
    @classmethod
    def split_lists(cls, value: str | Iterable[str] | None) -> Any:
        if value is None:
            return []
        return _split_list(value)

    @field_validator("target_days")
    @classmethod
    def validate_target_days(cls, value: Optional[list[int]]) -> Optional[list[int]]:
        if value is None:
            return None
        for day in value:
            if not 0 <= day <= 6:
                raise ValueError("Target days must be between 0 (Sunday) and 6 (Saturday).")
        return sorted(set(value)) or None

    @model_validator(mode="after")
    def drop_days_for_daily(self) -> "HabitForm":
        if self.frequency is HabitFrequency.DAILY:
            self.target_days = None
        return self

    def to_model_fields(self) -> dict[str, Any]:
        payload = self.model_dump()
        payload["frequency"] = self.frequency.value
        payload["routine_type"] = self.routine_type.value
        return payload


class ToggleForm(BaseModel):
    """Body of a toggle request; the day defaults to today."""

    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    day: Optional[date] = Field(default=None, alias="date")
    completed: Optional[bool] = None
    notes: Optional[str] = Field(default=None, max_length=1000)


__all__ = ["HabitForm", "ToggleForm"]
