"""Identity onboarding form."""

from __future__ import annotations

from typing import Iterable

from pydantic import BaseModel, ConfigDict, Field, field_validator


class IdentityForm(BaseModel):
    """Who the user wants to become and the values behind it."""

    model_config = ConfigDict(str_strip_whitespace=True, validate_default=True)

    who_you_want_to_be: str = Field(default="", max_length=500)
    core_values: list[str] = Field(default_factory=list)

    @field_validator("who_you_want_to_be")
    @classmethod
    def require_statement(cls, value: str) -> str:
        if not value:
            raise ValueError("Describe who you want to become.")
        return value

    @field_validator("core_values", mode="before")
    @classmethod
    def split_values(cls, value: str | Iterable[str]) -> list[str] | Iterable[str]:
        """Accept comma-separated strings as well as lists."""

        if isinstance(value, str):
            return [part.strip() for part in value.split(",")]
        return value

    @field_validator("core_values")
    @classmethod
    def require_values(cls, value: list[str]) -> list[str]:
        cleaned: list[str] = []
        for item in value:
            item = item.strip()
            if item and item not in cleaned:
                cleaned.append(item)
        if not cleaned:
            raise ValueError("Choose at least one core value.")
        return cleaned


__all__ = ["IdentityForm"]
