"""Preference forms."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


class ThemeForm(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    theme: Theme = Theme.SYSTEM


__all__ = ["Theme", "ThemeForm"]
