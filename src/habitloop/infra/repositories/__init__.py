"""Concrete repository implementations using SQLModel."""

from .bad_habit import SQLModelBadHabitRepository
from .habit import SQLModelHabitRepository
from .identity import SQLModelIdentityRepository
from .scorecard import SQLModelScorecardRepository
from .settings import SQLModelSettingsRepository

__all__ = [
    "SQLModelBadHabitRepository",
    "SQLModelHabitRepository",
    "SQLModelIdentityRepository",
    "SQLModelScorecardRepository",
    "SQLModelSettingsRepository",
]
