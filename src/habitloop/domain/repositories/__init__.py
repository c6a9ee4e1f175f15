"""Repository protocol definitions for domain layer."""

from .bad_habit import BadHabitRepository
from .habit import HabitRepository
from .identity import IdentityRepository
from .scorecard import ScorecardRepository
from .settings import SettingsRepository

__all__ = [
    "BadHabitRepository",
    "HabitRepository",
    "IdentityRepository",
    "ScorecardRepository",
    "SettingsRepository",
]
