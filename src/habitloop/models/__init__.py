"""SQLModel table exports."""

from .bad_habit import BadHabit
from .habit import Habit, HabitFrequency, HabitLog, RoutineType
from .identity import Identity
from .scorecard import Rating, ScorecardItem
from .settings import UserSetting
from .user import User

__all__ = [
    "BadHabit",
    "Habit",
    "HabitFrequency",
    "HabitLog",
    "Identity",
    "Rating",
    "RoutineType",
    "ScorecardItem",
    "User",
    "UserSetting",
]
