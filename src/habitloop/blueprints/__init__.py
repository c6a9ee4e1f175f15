"""Blueprint exports."""

from . import auth, bad_habits, habits, identity, progress, scorecard, settings

__all__ = [
    "auth",
    "bad_habits",
    "habits",
    "identity",
    "progress",
    "scorecard",
    "settings",
]
