"""Service module exports."""

from . import (
    admin_tasks,
    auth,
    charts,
    dates,
    export,
    guidance,
    progress,
    routines,
    schedule,
    streaks,
    tracking,
)

__all__ = [
    "admin_tasks",
    "auth",
    "charts",
    "dates",
    "export",
    "guidance",
    "progress",
    "routines",
    "schedule",
    "streaks",
    "tracking",
]
