"""Coaching copy and four-laws reference data."""

from __future__ import annotations

from datetime import date
from typing import Any, Sequence

from .numbers import round_half_up
from .progress import completion_rate
from .streaks import current_streak

FOUR_LAWS = (
    {
        "law": 1,
        "key": "obvious",
        "title": "Make it obvious",
        "stage": "cue",
        "techniques": [
            "Fill out the habits scorecard to become aware of current habits.",
            "Use implementation intentions: I will [behavior] at [time] in [location].",
            "Use habit stacking: after [current habit], I will [new habit].",
            "Design your environment so the cue is visible.",
        ],
    },
    {
        "law": 2,
        "key": "attractive",
        "title": "Make it attractive",
        "stage": "craving",
        "techniques": [
            "Use temptation bundling: pair an action you want with one you need.",
            "Join a culture where the desired behavior is normal.",
            "Create a motivation ritual before difficult habits.",
        ],
    },
    {
        "law": 3,
        "key": "easy",
        "title": "Make it easy",
        "stage": "response",
        "techniques": [
            "Reduce friction: decrease the steps between you and good habits.",
            "Prime the environment for future use.",
            "Use the two-minute rule to downscale habits.",
            "Automate your habits.",
        ],
    },
    {
        "law": 4,
        "key": "satisfying",
        "title": "Make it satisfying",
        "stage": "reward",
        "techniques": [
            "Give yourself an immediate reward when you complete the habit.",
            "Use a habit tracker and never miss twice.",
            "Make bad habits unsatisfying with an accountability partner.",
        ],
    },
)

INVERTED_LAWS = (
    {"law": 1, "key": "make_invisible", "title": "Make it invisible", "stage": "cue"},
    {"law": 2, "key": "make_unattractive", "title": "Make it unattractive", "stage": "craving"},
    {"law": 3, "key": "make_difficult", "title": "Make it difficult", "stage": "response"},
    {"law": 4, "key": "make_unsatisfying", "title": "Make it unsatisfying", "stage": "reward"},
)

_TWO_MINUTE_SUGGESTIONS = {
    "meditat": "Meditate for two minutes",
    "read": "Read one page",
    "workout": "Do five push-ups",
    "exercise": "Put on your workout shoes",
    "writ": "Write one sentence",
    "journal": "Write one word",
    "yoga": "Hold one pose",
    "run": "Put on your running shoes",
    "guitar": "Play one chord",
    "piano": "Play one scale",
}


def motivational_message(streak: int) -> str:
    if streak <= 0:
        return "Start today!"
    if streak == 1:
        return "Day one! Keep it going!"
    if streak < 7:
        return f"{streak} days! You're building the routine!"
    if streak < 21:
        return f"{streak} days! The habit is settling in!"
    if streak < 66:
        return f"{streak} days! You're on the right track!"
    return f"{streak} days! This habit is part of who you are!"


def two_minute_suggestion(habit_name: str) -> str:
    """Suggest a two-minute starting version for a habit name."""

    lowered = habit_name.lower()
    for keyword, suggestion in _TWO_MINUTE_SUGGESTIONS.items():
        if keyword in lowered:
            return suggestion
    return f'Two-minute version of "{habit_name}"'


def health_message(score: int) -> str:
    if score >= 80:
        return "Excellent! Your system is solid and well established."
    if score >= 60:
        return "Good work! Keep reinforcing your habits."
    if score >= 40:
        return "Making progress. Focus on consistency."
    return "Just getting started. Start small and stay regular."


def habit_score(habit: Any, logs: Sequence[Any], today: date) -> int:
    """Blend of the recomputed current streak (60%) and 30-day completion rate (40%)."""

    streak = current_streak(habit, logs, today)
    return round_half_up(streak * 0.6 + completion_rate(logs, 30) * 0.4)


__all__ = [
    "FOUR_LAWS",
    "INVERTED_LAWS",
    "habit_score",
    "health_message",
    "motivational_message",
    "two_minute_suggestion",
]
