"""Rounding helpers shared by the analytics services."""

from __future__ import annotations

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (2.5 -> 3)."""

    return math.floor(value + 0.5)


def percentage(part: float, whole: float) -> int:
    """Return ``part / whole`` as a whole percentage, 0 when ``whole`` is 0."""

    if not whole:
        return 0
    return round_half_up(part / whole * 100)


__all__ = ["percentage", "round_half_up"]
