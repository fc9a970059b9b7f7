"""Shared numeric normalization helpers for scores, budgets and risk factors."""
import math
from typing import Iterable


def round_to(value: float, places: int = 2) -> float:
    """
    Round half away from zero.

    Python's round() uses banker's rounding, which would make 0.125 -> 0.12;
    scores here always round 0.5 upward in magnitude.
    """
    factor = 10 ** places
    scaled = abs(value) * factor
    rounded = math.floor(scaled + 0.5) / factor
    return rounded if value >= 0 else -rounded


def round_int(value: float) -> int:
    """Round half up to an integer (0.5 -> 1, -0.5 -> 0)."""
    return math.floor(value + 0.5)


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))


def safe_mean(values: Iterable[float]) -> float:
    """Arithmetic mean, 0.0 for an empty sequence."""
    items = list(values)
    if not items:
        return 0.0
    return sum(items) / len(items)
