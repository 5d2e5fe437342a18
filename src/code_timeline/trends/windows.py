"""Windowed trend detection over short metric series.

A series needs at least ``MIN_TREND_POINTS`` points before any direction is
reported. The earliest and the most recent ``w = min(3, ceil(n / 2))`` points
are averaged and compared, so ``[0.5, 0.5, 0.9]`` compares 0.7 with 0.5.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Optional, Sequence

import numpy as np

MIN_TREND_POINTS = 3
MAX_WINDOW = 3


class TrendDirection(Enum):
    """Direction of a series where higher is better."""

    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


class GrowthDirection(Enum):
    """Direction of a series with no better or worse end."""

    INCREASING = "increasing"
    STABLE = "stable"
    DECREASING = "decreasing"


def window_size(n: int) -> int:
    return min(MAX_WINDOW, math.ceil(n / 2))


def window_means(values: Sequence[float]) -> Optional[tuple[float, float]]:
    """Return ``(older_mean, recent_mean)``, or None below the minimum length."""
    if len(values) < MIN_TREND_POINTS:
        return None
    arr = np.asarray(values, dtype=float)
    w = window_size(len(arr))
    return float(arr[:w].mean()), float(arr[-w:].mean())


def improvement_rate(values: Sequence[float]) -> float:
    """Recent window mean minus older window mean (0.0 for short series)."""
    means = window_means(values)
    if means is None:
        return 0.0
    older, recent = means
    return recent - older


def trend_direction(values: Sequence[float], margin: float) -> TrendDirection:
    delta = improvement_rate(values)
    if delta > margin:
        return TrendDirection.IMPROVING
    if delta < -margin:
        return TrendDirection.DECLINING
    return TrendDirection.STABLE


def growth_direction(values: Sequence[float], margin: float = 0.0) -> GrowthDirection:
    delta = improvement_rate(values)
    if delta > margin:
        return GrowthDirection.INCREASING
    if delta < -margin:
        return GrowthDirection.DECREASING
    return GrowthDirection.STABLE


def average(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    return float(np.mean(values))


def variability(values: Sequence[float]) -> float:
    """Population standard deviation (0.0 for an empty series)."""
    if len(values) == 0:
        return 0.0
    return float(np.std(np.asarray(values, dtype=float)))
