# file: booking_demand/seasonal.py
"""
Seasonal transforms: annotate a raw daily sequence with its periodicities.

A transform never changes the values; it only declares which cycle
lengths the downstream model should treat as repeating.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Sequence, Tuple

import numpy as np

from .errors import DataError


@dataclass(frozen=True, eq=False)
class SeasonalSeries:
    """Values plus one or more declared seasonal periods."""

    values: np.ndarray
    periods: Tuple[int, ...]

    def __post_init__(self):
        if not self.periods or any(p < 1 for p in self.periods):
            raise DataError(f"Seasonal periods must be positive integers, got {self.periods}")

    def __len__(self) -> int:
        return len(self.values)

    @property
    def primary_period(self) -> int:
        """First declared period; used by single-season models."""
        return self.periods[0]

    @property
    def is_multi_seasonal(self) -> bool:
        return len(self.periods) > 1


@dataclass(frozen=True)
class SeasonalSpec:
    name: str
    transform: Callable[[Sequence[float]], SeasonalSeries]


def _annotate(values: Sequence[float], periods: Tuple[int, ...]) -> SeasonalSeries:
    arr = np.array(values, dtype=float)
    if arr.ndim != 1 or arr.size == 0:
        raise DataError("Seasonal transform needs a non-empty 1-D numeric sequence")
    arr.setflags(write=False)
    return SeasonalSeries(values=arr, periods=periods)


def weekly(values: Sequence[float]) -> SeasonalSeries:
    return _annotate(values, (7,))


def monthly(values: Sequence[float]) -> SeasonalSeries:
    # 4 weeks, keeps weekday alignment
    return _annotate(values, (7 * 4,))


def weekly_monthly(values: Sequence[float]) -> SeasonalSeries:
    return _annotate(values, (7, 7 * 4))


def annual(values: Sequence[float]) -> SeasonalSeries:
    return _annotate(values, (365,))


SEASONAL_REGISTRY: Dict[str, SeasonalSpec] = {
    spec.name: spec
    for spec in (
        SeasonalSpec("weekly", weekly),
        SeasonalSpec("monthly", monthly),
        SeasonalSpec("weekly_monthly", weekly_monthly),
        SeasonalSpec("annual", annual),
    )
}
