# file: booking_demand/series_store.py
"""
Series Store: arrival events -> cadence-complete daily demand series

1. Count arrivals per (hotel, market_segment, day)
2. Reindex every series onto the GLOBAL daily calendar, zero-filling gaps
3. Split each series into a training window and a fixed evaluation tail

Padding uses the global min/max date of the whole dataset, so every series
has the same length and timestamp range even when a segment is silent for
long stretches.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterator, List, NamedTuple

import numpy as np
import pandas as pd

from .errors import DataError

logger = logging.getLogger(__name__)

DAILY = pd.Timedelta(days=1)


class SeriesKey(NamedTuple):
    """Composite series identifier: hotel identity + market segment."""
    hotel: str
    segment: str

    @property
    def unique_id(self) -> str:
        return f"{self.hotel}|{self.segment}"

    @classmethod
    def from_unique_id(cls, unique_id: str) -> "SeriesKey":
        hotel, sep, segment = unique_id.partition("|")
        if not sep:
            raise DataError(f"Malformed unique_id {unique_id!r}, expected 'hotel|segment'")
        return cls(hotel, segment)


@dataclass(frozen=True)
class Series:
    """A cadence-complete daily series with a held-out evaluation tail"""
    key: SeriesKey
    ds: pd.DatetimeIndex
    y: np.ndarray
    horizon: int = 30

    def __post_init__(self):
        """Validate length and cadence"""
        if self.horizon <= 0:
            raise DataError(f"Evaluation horizon must be positive, got {self.horizon}")
        if len(self.ds) != len(self.y):
            raise DataError(
                f"Series {self.key.unique_id}: {len(self.ds)} timestamps vs {len(self.y)} values"
            )
        if len(self.y) < self.horizon + 1:
            raise DataError(
                f"Series {self.key.unique_id} too short: {len(self.y)} < {self.horizon + 1} "
                f"(need at least one training point before a {self.horizon}-day evaluation window)"
            )
        steps = np.diff(self.ds.values)
        if len(steps) and not (steps == np.timedelta64(1, "D")).all():
            raise DataError(f"Series {self.key.unique_id} is not on a contiguous daily cadence")

    def __len__(self) -> int:
        return len(self.y)

    @property
    def split_index(self) -> int:
        return len(self.y) - self.horizon

    @property
    def train_values(self) -> np.ndarray:
        return self.y[: self.split_index]

    @property
    def test_values(self) -> np.ndarray:
        return self.y[self.split_index:]

    @property
    def train_ds(self) -> pd.DatetimeIndex:
        return self.ds[: self.split_index]

    @property
    def test_ds(self) -> pd.DatetimeIndex:
        return self.ds[self.split_index:]

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({
            "unique_id": self.key.unique_id,
            "hotel": self.key.hotel,
            "market_segment": self.key.segment,
            "ds": self.ds,
            "y": self.y,
            "is_holdout": np.arange(len(self.y)) >= self.split_index,
        })


def aggregate_daily_demand(events: pd.DataFrame) -> pd.DataFrame:
    """
    Count arrivals per (hotel, market_segment, arrival_date).

    Args:
        events: DataFrame with columns [hotel, market_segment, arrival_date]

    Returns:
        DataFrame with columns [hotel, market_segment, ds, y]
    """
    required = {"hotel", "market_segment", "arrival_date"}
    missing = required - set(events.columns)
    if missing:
        raise DataError(f"Events missing columns: {sorted(missing)}")
    if events.empty:
        raise DataError("No events to aggregate")

    work = events.copy()
    work["ds"] = pd.to_datetime(work["arrival_date"], errors="raise").dt.normalize()

    demand = (
        work.groupby(["hotel", "market_segment", "ds"])
        .size()
        .rename("y")
        .reset_index()
    )
    return demand


def pad_to_calendar(demand: pd.DataFrame) -> pd.DataFrame:
    """
    Reindex every series onto the global daily calendar, filling gaps with 0.

    The calendar spans the min..max date over ALL series, not each series'
    own range.
    """
    calendar = pd.date_range(demand["ds"].min(), demand["ds"].max(), freq="D")

    padded = []
    for (hotel, segment), group in demand.groupby(["hotel", "market_segment"], sort=True):
        y = (
            group.set_index("ds")["y"]
            .reindex(calendar, fill_value=0)
            .astype(float)
        )
        padded.append(pd.DataFrame({
            "hotel": hotel,
            "market_segment": segment,
            "ds": calendar,
            "y": y.to_numpy(),
        }))

    result = pd.concat(padded, ignore_index=True)
    logger.info(
        "[store] padded %d series to %d days (%s to %s)",
        len(padded), len(calendar), calendar[0].date(), calendar[-1].date(),
    )
    return result


class SeriesStore:
    """Named daily series built once, read-only afterwards"""

    def __init__(self, series: Dict[SeriesKey, Series]):
        if not series:
            raise DataError("SeriesStore needs at least one series")
        self._series = dict(series)

    @classmethod
    def from_frame(cls, padded: pd.DataFrame, horizon: int = 30) -> "SeriesStore":
        """
        Build a store from a padded frame [hotel, market_segment, ds, y].
        """
        series = {}
        for (hotel, segment), group in padded.groupby(["hotel", "market_segment"], sort=True):
            group = group.sort_values("ds")
            key = SeriesKey(str(hotel), str(segment))
            series[key] = Series(
                key=key,
                ds=pd.DatetimeIndex(group["ds"]),
                y=group["y"].to_numpy(dtype=float),
                horizon=horizon,
            )
        return cls(series)

    @classmethod
    def from_events(cls, events: pd.DataFrame, horizon: int = 30) -> "SeriesStore":
        return cls.from_frame(pad_to_calendar(aggregate_daily_demand(events)), horizon=horizon)

    def __len__(self) -> int:
        return len(self._series)

    def __iter__(self) -> Iterator[Series]:
        return iter(self._series.values())

    def __getitem__(self, key: SeriesKey) -> Series:
        if key not in self._series:
            raise KeyError(f"Unknown series {key}")
        return self._series[key]

    def keys(self) -> List[SeriesKey]:
        return list(self._series)

    def to_frame(self) -> pd.DataFrame:
        return pd.concat([s.to_frame() for s in self], ignore_index=True)
