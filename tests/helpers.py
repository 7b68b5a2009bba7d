"""Synthetic builders and stub fitters shared by the tests."""

import time

import numpy as np
import pandas as pd

from booking_demand.errors import FitFailure
from booking_demand.models import ModelSpec
from booking_demand.series_store import Series, SeriesKey

WEEKLY_PATTERN = np.array([3.0, 4.0, 5.0, 6.0, 9.0, 12.0, 8.0])


def make_series(values, key=("City Hotel", "Online TA"), start="2016-01-01", horizon=30):
    values = np.asarray(values, dtype=float)
    return Series(
        key=SeriesKey(*key),
        ds=pd.date_range(start, periods=len(values), freq="D"),
        y=values,
        horizon=horizon,
    )


def weekly_values(n_days=120, level=10.0, noise=0.0, seed=0):
    rng = np.random.default_rng(seed)
    pattern = np.resize(WEEKLY_PATTERN, n_days)
    return level + pattern + rng.normal(0.0, noise, n_days) if noise else level + pattern


class StubHandle:
    def __init__(self, values):
        self.values = np.asarray(values, dtype=float)

    def forecast(self, horizon):
        return self.values[:horizon]


def constant_spec(name, value):
    """Fitter that always forecasts `value`"""
    return ModelSpec(name, lambda s: StubHandle(np.full(30, float(value))))


def perfect_spec(series, name="perfect"):
    """Fitter that 'knows' the held-out window of `series`"""
    return ModelSpec(name, lambda s: StubHandle(series.test_values))


def _always_fail(seasonal_series):
    raise FitFailure("stub fitter always fails")


def _flat_four(seasonal_series):
    return StubHandle(np.full(30, 4.0))


def _sleepy(seasonal_series):
    time.sleep(5)
    return StubHandle(np.zeros(30))


FAILING_SPEC = ModelSpec("always_fails", _always_fail)
SLEEPY_SPEC = ModelSpec("sleepy", _sleepy)
# picklable: usable with n_jobs > 1 and in saved artifacts
FLAT_SPEC = ModelSpec("flat", _flat_four)


def make_bookings(start="2016-01-01", n_days=120, seed=7):
    """
    Raw bookings rows in the hotel_bookings.csv layout.

    City Hotel / Online TA books every day, Resort Hotel / Direct only on
    weekends and starts two weeks late, Groups is noise the pipeline drops.
    """
    rng = np.random.default_rng(seed)
    rows = []
    for offset, day in enumerate(pd.date_range(start, periods=n_days, freq="D")):
        plan = [("City Hotel", "Online TA", 5 + int(WEEKLY_PATTERN[day.dayofweek]))]
        if day.dayofweek >= 5 and offset >= 14:
            plan.append(("Resort Hotel", "Direct", 3))
        plan.append(("City Hotel", "Groups", 2))
        for hotel, segment, count in plan:
            for _ in range(count):
                rows.append({
                    "hotel": hotel,
                    "is_canceled": int(rng.random() < 0.1),
                    "arrival_date_year": day.year,
                    "arrival_date_month": day.strftime("%B"),
                    "arrival_date_day_of_month": day.day,
                    "market_segment": segment,
                })
    return pd.DataFrame(rows)
