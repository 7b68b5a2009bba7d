"""
Seasonal Transform Tests

Transforms annotate periods and never touch the values.
"""

import numpy as np
import pytest

from booking_demand.errors import DataError
from booking_demand.seasonal import SEASONAL_REGISTRY, SeasonalSeries

EXPECTED_PERIODS = {
    "weekly": (7,),
    "monthly": (28,),
    "weekly_monthly": (7, 28),
    "annual": (365,),
}


class TestRegistry:

    def test_registry_names_in_order(self):
        assert list(SEASONAL_REGISTRY) == ["weekly", "monthly", "weekly_monthly", "annual"]

    @pytest.mark.parametrize("name,periods", sorted(EXPECTED_PERIODS.items()))
    def test_declared_periods(self, name, periods):
        out = SEASONAL_REGISTRY[name].transform(np.arange(50.0))
        assert out.periods == periods

    def test_only_weekly_monthly_is_multi_seasonal(self):
        multi = [
            name for name, spec in SEASONAL_REGISTRY.items()
            if spec.transform(np.ones(10)).is_multi_seasonal
        ]
        assert multi == ["weekly_monthly"]


class TestTransformContract:

    @pytest.mark.parametrize("name", list(SEASONAL_REGISTRY))
    @pytest.mark.parametrize("n", [8, 30, 400])
    def test_all_zero_input(self, name, n):
        out = SEASONAL_REGISTRY[name].transform([0.0] * n)

        assert isinstance(out, SeasonalSeries)
        assert len(out) == n
        assert not out.values.any()

    @pytest.mark.parametrize("name", list(SEASONAL_REGISTRY))
    def test_values_unchanged(self, name):
        raw = np.array([3.0, 0.0, 7.5, 2.0, 11.0, 4.0, 6.0, 1.0, 9.0])
        out = SEASONAL_REGISTRY[name].transform(raw)

        assert np.array_equal(out.values, raw)

    def test_input_not_aliased(self):
        raw = np.array([1.0, 2.0, 3.0])
        out = SEASONAL_REGISTRY["weekly"].transform(raw)
        raw[0] = 99.0

        assert out.values[0] == 1.0
        assert not out.values.flags.writeable

    def test_primary_period_is_first_declared(self):
        out = SEASONAL_REGISTRY["weekly_monthly"].transform(np.ones(10))
        assert out.primary_period == 7

    @pytest.mark.fail_loud
    def test_empty_input_raises(self):
        with pytest.raises(DataError):
            SEASONAL_REGISTRY["weekly"].transform([])
