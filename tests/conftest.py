import pytest

from tests.helpers import make_bookings, make_series, weekly_values


@pytest.fixture
def weekly_series():
    return make_series(weekly_values())


@pytest.fixture
def bookings_csv(tmp_path):
    path = tmp_path / "hotel_bookings.csv"
    make_bookings().to_csv(path, index=False)
    return path
