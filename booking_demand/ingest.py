# file: booking_demand/ingest.py
"""
Booking Ingest: raw CSV -> arrival-level events

Steps:
1. Read the bookings table
2. Combine arrival year / month name / day into one calendar date
3. Drop canceled bookings (optional)
4. Keep only forecast-worthy market segments
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

import pandas as pd

from .errors import DataError

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = (
    "hotel",
    "is_canceled",
    "arrival_date_year",
    "arrival_date_month",
    "arrival_date_day_of_month",
    "market_segment",
)


def read_bookings(path: Union[str, Path]) -> pd.DataFrame:
    """Read the raw bookings CSV and check the required columns exist."""
    path = Path(path)
    if not path.exists():
        raise DataError(f"Bookings file not found: {path}")

    df = pd.read_csv(path)
    missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        raise DataError(f"Bookings file {path} missing required columns: {missing}")

    logger.info("[ingest] read %d bookings from %s", len(df), path)
    return df


def combine_arrival_date(df: pd.DataFrame) -> pd.Series:
    """
    Build a single arrival date from the year / month-name / day columns.

    Raises DataError on any unparseable combination instead of coercing to NaT.
    """
    raw = (
        df["arrival_date_year"].astype(str)
        + "-"
        + df["arrival_date_month"].astype(str).str.strip()
        + "-"
        + df["arrival_date_day_of_month"].astype(str)
    )
    try:
        return pd.to_datetime(raw, format="%Y-%B-%d", errors="raise")
    except (ValueError, TypeError) as exc:
        raise DataError(f"Invalid arrival date components: {exc}") from exc


def prepare_bookings(
    df: pd.DataFrame,
    segment_pattern: str = r"TA|Direct",
    exclude_canceled: bool = True,
) -> pd.DataFrame:
    """
    Reduce raw bookings to forecastable arrival events.

    Args:
        df: Raw bookings with REQUIRED_COLUMNS
        segment_pattern: Regex selecting market segments to keep
        exclude_canceled: Drop rows with is_canceled == 1

    Returns:
        DataFrame with columns [hotel, market_segment, arrival_date]
    """
    missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        raise DataError(f"Missing required columns: {missing}")

    work = df.copy()
    work["arrival_date"] = combine_arrival_date(work)

    if exclude_canceled:
        canceled = pd.to_numeric(work["is_canceled"], errors="raise").astype(bool)
        logger.info("[ingest] dropping %d canceled bookings", int(canceled.sum()))
        work = work[~canceled]

    segment_mask = work["market_segment"].astype(str).str.contains(segment_pattern, regex=True)
    work = work[segment_mask]

    if work.empty:
        raise DataError(
            f"No bookings left after filtering (segment_pattern={segment_pattern!r}, "
            f"exclude_canceled={exclude_canceled})"
        )

    events = work[["hotel", "market_segment", "arrival_date"]].reset_index(drop=True)
    logger.info(
        "[ingest] kept %d events across segments %s",
        len(events),
        sorted(events["market_segment"].unique().tolist()),
    )
    return events


def load_bookings(
    path: Union[str, Path],
    segment_pattern: str = r"TA|Direct",
    exclude_canceled: bool = True,
) -> pd.DataFrame:
    return prepare_bookings(
        read_bookings(path),
        segment_pattern=segment_pattern,
        exclude_canceled=exclude_canceled,
    )
