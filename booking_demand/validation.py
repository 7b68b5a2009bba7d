# file: booking_demand/validation.py
"""Integrity checks for the padded daily demand frame."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import pandas as pd

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationReport:
    ok: bool
    message: str
    details: dict


def validate_daily_demand(df: pd.DataFrame) -> ValidationReport:
    """
    Hard gates before any model is fitted:
    1. No duplicates on [unique_id, ds]
    2. Contiguous daily cadence within each series (no gaps)
    3. Every series spans the same global date range
    4. No null or negative demand

    Args:
        df: Padded frame with columns [unique_id, ds, y]
    """
    required = {"unique_id", "ds", "y"}
    missing_cols = required - set(df.columns)
    if missing_cols:
        return ValidationReport(False, f"Missing columns: {sorted(missing_cols)}", {})
    if df.empty:
        return ValidationReport(False, "Empty demand frame", {})

    work = df.sort_values(["unique_id", "ds"]).reset_index(drop=True)

    dup_counts = work.groupby(["unique_id", "ds"]).size()
    duplicate_pairs = int((dup_counts > 1).sum())

    gaps_by_series = {}
    ranges = {}
    for uid, sub in work.groupby("unique_id", sort=True):
        diffs = sub["ds"].diff().dropna()
        n_gaps = int((diffs != pd.Timedelta(days=1)).sum())
        if n_gaps:
            gaps_by_series[uid] = n_gaps
        ranges[uid] = (sub["ds"].min(), sub["ds"].max(), len(sub))

    distinct_ranges = set(ranges.values())
    n_null = int(work["y"].isna().sum())
    n_negative = int((work["y"] < 0).sum())

    details = {
        "n_rows": int(len(work)),
        "n_series": int(work["unique_id"].nunique()),
        "duplicate_pairs": duplicate_pairs,
        "gaps_by_series": gaps_by_series,
        "distinct_ranges": len(distinct_ranges),
        "null_y": n_null,
        "neg_y": n_negative,
    }

    problems = []
    if duplicate_pairs:
        problems.append(f"{duplicate_pairs} duplicate (unique_id, ds) pairs")
    if gaps_by_series:
        problems.append(f"Cadence gaps in {sorted(gaps_by_series)}")
    if len(distinct_ranges) > 1:
        problems.append("Series do not share one global date range")
    if n_null:
        problems.append(f"{n_null} null demand values")
    if n_negative:
        problems.append(f"Negative demand in {n_negative} rows")

    if problems:
        logger.warning("[validation] %s", "; ".join(problems))
        return ValidationReport(False, "; ".join(problems), details)

    start, end, length = next(iter(distinct_ranges))
    details.update({"start": str(start.date()), "end": str(end.date()), "length": length})
    return ValidationReport(True, "OK", details)
