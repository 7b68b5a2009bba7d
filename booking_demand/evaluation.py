# file: booking_demand/evaluation.py
"""
Forecast evaluation metrics

MAE is the ranking metric. MAPE is deliberately not used: several
segments have held-out days with zero arrivals, which makes percentage
error undefined or explode.
"""

import logging
from typing import Dict, Optional

import numpy as np

logger = logging.getLogger(__name__)


def _paired(y_true, y_pred, expected_length: Optional[int] = None):
    """Validate and align actual/forecast arrays (fail loud on mismatch)"""
    y_true = np.asarray(y_true, dtype=float).reshape(-1)
    y_pred = np.asarray(y_pred, dtype=float).reshape(-1)

    if y_true.shape[0] != y_pred.shape[0]:
        raise ValueError(
            f"Forecast length {y_pred.shape[0]} != actual length {y_true.shape[0]}"
        )
    if expected_length is not None and y_true.shape[0] != expected_length:
        raise ValueError(
            f"Expected {expected_length} evaluation points, got {y_true.shape[0]}"
        )
    if y_true.shape[0] == 0:
        raise ValueError("Cannot score an empty evaluation window")
    if not (np.isfinite(y_true).all() and np.isfinite(y_pred).all()):
        raise ValueError("Actual and forecast values must be finite")
    return y_true, y_pred


class ForecastMetrics:
    """Compute forecasting evaluation metrics"""

    @staticmethod
    def mae(
        y_true: np.ndarray,
        y_pred: np.ndarray,
        expected_length: Optional[int] = None,
    ) -> float:
        """
        Mean Absolute Error

        Raises ValueError when lengths differ (or differ from
        expected_length) or any value is non-finite.
        """
        y_true, y_pred = _paired(y_true, y_pred, expected_length)
        return float(np.mean(np.abs(y_pred - y_true)))

    @staticmethod
    def rmse(
        y_true: np.ndarray,
        y_pred: np.ndarray,
        expected_length: Optional[int] = None,
    ) -> float:
        """Root Mean Squared Error"""
        y_true, y_pred = _paired(y_true, y_pred, expected_length)
        return float(np.sqrt(np.mean((y_pred - y_true) ** 2)))

    @staticmethod
    def bias(y_true: np.ndarray, y_pred: np.ndarray) -> float:
        """Mean signed error (positive = over-forecast)"""
        y_true, y_pred = _paired(y_true, y_pred)
        return float(np.mean(y_pred - y_true))

    @staticmethod
    def compute_all(y_true: np.ndarray, y_pred: np.ndarray) -> Dict[str, float]:
        return {
            "mae": ForecastMetrics.mae(y_true, y_pred),
            "rmse": ForecastMetrics.rmse(y_true, y_pred),
            "bias": ForecastMetrics.bias(y_true, y_pred),
        }


def value_range(y: np.ndarray) -> Dict[str, float]:
    """Min / mean / max of a window, to put an MAE in context"""
    y = np.asarray(y, dtype=float)
    return {
        "actual_min": float(np.min(y)),
        "actual_mean": float(np.mean(y)),
        "actual_max": float(np.max(y)),
    }
