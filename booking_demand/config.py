# file: booking_demand/config.py
"""
Pipeline Configuration

Frozen settings shared by every stage, plus path helpers for artifacts.
Overrides come from the environment (or a local .env file) so every run
logs the same config.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv

SEASONAL_NAMES: Tuple[str, ...] = ("weekly", "monthly", "weekly_monthly", "annual")
MODEL_NAMES: Tuple[str, ...] = ("holt_winter", "arima", "stl_ets", "stl_arima")


@dataclass(frozen=True)
class PipelineConfig:
    # Data parameters
    data_path: str = "data/hotel_bookings.csv"
    segment_pattern: str = r"TA|Direct"
    exclude_canceled: bool = True

    # IO
    artifacts_dir: str = "artifacts"
    overwrite: bool = False

    # Grid / evaluation
    horizon: int = 30
    seasonal: Tuple[str, ...] = SEASONAL_NAMES
    models: Tuple[str, ...] = MODEL_NAMES
    n_jobs: int = 1
    fit_timeout: Optional[float] = 300.0

    def run_id(self) -> str:
        return datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")

    def artifacts_path(self) -> Path:
        return Path(self.artifacts_dir)

    def series_path(self) -> Path:
        return self.artifacts_path() / "series.parquet"

    def leaderboard_path(self) -> Path:
        return self.artifacts_path() / "leaderboard.parquet"

    def best_path(self) -> Path:
        return self.artifacts_path() / "best.parquet"

    def forecasts_path(self) -> Path:
        return self.artifacts_path() / "forecasts.parquet"

    def models_path(self) -> Path:
        return self.artifacts_path() / "best_models.joblib"

    def metadata_path(self) -> Path:
        return self.artifacts_path() / "metadata.json"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _env_timeout(name: str, default: Optional[float]) -> Optional[float]:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    if raw in ("none", "off", "0"):
        return None
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number of seconds or 'none', got {raw!r}") from None


def load_config(**overrides) -> PipelineConfig:
    """
    Build a PipelineConfig from defaults, environment, then explicit overrides.

    Reads BOOKING_DATA_PATH, BOOKING_ARTIFACTS_DIR, BOOKING_N_JOBS and
    BOOKING_FIT_TIMEOUT from the environment or a .env file.
    """
    load_dotenv()

    base = PipelineConfig()
    cfg = replace(
        base,
        data_path=os.getenv("BOOKING_DATA_PATH", base.data_path),
        artifacts_dir=os.getenv("BOOKING_ARTIFACTS_DIR", base.artifacts_dir),
        n_jobs=_env_int("BOOKING_N_JOBS", base.n_jobs),
        fit_timeout=_env_timeout("BOOKING_FIT_TIMEOUT", base.fit_timeout),
    )
    return replace(cfg, **overrides)
