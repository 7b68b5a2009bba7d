"""
Booking Demand - seasonal x model grid search over hotel booking series

Modules:
- ingest: bookings CSV -> arrival events (allow-listed segments)
- series_store: daily aggregation, global-calendar padding, train/holdout split
- seasonal: seasonal transform registry (weekly, monthly, weekly_monthly, annual)
- models: forecast model registry (holt_winter, arima, stl_ets, stl_arima)
- grid: series x seasonal x model job grid
- training: parallel evaluation (MAE) and per-series model selection
- tasks / cli: end-to-end pipeline, artifacts and Typer CLI
"""

from .config import PipelineConfig, load_config
from .errors import ConfigError, DataError, FitFailure, FitTimeout
from .evaluation import ForecastMetrics
from .grid import Job, build_grid
from .models import MODEL_REGISTRY, ForecastModel, ModelSpec
from .seasonal import SEASONAL_REGISTRY, SeasonalSeries, SeasonalSpec
from .series_store import Series, SeriesKey, SeriesStore
from .training import BestConfig, EvaluationResult, GridEvaluator, ModelSelector

__all__ = [
    # Config / errors
    "PipelineConfig",
    "load_config",
    "DataError",
    "ConfigError",
    "FitFailure",
    "FitTimeout",
    # Series
    "Series",
    "SeriesKey",
    "SeriesStore",
    # Registries
    "SeasonalSeries",
    "SeasonalSpec",
    "SEASONAL_REGISTRY",
    "ForecastModel",
    "ModelSpec",
    "MODEL_REGISTRY",
    # Grid / evaluation / selection
    "Job",
    "build_grid",
    "ForecastMetrics",
    "EvaluationResult",
    "GridEvaluator",
    "BestConfig",
    "ModelSelector",
]
