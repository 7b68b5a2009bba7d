# file: booking_demand/tasks.py
"""
Pipeline Tasks

1. build_series   - bookings CSV -> padded daily series (data/series.parquet)
2. run_grid       - grid of series x seasonal x model, evaluated and ranked
3. write_reports  - leaderboard, best table, held-out forecasts, models
4. regenerate_forecast - reload a winner and forecast again for display

Artifacts are written atomically; the padded series are reused unless
overwrite is set.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple

import pandas as pd

from .config import PipelineConfig
from .errors import DataError
from .grid import build_grid
from .ingest import load_bookings
from .io_utils import atomic_dump_joblib, atomic_write_json, atomic_write_parquet, load_joblib
from .series_store import SeriesKey, SeriesStore, aggregate_daily_demand, pad_to_calendar
from .training import BestConfig, EvaluationResult, GridEvaluator, ModelSelector
from .validation import validate_daily_demand

logger = logging.getLogger(__name__)


def build_series(config: PipelineConfig) -> SeriesStore:
    """
    Task 1: aggregate + pad bookings into a SeriesStore.

    Raises:
        DataError: input problems, failed integrity gates, or a series too
            short for the evaluation window
    """
    series_path = config.series_path()

    if series_path.exists() and not config.overwrite:
        logger.info(f"[store] series exist, reusing: {series_path}")
        padded = pd.read_parquet(series_path)
        rebuilt = False
    else:
        events = load_bookings(
            config.data_path,
            segment_pattern=config.segment_pattern,
            exclude_canceled=config.exclude_canceled,
        )
        padded = pad_to_calendar(aggregate_daily_demand(events))
        rebuilt = True

    store = SeriesStore.from_frame(padded, horizon=config.horizon)
    frame = store.to_frame()

    report = validate_daily_demand(frame)
    if not report.ok:
        raise DataError(f"Daily demand failed validation: {report.message}")

    if rebuilt:
        atomic_write_parquet(frame, series_path)
        logger.info(f"[store] wrote series: {series_path} ({len(frame)} rows)")

    logger.info(
        f"[store] {len(store)} series, {report.details['length']} days each "
        f"({report.details['start']} to {report.details['end']})"
    )
    return store


def run_grid(
    store: SeriesStore,
    config: PipelineConfig,
    seasonal: Optional[Sequence] = None,
    models: Optional[Sequence] = None,
) -> Tuple[List[EvaluationResult], Dict[SeriesKey, BestConfig]]:
    """
    Task 2: evaluate every grid cell and select the best per series.

    `seasonal` / `models` default to the names in config; entries may also
    be SeasonalSpec / ModelSpec objects.
    """
    jobs = build_grid(
        list(store),
        seasonal=config.seasonal if seasonal is None else seasonal,
        models=config.models if models is None else models,
    )
    evaluator = GridEvaluator(n_jobs=config.n_jobs, fit_timeout=config.fit_timeout)
    results = evaluator.run(jobs)
    best = ModelSelector().select_best(results)
    return results, best


def write_reports(
    results: Sequence[EvaluationResult],
    best: Dict[SeriesKey, BestConfig],
    config: PipelineConfig,
    run_id: str = "",
) -> Dict[str, str]:
    """Task 3: persist the ranked table, best rows, forecasts and winners."""
    selector = ModelSelector()
    leaderboard = selector.leaderboard(results)
    best_df = selector.best_table(best)

    viable = {key.unique_id: cfg for key, cfg in best.items() if cfg.viable}
    if viable:
        forecasts = pd.concat([cfg.holdout_frame() for cfg in viable.values()], ignore_index=True)
    else:
        forecasts = pd.DataFrame(columns=["unique_id", "ds", "y", "yhat", "seasonal", "model"])

    atomic_write_parquet(leaderboard, config.leaderboard_path())
    atomic_write_parquet(best_df, config.best_path())
    atomic_write_parquet(forecasts, config.forecasts_path())
    atomic_dump_joblib(viable, config.models_path())

    metadata = {
        "run_id": run_id,
        "written_at": datetime.now(timezone.utc).isoformat(),
        "horizon": config.horizon,
        "seasonal": list(dict.fromkeys(r.seasonal_name for r in results)),
        "models": list(dict.fromkeys(r.model_name for r in results)),
        "n_jobs": len(results),
        "n_unavailable": int(sum(not r.available for r in results)),
        "no_viable_model": sorted(k.unique_id for k, cfg in best.items() if not cfg.viable),
        "metric": "mae",
    }
    atomic_write_json(metadata, config.metadata_path())

    logger.info(f"[report] wrote leaderboard ({len(leaderboard)} rows) to {config.leaderboard_path()}")
    return {
        "leaderboard": str(config.leaderboard_path()),
        "best": str(config.best_path()),
        "forecasts": str(config.forecasts_path()),
        "models": str(config.models_path()),
        "metadata": str(config.metadata_path()),
    }


def regenerate_forecast(
    config: PipelineConfig,
    unique_id: str,
    horizon: Optional[int] = None,
    forward: bool = False,
) -> pd.DataFrame:
    """
    Task 4: forecast again with a saved winner.

    forward=False replays the held-out window (actual vs yhat);
    forward=True refits on the full series and forecasts past its end.
    """
    winners: Dict[str, BestConfig] = load_joblib(config.models_path())
    if unique_id not in winners:
        raise KeyError(
            f"No viable saved model for {unique_id!r}; available: {sorted(winners)}"
        )

    best = winners[unique_id]
    if forward:
        return best.refit_forward(horizon)
    if horizon is None or horizon == best.series.horizon:
        return best.holdout_frame()

    yhat = best.regenerate(horizon)
    ds = pd.date_range(best.series.test_ds[0], periods=horizon, freq="D")
    return pd.DataFrame({
        "unique_id": unique_id,
        "ds": ds,
        "yhat": yhat,
        "seasonal": best.seasonal_name,
        "model": best.model_name,
    })


def run_full_pipeline(config: PipelineConfig) -> Dict[str, object]:
    run_id = config.run_id()
    logger.info(f"[pipeline] run {run_id}")

    store = build_series(config)
    results, best = run_grid(store, config)
    paths = write_reports(results, best, config, run_id=run_id)

    summary: Dict[str, object] = {
        "run_id": run_id,
        "series": len(store),
        "jobs": len(results),
        "unavailable_jobs": sum(not r.available for r in results),
    }
    for key, cfg in best.items():
        if cfg.viable:
            summary[key.unique_id] = f"{cfg.seasonal_name} + {cfg.model_name} (mae={cfg.mae:.3f})"
        else:
            summary[key.unique_id] = "no viable model"
    summary.update(paths)
    return summary
