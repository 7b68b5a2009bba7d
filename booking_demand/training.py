"""
Grid evaluation and model selection

Evaluator: for each job
    training values -> seasonal transform -> model fit -> forecast(horizon)
    -> MAE against the held-out actuals
Jobs are independent, so the grid is a plain parallel map. A job that
fails (or runs past its time budget) is recorded as "unavailable" and never
aborts the grid.

Selector: per series, the lowest-MAE job wins; ties go to the job that
comes first in grid order.
"""

import logging
import os
import pickle
import signal
import threading
import time
from concurrent.futures import ProcessPoolExecutor, as_completed
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd

from .errors import ConfigError, FitTimeout
from .evaluation import ForecastMetrics, value_range
from .grid import Job
from .models import ModelSpec, import_backends, validate_forecast
from .seasonal import SeasonalSpec
from .series_store import Series, SeriesKey

logger = logging.getLogger(__name__)

STATUS_OK = "ok"
STATUS_UNAVAILABLE = "unavailable"
STATUS_NO_VIABLE_MODEL = "no_viable_model"


@dataclass(frozen=True, eq=False)
class EvaluationResult:
    """Outcome of one job; `mae` is +inf when the job is unavailable"""
    job: Job
    mae: float
    status: str
    forecast: Optional[np.ndarray] = None
    fitted: Any = None
    reason: Optional[str] = None
    fit_time: float = 0.0

    @classmethod
    def unavailable(cls, job: Job, reason: str, fit_time: float = 0.0) -> "EvaluationResult":
        return cls(
            job=job,
            mae=float("inf"),
            status=STATUS_UNAVAILABLE,
            reason=reason,
            fit_time=fit_time,
        )

    @property
    def available(self) -> bool:
        return self.status == STATUS_OK

    @property
    def series_key(self) -> SeriesKey:
        return self.job.series_key

    @property
    def seasonal_name(self) -> str:
        return self.job.seasonal.name

    @property
    def model_name(self) -> str:
        return self.job.model.name


@contextmanager
def fit_deadline(seconds: Optional[float], label: str = ""):
    """
    Raise FitTimeout inside the block once `seconds` of wall time pass.

    Uses SIGALRM, so it only arms on POSIX in the main thread of a process
    (pool workers run jobs in their main thread). Elsewhere it is a no-op.
    """
    armed = (
        seconds is not None
        and seconds > 0
        and hasattr(signal, "SIGALRM")
        and threading.current_thread() is threading.main_thread()
    )
    if not armed:
        yield
        return

    def _on_alarm(signum, frame):
        raise FitTimeout(f"{label} exceeded fit timeout of {seconds:g}s")

    previous = signal.signal(signal.SIGALRM, _on_alarm)
    signal.setitimer(signal.ITIMER_REAL, seconds)
    try:
        yield
    finally:
        signal.setitimer(signal.ITIMER_REAL, 0)
        signal.signal(signal.SIGALRM, previous)


def evaluate_job(job: Job, fit_timeout: Optional[float] = None) -> EvaluationResult:
    """Fit, forecast and score one job; failures become an unavailable result"""
    series = job.series
    horizon = series.horizon

    start_time = time.time()
    try:
        with fit_deadline(fit_timeout, job.label):
            seasonal_series = job.seasonal.transform(series.train_values)
            fitted = job.model.fit(seasonal_series)
            forecast = validate_forecast(fitted.forecast(horizon), horizon, job.model.name)
        mae = ForecastMetrics.mae(series.test_values, forecast, expected_length=horizon)
    except Exception as e:
        fit_time = time.time() - start_time
        logger.warning(f"[evaluate] {job.label} unavailable: {e}")
        return EvaluationResult.unavailable(job, reason=str(e), fit_time=fit_time)

    fit_time = time.time() - start_time
    return EvaluationResult(
        job=job,
        mae=mae,
        status=STATUS_OK,
        forecast=forecast,
        fitted=fitted,
        fit_time=fit_time,
    )


def _resolve_n_jobs(n_jobs: int) -> int:
    if n_jobs is None or n_jobs == 0:
        return 1
    if n_jobs < 0:
        return max(1, (os.cpu_count() or 1) + 1 + n_jobs)
    return n_jobs


def _check_picklable(jobs: Sequence[Job]) -> None:
    """
    Worker processes receive specs by pickling; lambdas and local closures
    only work in-process.

    Raises:
        ConfigError: a seasonal or model spec cannot be pickled
    """
    checked = set()
    for job in jobs:
        for spec in (job.seasonal, job.model):
            if id(spec) in checked:
                continue
            checked.add(id(spec))
            try:
                pickle.dumps(spec)
            except (pickle.PicklingError, AttributeError, TypeError) as e:
                raise ConfigError(
                    f"Spec {spec.name!r} cannot be sent to worker processes ({e}); "
                    f"use a module-level fitter or n_jobs=1"
                ) from e


class GridEvaluator:
    """Evaluates every job of a grid, optionally across worker processes"""

    def __init__(self, n_jobs: int = 1, fit_timeout: Optional[float] = None):
        """
        Args:
            n_jobs: Worker processes (1 = in-process, -1 = all cores)
            fit_timeout: Per-job seconds before the job is marked unavailable
        """
        self.n_jobs = _resolve_n_jobs(n_jobs)
        self.fit_timeout = fit_timeout

    def run(self, jobs: Sequence[Job]) -> List[EvaluationResult]:
        """Return one result per job, in grid order"""
        logger.info(
            f"[evaluate] {len(jobs)} jobs, n_jobs={self.n_jobs}, fit_timeout={self.fit_timeout}"
        )

        if self.n_jobs == 1 or len(jobs) <= 1:
            import_backends()
            results = []
            for done, job in enumerate(jobs, start=1):
                result = evaluate_job(job, self.fit_timeout)
                self._log_progress(result, done, len(jobs))
                results.append(result)
        else:
            _check_picklable(jobs)
            results = self._run_pool(jobs)

        results.sort(key=lambda r: r.job.index)
        n_unavailable = sum(not r.available for r in results)
        logger.info(f"[evaluate] done: {len(results) - n_unavailable} ok, {n_unavailable} unavailable")
        return results

    def _run_pool(self, jobs: Sequence[Job]) -> List[EvaluationResult]:
        results: List[EvaluationResult] = []
        with ProcessPoolExecutor(max_workers=self.n_jobs, initializer=import_backends) as executor:
            futures = {executor.submit(evaluate_job, job, self.fit_timeout): job for job in jobs}
            for future in as_completed(futures):
                job = futures[future]
                try:
                    result = future.result()
                except Exception as e:
                    logger.warning(f"[evaluate] worker failed on {job.label}: {e}")
                    result = EvaluationResult.unavailable(job, reason=f"worker failed: {e}")
                results.append(result)
                self._log_progress(result, len(results), len(jobs))
        return results

    @staticmethod
    def _log_progress(result: EvaluationResult, done: int, total: int) -> None:
        if result.available:
            logger.info(
                f"[evaluate] {done}/{total} {result.job.label}: "
                f"mae={result.mae:.3f} ({result.fit_time:.1f}s)"
            )
        else:
            logger.info(f"[evaluate] {done}/{total} {result.job.label}: unavailable")


@dataclass(frozen=True, eq=False)
class BestConfig:
    """Winning job for one series, with its fitted handle kept for reuse"""
    series: Series
    seasonal: SeasonalSpec
    model: ModelSpec
    mae: float
    status: str
    fitted: Any = None
    forecast: Optional[np.ndarray] = None
    reason: Optional[str] = None

    @classmethod
    def from_result(cls, result: EvaluationResult) -> "BestConfig":
        return cls(
            series=result.job.series,
            seasonal=result.job.seasonal,
            model=result.job.model,
            mae=result.mae,
            status=STATUS_OK if result.available else STATUS_NO_VIABLE_MODEL,
            fitted=result.fitted,
            forecast=result.forecast,
            reason=result.reason,
        )

    @property
    def viable(self) -> bool:
        return self.status == STATUS_OK

    @property
    def series_key(self) -> SeriesKey:
        return self.series.key

    @property
    def seasonal_name(self) -> str:
        return self.seasonal.name

    @property
    def model_name(self) -> str:
        return self.model.name

    def _require_viable(self) -> None:
        if not self.viable:
            raise RuntimeError(
                f"Series {self.series_key.unique_id} has no viable model ({self.reason})"
            )

    def holdout_frame(self) -> pd.DataFrame:
        """Held-out actuals next to the winning forecast, for display/export"""
        self._require_viable()
        return pd.DataFrame({
            "unique_id": self.series_key.unique_id,
            "ds": self.series.test_ds,
            "y": self.series.test_values,
            "yhat": self.forecast,
            "seasonal": self.seasonal_name,
            "model": self.model_name,
        })

    def regenerate(self, horizon: Optional[int] = None) -> np.ndarray:
        """Forecast again from the retained handle (starts after the training window)"""
        self._require_viable()
        horizon = self.series.horizon if horizon is None else horizon
        return validate_forecast(self.fitted.forecast(horizon), horizon, self.model_name)

    def refit_forward(self, horizon: Optional[int] = None) -> pd.DataFrame:
        """
        Refit the winning seasonal/model pair on the full series and
        forecast past its last date.
        """
        self._require_viable()
        horizon = self.series.horizon if horizon is None else horizon

        fitted = self.model.fit(self.seasonal.transform(self.series.y))
        yhat = validate_forecast(fitted.forecast(horizon), horizon, self.model_name)
        ds = pd.date_range(self.series.ds[-1] + pd.Timedelta(days=1), periods=horizon, freq="D")
        return pd.DataFrame({
            "unique_id": self.series_key.unique_id,
            "ds": ds,
            "yhat": yhat,
            "seasonal": self.seasonal_name,
            "model": self.model_name,
        })


class ModelSelector:
    """Rank jobs per series by MAE and pick the best"""

    def select_best(self, results: Iterable[EvaluationResult]) -> Dict[SeriesKey, BestConfig]:
        """
        Minimum-MAE result per series key, in first-seen series order.

        Unavailable results carry mae=+inf so they only win when every job
        for the series failed; that BestConfig is flagged no_viable_model.
        """
        winners: Dict[SeriesKey, EvaluationResult] = {}
        for result in sorted(results, key=lambda r: r.job.index):
            current = winners.get(result.series_key)
            if current is None or result.mae < current.mae:
                winners[result.series_key] = result

        best = {key: BestConfig.from_result(result) for key, result in winners.items()}
        for key, config in best.items():
            if config.viable:
                logger.info(
                    f"[select] {key.unique_id}: {config.seasonal_name} + {config.model_name} "
                    f"(mae={config.mae:.3f})"
                )
            else:
                logger.warning(f"[select] {key.unique_id}: no viable model")
        return best

    def leaderboard(self, results: Iterable[EvaluationResult]) -> pd.DataFrame:
        """
        Ranked table per series: rank 1 is the selected job.

        Returns:
            DataFrame [unique_id, hotel, market_segment, seasonal, model,
            mae, rmse, bias, status, rank, is_best, fit_time, reason,
            grid_index]; rmse and bias are informational, ranking is by mae
        """
        rows = []
        for r in results:
            if r.available:
                secondary = ForecastMetrics.compute_all(r.job.series.test_values, r.forecast)
            else:
                secondary = {"rmse": np.nan, "bias": np.nan}
            rows.append({
                "unique_id": r.series_key.unique_id,
                "hotel": r.series_key.hotel,
                "market_segment": r.series_key.segment,
                "seasonal": r.seasonal_name,
                "model": r.model_name,
                "mae": r.mae if r.available else np.nan,
                "rmse": secondary["rmse"],
                "bias": secondary["bias"],
                "status": r.status,
                "fit_time": r.fit_time,
                "reason": r.reason,
                "grid_index": r.job.index,
                "_sort_mae": r.mae,
            })

        columns = [
            "unique_id", "hotel", "market_segment", "seasonal", "model", "mae",
            "rmse", "bias", "status", "rank", "is_best", "fit_time", "reason", "grid_index",
        ]
        if not rows:
            return pd.DataFrame(columns=columns)

        board = pd.DataFrame(rows)
        series_order = board.groupby("unique_id", sort=False)["grid_index"].transform("min")
        board = (
            board.assign(_series_order=series_order)
            .sort_values(["_series_order", "_sort_mae", "grid_index"], kind="mergesort")
            .reset_index(drop=True)
        )
        board["rank"] = board.groupby("unique_id", sort=False).cumcount() + 1
        board["is_best"] = (board["rank"] == 1) & (board["status"] == STATUS_OK)
        return board[columns]

    def best_table(self, best: Dict[SeriesKey, BestConfig]) -> pd.DataFrame:
        """One row per series, including series with no viable model"""
        rows = []
        for key, config in best.items():
            row = {
                "unique_id": key.unique_id,
                "hotel": key.hotel,
                "market_segment": key.segment,
                "seasonal": config.seasonal_name if config.viable else None,
                "model": config.model_name if config.viable else None,
                "mae": config.mae if config.viable else np.nan,
                "status": config.status,
            }
            row.update(value_range(config.series.test_values))
            rows.append(row)
        return pd.DataFrame(rows)
