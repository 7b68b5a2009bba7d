"""
Forecast model registry

Four fitters, each taking a SeasonalSeries and returning a fitted handle:
1. holt_winter - additive Holt-Winters (statsmodels), single period
2. arima       - automatic order selection (statsforecast AutoARIMA)
3. stl_ets     - MSTL decomposition + ETS on the deseasonalized part
4. stl_arima   - MSTL decomposition + AutoARIMA on the deseasonalized part

Single-period models fed a multi-seasonal series use its FIRST declared
period.
"""

import logging
import warnings
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, Optional

import numpy as np

from .errors import FitFailure
from .seasonal import SeasonalSeries

logger = logging.getLogger(__name__)

# Seasonal ARIMA cannot represent lags beyond this
MAX_SEASONAL_ARIMA_PERIOD = 350


def import_backends() -> None:
    """Load the fitting libraries up front (the fitters import lazily)"""
    import statsforecast.models  # noqa: F401
    import statsmodels.tsa.holtwinters  # noqa: F401


def validate_forecast(values, horizon: int, model_name: str) -> np.ndarray:
    """Coerce library output to a finite 1-D array of length horizon"""
    if hasattr(values, "values"):
        values = values.values
    arr = np.asarray(values, dtype=float).reshape(-1)

    if arr.shape[0] != horizon:
        raise FitFailure(f"{model_name} returned {arr.shape[0]} points, expected {horizon}")
    if not np.isfinite(arr).all():
        raise FitFailure(f"{model_name} produced non-finite forecasts")
    return arr


class ForecastModel(ABC):
    """Base class for fitted forecasters"""

    name: str = ""

    def __init__(self):
        self.season_length: Optional[int] = None
        self._fitted = None

    @classmethod
    def from_series(cls, series: SeasonalSeries) -> "ForecastModel":
        """Registry entry point: build and fit in one call"""
        return cls().fit(series)

    @abstractmethod
    def fit(self, series: SeasonalSeries) -> "ForecastModel":
        """Fit to a seasonally annotated series, return self"""
        pass

    @abstractmethod
    def _predict(self, horizon: int):
        """Raw point forecast from the fitted library object"""
        pass

    @property
    def is_fitted(self) -> bool:
        return self._fitted is not None

    def forecast(self, horizon: int) -> np.ndarray:
        """Point forecast of exactly `horizon` steps after the training window"""
        if horizon <= 0:
            raise ValueError("Horizon must be positive for forecasting.")
        if not self.is_fitted:
            raise RuntimeError(f"{self.name} must be fitted before forecasting. Call fit() first.")
        try:
            raw = self._predict(horizon)
        except FitFailure:
            raise
        except Exception as e:
            raise FitFailure(f"{self.name} forecast failed: {e}") from e
        return validate_forecast(raw, horizon, self.name)

    def _remember(self, series: SeasonalSeries, season_length: Optional[int] = None) -> np.ndarray:
        y = np.asarray(series.values, dtype=float)
        if y.size == 0:
            raise FitFailure(f"{self.name} cannot fit an empty series")
        self.season_length = season_length
        return y


class HoltWinterModel(ForecastModel):
    """Additive trend + additive season exponential smoothing"""

    name = "holt_winter"

    def fit(self, series: SeasonalSeries) -> "HoltWinterModel":
        from statsmodels.tools.sm_exceptions import ConvergenceWarning
        from statsmodels.tsa.holtwinters import ExponentialSmoothing

        period = series.primary_period
        if series.is_multi_seasonal:
            logger.debug(
                "[holt_winter] periods %s given, using first period %d", series.periods, period
            )
        y = self._remember(series, season_length=period)

        if y.size < 2 * period:
            raise FitFailure(
                f"holt_winter needs two full cycles of {period} observations, got {y.size}"
            )

        try:
            with warnings.catch_warnings():
                warnings.simplefilter("ignore", ConvergenceWarning)
                model = ExponentialSmoothing(
                    y,
                    trend="add",
                    seasonal="add",
                    seasonal_periods=period,
                    initialization_method="heuristic",
                )
                self._fitted = model.fit()
        except Exception as e:
            raise FitFailure(f"holt_winter fit failed: {e}") from e

        logger.debug(f"Holt-Winters(m={period}) fitted on {y.size} points")
        return self

    def _predict(self, horizon: int):
        return self._fitted.forecast(horizon)


class ArimaModel(ForecastModel):
    """AutoARIMA with the first declared period as season length"""

    name = "arima"

    def fit(self, series: SeasonalSeries) -> "ArimaModel":
        from statsforecast.models import AutoARIMA

        period = series.primary_period
        y = self._remember(series, season_length=period)

        if period > MAX_SEASONAL_ARIMA_PERIOD:
            raise FitFailure(
                f"arima seasonal period {period} exceeds {MAX_SEASONAL_ARIMA_PERIOD}"
            )

        try:
            self._fitted = AutoARIMA(season_length=period).fit(y=y)
        except Exception as e:
            raise FitFailure(f"arima fit failed: {e}") from e

        logger.debug(f"AutoARIMA(m={period}) fitted on {y.size} points")
        return self

    def _predict(self, horizon: int):
        return self._fitted.predict(h=horizon)["mean"]


class _StlModel(ForecastModel):
    """MSTL over every declared period, trend_forecaster on the remainder"""

    @abstractmethod
    def _trend_forecaster(self):
        pass

    def fit(self, series: SeasonalSeries):
        from statsforecast.models import MSTL

        periods = list(series.periods)
        y = self._remember(series, season_length=periods[0])

        try:
            model = MSTL(
                season_length=periods if len(periods) > 1 else periods[0],
                trend_forecaster=self._trend_forecaster(),
            )
            self._fitted = model.fit(y=y)
        except Exception as e:
            raise FitFailure(f"{self.name} fit failed: {e}") from e

        logger.debug(f"MSTL(m={periods}) + {self.name} fitted on {y.size} points")
        return self

    def _predict(self, horizon: int):
        return self._fitted.predict(h=horizon)["mean"]


class StlEtsModel(_StlModel):
    name = "stl_ets"

    def _trend_forecaster(self):
        from statsforecast.models import AutoETS

        # non-seasonal ETS; the seasonal part comes back from the decomposition
        return AutoETS(model="ZZN")


class StlArimaModel(_StlModel):
    name = "stl_arima"

    def _trend_forecaster(self):
        from statsforecast.models import AutoARIMA

        return AutoARIMA()


@dataclass(frozen=True)
class ModelSpec:
    name: str
    fit: Callable[[SeasonalSeries], ForecastModel]


MODEL_REGISTRY: Dict[str, ModelSpec] = {
    cls.name: ModelSpec(cls.name, cls.from_series)
    for cls in (HoltWinterModel, ArimaModel, StlEtsModel, StlArimaModel)
}
