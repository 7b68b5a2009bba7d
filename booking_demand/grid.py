# file: booking_demand/grid.py
"""
Combination grid: {series} x {seasonal transform} x {forecast model}

Every cell becomes one independent Job. Names are resolved against the
registries once, up front; an unknown name raises ConfigError before any
fitting work starts. Nothing is filtered out, including combinations that
are known to fit poorly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Mapping, Sequence, TypeVar, Union

from .errors import ConfigError
from .models import MODEL_REGISTRY, ModelSpec
from .seasonal import SEASONAL_REGISTRY, SeasonalSpec
from .series_store import Series, SeriesKey

logger = logging.getLogger(__name__)

SpecT = TypeVar("SpecT", SeasonalSpec, ModelSpec)


@dataclass(frozen=True, eq=False)
class Job:
    """One grid cell; `index` is its position in enumeration order."""

    index: int
    series: Series
    seasonal: SeasonalSpec
    model: ModelSpec

    @property
    def series_key(self) -> SeriesKey:
        return self.series.key

    @property
    def label(self) -> str:
        return f"{self.series.key.unique_id} / {self.seasonal.name} / {self.model.name}"


def resolve_specs(
    entries: Iterable[Union[str, SpecT]],
    registry: Mapping[str, SpecT],
    kind: str,
) -> List[SpecT]:
    """
    Turn names (or ready-made specs) into an ordered list of specs.

    Raises:
        ConfigError: unknown name, duplicate name, or empty selection
    """
    resolved: List[SpecT] = []
    unknown = []
    for entry in entries:
        if isinstance(entry, str):
            if entry not in registry:
                unknown.append(entry)
                continue
            resolved.append(registry[entry])
        else:
            resolved.append(entry)

    if unknown:
        raise ConfigError(
            f"Unknown {kind} name(s) {unknown}; available: {sorted(registry)}"
        )
    if not resolved:
        raise ConfigError(f"No {kind} specs selected")

    names = [spec.name for spec in resolved]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise ConfigError(f"Duplicate {kind} name(s): {duplicates}")
    return resolved


def build_grid(
    series: Sequence[Series],
    seasonal: Iterable[Union[str, SeasonalSpec]],
    models: Iterable[Union[str, ModelSpec]],
    seasonal_registry: Mapping[str, SeasonalSpec] = SEASONAL_REGISTRY,
    model_registry: Mapping[str, ModelSpec] = MODEL_REGISTRY,
) -> List[Job]:
    """
    Materialize the full cross product, series-major.

    Enumeration order (series, then seasonal, then model) is the tie-break
    order used by selection.
    """
    seasonal_specs = resolve_specs(seasonal, seasonal_registry, "seasonal")
    model_specs = resolve_specs(models, model_registry, "model")
    series = list(series)
    if not series:
        raise ConfigError("Grid needs at least one series")

    jobs: List[Job] = []
    for s in series:
        for seasonal_spec in seasonal_specs:
            for model_spec in model_specs:
                jobs.append(Job(len(jobs), s, seasonal_spec, model_spec))

    logger.info(
        "[grid] %d series x %d seasonal x %d models = %d jobs",
        len(series), len(seasonal_specs), len(model_specs), len(jobs),
    )
    return jobs
