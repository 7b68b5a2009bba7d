"""
Error kinds for the booking demand pipeline.

- DataError: input or series cannot support the train/evaluation split
- ConfigError: unknown seasonal or model name, raised before any fitting
- FitFailure: a fitter did not produce a usable forecast (contained per job)
"""


class DataError(ValueError):
    """Input data cannot be turned into valid series (fail loud)."""


class ConfigError(ValueError):
    """Grid references a seasonal or model name that is not registered."""


class FitFailure(RuntimeError):
    """Model fit or forecast failed for a single job."""


class FitTimeout(FitFailure):
    """Model fit exceeded the per-job time budget."""
