"""
Exception hierarchy for resampling runs.

Configuration errors are fatal and raised before any split executes.
Per-split errors are raised inside a fit/eval unit and converted into
notes on that split's outcome; they never escape the engine.
"""

from __future__ import annotations


class ConfigurationError(ValueError):
    """Invalid run configuration. No splits are executed."""


class UnresolvedParameters(ConfigurationError):
    """The workflow still carries ``tune()`` placeholders."""

    def __init__(self, names: list[str]):
        self.names = list(names)
        super().__init__(
            "Resampling evaluates a single configuration; the workflow has "
            f"unresolved tuning parameters: {', '.join(self.names)}"
        )


class InvalidResampleKind(ConfigurationError):
    """The resample collection is empty or malformed."""


class InvalidPreprocessor(ConfigurationError):
    """A model was supplied without a formula-style or recipe preprocessor."""


class EvalTimeError(ConfigurationError):
    """Evaluation time points are missing, invalid or inconsistent with the metrics."""


class SplitError(Exception):
    """Base class for failures contained within a single split."""

    phase = "internal"


class PreprocessingError(SplitError):
    phase = "preprocessing"


class FittingError(SplitError):
    phase = "fitting"


class PredictionError(SplitError):
    phase = "prediction"


class ExtractionError(SplitError):
    phase = "extraction"
