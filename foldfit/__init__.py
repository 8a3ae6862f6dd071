"""Resampled evaluation of a single preprocessor + model workflow."""

from foldfit.config import ControlPolicy, ResampleConfig
from foldfit.data import ResampleSet, ResampleSplit, bootstraps, manual_rset, vfold_cv
from foldfit.errors import (
    ConfigurationError,
    EvalTimeError,
    InvalidPreprocessor,
    InvalidResampleKind,
    UnresolvedParameters,
)
from foldfit.evaluation import MetricSet, metric_set
from foldfit.fit_resamples import ResultCache, fit_resamples
from foldfit.preprocessing import FeaturePipeline, RecipePreprocessor
from foldfit.resampling import (
    ResampleResult,
    collect_extracts,
    collect_metrics,
    collect_notes,
    collect_predictions,
)
from foldfit.tuning import tune
from foldfit.workflows import FittedWorkflow, Workflow

__all__ = [
    "ConfigurationError",
    "ControlPolicy",
    "EvalTimeError",
    "FeaturePipeline",
    "FittedWorkflow",
    "InvalidPreprocessor",
    "InvalidResampleKind",
    "MetricSet",
    "RecipePreprocessor",
    "ResampleConfig",
    "ResampleResult",
    "ResampleSet",
    "ResampleSplit",
    "ResultCache",
    "UnresolvedParameters",
    "Workflow",
    "bootstraps",
    "collect_extracts",
    "collect_metrics",
    "collect_notes",
    "collect_predictions",
    "fit_resamples",
    "manual_rset",
    "metric_set",
    "tune",
    "vfold_cv",
]
