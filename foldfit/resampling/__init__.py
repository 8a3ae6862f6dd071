"""
Resampling engine.

This module provides:
- fit_split: fit/evaluate one split (failure-isolated)
- ResultAccumulator: reorders outcomes into split order
- ResampleResult: outcomes plus run metadata
- run_resamples: the engine
- collect_*: tables derived from a result
"""

from foldfit.resampling.accumulator import ResultAccumulator
from foldfit.resampling.collect import (
    collect_extracts,
    collect_metrics,
    collect_notes,
    collect_predictions,
)
from foldfit.resampling.engine import RunMode, available_workers, run_resamples
from foldfit.resampling.results import ResampleResult, RsetInfo, build_result
from foldfit.resampling.unit import FAILURE, SUCCESS, Note, SplitOutcome, fit_split

__all__ = [
    "FAILURE",
    "SUCCESS",
    "Note",
    "ResampleResult",
    "ResultAccumulator",
    "RsetInfo",
    "RunMode",
    "SplitOutcome",
    "available_workers",
    "build_result",
    "collect_extracts",
    "collect_metrics",
    "collect_notes",
    "collect_predictions",
    "fit_split",
    "run_resamples",
]
