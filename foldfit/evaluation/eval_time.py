"""Validation of evaluation time points against a metric set."""

from __future__ import annotations

import logging
import math
import warnings
from typing import Optional, Sequence, Tuple

from foldfit.errors import EvalTimeError
from foldfit.evaluation.metric_set import MetricSet
from foldfit.evaluation.metrics import INTEGRATED_SURVIVAL

logger = logging.getLogger(__name__)


def check_eval_time(
    eval_time: Optional[Sequence[float]],
    metrics: MetricSet,
) -> Optional[Tuple[float, ...]]:
    """Clean evaluation times and check them against the metrics.

    Missing values are dropped and duplicates removed, keeping the first
    occurrence. Times are only kept when a metric uses them.

    Returns:
        The cleaned times, or None when no metric is time-indexed.

    Raises:
        EvalTimeError: Negative or infinite times, time-indexed metrics
            without times, or integrated metrics with a single time.
    """
    times: list[float] = []
    if eval_time is not None:
        for t in eval_time:
            if t is None:
                continue
            t = float(t)
            if math.isnan(t):
                continue
            if math.isinf(t) or t < 0:
                raise EvalTimeError(f"Evaluation times must be finite and non-negative, got {t}")
            if t not in times:
                times.append(t)

    if not metrics.uses_eval_time:
        if times:
            warnings.warn(
                "Evaluation times are only used by dynamic or integrated survival "
                "metrics and will be ignored here.",
                UserWarning,
                stacklevel=3,
            )
            logger.debug("Ignoring eval_time=%s for metrics %s", times, metrics.names)
        return None

    if not times:
        raise EvalTimeError(
            "One or more metrics require evaluation times; pass them with `eval_time`."
        )
    if INTEGRATED_SURVIVAL in metrics.kinds and len(times) < 2:
        raise EvalTimeError("Integrated survival metrics need at least two evaluation times.")

    return tuple(times)
