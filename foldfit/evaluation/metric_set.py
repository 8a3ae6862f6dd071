"""
Metric sets: a validated group of metrics computed together on one
prediction table.

Results are keyed by ``(metric_name, eval_time)``; ``eval_time`` is None for
metrics that are not indexed by time.
"""

from __future__ import annotations

from typing import Dict, Iterator, List, Optional, Sequence, Set, Tuple

import numpy as np
import pandas as pd

from foldfit.errors import ConfigurationError
from foldfit.evaluation.metrics import (
    CLASS,
    DYNAMIC_SURVIVAL,
    INTEGRATED_SURVIVAL,
    METRICS,
    NUMERIC,
    PROB,
    STATIC_SURVIVAL,
    Metric,
    accuracy,
    brier_class,
    brier_survival,
    concordance_survival,
    roc_auc,
    rmse,
    rsq,
)

MetricKey = Tuple[str, Optional[float]]

# Prediction types requested from a fitted workflow, per metric kind
PRED_TYPES = {
    CLASS: "class",
    PROB: "prob",
    NUMERIC: "numeric",
    STATIC_SURVIVAL: "time",
    DYNAMIC_SURVIVAL: "survival",
    INTEGRATED_SURVIVAL: "survival",
}


def prob_column(level: object) -> str:
    return f".pred_{level}"


def survival_column(t: float) -> str:
    return f".pred_survival_{format(float(t), '.10g')}"


class MetricSet:
    """Ordered, validated collection of metrics from a single model family."""

    def __init__(self, metrics: Sequence[Metric | str]):
        resolved: List[Metric] = []
        for m in metrics:
            if isinstance(m, str):
                if m not in METRICS:
                    raise ConfigurationError(
                        f"Unknown metric: {m}. Supported: {list(METRICS.keys())}"
                    )
                m = METRICS[m]
            resolved.append(m)

        if not resolved:
            raise ConfigurationError("A metric set needs at least one metric.")

        names = [m.name for m in resolved]
        if len(set(names)) != len(names):
            raise ConfigurationError(f"Duplicate metrics in metric set: {names}")

        modes = {m.mode for m in resolved}
        if len(modes) > 1:
            raise ConfigurationError(
                "Metrics must all belong to one model mode; got "
                + ", ".join(f"{m.name} ({m.mode})" for m in resolved)
            )

        self._metrics = tuple(resolved)

    def __iter__(self) -> Iterator[Metric]:
        return iter(self._metrics)

    def __len__(self) -> int:
        return len(self._metrics)

    def __repr__(self) -> str:
        return f"MetricSet({', '.join(self.names)})"

    @property
    def names(self) -> List[str]:
        return [m.name for m in self._metrics]

    @property
    def mode(self) -> str:
        return self._metrics[0].mode

    @property
    def kinds(self) -> Set[str]:
        return {m.kind for m in self._metrics}

    @property
    def uses_eval_time(self) -> bool:
        return any(m.time_indexed for m in self._metrics) or INTEGRATED_SURVIVAL in self.kinds

    @property
    def pred_types(self) -> Set[str]:
        """Prediction types a workflow must produce for these metrics."""
        return {PRED_TYPES[k] for k in self.kinds}

    def compute(
        self,
        predictions: pd.DataFrame,
        outcomes: Sequence[str],
        eval_time: Optional[Sequence[float]] = None,
        classes: Optional[Sequence] = None,
        event_level: str = "first",
    ) -> Dict[MetricKey, float]:
        """Compute every metric on one prediction table.

        Args:
            predictions: Table holding the truth columns named by ``outcomes``
                and the prediction columns produced by a fitted workflow.
            outcomes: Outcome column names; (time, event) for censored data.
            eval_time: Evaluation times for time-indexed metrics.
            classes: Class levels, in the column order of the probabilities.
            event_level: "first" or "second" class level is the event.

        Returns:
            Mapping of (metric name, eval time or None) to value.
        """
        results: Dict[MetricKey, float] = {}

        truth = predictions[outcomes[0]].to_numpy()
        event = predictions[outcomes[1]].to_numpy() if len(outcomes) > 1 else None
        event_index = 0 if event_level == "first" else 1

        for metric in self._metrics:
            if metric.kind == CLASS:
                results[(metric.name, None)] = metric.fn(truth, predictions[".pred_class"].to_numpy())
            elif metric.kind == PROB:
                proba = predictions[[prob_column(c) for c in classes]].to_numpy(dtype=float)
                results[(metric.name, None)] = metric.fn(truth, proba, classes, event_index)
            elif metric.kind == NUMERIC:
                results[(metric.name, None)] = metric.fn(truth, predictions[".pred"].to_numpy())
            elif metric.kind == STATIC_SURVIVAL:
                results[(metric.name, None)] = metric.fn(truth, event, predictions[".pred_time"].to_numpy())
            elif metric.time_indexed:
                for t in eval_time:
                    surv = predictions[survival_column(t)].to_numpy(dtype=float)
                    results[(metric.name, float(t))] = metric.fn(truth, event, surv, float(t))
            elif metric.kind == INTEGRATED_SURVIVAL:
                surv = np.column_stack(
                    [predictions[survival_column(t)].to_numpy(dtype=float) for t in eval_time]
                )
                results[(metric.name, None)] = metric.fn(truth, event, surv, list(eval_time))

        return results


def metric_set(*metrics: Metric | str) -> MetricSet:
    """Build a MetricSet, e.g. ``metric_set(roc_auc, accuracy)``."""
    return MetricSet(metrics)


def default_metric_set(mode: str, eval_time: Optional[Sequence[float]] = None) -> MetricSet:
    """Metrics used when the caller supplies none."""
    if mode == "classification":
        return MetricSet([accuracy, roc_auc, brier_class])
    if mode == "regression":
        return MetricSet([rmse, rsq])
    if mode == "censored regression":
        if eval_time:
            return MetricSet([brier_survival])
        return MetricSet([concordance_survival])
    raise ConfigurationError(f"No default metrics for model mode {mode!r}")
