"""
Tables derived from a ResampleResult.

Failed splits contribute no metric rows: summaries average over the splits
that produced a value, and ``n`` counts them.
"""

from __future__ import annotations

import numpy as np
import pandas as pd

from foldfit.resampling.results import ResampleResult

METRIC_COLUMNS = ["id", ".metric", ".estimator", ".eval_time", ".estimate"]


def collect_metrics(result: ResampleResult, summarize: bool = True) -> pd.DataFrame:
    """Metrics per split, or summarised across splits.

    Args:
        result: Output of ``fit_resamples``.
        summarize: If True, one row per (metric, eval time) with ``mean``,
            ``n`` and ``std_err``; otherwise one row per split and metric.
    """
    rows = []
    for outcome in result:
        for (name, t), value in outcome.metrics.items():
            rows.append(
                {
                    "id": outcome.id,
                    ".metric": name,
                    ".estimator": "standard",
                    ".eval_time": np.nan if t is None else t,
                    ".estimate": value,
                }
            )
    per_split = pd.DataFrame(rows, columns=METRIC_COLUMNS)
    if not summarize:
        return per_split

    if per_split.empty:
        return pd.DataFrame(columns=[".metric", ".estimator", ".eval_time", "mean", "n", "std_err"])

    grouped = per_split.groupby([".metric", ".estimator", ".eval_time"], dropna=False, sort=False)[".estimate"]
    summary = grouped.agg(mean="mean", n="count", std="std").reset_index()
    summary["std_err"] = summary["std"] / np.sqrt(summary["n"])
    summary = summary.drop(columns="std")

    # Keep the metric set's order
    order = {name: i for i, name in enumerate(result.metrics.names)}
    summary = summary.sort_values(
        by=[".metric", ".eval_time"],
        key=lambda s: s.map(order) if s.name == ".metric" else s,
        kind="stable",
    )
    return summary.reset_index(drop=True)


def collect_predictions(result: ResampleResult) -> pd.DataFrame:
    """All retained validation predictions, stacked in split order.

    Raises:
        ValueError: If predictions were not saved.
    """
    frames = [o.predictions for o in result if o.predictions is not None]
    if not frames:
        if result.n_failed == len(result):
            return pd.DataFrame(columns=["id", ".row", *result.outcome_names])
        raise ValueError(
            "No predictions were saved; rerun with ControlPolicy(save_predictions=True)."
        )
    return pd.concat(frames, ignore_index=True)


def collect_notes(result: ResampleResult) -> pd.DataFrame:
    """One row per note: split id, phase, kind and message."""
    rows = [
        {"id": o.id, "phase": n.phase, "kind": n.kind, "message": n.message}
        for o in result
        for n in o.notes
    ]
    return pd.DataFrame(rows, columns=["id", "phase", "kind", "message"])


def collect_extracts(result: ResampleResult) -> pd.DataFrame:
    """One row per split with its extract (None when absent or failed)."""
    return pd.DataFrame(
        {
            "id": [o.id for o in result],
            ".extracts": [o.extract for o in result],
        }
    )
