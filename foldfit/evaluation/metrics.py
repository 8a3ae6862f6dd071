"""
Performance metrics for resampled models.

Implements:
- Classification: accuracy, ROC AUC, Brier score, mean log loss
- Regression: RMSE, R squared (squared correlation), MAE
- Censored regression: concordance index, time-dependent Brier score and
  ROC AUC at evaluation time points (inverse probability of censoring
  weighted), integrated Brier score

Each metric is wrapped in a ``Metric`` that records which kind of
prediction it consumes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Sequence

import numpy as np
from sklearn.metrics import (
    accuracy_score,
    auc,
    log_loss,
    mean_absolute_error,
    mean_squared_error,
    roc_auc_score,
)

# Metric kinds and the model mode they belong to
CLASS = "class"
PROB = "prob"
NUMERIC = "numeric"
STATIC_SURVIVAL = "static_survival"
DYNAMIC_SURVIVAL = "dynamic_survival"
INTEGRATED_SURVIVAL = "integrated_survival"

KIND_MODES = {
    CLASS: "classification",
    PROB: "classification",
    NUMERIC: "regression",
    STATIC_SURVIVAL: "censored regression",
    DYNAMIC_SURVIVAL: "censored regression",
    INTEGRATED_SURVIVAL: "censored regression",
}


@dataclass(frozen=True)
class Metric:
    """A named performance metric.

    Attributes:
        name: Metric name used as the key in results.
        kind: Which predictions the metric consumes (see module constants).
        direction: "maximize" or "minimize".
        fn: The scoring function; its signature depends on ``kind``.
    """

    name: str
    kind: str
    direction: str
    fn: Callable[..., float]

    @property
    def mode(self) -> str:
        return KIND_MODES[self.kind]

    @property
    def time_indexed(self) -> bool:
        """Whether results are keyed by each evaluation time."""
        return self.kind == DYNAMIC_SURVIVAL


# ------------------------------------------------------------------------------
# Classification


def compute_accuracy(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """Fraction of rows whose predicted class equals the truth."""
    return float(accuracy_score(y_true, y_pred))


def compute_roc_auc(
    y_true: np.ndarray,
    proba: np.ndarray,
    classes: Sequence,
    event_index: int,
) -> float:
    """Compute ROC AUC.

    Two classes: AUC of the event class probability. More classes: Hand-Till
    multiclass AUC (macro average of one-vs-one AUCs).

    Returns NaN when the validation rows do not contain every class needed.
    """
    try:
        if len(classes) == 2:
            return float(roc_auc_score(y_true == classes[event_index], proba[:, event_index]))
        return float(roc_auc_score(y_true, proba, multi_class="ovo", labels=list(classes)))
    except ValueError:
        return float("nan")


def compute_brier_class(
    y_true: np.ndarray,
    proba: np.ndarray,
    classes: Sequence,
    event_index: int,
) -> float:
    """Multiclass Brier score, scaled so two classes match the binary score.

    Lower is better. Perfect calibration = 0.
    """
    onehot = (np.asarray(y_true).reshape(-1, 1) == np.asarray(classes).reshape(1, -1)).astype(float)
    return float(np.mean(np.sum((onehot - proba) ** 2, axis=1)) / 2.0)


def compute_mn_log_loss(
    y_true: np.ndarray,
    proba: np.ndarray,
    classes: Sequence,
    event_index: int,
) -> float:
    """Mean multinomial log loss."""
    return float(log_loss(y_true, proba, labels=list(classes)))


# ------------------------------------------------------------------------------
# Regression


def compute_rmse(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """Root mean squared error."""
    return float(np.sqrt(mean_squared_error(y_true, y_pred)))


def compute_rsq(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """Squared Pearson correlation between truth and prediction.

    NaN when either vector is constant.
    """
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)
    if np.std(y_true) == 0 or np.std(y_pred) == 0:
        return float("nan")
    return float(np.corrcoef(y_true, y_pred)[0, 1] ** 2)


def compute_mae(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """Mean absolute error."""
    return float(mean_absolute_error(y_true, y_pred))


# ------------------------------------------------------------------------------
# Censored regression


def censoring_survival(time: np.ndarray, event: np.ndarray) -> Callable[..., np.ndarray]:
    """Kaplan-Meier estimate of the censoring distribution G(t) = P(C > t).

    Returns a function ``G(u, left=False)``; with ``left=True`` it gives the
    value just before ``u``.
    """
    time = np.asarray(time, dtype=float)
    censored = np.asarray(event) == 0

    uniq = np.unique(time)
    at_risk = np.array([(time >= s).sum() for s in uniq], dtype=float)
    n_censored = np.array([(censored & (time == s)).sum() for s in uniq], dtype=float)
    surv = np.cumprod(1.0 - n_censored / at_risk)

    def G(u: np.ndarray | float, left: bool = False) -> np.ndarray:
        side = "left" if left else "right"
        idx = np.searchsorted(uniq, np.asarray(u, dtype=float), side=side) - 1
        return np.where(idx >= 0, surv[np.clip(idx, 0, None)], 1.0)

    return G


def _ipcw_weights(time: np.ndarray, event: np.ndarray, t: float) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Case and control indicators at ``t`` with their IPCW weights."""
    time = np.asarray(time, dtype=float)
    event = np.asarray(event)
    G = censoring_survival(time, event)

    cases = (time <= t) & (event == 1)
    controls = time > t
    weights = np.zeros_like(time)
    weights[cases] = 1.0 / np.clip(G(time[cases], left=True), 1e-12, None)
    weights[controls] = 1.0 / max(float(G(t)), 1e-12)
    return cases, controls, weights


def compute_concordance(time: np.ndarray, event: np.ndarray, pred_time: np.ndarray) -> float:
    """Harrell's concordance index with predicted event times.

    A comparable pair has an observed event for the shorter time; it is
    concordant when that row also has the shorter predicted time. Tied
    predictions count one half.
    """
    time = np.asarray(time, dtype=float)
    event = np.asarray(event)
    pred = np.asarray(pred_time, dtype=float)

    comparable = (time.reshape(-1, 1) < time.reshape(1, -1)) & (event.reshape(-1, 1) == 1)
    if not comparable.any():
        return float("nan")
    diff = pred.reshape(-1, 1) - pred.reshape(1, -1)
    concordant = (diff < 0) & comparable
    tied = (diff == 0) & comparable
    return float((concordant.sum() + 0.5 * tied.sum()) / comparable.sum())


def compute_brier_survival(
    time: np.ndarray,
    event: np.ndarray,
    surv_prob: np.ndarray,
    t: float,
) -> float:
    """Time-dependent Brier score at ``t`` (Graf et al. IPCW form).

    Rows censored before ``t`` contribute zero but stay in the denominator.
    """
    cases, controls, weights = _ipcw_weights(time, event, t)
    surv_prob = np.asarray(surv_prob, dtype=float)
    residual = np.zeros_like(surv_prob)
    residual[cases] = surv_prob[cases] ** 2
    residual[controls] = (1.0 - surv_prob[controls]) ** 2
    return float(np.mean(residual * weights))


def compute_roc_auc_survival(
    time: np.ndarray,
    event: np.ndarray,
    surv_prob: np.ndarray,
    t: float,
) -> float:
    """Cumulative/dynamic ROC AUC at ``t`` with IPCW weights.

    Cases had the event by ``t``; controls are still event-free after it.
    Returns NaN when either group is empty.
    """
    cases, controls, weights = _ipcw_weights(time, event, t)
    keep = cases | controls
    if cases.sum() == 0 or controls.sum() == 0:
        return float("nan")
    risk = 1.0 - np.asarray(surv_prob, dtype=float)
    return float(roc_auc_score(cases[keep], risk[keep], sample_weight=weights[keep]))


def compute_brier_survival_integrated(
    time: np.ndarray,
    event: np.ndarray,
    surv_prob: np.ndarray,
    eval_time: Sequence[float],
) -> float:
    """Brier score integrated over the evaluation times, divided by the largest time."""
    order = np.argsort(eval_time)
    times = np.asarray(eval_time, dtype=float)[order]
    scores = [
        compute_brier_survival(time, event, surv_prob[:, j], t)
        for j, t in zip(order, times)
    ]
    return float(auc(times, scores) / times.max())


# ------------------------------------------------------------------------------
# Metric objects

accuracy = Metric("accuracy", CLASS, "maximize", compute_accuracy)
roc_auc = Metric("roc_auc", PROB, "maximize", compute_roc_auc)
brier_class = Metric("brier_class", PROB, "minimize", compute_brier_class)
mn_log_loss = Metric("mn_log_loss", PROB, "minimize", compute_mn_log_loss)
rmse = Metric("rmse", NUMERIC, "minimize", compute_rmse)
rsq = Metric("rsq", NUMERIC, "maximize", compute_rsq)
mae = Metric("mae", NUMERIC, "minimize", compute_mae)
concordance_survival = Metric("concordance_survival", STATIC_SURVIVAL, "maximize", compute_concordance)
brier_survival = Metric("brier_survival", DYNAMIC_SURVIVAL, "minimize", compute_brier_survival)
roc_auc_survival = Metric("roc_auc_survival", DYNAMIC_SURVIVAL, "maximize", compute_roc_auc_survival)
brier_survival_integrated = Metric(
    "brier_survival_integrated", INTEGRATED_SURVIVAL, "minimize", compute_brier_survival_integrated
)

METRICS: Dict[str, Metric] = {
    m.name: m
    for m in [
        accuracy,
        roc_auc,
        brier_class,
        mn_log_loss,
        rmse,
        rsq,
        mae,
        concordance_survival,
        brier_survival,
        roc_auc_survival,
        brier_survival_integrated,
    ]
}
