"""Evaluation module: metrics, metric sets and evaluation times."""

from foldfit.evaluation.eval_time import check_eval_time
from foldfit.evaluation.metric_set import (
    MetricSet,
    default_metric_set,
    metric_set,
    prob_column,
    survival_column,
)
from foldfit.evaluation.metrics import (
    METRICS,
    Metric,
    accuracy,
    brier_class,
    brier_survival,
    brier_survival_integrated,
    concordance_survival,
    mae,
    mn_log_loss,
    rmse,
    roc_auc,
    roc_auc_survival,
    rsq,
)

__all__ = [
    "METRICS",
    "Metric",
    "MetricSet",
    "accuracy",
    "brier_class",
    "brier_survival",
    "brier_survival_integrated",
    "check_eval_time",
    "concordance_survival",
    "default_metric_set",
    "mae",
    "metric_set",
    "mn_log_loss",
    "prob_column",
    "rmse",
    "roc_auc",
    "roc_auc_survival",
    "rsq",
    "survival_column",
]
