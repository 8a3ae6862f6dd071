"""
Fit a single model configuration across resamples.

``fit_resamples`` computes performance metrics for one model + preprocessor
(or one workflow) across a set of resamples. It does not tune anything:
every parameter must already have a value.

Example:
    >>> folds = vfold_cv(df, v=5)
    >>> res = fit_resamples(
    ...     LogisticRegression(),
    ...     folds,
    ...     preprocessor=FeaturePipeline(outcome="y"),
    ...     control=ControlPolicy(save_predictions=True),
    ... )
    >>> collect_metrics(res)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence, Union

from foldfit.config import ControlPolicy
from foldfit.data.splitters import ResampleSet
from foldfit.errors import ConfigurationError, InvalidPreprocessor
from foldfit.evaluation.metric_set import MetricSet
from foldfit.evaluation.metrics import Metric
from foldfit.preprocessing.feature_pipeline import FeaturePipeline, is_preprocessor
from foldfit.resampling.engine import RunMode, run_resamples
from foldfit.resampling.results import ResampleResult
from foldfit.workflows import Workflow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModelInput:
    """A bare model plus the preprocessor it should be paired with."""

    model: Any
    preprocessor: Optional[FeaturePipeline]

    def resolve(self) -> Workflow:
        if self.preprocessor is None or not is_preprocessor(self.preprocessor):
            raise InvalidPreprocessor(
                "To resample a model you must preprocess with a FeaturePipeline "
                "(formula) or RecipePreprocessor (recipe)."
            )
        return Workflow(preprocessor=self.preprocessor, model=self.model)


@dataclass(frozen=True)
class WorkflowInput:
    """A complete workflow."""

    workflow: Workflow

    def resolve(self) -> Workflow:
        return self.workflow


ResampleInput = Union[ModelInput, WorkflowInput]


def as_resample_input(obj: Any, preprocessor: Optional[FeaturePipeline] = None) -> ResampleInput:
    """Classify the first argument of ``fit_resamples``.

    Raises:
        TypeError: If ``obj`` is neither a model nor a workflow.
        ConfigurationError: If a preprocessor is passed with a workflow.
    """
    if isinstance(obj, Workflow):
        if preprocessor is not None:
            raise ConfigurationError(
                "A workflow already has a preprocessor; do not pass `preprocessor`."
            )
        return WorkflowInput(obj)
    if hasattr(obj, "fit") and hasattr(obj, "predict"):
        return ModelInput(obj, preprocessor)
    raise TypeError(
        "The first argument to fit_resamples() should be either a model or workflow, "
        f"got {type(obj).__name__}."
    )


class ResultCache:
    """Caller-owned holder for the most recent resampling result."""

    def __init__(self) -> None:
        self.last: Optional[ResampleResult] = None

    def store(self, result: ResampleResult) -> None:
        self.last = result


def fit_resamples(
    obj: Any,
    resamples: ResampleSet,
    *,
    preprocessor: Optional[FeaturePipeline] = None,
    metrics: MetricSet | Sequence[Metric | str] | None = None,
    control: ControlPolicy | Mapping[str, Any] | None = None,
    eval_time: Optional[Sequence[float]] = None,
    cache: Optional[ResultCache] = None,
) -> ResampleResult:
    """Fit multiple models via resampling.

    Args:
        obj: A model (scikit-learn API) or a Workflow.
        resamples: Resample set, e.g. from ``vfold_cv``.
        preprocessor: Required when ``obj`` is a model: a FeaturePipeline or
            RecipePreprocessor.
        metrics: Metric set; task-appropriate defaults when omitted.
        control: A ControlPolicy, or a mapping of its options.
        eval_time: Non-negative evaluation times for dynamic survival metrics.
        cache: Optional ResultCache that receives the result.

    Returns:
        A ResampleResult with one outcome per split.
    """
    if control is None:
        control = ControlPolicy()
    elif not isinstance(control, ControlPolicy):
        control = ControlPolicy(**control)

    workflow = as_resample_input(obj, preprocessor).resolve()

    result = run_resamples(
        workflow,
        resamples,
        metrics=metrics,
        control=control,
        eval_time=eval_time,
        mode=RunMode.SINGLE_CONFIGURATION,
    )
    if cache is not None:
        cache.store(result)
    return result
