"""
Resampling engine: run one workflow configuration over every split.

Per-split work is delegated to ``fit_split``; outcomes are gathered by a
``ResultAccumulator`` and wrapped in a ``ResampleResult``. Parallel execution
uses joblib under whatever ``joblib.parallel_config`` the caller has set up;
the engine never configures workers itself.
"""

from __future__ import annotations

import enum
import logging
from typing import List, Optional, Sequence

import joblib
import numpy as np
from joblib import Parallel, delayed

from foldfit.config import ControlPolicy
from foldfit.data.splitters import ResampleSet, validate_splits
from foldfit.errors import ConfigurationError, InvalidResampleKind, UnresolvedParameters
from foldfit.evaluation.eval_time import check_eval_time
from foldfit.evaluation.metric_set import MetricSet, default_metric_set
from foldfit.evaluation.metrics import Metric
from foldfit.resampling.accumulator import ResultAccumulator
from foldfit.resampling.results import ResampleResult, build_result
from foldfit.resampling.unit import fit_split
from foldfit.workflows import Workflow

logger = logging.getLogger(__name__)


class RunMode(enum.Enum):
    SINGLE_CONFIGURATION = "single_configuration"
    GRID_SEARCH = "grid_search"


def available_workers() -> int:
    """Workers provided by the active joblib configuration (1 when none is set)."""
    return joblib.effective_n_jobs(n_jobs=None)


def split_seeds(seed: Optional[int], n: int) -> List[Optional[int]]:
    """One seed per split position, independent of execution order."""
    if seed is None:
        return [None] * n
    return [int(s) for s in np.random.SeedSequence(seed).generate_state(n)]


def resolve_metrics(
    metrics: MetricSet | Sequence[Metric | str] | None,
    mode: str,
    eval_time: Optional[Sequence[float]],
) -> MetricSet:
    if metrics is None:
        return default_metric_set(mode, eval_time)
    if not isinstance(metrics, MetricSet):
        metrics = MetricSet(list(metrics))
    if metrics.mode != mode:
        raise ConfigurationError(
            f"Metrics {metrics.names} are for {metrics.mode} models but the "
            f"workflow's model is a {mode} model."
        )
    return metrics


def run_resamples(
    workflow: Workflow,
    resamples: ResampleSet,
    metrics: MetricSet | Sequence[Metric | str] | None = None,
    control: ControlPolicy | None = None,
    eval_time: Optional[Sequence[float]] = None,
    mode: RunMode = RunMode.SINGLE_CONFIGURATION,
) -> ResampleResult:
    """Fit and evaluate ``workflow`` on every split of ``resamples``.

    All configuration checks happen before any split runs. Failures inside a
    split are recorded on that split's outcome and never raised.

    Args:
        workflow: Workflow with no unresolved tuning parameters.
        resamples: The splits to evaluate.
        metrics: Metric set; defaults depend on the model mode.
        control: Retention and execution options.
        eval_time: Evaluation times; overrides ``control.event_times``.
        mode: Only ``RunMode.SINGLE_CONFIGURATION`` is supported.

    Returns:
        A ResampleResult with one outcome per split, in split order.

    Raises:
        ConfigurationError: For any invalid input; no split is executed.
    """
    if mode is not RunMode.SINGLE_CONFIGURATION:
        raise ConfigurationError(f"Run mode {mode.value!r} is not supported by the resampling engine.")

    unresolved = workflow.unresolved_parameters()
    if unresolved:
        raise UnresolvedParameters(unresolved)

    if not isinstance(resamples, ResampleSet):
        raise InvalidResampleKind(
            f"`resamples` should be a ResampleSet, got {type(resamples).__name__}."
        )
    validate_splits(resamples.splits, len(resamples.data))

    control = control or ControlPolicy()
    times = eval_time if eval_time is not None else control.event_times
    metric_set = resolve_metrics(metrics, workflow.mode, times)
    times = check_eval_time(times, metric_set)

    splits = list(resamples)
    seeds = split_seeds(control.seed, len(splits))
    n_workers = available_workers() if control.allow_parallel else 1

    logger.info(
        "Resampling %s over %d splits (%s), metrics=%s, workers=%d",
        type(workflow.model).__name__,
        len(splits),
        resamples.label or resamples.kind,
        metric_set.names,
        n_workers,
    )

    accumulator = ResultAccumulator(splits, verbose=control.verbose)
    try:
        if n_workers > 1:
            tasks = (
                delayed(fit_split)(workflow, resamples.data, split, metric_set, control, times, seed)
                for split, seed in zip(splits, seeds)
            )
            for outcome in Parallel(return_as="generator_unordered")(tasks):
                accumulator.add(outcome)
        else:
            for split, seed in zip(splits, seeds):
                accumulator.add(
                    fit_split(workflow, resamples.data, split, metric_set, control, times, seed)
                )
    finally:
        accumulator.close()

    result = build_result(
        accumulator.outcomes(),
        metric_set,
        times,
        workflow.outcome_names,
        resamples,
        save_workflow=control.save_workflow,
    )
    if result.n_failed:
        logger.warning("%d of %d splits failed: %s", result.n_failed, len(result), result.failed_ids)
    logger.info("Resampling finished: %d splits", len(result))
    return result
