"""
Resampling results: the per-split outcomes of one run plus run metadata.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple

from foldfit.data.splitters import ResampleSet
from foldfit.evaluation.metric_set import MetricSet
from foldfit.resampling.unit import SplitOutcome
from foldfit.workflows import FittedWorkflow


@dataclass(frozen=True)
class RsetInfo:
    """Compact description of the resampling scheme."""

    kind: str
    label: str
    n_splits: int

    @classmethod
    def from_rset(cls, rset: ResampleSet) -> RsetInfo:
        return cls(kind=rset.kind, label=rset.label, n_splits=len(rset))


@dataclass(frozen=True)
class ResampleResult:
    """Outcome of resampling one workflow.

    ``outcomes`` has one entry per input split, in split order, whether or
    not the split succeeded.

    Attributes:
        outcomes: Per-split outcomes.
        metrics: The metric set that was computed.
        eval_time: Evaluation times used, or None.
        outcome_names: Outcome column(s) of the workflow.
        rset_info: Description of the resamples.
        workflow: Workflow fitted on the last successful split, when
            ``save_workflow`` was requested.
    """

    outcomes: Tuple[SplitOutcome, ...]
    metrics: MetricSet
    eval_time: Optional[Tuple[float, ...]]
    outcome_names: Tuple[str, ...]
    rset_info: RsetInfo
    workflow: Optional[FittedWorkflow] = None

    def __len__(self) -> int:
        return len(self.outcomes)

    def __iter__(self) -> Iterator[SplitOutcome]:
        return iter(self.outcomes)

    @property
    def ids(self) -> List[str]:
        return [o.id for o in self.outcomes]

    @property
    def n_failed(self) -> int:
        return sum(not o.succeeded for o in self.outcomes)

    @property
    def failed_ids(self) -> List[str]:
        return [o.id for o in self.outcomes if not o.succeeded]

    def __repr__(self) -> str:
        return (
            f"<ResampleResult {self.rset_info.label or self.rset_info.kind}: "
            f"{len(self)} splits, {self.n_failed} failed, metrics={self.metrics.names}>"
        )


def build_result(
    outcomes: Sequence[SplitOutcome],
    metrics: MetricSet,
    eval_time: Optional[Sequence[float]],
    outcome_names: Sequence[str],
    rset: ResampleSet,
    save_workflow: bool = False,
) -> ResampleResult:
    """Assemble the result envelope from ordered outcomes.

    Fitted workflows travel on the outcomes from the workers; only the one
    from the last successful split is kept, on the envelope.
    """
    workflow = None
    if save_workflow:
        for outcome in reversed(outcomes):
            if outcome.succeeded and outcome.workflow is not None:
                workflow = outcome.workflow
                break

    stripped = tuple(
        dataclasses.replace(o, workflow=None) if o.workflow is not None else o
        for o in outcomes
    )
    return ResampleResult(
        outcomes=stripped,
        metrics=metrics,
        eval_time=None if eval_time is None else tuple(eval_time),
        outcome_names=tuple(outcome_names),
        rset_info=RsetInfo.from_rset(rset),
        workflow=workflow,
    )
