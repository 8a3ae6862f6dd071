"""
Fit/evaluate one resample split.

``fit_split`` is the unit of failure isolation: whatever happens while
preprocessing, fitting, predicting or scoring a split, it returns exactly
one ``SplitOutcome`` and never raises.
"""

from __future__ import annotations

import logging
import threading
import warnings
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, List, Mapping, Optional, Sequence, Tuple, Type

import pandas as pd

from foldfit.config import ControlPolicy
from foldfit.data.splitters import ResampleSplit
from foldfit.errors import (
    ExtractionError,
    FittingError,
    PredictionError,
    PreprocessingError,
    SplitError,
)
from foldfit.evaluation.metric_set import MetricKey, MetricSet
from foldfit.workflows import FittedWorkflow, Workflow

logger = logging.getLogger(__name__)

SUCCESS = "success"
FAILURE = "failure"


@dataclass(frozen=True)
class Note:
    """A warning or error raised while processing a split.

    Attributes:
        phase: "preprocessing", "fitting", "prediction" or "extraction".
        kind: "warning" or "error".
        message: The condition's message.
    """

    phase: str
    kind: str
    message: str


@dataclass(frozen=True)
class SplitOutcome:
    """Everything retained from one split.

    A failed split has empty metrics, no predictions and at least one
    error note.
    """

    id: str
    status: str
    metrics: Mapping[MetricKey, float] = field(default_factory=dict)
    predictions: Optional[pd.DataFrame] = None
    extract: Any = None
    notes: Tuple[Note, ...] = ()
    workflow: Optional[FittedWorkflow] = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "metrics", dict(self.metrics))
        object.__setattr__(self, "notes", tuple(self.notes))

    @property
    def succeeded(self) -> bool:
        return self.status == SUCCESS


class _WarningRouter:
    """Sends each warning to the note log open on the thread that emitted it.

    ``warnings.showwarning`` and the warning filters are process-global, so
    concurrent splits on worker threads cannot each enter
    ``warnings.catch_warnings``. Instead one hook is installed while any
    phase is open anywhere in the process. Warnings from threads with no
    open phase go to the hook that was installed before.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._open = 0
        self._saved: Optional[Tuple[list, Callable[..., None]]] = None
        self._local = threading.local()

    def _showwarning(self, message, category, filename, lineno, file=None, line=None) -> None:
        sink = getattr(self._local, "sink", None)
        if sink is not None:
            sink(str(message))
        elif self._saved is not None:
            self._saved[1](message, category, filename, lineno, file, line)

    @contextmanager
    def capture(self, sink: Callable[[str], None]) -> Iterator[None]:
        with self._lock:
            if self._open == 0:
                self._saved = (warnings.filters[:], warnings.showwarning)
                warnings.simplefilter("always")
                warnings.showwarning = self._showwarning
            self._open += 1

        previous = getattr(self._local, "sink", None)
        self._local.sink = sink
        try:
            yield
        finally:
            self._local.sink = previous
            with self._lock:
                self._open -= 1
                if self._open == 0:
                    filters, showwarning = self._saved
                    warnings.filters[:] = filters
                    warnings.showwarning = showwarning
                    self._saved = None


_router = _WarningRouter()


class _NoteLog:
    """Collects notes for one split, phase by phase."""

    def __init__(self) -> None:
        self.notes: List[Note] = []

    @contextmanager
    def phase(self, error_cls: Type[SplitError]) -> Iterator[None]:
        """Record warnings and convert exceptions into ``error_cls``."""

        def record(message: str) -> None:
            self.notes.append(Note(error_cls.phase, "warning", message))

        with _router.capture(record):
            try:
                yield
            except SplitError:
                raise
            except Exception as exc:
                raise error_cls(f"{type(exc).__name__}: {exc}") from exc

    def error(self, exc: SplitError) -> None:
        self.notes.append(Note(exc.phase, "error", str(exc)))


def prediction_table(
    split: ResampleSplit,
    val: pd.DataFrame,
    preds: pd.DataFrame,
    outcomes: Sequence[str],
) -> pd.DataFrame:
    """Per-row validation predictions with split id, row position and truth."""
    table = pd.DataFrame({"id": split.id, ".row": split.val_indices})
    for name in outcomes:
        table[name] = val[name].to_numpy()
    for column in preds.columns:
        table[column] = preds[column].to_numpy()
    return table


def fit_split(
    workflow: Workflow,
    data: pd.DataFrame,
    split: ResampleSplit,
    metrics: MetricSet,
    control: ControlPolicy,
    eval_time: Optional[Sequence[float]] = None,
    random_state: Optional[int] = None,
) -> SplitOutcome:
    """Fit ``workflow`` on a split's training rows and score its validation rows.

    Args:
        workflow: Unfitted workflow template; it is copied, never modified.
        data: Full data frame the split indexes into.
        split: The split to process.
        metrics: Metrics to compute on the validation predictions.
        control: Retention options.
        eval_time: Validated evaluation times, or None.
        random_state: Seed for the model's ``random_state``, if it has one.

    Returns:
        The split's outcome. Failures are reported through its status and
        notes.
    """
    log = _NoteLog()
    train = data.iloc[split.train_indices]
    val = data.iloc[split.val_indices]
    outcomes = workflow.outcome_names

    try:
        with log.phase(PreprocessingError):
            preprocessor, X_train, y_train = workflow.fit_preprocessor(train)

        with log.phase(FittingError):
            model = workflow.fit_model(X_train, y_train, random_state)
        fitted = FittedWorkflow(workflow, preprocessor, model)

        with log.phase(PredictionError):
            preds = fitted.predict(val, metrics.pred_types, eval_time)
            table = prediction_table(split, val, preds, outcomes)
            scores = metrics.compute(
                table,
                outcomes,
                eval_time=eval_time,
                classes=fitted.classes,
                event_level=control.event_level,
            )
    except SplitError as exc:
        log.error(exc)
        logger.warning("Split %s failed during %s: %s", split.id, exc.phase, exc)
        return SplitOutcome(id=split.id, status=FAILURE, notes=tuple(log.notes))

    extract = None
    if control.extract is not None:
        try:
            with log.phase(ExtractionError):
                extract = control.extract(fitted)
        except SplitError as exc:
            log.error(exc)
            logger.warning("Extraction failed for split %s: %s", split.id, exc)

    logger.debug("Split %s: %d metric values, %d notes", split.id, len(scores), len(log.notes))
    return SplitOutcome(
        id=split.id,
        status=SUCCESS,
        metrics=scores,
        predictions=table if control.save_predictions else None,
        extract=extract,
        notes=tuple(log.notes),
        workflow=fitted if control.save_workflow else None,
    )
