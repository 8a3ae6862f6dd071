from __future__ import annotations

import threading
import warnings

import numpy as np
import pandas as pd
import pytest
from joblib import parallel_config
from sklearn.linear_model import LogisticRegression
from sklearn.tree import DecisionTreeClassifier

import foldfit.resampling.engine as engine
from foldfit.config import ControlPolicy
from foldfit.data import manual_rset, vfold_cv
from foldfit.errors import ConfigurationError, UnresolvedParameters
from foldfit.evaluation import (
    accuracy,
    brier_survival,
    concordance_survival,
    metric_set,
    rmse,
    roc_auc_survival,
)
from foldfit.models import ExponentialSurvivalModel
from foldfit.preprocessing import FeaturePipeline
from foldfit.resampling import (
    ResultAccumulator,
    RunMode,
    SplitOutcome,
    available_workers,
    collect_metrics,
    collect_predictions,
    run_resamples,
)
from foldfit.tuning import tune
from foldfit.workflows import Workflow


def _workflow(model=None) -> Workflow:
    return Workflow(FeaturePipeline(outcome="y"), model or LogisticRegression())


def _folds_with_bad_split(df: pd.DataFrame, bad: int = 2):
    """Five interleaved folds; fold ``bad`` trains on a single class."""
    y = df["y"].to_numpy()
    rows = np.arange(len(df))
    pairs = []
    for k in range(5):
        val = rows[k::5]
        train = np.setdiff1d(rows, val)
        if k == bad:
            train = train[y[train] == 0]
        pairs.append((train, val))
    return manual_rset(df, pairs, ids=[f"Fold{k + 1}" for k in range(5)])


def test_outcome_count_matches_split_count(binary_df: pd.DataFrame) -> None:
    for v in (2, 5, 10):
        folds = vfold_cv(binary_df, v=v)
        result = run_resamples(_workflow(), folds)
        assert len(result) == v
        assert result.ids == folds.ids


def test_one_failing_split_does_not_stop_the_run(binary_df: pd.DataFrame) -> None:
    result = run_resamples(_workflow(), _folds_with_bad_split(binary_df))

    assert len(result) == 5
    assert result.n_failed == 1
    assert result.failed_ids == ["Fold3"]

    for outcome in result:
        if outcome.id == "Fold3":
            assert dict(outcome.metrics) == {}
            assert outcome.notes
            assert any(n.phase == "fitting" and n.kind == "error" for n in outcome.notes)
        else:
            assert outcome.succeeded
            assert len(outcome.metrics) == 3

    summary = collect_metrics(result)
    assert (summary["n"] == 4).all()
    assert len(collect_metrics(result, summarize=False)) == 4 * 3


def test_save_predictions_toggle(binary_df: pd.DataFrame) -> None:
    folds = vfold_cv(binary_df, v=4)

    without = run_resamples(_workflow(), folds, control=ControlPolicy(save_predictions=False))
    assert all(o.predictions is None for o in without)

    with_preds = run_resamples(_workflow(), folds, control=ControlPolicy(save_predictions=True))
    for outcome, split in zip(with_preds, folds):
        assert len(outcome.predictions) == split.n_val
    assert len(collect_predictions(with_preds)) == len(binary_df)


def test_failed_split_has_no_predictions(binary_df: pd.DataFrame) -> None:
    result = run_resamples(
        _workflow(), _folds_with_bad_split(binary_df), control=ControlPolicy(save_predictions=True)
    )

    for outcome in result:
        assert (outcome.predictions is None) == (not outcome.succeeded)


def test_unresolved_parameters_run_no_splits(binary_df: pd.DataFrame, monkeypatch) -> None:
    calls = []
    monkeypatch.setattr(engine, "fit_split", lambda *args, **kwargs: calls.append(args))

    with pytest.raises(UnresolvedParameters, match="model__C"):
        run_resamples(_workflow(LogisticRegression(C=tune())), vfold_cv(binary_df, v=3))
    assert calls == []


def test_grid_search_mode_is_rejected(binary_df: pd.DataFrame) -> None:
    with pytest.raises(ConfigurationError, match="not supported"):
        run_resamples(_workflow(), vfold_cv(binary_df, v=3), mode=RunMode.GRID_SEARCH)


def test_metrics_must_match_model_mode(binary_df: pd.DataFrame) -> None:
    with pytest.raises(ConfigurationError, match="regression"):
        run_resamples(_workflow(), vfold_cv(binary_df, v=3), metrics=metric_set(rmse))


def test_parallel_and_sequential_give_same_order(binary_df: pd.DataFrame) -> None:
    folds = vfold_cv(binary_df, v=6)
    control = ControlPolicy(seed=11)
    model = DecisionTreeClassifier(max_depth=3)

    sequential = run_resamples(_workflow(model), folds, control=control)
    with parallel_config(n_jobs=2):
        assert available_workers() == 2
        parallel = run_resamples(_workflow(model), folds, control=control)

    assert parallel.ids == sequential.ids == folds.ids
    for a, b in zip(sequential, parallel):
        assert dict(a.metrics) == pytest.approx(dict(b.metrics))


def test_allow_parallel_false_stays_sequential(binary_df: pd.DataFrame, monkeypatch) -> None:
    def fail(*args, **kwargs):
        raise AssertionError("Parallel should not be used")

    monkeypatch.setattr(engine, "Parallel", fail)
    with parallel_config(n_jobs=2):
        result = run_resamples(
            _workflow(), vfold_cv(binary_df, v=3), control=ControlPolicy(allow_parallel=False)
        )
    assert len(result) == 3


def test_accumulator_restores_split_order(binary_df: pd.DataFrame) -> None:
    folds = vfold_cv(binary_df, v=4)
    acc = ResultAccumulator(list(folds))
    for split in reversed(list(folds)):
        acc.add(SplitOutcome(id=split.id, status="success"))

    assert acc.complete
    assert [o.id for o in acc.outcomes()] == folds.ids


def test_accumulator_rejects_unknown_and_duplicate_ids(binary_df: pd.DataFrame) -> None:
    folds = vfold_cv(binary_df, v=2)
    acc = ResultAccumulator(list(folds))
    acc.add(SplitOutcome(id="Fold1", status="success"))

    with pytest.raises(RuntimeError, match="Duplicate"):
        acc.add(SplitOutcome(id="Fold1", status="success"))
    with pytest.raises(RuntimeError, match="unknown"):
        acc.add(SplitOutcome(id="Fold9", status="success"))
    with pytest.raises(RuntimeError, match="Fold2"):
        acc.outcomes()


def test_verbose_reports_each_split(binary_df: pd.DataFrame, capsys) -> None:
    run_resamples(
        _workflow(), _folds_with_bad_split(binary_df), control=ControlPolicy(verbose=True)
    )

    out = capsys.readouterr().out
    assert "Fold1: ok" in out
    assert "Fold3: FAILED" in out


def test_save_workflow_keeps_last_successful_fit(binary_df: pd.DataFrame) -> None:
    folds = _folds_with_bad_split(binary_df, bad=4)
    result = run_resamples(_workflow(), folds, control=ControlPolicy(save_workflow=True))

    assert result.failed_ids == ["Fold5"]
    assert result.workflow is not None
    assert result.workflow.preprocessor.feature_names == ["x0", "x1"]
    assert all(o.workflow is None for o in result)

    # Fitted on Fold4, the last split that succeeded
    expected = _workflow().fit(folds.analysis(folds.splits[3]))
    np.testing.assert_allclose(result.workflow.model.coef_, expected.model.coef_)

    no_save = run_resamples(_workflow(), folds)
    assert no_save.workflow is None


def test_event_times_index_dynamic_metrics(survival_df: pd.DataFrame) -> None:
    workflow = Workflow(FeaturePipeline(outcome=["time", "event"]), ExponentialSurvivalModel())
    metrics = metric_set(brier_survival, roc_auc_survival, concordance_survival)

    result = run_resamples(
        workflow,
        vfold_cv(survival_df, v=5),
        metrics=metrics,
        control=ControlPolicy(event_times=[10, 20]),
    )

    assert result.eval_time == (10.0, 20.0)
    assert result.outcome_names == ("time", "event")
    for outcome in result:
        assert outcome.succeeded
        keys = set(outcome.metrics)
        for name in ("brier_survival", "roc_auc_survival"):
            assert (name, 10.0) in keys
            assert (name, 20.0) in keys
            assert (name, None) not in keys
        assert ("concordance_survival", None) in keys
        assert not any(k[0] == "concordance_survival" and k[1] is not None for k in keys)


def test_eval_time_argument_overrides_control(survival_df: pd.DataFrame) -> None:
    workflow = Workflow(FeaturePipeline(outcome=["time", "event"]), ExponentialSurvivalModel())

    result = run_resamples(
        workflow,
        vfold_cv(survival_df, v=3),
        control=ControlPolicy(event_times=[1.0]),
        eval_time=[5.0, 15.0],
    )

    assert result.metrics.names == ["brier_survival"]
    assert result.eval_time == (5.0, 15.0)
    summary = collect_metrics(result)
    assert summary[".eval_time"].tolist() == [5.0, 15.0]
    assert (summary["n"] == 3).all()


def test_result_metadata(binary_df: pd.DataFrame) -> None:
    folds = vfold_cv(binary_df, v=3)
    result = run_resamples(_workflow(), folds, metrics=metric_set(accuracy))

    assert result.metrics.names == ["accuracy"]
    assert result.eval_time is None
    assert result.outcome_names == ("y",)
    assert result.rset_info.kind == "vfold_cv"
    assert result.rset_info.n_splits == 3
    assert result.rset_info.label == "3-fold cross-validation"


class _AnnouncingClassifier(LogisticRegression):
    """Warns with its training size, then waits until the other split is fitting too."""

    barrier: threading.Barrier | None = None

    def fit(self, X, y, sample_weight=None):
        warnings.warn(f"fit on {len(X)} rows")
        self.barrier.wait()
        return super().fit(X, y, sample_weight=sample_weight)


def test_threaded_splits_keep_their_own_warnings(binary_df: pd.DataFrame, monkeypatch) -> None:
    monkeypatch.setattr(_AnnouncingClassifier, "barrier", threading.Barrier(2, timeout=30))
    val = np.arange(100, 120)
    rset = manual_rset(binary_df, [(np.arange(50), val), (np.arange(60), val)], ids=["A", "B"])

    with parallel_config(backend="threading", n_jobs=2):
        result = run_resamples(_workflow(_AnnouncingClassifier()), rset)

    assert result.n_failed == 0
    announced = {
        o.id: [(n.phase, n.message) for n in o.notes if n.message.startswith("fit on")]
        for o in result
    }
    assert announced == {
        "A": [("fitting", "fit on 50 rows")],
        "B": [("fitting", "fit on 60 rows")],
    }


def test_progress_bar_is_closed_when_collection_fails(binary_df: pd.DataFrame, monkeypatch) -> None:
    closed = []
    original_close = ResultAccumulator.close

    def tracking_close(self):
        closed.append(self._progress is not None)
        original_close(self)

    monkeypatch.setattr(ResultAccumulator, "close", tracking_close)
    monkeypatch.setattr(engine, "fit_split", lambda *args: SplitOutcome(id="Stray", status="success"))

    with pytest.raises(RuntimeError, match="unknown split"):
        run_resamples(_workflow(), vfold_cv(binary_df, v=3), control=ControlPolicy(verbose=True))
    assert closed == [True]
