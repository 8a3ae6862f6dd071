from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from foldfit.data import ResampleSplit, bootstraps, manual_rset, vfold_cv
from foldfit.errors import ConfigurationError, InvalidResampleKind


def test_vfold_cv_partitions_rows(binary_df: pd.DataFrame) -> None:
    folds = vfold_cv(binary_df, v=5, random_seed=1)

    assert len(folds) == 5
    assert folds.ids == ["Fold1", "Fold2", "Fold3", "Fold4", "Fold5"]
    assert folds.kind == "vfold_cv"

    all_val = np.sort(np.concatenate([s.val_indices for s in folds]))
    np.testing.assert_array_equal(all_val, np.arange(len(binary_df)))
    for split in folds:
        assert split.n_train + split.n_val == len(binary_df)
        assert not set(split.train_indices) & set(split.val_indices)


def test_vfold_cv_repeated_ids_are_unique(binary_df: pd.DataFrame) -> None:
    folds = vfold_cv(binary_df, v=10, repeats=2)

    assert len(folds) == 20
    assert folds.ids[0] == "Repeat1_Fold01"
    assert folds.ids[-1] == "Repeat2_Fold10"
    assert len(set(folds.ids)) == 20


def test_vfold_cv_stratified_keeps_class_balance(binary_df: pd.DataFrame) -> None:
    folds = vfold_cv(binary_df, v=4, strata="y")
    overall = binary_df["y"].mean()

    for split in folds:
        assert abs(folds.assessment(split)["y"].mean() - overall) < 0.1
    assert "stratification" in folds.label


def test_iteration_is_restartable(binary_df: pd.DataFrame) -> None:
    folds = vfold_cv(binary_df, v=3)

    first = [s.id for s in folds]
    second = [s.id for s in folds]
    assert first == second == folds.ids


def test_split_indices_are_read_only(binary_df: pd.DataFrame) -> None:
    split = vfold_cv(binary_df, v=3).splits[0]

    with pytest.raises(ValueError):
        split.train_indices[0] = 0


def test_bootstraps_assess_out_of_bag_rows(binary_df: pd.DataFrame) -> None:
    boots = bootstraps(binary_df, times=4, random_seed=3)

    assert boots.ids == ["Bootstrap1", "Bootstrap2", "Bootstrap3", "Bootstrap4"]
    for split in boots:
        assert split.n_train == len(binary_df)
        assert not set(split.val_indices) & set(split.train_indices)


def test_manual_rset_uses_given_ids(binary_df: pd.DataFrame) -> None:
    pairs = [(range(0, 60), range(60, 120)), (range(60, 120), range(0, 60))]
    rset = manual_rset(binary_df, pairs, ids=["a", "b"])

    assert rset.ids == ["a", "b"]
    pd.testing.assert_frame_equal(rset.analysis(rset.splits[1]), binary_df.iloc[60:120])


@pytest.mark.parametrize(
    "pairs, ids, match",
    [
        ([], None, "no splits"),
        ([([], [1, 2])], None, "empty training"),
        ([([1, 2], [])], None, "empty validation"),
        ([([1], [2]), ([3], [4])], ["a", "a"], "Duplicate"),
        ([([1, 500], [2])], None, "outside"),
    ],
)
def test_malformed_resamples_are_rejected(binary_df, pairs, ids, match) -> None:
    with pytest.raises(InvalidResampleKind, match=match):
        manual_rset(binary_df, pairs, ids=ids)


def test_invalid_resample_kind_is_a_configuration_error() -> None:
    assert issubclass(InvalidResampleKind, ConfigurationError)


def test_split_holds_ids() -> None:
    split = ResampleSplit("Fold1", [0, 1, 2], [3])
    assert split.n_train == 3
    assert split.n_val == 1
