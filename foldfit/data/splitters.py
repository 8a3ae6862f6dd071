"""
Resample splits and the resample sets that hold them.

Implements:
- ResampleSplit: one train/validation partition of row positions
- ResampleSet: an ordered, restartable collection of splits over one data frame
- vfold_cv / bootstraps / manual_rset constructors

Splits store indices rather than data; the rows are materialised only when
a split is analysed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from sklearn.model_selection import KFold, StratifiedKFold

from foldfit.errors import InvalidResampleKind


def _frozen_indices(values: Sequence[int] | np.ndarray) -> np.ndarray:
    arr = np.asarray(values, dtype=np.int64).reshape(-1)
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class ResampleSplit:
    """Index for a single resample.

    Attributes:
        id: Identifier, unique within a resample set (e.g. "Fold03").
        train_indices: Row positions used to fit the workflow.
        val_indices: Row positions held out for evaluation.
    """

    id: str
    train_indices: np.ndarray
    val_indices: np.ndarray

    def __post_init__(self) -> None:
        object.__setattr__(self, "train_indices", _frozen_indices(self.train_indices))
        object.__setattr__(self, "val_indices", _frozen_indices(self.val_indices))

    @property
    def n_train(self) -> int:
        return len(self.train_indices)

    @property
    def n_val(self) -> int:
        return len(self.val_indices)


@dataclass(frozen=True, eq=False)
class ResampleSet:
    """Ordered collection of splits over one data frame.

    Iteration always yields the splits in construction order and can be
    repeated any number of times.

    Attributes:
        data: The full data frame; splits index into its rows by position.
        splits: The splits, in caller-determined order.
        kind: Resampling scheme ("vfold_cv", "bootstraps", "manual_rset").
        label: Human-readable description, e.g. "5-fold cross-validation".
    """

    data: pd.DataFrame
    splits: Tuple[ResampleSplit, ...]
    kind: str
    label: str = ""
    strata: Optional[str] = field(default=None)

    def __post_init__(self) -> None:
        object.__setattr__(self, "splits", tuple(self.splits))
        validate_splits(self.splits, len(self.data))

    def __iter__(self) -> Iterator[ResampleSplit]:
        for split in self.splits:
            yield split

    def __len__(self) -> int:
        return len(self.splits)

    @property
    def ids(self) -> List[str]:
        return [s.id for s in self.splits]

    def analysis(self, split: ResampleSplit) -> pd.DataFrame:
        """Training rows of a split."""
        return self.data.iloc[split.train_indices]

    def assessment(self, split: ResampleSplit) -> pd.DataFrame:
        """Validation rows of a split."""
        return self.data.iloc[split.val_indices]


def validate_splits(splits: Sequence[ResampleSplit], n_rows: int) -> None:
    """Check that a split collection is usable.

    Raises:
        InvalidResampleKind: If there are no splits, an id repeats, a split has
            an empty training or validation set, or an index is out of range.
    """
    if len(splits) == 0:
        raise InvalidResampleKind("The resample set contains no splits.")

    seen: set[str] = set()
    for split in splits:
        if not isinstance(split, ResampleSplit):
            raise InvalidResampleKind(
                f"Expected ResampleSplit objects, got {type(split).__name__}."
            )
        if split.id in seen:
            raise InvalidResampleKind(f"Duplicate split id: {split.id!r}")
        seen.add(split.id)

        if split.n_train == 0:
            raise InvalidResampleKind(f"Split {split.id!r} has an empty training set.")
        if split.n_val == 0:
            raise InvalidResampleKind(f"Split {split.id!r} has an empty validation set.")

        for name, idx in (("training", split.train_indices), ("validation", split.val_indices)):
            if idx.min() < 0 or idx.max() >= n_rows:
                raise InvalidResampleKind(
                    f"Split {split.id!r} has {name} indices outside [0, {n_rows})."
                )


def _pad(i: int, n: int) -> str:
    return str(i).zfill(len(str(n)))


def _strata_labels(values: pd.Series, n_bins: int = 4) -> np.ndarray:
    """Discretise numeric strata into quantile bins; keep categorical as is."""
    if pd.api.types.is_numeric_dtype(values) and values.nunique() > 10:
        return pd.qcut(values, q=n_bins, labels=False, duplicates="drop").to_numpy()
    return values.to_numpy()


def create_kfold_splits(
    n_samples: int,
    n_folds: int = 10,
    random_seed: int = 42,
    strata: np.ndarray | None = None,
) -> List[Tuple[np.ndarray, np.ndarray]]:
    """Create KFold train/val splits.

    Args:
        n_samples: Number of rows.
        n_folds: Number of folds.
        random_seed: Random seed for reproducibility.
        strata: Optional labels to stratify on.

    Returns:
        List of (train_indices, val_indices) tuples.
    """
    indices = np.arange(n_samples)
    if strata is None:
        kf = KFold(n_splits=n_folds, shuffle=True, random_state=random_seed)
        return [(train_idx, val_idx) for train_idx, val_idx in kf.split(indices)]

    skf = StratifiedKFold(n_splits=n_folds, shuffle=True, random_state=random_seed)
    return [(train_idx, val_idx) for train_idx, val_idx in skf.split(indices, strata)]


def vfold_cv(
    data: pd.DataFrame,
    v: int = 10,
    repeats: int = 1,
    strata: str | None = None,
    random_seed: int = 42,
) -> ResampleSet:
    """V-fold cross-validation, optionally repeated and stratified.

    Split ids are "Fold01".."FoldNN", prefixed with "RepeatK_" when
    repeats > 1.
    """
    if v < 2:
        raise InvalidResampleKind(f"v must be at least 2, got {v}")
    if v > len(data):
        raise InvalidResampleKind(f"v={v} exceeds the number of rows ({len(data)})")

    labels = _strata_labels(data[strata]) if strata is not None else None

    splits: List[ResampleSplit] = []
    for r in range(repeats):
        folds = create_kfold_splits(len(data), v, random_seed + r, labels)
        for k, (train_idx, val_idx) in enumerate(folds, start=1):
            fold_id = f"Fold{_pad(k, v)}"
            if repeats > 1:
                fold_id = f"Repeat{_pad(r + 1, repeats)}_{fold_id}"
            splits.append(ResampleSplit(fold_id, train_idx, val_idx))

    label = f"{v}-fold cross-validation"
    if repeats > 1:
        label += f" repeated {repeats} times"
    if strata is not None:
        label += f" using stratification on {strata}"
    return ResampleSet(data=data, splits=tuple(splits), kind="vfold_cv", label=label, strata=strata)


def create_bootstrap_samples(
    n_samples: int,
    n_bootstraps: int = 25,
    random_seed: int = 42,
) -> List[np.ndarray]:
    """Create bootstrap samples of row positions (sampling with replacement)."""
    rng = np.random.default_rng(random_seed)
    return [
        rng.choice(n_samples, size=n_samples, replace=True)
        for _ in range(n_bootstraps)
    ]


def bootstraps(
    data: pd.DataFrame,
    times: int = 25,
    random_seed: int = 42,
) -> ResampleSet:
    """Bootstrap resamples assessed on their out-of-bag rows."""
    n = len(data)
    splits: List[ResampleSplit] = []
    for b, in_bag in enumerate(create_bootstrap_samples(n, times, random_seed), start=1):
        out_of_bag = np.setdiff1d(np.arange(n), in_bag)
        splits.append(ResampleSplit(f"Bootstrap{_pad(b, times)}", in_bag, out_of_bag))

    return ResampleSet(
        data=data,
        splits=tuple(splits),
        kind="bootstraps",
        label=f"Bootstrap sampling ({times} resamples)",
    )


def manual_rset(
    data: pd.DataFrame,
    pairs: Sequence[Tuple[Sequence[int], Sequence[int]]],
    ids: Sequence[str] | None = None,
) -> ResampleSet:
    """Resample set from caller-supplied (train, validation) index pairs."""
    if ids is None:
        ids = [f"Slice{_pad(i, len(pairs))}" for i in range(1, len(pairs) + 1)]
    if len(ids) != len(pairs):
        raise InvalidResampleKind(
            f"Got {len(ids)} ids for {len(pairs)} index pairs."
        )

    splits = tuple(
        ResampleSplit(split_id, train_idx, val_idx)
        for split_id, (train_idx, val_idx) in zip(ids, pairs)
    )
    return ResampleSet(data=data, splits=splits, kind="manual_rset", label="Manual resampling")
