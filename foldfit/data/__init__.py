"""
Resample sources.

This module provides:
- ResampleSplit: one train/validation partition of row positions
- ResampleSet: ordered, restartable collection of splits over a data frame
- vfold_cv, bootstraps, manual_rset: constructors
"""

from foldfit.data.splitters import (
    ResampleSet,
    ResampleSplit,
    bootstraps,
    create_bootstrap_samples,
    create_kfold_splits,
    manual_rset,
    validate_splits,
    vfold_cv,
)

__all__ = [
    "ResampleSet",
    "ResampleSplit",
    "bootstraps",
    "create_bootstrap_samples",
    "create_kfold_splits",
    "manual_rset",
    "validate_splits",
    "vfold_cv",
]
