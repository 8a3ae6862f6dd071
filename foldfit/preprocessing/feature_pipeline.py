"""
Preprocessors: turn a data frame into a feature matrix and outcome values.

- FeaturePipeline: formula-style column selection, no estimation
- RecipePreprocessor: wraps a scikit-learn transformer that is estimated
  on the training rows only
"""

from __future__ import annotations

from typing import Any, Dict, List, Sequence

import numpy as np
import pandas as pd
from sklearn.base import clone


class FeaturePipeline:
    """Formula-style preprocessor that selects outcome and predictor columns.

    Outcome columns are never used as predictors.
    """

    def __init__(
        self,
        outcome: str | Sequence[str] = "y",
        predictors: List[str] | None = None,
    ):
        """Initialize pipeline.

        Args:
            outcome: Outcome column name, or names for multi-column outcomes
                such as ("time", "event") for censored data.
            predictors: Predictor column names. If None, uses all columns
                except the outcome(s).
        """
        self.outcome = outcome
        self.predictors = predictors
        self._fitted_cols: List[str] | None = None

    @property
    def outcome_names(self) -> List[str]:
        if isinstance(self.outcome, str):
            return [self.outcome]
        return list(self.outcome)

    def get_params(self, deep: bool = True) -> Dict[str, Any]:
        return {"outcome": self.outcome, "predictors": self.predictors}

    def _select_predictors(self, df: pd.DataFrame) -> List[str]:
        if self.predictors is not None:
            missing = [c for c in self.predictors if c not in df.columns]
            if missing:
                raise KeyError(f"Predictor columns not found: {missing}")
            return list(self.predictors)
        return [c for c in df.columns if c not in self.outcome_names]

    def fit(self, df: pd.DataFrame) -> "FeaturePipeline":
        """Fit pipeline (store predictor columns).

        Args:
            df: Training rows.

        Returns:
            Self for chaining.
        """
        missing = [c for c in self.outcome_names if c not in df.columns]
        if missing:
            raise KeyError(f"Outcome columns not found: {missing}")
        self._fitted_cols = self._select_predictors(df)
        return self

    def transform(self, df: pd.DataFrame) -> np.ndarray:
        """Transform dataframe to a float feature matrix."""
        if self._fitted_cols is None:
            raise RuntimeError("Pipeline not fitted. Call fit() first.")

        return df[self._fitted_cols].to_numpy(dtype=np.float64)

    def outcomes(self, df: pd.DataFrame) -> np.ndarray:
        """Outcome values: 1D for a single outcome, 2D otherwise."""
        if isinstance(self.outcome, str):
            return df[self.outcome].to_numpy()
        return df[self.outcome_names].to_numpy(dtype=np.float64)

    @property
    def feature_names(self) -> List[str]:
        """Get fitted feature column names."""
        if self._fitted_cols is None:
            raise RuntimeError("Pipeline not fitted.")
        return self._fitted_cols

    def __repr__(self) -> str:
        return f"FeaturePipeline(outcome={self.outcome!r}, predictors={self.predictors!r})"


class RecipePreprocessor(FeaturePipeline):
    """Preprocessor backed by an estimated scikit-learn transformer.

    The transformer is cloned and fit on the training rows; validation rows
    are transformed with that training fit.

    Example:
        >>> RecipePreprocessor(StandardScaler(), outcome="y")
    """

    def __init__(
        self,
        transformer: Any,
        outcome: str | Sequence[str] = "y",
        predictors: List[str] | None = None,
    ):
        super().__init__(outcome=outcome, predictors=predictors)
        self.transformer = transformer
        self._fitted_transformer: Any = None

    def get_params(self, deep: bool = True) -> Dict[str, Any]:
        params = super().get_params(deep=deep)
        params["transformer"] = self.transformer
        if deep and hasattr(self.transformer, "get_params"):
            for key, value in self.transformer.get_params(deep=True).items():
                params[f"transformer__{key}"] = value
        return params

    def fit(self, df: pd.DataFrame) -> "RecipePreprocessor":
        super().fit(df)
        self._fitted_transformer = clone(self.transformer)
        self._fitted_transformer.fit(df[self._fitted_cols])
        return self

    def transform(self, df: pd.DataFrame) -> np.ndarray:
        if self._fitted_transformer is None:
            raise RuntimeError("Pipeline not fitted. Call fit() first.")

        out = self._fitted_transformer.transform(df[self._fitted_cols])
        if hasattr(out, "toarray"):
            out = out.toarray()
        return np.asarray(out, dtype=np.float64)

    def __repr__(self) -> str:
        return f"RecipePreprocessor({self.transformer!r}, outcome={self.outcome!r})"


def is_preprocessor(obj: Any) -> bool:
    """Whether ``obj`` is a formula-style or recipe preprocessor."""
    return isinstance(obj, FeaturePipeline)
