"""
Exponential (constant hazard) survival model for censored outcomes.

The hazard is log-linear in the predictors, lambda(x) = exp(b0 + x'b), and
is estimated as a Poisson rate with exposure: each row contributes its event
indicator over its observed time. Survival at time t is exp(-lambda(x) t).
"""

from __future__ import annotations

import numpy as np
from sklearn.base import BaseEstimator
from sklearn.linear_model import PoissonRegressor


class ExponentialSurvivalModel(BaseEstimator):
    """Constant hazard survival regression.

    Fit with ``y`` as a two-column array of (time, event), where event is 1
    for an observed event and 0 for a censored row.
    """

    mode = "censored regression"

    def __init__(self, alpha: float = 1e-4, max_iter: int = 300):
        self.alpha = alpha
        self.max_iter = max_iter

    def fit(self, X: np.ndarray, y: np.ndarray) -> "ExponentialSurvivalModel":
        y = np.asarray(y, dtype=np.float64)
        if y.ndim != 2 or y.shape[1] != 2:
            raise ValueError("y must have two columns: (time, event)")
        time, event = y[:, 0], y[:, 1]
        if np.any(time < 0):
            raise ValueError("Event times must be non-negative")
        if not set(np.unique(event)).issubset({0.0, 1.0}):
            raise ValueError("Event indicator must be 0 or 1")
        if event.sum() == 0:
            raise ValueError("No events observed; the hazard cannot be estimated")

        exposure = np.clip(time, 1e-8, None)
        self.regressor_ = PoissonRegressor(alpha=self.alpha, max_iter=self.max_iter)
        self.regressor_.fit(X, event / exposure, sample_weight=exposure)
        return self

    def hazard(self, X: np.ndarray) -> np.ndarray:
        """Estimated constant hazard for each row."""
        if not hasattr(self, "regressor_"):
            raise RuntimeError("Model has not been fitted. Call fit() first.")
        return self.regressor_.predict(X)

    def predict(self, X: np.ndarray) -> np.ndarray:
        """Expected event time, 1 / hazard."""
        return 1.0 / self.hazard(X)

    def predict_survival(self, X: np.ndarray, eval_time: np.ndarray) -> np.ndarray:
        """Survival probabilities with shape (n_samples, n_times)."""
        times = np.asarray(eval_time, dtype=np.float64).reshape(1, -1)
        return np.exp(-self.hazard(X).reshape(-1, 1) * times)
