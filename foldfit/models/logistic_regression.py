"""
Logistic Regression classifier configuration.
"""

from __future__ import annotations

from dataclasses import dataclass

from sklearn.linear_model import LogisticRegression


@dataclass
class LogisticRegressionConfig:
    """Configuration for Logistic Regression."""

    C: float = 1.0  # Inverse regularization strength
    solver: str = "lbfgs"
    max_iter: int = 1000
    random_seed: int = 42


def build_logistic_regression(cfg: LogisticRegressionConfig | None = None) -> LogisticRegression:
    """Create an unfitted LogisticRegression from config.

    Args:
        cfg: Configuration. Uses defaults if None.
    """
    cfg = cfg or LogisticRegressionConfig()
    return LogisticRegression(
        C=cfg.C,
        solver=cfg.solver,
        max_iter=cfg.max_iter,
        random_state=cfg.random_seed,
    )
