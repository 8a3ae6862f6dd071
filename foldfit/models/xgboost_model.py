"""
XGBoost classifier construction.

XGBClassifier follows the scikit-learn estimator API, so the resampling
engine clones, fits and predicts it like any other classifier. Outcome
labels must be encoded as integers 0..K-1.
"""

from __future__ import annotations

import xgboost as xgb

from foldfit.config import XGBoostConfig


def build_xgb_classifier(cfg: XGBoostConfig | None = None) -> xgb.XGBClassifier:
    """Create an unfitted XGBClassifier from config.

    Args:
        cfg: Configuration. Uses defaults if None.
    """
    cfg = cfg or XGBoostConfig()
    return xgb.XGBClassifier(
        n_estimators=cfg.n_estimators,
        max_depth=cfg.max_depth,
        learning_rate=cfg.learning_rate,
        subsample=cfg.subsample,
        colsample_bytree=cfg.colsample_bytree,
        random_state=cfg.random_seed,
        eval_metric="logloss",
    )
