"""Model constructors and model implementations."""

from foldfit.config import XGBoostConfig
from foldfit.models.logistic_regression import LogisticRegressionConfig, build_logistic_regression
from foldfit.models.survival import ExponentialSurvivalModel
from foldfit.models.xgboost_model import build_xgb_classifier

__all__ = [
    "XGBoostConfig",
    "build_xgb_classifier",
    "LogisticRegressionConfig",
    "build_logistic_regression",
    "ExponentialSurvivalModel",
]
