"""
Workflows: a preprocessor and a model fit and predicted as one unit.

A ``Workflow`` is an unfitted template. Fitting never mutates it; each fit
works on copies and returns a ``FittedWorkflow``.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Collection, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from sklearn.base import clone, is_classifier, is_regressor

from foldfit.errors import ConfigurationError, PredictionError
from foldfit.evaluation.metric_set import prob_column, survival_column
from foldfit.preprocessing.feature_pipeline import FeaturePipeline
from foldfit.tuning import find_unresolved

MODES = ("classification", "regression", "censored regression")


def model_mode(model: Any) -> str:
    """Model mode: "classification", "regression" or "censored regression"."""
    mode = getattr(model, "mode", None)
    if mode in MODES:
        return mode
    if is_classifier(model):
        return "classification"
    if is_regressor(model):
        return "regression"
    raise ConfigurationError(
        f"Cannot determine the mode of {type(model).__name__}; set a `mode` attribute "
        f"to one of {MODES}."
    )


def _copy_estimator(model: Any) -> Any:
    if hasattr(model, "get_params"):
        return clone(model)
    return copy.deepcopy(model)


@dataclass(frozen=True)
class Workflow:
    """Unfitted preprocessor + model pair.

    Attributes:
        preprocessor: A FeaturePipeline or RecipePreprocessor.
        model: An estimator with fit/predict (scikit-learn API).
    """

    preprocessor: FeaturePipeline
    model: Any

    @property
    def outcome_names(self) -> List[str]:
        return self.preprocessor.outcome_names

    @property
    def mode(self) -> str:
        return model_mode(self.model)

    def unresolved_parameters(self) -> List[str]:
        """Names of parameters still set to ``tune()``."""
        return find_unresolved(self.preprocessor, "preprocessor__") + find_unresolved(
            self.model, "model__"
        )

    def fit_preprocessor(
        self, data: pd.DataFrame
    ) -> Tuple[FeaturePipeline, np.ndarray, np.ndarray]:
        """Estimate a copy of the preprocessor on ``data`` and apply it.

        Returns:
            The fitted preprocessor, the transformed predictors of ``data``
            and its outcome values.
        """
        preprocessor = copy.deepcopy(self.preprocessor).fit(data)
        return preprocessor, preprocessor.transform(data), preprocessor.outcomes(data)

    def fit_model(
        self,
        X: np.ndarray,
        y: np.ndarray,
        random_state: Optional[int] = None,
    ) -> Any:
        """Fit a copy of the model on preprocessed training rows."""
        model = _copy_estimator(self.model)
        if random_state is not None and hasattr(model, "get_params"):
            if "random_state" in model.get_params(deep=False):
                model.set_params(random_state=random_state)
        model.fit(X, y)
        return model

    def fit(self, data: pd.DataFrame, random_state: Optional[int] = None) -> FittedWorkflow:
        """Fit preprocessor and model on ``data``."""
        preprocessor, X, y = self.fit_preprocessor(data)
        model = self.fit_model(X, y, random_state)
        return FittedWorkflow(self, preprocessor, model)


@dataclass(frozen=True)
class FittedWorkflow:
    """A workflow whose preprocessor and model have been estimated."""

    workflow: Workflow
    preprocessor: FeaturePipeline
    model: Any

    @property
    def classes(self) -> Optional[List[Any]]:
        classes = getattr(self.model, "classes_", None)
        return None if classes is None else list(classes)

    def extract_model(self) -> Any:
        return self.model

    def extract_preprocessor(self) -> FeaturePipeline:
        return self.preprocessor

    def predict(
        self,
        data: pd.DataFrame,
        pred_types: Collection[str] = ("class",),
        eval_time: Optional[Sequence[float]] = None,
    ) -> pd.DataFrame:
        """Predict on new rows using the training-fitted preprocessor.

        Args:
            data: Rows to predict.
            pred_types: Any of "class", "prob", "numeric", "time", "survival".
            eval_time: Times for survival probabilities.

        Returns:
            Prediction columns (".pred_class", ".pred_<level>", ".pred",
            ".pred_time", ".pred_survival_<t>") indexed like ``data``.
        """
        X = self.preprocessor.transform(data)
        mode = self.workflow.mode
        out: dict[str, np.ndarray] = {}

        if mode == "classification":
            out[".pred_class"] = np.asarray(self.model.predict(X))
            if "prob" in pred_types:
                if not hasattr(self.model, "predict_proba"):
                    raise PredictionError(
                        f"{type(self.model).__name__} cannot predict class probabilities."
                    )
                proba = np.asarray(self.model.predict_proba(X))
                for level, column in zip(self.classes, proba.T):
                    out[prob_column(level)] = column
        elif mode == "regression":
            out[".pred"] = np.asarray(self.model.predict(X), dtype=float)
        else:
            if "time" in pred_types:
                out[".pred_time"] = np.asarray(self.model.predict(X), dtype=float)
            if "survival" in pred_types:
                if not eval_time:
                    raise PredictionError("Survival probabilities need evaluation times.")
                if not hasattr(self.model, "predict_survival"):
                    raise PredictionError(
                        f"{type(self.model).__name__} cannot predict survival probabilities."
                    )
                surv = np.asarray(self.model.predict_survival(X, np.asarray(eval_time)))
                for j, t in enumerate(eval_time):
                    out[survival_column(t)] = surv[:, j]

        return pd.DataFrame(out, index=data.index)
