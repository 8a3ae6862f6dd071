from __future__ import annotations

import numpy as np
import pandas as pd
import pytest
from sklearn.linear_model import LinearRegression, LogisticRegression

from foldfit.errors import ConfigurationError
from foldfit.models import (
    ExponentialSurvivalModel,
    LogisticRegressionConfig,
    build_logistic_regression,
    build_xgb_classifier,
)
from foldfit.preprocessing import FeaturePipeline
from foldfit.tuning import tune
from foldfit.workflows import Workflow, model_mode


def test_model_modes() -> None:
    assert model_mode(LogisticRegression()) == "classification"
    assert model_mode(LinearRegression()) == "regression"
    assert model_mode(ExponentialSurvivalModel()) == "censored regression"
    assert model_mode(build_xgb_classifier()) == "classification"
    with pytest.raises(ConfigurationError):
        model_mode(object())


def test_unresolved_parameters_are_named() -> None:
    workflow = Workflow(FeaturePipeline(), LogisticRegression(C=tune("penalty"), tol=tune()))
    assert sorted(workflow.unresolved_parameters()) == ["model__C", "model__tol"]
    assert repr(tune("penalty")) == "tune('penalty')"


def test_feature_pipeline_excludes_outcomes(survival_df: pd.DataFrame) -> None:
    prep = FeaturePipeline(outcome=["time", "event"]).fit(survival_df)

    assert prep.feature_names == ["x"]
    assert prep.transform(survival_df).shape == (len(survival_df), 1)
    assert prep.outcomes(survival_df).shape == (len(survival_df), 2)


def test_fit_sets_random_state_when_given(binary_df: pd.DataFrame) -> None:
    workflow = Workflow(FeaturePipeline(outcome="y"), build_logistic_regression(LogisticRegressionConfig()))
    fitted = workflow.fit(binary_df, random_state=5)

    assert fitted.model.random_state == 5
    assert workflow.model.random_state == 42
    assert fitted.classes == [0, 1]


def test_predict_probability_columns(binary_df: pd.DataFrame) -> None:
    fitted = Workflow(FeaturePipeline(outcome="y"), LogisticRegression()).fit(binary_df)
    preds = fitted.predict(binary_df.iloc[:10], pred_types={"class", "prob"})

    assert list(preds.columns) == [".pred_class", ".pred_0", ".pred_1"]
    assert len(preds) == 10


def test_exponential_survival_model(survival_df: pd.DataFrame) -> None:
    X = survival_df[["x"]].to_numpy()
    y = survival_df[["time", "event"]].to_numpy()
    model = ExponentialSurvivalModel().fit(X, y)

    surv = model.predict_survival(X, [0.0, 10.0, 20.0])
    assert surv.shape == (len(survival_df), 3)
    np.testing.assert_allclose(surv[:, 0], 1.0)
    assert np.all(surv[:, 1] >= surv[:, 2])
    # Hazard increases with x
    assert model.regressor_.coef_[0] > 0
    np.testing.assert_allclose(model.predict(X), 1.0 / model.hazard(X))


def test_exponential_survival_model_requires_events(survival_df: pd.DataFrame) -> None:
    y = survival_df[["time", "event"]].to_numpy().copy()
    y[:, 1] = 0
    with pytest.raises(ValueError, match="No events"):
        ExponentialSurvivalModel().fit(survival_df[["x"]].to_numpy(), y)


def test_xgboost_workflow_predicts(binary_df: pd.DataFrame) -> None:
    fitted = Workflow(FeaturePipeline(outcome="y"), build_xgb_classifier()).fit(binary_df)
    preds = fitted.predict(binary_df, pred_types={"prob"})

    assert set(preds[".pred_class"].unique()) <= {0, 1}
    np.testing.assert_allclose(preds[".pred_0"] + preds[".pred_1"], 1.0, rtol=1e-5)


def test_tuning_placeholder_in_formula_preprocessor_is_found() -> None:
    workflow = Workflow(FeaturePipeline(outcome="y", predictors=tune()), LogisticRegression())
    assert workflow.unresolved_parameters() == ["preprocessor__predictors"]


def test_fit_preprocessor_returns_training_matrices(binary_df: pd.DataFrame) -> None:
    workflow = Workflow(FeaturePipeline(outcome="y"), LogisticRegression())
    prep, X, y = workflow.fit_preprocessor(binary_df)

    assert prep.feature_names == ["x0", "x1"]
    assert X.shape == (len(binary_df), 2)
    np.testing.assert_array_equal(y, binary_df["y"].to_numpy())
