from __future__ import annotations

import numpy as np
import pandas as pd
import pytest


@pytest.fixture
def binary_df() -> pd.DataFrame:
    """Two predictors, binary outcome with a clear signal."""
    rng = np.random.default_rng(0)
    n = 120
    X = rng.normal(size=(n, 2))
    logits = 1.5 * X[:, 0] - 1.0 * X[:, 1]
    y = (rng.uniform(size=n) < 1 / (1 + np.exp(-logits))).astype(int)
    return pd.DataFrame({"x0": X[:, 0], "x1": X[:, 1], "y": y})


@pytest.fixture
def regression_df() -> pd.DataFrame:
    rng = np.random.default_rng(1)
    n = 100
    x = rng.normal(size=n)
    return pd.DataFrame({"x": x, "y": 2.0 * x + rng.normal(scale=0.5, size=n)})


@pytest.fixture
def survival_df() -> pd.DataFrame:
    """Exponential event times with independent exponential censoring."""
    rng = np.random.default_rng(2)
    n = 200
    x = rng.normal(size=n)
    event_time = rng.exponential(scale=1.0 / np.exp(-2.0 + 0.5 * x))
    censor_time = rng.exponential(scale=25.0, size=n)
    return pd.DataFrame(
        {
            "x": x,
            "time": np.minimum(event_time, censor_time),
            "event": (event_time <= censor_time).astype(int),
        }
    )
