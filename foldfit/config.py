"""
Configuration management using pydantic.

All config classes use pydantic for validation and YAML loading.
Config files are stored in configs/ directory.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Literal, Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator


# Base path for config files
CONFIGS_DIR = Path(__file__).parent.parent / "configs"


def load_yaml(path: Path | str) -> dict[str, Any]:
    """Load a YAML file and return as dict."""
    with open(path) as f:
        return yaml.safe_load(f) or {}


class ControlPolicy(BaseModel):
    """Options governing what each resample retains and how the run executes.

    The policy is frozen: it is built once per run and shared read-only by
    every split.

    Attributes:
        save_predictions: Keep the per-row validation predictions of each split.
        save_workflow: Keep the workflow fitted on the last successful split.
        extract: Function applied to each fitted workflow; its return value is
            kept on the split outcome. Failures are recorded as notes only.
        verbose: Print one progress line per completed split.
        allow_parallel: Run splits in parallel when the active joblib
            configuration provides more than one worker.
        event_times: Evaluation time points for time-indexed survival metrics.
        event_level: Which class level is the event for two-class metrics.
        seed: Seed for per-split random states. Seeds are assigned by split
            position, so results do not depend on execution order.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    save_predictions: bool = False
    save_workflow: bool = False
    extract: Optional[Callable[[Any], Any]] = None
    verbose: bool = False
    allow_parallel: bool = True
    event_times: Optional[Tuple[float, ...]] = None
    event_level: Literal["first", "second"] = "first"
    seed: Optional[int] = None

    @field_validator("event_times", mode="before")
    @classmethod
    def _as_tuple(cls, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, (int, float)):
            return (float(value),)
        return tuple(float(v) for v in value)

    @classmethod
    def from_yaml(cls, path: Path | str | None = None) -> ControlPolicy:
        """Load config from YAML file.

        Args:
            path: Path to YAML file. If None, uses configs/control.yaml.
        """
        if path is None:
            path = CONFIGS_DIR / "control.yaml"
        return cls(**load_yaml(path))


class ResampleConfig(BaseModel):
    """Configuration for V-fold cross-validation splits."""

    v: int = Field(default=10, ge=2)
    repeats: int = Field(default=1, ge=1)
    strata: Optional[str] = None
    random_seed: int = 42

    @classmethod
    def from_yaml(cls, path: Path | str | None = None) -> ResampleConfig:
        """Load config from YAML file.

        Args:
            path: Path to YAML file. If None, uses configs/resamples.yaml.
        """
        if path is None:
            path = CONFIGS_DIR / "resamples.yaml"
        return cls(**load_yaml(path))


class XGBoostConfig(BaseModel):
    """Configuration for the XGBoost classifier."""

    n_estimators: int = 100
    max_depth: int = 3
    learning_rate: float = 0.1
    subsample: float = 0.8
    colsample_bytree: float = 0.8
    random_seed: int = 42

    @classmethod
    def from_yaml(cls, path: Path | str | None = None) -> XGBoostConfig:
        """Load config from YAML file.

        Args:
            path: Path to YAML file. If None, uses configs/model_xgboost.yaml.
        """
        if path is None:
            path = CONFIGS_DIR / "model_xgboost.yaml"
        return cls(**load_yaml(path))
