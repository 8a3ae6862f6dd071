from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from foldfit.config import ControlPolicy, ResampleConfig, XGBoostConfig


def test_control_defaults() -> None:
    control = ControlPolicy()

    assert control.save_predictions is False
    assert control.save_workflow is False
    assert control.extract is None
    assert control.allow_parallel is True
    assert control.event_times is None
    assert control.event_level == "first"


def test_control_is_frozen() -> None:
    control = ControlPolicy()
    with pytest.raises(ValidationError):
        control.verbose = True


def test_event_times_become_a_tuple() -> None:
    assert ControlPolicy(event_times=[10, 20]).event_times == (10.0, 20.0)
    assert ControlPolicy(event_times=5).event_times == (5.0,)


def test_event_level_is_validated() -> None:
    with pytest.raises(ValidationError):
        ControlPolicy(event_level="third")


def test_control_from_yaml(tmp_path: Path) -> None:
    path = tmp_path / "control.yaml"
    path.write_text("save_predictions: true\nevent_times: [1, 2.5]\nseed: 3\n")

    control = ControlPolicy.from_yaml(path)
    assert control.save_predictions is True
    assert control.event_times == (1.0, 2.5)
    assert control.seed == 3


def test_default_yaml_files_load() -> None:
    assert ControlPolicy.from_yaml().seed == 42
    assert ResampleConfig.from_yaml().v == 10
    assert XGBoostConfig.from_yaml().max_depth == 3


def test_resample_config_validates_v() -> None:
    with pytest.raises(ValidationError):
        ResampleConfig(v=1)
