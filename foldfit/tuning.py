"""Placeholders for tuning parameters and detection of unresolved ones."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List


@dataclass(frozen=True)
class Tune:
    """Marks a parameter whose value has not been decided yet."""

    id: str = ""

    def __repr__(self) -> str:
        return f"tune({self.id!r})" if self.id else "tune()"


def tune(id: str = "") -> Tune:
    """Create a tuning placeholder, e.g. ``LogisticRegression(C=tune())``."""
    return Tune(id)


def _params_of(obj: Any) -> Dict[str, Any]:
    if obj is None:
        return {}
    if hasattr(obj, "get_params"):
        try:
            return obj.get_params(deep=True)
        except TypeError:
            return obj.get_params()
    return {}


def find_unresolved(obj: Any, prefix: str = "") -> List[str]:
    """Names of parameters on ``obj`` that are still ``tune()`` placeholders.

    Parameters are discovered through scikit-learn's ``get_params``; objects
    without it have none.
    """
    names = []
    for name, value in _params_of(obj).items():
        if isinstance(value, Tune):
            names.append(f"{prefix}{name}")
    return names
