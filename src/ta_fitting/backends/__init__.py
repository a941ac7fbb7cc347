"""Registry of fitting backends, selected by name in `Model.fit`."""

from __future__ import annotations

from typing import Dict

from .base import Backend, BackendResult
from .levenberg_marquardt import LevenbergMarquardtBackend
from .scipy_curve_fit import ScipyCurveFitBackend

_REGISTRY: Dict[str, Backend] = {
    b.name: b for b in (LevenbergMarquardtBackend(), ScipyCurveFitBackend())
}

AVAILABLE_BACKENDS = tuple(_REGISTRY)


def get_backend(name: str) -> Backend:
    if name not in _REGISTRY:
        raise ValueError(f"Unknown backend {name!r}. Available: {AVAILABLE_BACKENDS}")
    return _REGISTRY[name]


__all__ = ["AVAILABLE_BACKENDS", "Backend", "BackendResult", "get_backend"]
