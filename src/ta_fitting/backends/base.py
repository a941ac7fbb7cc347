"""What a fitting backend receives and returns for one dataset."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Protocol

import numpy as np


@dataclass(frozen=True)
class BackendResult:
    # Every parameter by name, fixed ones included.
    values: Dict[str, float]
    # Covariance of the free parameters in declaration order.
    covariance: Optional[np.ndarray] = None
    success: bool = True
    message: str = ""
    stats: Dict[str, Any] = field(default_factory=dict)


class Backend(Protocol):
    name: str

    def fit_one(
        self,
        model: Any,
        dataset: Any,
        seed: Mapping[str, float],
        options: Mapping[str, Any],
    ) -> BackendResult:
        """Fit `model` to `dataset` starting from `seed`; never raises on a failed fit."""
        ...
