from __future__ import annotations

import math
from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional

from .errors import ValidationError


@dataclass(frozen=True)
class SolverConfig:
    """Tuning knobs for one Levenberg-Marquardt session.

    max_iteration:
        Upper bound on the number of iterations; the loop stops once the
        counter exceeds it.
    minimum_delta_chi2:
        Convergence threshold on |chi2 - trial chi2|.
    derivative_threshold:
        Step/convergence epsilon of the adaptive numerical derivative.
    initial_lambda:
        Starting value of the damping parameter.
    """

    max_iteration: int = 100
    minimum_delta_chi2: float = 1e-30
    derivative_threshold: float = 1e-4
    initial_lambda: float = 1e-3

    def __post_init__(self) -> None:
        if int(self.max_iteration) < 0:
            raise ValidationError("max_iteration must be >= 0.")
        if not self.minimum_delta_chi2 >= 0.0:
            raise ValidationError("minimum_delta_chi2 must be >= 0.")
        if not (self.derivative_threshold > 0.0 and math.isfinite(self.derivative_threshold)):
            raise ValidationError("derivative_threshold must be a finite positive number.")
        if not (self.initial_lambda > 0.0 and math.isfinite(self.initial_lambda)):
            raise ValidationError("initial_lambda must be a finite positive number.")

    @staticmethod
    def from_options(options: Optional[Mapping[str, Any]] = None) -> "SolverConfig":
        """Build a config from a backend_options mapping.

        Keys that are not solver settings are ignored; they may belong to a
        different backend.
        """
        options = dict(options or {})
        kwargs: dict[str, Any] = {}
        for f in fields(SolverConfig):
            if f.name in options and options[f.name] is not None:
                caster = int if f.name == "max_iteration" else float
                kwargs[f.name] = caster(options[f.name])
        return SolverConfig(**kwargs)
