from __future__ import annotations

from typing import Any, Mapping, Sequence, Tuple

import numpy as np
from scipy.optimize import curve_fit

from ..constraints import POSITIVE_FLOOR, Constraint
from .base import BackendResult


def constraint_bounds(specs: Sequence[Any]) -> Tuple[np.ndarray, np.ndarray]:
    """Lower/upper bounds for curve_fit; INTEGER has no bound form and stays open."""
    lower = {Constraint.POSITIVE: POSITIVE_FLOOR, Constraint.NON_NEGATIVE: 0.0}
    lo = np.array([lower.get(s.constraint, -np.inf) for s in specs], dtype=float)
    return lo, np.full(len(specs), np.inf)


class ScipyCurveFitBackend:
    """Reference backend delegating to scipy.optimize.curve_fit."""

    name = "scipy.curve_fit"

    def fit_one(
        self,
        model: Any,
        dataset: Any,
        seed: Mapping[str, float],
        options: Mapping[str, Any],
    ) -> BackendResult:
        free = [p for p in model.params if not p.fixed]
        names = [p.name for p in free]

        def curve(x, *theta):
            values = dict(seed)
            values.update(zip(names, theta))
            return model.eval(x, params=values)

        kwargs = {}
        if options.get("maxfev") is not None:
            kwargs["maxfev"] = int(options["maxfev"])
        try:
            popt, pcov = curve_fit(
                curve,
                dataset.x,
                dataset.y,
                p0=[seed[n] for n in names],
                bounds=constraint_bounds(free),
                **kwargs,
            )
        except (RuntimeError, TypeError, ValueError) as e:
            return BackendResult(
                values=dict(seed),
                success=False,
                message=str(e),
                stats={"backend": self.name, "error": str(e)},
            )

        values = dict(seed)
        values.update(zip(names, np.asarray(popt, dtype=float).tolist()))
        return BackendResult(
            values=values,
            covariance=np.asarray(pcov, dtype=float),
            message="ok",
            stats={"backend": self.name},
        )
