"""Partial derivatives of the model with respect to its parameters.

Two strategies fill the N x P derivative cache:

- AnalyticDerivatives calls the model's closed-form derivative filler once
  per data point.
- NumericalDerivatives estimates every (point, parameter) pair with an
  adaptive forward difference. The perturbation is additive and starts at
  `initial_step`, shrinking by `shrink` each round. A point stops refining
  when successive quotients agree within the threshold, when the step drops
  to the threshold, when the truncation error |dq| / (shrink - 1) grows, or
  when the raw difference is zero or the quotient is not finite. The value
  kept is the last stable quotient, i.e. the one confirmed by the following
  round.

The strategy is chosen once per session by `select_strategy`.
"""

from __future__ import annotations

from typing import Any, Callable, Optional, Sequence

import numpy as np

from ..contract import DerivativeFiller, ModelFunction
from .normal_equations import evaluate


class AnalyticDerivatives:
    numerical = False

    def __init__(self, builder: Callable[[Sequence[float]], DerivativeFiller]):
        self._builder = builder

    def compute(
        self,
        parameters: np.ndarray,
        x: np.ndarray,
        estimate: np.ndarray,
        out: np.ndarray,
        *,
        skip: Sequence[int] = (),
    ) -> np.ndarray:
        # Columns in `skip` are zeroed by the caller after the fill.
        fill = self._builder(parameters)
        with np.errstate(all="ignore"):
            for i in range(x.shape[0]):
                fill(float(x[i]), out[i])
        return out


class NumericalDerivatives:
    numerical = True

    def __init__(
        self,
        function_builder: Callable[[Sequence[float]], ModelFunction],
        n_params: int,
        *,
        threshold: float = 1e-4,
        initial_step: float = 1.0,
        shrink: float = 1.1,
    ):
        self._build = function_builder
        self.threshold = float(threshold)
        self.initial_step = float(initial_step)
        self.shrink = float(shrink)
        self._perturbed = np.empty(n_params, dtype=float)
        self._shifted: Optional[np.ndarray] = None

    def compute(
        self,
        parameters: np.ndarray,
        x: np.ndarray,
        estimate: np.ndarray,
        out: np.ndarray,
        *,
        skip: Sequence[int] = (),
    ) -> np.ndarray:
        skipped = set(skip)
        for j in range(parameters.shape[0]):
            if j in skipped:
                out[:, j] = 0.0
                continue
            out[:, j] = self.partial(parameters, j, x, estimate)
        return out

    def partial(
        self,
        parameters: np.ndarray,
        index: int,
        x: np.ndarray,
        y0: np.ndarray,
    ) -> np.ndarray:
        """Estimate df/dp[index] at every x; y0 is f(x) at `parameters`."""
        n = x.shape[0]
        threshold = self.threshold
        older = np.zeros(n)
        newer = np.zeros(n)
        count = np.zeros(n, dtype=int)
        last_err = np.full(n, np.inf)
        active = np.ones(n, dtype=bool)

        perturbed = self._perturbed
        perturbed[:] = parameters
        if self._shifted is None or self._shifted.shape[0] != n:
            self._shifted = np.empty(n, dtype=float)
        y1 = self._shifted
        eps = self.initial_step

        with np.errstate(all="ignore"):
            while eps > threshold and active.any():
                perturbed[index] = parameters[index] + eps
                evaluate(self._build(perturbed), x, y1)
                d = y1 - y0
                q = d / eps

                stop = (d == 0.0) | ~np.isfinite(q)
                err = np.where(count >= 2, np.abs(older - newer) / (self.shrink - 1.0), np.inf)
                stop |= err > last_err
                step = active & ~stop

                last_err[step] = err[step]
                older[step] = newer[step]
                newer[step] = q[step]
                count[step] += 1

                settled = (count >= 2) & (np.abs(older - newer) <= threshold)
                active = step & ~settled
                eps /= self.shrink

        return np.where(count >= 2, older, np.where(count == 1, newer, 0.0))


def select_strategy(
    model: Any,
    n_params: int,
    *,
    threshold: float,
    derivative_builder: Optional[Callable[[Sequence[float]], DerivativeFiller]],
):
    """Return the derivative strategy for `model`."""
    if derivative_builder is not None:
        return AnalyticDerivatives(derivative_builder)
    return NumericalDerivatives(model.get_function, n_params, threshold=threshold)
