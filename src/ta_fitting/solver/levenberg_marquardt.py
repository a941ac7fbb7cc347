"""Levenberg-Marquardt session for nonlinear least-squares curve fitting.

Minimises chi2 = sum (y_i - f(x_i; p))^2 starting from a given parameter
vector. Each iteration evaluates the model at the incumbent parameters,
fills the derivative cache, assembles the damped normal equations, solves
them for a trial step and compares the trial chi2 with the incumbent one.
A better trial is adopted and the damping is relaxed (lambda / 10); a worse
one is rejected and the damping is tightened (lambda * 10). Small lambda
behaves like Gauss-Newton, large lambda like a short steepest-descent step.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, NamedTuple, Optional, Sequence

import numpy as np

from ..constraints import enforce_constraints
from ..contract import FittingModel, constraints_of, derivative_builder, initial_values_of
from .config import SolverConfig
from .derivatives import select_strategy
from .errors import ValidationError
from .linalg import solve_in_place
from .normal_equations import (
    assemble_gradient,
    assemble_hessian,
    chi_squared,
    zero_columns,
)

logger = logging.getLogger(__name__)

__all__ = ["FitStatus", "LevenbergMarquardt", "SessionOutcome", "ValidationError"]


class FitStatus(Enum):
    NOT_STARTED = "not started"
    CONVERGED = "converged"
    MAX_ITERATIONS = "maximum iterations exceeded"
    NON_FINITE = "non-finite chi-squared"


class SessionOutcome(NamedTuple):
    """Either a constructed session or the validation error that prevented it."""

    session: Optional["LevenbergMarquardt"]
    error: Optional[ValidationError]

    @property
    def ok(self) -> bool:
        return self.session is not None

    def unwrap(self) -> "LevenbergMarquardt":
        if self.session is None:
            raise self.error  # type: ignore[misc]
        return self.session


class LevenbergMarquardt:
    """One fit of `model` to (x, y).

    Parameters
    ----------
    model:
        Object implementing the FittingModel contract. If it also provides
        closed-form derivatives they are used; otherwise derivatives are
        estimated numerically.
    x, y:
        Samples; must have the same length (at least one point).
    parameters:
        Initial parameter vector. Defaults to the model's initial values.
    fixed:
        Indices of parameters held at their initial value.
    config:
        Solver settings; defaults to SolverConfig().

    A session owns all of its work buffers and is meant for a single
    dataset; do not call fit() concurrently on the same session.
    """

    def __init__(
        self,
        model: FittingModel,
        x: Any,
        y: Any,
        parameters: Optional[Sequence[float]] = None,
        fixed: Sequence[int] = (),
        config: Optional[SolverConfig] = None,
    ):
        x_arr = np.asarray(x, dtype=float)
        y_arr = np.asarray(y, dtype=float)
        if x_arr.ndim != 1 or y_arr.ndim != 1:
            raise ValidationError("x and y must be one-dimensional.")
        if x_arr.shape[0] != y_arr.shape[0]:
            raise ValidationError(
                f"The number of x and y values must be the same (got {x_arr.shape[0]} and {y_arr.shape[0]})."
            )
        if x_arr.shape[0] == 0:
            raise ValidationError("At least one data point is required.")

        constraints = constraints_of(model)
        if parameters is None:
            p0 = initial_values_of(model)
        else:
            p0 = np.array(parameters, dtype=float).reshape(-1)
        if p0.shape[0] != len(constraints):
            raise ValidationError(
                f"Model declares {len(constraints)} parameters but {p0.shape[0]} initial values were given."
            )

        fixed_idx = sorted({int(i) for i in fixed})
        bad = [i for i in fixed_idx if not 0 <= i < p0.shape[0]]
        if bad:
            raise ValidationError(f"Fixed parameter indices out of range: {bad}")

        self.config = config if config is not None else SolverConfig()
        self.model = model

        self._x = x_arr.copy()
        self._y = y_arr.copy()
        self._x.setflags(write=False)
        self._y.setflags(write=False)

        n, p = self._x.shape[0], p0.shape[0]
        self._constraints = constraints
        self._fixed = tuple(fixed_idx)
        self._free = np.ones(p, dtype=bool)
        self._free[list(self._fixed)] = False

        self._parameters = p0
        self._trial = np.empty(p, dtype=float)
        self._estimate = np.empty(n, dtype=float)
        self._residuals = np.empty(n, dtype=float)
        self._trial_estimate = np.empty(n, dtype=float)
        self._trial_residuals = np.empty(n, dtype=float)
        self._derivatives = np.zeros((n, p), dtype=float)
        self._gradient = np.empty(p, dtype=float)
        self._hessian = np.empty((p, p), dtype=float)

        self._strategy = select_strategy(
            model,
            p,
            threshold=self.config.derivative_threshold,
            derivative_builder=derivative_builder(model),
        )

        self._lambda = float(self.config.initial_lambda)
        self._status = FitStatus.NOT_STARTED
        self._iterations = 0
        self._chi2 = float("nan")

    @classmethod
    def create(cls, *args: Any, **kwargs: Any) -> SessionOutcome:
        """Construct a session, reporting validation failures as a value."""
        try:
            return SessionOutcome(cls(*args, **kwargs), None)
        except ValidationError as e:
            return SessionOutcome(None, e)

    # ---- accessors ----
    @property
    def x(self) -> np.ndarray:
        return self._x

    @property
    def y(self) -> np.ndarray:
        return self._y

    @property
    def parameters(self) -> np.ndarray:
        return self._parameters.copy()

    @property
    def lambda_(self) -> float:
        return self._lambda

    @property
    def chi2(self) -> float:
        """Chi-squared at the current parameters (NaN before fit())."""
        return self._chi2

    @property
    def status(self) -> FitStatus:
        return self._status

    @property
    def iterations(self) -> int:
        return self._iterations

    @property
    def fixed(self) -> tuple[int, ...]:
        return self._fixed

    @property
    def numerical_derivatives(self) -> bool:
        return bool(self._strategy.numerical)

    # ---- fitting ----
    def fit(self) -> FitStatus:
        """Run the LM iteration to completion and return the stop status.

        A trial is adopted only when its chi2 is lower than the incumbent's,
        so without constraints the accepted chi2 is non-increasing. Constraints
        are applied to the incumbent after the accept/reject decision, and a
        clamped or rounded vector that was just adopted can have a higher chi2
        than the previously accepted one.
        """
        model = self.model
        cfg = self.config
        params = self._parameters
        trial = self._trial
        iteration = 0

        while True:
            chi2 = chi_squared(
                model.get_function(params),
                self._x,
                self._y,
                estimate=self._estimate,
                residuals=self._residuals,
            )

            self._compute_derivatives()
            assemble_gradient(self._derivatives, self._residuals, self._gradient)
            assemble_hessian(self._derivatives, self._lambda, self._hessian)
            solve_in_place(self._hessian, self._gradient)

            trial[:] = params
            np.add(params, self._gradient, out=trial, where=self._free)

            trial_chi2 = chi_squared(
                model.get_function(trial),
                self._x,
                self._y,
                estimate=self._trial_estimate,
                residuals=self._trial_residuals,
            )

            if np.isnan(trial_chi2):
                enforce_constraints(params, self._constraints, skip=self._fixed)
                self._status = FitStatus.NON_FINITE
                break

            accepted = trial_chi2 < chi2
            if accepted:
                self._lambda /= 10.0
                params[:] = trial
            else:
                self._lambda *= 10.0
            enforce_constraints(params, self._constraints, skip=self._fixed)

            iteration += 1
            logger.debug(
                "iteration %d: chi2=%.6g trial_chi2=%.6g lambda=%.3g accepted=%s",
                iteration,
                chi2,
                trial_chi2,
                self._lambda,
                accepted,
            )

            if iteration > cfg.max_iteration:
                self._status = FitStatus.MAX_ITERATIONS
                break
            if abs(chi2 - trial_chi2) < cfg.minimum_delta_chi2:
                self._status = FitStatus.CONVERGED
                break

        self._iterations = iteration
        self._chi2 = chi_squared(
            model.get_function(params),
            self._x,
            self._y,
            estimate=self._estimate,
            residuals=self._residuals,
        )
        logger.debug(
            "stopped after %d iterations (%s): chi2=%.6g lambda=%.3g",
            iteration,
            self._status.value,
            self._chi2,
            self._lambda,
        )
        return self._status

    def jacobian(self) -> np.ndarray:
        """Derivative cache evaluated at the current parameters.

        Columns of fixed parameters are zero.
        """
        chi_squared(
            self.model.get_function(self._parameters),
            self._x,
            self._y,
            estimate=self._estimate,
            residuals=self._residuals,
        )
        self._compute_derivatives()
        return self._derivatives.copy()

    def _compute_derivatives(self) -> None:
        self._strategy.compute(
            self._parameters,
            self._x,
            self._estimate,
            self._derivatives,
            skip=self._fixed,
        )
        zero_columns(self._derivatives, self._fixed)
