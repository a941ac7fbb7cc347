"""Chi-squared and damped normal equations for the LM step.

With D the derivative cache (N x P) and r = y - f(x) the residuals, the step
solves ``H dp = g`` where

    g_r  = sum_i r_i D_ir
    H_rc = sum_i D_ir D_ic              (r != c)
    H_rr = (1 + lambda) sum_i D_ir^2

i.e. Levenberg's multiplicative damping of the diagonal.
"""

from __future__ import annotations

from typing import Any, Callable, Sequence

import numpy as np


def evaluate(func: Callable[[Any], Any], x: np.ndarray, out: np.ndarray) -> np.ndarray:
    """Evaluate `func` at every x into `out`.

    The whole array is tried first; a model that only accepts scalars (it
    raises, or returns neither a scalar nor one value per point) is called
    once per point instead. A point whose scalar evaluation raises a math
    error is recorded as NaN.
    """
    with np.errstate(all="ignore"):
        try:
            values = np.asarray(func(x), dtype=float)
        except (TypeError, ValueError):
            values = None
        if values is not None and values.shape in ((), out.shape):
            out[...] = values
            return out
        for i in range(x.shape[0]):
            try:
                out[i] = func(float(x[i]))
            except (ArithmeticError, ValueError):
                out[i] = np.nan
    return out


def chi_squared(
    func: Callable[[Any], Any],
    x: np.ndarray,
    y: np.ndarray,
    *,
    estimate: np.ndarray,
    residuals: np.ndarray,
) -> float:
    """Sum of squared residuals of `func` against y; NaN propagates."""
    evaluate(func, x, estimate)
    with np.errstate(all="ignore"):
        np.subtract(y, estimate, out=residuals)
        return float(np.dot(residuals, residuals))


def zero_columns(derivatives: np.ndarray, columns: Sequence[int]) -> None:
    if len(columns):
        derivatives[:, list(columns)] = 0.0


def assemble_gradient(
    derivatives: np.ndarray, residuals: np.ndarray, out: np.ndarray
) -> np.ndarray:
    with np.errstate(all="ignore"):
        np.dot(residuals, derivatives, out=out)
    return out


def assemble_hessian(
    derivatives: np.ndarray, lam: float, out: np.ndarray
) -> np.ndarray:
    """Build the damped approximate Hessian into `out`.

    The upper triangle is computed and mirrored into the lower one, so the
    off-diagonal part is exactly symmetric.
    """
    p = out.shape[0]
    with np.errstate(all="ignore"):
        np.dot(derivatives.T, derivatives, out=out)
    lower = np.tril_indices(p, -1)
    out[lower] = out.T[lower]
    diag = np.arange(p)
    out[diag, diag] *= 1.0 + lam
    return out
