from __future__ import annotations

import inspect
from typing import Any, Callable, Dict, Optional, Tuple

import numpy as np


def signature_parameters(func: Callable[..., Any]) -> Tuple[Tuple[str, Optional[float]], ...]:
    """Return (name, numeric default or None) for each fit parameter of `func`.

    The first argument is the independent variable and is skipped.
    """
    arguments = list(inspect.signature(func).parameters.values())
    if len(arguments) < 2:
        raise TypeError("Model function must take x and at least one parameter.")
    if any(a.kind in (a.VAR_POSITIONAL, a.VAR_KEYWORD) for a in arguments):
        raise TypeError("*args/**kwargs are not supported in model functions.")

    out = []
    for a in arguments[1:]:
        d = a.default
        numeric = isinstance(d, (int, float, np.integer, np.floating)) and not isinstance(d, bool)
        out.append((a.name, float(d) if numeric else None))
    return tuple(out)


def goodness_of_fit(y: np.ndarray, chi2: float, n_free: int) -> Dict[str, float]:
    """R² and adjusted R² of a least-squares fit.

    Adjusted R² is ``1 - Se/St * (N - 1) / (N - P - 1)`` with Se the residual
    sum of squares and St the total sum of squares about the mean. NaN when
    it is undefined (N - P - 1 <= 0 or constant y).
    """
    y = np.asarray(y, dtype=float)
    n = int(y.size)
    st = float(np.sum((y - np.mean(y)) ** 2)) if n else float("nan")
    se = float(chi2)
    if n == 0 or not st > 0.0:
        return {"r_squared": float("nan"), "adjusted_r_squared": float("nan")}
    r2 = 1.0 - se / st
    dof = n - int(n_free) - 1
    adj = 1.0 - se / st * (n - 1) / dof if dof > 0 else float("nan")
    return {"r_squared": r2, "adjusted_r_squared": adj}
