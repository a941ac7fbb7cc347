from __future__ import annotations

import numpy as np

from ..model import Model
from ..params import ParameterSpec

# Declared initial values A0..A8 for each supported order.
_INITIAL = {
    1: (1e3, -3e1),
    2: (1e3, -1e2, 1e0),
    3: (1e3, -1e2, 1e0, -1e-2),
    4: (1e3, -1e2, 1e1, -1e-1, 1e-3),
    5: (1e3, -1e2, 1e1, -1e-1, 1e-2, -1e-5),
    6: (1e3, -1e-2, 1e1, -1e0, 1e-2, -1e-4, 1e-6),
    7: (1e3, -1e2, 1e1, -1e-1, 1e-3, -1e-5, 1e-7, -1e-9),
    8: (1e3, -1e2, 1e1, -1e0, 1e-2, -1e-4, 1e-6, -1e-8, 1e-10),
}


def polynomial_func(x, *coeffs):
    """A0 + A1*x + A2*x**2 + ... (Horner's scheme)."""
    acc = np.zeros_like(np.asarray(x, dtype=float)) + coeffs[-1]
    for c in coeffs[-2::-1]:
        acc = acc * x + c
    return acc


def polynomial_derivative(x, *coeffs):
    return [x**k for k in range(len(coeffs))]


def polynomial(order: int, *, name: str | None = None) -> Model:
    """Return a polynomial Model of the given order (1-8) with analytic derivatives."""
    if order not in _INITIAL:
        raise ValueError(f"Polynomial order must be between 1 and 8 (got {order}).")
    names = tuple(f"A{k}" for k in range(order + 1))
    return Model(
        name=name or f"poly{order}",
        func=polynomial_func,
        params=tuple(ParameterSpec(name=n, initial=v) for n, v in zip(names, _INITIAL[order])),
        derivative=polynomial_derivative,
    )
