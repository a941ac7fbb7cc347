from __future__ import annotations

from typing import Dict

import numpy as np

from ..constraints import Constraint
from ..model import Model
from ..params import ParameterSpec


def exponential_func(x, a0, *terms):
    """A0 + sum_k A_k * exp(-x / T_k); `terms` alternates A_k, T_k."""
    out = a0 + np.zeros_like(np.asarray(x, dtype=float))
    for a, t in zip(terms[0::2], terms[1::2]):
        out = out + a * np.exp(-x / t)
    return out


def exponential_derivative(x, a0, *terms):
    out = [1.0]
    for a, t in zip(terms[0::2], terms[1::2]):
        e = np.exp(-x / t)
        out.append(e)
        out.append(a * x * e / (t * t))
    return out


def _guess_exponential(x, y) -> Dict[str, float]:
    """Seed a single decay from the data: tail level, initial amplitude, 1/e time."""
    if x.size < 3 or not (np.all(np.isfinite(x)) and np.all(np.isfinite(y))):
        return {}

    order = np.argsort(x)
    x, y = x[order], y[order]

    a0 = float(y[-1])
    a1 = float(y[0]) - a0
    if a1 == 0.0:
        return {"A0": a0}

    below = np.nonzero(np.abs(y - a0) <= abs(a1) / np.e)[0]
    t1 = float(x[below[0]] - x[0]) if below.size else float(x[-1] - x[0]) / 3.0
    if t1 <= 0.0:
        return {"A0": a0, "A1": a1}
    return {"A0": a0, "A1": a1, "T1": t1}


def exponential(components: int = 1, *, name: str | None = None) -> Model:
    """Return a multi-component exponential decay Model (1-4 components).

    Parameters are A0, A1, T1, A2, T2, ... with every T_k POSITIVE. The
    single-component model carries a data-driven guesser.
    """
    if not 1 <= components <= 4:
        raise ValueError(f"components must be between 1 and 4 (got {components}).")
    specs = [ParameterSpec(name="A0", initial=0.0)]
    for k in range(1, components + 1):
        specs.append(ParameterSpec(name=f"A{k}", initial=10.0 ** (4 - k)))
        specs.append(
            ParameterSpec(
                name=f"T{k}", initial=5.0 * 10.0 ** (k - 1), constraint=Constraint.POSITIVE
            )
        )
    model = Model(
        name=name or f"exp{components}",
        func=exponential_func,
        params=tuple(specs),
        derivative=exponential_derivative,
    )
    if components == 1:
        model = model.with_guesser(_guess_exponential)
    return model
