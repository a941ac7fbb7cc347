from __future__ import annotations

from dataclasses import replace
from typing import List, Sequence, Tuple

from ..model import Model


def _split(theta: Sequence[float], sizes: Sequence[int]) -> List[Tuple[float, ...]]:
    out = []
    offset = 0
    for n in sizes:
        out.append(tuple(theta[offset : offset + n]))
        offset += n
    return out


def linear_combination(*models: Model, name: str | None = None) -> Model:
    """Return the sum of two or more models.

    Parameters are renamed ``m{i}_{name}`` (i counts from 1) and keep their
    constraints, initial values and fixed state. The combination has analytic
    derivatives only when every component has them. Component guessers are
    not carried over.
    """
    if len(models) < 2:
        raise ValueError("linear_combination requires at least two models.")

    sizes = [len(m.param_names) for m in models]
    specs = tuple(
        replace(spec, name=f"m{i}_{spec.name}")
        for i, m in enumerate(models, start=1)
        for spec in m.params
    )
    funcs = [m.func for m in models]

    def func(x, *theta):
        parts = _split(theta, sizes)
        total = funcs[0](x, *parts[0])
        for f, p in zip(funcs[1:], parts[1:]):
            total = total + f(x, *p)
        return total

    derivative = None
    if all(m.derivative is not None for m in models):
        derivs = [m.derivative for m in models]

        def derivative(x, *theta):
            out = []
            for d, p in zip(derivs, _split(theta, sizes)):
                out.extend(d(x, *p))
            return out

    return Model(
        name=name or " + ".join(m.name for m in models),
        func=func,
        params=specs,
        derivative=derivative,
    )
