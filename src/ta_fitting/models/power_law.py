from __future__ import annotations

import numpy as np

from ..constraints import Constraint
from ..model import Model
from ..params import ParameterSpec


def empirical_power_law_func(x, A0, a, Alpha):
    """A0 / (1 + a*x)**Alpha."""
    return A0 / (1.0 + a * x) ** Alpha


def empirical_power_law_derivative(x, A0, a, Alpha):
    base = 1.0 + a * x
    pw = base ** (-Alpha)
    return [
        pw,
        -A0 * x * Alpha * base ** (-1.0 - Alpha),
        -A0 * np.log(base) * pw,
    ]


def power_exp_func(x, A0, a, Alpha, AT, tauT):
    """Empirical power law plus an exponential tail AT * exp(-x / tauT)."""
    return A0 / (1.0 + a * x) ** Alpha + AT * np.exp(-x / tauT)


def power_exp_derivative(x, A0, a, Alpha, AT, tauT):
    e = np.exp(-x / tauT)
    return list(empirical_power_law_derivative(x, A0, a, Alpha)) + [
        e,
        AT * x * e / (tauT * tauT),
    ]


def _power_law_specs():
    return (
        ParameterSpec(name="A0", initial=1e3),
        ParameterSpec(name="a", initial=1.0, constraint=Constraint.POSITIVE),
        ParameterSpec(name="Alpha", initial=0.4, constraint=Constraint.POSITIVE),
    )


def empirical_power_law(*, name: str = "empirical power law") -> Model:
    """Return the empirical power-law decay A0 / (1 + a*x)**Alpha."""
    specs = _power_law_specs()
    return Model(
        name=name,
        func=empirical_power_law_func,
        params=specs,
        derivative=empirical_power_law_derivative,
    )


def power_exp(*, name: str = "power law + exp") -> Model:
    """Return the empirical power law with an added exponential component."""
    specs = _power_law_specs() + (
        ParameterSpec(name="AT", initial=1e3),
        ParameterSpec(name="tauT", initial=5.0, constraint=Constraint.POSITIVE),
    )
    return Model(
        name=name,
        func=power_exp_func,
        params=specs,
        derivative=power_exp_derivative,
    )
