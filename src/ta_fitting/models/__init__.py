"""Ready-made decay and polynomial models."""

from .combination import linear_combination
from .exponential import exponential
from .polynomial import polynomial
from .power_law import empirical_power_law, power_exp

__all__ = [
    "empirical_power_law",
    "exponential",
    "linear_combination",
    "polynomial",
    "power_exp",
]
