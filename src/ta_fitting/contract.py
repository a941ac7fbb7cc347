"""Narrow functional contract consumed by the Levenberg-Marquardt solver.

A fitting model is anything that exposes its parameter specs and can build
a function of x for a given parameter vector. Models that also know their
closed-form partial derivatives implement `get_derivatives` and report
`has_derivatives`; the solver checks for that capability once per session.
"""

from __future__ import annotations

from typing import Any, Callable, Optional, Protocol, Sequence, runtime_checkable

import numpy as np

from .constraints import Constraint

ModelFunction = Callable[[Any], Any]
DerivativeFiller = Callable[[float, np.ndarray], None]


class ParameterLike(Protocol):
    name: str
    constraint: Constraint
    initial: float


@runtime_checkable
class FittingModel(Protocol):
    """Base contract: parameter metadata plus a function builder."""

    @property
    def parameters(self) -> Sequence[ParameterLike]: ...

    def get_function(self, parameters: Sequence[float]) -> ModelFunction: ...


@runtime_checkable
class AnalyticallyDifferentiable(FittingModel, Protocol):
    """Optional capability: closed-form partial derivatives.

    The returned filler writes exactly P derivatives for a single x into the
    caller's buffer.
    """

    def get_derivatives(self, parameters: Sequence[float]) -> DerivativeFiller: ...


def derivative_builder(
    model: Any,
) -> Optional[Callable[[Sequence[float]], DerivativeFiller]]:
    """Return the model's derivative builder, or None if it has none."""
    if not isinstance(model, AnalyticallyDifferentiable):
        return None
    if not getattr(model, "has_derivatives", True):
        return None
    return model.get_derivatives


def constraints_of(model: FittingModel) -> tuple[Constraint, ...]:
    return tuple(getattr(p, "constraint", Constraint.NONE) for p in model.parameters)


def initial_values_of(model: FittingModel) -> np.ndarray:
    return np.asarray([float(getattr(p, "initial", 0.0)) for p in model.parameters], dtype=float)
