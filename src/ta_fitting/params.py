from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from .constraints import Constraint

__all__ = ["ParameterSpec", "FittedParameter"]


@dataclass(frozen=True)
class ParameterSpec:
    """Declaration of one model parameter.

    A fixed parameter is held at `initial` for the whole fit. `guess`, when
    set, is the preferred starting value over guessers and `initial`.
    """

    name: str
    constraint: Constraint = Constraint.NONE
    initial: float = 0.0
    fixed: bool = False
    guess: Optional[float] = None


@dataclass(frozen=True)
class FittedParameter:
    """One parameter of a Run.

    `value` and `stderr` are floats for a single dataset and arrays shaped
    like the batch otherwise; `stderr` is None for fixed parameters and for
    fits without a covariance, and NaN for individual datasets that lack one.
    """

    name: str
    value: Any
    stderr: Any = None
    fixed: bool = False
    constraint: Constraint = Constraint.NONE
    correlated: Any = field(default=None, repr=False, compare=False)

    @property
    def u(self) -> Any:
        """The value as an `uncertainties` number (object array for a batch).

        Parameters of the same dataset share its covariance, so expressions
        combining them propagate the correlation.
        """
        if self.stderr is None or self.correlated is None:
            raise ValueError(f"No stderr available for parameter {self.name!r}.")
        return self.correlated
