from __future__ import annotations

from enum import Enum
from typing import Any, Iterable, Sequence

import numpy as np

__all__ = ["Constraint", "POSITIVE_FLOOR", "as_constraint", "enforce_constraints"]

# Value a POSITIVE parameter is reset to when it leaves its domain.
POSITIVE_FLOOR = 1e-10


class Constraint(Enum):
    """Domain restriction attached to one model parameter."""

    NONE = "none"
    POSITIVE = "positive"
    NON_NEGATIVE = "non_negative"
    INTEGER = "integer"


def as_constraint(value: Any) -> Constraint:
    """Coerce None, a Constraint or its string value into a Constraint."""
    if value is None:
        return Constraint.NONE
    if isinstance(value, Constraint):
        return value
    try:
        return Constraint(str(value).lower().replace("-", "_"))
    except ValueError as e:
        raise ValueError(
            f"Unknown constraint {value!r}. Available: {tuple(c.value for c in Constraint)}"
        ) from e


def enforce_constraints(
    values: np.ndarray,
    constraints: Sequence[Constraint],
    *,
    skip: Iterable[int] = (),
) -> None:
    """Clamp or round `values` in place so every entry satisfies its constraint.

    POSITIVE values <= 0 are reset to POSITIVE_FLOOR, NON_NEGATIVE values < 0
    to 0, and INTEGER values are rounded to the nearest integer. Indices in
    `skip` are left untouched.
    """
    skipped = set(skip)
    for i, c in enumerate(constraints):
        if i in skipped or c is Constraint.NONE:
            continue
        v = values[i]
        if c is Constraint.POSITIVE:
            if v <= 0.0:
                values[i] = POSITIVE_FLOOR
        elif c is Constraint.NON_NEGATIVE:
            if v < 0.0:
                values[i] = 0.0
        elif c is Constraint.INTEGER:
            values[i] = np.rint(v)
