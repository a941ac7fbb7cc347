"""Turn the x/y arguments of `Model.fit` into a flat list of datasets.

Three layouts are understood:

- one dataset: 1-D x and 1-D y of equal length
- shared x: 1-D x with y shaped batch_shape + (N,), one dataset per leading index
- ragged: a list of x arrays paired with a list of y arrays

A list y with a single x is stacked into an array when its rows line up and
otherwise fitted row by row. Two or three rows are also how a (y, sigma)
pair would look, so that reading warns (or raises with strict=True).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Tuple
from warnings import warn

import numpy as np


@dataclass(frozen=True)
class Dataset:
    x: np.ndarray
    y: np.ndarray


def prepare_datasets(
    x: Any, y: Any, strict: bool = False
) -> Tuple[List[Dataset], Tuple[int, ...]]:
    """Return the datasets to fit and the batch shape they came from (() for one)."""
    if isinstance(x, list):
        if not isinstance(y, list):
            raise TypeError("Ragged batches require list inputs for both x and data.")
        if len(x) != len(y):
            raise ValueError("Ragged batch requires x and data lists of equal length.")
        return [_dataset(xi, yi) for xi, yi in zip(x, y)], (len(x),)

    if isinstance(y, tuple):
        raise TypeError(
            "Tuple payloads such as (y, sigma) describe weighted data, which is not "
            "supported; pass y alone."
        )

    if isinstance(y, list):
        if not y:
            raise ValueError("Empty data list; cannot infer batch or payload.")
        if all(np.ndim(row) == 0 for row in y):
            return [_dataset(x, y)], ()
        if len(y) in (2, 3):
            _warn_or_raise(
                strict,
                "Interpreting list as batch data. Stack y into an array to "
                "silence this warning.",
            )
        if len({np.shape(row) for row in y}) > 1:
            return [_dataset(x, row) for row in y], (len(y),)
        y = np.asarray(y, dtype=float)

    y_arr = np.asarray(y, dtype=float)
    if y_arr.ndim == 0:
        raise ValueError("y must be at least one-dimensional.")
    if y_arr.ndim == 1:
        return [_dataset(x, y_arr)], ()

    x_arr = _as_x(x)
    rows = y_arr.reshape(-1, y_arr.shape[-1])
    return [_dataset(x_arr, row) for row in rows], tuple(y_arr.shape[:-1])


def _dataset(x: Any, y: Any) -> Dataset:
    x_arr = _as_x(x)
    y_arr = np.asarray(y, dtype=float).reshape(-1)
    if x_arr.shape != y_arr.shape:
        raise ValueError(f"x has {x_arr.shape[0]} points but y has {y_arr.shape[0]}.")
    return Dataset(x=x_arr, y=y_arr)


def _as_x(x: Any) -> np.ndarray:
    x_arr = np.asarray(x, dtype=float)
    if x_arr.ndim != 1:
        raise ValueError(f"x must be one-dimensional (got shape {x_arr.shape}).")
    return x_arr


def _warn_or_raise(strict: bool, message: str) -> None:
    if strict:
        raise ValueError(message)
    warn(message, UserWarning, stacklevel=4)
