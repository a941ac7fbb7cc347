"""Fit outcomes: one `DatasetFit` per dataset, gathered into a `Run`."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from functools import cached_property
from typing import Any, Callable, Dict, List, Literal, Optional, Tuple

import numpy as np
import uncertainties

from .params import FittedParameter

# Datasets listed by Run.summary() before the rest are elided.
SUMMARY_LIMIT = 10


@dataclass(frozen=True, eq=False)
class DatasetFit:
    """What the backend found for one dataset.

    `values` and `seed` hold every parameter by name; `cov` is over the
    `free` parameters in declaration order.
    """

    x: np.ndarray
    y: np.ndarray
    seed: Dict[str, float]
    values: Dict[str, float]
    free: Tuple[str, ...]
    cov: Optional[np.ndarray] = None
    success: bool = True
    message: str = ""
    stats: Dict[str, Any] = field(default_factory=dict)

    def stderr(self, name: str) -> Optional[float]:
        if self.cov is None or name not in self.free:
            return None
        j = self.free.index(name)
        return float(np.sqrt(max(float(self.cov[j, j]), 0.0)))

    @cached_property
    def uncertain(self) -> Dict[str, Any]:
        """Free parameters as ufloats, correlated through `cov` when it is usable."""
        values = [self.values[n] for n in self.free]
        correlated = self._correlated(values)
        if correlated is not None:
            return dict(zip(self.free, correlated))
        out = {}
        for name, v in zip(self.free, values):
            err = self.stderr(name)
            out[name] = uncertainties.ufloat(v, np.nan if err is None else err)
        return out

    def _correlated(self, values: List[float]) -> Optional[Tuple[Any, ...]]:
        if self.cov is None or not np.all(np.isfinite(self.cov)):
            return None
        try:
            return tuple(uncertainties.correlated_values(values, self.cov))
        except (ValueError, np.linalg.LinAlgError):
            return None


@dataclass(frozen=True)
class Run:
    """Result of `Model.fit` over one dataset or a batch of them.

    Index with a parameter name for a `FittedParameter`, or with a batch
    index (anything numpy accepts on an array shaped `batch_shape`) for the
    sub-run of those datasets.
    """

    model: Any
    fits: Tuple[DatasetFit, ...]
    batch_shape: Tuple[int, ...] = ()
    backend: str = ""
    optimised: bool = True

    def _gather(self, get: Callable[[DatasetFit], Any], dtype: Any = object) -> Any:
        if self.batch_shape == ():
            return get(self.fits[0])
        out = np.empty(len(self.fits), dtype=dtype)
        for i, fit in enumerate(self.fits):
            out[i] = get(fit)
        return out.reshape(self.batch_shape)

    # ---- per-dataset fields ----
    @property
    def success(self) -> Any:
        return self._gather(lambda f: f.success, bool)

    @property
    def message(self) -> Any:
        return self._gather(lambda f: f.message)

    @property
    def cov(self) -> Any:
        return self._gather(lambda f: f.cov)

    @property
    def stats(self) -> Any:
        return self._gather(lambda f: f.stats)

    @property
    def x(self) -> Any:
        return self._gather(lambda f: f.x)

    @property
    def y(self) -> Any:
        return self._gather(lambda f: f.y)

    @property
    def seed(self) -> Dict[str, Any]:
        return {
            n: self._gather(lambda f, n=n: f.seed[n], float) for n in self.model.param_names
        }

    # ---- parameters ----
    @property
    def params(self) -> Dict[str, FittedParameter]:
        return {spec.name: self._parameter(spec) for spec in self.model.params}

    def values(self) -> Dict[str, Any]:
        """Return name -> fitted value."""
        return {n: self._gather(lambda f, n=n: f.values[n], float) for n in self.model.param_names}

    def _parameter(self, spec: Any) -> FittedParameter:
        name = spec.name
        stderr = correlated = None
        if not spec.fixed and self.optimised:
            errs = self._gather(
                lambda f: np.nan if f.stderr(name) is None else f.stderr(name), float
            )
            if np.any(np.isfinite(errs)):
                stderr = errs
                correlated = self._gather(lambda f: f.uncertain[name])
        return FittedParameter(
            name=name,
            value=self._gather(lambda f: f.values[name], float),
            stderr=stderr,
            fixed=spec.fixed,
            constraint=spec.constraint,
            correlated=correlated,
        )

    # ---- batch access ----
    def __getitem__(self, key: Any) -> Any:
        if isinstance(key, str):
            return self.params[key]
        if self.batch_shape == ():
            raise IndexError("A single-dataset Run cannot be indexed by batch.")
        picked = np.arange(len(self.fits)).reshape(self.batch_shape)[key]
        return replace(
            self,
            fits=tuple(self.fits[int(i)] for i in np.ravel(picked)),
            batch_shape=tuple(np.shape(picked)),
        )

    def __len__(self) -> int:
        return len(self.fits)

    def squeeze(self) -> "Run":
        """Return the single-dataset Run of a batch holding exactly one fit."""
        if self.batch_shape == ():
            return self
        if len(self.fits) != 1:
            raise ValueError(
                f"squeeze() requires exactly one fit; got {len(self.fits)}. Index the run first."
            )
        return replace(self, batch_shape=())

    # ---- evaluation and display ----
    def predict(self, x: Any, *, which: Literal["fit", "seed"] = "fit") -> Any:
        """Evaluate the model at `x` with the fitted (or seed) parameters."""
        if which not in ("fit", "seed"):
            raise ValueError(f"Unknown value for 'which': {which!r}")
        if self.batch_shape != ():
            raise ValueError("predict() needs a single-dataset Run; index the run first.")
        fit = self.fits[0]
        return self.model.eval(x, params=fit.values if which == "fit" else fit.seed)

    def summary(self, digits: int = 4) -> str:
        """Return the fitted parameters and solver statistics as text."""
        lines = [f"{self.model.name} fitted with {self.backend}"]
        for n, (idx, fit) in enumerate(zip(np.ndindex(self.batch_shape), self.fits)):
            if n == SUMMARY_LIMIT:
                lines.append(f"... ({len(self.fits) - n} more datasets)")
                break
            if self.batch_shape:
                lines.append(f"dataset {idx}:")
            lines.extend(_describe(fit, self.model.params, digits))
        return "\n".join(lines)

    def plot(self, **kwargs: Any) -> Tuple[Any, Any]:
        """Plot the data with the fitted curve; see `ta_fitting.plotting.plot_run`."""
        from .plotting import plot_run

        return plot_run(self, **kwargs)


def _describe(fit: DatasetFit, specs: Any, digits: int) -> List[str]:
    rows = []
    if not fit.success:
        rows.append(("message", fit.message))
    for key in ("status", "iterations", "chi2", "adjusted_r_squared"):
        if key in fit.stats:
            v = fit.stats[key]
            rows.append((key, f"{v:.{digits}g}" if isinstance(v, float) else str(v)))
    for spec in specs:
        text = f"{fit.values[spec.name]:.{digits}g}"
        err = fit.stderr(spec.name)
        if err is not None:
            text += f" ± {err:.{digits}g}"
        if spec.fixed:
            text += " (fixed)"
        rows.append((spec.name, text))
    return [f"  {key:>18s}: {text}" for key, text in rows]
