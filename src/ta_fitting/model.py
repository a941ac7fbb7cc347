from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple
from warnings import warn

import numpy as np

from .backends import BackendResult, get_backend
from .constraints import as_constraint, enforce_constraints
from .data import Dataset, prepare_datasets
from .params import FittedParameter, ParameterSpec
from .run import DatasetFit, Run
from .solver.normal_equations import evaluate
from .util import goodness_of_fit, signature_parameters

# guesser(x, y) -> {name: estimate}; names it does not know are left out.
Guesser = Callable[[np.ndarray, np.ndarray], Mapping[str, float]]
Derivative = Callable[..., Sequence[Any]]


@dataclass(frozen=True)
class Model:
    """A model function `func(x, *params)` plus its parameter declarations.

    `func` may be vectorised over x or accept a single float; the optional
    `derivative(x, *params)` returns the partial derivative with respect to
    every parameter, in declaration order, at a single x. Builder methods
    return new models and leave this one unchanged.
    """

    name: str
    func: Callable[..., Any]
    params: Tuple[ParameterSpec, ...]
    guessers: Tuple[Guesser, ...] = ()
    derivative: Optional[Derivative] = None

    @staticmethod
    def from_function(
        func: Callable[..., Any],
        *,
        name: Optional[str] = None,
        derivative: Optional[Derivative] = None,
    ) -> "Model":
        """Build a Model from `func(x, p1, p2, ...)`.

        Numeric defaults in the signature become initial values.
        """
        specs = tuple(
            ParameterSpec(name=n, initial=0.0 if d is None else d)
            for n, d in signature_parameters(func)
        )
        return Model(
            name=name or getattr(func, "__name__", "model"),
            func=func,
            params=specs,
            derivative=derivative,
        )

    @property
    def param_names(self) -> Tuple[str, ...]:
        return tuple(p.name for p in self.params)

    # ---- solver contract ----
    @property
    def parameters(self) -> Tuple[ParameterSpec, ...]:
        return self.params

    @property
    def has_derivatives(self) -> bool:
        return self.derivative is not None

    def get_function(self, values: Sequence[float]) -> Callable[[Any], Any]:
        theta = tuple(float(v) for v in values)
        func = self.func
        return lambda x: func(x, *theta)

    def get_derivatives(self, values: Sequence[float]) -> Callable[[float, np.ndarray], None]:
        """Return fill(x, out) writing every partial derivative at a single x."""
        if self.derivative is None:
            raise TypeError(f"Model {self.name!r} has no analytic derivatives.")
        theta = tuple(float(v) for v in values)
        derivative = self.derivative

        def fill(x: float, out: np.ndarray) -> None:
            out[:] = np.asarray(derivative(x, *theta), dtype=float)

        return fill

    def eval(self, x: Any, params: Optional[Mapping[str, float]] = None, **values: float) -> Any:
        """Evaluate at x; fixed parameters default to their held value."""
        given = dict(params or {})
        given.update(values)
        for p in self.params:
            if p.fixed:
                given.setdefault(p.name, p.initial)
        missing = [n for n in self.param_names if n not in given]
        if missing:
            raise TypeError(f"Missing parameter values for: {missing}")

        f = self.get_function([given[n] for n in self.param_names])
        x_arr = np.asarray(x, dtype=float)
        if x_arr.ndim == 0:
            return float(f(float(x_arr)))
        flat = x_arr.reshape(-1)
        return evaluate(f, flat, np.empty(flat.shape)).reshape(x_arr.shape)

    # ---- builders ----
    def _with_specs(self, updates: Mapping[str, Any], **fields: Callable[[Any], Any]) -> "Model":
        unknown = set(updates) - set(self.param_names)
        if unknown:
            raise KeyError(", ".join(sorted(unknown)))
        specs = tuple(
            replace(p, **{k: conv(updates[p.name]) for k, conv in fields.items()})
            if p.name in updates
            else p
            for p in self.params
        )
        return replace(self, params=specs)

    def fix(self, **values: float) -> "Model":
        """Hold parameters at the given values."""
        return self._with_specs(values, initial=float, fixed=lambda _: True)

    def constrain(self, **constraints: Any) -> "Model":
        """Attach constraints (Constraint members or names such as "positive")."""
        return self._with_specs(constraints, constraint=as_constraint)

    def initial(self, **values: float) -> "Model":
        return self._with_specs(values, initial=float)

    def guess(self, **values: float) -> "Model":
        """Set starting values that take precedence over guessers."""
        return self._with_specs(values, guess=float)

    def with_derivative(self, fn: Optional[Derivative]) -> "Model":
        return replace(self, derivative=fn)

    def with_guesser(self, fn: Guesser) -> "Model":
        """Append a data-driven estimate provider; earlier guessers win on overlap."""
        return replace(self, guessers=self.guessers + (fn,))

    # ---- fitting ----
    def seed(
        self,
        x: Any,
        y: Any,
        *,
        seed_override: Optional[Mapping[str, float]] = None,
        strict: bool = False,
    ) -> Dict[str, Any]:
        """Starting values `fit` would use, by name (arrays for a batch)."""
        return self.fit(x, y, seed_override=seed_override, strict=strict, optimise=False).seed

    def fit(
        self,
        x: Any,
        y: Any,
        *,
        backend: str = "levenberg_marquardt",
        seed_override: Optional[Mapping[str, float]] = None,
        strict: bool = False,
        optimise: bool = True,
        backend_options: Optional[Mapping[str, Any]] = None,
    ) -> Run:
        """Fit every dataset in (x, y) and return a Run.

        y may also be a batched FittedParameter from an earlier run, to fit
        a trend through fitted values. Starting values per free parameter
        come from `seed_override`, then `guess`, then guessers, then
        `initial`, and are moved into their constraint domain with a warning.

        The levenberg_marquardt backend honours constraints and reads
        max_iteration, minimum_delta_chi2, derivative_threshold and
        initial_lambda from `backend_options`. scipy.curve_fit turns
        POSITIVE/NON_NEGATIVE into bounds and ignores INTEGER.
        """
        if isinstance(y, FittedParameter):
            y = y.value
        impl = get_backend(backend)
        options = dict(backend_options or {})
        datasets, batch_shape = prepare_datasets(x, y, strict)
        free = tuple(p.name for p in self.params if not p.fixed)

        fits = []
        for ds in datasets:
            seed = self._starting_values(ds, seed_override)
            if optimise:
                outcome = impl.fit_one(self, ds, seed, options)
                stats = self._statistics(ds, outcome, len(free))
            else:
                outcome = BackendResult(values=dict(seed), message="seed only")
                stats = {}
            fits.append(
                DatasetFit(
                    x=ds.x,
                    y=ds.y,
                    seed=seed,
                    values=dict(outcome.values),
                    free=free,
                    cov=outcome.covariance,
                    success=outcome.success,
                    message=outcome.message,
                    stats=stats,
                )
            )
        return Run(
            model=self,
            fits=tuple(fits),
            batch_shape=batch_shape,
            backend=backend,
            optimised=optimise,
        )

    def _starting_values(
        self, ds: Dataset, seed_override: Optional[Mapping[str, float]]
    ) -> Dict[str, float]:
        override = dict(seed_override or {})
        estimates: Dict[str, float] = {}
        for guesser in self.guessers:
            for name, v in guesser(ds.x, ds.y).items():
                estimates.setdefault(name, float(v))

        seed: Dict[str, float] = {}
        for p in self.params:
            if p.fixed:
                seed[p.name] = p.initial
            elif p.name in override:
                seed[p.name] = float(override[p.name])
            elif p.guess is not None:
                seed[p.name] = p.guess
            else:
                seed[p.name] = estimates.get(p.name, p.initial)

        free = [p for p in self.params if not p.fixed]
        vec = np.array([seed[p.name] for p in free], dtype=float)
        before = vec.copy()
        enforce_constraints(vec, [p.constraint for p in free])
        moved = [p.name for p, a, b in zip(free, before, vec) if a != b]
        if moved:
            warn(
                "Moved seed values into their constraint domain for: " + ", ".join(moved),
                UserWarning,
                stacklevel=3,
            )
            seed.update((p.name, float(v)) for p, v in zip(free, vec))
        return seed

    def _statistics(self, ds: Dataset, outcome: BackendResult, n_free: int) -> Dict[str, Any]:
        stats = dict(outcome.stats)
        if "chi2" not in stats:
            f = self.get_function([outcome.values[n] for n in self.param_names])
            estimate = evaluate(f, ds.x, np.empty(ds.x.shape))
            with np.errstate(all="ignore"):
                stats["chi2"] = float(np.sum((ds.y - estimate) ** 2))
        stats.update(goodness_of_fit(ds.y, stats["chi2"], n_free))
        return stats
