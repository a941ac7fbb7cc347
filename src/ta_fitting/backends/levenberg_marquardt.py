from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

import numpy as np

from ..solver import FitStatus, LevenbergMarquardt, SolverConfig
from .base import BackendResult

logger = logging.getLogger(__name__)


def covariance_from_jacobian(jac: np.ndarray, chi2: float) -> Optional[np.ndarray]:
    """Estimate the parameter covariance ``s^2 (J^T J)^+`` with ``s^2 = chi2 / (N - P)``.

    Returns None when there are no residual degrees of freedom or the
    Jacobian is not finite.
    """
    n, p = jac.shape
    dof = n - p
    if p == 0 or dof <= 0 or not np.all(np.isfinite(jac)) or not np.isfinite(chi2):
        return None
    return (chi2 / dof) * np.linalg.pinv(jac.T @ jac)


class LevenbergMarquardtBackend:
    """Runs one LevenbergMarquardt session per dataset; fixed parameters stay put."""

    name = "levenberg_marquardt"

    def fit_one(
        self,
        model: Any,
        dataset: Any,
        seed: Mapping[str, float],
        options: Mapping[str, Any],
    ) -> BackendResult:
        config = SolverConfig.from_options(options)
        names = model.param_names
        fixed = [i for i, p in enumerate(model.params) if p.fixed]

        outcome = LevenbergMarquardt.create(
            model,
            dataset.x,
            dataset.y,
            parameters=[seed[n] for n in names],
            fixed=fixed,
            config=config,
        )
        if not outcome.ok:
            return BackendResult(
                values=dict(seed),
                success=False,
                message=str(outcome.error),
                stats={"backend": self.name},
            )

        session = outcome.session
        status = session.fit()
        values = dict(zip(names, session.parameters.tolist()))
        stats = {
            "backend": self.name,
            "status": status.value,
            "iterations": session.iterations,
            "lambda": session.lambda_,
            "chi2": session.chi2,
            "numerical_derivatives": session.numerical_derivatives,
        }
        if status is FitStatus.NON_FINITE:
            logger.info("fit of %s stopped on a non-finite chi2", model.name)
            return BackendResult(values=values, success=False, message=status.value, stats=stats)

        free = [i for i in range(len(names)) if i not in fixed]
        return BackendResult(
            values=values,
            covariance=covariance_from_jacobian(session.jacobian()[:, free], session.chi2),
            message=status.value,
            stats=stats,
        )
