"""Levenberg-Marquardt least-squares solver."""

from .config import SolverConfig
from .errors import ValidationError
from .levenberg_marquardt import FitStatus, LevenbergMarquardt, SessionOutcome

__all__ = [
    "FitStatus",
    "LevenbergMarquardt",
    "SessionOutcome",
    "SolverConfig",
    "ValidationError",
]
