"""Nonlinear least-squares curve fitting with a Levenberg-Marquardt solver."""
from .constraints import Constraint
from .model import Model
from .params import FittedParameter, ParameterSpec
from .run import DatasetFit, Run
from .solver import FitStatus, LevenbergMarquardt, SolverConfig, ValidationError
from . import models

__all__ = [
    "Constraint",
    "DatasetFit",
    "FitStatus",
    "FittedParameter",
    "LevenbergMarquardt",
    "Model",
    "ParameterSpec",
    "Run",
    "SolverConfig",
    "ValidationError",
    "models",
]
