import math

import numpy as np
import pytest

from ta_fitting import Model
from ta_fitting.solver.derivatives import (
    AnalyticDerivatives,
    NumericalDerivatives,
    select_strategy,
)


def decay(x, A, T):
    return A * np.exp(-x / T)


def decay_derivative(x, A, T):
    e = np.exp(-x / T)
    return [e, A * x * e / (T * T)]


THRESHOLD = 1e-4


@pytest.mark.parametrize("x0", [0.5, 1.5, 3.0])
def test_numerical_matches_analytic_within_threshold_multiple(x0):
    model = Model.from_function(decay, derivative=decay_derivative)
    params = np.array([2.0, 3.0])
    x = np.array([x0])

    numeric = NumericalDerivatives(model.get_function, 2, threshold=THRESHOLD)
    analytic = AnalyticDerivatives(model.get_derivatives)

    y0 = np.asarray(model.get_function(params)(x), dtype=float)
    num = numeric.compute(params, x, y0, np.empty((1, 2)))
    ana = analytic.compute(params, x, y0, np.empty((1, 2)))

    np.testing.assert_allclose(num, ana, atol=20 * THRESHOLD)


def test_linear_parameter_derivative_is_exact():
    model = Model.from_function(lambda x, a, b: a * x + b)
    params = np.array([0.7, -1.0])
    x = np.linspace(-2.0, 2.0, 9)
    y0 = model.get_function(params)(x)

    d = NumericalDerivatives(model.get_function, 2).partial(params, 1, x, y0)

    np.testing.assert_allclose(d, 1.0, rtol=1e-12)


def test_parameter_without_effect_has_zero_derivative():
    model = Model.from_function(lambda x, a, unused: a * x)
    params = np.array([1.0, 5.0])
    x = np.arange(4.0)
    y0 = model.get_function(params)(x)

    d = NumericalDerivatives(model.get_function, 2).partial(params, 1, x, y0)

    assert np.all(d == 0.0)


def test_non_finite_quotient_stops_refinement():
    model = Model.from_function(lambda x, b: np.log(b) + 0.0 * x)
    params = np.array([-1.0])
    x = np.arange(3.0)
    with np.errstate(all="ignore"):
        y0 = model.get_function(params)(x)

    d = NumericalDerivatives(model.get_function, 1).partial(params, 0, x, y0)

    assert np.all(d == 0.0)


def test_partial_does_not_modify_parameters():
    model = Model.from_function(decay)
    params = np.array([2.0, 3.0])
    x = np.array([1.0, 2.0])
    NumericalDerivatives(model.get_function, 2).partial(params, 1, x, model.get_function(params)(x))
    np.testing.assert_array_equal(params, [2.0, 3.0])


def test_skipped_columns_are_zero():
    model = Model.from_function(decay)
    params = np.array([2.0, 3.0])
    x = np.array([0.5, 1.0])
    out = np.full((2, 2), 7.0)

    NumericalDerivatives(model.get_function, 2).compute(
        params, x, model.get_function(params)(x), out, skip=(0,)
    )

    assert np.all(out[:, 0] == 0.0)
    assert np.all(out[:, 1] != 0.0)


def test_select_strategy_prefers_analytic_derivatives():
    with_d = Model.from_function(decay, derivative=decay_derivative)
    without = Model.from_function(decay)

    s1 = select_strategy(with_d, 2, threshold=THRESHOLD, derivative_builder=with_d.get_derivatives)
    s2 = select_strategy(without, 2, threshold=THRESHOLD, derivative_builder=None)

    assert isinstance(s1, AnalyticDerivatives) and not s1.numerical
    assert isinstance(s2, NumericalDerivatives) and s2.numerical
    assert s2.threshold == THRESHOLD


def test_partial_of_scalar_only_function():
    model = Model.from_function(lambda x, A, T: A * math.exp(-x / T))
    params = np.array([2.0, 3.0])
    x = np.array([0.0, 1.0, 2.0, 3.0])
    y0 = 2.0 * np.exp(-x / 3.0)

    d = NumericalDerivatives(model.get_function, 2).partial(params, 0, x, y0)

    np.testing.assert_allclose(d, np.exp(-x / 3.0), rtol=1e-9)
