import math

import numpy as np

from ta_fitting.solver.normal_equations import (
    assemble_gradient,
    assemble_hessian,
    chi_squared,
    evaluate,
    zero_columns,
)


def test_chi_squared_sums_squared_residuals():
    x = np.array([0.0, 1.0, 2.0])
    y = np.array([1.0, 2.0, 5.0])
    estimate = np.empty(3)
    residuals = np.empty(3)

    chi2 = chi_squared(lambda t: t + 1.0, x, y, estimate=estimate, residuals=residuals)

    assert chi2 == 4.0
    np.testing.assert_array_equal(estimate, [1.0, 2.0, 3.0])
    np.testing.assert_array_equal(residuals, [0.0, 0.0, 2.0])


def test_chi_squared_broadcasts_constant_model():
    x = np.arange(4.0)
    y = np.full(4, 2.0)
    chi2 = chi_squared(lambda t: 1.0, x, y, estimate=np.empty(4), residuals=np.empty(4))
    assert chi2 == 4.0


def test_chi_squared_propagates_nan():
    x = np.arange(3.0)
    y = np.zeros(3)
    chi2 = chi_squared(
        lambda t: np.log(t - 1.0), x, y, estimate=np.empty(3), residuals=np.empty(3)
    )
    assert np.isnan(chi2)


def test_gradient_is_residual_weighted_column_sum():
    rng = np.random.default_rng(1)
    d = rng.normal(size=(6, 3))
    r = rng.normal(size=6)

    g = assemble_gradient(d, r, np.empty(3))

    np.testing.assert_allclose(g, d.T @ r)


def test_hessian_damps_diagonal_and_is_symmetric():
    rng = np.random.default_rng(2)
    d = rng.normal(size=(7, 4))
    lam = 0.5

    h = assemble_hessian(d, lam, np.empty((4, 4)))
    jtj = d.T @ d

    off = ~np.eye(4, dtype=bool)
    assert np.array_equal(h, h.T)
    np.testing.assert_allclose(h[off], jtj[off])
    np.testing.assert_allclose(np.diag(h), (1.0 + lam) * np.diag(jtj))


def test_zero_columns_gives_zero_rows_and_columns_in_hessian():
    d = np.arange(12.0).reshape(4, 3) + 1.0
    zero_columns(d, [1])

    h = assemble_hessian(d, 1e-3, np.empty((3, 3)))
    g = assemble_gradient(d, np.ones(4), np.empty(3))

    assert np.all(d[:, 1] == 0.0)
    assert np.all(h[1, :] == 0.0) and np.all(h[:, 1] == 0.0)
    assert g[1] == 0.0


def test_evaluate_falls_back_to_one_call_per_point():
    calls = []

    def scalar_only(t):
        calls.append(t)
        return 2.0 * math.exp(-t)

    x = np.array([0.0, 1.0, 2.0, 3.0])
    out = evaluate(scalar_only, x, np.empty(4))

    np.testing.assert_allclose(out, 2.0 * np.exp(-x))
    assert calls[-4:] == [0.0, 1.0, 2.0, 3.0]


def test_evaluate_handles_branching_scalar_model():
    x = np.array([0.0, 1.0, 2.0, 3.0])
    out = evaluate(lambda t: t if t > 1.0 else 1.0, x, np.empty(4))
    np.testing.assert_array_equal(out, [1.0, 1.0, 2.0, 3.0])


def test_evaluate_records_math_errors_as_nan():
    x = np.array([2.0, 1.0, 0.5])
    out = evaluate(lambda t: math.log(t - 1.0), x, np.empty(3))

    assert out[0] == 0.0
    assert np.isnan(out[1]) and np.isnan(out[2])
