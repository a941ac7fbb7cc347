import numpy as np
import pytest

from ta_fitting import Constraint, Model, models


def _central_difference(model, theta, x, h=1e-6):
    theta = np.asarray(theta, dtype=float)
    out = np.empty((x.size, theta.size))
    for j in range(theta.size):
        step = h * max(1.0, abs(theta[j]))
        up = theta.copy()
        down = theta.copy()
        up[j] += step
        down[j] -= step
        out[:, j] = (model.func(x, *up) - model.func(x, *down)) / (2 * step)
    return out


def _analytic(model, theta, x):
    out = np.empty((x.size, len(theta)))
    fill = model.get_derivatives(theta)
    for i, xi in enumerate(x):
        fill(float(xi), out[i])
    return out


CASES = [
    (models.polynomial(3), [1.0, -0.5, 0.25, 0.1]),
    (models.exponential(1), [0.5, 4.0, 3.0]),
    (models.exponential(3), [0.5, 4.0, 3.0, 2.0, 0.7, 1.0, 9.0]),
    (models.empirical_power_law(), [10.0, 0.8, 0.6]),
    (models.power_exp(), [10.0, 0.8, 0.6, 3.0, 2.0]),
    (models.linear_combination(models.exponential(1), models.polynomial(1)), [0.5, 4.0, 3.0, 1.0, 0.2]),
]


@pytest.mark.parametrize(
    "model, theta",
    CASES,
    ids=["poly3", "exp1", "exp3", "power_law", "power_exp", "combination"],
)
def test_analytic_derivatives_match_finite_differences(model, theta):
    x = np.linspace(0.0, 5.0, 11)
    np.testing.assert_allclose(
        _analytic(model, theta, x), _central_difference(model, theta, x), rtol=1e-5, atol=1e-7
    )


def test_polynomial_names_and_initial_values():
    model = models.polynomial(3)
    assert model.param_names == ("A0", "A1", "A2", "A3")
    assert [p.initial for p in model.params] == [1e3, -1e2, 1e0, -1e-2]
    assert model.has_derivatives
    np.testing.assert_allclose(model.eval(2.0, A0=1.0, A1=1.0, A2=1.0, A3=1.0), 15.0)


@pytest.mark.parametrize("order", [0, 9])
def test_polynomial_order_out_of_range(order):
    with pytest.raises(ValueError, match="between 1 and 8"):
        models.polynomial(order)


def test_exponential_parameters():
    model = models.exponential(2)
    assert model.param_names == ("A0", "A1", "T1", "A2", "T2")
    assert [p.initial for p in model.params] == [0.0, 1e3, 5.0, 1e2, 50.0]
    assert model.params[2].constraint is Constraint.POSITIVE
    assert model.params[4].constraint is Constraint.POSITIVE
    assert model.guessers == ()
    with pytest.raises(ValueError):
        models.exponential(5)


def test_exponential_guesser_seeds_from_data():
    x = np.linspace(0.0, 20.0, 81)
    y = 2.0 + 10.0 * np.exp(-x / 4.0)

    seed = models.exponential(1).seed(x, y)

    assert seed["A0"] == pytest.approx(y[-1])
    assert seed["A1"] == pytest.approx(y[0] - y[-1])
    assert seed["T1"] == pytest.approx(4.0, rel=0.1)


def test_exponential_fit_recovers_decay_time():
    rng = np.random.default_rng(0)
    x = np.linspace(0.0, 20.0, 81)
    y = 2.0 + 10.0 * np.exp(-x / 4.0) + rng.normal(0.0, 0.05, size=x.size)

    res = models.exponential(1).fit(x, y)

    assert res["T1"].value == pytest.approx(4.0, rel=0.05)
    assert res["T1"].value > 0.0
    assert res.stats["numerical_derivatives"] is False


def test_power_law_parameters():
    model = models.power_exp()
    assert model.param_names == ("A0", "a", "Alpha", "AT", "tauT")
    spec = {p.name: p for p in model.params}
    assert spec["a"].constraint is Constraint.POSITIVE
    assert spec["Alpha"].constraint is Constraint.POSITIVE
    assert spec["tauT"].constraint is Constraint.POSITIVE
    assert spec["A0"].constraint is Constraint.NONE

    law = models.empirical_power_law()
    assert law.eval(0.0, A0=7.0, a=1.0, Alpha=0.4) == pytest.approx(7.0)


def test_power_law_fit():
    x = np.linspace(0.0, 50.0, 60)
    y = 500.0 / (1.0 + 0.3 * x) ** 0.8

    res = models.empirical_power_law().fit(
        x, y, seed_override={"A0": 450.0, "a": 0.5, "Alpha": 0.6}
    )

    assert res["A0"].value == pytest.approx(500.0, rel=1e-4)
    assert res["a"].value == pytest.approx(0.3, rel=1e-3)
    assert res["Alpha"].value == pytest.approx(0.8, rel=1e-3)


def test_linear_combination_renames_and_sums():
    first = models.exponential(1).constrain(A0="non_negative")
    second = models.polynomial(1)
    combo = models.linear_combination(first, second)

    assert combo.param_names == ("m1_A0", "m1_A1", "m1_T1", "m2_A0", "m2_A1")
    spec = {p.name: p for p in combo.params}
    assert spec["m1_A0"].constraint is Constraint.NON_NEGATIVE
    assert spec["m1_T1"].constraint is Constraint.POSITIVE
    assert spec["m2_A0"].initial == 1e3
    assert combo.has_derivatives

    x = np.linspace(0.0, 3.0, 7)
    expected = first.eval(x, A0=1.0, A1=2.0, T1=3.0) + second.eval(x, A0=0.5, A1=-1.0)
    got = combo.eval(x, m1_A0=1.0, m1_A1=2.0, m1_T1=3.0, m2_A0=0.5, m2_A1=-1.0)
    np.testing.assert_allclose(got, expected)


def test_linear_combination_keeps_fixed_state():
    combo = models.linear_combination(models.exponential(1).fix(A0=0.0), models.polynomial(1))
    spec = {p.name: p for p in combo.params}
    assert spec["m1_A0"].fixed and spec["m1_A0"].initial == 0.0


def test_linear_combination_without_derivatives_falls_back_to_numerical():
    plain = Model.from_function(lambda x, k: k * x**2)
    combo = models.linear_combination(plain, models.polynomial(1))

    assert not combo.has_derivatives

    x = np.linspace(0.0, 2.0, 10)
    y = 0.5 * x**2 + 3.0 * x + 1.0
    res = combo.fit(x, y)
    assert res.stats["numerical_derivatives"] is True
    assert res.stats["chi2"] < 1e-12


def test_linear_combination_needs_two_models():
    with pytest.raises(ValueError, match="at least two"):
        models.linear_combination(models.polynomial(1))
