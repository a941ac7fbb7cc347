import numpy as np
import pytest

from ta_fitting import Model
from ta_fitting.plotting import parameter_title

matplotlib = pytest.importorskip("matplotlib")
matplotlib.use("Agg", force=True)
import matplotlib.pyplot as plt  # noqa: E402


def decay(t, A, T=2.0):
    return A * np.exp(-t / T)


def _noisy_decay(seed=0, amplitude=3.0):
    t = np.linspace(0.0, 10.0, 30)
    y = decay(t, amplitude, 2.5) + np.random.default_rng(seed).normal(0.0, 0.02, size=t.size)
    return t, y


@pytest.fixture(autouse=True)
def _close_figures():
    yield
    plt.close("all")


def test_plot_draws_data_and_fit_with_labels():
    t, y = _noisy_decay()
    run = Model.from_function(decay).fit(t, y)

    fig, ax = plt.subplots()
    out_fig, out_ax = run.plot(ax=ax, title=False, x_label="delay [ps]", y_label="ΔA")

    assert out_fig is fig and out_ax is ax
    assert ax.get_xlabel() == "delay [ps]"
    assert ax.get_ylabel() == "ΔA"
    assert [ln.get_label() for ln in ax.lines] == ["data", "fit"]
    np.testing.assert_array_equal(ax.lines[0].get_ydata(), y)
    assert ax.get_title() == ""


def test_title_lists_free_parameters_with_uncertainty():
    t, y = _noisy_decay()
    run = Model.from_function(decay).fix(T=2.5).fit(t, y)

    _, ax = run.plot()

    title = ax.get_title()
    assert title.startswith("A=")
    assert "(" in title
    assert "T=" not in title


def test_seed_only_run_draws_the_seed_curve():
    t, y = _noisy_decay()
    run = Model.from_function(decay).fit(t, y, optimise=False, seed_override={"A": 1.0})

    _, ax = run.plot()

    assert ax.lines[-1].get_label() == "seed"
    np.testing.assert_allclose(ax.lines[-1].get_ydata()[0], 1.0)
    assert ax.get_title() == "A=1, T=2"


def test_parameter_title_wraps_lines():
    x = np.linspace(0.0, 1.0, 10)

    def quartic(x, a, b, c, d, e):
        return a + b * x + c * x**2 + d * x**3 + e * x**4

    run = Model.from_function(quartic).fit(x, 1.0 + x, optimise=False)

    assert parameter_title(run, which="seed").count("\n") == 1
    assert parameter_title(run, which="seed", per_line=5).count("\n") == 0


def test_batch_uses_one_panel_per_dataset():
    t = np.linspace(0.0, 10.0, 30)
    y = np.stack([_noisy_decay(seed=k, amplitude=a)[1] for k, a in enumerate((3.0, 2.0, 1.0))])
    run = Model.from_function(decay).fit(t, y)

    fig, axs = plt.subplots(2, 2)
    run.plot(axs=axs, x_label="t")

    flat = axs.ravel()
    assert all(ax.get_xlabel() == "t" for ax in flat[:3])
    assert all(ax.get_title().startswith("A=") for ax in flat[:3])
    assert not flat[3].get_visible()

    with pytest.raises(ValueError, match="3 datasets"):
        run.plot(axs=flat[:2])


def test_batch_creates_its_own_grid():
    t = np.linspace(0.0, 10.0, 30)
    y = np.stack([decay(t, a, 2.0) for a in (1.0, 2.0, 3.0, 4.0, 5.0)])

    _, axs = Model.from_function(decay).fit(t, y).plot(title=False)

    assert axs.shape == (2, 3)


def test_ax_and_axs_are_exclusive():
    t, y = _noisy_decay()
    run = Model.from_function(decay).fit(t, y)
    fig, ax = plt.subplots()

    with pytest.raises(ValueError, match="only one"):
        run.plot(ax=ax, axs=[ax])
