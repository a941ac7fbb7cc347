from __future__ import annotations

from dataclasses import replace
from typing import Any, Literal, Mapping, Optional, Tuple

import numpy as np


def plot_run(
    run: Any,
    *,
    ax: Optional[Any] = None,
    axs: Optional[Any] = None,
    which: Literal["auto", "fit", "seed"] = "auto",
    xg: Optional[Any] = None,
    title: bool | str = True,
    x_label: Optional[str] = None,
    y_label: Optional[str] = None,
    data_kwargs: Optional[Mapping[str, Any]] = None,
    line_kwargs: Optional[Mapping[str, Any]] = None,
) -> Tuple[Any, Any]:
    """Draw the data of a Run as points and the model as a line.

    The line uses the fitted parameters, or the seed when the run was not
    optimised (``which="auto"``). The default title lists the free
    parameters with their uncertainties. A batch is drawn one dataset per
    axes of `axs` (a new grid when omitted); unused axes are hidden.
    """
    if ax is not None and axs is not None:
        raise ValueError("Provide only one of ax= or axs=.")
    options = dict(
        which=which,
        xg=xg,
        title=title,
        x_label=x_label,
        y_label=y_label,
        data_kwargs=data_kwargs,
        line_kwargs=line_kwargs,
    )
    if run.batch_shape != ():
        return _plot_batch(run, axs, options)

    import matplotlib.pyplot as plt

    if ax is None:
        fig, ax = plt.subplots()
    else:
        fig = ax.figure

    use = which if which != "auto" else ("fit" if run.optimised else "seed")
    fit = run.fits[0]
    points = {"marker": "o", "linestyle": "none", "ms": 4, "label": "data"}
    points.update(data_kwargs or {})
    ax.plot(fit.x, fit.y, **points)

    grid = np.linspace(fit.x.min(), fit.x.max(), 400) if xg is None else np.asarray(xg, dtype=float)
    line = {"label": use}
    line.update(line_kwargs or {})
    ax.plot(grid, run.predict(grid, which=use), **line)

    if x_label:
        ax.set_xlabel(x_label)
    if y_label:
        ax.set_ylabel(y_label)
    if isinstance(title, str):
        ax.set_title(title)
    elif title:
        ax.set_title(parameter_title(run, which=use))
    return fig, ax


def _plot_batch(run: Any, axs: Optional[Any], options: Mapping[str, Any]) -> Tuple[Any, Any]:
    count = len(run.fits)
    if axs is None:
        import matplotlib.pyplot as plt

        cols = int(np.ceil(np.sqrt(count)))
        rows = int(np.ceil(count / cols))
        _, axs = plt.subplots(rows, cols, squeeze=False, constrained_layout=True)

    panels = np.asarray(axs, dtype=object).ravel()
    if panels.size < count:
        raise ValueError(f"axs holds {panels.size} axes but the run has {count} datasets.")
    for panel, fit in zip(panels, run.fits):
        plot_run(replace(run, fits=(fit,), batch_shape=()), ax=panel, **options)
    for panel in panels[count:]:
        panel.set_visible(False)
    return panels[0].figure, axs


def parameter_title(run: Any, *, which: str = "fit", per_line: int = 3) -> str:
    """Free parameters of a single-dataset Run as ``name=value(err)`` entries."""
    seed = run.seed
    parts = []
    for name, p in run.params.items():
        if p.fixed:
            continue
        if which == "fit" and p.stderr is not None and np.isfinite(p.stderr):
            # Shorthand notation with two significant digits on the uncertainty.
            parts.append(f"{name}={p.u:.2uS}")
        else:
            value = p.value if which == "fit" else seed[name]
            parts.append(f"{name}={value:.4g}")
    return "\n".join(", ".join(parts[i : i + per_line]) for i in range(0, len(parts), per_line))
