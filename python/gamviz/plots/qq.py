"""
QQ plots for GAMs
=================

``qq`` compares the sorted residuals of a fit with reference quantiles
derived from the fitted response distribution, and builds a reference
band from repeated draws.

Reference Methods
-----------------

- ``tunif``: transform permuted uniform probability points through each
  observation's fitted quantile function, convert to residuals and sort.
  Needs a family with a quantile function.
- ``simul1``: simulate responses, convert to residuals and sort.
- ``simul2``: quantiles of all simulated residuals pooled together.
- ``normal``: standard normal quantiles, with a reference line through
  the quartiles.
- ``auto``: ``tunif`` when the family has a quantile function, else
  ``simul1``.

The returned ``QQGam`` holds the computed quantities. Its ``zoom`` method
changes the displayed window and styling without recomputing them.

Examples
--------
>>> q = qq(viz, rep=20, method="tunif", ci="quantile")
>>> ax = q.draw()
>>> ax = q.zoom(xlim=(-1, 1), worm=True, show_reps=True).draw()
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Tuple

import numpy as np
import polars as pl
from scipy import stats

from gamviz.constants import (
    DEFAULT_QQ_LEVEL,
    DEFAULT_QQ_NGR,
    DEFAULT_QQ_REP,
    QQ_DEFAULTS,
    QQ_DISCRETE_THRESHOLD,
)
from gamviz.exceptions import SimulationError
from gamviz.plots.base import Geom
from gamviz.plots.render import render_geom
from gamviz.utils import ppoints
from gamviz.validation import (
    validate_ci_type,
    validate_level,
    validate_positive_int,
    validate_qq_method,
)
from gamviz.viz import get_viz


__all__ = ["QQGam", "qq", "zoom"]


@dataclass
class QQGam:
    """
    Computed QQ plot of a GAM.

    Attributes
    ----------
    x : np.ndarray
        Reference quantiles.
    y : np.ndarray
        Sorted residuals.
    reps : np.ndarray
        ``(rep, n)`` sorted reference replicates.
    conf : (np.ndarray, np.ndarray) or None
        Lower and upper band, or None when ``ci='none'``.
    intercept, slope : float
        Reference line.
    method : str
        Resolved reference method.
    settings : dict
        Display settings used by ``draw`` (see ``zoom``).
    """
    x: np.ndarray
    y: np.ndarray
    reps: np.ndarray
    conf: Optional[Tuple[np.ndarray, np.ndarray]]
    intercept: float
    slope: float
    method: str
    settings: Dict[str, Any] = field(default_factory=dict)

    @property
    def n(self) -> int:
        return self.y.shape[0]

    def zoom(self, **settings) -> "QQGam":
        """Copy with display settings replaced (any argument of ``zoom``)."""
        return replace(self, settings={**self.settings, **settings})

    def draw(self, ax=None):
        """Draw with the stored settings; returns the Axes."""
        return zoom(self, ax=ax, **self.settings)


def _quartile_line(y: np.ndarray) -> Tuple[float, float]:
    yq = np.quantile(y, [0.25, 0.75])
    xq = stats.norm.ppf([0.25, 0.75])
    slope = (yq[1] - yq[0]) / (xq[1] - xq[0])
    return float(yq[0] - slope * xq[0]), float(slope)


def _band(reps: np.ndarray, ci: str, level: float):
    if ci == "none" or level <= 0 or reps.shape[0] == 0:
        return None
    if ci == "quantile":
        lo, hi = np.quantile(reps, [(1 - level) / 2, (1 + level) / 2], axis=0)
        return lo, hi
    z = stats.norm.ppf((1 + level) / 2)
    mean = reps.mean(axis=0)
    sd = reps.std(axis=0, ddof=1) if reps.shape[0] > 1 else np.zeros(reps.shape[1])
    return mean - z * sd, mean + z * sd


def qq(
    obj,
    rep: int = DEFAULT_QQ_REP,
    level: float = DEFAULT_QQ_LEVEL,
    method: str = "auto",
    type: str = "auto",
    ci: str = "normal",
    worm: bool = False,
    show_reps: bool = False,
    discrete: Optional[bool] = None,
    ngr: int = DEFAULT_QQ_NGR,
    xlim=None,
    ylim=None,
    a_qqpoi: Optional[dict] = None,
    a_ablin: Optional[dict] = None,
    a_cipoly: Optional[dict] = None,
    a_replin: Optional[dict] = None,
) -> QQGam:
    """
    QQ plot of the residuals of a fitted GAM.

    Parameters
    ----------
    obj : GamViz or GLMGamResults
        The model.
    rep : int
        Number of reference replicates.
    level : float
        Coverage of the reference band.
    method : str
        'auto', 'tunif', 'simul1', 'simul2' or 'normal'.
    type : str
        Residual type.
    ci : str
        Band construction: 'normal' (mean +/- z sd of the replicates),
        'quantile' (empirical quantiles) or 'none'.
    worm : bool
        Subtract the reference line (worm plot).
    show_reps : bool
        Draw each replicate.
    discrete : bool, optional
        Interpolate onto ``ngr`` points; None does so above 10,000
        observations.
    ngr : int
        Number of interpolation points.
    xlim, ylim : (float, float), optional
        Display window.
    a_qqpoi, a_ablin, a_cipoly, a_replin : dict, optional
        matplotlib keyword overrides for the points, reference line,
        band and replicate lines.

    Returns
    -------
    QQGam

    Raises
    ------
    SimulationError
        If ``method='tunif'`` is requested for a family without a
        quantile function.
    """
    viz = get_viz(obj)
    rep = validate_positive_int(rep, "rep")
    level = validate_level(level)
    method = validate_qq_method(method)
    ci = validate_ci_type(ci)

    fam = viz.family
    mu = viz.mu
    y = np.sort(viz.residuals(type))
    n = y.shape[0]
    P = ppoints(n)

    if method == "auto":
        method = "tunif" if fam.supports_ppf else "simul1"
    if method == "tunif" and not fam.supports_ppf:
        raise SimulationError(
            f"method='tunif' needs a quantile function, which the {fam.name} family lacks. "
            "Use method='simul1' or 'simul2'."
        )

    intercept, slope = 0.0, 1.0
    if method == "normal":
        x = stats.norm.ppf(P)
        intercept, slope = _quartile_line(y)
        reps = intercept + slope * np.sort(viz.rng.standard_normal((rep, n)), axis=1)
    else:
        if method == "tunif":
            draws = [fam.ppf(viz.rng.permutation(P), mu) for _ in range(rep)]
        else:
            draws = fam.simulate(mu, rep, viz.rng)
        reps = np.sort(np.vstack([
            fam.residuals(d, mu, type=type, rng=viz.rng) for d in draws
        ]), axis=1)
        if method == "simul2":
            x = np.quantile(reps.ravel(), P)
        else:
            x = reps.mean(axis=0)

    settings = {
        "xlim": xlim,
        "ylim": ylim,
        "discrete": discrete,
        "ngr": validate_positive_int(ngr, "ngr", minimum=2),
        "ci": ci != "none",
        "worm": bool(worm),
        "show_reps": bool(show_reps),
        "a_qqpoi": a_qqpoi,
        "a_ablin": a_ablin,
        "a_cipoly": a_cipoly,
        "a_replin": a_replin,
    }
    return QQGam(
        x=x,
        y=y,
        reps=reps,
        conf=_band(reps, ci, level),
        intercept=intercept,
        slope=slope,
        method=method,
        settings=settings,
    )


def _merge(defaults: dict, override: Optional[dict]) -> dict:
    out = dict(defaults)
    if override:
        out.update(override)
    return out


def zoom(
    q: QQGam,
    xlim=None,
    ylim=None,
    discrete: Optional[bool] = None,
    ngr: int = DEFAULT_QQ_NGR,
    ci: bool = False,
    worm: bool = False,
    show_reps: bool = False,
    a_qqpoi: Optional[dict] = None,
    a_ablin: Optional[dict] = None,
    a_cipoly: Optional[dict] = None,
    a_replin: Optional[dict] = None,
    ax=None,
):
    """
    Draw a QQGam, optionally zoomed in.

    Parameters
    ----------
    q : QQGam
        Output of ``qq``.
    xlim, ylim : (float, float), optional
        Window. Only points with x inside ``xlim`` are kept.
    discrete : bool, optional
        Interpolate onto an ``ngr``-point grid; None does so when more than
        10,000 points are in the window.
    ngr : int
        Interpolation points.
    ci : bool
        Draw the reference band (when ``q`` has one).
    worm : bool
        Subtract the reference line.
    show_reps : bool
        Draw the reference replicates.
    a_qqpoi, a_ablin, a_cipoly, a_replin : dict, optional
        matplotlib keyword overrides.
    ax : matplotlib.axes.Axes, optional
        Target; a new figure if None.

    Returns
    -------
    matplotlib.axes.Axes
    """
    import matplotlib.pyplot as plt

    x, y, reps = q.x, q.y, q.reps
    conf = q.conf
    intercept, slope = q.intercept, q.slope

    if worm:
        line = intercept + slope * x
        y = y - line
        reps = reps - line
        if conf is not None:
            conf = (conf[0] - line, conf[1] - line)
        intercept, slope = 0.0, 0.0

    if xlim is not None:
        keep = (x >= xlim[0]) & (x <= xlim[1])
        x, y, reps = x[keep], y[keep], reps[:, keep]
        if conf is not None:
            conf = (conf[0][keep], conf[1][keep])

    if discrete is None:
        discrete = x.shape[0] > QQ_DISCRETE_THRESHOLD
    if discrete and x.shape[0] > 1:
        grid = np.linspace(x[0], x[-1], ngr)
        y = np.interp(grid, x, y)
        reps = np.vstack([np.interp(grid, x, r) for r in reps])
        if conf is not None:
            conf = (np.interp(grid, x, conf[0]), np.interp(grid, x, conf[1]))
        x = grid

    geoms = []
    if ci and conf is not None:
        band = pl.DataFrame({"x": x, "lo": conf[0], "hi": conf[1]})
        geoms.append(Geom("ribbon", band, {"x": "x", "ymin": "lo", "ymax": "hi"},
                          params=_merge(QQ_DEFAULTS["cipoly"], a_cipoly)))
    if show_reps:
        for r in reps:
            geoms.append(Geom("line", pl.DataFrame({"x": x, "y": r}), {"x": "x", "y": "y"},
                              params=_merge(QQ_DEFAULTS["replin"], a_replin)))
    geoms.append(Geom("abline", pl.DataFrame({"a": [intercept], "b": [slope]}),
                      {"intercept": "a", "slope": "b"},
                      params=_merge(QQ_DEFAULTS["ablin"], a_ablin)))
    geoms.append(Geom("point", pl.DataFrame({"x": x, "y": y}), {"x": "x", "y": "y"},
                      params=_merge(QQ_DEFAULTS["qqpoi"], a_qqpoi)))

    if ax is None:
        _, ax = plt.subplots()
    for geom in geoms:
        render_geom(ax, geom)

    if xlim is not None:
        ax.set_xlim(xlim)
    if ylim is not None:
        ax.set_ylim(ylim)
    ax.set_xlabel("theoretical quantiles")
    ax.set_ylabel("residuals" if not worm else "residuals - reference")
    return ax
