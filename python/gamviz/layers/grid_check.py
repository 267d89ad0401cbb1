"""
Binned residual checks.

``l_grid_check_1d`` bins residuals along a covariate (equal-width
intervals for numeric covariates, levels for factors), summarises each
bin with a statistic and compares it against the same statistic computed
on residuals of simulated responses. ``l_grid_check_2d`` does the same on
a grid over two covariates and shows the result as tiles.

The default statistic, ``mean(r) * sqrt(len(r))``, is approximately
standard normal per bin under a correct model, so systematic departures
along the covariate show up as runs of large values.
"""

from __future__ import annotations

from typing import Callable, Optional, Sequence, Tuple

import numpy as np
import polars as pl

from gamviz.constants import (
    CI_COLOR,
    CI_FACTOR_MARKER,
    CI_FACTOR_MARKERSIZE,
    CI_LINESTYLE,
    DEFAULT_GRID_LEVEL,
    DEFAULT_GRID_N,
    DEFAULT_GRID_N_2D,
    DEFAULT_GRID_STAND,
    DEFAULT_GRID_STAND_2D,
    OBS_MARKER,
    POINT_COLOR,
    REP_MARKER,
    REP_MARKERSIZE,
)
from gamviz.layers.base import Layer, warn_layer
from gamviz.plots.base import Geom
from gamviz.utils import (
    apply_by_bin,
    default_grid_fun,
    factor_bins,
    nan_quantile_bounds,
    numeric_bins,
    standardize,
)
from gamviz.validation import validate_level, validate_positive_int, validate_stand


__all__ = ["l_grid_check_1d", "l_grid_check_2d", "grid_check_1d_stats"]


def _warn_no_sims(fun: str, level: float, stand: str) -> None:
    if level > 0:
        warn_layer(fun, "level>0 but object does not contain any simulations")
    elif stand != "none":
        warn_layer(fun, "stand != 'none' but object does not contain any simulations")


def _axis_bins(values: np.ndarray, n: int, levels: Optional[Sequence[str]]):
    """Bin index per value and the ordered occupied keys with their positions."""
    if levels is None:
        x = np.asarray(values, dtype=np.float64)
        bins, grid = numeric_bins(x, n)
        keys = np.unique(bins)
        return bins, keys, grid
    bins = factor_bins(values, list(levels))
    return bins, np.arange(len(levels)), None


def grid_check_1d_stats(
    x,
    r: np.ndarray,
    sims: Optional[np.ndarray],
    grid_fun: Callable = default_grid_fun,
    n: int = DEFAULT_GRID_N,
    level: float = DEFAULT_GRID_LEVEL,
    stand: str = DEFAULT_GRID_STAND,
    levels: Optional[Sequence[str]] = None,
) -> dict:
    """
    Binned statistics of a 1D grid check.

    Parameters
    ----------
    x : array-like
        Covariate values (level labels when ``levels`` is given).
    r : np.ndarray
        Residuals, one per value of ``x``.
    sims : np.ndarray or None
        ``(rep, len(x))`` simulated residuals.
    grid_fun : callable
        Statistic applied to the residuals of each bin.
    n : int
        Grid points of a numeric covariate (n - 1 intervals).
    level : float
        Coverage of the simulation band; 0 disables it.
    stand : str
        Standardization of the statistics: 'none', 'c', 's' or 'sc'.
    levels : list of str, optional
        Treat ``x`` as a factor with these levels.

    Returns
    -------
    dict
        ``grX`` (bin positions), ``grY`` (observed statistic), ``grS``
        (``(rep, nbins)`` simulated statistics or None) and ``ci``
        (``(lo, hi, keep)`` or None).
    """
    r = np.asarray(r, dtype=np.float64)
    if levels is None:
        x = np.asarray(x, dtype=np.float64)
        ok = np.isfinite(x)
        if not ok.all():
            x, r = x[ok], r[ok]
            sims = None if sims is None else np.asarray(sims)[:, ok]
    bins, keys, _ = _axis_bins(x, n, levels)

    if levels is None:
        grX = apply_by_bin(np.asarray(x, dtype=np.float64), bins, keys, np.mean)
    else:
        grX = np.array([str(v) for v in levels], dtype=object)
    grY = apply_by_bin(r, bins, keys, grid_fun)

    if sims is None or len(sims) == 0:
        return {"grX": grX, "grY": grY, "grS": None, "ci": None}

    grS = np.vstack([apply_by_bin(np.asarray(s, dtype=np.float64), bins, keys, grid_fun) for s in sims])
    grY, grS = standardize(grY, grS, stand)

    ci = None
    bounds = nan_quantile_bounds(grS, level)
    if bounds is not None:
        ci = (bounds[0], bounds[1], ~np.isnan(grY))
    return {"grX": grX, "grY": grY, "grS": grS, "ci": ci}


def _grid_check_1d(plot, grid_fun, n, level, stand, show_reps, show_obs, xtra, factor=False):
    res = plot.data["res"]
    sims = plot.data["sim"]
    if sims is None:
        _warn_no_sims("l_grid_check_1d", level, stand)

    x = res.get_column("x").to_list() if factor else res.get_column("x").to_numpy()
    out = grid_check_1d_stats(
        x,
        res.get_column("y").to_numpy(),
        sims,
        grid_fun=grid_fun,
        n=n,
        level=level,
        stand=stand,
        levels=plot.x_levels if factor else None,
    )
    grX, grY, grS, ci = out["grX"], out["grY"], out["grS"], out["ci"]
    xs = grX.tolist() if factor else grX

    geoms = []
    if show_obs:
        params = {"marker": OBS_MARKER, "color": POINT_COLOR}
        params.update(xtra)
        geoms.append(Geom("point", pl.DataFrame({"x": xs, "y": grY}), {"x": "x", "y": "y"}, params=params, na_rm=True))

    if grS is not None and show_reps:
        rep = grS.shape[0]
        reps = pl.DataFrame({"x": (list(xs) * rep) if factor else np.tile(grX, rep), "y": grS.ravel()})
        geoms.append(Geom(
            "point", reps, {"x": "x", "y": "y"},
            params={"marker": REP_MARKER, "markersize": REP_MARKERSIZE, "color": POINT_COLOR},
            na_rm=True,
        ))

    if ci is not None:
        lo, hi, keep = ci
        xk = [v for v, k in zip(xs, keep) if k] if factor else grX[keep]
        band = pl.DataFrame({"x": xk, "lo": lo[keep], "hi": hi[keep]})
        if factor:
            params = {"marker": CI_FACTOR_MARKER, "markersize": CI_FACTOR_MARKERSIZE, "color": CI_COLOR}
            geoms.append(Geom("point", band, {"x": "x", "y": "lo"}, params=dict(params), na_rm=True))
            geoms.append(Geom("point", band, {"x": "x", "y": "hi"}, params=dict(params), na_rm=True))
        else:
            params = {"color": CI_COLOR, "linestyle": CI_LINESTYLE}
            geoms.append(Geom("line", band, {"x": "x", "y": "lo"}, params=dict(params), na_rm=True))
            geoms.append(Geom("line", band, {"x": "x", "y": "hi"}, params=dict(params), na_rm=True))
    return geoms


def _grid_check_1d_factor(plot, **kwargs):
    return _grid_check_1d(plot, factor=True, **kwargs)


def l_grid_check_1d(
    grid_fun: Optional[Callable] = None,
    n: int = DEFAULT_GRID_N,
    level: float = DEFAULT_GRID_LEVEL,
    stand: str = DEFAULT_GRID_STAND,
    show_reps: bool = True,
    show_obs: bool = True,
    **kwargs,
) -> Layer:
    """
    Binned residual statistic along a covariate, with a simulation band.

    Parameters
    ----------
    grid_fun : callable, optional
        Statistic of the residuals in a bin. Defaults to
        ``mean(r) * sqrt(len(r))``.
    n : int
        Grid points for numeric covariates, giving n - 1 equal-width bins.
    level : float
        Coverage of the band built from the simulated statistics.
        Needs simulations (``get_viz(..., nsim=...)``); 0 disables it.
    stand : str
        'none', 'c' (center), 's' (scale) or 'sc' by the simulated
        statistics of each bin.
    show_reps : bool
        Draw the statistic of each simulated replicate.
    show_obs : bool
        Draw the observed statistic.
    **kwargs
        Passed to matplotlib for the observed points.

    Examples
    --------
    >>> v = get_viz(res, nsim=50)
    >>> check1d(v, "x0") + l_grid_check_1d(level=0.9, stand="sc")
    """
    args = {
        "grid_fun": grid_fun or default_grid_fun,
        "n": validate_positive_int(n, "n", minimum=2),
        "level": validate_level(level),
        "stand": validate_stand(stand),
        "show_reps": bool(show_reps),
        "show_obs": bool(show_obs),
    }
    methods = {
        "Check1DNumeric": _grid_check_1d,
        "Check1DFactor": _grid_check_1d_factor,
        "Check1DLogical": _grid_check_1d_factor,
    }
    return Layer("l_grid_check_1d", methods, args=args, xtra=kwargs)


# =============================================================================
# 2D
# =============================================================================

def _bin_centres(bins: np.ndarray, grid: Optional[np.ndarray], levels: Optional[Sequence[str]]):
    if levels is not None:
        return [str(levels[b]) for b in bins]
    return ((grid[bins - 1] + grid[bins]) / 2).tolist()


def _grid_check_2d(plot, grid_fun, n: Tuple[int, int], stand, xtra):
    res = plot.data["res"]
    sims = plot.data["sim"]

    x1 = res.get_column("x")
    x2 = res.get_column("y")
    z = res.get_column("z").to_numpy()
    x1 = x1.to_list() if plot.x_levels is not None else x1.to_numpy()
    x2 = x2.to_list() if plot.y_levels is not None else x2.to_numpy()

    b1, _, grid1 = _axis_bins(x1, n[0], plot.x_levels)
    b2, _, grid2 = _axis_bins(x2, n[1], plot.y_levels)
    valid = (b1 >= 0) & (b2 >= 0)
    cell = np.where(valid, b1 * (max(n[1], len(plot.y_levels or [])) + 1) + b2, -1)
    keys = np.unique(cell[valid])

    stat = apply_by_bin(z, cell, keys, grid_fun)
    if sims is None or len(sims) == 0:
        if stand != "none":
            warn_layer("l_grid_check_2d", "stand != 'none' but object does not contain any simulations")
    else:
        grS = np.vstack([apply_by_bin(np.asarray(s, dtype=np.float64), cell, keys, grid_fun) for s in sims])
        stat, _ = standardize(stat, grS, stand)

    first = np.array([np.flatnonzero(cell == k)[0] for k in keys], dtype=int)
    tiles = pl.DataFrame({
        "x": _bin_centres(b1[first], grid1, plot.x_levels),
        "y": _bin_centres(b2[first], grid2, plot.y_levels),
        "fill": stat,
    })
    return [Geom("tile", tiles, {"x": "x", "y": "y", "fill": "fill"}, params=xtra, na_rm=True)]


def l_grid_check_2d(
    grid_fun: Optional[Callable] = None,
    n: Tuple[int, int] = DEFAULT_GRID_N_2D,
    stand: str = DEFAULT_GRID_STAND_2D,
    **kwargs,
) -> Layer:
    """
    Binned residual statistic over two covariates, drawn as tiles.

    Parameters
    ----------
    grid_fun : callable, optional
        Statistic of the residuals in a cell. Defaults to
        ``mean(r) * sqrt(len(r))``.
    n : (int, int)
        Grid points along each numeric axis. Factor axes use their levels.
    stand : str
        Standardization by the simulated statistics of each cell.
    **kwargs
        Passed to matplotlib ``pcolormesh`` (plus ``colorbar=False``).
    """
    if np.ndim(n) == 0:
        n = (n, n)
    n = tuple(validate_positive_int(v, "n", minimum=2) for v in n)
    args = {
        "grid_fun": grid_fun or default_grid_fun,
        "n": n,
        "stand": validate_stand(stand),
    }
    methods = {
        "Check2DNumericNumeric": _grid_check_2d,
        "Check2DFactorNumeric": _grid_check_2d,
        "Check2DFactorFactor": _grid_check_2d,
    }
    return Layer("l_grid_check_2d", methods, args=args, xtra=kwargs)
