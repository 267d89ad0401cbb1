"""
Residual checks: a scalar statistic, residuals against one covariate and
residuals over two covariates.

Each check returns a ``GamPlot`` whose ``sim`` entry carries the same
quantity computed on simulated responses, when the GamViz holds any.
Add ``l_hist``/``l_vline``, ``l_points``/``l_grid_check_1d`` or
``l_grid_check_2d`` to draw them.
"""

from __future__ import annotations

from typing import Callable, Optional, Tuple, Union

import numpy as np
import polars as pl

from gamviz.constants import DEFAULT_MAXPO
from gamviz.exceptions import ValidationError
from gamviz.plots.base import GamPlot, Labels
from gamviz.utils import as_covariate, covariate_kind, factor_levels, is_missing
from gamviz.validation import coerce_to_float64, validate_positive_int
from gamviz.viz import get_viz


__all__ = ["check0d", "check1d", "check2d"]


def _resolve_covariate(viz, x, n: int) -> Tuple[object, str]:
    """Covariate values and label from a name or a vector of length n."""
    if isinstance(x, str):
        return viz.covariate(x), x
    name = getattr(x, "name", None) or "x"
    if len(x) != n:
        raise ValidationError(
            f"Covariate vector has length {len(x)} but the model has {n} observations."
        )
    return as_covariate(x), str(name)


def _axis(values, keep: np.ndarray, kind: str):
    """Values on one plot axis: floats, or level labels for factors."""
    if kind == "numeric":
        return coerce_to_float64(values, "covariate", allow_nan=True)[keep], None
    levels = [str(v) for v in factor_levels(values)]
    labels = [str(v) for v in np.asarray(values, dtype=object)[keep]]
    return labels, levels


def _residuals(viz, type: str, trans: Optional[Callable]):
    r = viz.residuals(type)
    sims = viz.simulated_residuals(type)
    if trans is not None:
        r = np.asarray(trans(r), dtype=np.float64)
        if sims is not None:
            sims = np.vstack([np.asarray(trans(s), dtype=np.float64) for s in sims])
    return r, sims


def check0d(obj, trans: Callable = np.mean, type: str = "auto") -> GamPlot:
    """
    Scalar residual statistic against its simulated distribution.

    Parameters
    ----------
    obj : GamViz or GLMGamResults
        The model. Simulations come from ``get_viz(..., nsim=...)``.
    trans : callable
        Maps the residual vector to a scalar.
    type : str
        Residual type.

    Returns
    -------
    GamPlot of kind ``Check0DScalarNumeric``
    """
    viz = get_viz(obj)
    r = viz.residuals(type)
    obs = trans(r)
    if np.ndim(obs) != 0:
        raise ValidationError(
            f"check0d needs a scalar statistic, but trans returned shape {np.shape(obs)}."
        )
    sims = viz.simulated_residuals(type)
    stats = None if sims is None else np.array([float(trans(s)) for s in sims])
    name = getattr(trans, "__name__", "trans")
    return GamPlot(
        "Check0DScalarNumeric",
        {
            "res": pl.DataFrame({"x": [float(obs)]}),
            "sim": stats,
            "misc": {"trans": trans, "type": type},
        },
        labels=Labels(x=f"{name}(r)", y="count"),
    )


def check1d(
    obj,
    x: Union[str, np.ndarray],
    type: str = "auto",
    maxpo: int = DEFAULT_MAXPO,
    na_rm: bool = True,
    trans: Optional[Callable] = None,
) -> GamPlot:
    """
    Residuals against one covariate.

    Parameters
    ----------
    obj : GamViz or GLMGamResults
        The model.
    x : str or array-like
        Covariate name (looked up in the model data) or a vector with one
        value per observation.
    type : str
        Residual type.
    maxpo : int
        Maximum number of points shown by point and rug layers.
    na_rm : bool
        Drop observations whose covariate is missing.
    trans : callable, optional
        Applied to the residual vector (and to each simulated one).

    Returns
    -------
    GamPlot of kind ``Check1DNumeric``, ``Check1DFactor`` or ``Check1DLogical``
    """
    viz = get_viz(obj)
    maxpo = validate_positive_int(maxpo, "maxpo")
    values, name = _resolve_covariate(viz, x, viz.n_obs)
    kind = covariate_kind(values)
    r, sims = _residuals(viz, type, trans)

    keep = ~is_missing(values) if na_rm else np.ones(viz.n_obs, dtype=bool)
    xs, levels = _axis(values, keep, kind)
    plot_kind = {"numeric": "Check1DNumeric", "factor": "Check1DFactor", "logical": "Check1DLogical"}[kind]

    return GamPlot(
        plot_kind,
        {
            "res": pl.DataFrame({"x": xs, "y": r[keep], "sub": viz.subsample(int(keep.sum()), maxpo)}),
            "sim": None if sims is None else sims[:, keep],
            "misc": {"type": type, "trans": trans},
        },
        labels=Labels(x=name, y="residuals"),
        x_levels=levels,
    )


def check2d(
    obj,
    x1: Union[str, np.ndarray],
    x2: Union[str, np.ndarray],
    type: str = "auto",
    maxpo: int = DEFAULT_MAXPO,
    na_rm: bool = True,
    trans: Optional[Callable] = None,
) -> GamPlot:
    """
    Residuals over two covariates.

    A factor paired with a numeric covariate is always put on the x axis.
    Logical covariates are treated as factors.

    Returns
    -------
    GamPlot of kind ``Check2DNumericNumeric``, ``Check2DFactorNumeric``
    or ``Check2DFactorFactor``
    """
    viz = get_viz(obj)
    maxpo = validate_positive_int(maxpo, "maxpo")
    v1, n1 = _resolve_covariate(viz, x1, viz.n_obs)
    v2, n2 = _resolve_covariate(viz, x2, viz.n_obs)
    k1 = "numeric" if covariate_kind(v1) == "numeric" else "factor"
    k2 = "numeric" if covariate_kind(v2) == "numeric" else "factor"
    if k1 == "numeric" and k2 == "factor":
        v1, v2, n1, n2, k1, k2 = v2, v1, n2, n1, k2, k1

    r, sims = _residuals(viz, type, trans)
    keep = np.ones(viz.n_obs, dtype=bool)
    if na_rm:
        keep = ~is_missing(v1) & ~is_missing(v2)

    xs, xl = _axis(v1, keep, k1)
    ys, yl = _axis(v2, keep, k2)
    if k1 == "numeric":
        plot_kind = "Check2DNumericNumeric"
    elif k2 == "numeric":
        plot_kind = "Check2DFactorNumeric"
    else:
        plot_kind = "Check2DFactorFactor"

    return GamPlot(
        plot_kind,
        {
            "res": pl.DataFrame({
                "x": xs,
                "y": ys,
                "z": r[keep],
                "sub": viz.subsample(int(keep.sum()), maxpo),
            }),
            "sim": None if sims is None else sims[:, keep],
            "misc": {"type": type, "trans": trans},
        },
        labels=Labels(x=n1, y=n2),
        x_levels=xl,
        y_levels=yl,
    )
