"""
Rug layer: covariate (or statistic) locations as short ticks on the axes.
"""

from __future__ import annotations

import numpy as np
import polars as pl

from gamviz.constants import (
    JITTER_WIDTH_FACTOR,
    JITTER_WIDTH_LOGICAL,
    POINT_COLOR,
    RUG_LINEWIDTH,
)
from gamviz.layers.base import Layer, split_position, sub_rows, warn_layer
from gamviz.plots.base import Geom, Jitter


__all__ = ["l_rug"]


def _rug_geom(data, mapping, xtra, jitter=None):
    position, xtra = split_position(xtra, jitter)
    xtra.setdefault("linewidth", RUG_LINEWIDTH)
    xtra.setdefault("color", POINT_COLOR)
    xtra.setdefault("sides", "b" if "y" not in mapping else ("l" if "x" not in mapping else "bl"))
    return [Geom("rug", data, mapping, params=xtra, position=position, na_rm=True)]


def _rug_x(plot, xtra):
    return _rug_geom(sub_rows(plot.data["res"]), {"x": "x"}, xtra)


def _rug_xy(plot, xtra):
    return _rug_geom(sub_rows(plot.data["res"]), {"x": "x", "y": "y"}, xtra)


def _rug_factor(plot, xtra):
    return _rug_geom(sub_rows(plot.data["res"]), {"x": "x"}, xtra, Jitter(width=JITTER_WIDTH_FACTOR))


def _rug_logical(plot, xtra):
    return _rug_geom(sub_rows(plot.data["res"]), {"x": "x"}, xtra, Jitter(width=JITTER_WIDTH_LOGICAL))


def _rug_factor_factor(plot, xtra):
    jitter = Jitter(width=JITTER_WIDTH_FACTOR, height=JITTER_WIDTH_FACTOR)
    return _rug_geom(sub_rows(plot.data["res"]), {"x": "x"}, xtra, jitter)


def _rug_sim(plot, xtra):
    sim = plot.data["sim"]
    if sim is None or len(sim) == 0:
        warn_layer("l_rug", "object does not contain any simulations, nothing to plot")
        return []
    data = pl.DataFrame({"x": np.asarray(sim, dtype=np.float64)})
    return _rug_geom(data, {"x": "x"}, xtra)


_METHODS = {
    "PtermFactor": _rug_factor,
    "Check1DFactor": _rug_factor,
    "PtermLogical": _rug_logical,
    "Check1DLogical": _rug_logical,
    "Smooth1D": _rug_x,
    "PtermNumeric": _rug_x,
    "Check1DNumeric": _rug_x,
    "Check0DScalarNumeric": _rug_sim,
    "Check2DNumericNumeric": _rug_xy,
    "Check2DFactorNumeric": _rug_factor,
    "Check2DFactorFactor": _rug_factor_factor,
}


def l_rug(**kwargs) -> Layer:
    """
    Add a rug to a plot.

    Shows the covariate values of the displayed observations (or, on a
    scalar check, every simulated statistic) as ticks along the axes.
    Factor and logical covariates are jittered unless a ``position`` is
    passed.

    Parameters
    ----------
    **kwargs
        Passed to matplotlib ``vlines``/``hlines``. ``sides`` ('b', 'l'
        or 'bl') and ``length`` (fraction of the axes) control placement.

    Examples
    --------
    >>> plot(viz, select=0) + l_fit_line() + l_rug(alpha=0.3)
    """
    return Layer("l_rug", dict(_METHODS), xtra=kwargs)
