"""
Observation-level layers: residual points, and the histogram and
observed-value line of scalar checks.
"""

from __future__ import annotations

import numpy as np
import polars as pl

from gamviz.constants import (
    CI_COLOR,
    JITTER_WIDTH_FACTOR,
    JITTER_WIDTH_LOGICAL,
    POINT_COLOR,
    POINT_MARKERSIZE,
)
from gamviz.layers.base import Layer, split_position, sub_rows, warn_layer
from gamviz.plots.base import Geom, Jitter


__all__ = ["l_points", "l_hist", "l_vline"]


def _points(plot, xtra, jitter=None):
    position, xtra = split_position(xtra, jitter)
    xtra.setdefault("marker", ".")
    xtra.setdefault("color", POINT_COLOR)
    xtra.setdefault("markersize", POINT_MARKERSIZE)
    res = sub_rows(plot.data["res"])
    return [Geom("point", res, {"x": "x", "y": "y"}, params=xtra, position=position, na_rm=True)]


def _points_factor(plot, xtra):
    return _points(plot, xtra, Jitter(width=JITTER_WIDTH_FACTOR))


def _points_logical(plot, xtra):
    return _points(plot, xtra, Jitter(width=JITTER_WIDTH_LOGICAL))


def l_points(**kwargs) -> Layer:
    """
    Residual points.

    Partial residuals on effect plots, residuals against the covariate on
    1D checks and covariate locations on 2D checks. Factor and logical
    axes are jittered unless a ``position`` is given.
    """
    methods = {
        "Smooth1D": _points,
        "PtermNumeric": _points,
        "Check1DNumeric": _points,
        "PtermFactor": _points_factor,
        "Check1DFactor": _points_factor,
        "PtermLogical": _points_logical,
        "Check1DLogical": _points_logical,
        "Check2DNumericNumeric": _points,
        "Check2DFactorNumeric": _points_factor,
        "Check2DFactorFactor": _points_factor,
    }
    return Layer("l_points", methods, xtra=kwargs)


def _hist(plot, xtra):
    sim = plot.data["sim"]
    if sim is None or len(sim) == 0:
        warn_layer("l_hist", "object does not contain any simulations, nothing to plot")
        return []
    xtra.setdefault("bins", "auto")
    xtra.setdefault("color", "0.6")
    data = pl.DataFrame({"x": np.asarray(sim, dtype=np.float64)})
    return [Geom("hist", data, {"x": "x"}, params=xtra, na_rm=True)]


def l_hist(**kwargs) -> Layer:
    """Histogram of the simulated statistics of a scalar check."""
    return Layer("l_hist", {"Check0DScalarNumeric": _hist}, xtra=kwargs)


def _vline(plot, xtra):
    xtra.setdefault("color", CI_COLOR)
    return [Geom("vline", plot.data["res"], {"xintercept": "x"}, params=xtra)]


def l_vline(**kwargs) -> Layer:
    """Vertical line at the observed statistic of a scalar check."""
    return Layer("l_vline", {"Check0DScalarNumeric": _vline}, xtra=kwargs)
