"""
Fitted-effect layers: effect curves, confidence lines and ribbons,
level points and error bars.
"""

from __future__ import annotations

from typing import Optional

from gamviz.constants import (
    CI_LINESTYLE,
    FIT_COLOR,
    RIBBON_ALPHA,
    RIBBON_COLOR,
)
from gamviz.layers.base import Layer, transformed_fit
from gamviz.plots.base import Geom
from gamviz.validation import validate_level


__all__ = ["l_fit_line", "l_ci_line", "l_ci_poly", "l_fit_points", "l_ci_bar"]


_CURVE_KINDS = ("Smooth1D", "PtermNumeric")
_LEVEL_KINDS = ("PtermFactor", "PtermLogical")


def _fit_line(plot, xtra):
    fit = transformed_fit(plot)
    xtra.setdefault("color", FIT_COLOR)
    return [Geom("line", fit, {"x": "x", "y": "ty"}, params=xtra, na_rm=True)]


def _ci_line(plot, level, xtra):
    fit = transformed_fit(plot, level=level, with_ci=True)
    xtra.setdefault("color", FIT_COLOR)
    xtra.setdefault("linestyle", CI_LINESTYLE)
    return [
        Geom("line", fit, {"x": "x", "y": "ll"}, params=dict(xtra), na_rm=True),
        Geom("line", fit, {"x": "x", "y": "ul"}, params=dict(xtra), na_rm=True),
    ]


def _ci_poly(plot, level, xtra):
    fit = transformed_fit(plot, level=level, with_ci=True)
    xtra.setdefault("color", RIBBON_COLOR)
    xtra.setdefault("alpha", RIBBON_ALPHA)
    xtra.setdefault("linewidth", 0)
    return [Geom("ribbon", fit, {"x": "x", "ymin": "ll", "ymax": "ul"}, params=xtra, na_rm=True)]


def _fit_points(plot, xtra):
    fit = transformed_fit(plot)
    xtra.setdefault("color", FIT_COLOR)
    xtra.setdefault("marker", "o")
    return [Geom("point", fit, {"x": "x", "y": "ty"}, params=xtra, na_rm=True)]


def _ci_bar(plot, level, xtra):
    fit = transformed_fit(plot, level=level, with_ci=True)
    xtra.setdefault("color", FIT_COLOR)
    return [Geom("errorbar", fit, {"x": "x", "y": "ty", "ymin": "ll", "ymax": "ul"}, params=xtra, na_rm=True)]


def l_fit_line(**kwargs) -> Layer:
    """Fitted effect curve, through the plot's ``trans``."""
    return Layer("l_fit_line", {k: _fit_line for k in _CURVE_KINDS}, xtra=kwargs)


def l_ci_line(level: Optional[float] = None, **kwargs) -> Layer:
    """
    Pointwise confidence bounds as dashed lines.

    Parameters
    ----------
    level : float, optional
        Coverage of the bounds ``trans(fit -/+ z se)``. Defaults to the
        level the plot was built with.
    **kwargs
        Passed to matplotlib ``plot``.
    """
    if level is not None:
        level = validate_level(level)
    return Layer("l_ci_line", {k: _ci_line for k in _CURVE_KINDS}, args={"level": level}, xtra=kwargs)


def l_ci_poly(level: Optional[float] = None, **kwargs) -> Layer:
    """Pointwise confidence band as a shaded ribbon."""
    if level is not None:
        level = validate_level(level)
    return Layer("l_ci_poly", {k: _ci_poly for k in _CURVE_KINDS}, args={"level": level}, xtra=kwargs)


def l_fit_points(**kwargs) -> Layer:
    """Fitted effect of each factor level."""
    return Layer("l_fit_points", {k: _fit_points for k in _LEVEL_KINDS}, xtra=kwargs)


def l_ci_bar(level: Optional[float] = None, **kwargs) -> Layer:
    """Confidence interval of each factor level as an error bar."""
    if level is not None:
        level = validate_level(level)
    return Layer("l_ci_bar", {k: _ci_bar for k in _LEVEL_KINDS}, args={"level": level}, xtra=kwargs)
