"""
Plot objects, rendering and plotting verbs.

- ``GamPlot`` / ``PlotGam``: declarative plots built from layers
- ``check0d`` / ``check1d`` / ``check2d``: residual checks
- ``qq`` / ``zoom``: QQ plots
- ``plot``: effect plots for every term of a model
"""

from gamviz.plots.base import (
    GEOM_KINDS,
    GamPlot,
    Geom,
    Jitter,
    Labels,
    PlotGam,
    labs,
)
from gamviz.plots.render import apply_factor_ticks, render_geom
from gamviz.plots.check import check0d, check1d, check2d
from gamviz.plots.qq import QQGam, qq, zoom
# Imported last: effects build GamPlot objects from gamviz.plots.base.
from gamviz.plots.gam import plot

__all__ = [
    "GEOM_KINDS",
    "Geom",
    "Jitter",
    "Labels",
    "labs",
    "GamPlot",
    "PlotGam",
    "render_geom",
    "apply_factor_ticks",
    "check0d",
    "check1d",
    "check2d",
    "QQGam",
    "qq",
    "zoom",
    "plot",
]
