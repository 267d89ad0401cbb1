"""
Layer builders.

Each ``l_*`` function returns a ``Layer`` to be added to a plot with ``+``.
The layer dispatches on the plot kind and emits the geoms appropriate for
it, or warns when it has nothing to offer that kind.
"""

from gamviz.layers.base import Layer
from gamviz.layers.fit import (
    l_ci_bar,
    l_ci_line,
    l_ci_poly,
    l_fit_line,
    l_fit_points,
)
from gamviz.layers.grid_check import (
    grid_check_1d_stats,
    l_grid_check_1d,
    l_grid_check_2d,
)
from gamviz.layers.points import l_hist, l_points, l_vline
from gamviz.layers.rug import l_rug

__all__ = [
    "Layer",
    "l_points",
    "l_fit_line",
    "l_ci_line",
    "l_ci_poly",
    "l_fit_points",
    "l_ci_bar",
    "l_hist",
    "l_vline",
    "l_rug",
    "l_grid_check_1d",
    "l_grid_check_2d",
    "grid_check_1d_stats",
]
