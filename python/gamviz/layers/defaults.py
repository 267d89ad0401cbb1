"""
Layers drawn when a plot is rendered without any added layer.
"""

from __future__ import annotations

from typing import List

from gamviz.layers.base import Layer
from gamviz.layers.fit import l_ci_bar, l_ci_line, l_fit_line, l_fit_points
from gamviz.layers.grid_check import l_grid_check_2d
from gamviz.layers.points import l_hist, l_points, l_vline


def default_layers(kind: str) -> List[Layer]:
    if kind in ("Smooth1D", "PtermNumeric"):
        return [l_fit_line(), l_ci_line()]
    if kind in ("PtermFactor", "PtermLogical"):
        return [l_fit_points(), l_ci_bar()]
    if kind == "Check0DScalarNumeric":
        return [l_hist(), l_vline()]
    if kind.startswith("Check1D"):
        return [l_points()]
    if kind.startswith("Check2D"):
        return [l_grid_check_2d()]
    return []
