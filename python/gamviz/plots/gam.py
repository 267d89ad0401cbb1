"""
Plot every effect of a fitted GAM.
"""

from __future__ import annotations

import warnings
from typing import Optional, Sequence, Union

from gamviz.constants import DEFAULT_N_GRID
from gamviz.effects.extract import extract_effects
from gamviz.exceptions import ModelStructureError
from gamviz.plots.base import PlotGam
from gamviz.viz import GamViz, get_viz, is_gam_result


__all__ = ["plot"]


def plot(
    obj,
    n: int = DEFAULT_N_GRID,
    select: Optional[Union[int, Sequence[int]]] = None,
    all_terms: bool = False,
    **kwargs,
) -> Optional[PlotGam]:
    """
    Effect plots for a fitted GAM.

    Parameters
    ----------
    obj : GamViz or GLMGamResults
        The model. A raw fit is wrapped with ``get_viz``.
    n : int
        Grid points for each effect curve.
    select : int or sequence of int, optional
        0-based indices of the effects to plot, smooths first, then
        parametric terms.
    all_terms : bool
        Also plot parametric terms when ``select`` is None.
    **kwargs
        Passed to each effect's ``plot`` (e.g. ``maxpo``, ``trans``).

    Returns
    -------
    PlotGam or None
        None (with a warning) when no selected effect can be plotted.

    Examples
    --------
    >>> v = get_viz(res)
    >>> figs = (plot(v, all_terms=True) + l_points() + l_fit_line() + l_ci_line()).draw(pages=1)
    """
    if not isinstance(obj, GamViz) and not is_gam_result(obj):
        raise ModelStructureError(
            f"plot expects a GLMGam fit or a GamViz, got {type(obj).__name__}."
        )
    viz = get_viz(obj)

    plots = []
    for effect in extract_effects(viz, select=select, all_terms=all_terms):
        p = effect.plot(n=n, **kwargs)
        if p is not None:
            plots.append(p)

    if not plots:
        warnings.warn("Nothing to plot!", UserWarning, stacklevel=2)
        return None
    return PlotGam(plots)
