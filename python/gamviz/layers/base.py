"""
Layer objects and helpers shared by the layer builders.

A builder such as ``l_points(color="red")`` does no work: it returns a
``Layer`` capturing its arguments and a table of methods keyed by plot
kind. Adding the layer to a plot looks up the method for that plot's
kind and calls it to produce ``Geom`` descriptors.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import numpy as np
import polars as pl
from scipy import stats

from gamviz.constants import DEFAULT_CI_LEVEL
from gamviz.plots.base import GamPlot, Geom, Jitter


__all__ = ["Layer"]


@dataclass
class Layer:
    """
    A deferred layer.

    Attributes
    ----------
    fun : str
        Name of the builder, used in messages.
    methods : dict
        Plot kind to method ``method(plot, xtra=..., **args) -> list of Geom``.
    args : dict
        Named arguments of the builder.
    xtra : dict
        Extra keyword arguments, forwarded to matplotlib.
    """
    fun: str
    methods: Dict[str, Callable[..., List[Geom]]]
    args: Dict[str, Any] = field(default_factory=dict)
    xtra: Dict[str, Any] = field(default_factory=dict)

    def build(self, plot: GamPlot) -> Optional[List[Geom]]:
        """Geoms for ``plot``, or None if there is no method for its kind."""
        method = self.methods.get(plot.kind)
        if method is None:
            return None
        return method(plot, xtra=dict(self.xtra), **self.args)


def warn_layer(fun: str, message: str) -> None:
    warnings.warn(f"{fun}: {message}", UserWarning, stacklevel=5)


def split_position(xtra: Dict[str, Any], default: Optional[Jitter] = None):
    """Pop a user ``position`` from the matplotlib kwargs, else use ``default``."""
    position = xtra.pop("position", None)
    return (position if position is not None else default), xtra


def sub_rows(res: pl.DataFrame) -> pl.DataFrame:
    """Rows flagged for display by the subsampling mask."""
    if "sub" not in res.columns:
        return res
    return res.filter(pl.col("sub"))


def transformed_fit(plot: GamPlot, level: Optional[float] = None, with_ci: bool = False) -> pl.DataFrame:
    """
    Fit frame with the plot's ``trans`` applied.

    Adds ``ty`` (transformed fit) and, with ``with_ci``, ``ll``/``ul``
    (transformed bounds ``fit -/+ z se`` at ``level``).
    """
    fit = plot.data["fit"]
    trans = plot.data["misc"].get("trans") or (lambda v: v)
    y = fit.get_column("y").to_numpy()
    cols = {"ty": np.asarray(trans(y), dtype=np.float64)}
    if with_ci:
        if level is None:
            level = plot.data["misc"].get("level", DEFAULT_CI_LEVEL)
        z = stats.norm.ppf((1.0 + level) / 2.0)
        se = fit.get_column("se").to_numpy()
        cols["ll"] = np.asarray(trans(y - z * se), dtype=np.float64)
        cols["ul"] = np.asarray(trans(y + z * se), dtype=np.float64)
    return fit.with_columns([pl.Series(name, values) for name, values in cols.items()])
