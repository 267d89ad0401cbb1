"""
Declarative layering system for GAM diagnostic plots.

A plot is built in two steps. Plotting verbs (``SmoothEffect.plot``,
``check1d``, ...) produce a ``GamPlot``: a kind tag plus the
plotting-ready data frames. Layers are then added with ``+``; each layer
looks up the method registered for the plot kind and emits ``Geom``
descriptors. Nothing touches matplotlib until ``draw`` is called.

Examples
--------
>>> p = check1d(viz, "x0") + l_grid_check_1d(level=0.9) + labs(title="x0")
>>> ax = p.draw()
"""

from __future__ import annotations

import math
import warnings
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import polars as pl

from gamviz.exceptions import ValidationError


__all__ = [
    "GEOM_KINDS",
    "Jitter",
    "Geom",
    "Labels",
    "labs",
    "GamPlot",
    "PlotGam",
]


GEOM_KINDS = frozenset({
    "point",
    "line",
    "ribbon",
    "errorbar",
    "rug",
    "hist",
    "vline",
    "hline",
    "abline",
    "tile",
})


@dataclass(frozen=True)
class Jitter:
    """Uniform jitter of +/- width (x) and +/- height (y), applied at render time."""
    width: float = 0.0
    height: float = 0.0
    seed: Optional[int] = None


@dataclass
class Geom:
    """
    One drawable layer.

    Attributes
    ----------
    kind : str
        Geometry, one of ``GEOM_KINDS``.
    data : pl.DataFrame
        Rows to draw.
    mapping : dict
        Aesthetic (x, y, ymin, ymax, fill, xintercept, ...) to column name.
    params : dict
        Keyword arguments passed to the matplotlib call.
    position : Jitter, optional
        Jitter applied to the mapped positions.
    na_rm : bool
        Drop rows with non-finite mapped values before drawing.
    """
    kind: str
    data: pl.DataFrame
    mapping: Dict[str, str]
    params: Dict[str, Any] = field(default_factory=dict)
    position: Optional[Jitter] = None
    na_rm: bool = False

    def __post_init__(self):
        if self.kind not in GEOM_KINDS:
            raise ValidationError(
                f"Unknown geom kind {self.kind!r}. Choose one of {sorted(GEOM_KINDS)}."
            )
        missing = [col for col in self.mapping.values() if col not in self.data.columns]
        if missing:
            raise ValidationError(
                f"Geom {self.kind!r} maps columns {missing} that are not in its data "
                f"(columns: {self.data.columns})."
            )


@dataclass(frozen=True)
class Labels:
    x: Optional[str] = None
    y: Optional[str] = None
    title: Optional[str] = None

    def update(self, other: "Labels") -> "Labels":
        return Labels(
            x=other.x if other.x is not None else self.x,
            y=other.y if other.y is not None else self.y,
            title=other.title if other.title is not None else self.title,
        )


def labs(x: Optional[str] = None, y: Optional[str] = None, title: Optional[str] = None) -> Labels:
    """Axis labels and title, added to a plot with ``+``."""
    return Labels(x=x, y=y, title=title)


class GamPlot:
    """
    A single diagnostic plot: a kind tag, its data and the layers added so far.

    Parameters
    ----------
    kind : str
        Plot kind used for layer dispatch, e.g. 'Smooth1D' or 'Check1DFactor'.
    data : dict
        ``fit`` and ``res`` (polars DataFrames or None), ``sim``
        (numpy array or None) and ``misc`` (dict).
    labels : Labels, optional
        Axis labels and title.
    x_levels, y_levels : list of str, optional
        Levels of factor axes, drawn at integer positions 0..k-1.
    """

    def __init__(
        self,
        kind: str,
        data: Dict[str, Any],
        labels: Optional[Labels] = None,
        x_levels: Optional[Sequence[str]] = None,
        y_levels: Optional[Sequence[str]] = None,
        geoms: Optional[List[Geom]] = None,
        layers: Optional[List[str]] = None,
    ):
        self.kind = kind
        self.data = {"fit": None, "res": None, "sim": None, "misc": {}}
        self.data.update(data)
        self.labels = labels if labels is not None else Labels()
        self.x_levels = None if x_levels is None else [str(v) for v in x_levels]
        self.y_levels = None if y_levels is None else [str(v) for v in y_levels]
        self.geoms: List[Geom] = list(geoms) if geoms else []
        self.layers: List[str] = list(layers) if layers else []

    def __repr__(self) -> str:
        return f"GamPlot(kind={self.kind!r}, layers={self.layers})"

    def _copy(self, **changes) -> "GamPlot":
        out = GamPlot(
            self.kind,
            self.data,
            labels=changes.get("labels", self.labels),
            x_levels=self.x_levels,
            y_levels=self.y_levels,
            geoms=changes.get("geoms", self.geoms),
            layers=changes.get("layers", self.layers),
        )
        return out

    def add_layer(self, layer, warn: bool = True) -> Optional["GamPlot"]:
        """
        Add a layer, returning the new plot, or None if the layer has no
        method for this kind (warning when ``warn`` is set).
        """
        geoms = layer.build(self)
        if geoms is None:
            if warn:
                warnings.warn(
                    f"{layer.fun}: no method for plots of kind {self.kind!r}, layer ignored.",
                    UserWarning,
                    stacklevel=3,
                )
            return None
        return self._copy(geoms=self.geoms + list(geoms), layers=self.layers + [layer.fun])

    def __add__(self, other):
        if isinstance(other, Labels):
            return self._copy(labels=self.labels.update(other))
        if hasattr(other, "build") and hasattr(other, "fun"):
            out = self.add_layer(other)
            return self if out is None else out
        return NotImplemented

    def draw(self, ax=None):
        """
        Render onto a matplotlib Axes (a new figure if ``ax`` is None).

        When no layer was added the plot kind's default layers are used.

        Returns
        -------
        matplotlib.axes.Axes
        """
        import matplotlib.pyplot as plt

        from gamviz.layers.defaults import default_layers
        from gamviz.plots.render import apply_factor_ticks, render_geom

        if ax is None:
            _, ax = plt.subplots()

        plot = self
        if not plot.layers:
            for layer in default_layers(self.kind):
                plot = plot.add_layer(layer, warn=False) or plot

        for geom in plot.geoms:
            render_geom(ax, geom, x_levels=self.x_levels, y_levels=self.y_levels)

        apply_factor_ticks(ax, self.x_levels, self.y_levels)
        if self.labels.x is not None:
            ax.set_xlabel(self.labels.x)
        if self.labels.y is not None:
            ax.set_ylabel(self.labels.y)
        if self.labels.title is not None:
            ax.set_title(self.labels.title)
        return ax


class PlotGam:
    """
    A collection of plots, one per model effect, as returned by ``plot()``.

    Adding a layer adds it to every member that has a method for it.
    """

    def __init__(self, plots: Sequence[GamPlot]):
        self.plots = list(plots)

    def __len__(self) -> int:
        return len(self.plots)

    def __getitem__(self, i) -> GamPlot:
        return self.plots[i]

    def __iter__(self):
        return iter(self.plots)

    def __repr__(self) -> str:
        return f"PlotGam({[p.kind for p in self.plots]})"

    def __add__(self, other):
        if isinstance(other, Labels):
            return PlotGam([p + other for p in self.plots])
        if hasattr(other, "build") and hasattr(other, "fun"):
            out = []
            accepted = 0
            for p in self.plots:
                q = p.add_layer(other, warn=False)
                if q is not None:
                    accepted += 1
                out.append(p if q is None else q)
            if accepted == 0:
                warnings.warn(
                    f"{other.fun}: no method for any plot in this collection "
                    f"(kinds: {sorted({p.kind for p in self.plots})}), layer ignored.",
                    UserWarning,
                    stacklevel=2,
                )
            return PlotGam(out)
        return NotImplemented

    def draw(self, pages: Optional[int] = None, ncols: Optional[int] = None, figsize=None) -> list:
        """
        Render every plot.

        Parameters
        ----------
        pages : int, optional
            Spread the plots over this many figures, each a grid of axes.
            None draws each plot on its own figure.
        ncols : int, optional
            Columns per page. Defaults to a near-square grid.
        figsize : tuple, optional
            Figure size passed to matplotlib.

        Returns
        -------
        list of matplotlib.figure.Figure
        """
        import matplotlib.pyplot as plt

        if pages is None:
            figures = []
            for p in self.plots:
                fig, ax = plt.subplots(figsize=figsize)
                p.draw(ax)
                figures.append(fig)
            return figures

        if pages < 1:
            raise ValidationError(f"pages must be >= 1, got {pages}.")
        per_page = max(1, math.ceil(len(self.plots) / pages))
        cols = ncols or math.ceil(math.sqrt(per_page))
        rows = math.ceil(per_page / cols)

        figures = []
        for start in range(0, len(self.plots), per_page):
            chunk = self.plots[start:start + per_page]
            fig, axes = plt.subplots(rows, cols, figsize=figsize, squeeze=False)
            flat = axes.ravel()
            for ax, p in zip(flat, chunk):
                p.draw(ax)
            for ax in flat[len(chunk):]:
                ax.set_axis_off()
            fig.tight_layout()
            figures.append(fig)
        return figures
