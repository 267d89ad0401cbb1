"""
Rendering of Geom descriptors onto matplotlib Axes.
"""

from __future__ import annotations

from typing import Dict, Optional, Sequence

import numpy as np
import polars as pl

from gamviz.constants import RUG_LENGTH, RUG_LINEWIDTH, TILE_CMAP
from gamviz.exceptions import ValidationError
from gamviz.plots.base import Geom


__all__ = ["render_geom", "apply_factor_ticks"]


_X_AES = frozenset({"x", "xintercept"})
_Y_AES = frozenset({"y", "ymin", "ymax", "yintercept"})


def _column(data: pl.DataFrame, col: str, levels: Optional[Sequence[str]]) -> np.ndarray:
    """Column as float positions; factor levels map to 0..k-1, unknown values to NaN."""
    series = data.get_column(col)
    if levels is not None:
        lookup = {lev: float(i) for i, lev in enumerate(levels)}
        return np.array([lookup.get(str(v), np.nan) for v in series.to_list()], dtype=np.float64)
    return series.cast(pl.Float64).fill_null(np.nan).to_numpy()


def _positions(
    geom: Geom,
    x_levels: Optional[Sequence[str]],
    y_levels: Optional[Sequence[str]],
) -> Dict[str, np.ndarray]:
    out = {}
    for aes, col in geom.mapping.items():
        if aes in _X_AES:
            out[aes] = _column(geom.data, col, x_levels)
        elif aes in _Y_AES:
            out[aes] = _column(geom.data, col, y_levels)
        else:
            out[aes] = _column(geom.data, col, None)

    if geom.na_rm and out:
        keep = np.ones(geom.data.height, dtype=bool)
        for values in out.values():
            keep &= np.isfinite(values)
        out = {aes: values[keep] for aes, values in out.items()}

    if geom.position is not None:
        rng = np.random.default_rng(geom.position.seed)
        if "x" in out and geom.position.width > 0:
            w = geom.position.width
            out["x"] = out["x"] + rng.uniform(-w, w, size=out["x"].shape[0])
        if "y" in out and geom.position.height > 0:
            h = geom.position.height
            out["y"] = out["y"] + rng.uniform(-h, h, size=out["y"].shape[0])
    return out


def _cell_edges(centres: np.ndarray) -> np.ndarray:
    if centres.shape[0] == 1:
        return np.array([centres[0] - 0.5, centres[0] + 0.5])
    mid = (centres[1:] + centres[:-1]) / 2
    first = centres[0] - (mid[0] - centres[0])
    last = centres[-1] + (centres[-1] - mid[-1])
    return np.concatenate([[first], mid, [last]])


def _draw_tile(ax, pos: Dict[str, np.ndarray], params: dict):
    x, y, z = pos["x"], pos["y"], pos["fill"]
    xs = np.unique(x[np.isfinite(x)])
    ys = np.unique(y[np.isfinite(y)])
    grid = np.full((ys.shape[0], xs.shape[0]), np.nan)
    ok = np.isfinite(x) & np.isfinite(y)
    grid[np.searchsorted(ys, y[ok]), np.searchsorted(xs, x[ok])] = z[ok]

    params = dict(params)
    colorbar = params.pop("colorbar", True)
    params.setdefault("cmap", TILE_CMAP)
    finite = grid[np.isfinite(grid)]
    if finite.size and "vmin" not in params and "vmax" not in params:
        lim = float(np.max(np.abs(finite))) or 1.0
        params["vmin"], params["vmax"] = -lim, lim

    mesh = ax.pcolormesh(_cell_edges(xs), _cell_edges(ys), np.ma.masked_invalid(grid), **params)
    if colorbar:
        ax.figure.colorbar(mesh, ax=ax)
    return mesh


def render_geom(
    ax,
    geom: Geom,
    x_levels: Optional[Sequence[str]] = None,
    y_levels: Optional[Sequence[str]] = None,
):
    """
    Draw one Geom on ``ax``.

    Parameters
    ----------
    ax : matplotlib.axes.Axes
        Target axes.
    geom : Geom
        Descriptor to draw.
    x_levels, y_levels : list of str, optional
        Factor levels of the axes; mapped values are drawn at their level index.

    Returns
    -------
    The matplotlib artist(s) created.
    """
    pos = _positions(geom, x_levels, y_levels)
    params = dict(geom.params)
    kind = geom.kind

    if kind == "point":
        params.setdefault("marker", "o")
        params["linestyle"] = "none"
        return ax.plot(pos["x"], pos["y"], **params)

    if kind == "line":
        order = np.argsort(pos["x"], kind="stable")
        return ax.plot(pos["x"][order], pos["y"][order], **params)

    if kind == "ribbon":
        order = np.argsort(pos["x"], kind="stable")
        return ax.fill_between(pos["x"][order], pos["ymin"][order], pos["ymax"][order], **params)

    if kind == "errorbar":
        ymin, ymax = pos["ymin"], pos["ymax"]
        y = pos.get("y", (ymin + ymax) / 2)
        params.setdefault("fmt", "none")
        params.setdefault("capsize", 3)
        return ax.errorbar(pos["x"], y, yerr=[y - ymin, ymax - y], **params)

    if kind == "rug":
        sides = params.pop("sides", "b")
        length = params.pop("length", RUG_LENGTH)
        params.setdefault("linewidth", RUG_LINEWIDTH)
        artists = []
        if "b" in sides and "x" in pos:
            artists.append(ax.vlines(pos["x"], 0, length, transform=ax.get_xaxis_transform(), **params))
        if "l" in sides and "y" in pos:
            artists.append(ax.hlines(pos["y"], 0, length, transform=ax.get_yaxis_transform(), **params))
        return artists

    if kind == "hist":
        x = pos["x"]
        return ax.hist(x[np.isfinite(x)], **params)

    if kind == "vline":
        return [ax.axvline(v, **params) for v in pos["xintercept"]]

    if kind == "hline":
        return [ax.axhline(v, **params) for v in pos["yintercept"]]

    if kind == "abline":
        return [
            ax.axline((0.0, a), slope=b, **params)
            for a, b in zip(pos["intercept"], pos["slope"])
        ]

    if kind == "tile":
        return _draw_tile(ax, pos, params)

    raise ValidationError(f"No renderer for geom kind {kind!r}.")


def apply_factor_ticks(ax, x_levels: Optional[Sequence[str]], y_levels: Optional[Sequence[str]]) -> None:
    """Label integer positions of factor axes with their levels."""
    if x_levels is not None:
        ax.set_xticks(range(len(x_levels)))
        ax.set_xticklabels(list(x_levels))
    if y_levels is not None:
        ax.set_yticks(range(len(y_levels)))
        ax.set_yticklabels(list(y_levels))
