"""
Shared helpers for effect extraction, residual checks and layers.

Contains the binning, subsampling and covariate-kind logic used by both
the check plots and the grid-check layers.
"""

from __future__ import annotations

from typing import Optional, Tuple

import numpy as np
import pandas as pd
import polars as pl

from gamviz.exceptions import ValidationError


def as_covariate(values):
    """
    Covariate values as a pandas Series or numpy array.

    polars Categorical and Enum series become pandas categoricals with the
    same categories; other polars series become numpy arrays.
    """
    if isinstance(values, pl.Series):
        if values.dtype in (pl.Categorical, pl.Enum):
            categories = values.cat.get_categories().to_list()
            return pd.Series(pd.Categorical(values.to_list(), categories=categories), name=values.name)
        return values.to_numpy()
    return values


def _is_categorical(values) -> bool:
    return isinstance(getattr(values, "dtype", None), pd.CategoricalDtype)


def covariate_kind(values) -> str:
    """
    Classify a covariate as 'numeric', 'factor' or 'logical'.

    Booleans are logical; strings, objects and categoricals are factors;
    everything else numeric.
    """
    values = as_covariate(values)
    if _is_categorical(values):
        return "factor"
    arr = np.asarray(values)
    if arr.dtype.kind == "b":
        return "logical"
    if arr.dtype.kind in ("O", "U", "S"):
        non_null = [v for v in arr if v is not None]
        if non_null and all(isinstance(v, (bool, np.bool_)) for v in non_null):
            return "logical"
        return "factor"
    return "numeric"


def factor_levels(values) -> list:
    """Levels of a factor covariate, in categorical order if one exists."""
    values = as_covariate(values)
    if _is_categorical(values):
        return list(values.dtype.categories)
    arr = np.asarray(values)
    if arr.dtype.kind == "b":
        return [False, True]
    non_null = [v for v in arr if v is not None and v == v]
    return sorted(set(non_null), key=lambda v: (str(type(v)), v))


def is_missing(values) -> np.ndarray:
    """Boolean mask of missing entries (None or NaN) for any dtype."""
    arr = np.asarray(as_covariate(values))
    if arr.dtype.kind == "f":
        return np.isnan(arr)
    if arr.dtype.kind == "O":
        return np.array([v is None or (isinstance(v, float) and np.isnan(v)) for v in arr], dtype=bool)
    return np.zeros(arr.shape[0], dtype=bool)


def subsample_mask(n: int, maxpo: int, rng: np.random.Generator) -> np.ndarray:
    """Mask keeping at most ``maxpo`` of ``n`` points, chosen at random."""
    if n <= maxpo:
        return np.ones(n, dtype=bool)
    keep = rng.choice(n, size=maxpo, replace=False)
    mask = np.zeros(n, dtype=bool)
    mask[keep] = True
    return mask


def ppoints(n: int) -> np.ndarray:
    """Probability points ``(i - a) / (n + 1 - 2a)`` with a = 3/8 for n <= 10, else 1/2."""
    a = 3.0 / 8.0 if n <= 10 else 0.5
    return (np.arange(1, n + 1) - a) / (n + 1 - 2 * a)


def default_grid_fun(r: np.ndarray) -> float:
    """Bin statistic ``mean(r) * sqrt(len(r))``; NaN for an empty bin."""
    if len(r) == 0:
        return np.nan
    return float(np.mean(r) * np.sqrt(len(r)))


# =============================================================================
# Binning
# =============================================================================

def numeric_bins(x: np.ndarray, n: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Assign numeric values to the n-1 intervals of an equally spaced grid.

    Intervals are left-closed except the last, which is closed on both
    sides so that ``max(x)`` falls inside it.

    Parameters
    ----------
    x : np.ndarray
        Finite covariate values.
    n : int
        Number of grid points (n - 1 intervals).

    Returns
    -------
    bins : np.ndarray of int
        Interval index in 1..n-1 for each value.
    grid : np.ndarray
        The n grid points.
    """
    if n < 2:
        raise ValidationError(f"n must be at least 2 to form an interval, got {n}.")
    grid = np.linspace(np.min(x), np.max(x), n)
    bins = np.clip(np.searchsorted(grid, x, side="right"), 1, n - 1)
    return bins, grid


def factor_bins(x, levels: list) -> np.ndarray:
    """Index of each value in ``levels``; -1 for values not in it."""
    lookup = {lev: i for i, lev in enumerate(levels)}
    return np.array([lookup.get(v, -1) for v in np.asarray(x)], dtype=int)


def apply_by_bin(values: np.ndarray, bins: np.ndarray, keys: np.ndarray, fun) -> np.ndarray:
    """Apply ``fun`` to ``values`` within each bin in ``keys``, in order."""
    return np.array([fun(values[bins == k]) for k in keys], dtype=np.float64)


def standardize(
    obs: np.ndarray,
    sims: np.ndarray,
    stand: str,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Center and/or scale observed and simulated statistics column-wise.

    Parameters
    ----------
    obs : np.ndarray, shape (k,)
        Observed statistic per bin.
    sims : np.ndarray, shape (rep, k)
        Simulated statistic per replicate and bin.
    stand : str
        'none', 'c' (center), 's' (scale) or 'sc' (both).
    """
    if stand == "none":
        return obs, sims
    if "c" in stand:
        # a column holding any NaN has a NaN mean and is not centred
        center = _nan_to(np.mean(sims, axis=0), 0.0)
        obs = obs - center
        sims = sims - center
    if "s" in stand:
        sd = _column_sd(sims)
        sd = np.where(np.isnan(sd) | (sd == 0), 1.0, sd)
        obs = obs / sd
        sims = sims / sd
    return obs, sims


def _column_sd(sims: np.ndarray) -> np.ndarray:
    """Column sds (ddof=1); NaN for a single replicate or a column holding NaN."""
    if sims.shape[0] < 2:
        return np.full(sims.shape[1], np.nan)
    return np.std(sims, axis=0, ddof=1)


def _nan_to(arr: np.ndarray, value: float) -> np.ndarray:
    return np.where(np.isnan(arr), value, arr)


def nan_quantile_bounds(sims: np.ndarray, level: float) -> Optional[Tuple[np.ndarray, np.ndarray]]:
    """Column-wise lower/upper quantiles at ``0.5 -/+ level / 2``, ignoring NaNs."""
    if sims.shape[0] == 0 or level <= 0:
        return None
    lo = np.full(sims.shape[1], np.nan)
    hi = np.full(sims.shape[1], np.nan)
    for j in range(sims.shape[1]):
        col = sims[:, j]
        col = col[~np.isnan(col)]
        if len(col):
            lo[j], hi[j] = np.quantile(col, [0.5 - level / 2, 0.5 + level / 2])
    return lo, hi
