"""
Input validation for plotting verbs and layer builders.

Catches bad arguments early with actionable error messages, before any
model state is read or any data frame is built.
"""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from gamviz.constants import QQ_CI_TYPES, QQ_METHODS, RESIDUAL_TYPES, STAND_CODES
from gamviz.exceptions import ValidationError


__all__ = [
    "coerce_to_float64",
    "validate_level",
    "validate_stand",
    "validate_residual_type",
    "validate_positive_int",
    "validate_select",
    "validate_qq_method",
    "validate_ci_type",
]


# =============================================================================
# Array Coercion
# =============================================================================

def coerce_to_float64(
    arr,
    name: str = "array",
    allow_nan: bool = False,
) -> np.ndarray:
    """
    Coerce array to float64.

    Parameters
    ----------
    arr : array-like
        Input values (may be object dtype with Decimal, mixed types, etc.)
    name : str
        Name for error messages.
    allow_nan : bool
        If False, raises on NaN values.

    Returns
    -------
    np.ndarray
        Array coerced to float64.

    Raises
    ------
    ValidationError
        If array cannot be coerced or contains invalid values.
    """
    try:
        out = np.asarray(arr, dtype=np.float64)
    except (ValueError, TypeError) as e:
        raise ValidationError(
            f"Cannot convert {name} to numeric. "
            f"Ensure all values are numbers. Original error: {e}"
        ) from e

    if not allow_nan and np.isnan(out).any():
        n_nan = int(np.isnan(out).sum())
        raise ValidationError(
            f"{name} contains {n_nan} NaN values. "
            "Remove or impute missing values first."
        )

    return out


# =============================================================================
# Scalar Arguments
# =============================================================================

def validate_level(level: float, name: str = "level") -> float:
    """Confidence level must lie in [0, 1). A level of 0 disables intervals."""
    try:
        level = float(level)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{name} must be a number in [0, 1), got {level!r}.") from e
    if not 0.0 <= level < 1.0:
        raise ValidationError(
            f"{name} must be in [0, 1), got {level}. "
            "Use e.g. 0.9 for 90% intervals, or 0 to disable them."
        )
    return level


def validate_stand(stand: str) -> str:
    if stand not in STAND_CODES:
        raise ValidationError(
            f"stand must be one of {sorted(STAND_CODES)}, got {stand!r}. "
            "'c' centers, 's' scales and 'sc' does both, using the simulated statistics."
        )
    return stand


def validate_residual_type(type: str) -> str:
    if type not in RESIDUAL_TYPES:
        raise ValidationError(
            f"Unknown residual type {type!r}. Choose one of {sorted(RESIDUAL_TYPES)}."
        )
    return type


def validate_positive_int(value, name: str, minimum: int = 1) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer, float)):
        raise ValidationError(f"{name} must be an integer >= {minimum}, got {value!r}.")
    if float(value) != int(value) or int(value) < minimum:
        raise ValidationError(f"{name} must be an integer >= {minimum}, got {value!r}.")
    return int(value)


def validate_select(
    select: Optional[Sequence[int]],
    n_available: int,
    what: str = "effect",
) -> Optional[list]:
    """
    Validate 0-based term indices.

    Parameters
    ----------
    select : int, sequence of int, or None
        Indices to keep. None means "all".
    n_available : int
        Number of terms that can be selected.
    what : str
        Label for error message (e.g. "smooth", "parametric term").

    Returns
    -------
    list of int or None
    """
    if select is None:
        return None
    if isinstance(select, (int, np.integer)) and not isinstance(select, bool):
        select = [select]

    out = []
    for idx in select:
        if isinstance(idx, bool) or not isinstance(idx, (int, np.integer)):
            raise ValidationError(f"select must contain integers, got {idx!r}.")
        if idx < 0 or idx >= n_available:
            raise ValidationError(
                f"{what} index {idx} out of range: the model has {n_available} "
                f"{what}(s), valid indices are 0..{n_available - 1}."
            )
        out.append(int(idx))
    return out


def validate_qq_method(method: str) -> str:
    if method not in QQ_METHODS:
        raise ValidationError(
            f"Unknown QQ method {method!r}. Choose one of {sorted(QQ_METHODS)}."
        )
    return method


def validate_ci_type(ci: str) -> str:
    if ci not in QQ_CI_TYPES:
        raise ValidationError(
            f"Unknown CI type {ci!r}. Choose one of {sorted(QQ_CI_TYPES)}."
        )
    return ci
