"""
Central configuration and constants for gamviz.

This module provides a single source of truth for all default values
and magic numbers used by the plotting verbs and layer builders.
"""

__all__ = [
    # Effect plots
    "DEFAULT_N_GRID",
    "DEFAULT_MAXPO",
    "DEFAULT_CI_LEVEL",
    # Grid checks
    "DEFAULT_GRID_N",
    "DEFAULT_GRID_LEVEL",
    "DEFAULT_GRID_STAND",
    "DEFAULT_GRID_N_2D",
    "DEFAULT_GRID_STAND_2D",
    # QQ plots
    "DEFAULT_QQ_REP",
    "DEFAULT_QQ_LEVEL",
    "DEFAULT_QQ_NGR",
    "QQ_DISCRETE_THRESHOLD",
    # Rug
    "RUG_LINEWIDTH",
    "RUG_LENGTH",
    "JITTER_WIDTH_FACTOR",
    "JITTER_WIDTH_LOGICAL",
    # Styling
    "OBS_MARKER",
    "REP_MARKER",
    "REP_MARKERSIZE",
    "CI_COLOR",
    "CI_LINESTYLE",
    "CI_FACTOR_MARKER",
    "CI_FACTOR_MARKERSIZE",
    "FIT_COLOR",
    "RIBBON_COLOR",
    "RIBBON_ALPHA",
    "POINT_COLOR",
    "POINT_MARKERSIZE",
    "TILE_CMAP",
    "QQ_DEFAULTS",
    # Accepted codes
    "RESIDUAL_TYPES",
    "STAND_CODES",
    "QQ_METHODS",
    "QQ_CI_TYPES",
]

# =============================================================================
# Effect Plots
# =============================================================================
DEFAULT_N_GRID = 100          # Evaluation points for 1D effect curves
DEFAULT_MAXPO = 10_000        # Max residual points shown (the rest are subsampled away)
DEFAULT_CI_LEVEL = 0.95

# =============================================================================
# Grid Checks
# =============================================================================
DEFAULT_GRID_N = 20
DEFAULT_GRID_LEVEL = 0.8
DEFAULT_GRID_STAND = "none"
DEFAULT_GRID_N_2D = (20, 20)
DEFAULT_GRID_STAND_2D = "sc"

# =============================================================================
# QQ Plots
# =============================================================================
DEFAULT_QQ_REP = 10
DEFAULT_QQ_LEVEL = 0.8
DEFAULT_QQ_NGR = 1000
QQ_DISCRETE_THRESHOLD = 10_000

# =============================================================================
# Rug
# =============================================================================
RUG_LINEWIDTH = 0.2 * 72.27 / 25.4   # 0.2 mm in points
RUG_LENGTH = 0.03             # Fraction of the axes height/width
JITTER_WIDTH_FACTOR = 0.25
JITTER_WIDTH_LOGICAL = 0.45

# =============================================================================
# Styling (matplotlib keyword vocabulary)
# =============================================================================
OBS_MARKER = "o"
REP_MARKER = "."
REP_MARKERSIZE = 1.0
CI_COLOR = "red"
CI_LINESTYLE = "--"
CI_FACTOR_MARKER = "+"
CI_FACTOR_MARKERSIZE = 8.0
FIT_COLOR = "black"
RIBBON_COLOR = "0.8"
RIBBON_ALPHA = 0.6
POINT_COLOR = "black"
POINT_MARKERSIZE = 2.0
TILE_CMAP = "RdBu_r"

QQ_DEFAULTS = {
    "qqpoi": {"marker": ".", "color": "black"},
    "ablin": {"color": "red"},
    "cipoly": {"color": "0.8", "linewidth": 0},
    "replin": {"color": "black", "alpha": 0.05},
}

# =============================================================================
# Accepted Codes
# =============================================================================
RESIDUAL_TYPES = frozenset({
    "auto",
    "deviance",
    "pearson",
    "scaled.pearson",
    "working",
    "response",
    "tunif",
    "tnormal",
})

STAND_CODES = frozenset({"none", "c", "s", "sc"})

QQ_METHODS = frozenset({"auto", "tunif", "simul1", "simul2", "normal"})

QQ_CI_TYPES = frozenset({"normal", "quantile", "none"})
