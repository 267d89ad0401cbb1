"""
gamviz: Visual Diagnostics for Generalized Additive Models
===========================================================

Layered plots and residual checks for GAMs fitted with statsmodels.

Quick Start
-----------
>>> import numpy as np
>>> import pandas as pd
>>> import statsmodels.api as sm
>>> from statsmodels.gam.api import GLMGam, BSplines
>>> import gamviz as gv
>>>
>>> rng = np.random.default_rng(0)
>>> df = pd.DataFrame({"x0": rng.uniform(size=500), "z": rng.normal(size=500)})
>>> df["y"] = rng.poisson(np.exp(np.sin(6 * df.x0) + 0.3 * df.z))
>>> bs = BSplines(df[["x0"]], df=[10], degree=[3])
>>> res = GLMGam.from_formula("y ~ z", data=df, smoother=bs, alpha=[1.0],
...                           family=sm.families.Poisson()).fit()
>>>
>>> v = gv.get_viz(res, nsim=50, seed=1)
>>>
>>> # Effect plots
>>> p = gv.plot(v, all_terms=True) + gv.l_points() + gv.l_fit_line() + gv.l_ci_line()
>>> figs = p.draw(pages=1)
>>>
>>> # Binned residuals against a covariate, with a simulation band
>>> ax = (gv.check1d(v, "x0") + gv.l_grid_check_1d(level=0.9, stand="sc")).draw()
>>>
>>> # QQ plot
>>> ax = gv.qq(v, method="tunif", ci="quantile").draw()

Plot Kinds
----------
- **Smooth1D**: one univariate smooth
- **PtermNumeric / PtermFactor / PtermLogical**: one parametric term
- **Check0DScalarNumeric**: a residual statistic vs its simulated distribution
- **Check1DNumeric / Check1DFactor / Check1DLogical**: residuals along a covariate
- **Check2DNumericNumeric / Check2DFactorNumeric / Check2DFactorFactor**:
  residuals over two covariates

Layers (``l_*``) are added with ``+`` and dispatch on the plot kind.
"""

__version__ = "0.1.0"

from gamviz.exceptions import (
    GamVizError,
    ModelStructureError,
    SimulationError,
    ValidationError,
)
from gamviz.families import FamilyAdapter
from gamviz.viz import GamViz, get_viz

# plots before effects: effects build on gamviz.plots.base
from gamviz.plots import (
    GamPlot,
    Geom,
    Jitter,
    PlotGam,
    QQGam,
    check0d,
    check1d,
    check2d,
    labs,
    plot,
    qq,
    zoom,
)
from gamviz.effects import (
    ParametricEffect,
    SmoothEffect,
    extract_effects,
    pterm,
    sm,
)
from gamviz.layers import (
    Layer,
    l_ci_bar,
    l_ci_line,
    l_ci_poly,
    l_fit_line,
    l_fit_points,
    l_grid_check_1d,
    l_grid_check_2d,
    l_hist,
    l_points,
    l_rug,
    l_vline,
)

__all__ = [
    "__version__",
    # Model wrapper
    "GamViz",
    "get_viz",
    "FamilyAdapter",
    # Effects
    "SmoothEffect",
    "ParametricEffect",
    "sm",
    "pterm",
    "extract_effects",
    # Plots
    "GamPlot",
    "PlotGam",
    "Geom",
    "Jitter",
    "labs",
    "plot",
    "check0d",
    "check1d",
    "check2d",
    "qq",
    "zoom",
    "QQGam",
    # Layers
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
    # Exceptions
    "GamVizError",
    "ValidationError",
    "ModelStructureError",
    "SimulationError",
]
