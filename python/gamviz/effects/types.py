"""
Model effects: one smooth or parametric term of a fitted GAM.

Each effect knows which coefficients belong to it and how to evaluate
itself, and its ``plot`` method turns it into a ``GamPlot`` with a fit
frame (the effect on a grid with standard errors) and a residual frame
(partial residuals at the observations).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, List, Optional

import numpy as np
import polars as pl

from gamviz.constants import DEFAULT_CI_LEVEL, DEFAULT_MAXPO, DEFAULT_N_GRID
from gamviz.plots.base import GamPlot, Labels
from gamviz.validation import validate_level, validate_positive_int

if TYPE_CHECKING:
    from gamviz.viz import GamViz


__all__ = ["SmoothEffect", "ParametricEffect", "PARAMETRIC_KINDS"]


PARAMETRIC_KINDS = ("numeric", "factor", "logical", "other")


def _quadratic_se(B: np.ndarray, V: np.ndarray) -> np.ndarray:
    """sqrt(diag(B V B')) without forming the full matrix."""
    return np.sqrt(np.maximum(np.sum((B @ V) * B, axis=1), 0.0))


@dataclass
class SmoothEffect:
    """
    A univariate smooth term.

    Attributes
    ----------
    viz : GamViz
        The model the smooth belongs to.
    index : int
        Position among the model's smooths.
    variable : str
        Covariate name.
    coef_idx : np.ndarray
        Columns of the full design (and entries of params) of this smooth.
    x : np.ndarray
        Observed covariate values.
    """
    viz: "GamViz" = field(repr=False)
    index: int
    variable: str
    coef_idx: np.ndarray = field(repr=False)
    x: np.ndarray = field(repr=False)

    @property
    def label(self) -> str:
        return f"s({self.variable})"

    @property
    def coef(self) -> np.ndarray:
        return self.viz.params[self.coef_idx]

    def basis(self, x) -> np.ndarray:
        """Constrained basis of this smooth evaluated at ``x``."""
        smoother = self.viz.smoother.smoothers[self.index]
        return np.asarray(smoother.transform(np.asarray(x, dtype=np.float64)))

    def evaluate(self, x, se_with_mean: bool = False):
        """
        Effect and standard error at ``x``.

        Parameters
        ----------
        x : array-like
            Covariate values.
        se_with_mean : bool
            Include the uncertainty of the overall mean: every other column
            of the design is held at its average over the observations.

        Returns
        -------
        fit, se : np.ndarray
        """
        B = self.basis(x)
        fit = B @ self.coef
        V = self.viz.cov_params
        if not se_with_mean:
            idx = self.coef_idx
            return fit, _quadratic_se(B, V[np.ix_(idx, idx)])

        means = np.asarray(self.viz.model.exog, dtype=np.float64).mean(axis=0)
        X = np.tile(means, (B.shape[0], 1))
        X[:, self.coef_idx] = B
        return fit, _quadratic_se(X, V)

    def partial_residuals(self) -> np.ndarray:
        """Effect at the observations plus working residuals."""
        exog = np.asarray(self.viz.model.exog, dtype=np.float64)
        return exog[:, self.coef_idx] @ self.coef + self.viz.residuals("working")

    def plot(
        self,
        n: int = DEFAULT_N_GRID,
        level: float = DEFAULT_CI_LEVEL,
        maxpo: int = DEFAULT_MAXPO,
        trans: Optional[Callable] = None,
        se_with_mean: bool = False,
    ) -> GamPlot:
        """
        Plot data for this smooth (kind ``Smooth1D``).

        Parameters
        ----------
        n : int
            Number of grid points over the observed covariate range.
        level : float
            Default confidence level for interval layers.
        maxpo : int
            Maximum number of partial residuals shown.
        trans : callable, optional
            Applied to fit and interval bounds by the line layers.
        se_with_mean : bool
            Include intercept uncertainty in the standard errors.
        """
        n = validate_positive_int(n, "n", minimum=2)
        level = validate_level(level)
        maxpo = validate_positive_int(maxpo, "maxpo")

        grid = np.linspace(np.min(self.x), np.max(self.x), n)
        fit, se = self.evaluate(grid, se_with_mean=se_with_mean)
        pres = self.partial_residuals()

        return GamPlot(
            "Smooth1D",
            {
                "fit": pl.DataFrame({"x": grid, "y": fit, "se": se}),
                "res": pl.DataFrame({
                    "x": self.x,
                    "y": pres,
                    "sub": self.viz.subsample(self.x.shape[0], maxpo),
                }),
                "misc": {"trans": trans, "level": level},
            },
            labels=Labels(x=self.variable, y=self.label),
        )


@dataclass
class ParametricEffect:
    """
    A parametric (linear) model term.

    Attributes
    ----------
    viz : GamViz
        The model the term belongs to.
    name : str
        Term name as in the formula design, e.g. 'z' or 'fac'.
    coef_idx : np.ndarray
        Entries of params belonging to the term.
    variables : list of str
        Covariates the term is built from.
    kind : str
        'numeric', 'factor', 'logical' or 'other' (interactions,
        transformed terms).
    levels : list, optional
        Levels of factor and logical terms, reference level first.
    """
    viz: "GamViz" = field(repr=False)
    name: str
    coef_idx: np.ndarray = field(repr=False)
    variables: List[str]
    kind: str
    levels: Optional[list] = None

    @property
    def variable(self) -> str:
        return self.variables[0]

    def level_effects(self):
        """
        Effect and standard error per level, the reference level at 0.

        A term coded with one column per level (no intercept) has no
        reference level and every level gets its own coefficient.
        """
        beta = self.viz.params[self.coef_idx]
        V = self.viz.cov_params[np.ix_(self.coef_idx, self.coef_idx)]
        se = np.sqrt(np.maximum(np.diag(V), 0.0))
        if len(self.coef_idx) == len(self.levels):
            return beta, se
        return np.concatenate([[0.0], beta]), np.concatenate([[0.0], se])

    def plot(
        self,
        n: int = DEFAULT_N_GRID,
        level: float = DEFAULT_CI_LEVEL,
        maxpo: int = DEFAULT_MAXPO,
        trans: Optional[Callable] = None,
        **kwargs,
    ) -> Optional[GamPlot]:
        """
        Plot data for this term.

        Numeric terms give kind ``PtermNumeric``, factors ``PtermFactor``
        and logicals ``PtermLogical``. Terms of kind 'other' cannot be
        plotted and return None.
        """
        if self.kind == "other":
            return None
        level = validate_level(level)
        maxpo = validate_positive_int(maxpo, "maxpo")

        values = self.viz.covariate(self.variable)
        rw = self.viz.residuals("working")
        sub = self.viz.subsample(self.viz.n_obs, maxpo)
        labels = Labels(x=self.variable, y=self.name)
        misc = {"trans": trans, "level": level}

        if self.kind == "numeric":
            n = validate_positive_int(n, "n", minimum=2)
            x = np.asarray(values, dtype=np.float64)
            beta = float(self.viz.params[self.coef_idx[0]])
            se_beta = float(np.sqrt(self.viz.cov_params[self.coef_idx[0], self.coef_idx[0]]))
            grid = np.linspace(np.min(x), np.max(x), n)
            return GamPlot(
                "PtermNumeric",
                {
                    "fit": pl.DataFrame({"x": grid, "y": beta * grid, "se": np.abs(grid) * se_beta}),
                    "res": pl.DataFrame({"x": x, "y": beta * x + rw, "sub": sub}),
                    "misc": misc,
                },
                labels=labels,
            )

        levels = [str(v) for v in self.levels]
        fit, se = self.level_effects()
        obs = np.array([str(v) for v in np.asarray(values)], dtype=object)
        lookup = dict(zip(levels, fit))
        at_obs = np.array([lookup.get(v, np.nan) for v in obs], dtype=np.float64)

        return GamPlot(
            "PtermFactor" if self.kind == "factor" else "PtermLogical",
            {
                "fit": pl.DataFrame({"x": levels, "y": fit, "se": se}),
                "res": pl.DataFrame({"x": obs.tolist(), "y": at_obs + rw, "sub": sub}),
                "misc": misc,
            },
            labels=labels,
            x_levels=levels,
        )
