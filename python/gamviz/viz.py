"""
Fitted-model wrapper for visual diagnostics.

``get_viz`` takes a statsmodels ``GLMGam`` fit and returns a ``GamViz``:
the fit plus everything the plotting verbs need to read repeatedly
(responses, fitted means, the response distribution, a seeded random
generator) and, optionally, a matrix of simulated responses used for
reference bands.

Examples
--------
>>> from statsmodels.gam.api import GLMGam, BSplines
>>> bs = BSplines(df[["x0"]], df=[10], degree=[3])
>>> res = GLMGam.from_formula("y ~ fac", data=df, smoother=bs, alpha=[1.0]).fit()
>>> v = get_viz(res, nsim=50, seed=1)
>>> v.simulated_residuals("deviance").shape
(50, 500)
"""

from __future__ import annotations

from typing import Any, List, NamedTuple, Optional

import numpy as np
from statsmodels.gam.generalized_additive_model import GLMGamResults

from gamviz.exceptions import ModelStructureError, ValidationError, wrap_model_error
from gamviz.families import FamilyAdapter
from gamviz.utils import subsample_mask
from gamviz.validation import validate_positive_int


__all__ = ["GamViz", "get_viz", "is_gam_result"]


_INTERCEPT_NAMES = frozenset({"Intercept", "1"})


class LinearTerm(NamedTuple):
    """One term of the linear part of the design."""
    name: str
    columns: slice
    variables: List[str]
    categories: Optional[list]


def _patsy_terms(info) -> List[LinearTerm]:
    out = []
    for term, name in zip(info.terms, info.term_names):
        categories = None
        if len(term.factors) == 1:
            finfo = info.factor_infos[term.factors[0]]
            if finfo.type == "categorical":
                categories = list(finfo.categories)
        out.append(LinearTerm(name, info.term_slices[term], [f.code for f in term.factors], categories))
    return out


def _formulaic_terms(spec) -> List[LinearTerm]:
    contrasts = spec.factor_contrasts
    out = []
    for term in spec.terms:
        categories = None
        if len(term.factors) == 1 and term.factors[0] in contrasts:
            categories = list(contrasts[term.factors[0]].levels)
        out.append(LinearTerm(str(term), spec.term_slices[term], [f.expr for f in term.factors], categories))
    return out


def is_gam_result(obj: Any) -> bool:
    """True for a ``GLMGamResults`` or its results wrapper."""
    return isinstance(getattr(obj, "_results", obj), GLMGamResults)


class GamViz:
    """
    A fitted GAM prepared for plotting.

    Attributes
    ----------
    result : GLMGamResults
        The (unwrapped) fit.
    model : GLMGam
        The model the fit belongs to.
    family : FamilyAdapter
        Response distribution at the fitted dispersion.
    y, mu : np.ndarray
        Responses and fitted means.
    n_obs : int
        Number of observations.
    rng : numpy.random.Generator
        Generator shared by simulation, subsampling and jitter.
    sim : np.ndarray or None
        ``(nsim, n_obs)`` simulated responses, or None.
    """

    def __init__(self, result, seed: Optional[int] = None):
        try:
            self.result = getattr(result, "_results", result)
            self.model = self.result.model
            self.family = FamilyAdapter.from_result(self.result)
            self.y = np.asarray(self.model.endog, dtype=np.float64)
            self.mu = np.asarray(self.result.fittedvalues, dtype=np.float64)
            self.params = np.asarray(self.result.params, dtype=np.float64)
        except AttributeError as e:
            raise wrap_model_error(e, "Building GamViz from the fit.") from e
        self.n_obs = self.y.shape[0]
        self.rng = np.random.default_rng(seed)
        self.sim: Optional[np.ndarray] = None

    def __repr__(self) -> str:
        nsim = 0 if self.sim is None else self.sim.shape[0]
        return (
            f"GamViz(family={self.family.name}, n_obs={self.n_obs}, "
            f"n_smooths={self.n_smooths}, nsim={nsim})"
        )

    # -------------------------------------------------------------------------
    # Model structure
    # -------------------------------------------------------------------------

    @property
    def smoother(self):
        return self.model.smoother

    @property
    def n_smooths(self) -> int:
        return len(self.smoother.smoothers)

    @property
    def k_linear(self) -> int:
        return int(self.model.k_exog_linear)

    @property
    def design_info(self):
        """
        Term structure of the linear part, or None for array-built models.

        A patsy ``DesignInfo`` or, for formulas materialized by formulaic,
        a ``ModelSpec``.
        """
        model = self.model
        # statsmodels < 0.15 keeps a patsy design, later releases a model spec
        candidates = (
            (model, "design_info_linear"),
            (model, "model_spec_linear"),
            (model.data, "design_info"),
            (model.data, "model_spec"),
        )
        for owner, attr in candidates:
            info = getattr(owner, attr, None)
            if info is not None:
                return info
        return None

    def linear_terms(self) -> List[LinearTerm]:
        """Non-intercept terms of the linear part, in design order."""
        info = self.design_info
        if info is None:
            return []
        # a two-sided spec keeps the design of the predictors under rhs
        info = getattr(info, "rhs", info)
        try:
            terms = _patsy_terms(info) if hasattr(info, "factor_infos") else _formulaic_terms(info)
            return [t for t in terms if t.name not in _INTERCEPT_NAMES]
        except (AttributeError, KeyError) as e:
            raise wrap_model_error(e, "Reading the parametric terms of the model.") from e

    @property
    def n_parametric(self) -> int:
        return len(self.linear_terms())

    @property
    def linear_predictor(self) -> np.ndarray:
        return self.model.family.link(self.mu)

    @property
    def cov_params(self) -> np.ndarray:
        return np.asarray(self.result.cov_params(), dtype=np.float64)

    @property
    def frame(self):
        """The data frame the model was fitted on, aligned to the fitted rows."""
        frame = getattr(self.model.data, "frame", None)
        if frame is None:
            return None
        if len(frame) != self.n_obs:
            labels = getattr(self.model.data, "row_labels", None)
            if labels is None:
                return None
            frame = frame.loc[labels]
        return frame

    # -------------------------------------------------------------------------
    # Data access
    # -------------------------------------------------------------------------

    def available_covariates(self) -> list:
        names = []
        frame = self.frame
        if frame is not None:
            names.extend(str(c) for c in frame.columns)
        for s in self.smoother.smoothers:
            if s.variable_name not in names:
                names.append(s.variable_name)
        return names

    def covariate(self, name: str):
        """
        Look up a covariate by name.

        The fitting data frame is searched first (keeping categorical
        dtypes), then the smoother variables.
        """
        frame = self.frame
        if frame is not None and name in frame.columns:
            return frame[name].reset_index(drop=True)
        for s in self.smoother.smoothers:
            if s.variable_name == name:
                return np.asarray(s.x, dtype=np.float64)
        raise ValidationError(
            f"Covariate {name!r} not found in the model data. "
            f"Available: {self.available_covariates()}"
        )

    def residuals(self, type: str = "auto") -> np.ndarray:
        """Residuals of the observed responses."""
        return self.family.residuals(self.y, self.mu, type=type, rng=self.rng)

    def simulated_residuals(self, type: str = "auto") -> Optional[np.ndarray]:
        """
        Residuals of every simulated response vector against the fitted means.

        Returns None when the object holds no simulations.
        """
        if self.sim is None:
            return None
        return np.vstack([
            self.family.residuals(ysim, self.mu, type=type, rng=self.rng)
            for ysim in self.sim
        ])

    def subsample(self, n: int, maxpo: int) -> np.ndarray:
        return subsample_mask(n, maxpo, self.rng)

    # -------------------------------------------------------------------------
    # Simulation
    # -------------------------------------------------------------------------

    def simulate(self, nsim: int, post: bool = False) -> np.ndarray:
        """
        Simulate ``nsim`` response vectors and store them in ``sim``.

        With ``post=True`` each replicate uses its own coefficient draw
        from the approximate posterior ``N(params, cov_params)``.
        """
        nsim = validate_positive_int(nsim, "nsim")
        if not post:
            self.sim = self.family.simulate(self.mu, nsim, self.rng)
            return self.sim

        exog = np.asarray(self.model.exog, dtype=np.float64)
        link = self.model.family.link
        # offset and exposure, whatever the model carried
        offset = link(self.mu) - exog @ self.params
        betas = self.rng.multivariate_normal(self.params, self.cov_params, size=nsim)
        sims = np.empty((nsim, self.n_obs))
        for i, beta in enumerate(betas):
            mu_i = link.inverse(exog @ beta + offset)
            sims[i] = self.family.simulate(mu_i, 1, self.rng)[0]
        self.sim = sims
        return sims


def get_viz(obj, nsim: int = 0, post: bool = False, seed: Optional[int] = None) -> GamViz:
    """
    Prepare a fitted GAM for plotting.

    Parameters
    ----------
    obj : GLMGamResults or GamViz
        A fitted statsmodels GAM, or an object already returned by get_viz.
    nsim : int
        Number of responses to simulate from the fit. 0 keeps no simulations
        (or, for an existing GamViz, keeps the ones it has).
    post : bool
        Draw coefficients from their approximate posterior for each
        simulation, so the bands also reflect estimation uncertainty.
    seed : int, optional
        Seed for the random generator. For an existing GamViz a seed
        re-seeds its generator.

    Returns
    -------
    GamViz

    Raises
    ------
    ModelStructureError
        If ``obj`` is neither a GAM fit nor a GamViz.
    """
    if isinstance(obj, GamViz):
        viz = obj
        if seed is not None:
            viz.rng = np.random.default_rng(seed)
    elif is_gam_result(obj):
        viz = GamViz(obj, seed=seed)
    else:
        raise ModelStructureError(
            f"get_viz expects a GLMGam fit or a GamViz, got {type(obj).__name__}. "
            "Fit the model with statsmodels.gam.api.GLMGam(...).fit() first."
        )

    if nsim:
        viz.simulate(nsim, post=post)
    return viz
