"""
Response Distributions for Fitted GAMs
======================================

The fitting engine only knows a family through its variance function and
link. Diagnostics need more: they draw new responses from the fitted
distribution, evaluate its cdf for randomized quantile residuals and its
quantile function for theoretical QQ references.

``FamilyAdapter`` wraps a statsmodels family instance together with the
dispersion and prior weights of a fit and exposes those operations.

Supported Families
------------------

+------------------+--------------------------------------+-------------+
| Family           | Distribution (mean mu, dispersion φ) | cdf / ppf   |
+==================+======================================+=============+
| Gaussian         | N(mu, φ/w)                           | yes         |
| Poisson          | Pois(mu)                             | yes         |
| Binomial         | Bin(m, mu) / m, m = trials           | yes         |
| Gamma            | Gamma(shape=w/φ, scale=mu φ/w)       | yes         |
| InverseGaussian  | IG(mu, shape=w/φ)                    | yes         |
| NegativeBinomial | NB(mean=mu, var=mu + alpha mu²)      | yes         |
| Tweedie          | compound Poisson-gamma               | no          |
+------------------+--------------------------------------+-------------+

Examples
--------
>>> from gamviz.families import FamilyAdapter
>>> fam = FamilyAdapter.from_result(result)
>>> ysim = fam.simulate(result.fittedvalues, nsim=50, rng=np.random.default_rng(1))
>>> r = fam.residuals(y, mu, type="tnormal", rng=np.random.default_rng(2))
"""

from __future__ import annotations

from typing import Optional

import numpy as np
from scipy import stats
from statsmodels.genmod import families as smf

from gamviz.exceptions import SimulationError, ValidationError
from gamviz.validation import coerce_to_float64, validate_residual_type


__all__ = ["FamilyAdapter"]


# Order matters: NegativeBinomial and Tweedie are not subclasses of the
# others, but a user subclass of e.g. Poisson should resolve to Poisson.
_FAMILY_NAMES = (
    (smf.Gaussian, "Gaussian"),
    (smf.Poisson, "Poisson"),
    (smf.Binomial, "Binomial"),
    (smf.Gamma, "Gamma"),
    (smf.InverseGaussian, "InverseGaussian"),
    (smf.NegativeBinomial, "NegativeBinomial"),
    (smf.Tweedie, "Tweedie"),
)

_DISCRETE = frozenset({"Poisson", "Binomial", "NegativeBinomial"})

# Keeps transformed-normal residuals finite at the edges of the PIT.
_PIT_EPS = 1e-12


def _family_name(family) -> str:
    for cls, name in _FAMILY_NAMES:
        if isinstance(family, cls):
            return name
    raise SimulationError(
        f"Family {type(family).__name__} is not supported. "
        f"Supported families: {', '.join(name for _, name in _FAMILY_NAMES)}."
    )


class FamilyAdapter:
    """
    Sampling and distribution functions for a fitted statsmodels family.

    Parameters
    ----------
    family : statsmodels.genmod.families.Family
        The family instance of the fitted model.
    scale : float
        Estimated dispersion φ. Ignored for Poisson, Binomial and
        NegativeBinomial, whose dispersion is fixed at 1.
    var_weights : array-like, optional
        Prior (variance) weights of the fit. Defaults to 1.
    n_trials : array-like, optional
        Binomial trials per observation, as set by statsmodels for a
        two-column (successes, failures) response. The number of trials
        used for simulation and quantiles is ``n_trials * var_weights``.
    """

    def __init__(self, family, scale: float = 1.0, var_weights=None, n_trials=None):
        self.family = family
        self.name = _family_name(family)
        self.scale = float(scale)
        self.var_weights = None if var_weights is None else np.asarray(var_weights, dtype=np.float64)
        self.n_trials = None if n_trials is None else np.asarray(n_trials, dtype=np.float64)

    @classmethod
    def from_result(cls, result) -> "FamilyAdapter":
        """Build the adapter from a fitted GLM/GLMGam result."""
        model = result.model
        return cls(
            model.family,
            scale=result.scale,
            var_weights=getattr(model, "var_weights", None),
            n_trials=getattr(model, "n_trials", None),
        )

    def __repr__(self) -> str:
        return f"FamilyAdapter({self.name}, scale={self.scale:.4g})"

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def is_discrete(self) -> bool:
        return self.name in _DISCRETE

    @property
    def supports_ppf(self) -> bool:
        return self.name != "Tweedie"

    @property
    def alpha(self) -> float:
        return float(getattr(self.family, "alpha", 1.0))

    @property
    def var_power(self) -> float:
        return float(getattr(self.family, "var_power", 1.5))

    def _var_weights(self, n: int) -> np.ndarray:
        if self.var_weights is None:
            return np.ones(n)
        return np.broadcast_to(self.var_weights, (n,)).astype(np.float64)

    def _weights(self, n: int) -> np.ndarray:
        """Prior weights, with Binomial trials folded in."""
        w = self._var_weights(n)
        if self.name == "Binomial" and self.n_trials is not None:
            w = w * np.broadcast_to(self.n_trials, (n,))
        return w

    def _trials(self, n: int) -> np.ndarray:
        # numpy Generator.binomial rejects a float number of trials
        return np.maximum(np.round(self._weights(n)), 1).astype(np.int64)

    # -------------------------------------------------------------------------
    # Distributions
    # -------------------------------------------------------------------------

    def _frozen(self, mu: np.ndarray):
        """scipy frozen distribution with one component per observation."""
        n = mu.shape[0]
        w = self._weights(n)
        phi = self.scale

        if self.name == "Gaussian":
            return stats.norm(loc=mu, scale=np.sqrt(phi / w))
        if self.name == "Poisson":
            return stats.poisson(mu)
        if self.name == "Binomial":
            return stats.binom(self._trials(n), np.clip(mu, 0.0, 1.0))
        if self.name == "Gamma":
            shape = w / phi
            return stats.gamma(a=shape, scale=mu / shape)
        if self.name == "InverseGaussian":
            lam = w / phi
            return stats.invgauss(mu / lam, scale=lam)
        if self.name == "NegativeBinomial":
            a = self.alpha
            return stats.nbinom(1.0 / a, 1.0 / (1.0 + a * mu))
        raise SimulationError(
            f"{self.name} family has no closed-form distribution function. "
            "Use a simulation-based method instead (e.g. method='simul1' for QQ plots)."
        )

    def _to_support(self, y: np.ndarray) -> np.ndarray:
        """Map responses onto the distribution's support (Binomial proportions to counts)."""
        if self.name == "Binomial":
            return np.round(y * self._trials(y.shape[0]))
        return y

    def _from_support(self, k: np.ndarray, n: int) -> np.ndarray:
        if self.name == "Binomial":
            return k / self._trials(n)
        return k

    def cdf(self, y, mu) -> np.ndarray:
        """Per-observation cdf ``F_i(y_i)`` of the fitted distribution."""
        mu = np.asarray(mu, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)
        return self._frozen(mu).cdf(self._to_support(y))

    def ppf(self, u, mu) -> np.ndarray:
        """
        Per-observation quantile function.

        ``u`` may be ``(n,)`` or ``(k, n)``; quantiles broadcast along the
        last axis against ``mu``.
        """
        mu = np.asarray(mu, dtype=np.float64)
        u = np.asarray(u, dtype=np.float64)
        k = self._frozen(mu).ppf(u)
        return self._from_support(k, mu.shape[0])

    def simulate(self, mu, nsim: int, rng: np.random.Generator) -> np.ndarray:
        """
        Draw ``nsim`` response vectors from the fitted distribution.

        Parameters
        ----------
        mu : array-like, shape (n,)
            Fitted means.
        nsim : int
            Number of replicates.
        rng : numpy.random.Generator
            Source of randomness.

        Returns
        -------
        np.ndarray, shape (nsim, n)
        """
        mu = np.asarray(mu, dtype=np.float64)
        n = mu.shape[0]

        if self.name == "Tweedie":
            return self._simulate_tweedie(mu, nsim, rng)

        draws = self._frozen(mu).rvs(size=(nsim, n), random_state=rng)
        return self._from_support(np.asarray(draws, dtype=np.float64), n)

    def _simulate_tweedie(self, mu: np.ndarray, nsim: int, rng: np.random.Generator) -> np.ndarray:
        # Y = sum of N ~ Pois(lam) gamma variables, so Y | N ~ Gamma(N * shape, scale)
        p = self.var_power
        if not 1.0 < p < 2.0:
            raise SimulationError(
                f"Tweedie simulation needs 1 < var_power < 2, got {p}. "
                "Other powers have no compound Poisson-gamma representation."
            )
        phi = self.scale / self._weights(mu.shape[0])
        lam = mu ** (2.0 - p) / (phi * (2.0 - p))
        shape = (2.0 - p) / (p - 1.0)
        gscale = phi * (p - 1.0) * mu ** (p - 1.0)

        counts = rng.poisson(lam, size=(nsim, mu.shape[0]))
        return rng.gamma(shape=counts * shape, scale=np.broadcast_to(gscale, counts.shape))

    # -------------------------------------------------------------------------
    # Residuals
    # -------------------------------------------------------------------------

    def _pit(self, y: np.ndarray, mu: np.ndarray, rng: Optional[np.random.Generator]) -> np.ndarray:
        """Randomized probability integral transform u = F(y-) + V (F(y) - F(y-))."""
        dist = self._frozen(mu)
        k = self._to_support(y)
        upper = dist.cdf(k)
        if not self.is_discrete:
            return upper
        if rng is None:
            rng = np.random.default_rng()
        lower = dist.cdf(k - 1)
        return lower + rng.uniform(size=k.shape) * (upper - lower)

    def residuals(
        self,
        y,
        mu,
        type: str = "auto",
        rng: Optional[np.random.Generator] = None,
    ) -> np.ndarray:
        """
        Compute residuals of responses ``y`` against fitted means ``mu``.

        The deterministic types match statsmodels ``GLMResults.resid_*``,
        except that for a two-column Binomial response the response and
        working residuals stay on the proportion scale.

        Parameters
        ----------
        y : array-like, shape (n,)
            Responses (proportions for Binomial).
        mu : array-like, shape (n,)
            Fitted means.
        type : str
            One of 'auto' (= 'deviance'), 'deviance', 'pearson',
            'scaled.pearson', 'working', 'response', 'tunif', 'tnormal'.
        rng : numpy.random.Generator, optional
            Used by the randomized types on discrete families.

        Returns
        -------
        np.ndarray, shape (n,)
        """
        validate_residual_type(type)
        y = coerce_to_float64(y, "y", allow_nan=True)
        mu = coerce_to_float64(mu, "mu")
        if y.shape != mu.shape:
            raise ValidationError(
                f"y and mu must have the same shape, got {y.shape} and {mu.shape}."
            )
        n = mu.shape[0]

        if type in ("auto", "deviance"):
            # a fitted Binomial family already carries its trials
            return self.family.resid_dev(y, mu, var_weights=self._var_weights(n), scale=1.0)
        if type == "response":
            return y - mu
        if type in ("pearson", "scaled.pearson"):
            r = np.sqrt(self._weights(n)) * (y - mu) / np.sqrt(self.family.variance(mu))
            if type == "scaled.pearson":
                r = r / np.sqrt(self.scale)
            return r
        if type == "working":
            return (y - mu) * self.family.link.deriv(mu)

        u = self._pit(y, mu, rng)
        if type == "tunif":
            return u
        return stats.norm.ppf(np.clip(u, _PIT_EPS, 1.0 - _PIT_EPS))
