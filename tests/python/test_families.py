"""
Tests for FamilyAdapter
=======================

These tests verify that:
1. Deterministic residual types match statsmodels GLMResults.resid_*
2. Simulated responses follow the fitted distribution
3. cdf/ppf are consistent and randomized PIT residuals are uniform
4. Unsupported families and missing quantile functions raise clear errors
"""

import numpy as np
import pytest
import statsmodels.api as sm

from gamviz.exceptions import SimulationError, ValidationError
from gamviz.families import FamilyAdapter


# =============================================================================
# Residuals against statsmodels
# =============================================================================

class TestResidualsMatchStatsmodels:
    """Residual definitions agree with statsmodels at the fitted values."""

    @pytest.mark.parametrize("fit_name", ["gaussian_fit", "poisson_fit"])
    @pytest.mark.parametrize("type, attr", [
        ("deviance", "resid_deviance"),
        ("pearson", "resid_pearson"),
        ("working", "resid_working"),
        ("response", "resid_response"),
    ])
    def test_residual_type(self, request, fit_name, type, attr):
        res = request.getfixturevalue(fit_name)
        fam = FamilyAdapter.from_result(res)
        y = np.asarray(res.model.endog)
        mu = np.asarray(res.fittedvalues)
        np.testing.assert_allclose(fam.residuals(y, mu, type=type), np.asarray(getattr(res, attr)), rtol=1e-8, atol=1e-10)

    def test_auto_is_deviance(self, poisson_fit):
        fam = FamilyAdapter.from_result(poisson_fit)
        y = np.asarray(poisson_fit.model.endog)
        mu = np.asarray(poisson_fit.fittedvalues)
        np.testing.assert_allclose(fam.residuals(y, mu, "auto"), fam.residuals(y, mu, "deviance"))

    def test_scaled_pearson(self, gaussian_fit):
        fam = FamilyAdapter.from_result(gaussian_fit)
        y = np.asarray(gaussian_fit.model.endog)
        mu = np.asarray(gaussian_fit.fittedvalues)
        expected = np.asarray(gaussian_fit.resid_pearson) / np.sqrt(gaussian_fit.scale)
        np.testing.assert_allclose(fam.residuals(y, mu, "scaled.pearson"), expected, rtol=1e-8)

    def test_unknown_type_raises(self, gaussian_fit):
        fam = FamilyAdapter.from_result(gaussian_fit)
        with pytest.raises(ValidationError, match="Unknown residual type"):
            fam.residuals(np.zeros(3), np.zeros(3), type="studentized")

    def test_shape_mismatch_raises(self):
        fam = FamilyAdapter(sm.families.Gaussian())
        with pytest.raises(ValidationError, match="same shape"):
            fam.residuals(np.zeros(3), np.zeros(4), type="response")


# =============================================================================
# Simulation
# =============================================================================

class TestSimulation:
    """Draws have the fitted mean and dispersion."""

    def test_gaussian_moments(self):
        fam = FamilyAdapter(sm.families.Gaussian(), scale=4.0)
        mu = np.array([1.0, -2.0, 5.0])
        draws = fam.simulate(mu, 20_000, np.random.default_rng(0))
        assert draws.shape == (20_000, 3)
        np.testing.assert_allclose(draws.mean(axis=0), mu, atol=0.05)
        np.testing.assert_allclose(draws.std(axis=0), 2.0, rtol=0.03)

    def test_poisson_is_integer_valued(self):
        fam = FamilyAdapter(sm.families.Poisson())
        draws = fam.simulate(np.array([0.5, 3.0]), 5000, np.random.default_rng(1))
        assert np.all(draws == np.round(draws))
        np.testing.assert_allclose(draws.mean(axis=0), [0.5, 3.0], rtol=0.05)

    def test_binomial_returns_proportions(self):
        fam = FamilyAdapter(sm.families.Binomial(), var_weights=np.array([1.0, 4.0]))
        draws = fam.simulate(np.array([0.3, 0.5]), 4000, np.random.default_rng(2))
        assert np.all((draws >= 0) & (draws <= 1))
        assert set(np.unique(draws[:, 1] * 4)) <= {0.0, 1.0, 2.0, 3.0, 4.0}
        np.testing.assert_allclose(draws.mean(axis=0), [0.3, 0.5], atol=0.03)

    def test_gamma_mean_and_cv(self):
        fam = FamilyAdapter(sm.families.Gamma(), scale=0.25)
        draws = fam.simulate(np.array([2.0, 10.0]), 20_000, np.random.default_rng(3))
        np.testing.assert_allclose(draws.mean(axis=0), [2.0, 10.0], rtol=0.03)
        np.testing.assert_allclose(draws.std(axis=0) / draws.mean(axis=0), 0.5, rtol=0.05)

    def test_negative_binomial_variance(self):
        fam = FamilyAdapter(sm.families.NegativeBinomial(alpha=0.5))
        draws = fam.simulate(np.array([4.0]), 40_000, np.random.default_rng(4))
        assert draws.var() == pytest.approx(4.0 + 0.5 * 16.0, rel=0.05)

    def test_tweedie_has_zeros_and_right_mean(self):
        fam = FamilyAdapter(sm.families.Tweedie(var_power=1.5), scale=1.0)
        draws = fam.simulate(np.array([0.5, 3.0]), 20_000, np.random.default_rng(5))
        assert np.all(draws >= 0)
        assert np.mean(draws[:, 0] == 0) > 0.2
        np.testing.assert_allclose(draws.mean(axis=0), [0.5, 3.0], rtol=0.05)

    def test_tweedie_power_outside_range_raises(self):
        fam = FamilyAdapter(sm.families.Tweedie(var_power=2.5))
        with pytest.raises(SimulationError, match="1 < var_power < 2"):
            fam.simulate(np.array([1.0]), 10, np.random.default_rng(0))


# =============================================================================
# Distribution functions
# =============================================================================

class TestDistributionFunctions:
    """cdf, ppf and randomized PIT residuals."""

    def test_ppf_inverts_cdf_for_continuous(self):
        fam = FamilyAdapter(sm.families.InverseGaussian(), scale=0.5)
        mu = np.array([1.0, 2.0, 4.0])
        u = np.array([0.1, 0.5, 0.9])
        np.testing.assert_allclose(fam.cdf(fam.ppf(u, mu), mu), u, rtol=1e-6)

    def test_ppf_broadcasts_over_rows(self):
        fam = FamilyAdapter(sm.families.Gaussian(), scale=1.0)
        q = fam.ppf(np.array([[0.5, 0.5], [0.8, 0.8]]), np.array([0.0, 3.0]))
        assert q.shape == (2, 2)
        np.testing.assert_allclose(q[0], [0.0, 3.0])

    def test_tunif_residuals_are_uniform(self):
        fam = FamilyAdapter(sm.families.Poisson())
        rng = np.random.default_rng(6)
        mu = np.full(20_000, 2.0)
        y = rng.poisson(mu).astype(float)
        u = fam.residuals(y, mu, "tunif", rng=rng)
        assert np.all((u >= 0) & (u <= 1))
        assert u.mean() == pytest.approx(0.5, abs=0.01)
        assert u.var() == pytest.approx(1 / 12, abs=0.005)

    def test_tnormal_residuals_are_finite(self):
        fam = FamilyAdapter(sm.families.Poisson())
        y = np.array([0.0, 0.0, 50.0])
        r = fam.residuals(y, np.array([1e-6, 1.0, 1.0]), "tnormal", rng=np.random.default_rng(0))
        assert np.all(np.isfinite(r))

    def test_tweedie_has_no_ppf(self):
        fam = FamilyAdapter(sm.families.Tweedie(var_power=1.5))
        assert not fam.supports_ppf
        with pytest.raises(SimulationError, match="no closed-form"):
            fam.ppf(np.array([0.5]), np.array([1.0]))

    def test_discreteness(self):
        assert FamilyAdapter(sm.families.Poisson()).is_discrete
        assert FamilyAdapter(sm.families.NegativeBinomial()).is_discrete
        assert not FamilyAdapter(sm.families.Gamma()).is_discrete


class TestUnsupportedFamily:
    def test_unknown_family_raises(self):
        class Custom:
            pass

        with pytest.raises(SimulationError, match="not supported"):
            FamilyAdapter(Custom())


# =============================================================================
# Binomial trials
# =============================================================================

class TestBinomialTrials:
    """Two-column (successes, failures) responses carry their trials."""

    @pytest.fixture(scope="class")
    def counts_fit(self):
        rng = np.random.default_rng(3)
        n = 300
        x = rng.uniform(size=n)
        trials = rng.integers(5, 20, size=n)
        succ = rng.binomial(trials, 1 / (1 + np.exp(-2 * (x - 0.5))))
        endog = np.column_stack([succ, trials - succ])
        res = sm.GLM(endog, sm.add_constant(x), family=sm.families.Binomial()).fit()
        return res, trials

    def test_pearson_and_deviance_match_statsmodels(self, counts_fit):
        res, _ = counts_fit
        fam = FamilyAdapter.from_result(res)
        y = np.asarray(res.model.endog)
        mu = np.asarray(res.fittedvalues)
        np.testing.assert_allclose(fam.residuals(y, mu, "pearson"), res.resid_pearson, rtol=1e-8)
        np.testing.assert_allclose(fam.residuals(y, mu, "deviance"), res.resid_deviance, rtol=1e-8)

    def test_simulated_counts_use_trials(self, counts_fit):
        res, trials = counts_fit
        fam = FamilyAdapter.from_result(res)
        draws = fam.simulate(np.asarray(res.fittedvalues), 50, np.random.default_rng(0))
        counts = draws * trials
        np.testing.assert_allclose(counts, np.round(counts), atol=1e-8)
        assert np.all(counts <= trials + 1e-8)
        assert np.mean((draws > 0) & (draws < 1)) > 0.5

    def test_pit_is_not_rounded_to_zero_one(self, counts_fit):
        res, _ = counts_fit
        fam = FamilyAdapter.from_result(res)
        u = fam.residuals(res.model.endog, res.fittedvalues, "tunif", rng=np.random.default_rng(1))
        assert u.mean() == pytest.approx(0.5, abs=0.05)

    def test_float_weights_simulate(self):
        fam = FamilyAdapter(sm.families.Binomial(), var_weights=np.array([3.0, 7.0]))
        draws = fam.simulate(np.array([0.2, 0.9]), 10, np.random.default_rng(4))
        assert draws.shape == (10, 2)
