"""
Shared fixtures: statsmodels GLMGam fits on synthetic data.
"""

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import pytest
import statsmodels.api as sm
from statsmodels.gam.api import BSplines, GLMGam


def _make_gam_data(n=400, seed=42):
    """Two smooth covariates, a factor, a logical and a linear covariate."""
    rng = np.random.default_rng(seed)
    x0 = rng.uniform(0, 1, n)
    x1 = rng.uniform(0, 1, n)
    fac = rng.choice(["A", "B", "C"], n)
    flag = rng.uniform(size=n) < 0.4
    z = rng.normal(size=n)
    eta = (
        np.sin(2 * np.pi * x0)
        + 0.5 * x1 ** 2
        + np.select([fac == "B", fac == "C"], [0.4, -0.3], 0.0)
        + 0.3 * flag
        + 0.2 * z
    )
    return pd.DataFrame({"x0": x0, "x1": x1, "fac": fac, "flag": flag, "z": z}), eta


def _fit(df, family):
    bs = BSplines(df[["x0", "x1"]], df=[8, 8], degree=[3, 3])
    model = GLMGam.from_formula(
        "y ~ fac + flag + z", data=df, smoother=bs, alpha=[1.0, 1.0], family=family,
    )
    return model.fit()


@pytest.fixture(scope="session")
def gaussian_fit():
    df, eta = _make_gam_data()
    rng = np.random.default_rng(1)
    df["y"] = eta + rng.normal(scale=0.5, size=len(df))
    return _fit(df, sm.families.Gaussian())


@pytest.fixture(scope="session")
def poisson_fit():
    df, eta = _make_gam_data(seed=7)
    rng = np.random.default_rng(2)
    df["y"] = rng.poisson(np.exp(eta))
    return _fit(df, sm.families.Poisson())


@pytest.fixture(scope="session")
def binomial_fit():
    df, eta = _make_gam_data(seed=11)
    rng = np.random.default_rng(3)
    df["y"] = (rng.uniform(size=len(df)) < 1 / (1 + np.exp(-eta))).astype(float)
    return _fit(df, sm.families.Binomial())


@pytest.fixture(scope="session")
def plain_glm_fit():
    df, eta = _make_gam_data(n=100)
    df["y"] = eta
    return sm.GLM.from_formula("y ~ z", data=df, family=sm.families.Gaussian()).fit()


@pytest.fixture(autouse=True)
def _close_figures():
    yield
    plt.close("all")
