"""
Tests for residual checks check0d / check1d / check2d.
"""

import numpy as np
import pandas as pd
import polars as pl
import pytest

from gamviz import check0d, check1d, check2d, get_viz
from gamviz.exceptions import ValidationError
from gamviz.utils import covariate_kind, factor_levels, is_missing


class TestCheck0D:
    """Scalar statistics."""

    def test_observed_and_simulated(self, poisson_fit):
        v = get_viz(poisson_fit, nsim=9, seed=0)
        p = check0d(v, trans=np.mean, type="pearson")
        assert p.kind == "Check0DScalarNumeric"
        assert p.data["res"].get_column("x")[0] == pytest.approx(np.mean(v.residuals("pearson")))
        assert p.data["sim"].shape == (9,)

    def test_without_simulations(self, gaussian_fit):
        p = check0d(get_viz(gaussian_fit))
        assert p.data["sim"] is None

    def test_non_scalar_trans_raises(self, gaussian_fit):
        with pytest.raises(ValidationError, match="scalar"):
            check0d(get_viz(gaussian_fit), trans=np.sort)

    def test_accepts_raw_result(self, gaussian_fit):
        assert check0d(gaussian_fit).kind == "Check0DScalarNumeric"


class TestCheck1D:
    """Residuals against one covariate."""

    @pytest.mark.parametrize("name, kind", [
        ("x0", "Check1DNumeric"),
        ("z", "Check1DNumeric"),
        ("fac", "Check1DFactor"),
        ("flag", "Check1DLogical"),
    ])
    def test_kind_from_covariate(self, gaussian_fit, name, kind):
        p = check1d(get_viz(gaussian_fit), name)
        assert p.kind == kind
        assert p.labels.x == name

    def test_factor_levels(self, gaussian_fit):
        p = check1d(get_viz(gaussian_fit), "fac")
        assert p.x_levels == ["A", "B", "C"]
        assert set(p.data["res"].get_column("x").unique().to_list()) == {"A", "B", "C"}

    def test_simulated_residuals_align(self, poisson_fit):
        v = get_viz(poisson_fit, nsim=3, seed=0)
        p = check1d(v, "x1", type="deviance")
        assert p.data["sim"].shape == (3, v.n_obs)
        np.testing.assert_allclose(p.data["res"].get_column("y").to_numpy(), v.residuals("deviance"))

    def test_array_covariate_and_missing_values(self, gaussian_fit):
        v = get_viz(gaussian_fit, nsim=2, seed=0)
        x = np.linspace(0, 1, v.n_obs)
        x[:10] = np.nan
        p = check1d(v, x)
        assert p.data["res"].height == v.n_obs - 10
        assert p.data["sim"].shape == (2, v.n_obs - 10)
        kept = check1d(v, x, na_rm=False)
        assert kept.data["res"].height == v.n_obs

    def test_trans_applied_to_observed_and_simulated(self, gaussian_fit):
        v = get_viz(gaussian_fit, nsim=2, seed=0)
        p = check1d(v, "x0", type="response", trans=np.abs)
        assert (p.data["res"].get_column("y").to_numpy() >= 0).all()
        assert (p.data["sim"] >= 0).all()

    def test_wrong_length_raises(self, gaussian_fit):
        with pytest.raises(ValidationError, match="length"):
            check1d(get_viz(gaussian_fit), np.arange(5))

    def test_unknown_covariate_raises(self, gaussian_fit):
        with pytest.raises(ValidationError, match="not found"):
            check1d(get_viz(gaussian_fit), "w")


class TestCovariateKinds:
    """Covariates given as pandas or polars series."""

    def test_polars_numeric_is_numeric(self):
        assert covariate_kind(pl.Series("z", [1.0, 2.0, 3.0])) == "numeric"
        assert covariate_kind(pl.Series("k", [1, 2, 3])) == "numeric"

    def test_polars_strings_and_booleans(self):
        assert covariate_kind(pl.Series("s", ["a", "b", None])) == "factor"
        assert covariate_kind(pl.Series("b", [True, False])) == "logical"

    def test_polars_categorical_and_enum_keep_their_order(self):
        enum = pl.Series("e", ["lo", "hi", "lo"], dtype=pl.Enum(["lo", "mid", "hi"]))
        assert covariate_kind(enum) == "factor"
        assert factor_levels(enum) == ["lo", "mid", "hi"]
        cat = pl.Series("c", ["b", "a"], dtype=pl.Categorical)
        assert covariate_kind(cat) == "factor"
        assert sorted(factor_levels(cat)) == ["a", "b"]

    def test_pandas_categorical(self):
        s = pd.Series(pd.Categorical(["y", "x"], categories=["y", "x"]))
        assert covariate_kind(s) == "factor"
        assert factor_levels(s) == ["y", "x"]
        assert covariate_kind(pd.Series([0.5, 1.5])) == "numeric"

    def test_polars_nulls_are_missing(self):
        assert is_missing(pl.Series("z", [1.0, None])).tolist() == [False, True]

    def test_check1d_with_polars_vectors(self, gaussian_fit):
        v = get_viz(gaussian_fit)
        z = pl.Series("z", np.asarray(v.covariate("z"), dtype=float))
        p = check1d(v, z)
        assert p.kind == "Check1DNumeric"
        assert p.labels.x == "z"
        fac = pl.Series("fac", np.asarray(v.covariate("fac"), dtype=object).tolist(), dtype=pl.Categorical)
        q = check2d(v, z, fac)
        assert q.kind == "Check2DFactorNumeric"
        assert sorted(q.x_levels) == ["A", "B", "C"]


class TestCheck2D:
    """Residuals over two covariates."""

    def test_numeric_numeric(self, gaussian_fit):
        p = check2d(get_viz(gaussian_fit), "x0", "x1")
        assert p.kind == "Check2DNumericNumeric"
        assert p.data["res"].columns == ["x", "y", "z", "sub"]

    def test_factor_moved_to_x(self, gaussian_fit):
        p = check2d(get_viz(gaussian_fit), "z", "fac")
        assert p.kind == "Check2DFactorNumeric"
        assert p.labels.x == "fac" and p.labels.y == "z"
        assert p.x_levels == ["A", "B", "C"]
        assert p.y_levels is None

    def test_factor_factor(self, gaussian_fit):
        p = check2d(get_viz(gaussian_fit), "fac", "flag")
        assert p.kind == "Check2DFactorFactor"
        assert p.y_levels == ["False", "True"]

    def test_default_draw(self, gaussian_fit):
        ax = check2d(get_viz(gaussian_fit, nsim=3, seed=0), "x0", "x1").draw()
        assert len(ax.collections) >= 1
