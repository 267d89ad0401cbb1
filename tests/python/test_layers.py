"""
Tests for the effect and point layers.
"""

import warnings

import numpy as np
import pytest
from scipy import stats

from gamviz import check0d, get_viz, labs, pterm, sm
from gamviz.layers import (
    l_ci_bar,
    l_ci_line,
    l_ci_poly,
    l_fit_line,
    l_fit_points,
    l_hist,
    l_points,
    l_vline,
)


@pytest.fixture
def smooth_plot(gaussian_fit):
    return sm(get_viz(gaussian_fit, seed=0), 0).plot(n=30)


class TestFitLayers:
    """Effect curves and intervals."""

    def test_fit_line_is_fit(self, smooth_plot):
        q = smooth_plot + l_fit_line()
        geom = q.geoms[0]
        np.testing.assert_allclose(geom.data.get_column("ty").to_numpy(), smooth_plot.data["fit"].get_column("y").to_numpy())

    def test_ci_line_bounds(self, smooth_plot):
        q = smooth_plot + l_ci_line(level=0.9)
        lower, upper = q.geoms
        fit = smooth_plot.data["fit"]
        z = stats.norm.ppf(0.95)
        expected = fit.get_column("y").to_numpy() - z * fit.get_column("se").to_numpy()
        np.testing.assert_allclose(lower.data.get_column("ll").to_numpy(), expected)
        assert lower.mapping["y"] == "ll" and upper.mapping["y"] == "ul"
        assert lower.params["linestyle"] == "--"

    def test_ci_level_defaults_to_plot_level(self, gaussian_fit):
        p = sm(get_viz(gaussian_fit), 0).plot(level=0.5)
        lower = (p + l_ci_line()).geoms[0]
        fit = p.data["fit"]
        z = stats.norm.ppf(0.75)
        np.testing.assert_allclose(
            lower.data.get_column("ll").to_numpy(),
            fit.get_column("y").to_numpy() - z * fit.get_column("se").to_numpy(),
        )

    def test_trans_is_applied(self, gaussian_fit):
        p = sm(get_viz(gaussian_fit), 0).plot(trans=np.exp)
        q = p + l_fit_line() + l_ci_poly()
        np.testing.assert_allclose(q.geoms[0].data.get_column("ty").to_numpy(), np.exp(p.data["fit"].get_column("y").to_numpy()))
        assert q.geoms[1].kind == "ribbon"
        assert np.all(q.geoms[1].data.get_column("ll").to_numpy() > 0)

    def test_factor_layers(self, gaussian_fit):
        p = pterm(get_viz(gaussian_fit), 0).plot()
        q = p + l_fit_points() + l_ci_bar()
        assert [g.kind for g in q.geoms] == ["point", "errorbar"]
        ax = q.draw()
        assert [t.get_text() for t in ax.get_xticklabels()] == ["A", "B", "C"]

    def test_fit_line_not_for_factors(self, gaussian_fit):
        p = pterm(get_viz(gaussian_fit), 0).plot()
        with pytest.warns(UserWarning, match="l_fit_line"):
            p + l_fit_line()


class TestPointLayers:
    """Residual points, histogram and observed line."""

    def test_points_use_subsample(self, gaussian_fit):
        p = sm(get_viz(gaussian_fit, seed=1), 1).plot(maxpo=25)
        geom = (p + l_points()).geoms[0]
        assert geom.data.height == 25
        assert geom.na_rm

    def test_factor_points_are_jittered(self, gaussian_fit):
        geom = (pterm(get_viz(gaussian_fit), 0).plot() + l_points()).geoms[0]
        assert geom.position.width == 0.25

    def test_hist_and_vline(self, gaussian_fit):
        p = check0d(get_viz(gaussian_fit, nsim=20, seed=0), trans=np.std)
        q = p + l_hist() + l_vline()
        assert [g.kind for g in q.geoms] == ["hist", "vline"]
        assert q.geoms[0].data.height == 20
        ax = q.draw()
        assert len(ax.patches) > 0

    def test_hist_without_simulations_warns(self, gaussian_fit):
        p = check0d(get_viz(gaussian_fit))
        with pytest.warns(UserWarning, match="simulations"):
            q = p + l_hist()
        assert q.geoms == []


class TestDrawing:
    """Default layers and labels."""

    def test_default_layers(self, smooth_plot):
        ax = smooth_plot.draw()
        # fit line plus two interval lines
        assert len(ax.lines) == 3

    def test_labels(self, smooth_plot):
        ax = (smooth_plot + l_fit_line() + labs(title="effect", y="f")).draw()
        assert ax.get_title() == "effect"
        assert ax.get_ylabel() == "f"
        assert ax.get_xlabel() == "x0"

    def test_adding_returns_new_plot(self, smooth_plot):
        q = smooth_plot + l_fit_line()
        assert smooth_plot.geoms == []
        assert len(q.geoms) == 1

    def test_added_layer_without_geoms_suppresses_defaults(self, gaussian_fit):
        p = check0d(get_viz(gaussian_fit))
        with pytest.warns(UserWarning, match="simulations"):
            q = p + l_hist()
        assert q.layers == ["l_hist"]
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            ax = q.draw()
        assert len(ax.patches) == 0
        assert len(ax.lines) == 0

    def test_ignored_layer_keeps_defaults(self, smooth_plot):
        with pytest.warns(UserWarning, match="no method"):
            q = smooth_plot + l_fit_points()
        assert q.layers == []
        assert len(q.draw().lines) == 3
