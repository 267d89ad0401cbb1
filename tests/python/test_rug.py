"""
Tests for l_rug dispatch across plot kinds.
"""

import numpy as np
import polars as pl
import pytest

from gamviz import check0d, check1d, check2d, get_viz, pterm, sm
from gamviz.layers import l_rug
from gamviz.plots.base import GamPlot, Jitter


class TestRugDispatch:
    """Which covariate ends up on which axis, and with what jitter."""

    def test_smooth_rug_is_bottom_only(self, gaussian_fit):
        q = sm(get_viz(gaussian_fit), 0).plot(maxpo=50) + l_rug()
        (geom,) = q.geoms
        assert geom.kind == "rug"
        assert geom.mapping == {"x": "x"}
        assert geom.params["sides"] == "b"
        assert geom.position is None
        assert geom.data.height == 50

    def test_factor_rug_is_jittered(self, gaussian_fit):
        q = pterm(get_viz(gaussian_fit), 0).plot() + l_rug()
        assert q.geoms[0].position == Jitter(width=0.25)

    def test_logical_rug_has_wider_jitter(self, gaussian_fit):
        q = check1d(get_viz(gaussian_fit), "flag") + l_rug()
        assert q.kind == "Check1DLogical"
        assert q.geoms[0].position.width == 0.45

    def test_user_position_wins(self, gaussian_fit):
        q = check1d(get_viz(gaussian_fit), "fac") + l_rug(position=Jitter(width=0.1))
        assert q.geoms[0].position.width == 0.1

    def test_numeric_pair_uses_both_sides(self, gaussian_fit):
        q = check2d(get_viz(gaussian_fit), "x0", "x1") + l_rug()
        geom = q.geoms[0]
        assert geom.mapping == {"x": "x", "y": "y"}
        assert geom.params["sides"] == "bl"

    def test_factor_factor_jitters_both_ways(self, gaussian_fit):
        q = check2d(get_viz(gaussian_fit), "fac", "flag") + l_rug()
        assert q.geoms[0].position == Jitter(width=0.25, height=0.25)
        assert q.geoms[0].params["sides"] == "b"

    def test_scalar_check_uses_simulated_statistics(self, gaussian_fit):
        q = check0d(get_viz(gaussian_fit, nsim=12, seed=0)) + l_rug()
        assert q.geoms[0].data.height == 12

    def test_scalar_check_without_simulations_warns(self, gaussian_fit):
        with pytest.warns(UserWarning, match="nothing to plot"):
            q = check0d(get_viz(gaussian_fit)) + l_rug()
        assert q.geoms == []

    def test_user_kwargs_reach_matplotlib(self, gaussian_fit):
        q = sm(get_viz(gaussian_fit), 0).plot() + l_rug(alpha=0.3, linewidth=2)
        assert q.geoms[0].params["alpha"] == 0.3
        assert q.geoms[0].params["linewidth"] == 2

    def test_unknown_kind_warns(self):
        p = GamPlot("Smooth2D", {"res": pl.DataFrame({"x": [1.0], "y": [1.0]})})
        with pytest.warns(UserWarning, match="no method"):
            p + l_rug()


class TestRugRender:
    """Ticks are drawn in axes coordinates."""

    def test_draws_line_collections(self, gaussian_fit):
        q = sm(get_viz(gaussian_fit), 0).plot(maxpo=30) + l_rug()
        ax = q.draw()
        assert len(ax.collections) == 1
        segments = ax.collections[0].get_segments()
        assert len(segments) == 30
        assert np.allclose([s[0][1] for s in segments], 0.0)
