"""
Visual diagnostics of a Poisson GAM fitted with statsmodels.
"""

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from statsmodels.gam.api import BSplines, GLMGam
import statsmodels.api as sm

import gamviz as gv

rng = np.random.default_rng(42)
n = 2000

data = pd.DataFrame({
    "age": rng.uniform(18, 80, n),
    "power": rng.uniform(0, 1, n),
    "region": rng.choice(["north", "south", "east"], n),
    "urban": rng.random(n) < 0.4,
})
eta = (
    -1.0
    + 0.6 * np.sin(data["age"] / 10)
    + 0.8 * data["power"] ** 2
    + data["region"].map({"north": 0.0, "south": 0.3, "east": -0.2})
    + 0.25 * data["urban"]
)
data["claims"] = rng.poisson(np.exp(eta))

splines = BSplines(data[["age", "power"]], df=[10, 8], degree=[3, 3])
result = GLMGam.from_formula(
    "claims ~ region + urban", data=data, smoother=splines,
    alpha=[1.0, 1.0], family=sm.families.Poisson(),
).fit()

# Keep 50 simulated responses for the residual checks
v = gv.get_viz(result, nsim=50, seed=1)

# Every term, two per row
effects = gv.plot(v, all_terms=True)
effects = effects + gv.l_rug()
effects.draw(pages=1, ncols=2)

# Smooth of age with partial residuals
p = gv.sm(v, 0).plot() + gv.l_points() + gv.l_fit_line() + gv.l_ci_poly()
p = p + gv.labs(title="s(age)")
p.draw()

# Residual checks
(gv.check1d(v, "age") + gv.l_grid_check_1d(level=0.8)).draw()
(gv.check1d(v, "region") + gv.l_points() + gv.l_grid_check_1d()).draw()
(gv.check2d(v, "age", "power") + gv.l_grid_check_2d(stand="sc")).draw()
(gv.check0d(v, trans=np.var) + gv.l_hist() + gv.l_vline()).draw()

# QQ plot with randomized quantile residuals, then a worm view of its centre
q = gv.qq(v, rep=20, show_reps=True)
q.draw()
gv.zoom(q, xlim=(-1.0, 1.0), worm=True)

plt.show()
