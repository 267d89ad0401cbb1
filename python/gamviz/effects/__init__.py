"""
Smooth and parametric effects of a fitted GAM.

Use ``sm`` / ``pterm`` to pick one effect, or ``extract_effects`` to
collect several, then call ``.plot()`` on an effect to get its plot data.
"""

from gamviz.effects.types import (
    ParametricEffect,
    SmoothEffect,
    PARAMETRIC_KINDS,
)
from gamviz.effects.extract import (
    extract_effects,
    parametric_effects,
    pterm,
    sm,
    smooth_effects,
)

__all__ = [
    "SmoothEffect",
    "ParametricEffect",
    "PARAMETRIC_KINDS",
    "sm",
    "pterm",
    "extract_effects",
    "smooth_effects",
    "parametric_effects",
]
