"""
Extraction of smooth and parametric effects from a GamViz.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Union

import numpy as np

from gamviz.effects.types import ParametricEffect, SmoothEffect
from gamviz.exceptions import wrap_model_error
from gamviz.utils import covariate_kind, factor_levels
from gamviz.validation import validate_select


__all__ = ["smooth_effects", "parametric_effects", "sm", "pterm", "extract_effects"]


def smooth_effects(viz) -> List[SmoothEffect]:
    """All smooths of the model, in smoother order."""
    out = []
    try:
        smoother = viz.smoother
        for i, s in enumerate(smoother.smoothers):
            idx = viz.k_linear + np.nonzero(np.asarray(smoother.mask[i]))[0]
            out.append(SmoothEffect(
                viz=viz,
                index=i,
                variable=str(s.variable_name),
                coef_idx=idx,
                x=np.asarray(s.x, dtype=np.float64),
            ))
    except (AttributeError, IndexError) as e:
        raise wrap_model_error(e, "Reading the smooth terms of the model.") from e
    return out


def _classify_term(term, frame):
    """Kind and levels of one linear term, judged from the fitting data."""
    if len(term.variables) != 1 or frame is None or term.variables[0] not in frame.columns:
        return "other", term.categories
    values = frame[term.variables[0]]
    kind = covariate_kind(values)
    if kind == "numeric":
        width = term.columns.stop - term.columns.start
        if width == 1 and term.categories is None:
            return "numeric", None
        return "other", None
    levels = term.categories if term.categories is not None else factor_levels(values)
    return kind, levels


def parametric_effects(viz) -> List[ParametricEffect]:
    """
    All non-intercept terms of the linear part, in formula order.

    Models built from arrays rather than a formula carry no term
    structure and have no parametric effects.
    """
    frame = viz.frame
    out = []
    for term in viz.linear_terms():
        kind, levels = _classify_term(term, frame)
        out.append(ParametricEffect(
            viz=viz,
            name=term.name,
            coef_idx=np.arange(term.columns.start, term.columns.stop),
            variables=list(term.variables),
            kind=kind,
            levels=levels,
        ))
    return out


def sm(viz, select: int) -> SmoothEffect:
    """
    One smooth effect by 0-based index.

    Raises
    ------
    ValidationError
        If the index is out of range.
    """
    effects = smooth_effects(viz)
    (idx,) = validate_select([select], len(effects), what="smooth")
    return effects[idx]


def pterm(viz, select: int) -> ParametricEffect:
    """One parametric effect by 0-based index among the non-intercept terms."""
    effects = parametric_effects(viz)
    (idx,) = validate_select([select], len(effects), what="parametric term")
    return effects[idx]


def extract_effects(
    viz,
    select: Optional[Union[int, Sequence[int]]] = None,
    all_terms: bool = False,
) -> list:
    """
    Smooth effects followed by parametric effects.

    Parameters
    ----------
    viz : GamViz
        The model.
    select : int or sequence of int, optional
        0-based indices into the concatenated list (smooths first).
        None keeps every smooth, plus every parametric term when
        ``all_terms`` is set.
    all_terms : bool
        Include parametric terms when ``select`` is None.

    Returns
    -------
    list of SmoothEffect and ParametricEffect
    """
    smooths = smooth_effects(viz)
    params = parametric_effects(viz)
    if select is None:
        return smooths + params if all_terms else smooths

    combined = smooths + params
    return [combined[i] for i in validate_select(select, len(combined), what="effect")]
