"""
Custom exceptions for gamviz with actionable error messages.

This module provides a hierarchy of exceptions that give users clear
guidance on how to resolve issues.
"""

__all__ = [
    "GamVizError",
    "ValidationError",
    "ModelStructureError",
    "SimulationError",
    "wrap_model_error",
]


class GamVizError(Exception):
    """Base exception for all gamviz errors."""
    pass


class ValidationError(GamVizError):
    """
    Input validation error.

    Common causes:
    - Unknown residual type or standardization code
    - Term index out of range
    - Confidence level outside [0, 1)
    - Covariate not found in the model data
    """
    pass


class ModelStructureError(GamVizError):
    """
    The fitted object cannot be read as a GAM.

    Common causes:
    - Passing a plain GLM result instead of a GLMGam result
    - A parametric term whose variables are not in the model data
    - A model fitted without a formula, so term structure is unknown
    """
    pass


class SimulationError(GamVizError):
    """
    Responses cannot be simulated from the fitted family.

    Common causes:
    - Family has no supported sampling distribution
    - Family has no quantile function (e.g. Tweedie) but one was required
    """
    pass


def wrap_model_error(original_error: Exception, context: str = "") -> ModelStructureError:
    """
    Wrap a low-level error raised while reading model state.

    Parameters
    ----------
    original_error : Exception
        The original exception
    context : str
        Additional context about what was being read

    Returns
    -------
    ModelStructureError
        Wrapped exception with actionable message
    """
    if isinstance(original_error, AttributeError):
        return ModelStructureError(
            f"Fitted object is missing expected GAM state. "
            f"Make sure it is the result of GLMGam(...).fit().\n"
            f"{context}\n"
            f"Original error: {original_error}"
        )

    if isinstance(original_error, (KeyError, IndexError)):
        return ModelStructureError(
            f"Could not map a model term to its data. "
            f"Check that the data frame used for fitting still holds every covariate.\n"
            f"{context}\n"
            f"Original error: {original_error}"
        )

    return ModelStructureError(
        f"Reading model state failed. {context}\n"
        f"Original error: {original_error}"
    )
