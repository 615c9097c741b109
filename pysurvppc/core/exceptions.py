"""
Exception hierarchy for pysurvppc.

All exceptions inherit from PySurvPPCError to allow catching any
library-specific error. Validation problems (bad configuration, bad
arrays) and numerical problems (a draw whose Weibull scale cannot be
represented) live on separate branches so callers can treat them
differently: configuration errors abort a request, numerical errors on
a single posterior draw are isolated by the replicate aggregator.

Design principles:
    - Exceptions carry diagnostic information as attributes
    - Error messages are actionable with actual vs expected values
    - Never catch and re-raise with less information
"""

from typing import Any


class PySurvPPCError(Exception):
    """Base exception for all pysurvppc errors."""
    pass


class ValidationError(PySurvPPCError):
    """
    Input validation failed.

    Raised when user-provided inputs fail validation checks.
    """
    pass


class ConfigurationError(ValidationError):
    """
    A request is misconfigured and cannot be run at all.

    Raised before any simulation starts: non-positive Weibull shape,
    negative sample sizes, a confidence level outside (0, 1), an empty
    draw sequence, or an unknown censoring policy / backend.

    Attributes:
        parameter: Name of the offending option, if known
        value: The rejected value, if known
    """

    def __init__(
        self,
        message: str,
        parameter: str | None = None,
        value: Any = None,
    ):
        super().__init__(message)
        self.parameter = parameter
        self.value = value


class DimensionError(ValidationError):
    """
    Array dimensions are incorrect or inconsistent.

    Raised when time and event arrays have different lengths or are not
    one-dimensional.
    """
    pass


class NumericalError(PySurvPPCError):
    """
    Numerical computation failed.

    Base class for errors arising from numerical issues during computation.
    """
    pass


class NumericRangeError(NumericalError):
    """
    A derived quantity over- or underflowed to a non-representable value.

    Raised when the Weibull scale exp(-location / shape) is not finite or
    collapses to zero for a particular posterior draw. Recovered locally
    by the replicate aggregator: the draw is dropped, not the batch.

    Attributes:
        shape: Weibull shape of the offending draw
        location: Linear-predictor location of the offending draw
        draw_index: Position of the draw in the request, if known
    """

    def __init__(
        self,
        message: str,
        shape: float | None = None,
        location: float | None = None,
        draw_index: int | None = None,
    ):
        super().__init__(message)
        self.shape = shape
        self.location = location
        self.draw_index = draw_index


class ConvergenceError(PySurvPPCError):
    """
    Iterative algorithm failed to converge.

    Raised when the posterior-mode search of the reference inference
    engine ends at a point whose Hessian is not negative definite.

    Attributes:
        iterations: Number of iterations completed
        reason: Why convergence failed
    """

    def __init__(
        self,
        message: str,
        iterations: int,
        reason: str | None = None,
    ):
        super().__init__(message)
        self.iterations = iterations
        self.reason = reason
