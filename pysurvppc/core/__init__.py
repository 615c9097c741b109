"""
Core infrastructure for pysurvppc.

This module provides shared abstractions and utilities used by all
domain-specific submodules (simulation, survival, ppc, inference).

Key components:
    result: Generic Result[P] envelope
    exceptions: Exception hierarchy
    validation: Input validators
    compute: Timing
"""

from pysurvppc.core.result import Result
from pysurvppc.core.exceptions import (
    PySurvPPCError,
    ValidationError,
    ConfigurationError,
    DimensionError,
    NumericalError,
    NumericRangeError,
    ConvergenceError,
)

__all__ = [
    # Result
    "Result",
    # Exceptions
    "PySurvPPCError",
    "ValidationError",
    "ConfigurationError",
    "DimensionError",
    "NumericalError",
    "NumericRangeError",
    "ConvergenceError",
]
