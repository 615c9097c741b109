"""
Input validation utilities for pysurvppc.

These validators follow the "fail fast, fail loud" principle. They raise
immediately with clear error messages rather than silently correcting
or making assumptions about user intent.

Design principles:
    - No silent type coercion (except np.asarray on array-likes)
    - No default handling of edge cases
    - Clear, actionable error messages with actual values
    - Each function validates ONE thing
    - Parameter names included in all error messages

Array checks raise ValidationError / DimensionError. Scalar option
checks raise ConfigurationError, the fatal pre-flight error of a
posterior-predictive request.
"""

import math
import numbers

import numpy as np
from numpy.typing import ArrayLike, NDArray
from typing import Any

from pysurvppc.core.exceptions import (
    ConfigurationError,
    DimensionError,
    ValidationError,
)


def check_array(
    array: ArrayLike,
    name: str,
) -> NDArray[np.floating[Any]]:
    """
    Validate and convert input to numpy array.

    Accepts any array-like and converts to numpy array. Rejects inputs
    that result in object dtype (indicating mixed types or non-numeric data).

    Args:
        array: Input to validate
        name: Parameter name for error messages

    Returns:
        numpy.ndarray with floating dtype

    Raises:
        ValidationError: If input cannot be converted to numeric array
    """
    try:
        result = np.asarray(array)
    except (ValueError, TypeError) as e:
        raise ValidationError(f"{name}: cannot convert to array: {e}") from e

    if result.dtype == object:
        raise ValidationError(
            f"{name}: converted to object dtype, indicating mixed types or non-numeric data"
        )

    # Booleans are accepted for event indicators
    if result.dtype == np.bool_:
        result = result.astype(np.float64)

    if not np.issubdtype(result.dtype, np.number):
        raise ValidationError(
            f"{name}: non-numeric dtype {result.dtype}, expected numeric data"
        )

    if not np.issubdtype(result.dtype, np.floating):
        result = result.astype(np.float64)

    return result


def check_finite(array: NDArray[np.floating[Any]], name: str) -> None:
    """
    Verify array contains no NaN or Inf values.

    Raises:
        ValidationError: If array contains non-finite values
    """
    if not np.all(np.isfinite(array)):
        n_nan = int(np.sum(np.isnan(array)))
        n_inf = int(np.sum(np.isinf(array)))
        raise ValidationError(
            f"{name}: contains non-finite values ({n_nan} NaN, {n_inf} Inf)"
        )


def check_1d(array: NDArray[np.floating[Any]], name: str) -> None:
    """
    Verify array is 1-dimensional.

    Raises:
        DimensionError: If array is not 1D
    """
    if array.ndim != 1:
        raise DimensionError(
            f"{name}: expected 1D array, got {array.ndim}D with shape {array.shape}"
        )


def check_consistent_length(
    *arrays: NDArray[np.floating[Any]],
    names: tuple[str, ...]
) -> None:
    """
    Verify all arrays have the same length (first dimension).

    Raises:
        ValueError: If number of names doesn't match number of arrays
        DimensionError: If arrays have inconsistent lengths
    """
    if len(arrays) != len(names):
        raise ValueError(
            f"Number of arrays ({len(arrays)}) must match number of names ({len(names)})"
        )

    if len(arrays) < 2:
        return

    lengths = [arr.shape[0] for arr in arrays]
    if len(set(lengths)) > 1:
        details = ", ".join(f"{name}={length}" for name, length in zip(names, lengths))
        raise DimensionError(f"Inconsistent lengths: {details}")


def check_positive(value: Any, name: str) -> float:
    """
    Verify a scalar is a finite real strictly greater than zero.

    Returns:
        The value as a Python float

    Raises:
        ConfigurationError: If value is not a finite positive real
    """
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise ConfigurationError(
            f"{name} must be a real number, got {type(value).__name__}",
            parameter=name, value=value,
        )
    value = float(value)
    if not math.isfinite(value) or value <= 0:
        raise ConfigurationError(
            f"{name} must be finite and > 0, got {value}",
            parameter=name, value=value,
        )
    return value


def check_real(value: Any, name: str) -> float:
    """
    Verify a scalar is a finite real number.

    Raises:
        ConfigurationError: If value is not finite and real
    """
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise ConfigurationError(
            f"{name} must be a real number, got {type(value).__name__}",
            parameter=name, value=value,
        )
    value = float(value)
    if not math.isfinite(value):
        raise ConfigurationError(
            f"{name} must be finite, got {value}",
            parameter=name, value=value,
        )
    return value


def check_nonnegative_int(value: Any, name: str) -> int:
    """
    Verify a scalar is an integer >= 0.

    Raises:
        ConfigurationError: If value is not a nonnegative integer
    """
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise ConfigurationError(
            f"{name} must be an integer, got {type(value).__name__}",
            parameter=name, value=value,
        )
    if value < 0:
        raise ConfigurationError(
            f"{name} must be >= 0, got {value}",
            parameter=name, value=value,
        )
    return int(value)


def check_open_unit_interval(value: Any, name: str) -> float:
    """
    Verify a scalar lies strictly inside (0, 1).

    Raises:
        ConfigurationError: If value is not in (0, 1)
    """
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise ConfigurationError(
            f"{name} must be a real number, got {type(value).__name__}",
            parameter=name, value=value,
        )
    value = float(value)
    if not (0.0 < value < 1.0):
        raise ConfigurationError(
            f"{name} must be in (0, 1), got {value}",
            parameter=name, value=value,
        )
    return value
