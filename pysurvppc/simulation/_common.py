"""
Posterior draw record and the Weibull scale derived from it.

The survival model is Weibull with shape α and linear-predictor location
μ; sampling uses the scale σ = exp(-μ / α), so that (t / σ)^α = t^α e^μ.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from pysurvppc.core.exceptions import NumericRangeError
from pysurvppc.core.validation import check_positive, check_real


@dataclass(frozen=True)
class ParameterDraw:
    """One posterior draw of the Weibull survival model.

    Attributes:
        shape: Weibull shape α, must be > 0.
        location: Linear-predictor location μ.
    """
    shape: float
    location: float

    @classmethod
    def validated(cls, shape, location) -> ParameterDraw:
        """Build a draw, raising ConfigurationError on bad values."""
        return cls(
            shape=check_positive(shape, "shape"),
            location=check_real(location, "location"),
        )

    @property
    def scale(self) -> float:
        return weibull_scale(self.shape, self.location)


def weibull_scale(shape: float, location: float) -> float:
    """σ = exp(-location / shape).

    Raises:
        NumericRangeError: If σ overflows to inf or underflows to 0.
    """
    with np.errstate(over='ignore', under='ignore', divide='ignore',
                     invalid='ignore'):
        sigma = float(np.exp(-np.float64(location) / np.float64(shape)))
    if not np.isfinite(sigma) or sigma <= 0.0:
        raise NumericRangeError(
            f"Weibull scale exp(-location/shape) is not representable "
            f"for shape={shape}, location={location} (got {sigma})",
            shape=shape,
            location=location,
        )
    return sigma
