"""
Public API for dataset simulation.

    simulate(shape, location, censoring_policy=..., ...) → SurvivalDesign
    event_probability(shape, location, censor_rate) → float
"""

from __future__ import annotations

import numpy as np
from scipy import integrate

from pysurvppc.core.exceptions import NumericalError
from pysurvppc.core.validation import check_positive, check_real
from pysurvppc.simulation._common import weibull_scale
from pysurvppc.simulation.policies import (
    CensoringPolicy,
    DEFAULT_CENSOR_RATE,
    DEPENDENT_FRACTION,
    get_policy,
)
from pysurvppc.survival.design import SurvivalDesign


def simulate(
    shape: float,
    location: float,
    *,
    censoring_policy: str | CensoringPolicy = DEPENDENT_FRACTION,
    n_obs: int | None = None,
    n_cens: int | None = None,
    n_total: int | None = None,
    seed: int | None = None,
    rng: np.random.Generator | None = None,
) -> SurvivalDesign:
    """Simulate one synthetic dataset from a Weibull parameter pair.

    Parameters
    ----------
    shape : float
        Weibull shape α (> 0).
    location : float
        Linear-predictor location μ; the scale is exp(-μ/α).
    censoring_policy : str or CensoringPolicy
        "dependent_fraction" (default) or "independent_exponential", or
        a policy instance.
    n_obs, n_cens, n_total : int
        Sizes, see get_policy().
    seed : int or None
        Seed for a fresh Generator. Ignored when `rng` is given.
    rng : numpy.random.Generator or None
        Explicit random source.

    Returns
    -------
    SurvivalDesign
    """
    if isinstance(censoring_policy, CensoringPolicy):
        policy = censoring_policy
    else:
        policy = get_policy(
            censoring_policy, n_obs=n_obs, n_cens=n_cens, n_total=n_total,
        )
    if rng is None:
        rng = np.random.default_rng(seed)
    return policy.simulate(shape, location, rng)


def event_probability(
    shape: float,
    location: float,
    censor_rate: float = DEFAULT_CENSOR_RATE,
) -> float:
    """P(event_time < censor_time) under the independent-exponential policy.

    With W ~ Weibull(α, σ) and C ~ Exponential(λ) independent,

        P(W < C) = E[exp(-λ W)] = ∫₀^∞ exp(-u - λ σ u^(1/α)) du

    after substituting u = (t/σ)^α, which removes the t^(α-1)
    singularity at zero for α < 1.

    Raises
    ------
    ConfigurationError
        Invalid shape, location or rate.
    NumericRangeError
        If the Weibull scale is not representable.
    NumericalError
        If the quadrature does not produce a probability.
    """
    shape = check_positive(shape, "shape")
    location = check_real(location, "location")
    censor_rate = check_positive(censor_rate, "censor_rate")
    scale = weibull_scale(shape, location)

    inv_shape = 1.0 / shape
    lam_sigma = censor_rate * scale

    def integrand(u: float) -> float:
        return np.exp(-u - lam_sigma * u ** inv_shape)

    value, abserr = integrate.quad(integrand, 0.0, np.inf, limit=200)

    if not np.isfinite(value) or value < -abserr or value > 1.0 + abserr:
        raise NumericalError(
            f"quadrature for P(event < censor) failed: value={value}, "
            f"abserr={abserr}"
        )
    return float(min(max(value, 0.0), 1.0))
