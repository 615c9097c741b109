"""
Synthetic time-to-event data from Weibull parameter draws.

Usage:
    from pysurvppc.simulation import simulate, get_policy

    data = simulate(0.8, -3.0, censoring_policy="independent_exponential",
                    n_total=409, seed=1)

    policy = get_policy("dependent_fraction", n_obs=179, n_cens=230)
    data = policy.simulate(0.8, -3.0, np.random.default_rng(1))
"""

from pysurvppc.simulation._common import ParameterDraw, weibull_scale
from pysurvppc.simulation.policies import (
    CensoringPolicy,
    DependentFractionPolicy,
    IndependentExponentialPolicy,
    DEPENDENT_FRACTION,
    INDEPENDENT_EXPONENTIAL,
    POLICY_NAMES,
    get_policy,
)
from pysurvppc.simulation.solvers import event_probability, simulate

__all__ = [
    "ParameterDraw",
    "weibull_scale",
    "CensoringPolicy",
    "DependentFractionPolicy",
    "IndependentExponentialPolicy",
    "DEPENDENT_FRACTION",
    "INDEPENDENT_EXPONENTIAL",
    "POLICY_NAMES",
    "get_policy",
    "simulate",
    "event_probability",
]
