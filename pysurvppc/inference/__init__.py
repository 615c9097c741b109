"""
Reference posterior for the Weibull survival model.

A Laplace approximation that produces ParameterDraw sequences for
ppc_kaplan_meier(), plus a parameter-recovery study.

Usage:
    from pysurvppc.inference import laplace_weibull

    post = laplace_weibull(time, event, n_draws=1000, seed=42)
    print(post.summary())
"""

from pysurvppc.inference.solution import PosteriorSolution, RecoverySolution
from pysurvppc.inference.solvers import (
    interval_covers,
    laplace_weibull,
    recovery_study,
)

__all__ = [
    "laplace_weibull",
    "interval_covers",
    "recovery_study",
    "PosteriorSolution",
    "RecoverySolution",
]
