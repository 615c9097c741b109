"""
PySurvPPC: posterior-predictive Kaplan-Meier checks for Weibull survival models.

Simulates one censored dataset per posterior draw of a Weibull model,
estimates a Kaplan-Meier curve for each, and summarizes the curves as
per-integer-time bands to overlay on the observed curve.

Submodules:
    core: Result container, exceptions, validation, timing
    survival: Kaplan-Meier product-limit estimator
    simulation: Weibull data generation under two censoring policies
    ppc: Posterior-predictive aggregation of Kaplan-Meier curves
    inference: Reference Laplace posterior and parameter recovery
"""

__version__ = "0.1.0"

from pysurvppc import core
from pysurvppc import survival
from pysurvppc import simulation
from pysurvppc import ppc
from pysurvppc import inference

from pysurvppc.ppc import ppc_kaplan_meier

__all__ = [
    "__version__",
    "core",
    "survival",
    "simulation",
    "ppc",
    "inference",
    "ppc_kaplan_meier",
]
