"""
Posterior-predictive checks of survival curves.

Simulates one dataset per posterior draw, estimates its Kaplan-Meier
curve, and reduces all curves to per-integer-time bands.

Usage:
    from pysurvppc.ppc import ppc_kaplan_meier

    result = ppc_kaplan_meier(
        draws,
        censoring_policy="independent_exponential",
        n_total=409,
        conf_level=0.9,
        seed=1328025050,
        observed=(time, event),
    )
    for band in result.bands():
        ...
"""

from pysurvppc.ppc._aggregate import flatten_curve, merge_bins, reduce_bins
from pysurvppc.ppc._common import AggregatedBand, BandParams
from pysurvppc.ppc._quantile import r_quantile
from pysurvppc.ppc.design import PPCDesign
from pysurvppc.ppc.solution import PPCSolution
from pysurvppc.ppc.solvers import ppc_kaplan_meier

__all__ = [
    "ppc_kaplan_meier",
    "PPCSolution",
    "PPCDesign",
    "AggregatedBand",
    "BandParams",
    "flatten_curve",
    "merge_bins",
    "reduce_bins",
    "r_quantile",
]
