"""
Survival curve estimation.

Public API:
    kaplan_meier(time, event) -> KMSolution
    SurvivalDesign.for_survival(time, event) -> SurvivalDesign
"""

from pysurvppc.survival._common import CurvePoint, KMParams
from pysurvppc.survival.design import SurvivalDesign
from pysurvppc.survival.solution import KMSolution
from pysurvppc.survival.solvers import kaplan_meier

__all__ = [
    "kaplan_meier",
    "KMSolution",
    "KMParams",
    "CurvePoint",
    "SurvivalDesign",
]
