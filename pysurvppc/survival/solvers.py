"""
Public API for survival curve estimation.

    kaplan_meier(time, event) → KMSolution
    kaplan_meier(design) → KMSolution

Validates inputs, creates a SurvivalDesign, runs the product-limit
estimator, and wraps the Result in a Solution.
"""

from __future__ import annotations

from typing import Literal

from pysurvppc.core.compute.timing import Timer
from pysurvppc.core.exceptions import ValidationError
from pysurvppc.core.result import Result
from pysurvppc.core.validation import check_open_unit_interval
from pysurvppc.survival.design import SurvivalDesign
from pysurvppc.survival._km import kaplan_meier_fit
from pysurvppc.survival.solution import KMSolution


def _ensure_design(time, event) -> SurvivalDesign:
    """Accept either a SurvivalDesign or raw (time, event) arrays."""
    if isinstance(time, SurvivalDesign):
        if event is not None:
            raise ValidationError(
                "event must be omitted when passing a SurvivalDesign"
            )
        return time
    if event is None:
        raise ValidationError("event is required with a raw time array")
    return SurvivalDesign.for_survival(time, event)


def kaplan_meier(
    time,
    event=None,
    *,
    conf_level: float = 0.95,
    conf_type: Literal["log", "plain", "log-log"] = "log",
) -> KMSolution:
    """Kaplan-Meier survival curve estimation.

    Matches R's survival::survfit(Surv(time, event) ~ 1).

    Parameters
    ----------
    time : array-like or SurvivalDesign
        Time to event or censoring, or an already validated dataset.
    event : array-like or None
        Event indicator (1=event, 0=censored). Omit when `time` is a
        SurvivalDesign.
    conf_level : float
        Confidence level for CI (default 0.95).
    conf_type : str
        CI transformation: "log" (R default), "plain", "log-log".

    Returns
    -------
    KMSolution
        A dataset with no events gives an empty step list; the curve is
        then S(t) = 1 everywhere (``is_degenerate`` is True).
    """
    design = _ensure_design(time, event)

    check_open_unit_interval(conf_level, "conf_level")

    if conf_type not in ("log", "plain", "log-log"):
        raise ValidationError(
            f"conf_type must be 'log', 'plain', or 'log-log', "
            f"got '{conf_type}'"
        )

    timer = Timer()
    timer.start()

    params = kaplan_meier_fit(
        design.time, design.event,
        conf_level=conf_level,
        conf_type=conf_type,
    )

    timer.stop()

    warnings_list = []
    if params.n_events_total == 0:
        warnings_list.append(
            "no events observed: survival is 1 everywhere"
        )

    result = Result(
        params=params,
        info={"method": "Kaplan-Meier", **design.metadata},
        timing=timer.result(),
        backend_name="cpu_km",
        warnings=tuple(warnings_list),
    )

    return KMSolution(_result=result)
