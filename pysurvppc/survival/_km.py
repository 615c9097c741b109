"""
Kaplan-Meier product-limit estimator.

Matches R's survival::survfit(Surv(time, event) ~ 1):
- Product-limit survival estimate: S(t) = ∏(1 - d_j / n_j)
- Greenwood variance: Var(S(t)) = S(t)^2 * Σ(d_j / (n_j * (n_j - d_j)))
- Confidence intervals via log, plain, or log-log transformation

The at-risk set at an event time t_j counts every subject whose observed
time is >= t_j, so a subject censored at exactly t_j is still at risk
for the events at t_j (R sorts events before censorings at tied times).

References:
    Kaplan, E. L., & Meier, P. (1958). Nonparametric estimation from
        incomplete observations. JASA, 53(282), 457-481.
    R Core Team. survival::survfit.formula
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray
from scipy import stats

from pysurvppc.survival._common import KMParams


def product_limit(
    time: NDArray,
    event: NDArray,
) -> tuple[NDArray, NDArray, NDArray, NDArray]:
    """Bare product-limit recursion.

    This is the per-replicate hot path used by the posterior-predictive
    aggregator; kaplan_meier_fit() adds variance and CIs on top.

    Parameters
    ----------
    time : NDArray
        (n,) observed times.
    event : NDArray
        (n,) event indicator (1=event, 0=censored).

    Returns
    -------
    (event_times, n_risk, n_events, survival), each of shape (m,) where m
    is the number of distinct event times. All empty when there are no
    events: the curve is then identically 1.
    """
    event_times, d = np.unique(time[event == 1], return_counts=True)
    if len(event_times) == 0:
        empty = np.array([], dtype=np.float64)
        return empty, empty.copy(), empty.copy(), empty.copy()

    t_sorted = np.sort(time)
    # n_j = #{i : time_i >= t_j}
    n_risk = (len(t_sorted) - np.searchsorted(t_sorted, event_times, side='left'))
    n_risk = n_risk.astype(np.float64)
    n_events = d.astype(np.float64)

    survival = np.cumprod(1.0 - n_events / n_risk)

    return event_times.astype(np.float64), n_risk, n_events, survival


def kaplan_meier_fit(
    time: NDArray,
    event: NDArray,
    conf_level: float,
    conf_type: str,
) -> KMParams:
    """Compute Kaplan-Meier survival curve.

    Parameters
    ----------
    time : NDArray
        (n,) time to event or censoring.
    event : NDArray
        (n,) event indicator (1=event, 0=censored).
    conf_level : float
        Confidence level for CI (e.g. 0.95).
    conf_type : str
        CI type: "log" (default, matches R), "plain", "log-log".

    Returns
    -------
    KMParams
    """
    n_total = len(time)
    n_events_total = int(np.sum(event))

    out_time, out_n_risk, out_n_events, survival = product_limit(time, event)
    m = len(out_time)

    if m == 0:
        # No events — survival is 1 everywhere
        empty = np.array([], dtype=np.float64)
        return KMParams(
            time=empty,
            survival=empty.copy(),
            n_risk=empty.copy(),
            n_events=empty.copy(),
            n_censored=empty.copy(),
            se=empty.copy(),
            ci_lower=empty.copy(),
            ci_upper=empty.copy(),
            conf_level=conf_level,
            conf_type=conf_type,
            n_observations=n_total,
            n_events_total=0,
        )

    # Censorings in [t_j, t_{j+1}); those before t_1 only show up in n_risk
    cens_times = time[event == 0]
    slot = np.searchsorted(out_time, cens_times, side='right') - 1
    out_n_censored = np.bincount(
        slot[slot >= 0], minlength=m,
    ).astype(np.float64)

    # Greenwood variance: Var(S(t)) = S(t)^2 * Σ(d_j / (n_j * (n_j - d_j)))
    # Avoid division by zero when n_j == d_j (all at risk die)
    denom = out_n_risk * (out_n_risk - out_n_events)
    denom = np.where(denom > 0, denom, np.inf)
    greenwood_sum = np.cumsum(out_n_events / denom)
    variance = survival ** 2 * greenwood_sum
    se = np.sqrt(variance)

    z = stats.norm.ppf((1.0 + conf_level) / 2.0)

    ci_lower, ci_upper = _compute_ci(survival, se, z, conf_type)

    return KMParams(
        time=out_time,
        survival=survival,
        n_risk=out_n_risk,
        n_events=out_n_events,
        n_censored=out_n_censored,
        se=se,
        ci_lower=ci_lower,
        ci_upper=ci_upper,
        conf_level=conf_level,
        conf_type=conf_type,
        n_observations=n_total,
        n_events_total=n_events_total,
    )


def _compute_ci(
    survival: NDArray,
    se: NDArray,
    z: float,
    conf_type: str,
) -> tuple[NDArray, NDArray]:
    """Compute CI for survival function.

    Parameters
    ----------
    survival : S(t) values
    se : Greenwood standard errors
    z : normal quantile (e.g. 1.96 for 95%)
    conf_type : "log", "plain", or "log-log"

    Returns
    -------
    (ci_lower, ci_upper) clipped to [0, 1]
    """
    if conf_type == "plain":
        ci_lower = survival - z * se
        ci_upper = survival + z * se

    elif conf_type == "log":
        # R default: exp(log(S) ± z * se / S)
        with np.errstate(divide='ignore', invalid='ignore'):
            log_s = np.log(survival)
            se_log = se / survival
            ci_lower = np.exp(log_s - z * se_log)
            ci_upper = np.exp(log_s + z * se_log)

    elif conf_type == "log-log":
        with np.errstate(divide='ignore', invalid='ignore'):
            log_s = np.log(survival)
            log_neg_log_s = np.log(-log_s)
            se_loglog = se / (survival * np.abs(log_s))
            ci_lower = np.exp(-np.exp(log_neg_log_s + z * se_loglog))
            ci_upper = np.exp(-np.exp(log_neg_log_s - z * se_loglog))
    else:
        raise ValueError(
            f"Unknown conf_type '{conf_type}'. "
            f"Choose from 'log', 'plain', 'log-log'."
        )

    ci_lower = np.clip(ci_lower, 0.0, 1.0)
    ci_upper = np.clip(ci_upper, 0.0, 1.0)

    # NaN from S=0 or S=1 edge cases
    ci_lower = np.where(np.isnan(ci_lower), 0.0, ci_lower)
    ci_upper = np.where(np.isnan(ci_upper), 1.0, ci_upper)

    return ci_lower, ci_upper
