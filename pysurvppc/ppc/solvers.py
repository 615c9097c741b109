"""
Public API for posterior-predictive Kaplan-Meier checks.

    ppc_kaplan_meier(draws, ...) → PPCSolution

This is the surface plotting and reporting code calls: it validates the
configuration, runs one simulate → estimate replicate per posterior
draw, reduces the curves to per-bin bands, and fits the observed
dataset's own curve for side-by-side comparison.
"""

from __future__ import annotations

import warnings
from collections.abc import Mapping
from typing import Literal

from pysurvppc.core.exceptions import ConfigurationError
from pysurvppc.ppc.backends.cpu import (
    SerialReplicateBackend,
    ThreadedReplicateBackend,
)
from pysurvppc.ppc.design import PPCDesign
from pysurvppc.ppc.solution import PPCSolution
from pysurvppc.simulation.policies import CensoringPolicy, DEFAULT_CENSOR_RATE
from pysurvppc.survival.design import SurvivalDesign
from pysurvppc.survival.solvers import kaplan_meier


BackendChoice = Literal['auto', 'serial', 'threads']


def _get_backend(design: PPCDesign):
    """Select backend from the resolved design."""
    if design.backend == 'serial':
        return SerialReplicateBackend()
    if design.backend == 'threads':
        return ThreadedReplicateBackend(n_jobs=design.n_jobs)
    raise ConfigurationError(
        f"Unknown backend: {design.backend!r}",
        parameter="backend", value=design.backend,
    )


def _observed_design(observed) -> SurvivalDesign:
    """Accept a SurvivalDesign, a {'time', 'event'} mapping or a pair."""
    if isinstance(observed, SurvivalDesign):
        return observed
    if isinstance(observed, Mapping):
        try:
            return SurvivalDesign.for_survival(observed['time'], observed['event'])
        except KeyError as e:
            raise ConfigurationError(
                f"observed mapping needs 'time' and 'event' keys, missing {e}",
                parameter="observed",
            ) from e
    try:
        time, event = observed
    except (TypeError, ValueError) as e:
        raise ConfigurationError(
            "observed must be a SurvivalDesign, a mapping with 'time' and "
            "'event', or a (time, event) pair",
            parameter="observed",
        ) from e
    return SurvivalDesign.for_survival(time, event)


def ppc_kaplan_meier(
    draws,
    *,
    censoring_policy: str | CensoringPolicy = "dependent_fraction",
    n_obs: int | None = None,
    n_cens: int | None = None,
    n_total: int | None = None,
    censor_rate: float = DEFAULT_CENSOR_RATE,
    conf_level: float = 0.9,
    quantile_type: int = 7,
    seed: int | None = None,
    observed=None,
    backend: BackendChoice = 'auto',
    n_jobs: int = 1,
) -> PPCSolution:
    """
    Posterior-predictive Kaplan-Meier bands from Weibull posterior draws.

    For each draw one dataset is simulated under the censoring policy and
    its KM curve estimated. Curve steps are binned by floor(time) and each
    bin is summarized by mean, median and the equal-tailed `conf_level`
    quantile band.

    Parameters
    ----------
    draws : iterable
        Posterior draws: ParameterDraw objects, mappings with
        shape/location (or alpha/mu) keys, (shape, location) pairs, a
        (D, 2) array, a mapping of equal-length columns, or a
        PosteriorSolution. At least one.
    censoring_policy : str or CensoringPolicy
        "dependent_fraction" (default) or "independent_exponential".
    n_obs, n_cens : int
        Event and censoring counts (dependent policy; for the independent
        policy they default n_total to their sum).
    n_total : int
        Subjects per replicate (independent policy).
    censor_rate : float
        Rate of the exponential censoring clock (independent policy).
    conf_level : float
        Band level L in (0, 1); default 0.9.
    quantile_type : int
        R quantile type for median and band limits; default 7.
    seed : int or None
        Base seed. Draw d uses default_rng([seed, d]), so results do not
        depend on the backend or on n_jobs.
    observed : SurvivalDesign, mapping or (time, event), optional
        Real dataset to fit for comparison.
    backend : str
        "auto" (threads when n_jobs > 1), "serial" or "threads".
    n_jobs : int
        Worker threads; -1 uses every CPU.

    Returns
    -------
    PPCSolution

    Raises
    ------
    ConfigurationError
        Before any simulation, for any invalid option or draw.
    NumericRangeError
        If every single draw failed numerically.

    Warns
    -----
    RuntimeWarning
        When some draws were dropped; see ``draws_used`` and ``dropped``.
    """
    design = PPCDesign.for_ppc(
        draws,
        censoring_policy=censoring_policy,
        n_obs=n_obs,
        n_cens=n_cens,
        n_total=n_total,
        censor_rate=censor_rate,
        conf_level=conf_level,
        quantile_type=quantile_type,
        seed=seed,
        backend=backend,
        n_jobs=n_jobs,
    )

    # Validate the observed data before spending time on replicates
    observed_design = None
    if observed is not None:
        observed_design = _observed_design(observed)

    result = _get_backend(design).solve(design)

    for message in result.warnings:
        warnings.warn(message, RuntimeWarning, stacklevel=2)

    observed_curve = None
    if observed_design is not None:
        observed_curve = kaplan_meier(observed_design, conf_level=conf_level)

    return PPCSolution(
        _result=result,
        _design=design,
        _observed=observed_curve,
    )
