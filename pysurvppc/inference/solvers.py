"""
Public API for the reference Weibull inference engine.

    laplace_weibull(time, event) → PosteriorSolution
    interval_covers(values, truth, conf_level) → bool
    recovery_study(shape, location, ...) → RecoverySolution

The posterior-predictive core only consumes draws; this engine is one way
to produce them, small enough to run inside the test suite.
"""

from __future__ import annotations

import warnings

import numpy as np
from scipy.optimize import minimize

from pysurvppc.core.compute.timing import Timer
from pysurvppc.core.exceptions import (
    ConfigurationError,
    ConvergenceError,
    ValidationError,
)
from pysurvppc.core.result import Result
from pysurvppc.core.validation import (
    check_nonnegative_int,
    check_open_unit_interval,
    check_positive,
    check_real,
)
from pysurvppc.inference._common import PosteriorParams, RecoveryParams
from pysurvppc.inference._laplace import WeibullLogPosterior
from pysurvppc.inference.solution import (
    PosteriorSolution,
    RecoverySolution,
    equal_tailed_interval,
)
from pysurvppc.simulation.policies import CensoringPolicy, get_policy
from pysurvppc.survival.design import SurvivalDesign


def laplace_weibull(
    time,
    event=None,
    *,
    n_draws: int = 1000,
    seed: int | None = None,
    rng: np.random.Generator | None = None,
    prior_shape_rate: float = 1.0,
    prior_location_sd: float = 100.0,
    tol: float = 1e-8,
    max_iter: int = 200,
) -> PosteriorSolution:
    """Normal approximation to the right-censored Weibull posterior.

    Finds the posterior mode on (log α, μ) with a trust-region Newton
    method using the analytic gradient and Hessian, then samples
    `n_draws` points from N(mode, -H⁻¹).

    Parameters
    ----------
    time : array-like or SurvivalDesign
        Observed times, or a dataset.
    event : array-like or None
        Event indicator; omit with a SurvivalDesign.
    n_draws : int
        Number of posterior draws (>= 1).
    seed, rng
        Random source for the draws; `rng` wins when both are given.
    prior_shape_rate : float
        Rate of the Exponential prior on α.
    prior_location_sd : float
        Standard deviation of the Normal(0, sd) prior on μ.
    tol : float
        Gradient tolerance of the mode search. A stop that scipy does
        not report as successful still counts as converged when the largest
        gradient component is within tol * max(1, |log posterior|).
    max_iter : int
        Maximum mode-search iterations.

    Returns
    -------
    PosteriorSolution

    Raises
    ------
    ValidationError
        No events, or an event at time 0 (zero Weibull density).
    ConvergenceError
        The Hessian at the reported mode is not negative definite.
    """
    if isinstance(time, SurvivalDesign):
        if event is not None:
            raise ValidationError(
                "event must be omitted when passing a SurvivalDesign"
            )
        design = time
    else:
        design = SurvivalDesign.for_survival(time, event)

    n_draws = check_nonnegative_int(n_draws, "n_draws")
    if n_draws < 1:
        raise ConfigurationError(
            f"n_draws must be >= 1, got {n_draws}",
            parameter="n_draws", value=n_draws,
        )
    prior_shape_rate = check_positive(prior_shape_rate, "prior_shape_rate")
    prior_location_sd = check_positive(prior_location_sd, "prior_location_sd")

    if design.n_events == 0:
        raise ValidationError(
            "laplace_weibull requires at least one event; the location "
            "is not identified from censored data alone"
        )
    if np.any(design.time[design.event == 1] <= 0):
        raise ValidationError("event times must be strictly positive")

    if rng is None:
        rng = np.random.default_rng(seed)

    timer = Timer()
    timer.start()

    logpost = WeibullLogPosterior(
        design.time, design.event, prior_shape_rate, prior_location_sd,
    )

    with timer.section('mode_search'):
        opt_result = minimize(
            logpost.objective,
            logpost.start(design.time),
            jac=True,
            hess=lambda theta: -logpost.hessian(theta),
            method='trust-exact',
            options={'maxiter': max_iter, 'gtol': tol},
        )

    converged = bool(opt_result.success)
    mode = opt_result.x
    n_iter = int(opt_result.nit)
    if not converged:
        # trust-exact stops on round-off once |log posterior| is large;
        # accept a gradient that is small relative to the objective
        value_at_mode = logpost.value(mode)
        grad_max = float(np.max(np.abs(logpost.gradient(mode))))
        converged = bool(
            np.isfinite(value_at_mode)
            and np.isfinite(grad_max)
            and grad_max <= tol * max(1.0, abs(value_at_mode))
        )

    warnings_list: list[str] = []
    if not converged:
        message = (
            f"Weibull mode search did not converge after {n_iter} "
            f"iterations. Message: {opt_result.message}"
        )
        warnings.warn(message, RuntimeWarning, stacklevel=2)
        warnings_list.append(message)

    with timer.section('laplace'):
        neg_hess = -logpost.hessian(mode)
        try:
            np.linalg.cholesky(neg_hess)
        except np.linalg.LinAlgError as e:
            raise ConvergenceError(
                "Hessian at the Weibull posterior mode is not negative "
                "definite",
                iterations=n_iter,
                reason='indefinite_hessian',
            ) from e
        cov = np.linalg.inv(neg_hess)
        cov = 0.5 * (cov + cov.T)

    with timer.section('sampling'):
        theta = rng.multivariate_normal(mode, cov, size=n_draws)

    timer.stop()

    params = PosteriorParams(
        mode=mode,
        cov=cov,
        shape=np.exp(theta[:, 0]),
        location=theta[:, 1].copy(),
        log_posterior=logpost.value(mode),
        n_iter=n_iter,
        converged=converged,
        n_observations=design.n,
        n_events=design.n_events,
    )

    result = Result(
        params=params,
        info={
            'method': 'Laplace',
            'prior_shape_rate': prior_shape_rate,
            'prior_location_sd': prior_location_sd,
            **design.metadata,
        },
        timing=timer.result(),
        backend_name='cpu_laplace',
        warnings=tuple(warnings_list),
    )

    return PosteriorSolution(_result=result)


def interval_covers(values, truth: float, conf_level: float = 0.9) -> bool:
    """Whether `truth` lies in the equal-tailed `conf_level` interval of
    the sample `values`."""
    conf_level = check_open_unit_interval(conf_level, "conf_level")
    lo, hi = equal_tailed_interval(values, conf_level)
    return lo <= truth <= hi


def recovery_study(
    shape: float,
    location: float,
    *,
    censoring_policy: str | CensoringPolicy = "dependent_fraction",
    n_obs: int | None = None,
    n_cens: int | None = None,
    n_total: int | None = None,
    n_replicates: int = 50,
    conf_level: float = 0.9,
    n_draws: int = 1000,
    seed: int | None = None,
) -> RecoverySolution:
    """Repeat simulate → fit → interval check for known parameters.

    Replicate r simulates with default_rng([seed, r, 0]) and samples the
    posterior with default_rng([seed, r, 1]). Under the
    dependent_fraction policy the censoring is informative and coverage
    falls well below `conf_level`; under independent_exponential it is
    close to nominal.

    Returns
    -------
    RecoverySolution
    """
    shape = check_positive(shape, "shape")
    location = check_real(location, "location")
    conf_level = check_open_unit_interval(conf_level, "conf_level")
    n_replicates = check_nonnegative_int(n_replicates, "n_replicates")
    if n_replicates < 1:
        raise ConfigurationError(
            f"n_replicates must be >= 1, got {n_replicates}",
            parameter="n_replicates", value=n_replicates,
        )

    if isinstance(censoring_policy, CensoringPolicy):
        policy = censoring_policy
    else:
        policy = get_policy(
            censoring_policy, n_obs=n_obs, n_cens=n_cens, n_total=n_total,
        )
    if seed is None:
        seed = int(np.random.SeedSequence().entropy)
    else:
        seed = check_nonnegative_int(seed, "seed")

    timer = Timer()
    timer.start()

    covered_shape = np.zeros(n_replicates, dtype=bool)
    covered_location = np.zeros(n_replicates, dtype=bool)
    warnings_list: list[str] = []

    with timer.section('replicates'):
        for r in range(n_replicates):
            data = policy.simulate(shape, location, np.random.default_rng([seed, r, 0]))
            with warnings.catch_warnings(record=True) as caught:
                warnings.simplefilter("always", RuntimeWarning)
                post = laplace_weibull(
                    data,
                    n_draws=n_draws,
                    rng=np.random.default_rng([seed, r, 1]),
                )
            warnings_list.extend(
                f"replicate {r}: {w.message}" for w in caught
            )
            covered_shape[r] = interval_covers(post.shape, shape, conf_level)
            covered_location[r] = interval_covers(post.location, location, conf_level)

    timer.stop()

    params = RecoveryParams(
        true_shape=shape,
        true_location=location,
        covered_shape=covered_shape,
        covered_location=covered_location,
        conf_level=conf_level,
        censoring_policy=policy.name,
        n_replicates=n_replicates,
    )

    result = Result(
        params=params,
        info={
            'censoring_policy': policy.name,
            **policy.metadata,
            'seed': seed,
            'n_draws': n_draws,
        },
        timing=timer.result(),
        backend_name='cpu_recovery',
        warnings=tuple(warnings_list),
    )

    return RecoverySolution(_result=result)
