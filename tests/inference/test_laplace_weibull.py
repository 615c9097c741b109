"""
Tests for the reference Weibull posterior (Laplace approximation).

Data are simulated under the independent-exponential policy, where the
censoring is noninformative and the posterior concentrates on the true
(shape, location).
"""

import warnings

import numpy as np
import pytest
from numpy.testing import assert_allclose
from scipy.optimize import OptimizeResult

from pysurvppc.core.exceptions import ValidationError
from pysurvppc.inference import PosteriorSolution, laplace_weibull
from pysurvppc.inference._laplace import WeibullLogPosterior
from pysurvppc.ppc import ppc_kaplan_meier
from pysurvppc.simulation import (
    IndependentExponentialPolicy,
    ParameterDraw,
    simulate,
)
from pysurvppc.survival.design import SurvivalDesign


@pytest.fixture(scope="module")
def independent_data():
    return simulate(0.8, -3.0, censoring_policy="independent_exponential",
                    n_total=2000, seed=17)


# ═══════════════════════════════════════════════════════════════════════
# Analytic derivatives
# ═══════════════════════════════════════════════════════════════════════


class TestWeibullLogPosterior:

    @pytest.fixture
    def logpost(self, independent_data):
        return WeibullLogPosterior(
            independent_data.time, independent_data.event, 1.0, 100.0,
        )

    @pytest.mark.parametrize("theta", [
        np.array([np.log(0.8), -3.0]),
        np.array([0.1, -4.0]),
        np.array([-0.4, -2.0]),
    ])
    def test_gradient_matches_finite_differences(self, logpost, theta):
        h = 1e-6
        fd = np.array([
            (logpost.value(theta + h * e) - logpost.value(theta - h * e)) / (2 * h)
            for e in np.eye(2)
        ])
        assert_allclose(logpost.gradient(theta), fd, rtol=1e-5, atol=1e-3)

    @pytest.mark.parametrize("theta", [
        np.array([np.log(0.8), -3.0]),
        np.array([0.1, -4.0]),
    ])
    def test_hessian_matches_finite_differences(self, logpost, theta):
        h = 1e-6
        fd = np.column_stack([
            (logpost.gradient(theta + h * e) - logpost.gradient(theta - h * e)) / (2 * h)
            for e in np.eye(2)
        ])
        assert_allclose(logpost.hessian(theta), fd, rtol=1e-5, atol=1e-2)

    def test_objective_sign(self, logpost):
        theta = np.array([0.0, -3.0])
        value, grad = logpost.objective(theta)
        assert value == pytest.approx(-logpost.value(theta))
        assert_allclose(grad, -logpost.gradient(theta))

    def test_overflow_is_infinite_objective(self, logpost):
        value, grad = logpost.objective(np.array([5.0, 50.0]))
        assert value == np.inf
        assert_allclose(grad, [0.0, 0.0])


# ═══════════════════════════════════════════════════════════════════════
# laplace_weibull()
# ═══════════════════════════════════════════════════════════════════════


class TestLaplaceWeibull:

    def test_recovers_truth(self, independent_data):
        post = laplace_weibull(independent_data, n_draws=2000, seed=1)

        assert isinstance(post, PosteriorSolution)
        assert post.converged
        alpha, mu = post.mode
        assert alpha == pytest.approx(0.8, abs=0.1)
        assert mu == pytest.approx(-3.0, abs=0.5)
        assert np.mean(post.shape) == pytest.approx(alpha, rel=0.05)

    def test_gradient_zero_at_mode(self, independent_data):
        post = laplace_weibull(independent_data, n_draws=10, seed=1)
        logpost = WeibullLogPosterior(
            independent_data.time, independent_data.event, 1.0, 100.0,
        )
        alpha, mu = post.mode
        theta = np.array([np.log(alpha), mu])
        assert_allclose(logpost.gradient(theta), [0.0, 0.0], atol=1e-4)

    def test_draws_are_parameter_draws(self, independent_data):
        post = laplace_weibull(independent_data, n_draws=25, seed=1)
        assert len(post) == 25
        draws = post.draws
        assert all(isinstance(d, ParameterDraw) for d in draws)
        assert all(d.shape > 0 for d in draws)
        assert_allclose([d.location for d in draws], post.location)

    def test_covariance_symmetric_positive_definite(self, independent_data):
        post = laplace_weibull(independent_data, n_draws=10, seed=1)
        assert_allclose(post.cov, post.cov.T)
        assert np.all(np.linalg.eigvalsh(post.cov) > 0)

    def test_same_seed_same_draws(self, independent_data):
        a = laplace_weibull(independent_data, n_draws=50, seed=3)
        b = laplace_weibull(independent_data, n_draws=50, seed=3)
        assert_allclose(a.shape, b.shape)
        assert_allclose(a.location, b.location)

    def test_raw_arrays(self, independent_data):
        a = laplace_weibull(independent_data, n_draws=50, seed=3)
        b = laplace_weibull(independent_data.time, independent_data.event,
                            n_draws=50, seed=3)
        assert_allclose(a.location, b.location)

    def test_interval_and_summary(self, independent_data):
        post = laplace_weibull(independent_data, n_draws=500, seed=2)
        ci = post.interval(0.9)
        assert ci['shape'][0] < ci['shape'][1]
        assert ci['location'][0] < ci['location'][1]
        assert "Call: laplace_weibull()" in post.summary()
        assert repr(post).startswith("PosteriorSolution(draws=500")

    def test_feeds_posterior_predictive_check(self, independent_data):
        post = laplace_weibull(independent_data, n_draws=20, seed=4)
        result = ppc_kaplan_meier(
            post, censoring_policy="independent_exponential",
            n_total=independent_data.n, seed=4,
            observed=independent_data,
        )
        assert result.draws_used == 20
        assert result.observed_curve.n_observations == 2000

    def test_non_convergence_warns(self, independent_data, monkeypatch):
        from pysurvppc.inference import solvers

        def stalled(fun, x0, *args, **kwargs):
            # stop at the starting point, far from the mode
            return OptimizeResult(x=np.asarray(x0, dtype=np.float64), nit=0,
                                  success=False, message="stalled")

        monkeypatch.setattr(solvers, "minimize", stalled)
        with pytest.warns(RuntimeWarning, match="did not converge"):
            post = laplace_weibull(independent_data, n_draws=10, seed=1)
        assert not post.converged
        assert any("stalled" in w for w in post.warnings)

    @pytest.mark.parametrize("seed", range(8))
    def test_converges_on_moderate_samples(self, seed):
        """log posterior in the hundreds to thousands: no spurious warning."""
        data = IndependentExponentialPolicy(409).simulate(
            0.8, -3.0, np.random.default_rng(seed),
        )
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            post = laplace_weibull(data, n_draws=50, seed=seed)
        assert post.converged
        assert post.warnings == ()
        assert not any("did not converge" in str(w.message) for w in caught)

    def test_unsuccessful_stop_at_mode_is_converged(self, independent_data,
                                                   monkeypatch):
        from pysurvppc.inference import solvers

        real_minimize = solvers.minimize

        def imprecise(*args, **kwargs):
            res = real_minimize(*args, **kwargs)
            return OptimizeResult(
                x=res.x, nit=res.nit, success=False,
                message="A bad approximation caused failure to predict "
                        "improvement.",
            )

        monkeypatch.setattr(solvers, "minimize", imprecise)
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            post = laplace_weibull(independent_data, n_draws=10, seed=1)
        assert post.converged
        assert post.warnings == ()
        assert not any("did not converge" in str(w.message) for w in caught)


class TestLaplaceWeibullValidation:

    def test_no_events(self):
        with pytest.raises(ValidationError, match="at least one event"):
            laplace_weibull([1.0, 2.0, 3.0], [0, 0, 0])

    def test_event_at_zero(self):
        with pytest.raises(ValidationError, match="strictly positive"):
            laplace_weibull([0.0, 2.0, 3.0], [1, 1, 0])

    def test_zero_censoring_time_allowed(self):
        post = laplace_weibull([0.0, 2.0, 3.0, 5.0], [0, 1, 1, 1],
                               n_draws=10, seed=0)
        assert post.n_observations == 4
        assert post.n_events == 3

    def test_event_with_design(self):
        design = SurvivalDesign.for_survival([1.0, 2.0], [1, 1])
        with pytest.raises(ValidationError, match="omitted"):
            laplace_weibull(design, [1, 1])

    def test_n_draws_positive(self):
        with pytest.raises(ValidationError, match="n_draws"):
            laplace_weibull([1.0, 2.0], [1, 1], n_draws=0)

    def test_bad_prior(self):
        with pytest.raises(ValidationError, match="prior_location_sd"):
            laplace_weibull([1.0, 2.0], [1, 1], prior_location_sd=-1.0)
