"""
Tests for ppc_kaplan_meier(), the posterior-predictive driver.

Covers band invariants, the D = 1 round trip, reproducibility across
seeds and backends, failure isolation of numerically broken draws and
fatal configuration errors.
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_array_equal

from pysurvppc.core.exceptions import (
    ConfigurationError,
    DimensionError,
    NumericRangeError,
)
from pysurvppc.ppc import AggregatedBand, PPCSolution, ppc_kaplan_meier
from pysurvppc.ppc._aggregate import run_replicate
from pysurvppc.simulation import CensoringPolicy, ParameterDraw, get_policy
from pysurvppc.survival import KMSolution
from pysurvppc.survival.design import SurvivalDesign


class FixedTimesPolicy(CensoringPolicy):
    """Ignores the draw and returns the same uncensored times every time."""

    name = "fixed_times"

    def __init__(self, times):
        self._times = np.asarray(times, dtype=np.float64)

    @property
    def n_total(self):
        return len(self._times)

    @property
    def metadata(self):
        return {'n_total': self.n_total}

    def _draw(self, shape, scale, rng):
        return self._times.copy(), np.ones(len(self._times))


SCENARIO = dict(
    censoring_policy="independent_exponential",
    n_obs=179,
    n_cens=230,
    seed=1328025050,
)


# ═══════════════════════════════════════════════════════════════════════
# Bands
# ═══════════════════════════════════════════════════════════════════════


class TestBands:

    def test_returns_solution(self, weibull_draws):
        result = ppc_kaplan_meier(weibull_draws, **SCENARIO)

        assert isinstance(result, PPCSolution)
        assert result.draws_requested == 50
        assert result.draws_used == 50
        assert result.draws_dropped == 0
        assert result.failure_fraction == 0.0
        assert result.warnings == ()
        assert result.censoring_policy == "independent_exponential"
        assert result.seed == 1328025050

    def test_band_invariants(self, weibull_draws):
        result = ppc_kaplan_meier(weibull_draws, **SCENARIO)

        assert np.all(np.diff(result.time_bin) > 0)
        assert np.all(result.lower <= result.median)
        assert np.all(result.median <= result.upper)
        for column in (result.mean, result.median, result.lower, result.upper):
            assert np.all((column >= 0.0) & (column <= 1.0))

    def test_starts_at_one_in_bin_zero(self, weibull_draws):
        result = ppc_kaplan_meier(weibull_draws, **SCENARIO)
        first = result.bands()[0]
        assert first.time_bin == 0
        # one anchor value per replicate, plus early steps
        assert result.n_values[0] >= 50
        assert first.lower <= first.median <= first.upper <= 1.0

    def test_every_replicate_curve_starts_at_one(self, weibull_draws):
        policy = get_policy("independent_exponential", n_obs=179, n_cens=230)
        for d, draw in enumerate(weibull_draws):
            outcome = run_replicate(
                d, draw, policy, np.random.default_rng([1328025050, d]),
            )
            assert outcome.ok
            assert outcome.bins[0][0] == 1.0

    def test_bands_records(self, weibull_draws):
        result = ppc_kaplan_meier(weibull_draws, **SCENARIO)
        bands = result.bands()
        assert len(bands) == len(result.time_bin)
        assert all(isinstance(b, AggregatedBand) for b in bands)
        assert [b.time_bin for b in bands] == result.time_bin.tolist()

    def test_dependent_policy(self, weibull_draws):
        result = ppc_kaplan_meier(weibull_draws, n_obs=179, n_cens=230, seed=3)
        assert result.censoring_policy == "dependent_fraction"
        assert result.info['n_obs'] == 179
        assert result.info['n_cens'] == 230
        assert np.all(result.lower <= result.upper)

    def test_single_draw_round_trip(self):
        """D = 1 and one step per bin: mean = median = lower = upper."""
        result = ppc_kaplan_meier(
            [ParameterDraw(1.0, 0.0)],
            censoring_policy=FixedTimesPolicy([1.5, 2.5, 3.5]),
            seed=0,
        )
        assert_array_equal(result.time_bin, [0, 1, 2, 3])
        expected = [1.0, 2/3, 1/3, 0.0]
        assert_allclose(result.mean, expected)
        assert_allclose(result.median, expected)
        assert_allclose(result.lower, expected)
        assert_allclose(result.upper, expected)

    def test_single_draw_step_in_first_unit(self):
        """The anchor and a step in [0, 1) share bin 0."""
        result = ppc_kaplan_meier(
            [ParameterDraw(1.0, 0.0)],
            censoring_policy=FixedTimesPolicy([0.5, 1.5, 2.5]),
            seed=0,
        )
        assert_array_equal(result.time_bin, [0, 1, 2])
        assert_array_equal(result.n_values, [2, 1, 1])
        # bin 0 holds [2/3, 1.0]; type-7 quantiles interpolate between them
        assert result.mean[0] == pytest.approx(5 / 6)
        assert result.median[0] == pytest.approx(5 / 6)
        assert result.lower[0] == pytest.approx(2 / 3 + 0.05 / 3)
        assert result.upper[0] == pytest.approx(2 / 3 + 0.95 / 3)
        assert_allclose(result.mean[1:], [1 / 3, 0.0])
        assert_allclose(result.lower[1:], [1 / 3, 0.0])
        assert_allclose(result.upper[1:], [1 / 3, 0.0])

    def test_duplicate_steps_weighted(self):
        """Three steps inside [0, 1) contribute four values to bin 0."""
        result = ppc_kaplan_meier(
            [ParameterDraw(1.0, 0.0)],
            censoring_policy=FixedTimesPolicy([0.2, 0.4, 0.6]),
            seed=0,
        )
        assert_array_equal(result.time_bin, [0])
        assert_array_equal(result.n_values, [4])
        assert result.mean[0] == pytest.approx(0.5)

    def test_conf_level_widens_band(self, weibull_draws):
        narrow = ppc_kaplan_meier(weibull_draws, conf_level=0.5, **SCENARIO)
        wide = ppc_kaplan_meier(weibull_draws, conf_level=0.95, **SCENARIO)
        assert_array_equal(narrow.time_bin, wide.time_bin)
        assert np.all(wide.upper - wide.lower >= narrow.upper - narrow.lower - 1e-12)

    def test_summary_and_repr(self, weibull_draws):
        result = ppc_kaplan_meier(weibull_draws, **SCENARIO)
        text = result.summary()
        assert "Call: ppc_kaplan_meier()" in text
        assert "draws used=50/50" in text
        assert repr(result).startswith("PPCSolution(bins=")

    def test_timing_and_info(self, weibull_draws):
        result = ppc_kaplan_meier(weibull_draws, **SCENARIO)
        assert {'total_seconds', 'replicates', 'reduction'} <= set(result.timing)
        assert result.info['censoring_policy'] == "independent_exponential"
        assert result.info['n_total'] == 409
        assert result.info['draws_used'] == 50
        assert result.info['quantile_type'] == 7


# ═══════════════════════════════════════════════════════════════════════
# Draw formats
# ═══════════════════════════════════════════════════════════════════════


class TestDrawFormats:

    def test_equivalent_formats(self):
        pairs = [(0.8, -3.0), (0.9, -3.2), (0.75, -2.8)]
        kwargs = dict(censoring_policy="independent_exponential",
                      n_total=100, seed=9)

        base = ppc_kaplan_meier([ParameterDraw(a, m) for a, m in pairs], **kwargs)
        for draws in (
            pairs,
            np.array(pairs),
            [{'shape': a, 'location': m} for a, m in pairs],
            [{'alpha': a, 'mu': m} for a, m in pairs],
            {'alpha': np.array([a for a, _ in pairs]),
             'mu': np.array([m for _, m in pairs])},
        ):
            other = ppc_kaplan_meier(draws, **kwargs)
            assert_array_equal(other.time_bin, base.time_bin)
            assert_array_equal(other.median, base.median)


# ═══════════════════════════════════════════════════════════════════════
# Reproducibility and backends
# ═══════════════════════════════════════════════════════════════════════


class TestReproducibility:

    def test_same_seed_identical(self, weibull_draws):
        a = ppc_kaplan_meier(weibull_draws, **SCENARIO)
        b = ppc_kaplan_meier(weibull_draws, **SCENARIO)
        for col in ('time_bin', 'mean', 'median', 'lower', 'upper'):
            assert_array_equal(getattr(a, col), getattr(b, col))

    def test_different_seed_differs(self, weibull_draws):
        a = ppc_kaplan_meier(weibull_draws, **SCENARIO)
        b = ppc_kaplan_meier(weibull_draws, **{**SCENARIO, 'seed': 1})
        assert not np.array_equal(a.mean[:5], b.mean[:5])

    def test_serial_and_threads_agree(self, weibull_draws):
        serial = ppc_kaplan_meier(weibull_draws, backend="serial", **SCENARIO)
        threads = ppc_kaplan_meier(weibull_draws, backend="threads",
                                   n_jobs=4, **SCENARIO)
        assert serial.backend_name == "serial_replicates"
        assert threads.backend_name == "threaded_replicates"
        for col in ('time_bin', 'mean', 'median', 'lower', 'upper', 'n_values'):
            assert_array_equal(getattr(serial, col), getattr(threads, col))

    def test_auto_backend(self, weibull_draws):
        assert ppc_kaplan_meier(
            weibull_draws, n_jobs=1, **SCENARIO
        ).backend_name == "serial_replicates"
        assert ppc_kaplan_meier(
            weibull_draws, n_jobs=2, **SCENARIO
        ).backend_name == "threaded_replicates"

    def test_seed_none_is_recorded(self, weibull_draws):
        kwargs = dict(censoring_policy="independent_exponential", n_total=60)
        first = ppc_kaplan_meier(weibull_draws, **kwargs)
        assert isinstance(first.seed, int)
        again = ppc_kaplan_meier(weibull_draws, seed=first.seed, **kwargs)
        assert_array_equal(first.mean, again.mean)


# ═══════════════════════════════════════════════════════════════════════
# Failure isolation
# ═══════════════════════════════════════════════════════════════════════


class TestFailureIsolation:

    def test_bad_draw_dropped(self):
        draws = [(0.8, -3.0), (0.8, -1e6), (0.8, -3.1)]
        with pytest.warns(RuntimeWarning, match="dropped 1 of 3"):
            result = ppc_kaplan_meier(
                draws, censoring_policy="independent_exponential",
                n_total=100, seed=5,
            )

        assert result.draws_requested == 3
        assert result.draws_used == 2
        assert result.draws_dropped == 1
        assert result.failure_fraction == pytest.approx(1 / 3)
        assert list(result.dropped) == [1]
        assert "NumericRangeError" in result.dropped[1]
        assert any("dropped 1 of 3" in w for w in result.warnings)
        assert result.info['draws_used'] == 2

    def test_dropped_draw_does_not_shift_others(self):
        """Draw 2 keeps its substream when draw 1 is dropped."""
        kwargs = dict(censoring_policy="independent_exponential",
                      n_total=100, seed=5)
        with pytest.warns(RuntimeWarning):
            with_bad = ppc_kaplan_meier(
                [(0.8, -3.0), (0.8, -1e6)], **kwargs,
            )
        clean = ppc_kaplan_meier([(0.8, -3.0)], **kwargs)
        assert_array_equal(with_bad.median, clean.median)

    def test_all_draws_fail(self):
        with pytest.raises(NumericRangeError, match="all 2 posterior draws") as excinfo:
            ppc_kaplan_meier(
                [(0.8, -1e6), (0.5, 1e6)],
                censoring_policy="independent_exponential",
                n_total=10, seed=1,
            )
        assert excinfo.value.draw_index == 0
        cause = excinfo.value.__cause__
        assert isinstance(cause, NumericRangeError)
        assert cause.draw_index == 0


# ═══════════════════════════════════════════════════════════════════════
# Configuration errors
# ═══════════════════════════════════════════════════════════════════════


@pytest.fixture
def no_replicates(monkeypatch):
    """Fail loudly if any replicate starts."""
    def boom(*args, **kwargs):
        raise AssertionError("replicate ran before validation finished")
    monkeypatch.setattr("pysurvppc.ppc.backends.cpu.run_replicate", boom)


class TestConfigurationErrors:

    @pytest.mark.parametrize("kwargs, parameter", [
        (dict(conf_level=1.0), "conf_level"),
        (dict(conf_level=0.0), "conf_level"),
        (dict(n_obs=-1), "n_obs"),
        (dict(censoring_policy="administrative"), "censoring_policy"),
        (dict(backend="gpu"), "backend"),
        (dict(n_jobs=0), "n_jobs"),
        (dict(quantile_type=10), "quantile_type"),
        (dict(seed=-4), "seed"),
    ])
    def test_invalid_option(self, kwargs, parameter, no_replicates):
        options = dict(n_obs=10, n_cens=10, seed=1)
        options.update(kwargs)
        with pytest.raises(ConfigurationError) as info:
            ppc_kaplan_meier([(0.8, -3.0)], **options)
        assert info.value.parameter == parameter

    def test_empty_draws(self, no_replicates):
        with pytest.raises(ConfigurationError, match="at least one"):
            ppc_kaplan_meier([], n_obs=10, n_cens=10)

    def test_nonpositive_shape(self, no_replicates):
        with pytest.raises(ConfigurationError) as info:
            ppc_kaplan_meier([(0.8, -3.0), (0.0, -3.0)], n_obs=10, n_cens=10)
        assert info.value.parameter == "draws[1].shape"

    def test_malformed_draw(self, no_replicates):
        with pytest.raises(ConfigurationError, match="draws\\[0\\]"):
            ppc_kaplan_meier([{'shape': 0.8}], n_obs=10, n_cens=10)

    def test_missing_size(self, no_replicates):
        with pytest.raises(ConfigurationError):
            ppc_kaplan_meier([(0.8, -3.0)], n_obs=10)

    def test_sizes_with_policy_instance(self, no_replicates):
        with pytest.raises(ConfigurationError, match="policy instance"):
            ppc_kaplan_meier([(0.8, -3.0)],
                             censoring_policy=FixedTimesPolicy([1.0]),
                             n_obs=3)

    def test_bad_observed_checked_first(self, no_replicates):
        with pytest.raises(DimensionError):
            ppc_kaplan_meier([(0.8, -3.0)], n_obs=10, n_cens=10,
                             observed=([1.0, 2.0], [1.0]))

    def test_observed_wrong_type(self, no_replicates):
        with pytest.raises(ConfigurationError, match="observed"):
            ppc_kaplan_meier([(0.8, -3.0)], n_obs=10, n_cens=10,
                             observed=42)


# ═══════════════════════════════════════════════════════════════════════
# Observed curve
# ═══════════════════════════════════════════════════════════════════════


class TestObservedCurve:

    def test_absent_by_default(self, weibull_draws):
        assert ppc_kaplan_meier(weibull_draws, **SCENARIO).observed_curve is None

    def test_pair(self, weibull_draws, observed_data):
        time, event = observed_data
        result = ppc_kaplan_meier(weibull_draws, observed=(time, event), **SCENARIO)
        curve = result.observed_curve
        assert isinstance(curve, KMSolution)
        assert curve.n_observations == 120
        assert curve.conf_level == 0.9
        assert "observed: n=120" in result.summary()

    def test_mapping_and_design(self, weibull_draws, observed_data):
        time, event = observed_data
        a = ppc_kaplan_meier(weibull_draws,
                             observed={'time': time, 'event': event},
                             **SCENARIO)
        b = ppc_kaplan_meier(weibull_draws,
                             observed=SurvivalDesign.for_survival(time, event),
                             **SCENARIO)
        assert_allclose(a.observed_curve.survival, b.observed_curve.survival)
