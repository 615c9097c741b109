"""
Censoring policies: how a synthetic time-to-event dataset is generated
from one Weibull parameter draw.

Two named variants with materially different statistical properties:

    DependentFractionPolicy ("dependent_fraction")
        Fixed counts of events and censorings. Censoring times are a
        Uniform(0, 1) fraction of a fresh Weibull draw, so they are
        stochastically smaller than event times and depend on the event
        law. This is informative censoring and it biases any estimator
        that assumes otherwise. It is kept exactly as is.

    IndependentExponentialPolicy ("independent_exponential")
        Every subject races a Weibull event clock against an independent
        Exponential(rate) censoring clock; the smaller one is observed.

Both take an explicit numpy Generator so replicates are reproducible and
independent when run in parallel.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import numpy as np

from pysurvppc.core.exceptions import ConfigurationError, NumericRangeError
from pysurvppc.core.validation import (
    check_nonnegative_int,
    check_positive,
    check_real,
)
from pysurvppc.simulation._common import weibull_scale
from pysurvppc.survival.design import SurvivalDesign


DEPENDENT_FRACTION = "dependent_fraction"
INDEPENDENT_EXPONENTIAL = "independent_exponential"

POLICY_NAMES = (DEPENDENT_FRACTION, INDEPENDENT_EXPONENTIAL)

# Exponential(1/100) censoring clock of the noninformative variant
DEFAULT_CENSOR_RATE = 1.0 / 100.0


class CensoringPolicy(ABC):
    """Base class for dataset generators."""

    name: str = ""

    @property
    @abstractmethod
    def n_total(self) -> int:
        """Number of subjects in every simulated dataset."""

    @property
    @abstractmethod
    def metadata(self) -> dict[str, Any]:
        """Policy options, recorded in Result.info."""

    @abstractmethod
    def _draw(
        self,
        shape: float,
        scale: float,
        rng: np.random.Generator,
    ) -> tuple[np.ndarray, np.ndarray]:
        """Return (observed_time, event) for one dataset."""

    def simulate(
        self,
        shape: float,
        location: float,
        rng: np.random.Generator,
    ) -> SurvivalDesign:
        """Simulate one dataset under this policy.

        Raises:
            ConfigurationError: If shape <= 0 or location is not finite.
            NumericRangeError: If the Weibull scale or any sampled time
                is not representable.
        """
        shape = check_positive(shape, "shape")
        location = check_real(location, "location")
        scale = weibull_scale(shape, location)

        with np.errstate(over='ignore', invalid='ignore'):
            time, event = self._draw(shape, scale, rng)

        if not np.all(np.isfinite(time)):
            raise NumericRangeError(
                f"non-finite survival times sampled for shape={shape}, "
                f"location={location} (scale={scale})",
                shape=shape,
                location=location,
            )

        return SurvivalDesign.from_arrays(time, event)

    def __repr__(self) -> str:
        opts = ", ".join(f"{k}={v!r}" for k, v in self.metadata.items())
        return f"{type(self).__name__}({opts})"


class DependentFractionPolicy(CensoringPolicy):
    """Informative censoring with caller-fixed event and censoring counts.

    - n_obs event times t ~ Weibull(α, σ)
    - n_cens censoring times t = u * w, u ~ Uniform(0, 1),
      w ~ Weibull(α, σ)
    """

    name = DEPENDENT_FRACTION

    def __init__(self, n_obs: int, n_cens: int):
        self.n_obs = check_nonnegative_int(n_obs, "n_obs")
        self.n_cens = check_nonnegative_int(n_cens, "n_cens")

    @property
    def n_total(self) -> int:
        return self.n_obs + self.n_cens

    @property
    def metadata(self) -> dict[str, Any]:
        return {'n_obs': self.n_obs, 'n_cens': self.n_cens}

    def _draw(self, shape, scale, rng):
        t_obs = scale * rng.weibull(shape, size=self.n_obs)
        u = rng.uniform(0.0, 1.0, size=self.n_cens)
        w = scale * rng.weibull(shape, size=self.n_cens)
        t_cens = u * w

        time = np.concatenate([t_obs, t_cens])
        event = np.concatenate([
            np.ones(self.n_obs, dtype=np.float64),
            np.zeros(self.n_cens, dtype=np.float64),
        ])
        return time, event


class IndependentExponentialPolicy(CensoringPolicy):
    """Noninformative censoring: a latent race of two independent clocks.

    For each subject, event_time ~ Weibull(α, σ) and
    censor_time ~ Exponential(censor_rate); the subject is an event iff
    event_time < censor_time.
    """

    name = INDEPENDENT_EXPONENTIAL

    def __init__(self, n_total: int, censor_rate: float = DEFAULT_CENSOR_RATE):
        self._n_total = check_nonnegative_int(n_total, "n_total")
        self.censor_rate = check_positive(censor_rate, "censor_rate")

    @property
    def n_total(self) -> int:
        return self._n_total

    @property
    def metadata(self) -> dict[str, Any]:
        return {'n_total': self._n_total, 'censor_rate': self.censor_rate}

    def _draw(self, shape, scale, rng):
        event_time = scale * rng.weibull(shape, size=self._n_total)
        censor_time = rng.exponential(1.0 / self.censor_rate, size=self._n_total)

        time = np.minimum(event_time, censor_time)
        event = (event_time < censor_time).astype(np.float64)
        return time, event


def get_policy(
    name: str,
    *,
    n_obs: int | None = None,
    n_cens: int | None = None,
    n_total: int | None = None,
    censor_rate: float = DEFAULT_CENSOR_RATE,
) -> CensoringPolicy:
    """Build a named censoring policy.

    Parameters
    ----------
    name : str
        "dependent_fraction" or "independent_exponential".
    n_obs, n_cens : int
        Event and censoring counts; both required for the dependent
        policy. For the independent policy they supply the default
        n_total = n_obs + n_cens.
    n_total : int
        Subjects per dataset for the independent policy.
    censor_rate : float
        Rate of the exponential censoring clock (independent policy).

    Raises
    ------
    ConfigurationError
        Unknown name, missing or negative sizes.
    """
    if name == DEPENDENT_FRACTION:
        if n_obs is None or n_cens is None:
            raise ConfigurationError(
                "dependent_fraction policy requires both n_obs and n_cens",
                parameter="n_obs" if n_obs is None else "n_cens",
            )
        if n_total is not None:
            raise ConfigurationError(
                "n_total is not used by the dependent_fraction policy; "
                "pass n_obs and n_cens",
                parameter="n_total", value=n_total,
            )
        return DependentFractionPolicy(n_obs, n_cens)

    if name == INDEPENDENT_EXPONENTIAL:
        if n_total is None:
            if n_obs is None or n_cens is None:
                raise ConfigurationError(
                    "independent_exponential policy requires n_total "
                    "(or both n_obs and n_cens)",
                    parameter="n_total",
                )
            n_total = (check_nonnegative_int(n_obs, "n_obs")
                       + check_nonnegative_int(n_cens, "n_cens"))
        return IndependentExponentialPolicy(n_total, censor_rate=censor_rate)

    raise ConfigurationError(
        f"censoring_policy must be one of {POLICY_NAMES}, got {name!r}",
        parameter="censoring_policy", value=name,
    )
