"""
PPCDesign: the validated configuration of one posterior-predictive request.

Holds every input the replicate backends need. It is immutable and
validated at construction, so configuration errors surface before any
simulation.
"""

from __future__ import annotations

import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

import numpy as np

from pysurvppc.core.exceptions import ConfigurationError
from pysurvppc.core.validation import (
    check_nonnegative_int,
    check_open_unit_interval,
)
from pysurvppc.ppc._quantile import check_quantile_type
from pysurvppc.simulation._common import ParameterDraw
from pysurvppc.simulation.policies import (
    CensoringPolicy,
    DEFAULT_CENSOR_RATE,
    get_policy,
)


BACKENDS = ("auto", "serial", "threads")

# Key aliases accepted in mapping-style draws (Stan/brms naming)
_SHAPE_KEYS = ("shape", "alpha")
_LOCATION_KEYS = ("location", "mu")


def _pick(record: Mapping, keys: tuple[str, ...], where: str):
    for key in keys:
        if key in record:
            return record[key]
    raise ConfigurationError(
        f"{where}: mapping needs one of the keys {keys}",
        parameter=where,
    )


def _coerce_draw(raw: Any, index: int) -> ParameterDraw:
    """Turn one externally supplied draw into a validated ParameterDraw."""
    if isinstance(raw, ParameterDraw):
        shape, location = raw.shape, raw.location
    elif isinstance(raw, Mapping):
        shape = _pick(raw, _SHAPE_KEYS, f"draws[{index}]")
        location = _pick(raw, _LOCATION_KEYS, f"draws[{index}]")
    else:
        try:
            shape, location = raw
        except (TypeError, ValueError) as e:
            raise ConfigurationError(
                f"draws[{index}]: expected ParameterDraw, mapping or "
                f"(shape, location) pair, got {raw!r}",
                parameter=f"draws[{index}]", value=raw,
            ) from e

    if isinstance(shape, np.generic):
        shape = shape.item()
    if isinstance(location, np.generic):
        location = location.item()

    try:
        return ParameterDraw.validated(shape, location)
    except ConfigurationError as e:
        raise ConfigurationError(
            f"draws[{index}]: {e}",
            parameter=f"draws[{index}].{e.parameter}",
            value=e.value,
        ) from e


def normalize_draws(draws: Iterable[Any]) -> tuple[ParameterDraw, ...]:
    """Validate a draw sequence; order is kept but otherwise irrelevant.

    Raises:
        ConfigurationError: Empty sequence, malformed record, shape <= 0.
    """
    # Column layout, e.g. {'alpha': array(D), 'mu': array(D)}
    if isinstance(draws, Mapping):
        shapes = np.atleast_1d(_pick(draws, _SHAPE_KEYS, "draws"))
        locations = np.atleast_1d(_pick(draws, _LOCATION_KEYS, "draws"))
        if shapes.shape != locations.shape or shapes.ndim != 1:
            raise ConfigurationError(
                f"draw columns must be 1D and of equal length, got "
                f"{shapes.shape} and {locations.shape}",
                parameter="draws",
            )
        draws = list(zip(shapes.tolist(), locations.tolist()))

    if isinstance(draws, np.ndarray):
        if draws.ndim != 2 or draws.shape[1] != 2:
            raise ConfigurationError(
                f"draws array must have shape (D, 2), got {draws.shape}",
                parameter="draws",
            )
        draws = draws.tolist()

    try:
        records = list(draws)
    except TypeError as e:
        raise ConfigurationError(
            f"draws must be iterable, got {type(draws).__name__}",
            parameter="draws",
        ) from e

    if len(records) == 0:
        raise ConfigurationError(
            "draws must contain at least one posterior draw",
            parameter="draws", value=0,
        )

    return tuple(_coerce_draw(raw, i) for i, raw in enumerate(records))


def resolve_n_jobs(n_jobs: Any) -> int:
    """n_jobs >= 1, or -1 for every CPU."""
    if isinstance(n_jobs, bool) or not isinstance(n_jobs, (int, np.integer)):
        raise ConfigurationError(
            f"n_jobs must be an integer, got {type(n_jobs).__name__}",
            parameter="n_jobs", value=n_jobs,
        )
    if n_jobs == -1:
        return os.cpu_count() or 1
    if n_jobs < 1:
        raise ConfigurationError(
            f"n_jobs must be >= 1 or -1, got {n_jobs}",
            parameter="n_jobs", value=n_jobs,
        )
    return int(n_jobs)


@dataclass(frozen=True)
class PPCDesign:
    """
    Frozen design for a posterior-predictive Kaplan-Meier check.

    Attributes:
        draws: Validated posterior draws, length D >= 1.
        policy: Censoring policy used to simulate every replicate.
        conf_level: Width L of the [(1-L)/2, 1-(1-L)/2] quantile band.
        quantile_type: R quantile type for median/lower/upper.
        seed: Base seed; draw d uses default_rng([seed, d]).
        backend: "serial" or "threads" (resolved from "auto").
        n_jobs: Worker threads for the threaded backend.
    """
    draws: tuple[ParameterDraw, ...]
    policy: CensoringPolicy
    conf_level: float
    quantile_type: int
    seed: int
    backend: str
    n_jobs: int

    @classmethod
    def for_ppc(
        cls,
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
        backend: str = "auto",
        n_jobs: int = 1,
    ) -> PPCDesign:
        """
        Create a posterior-predictive design with validation.

        Args:
            draws: Posterior draws (ParameterDraw, mappings with
                shape/location or alpha/mu keys, (shape, location) pairs,
                or a (D, 2) array).
            censoring_policy: Policy name or instance.
            n_obs, n_cens, n_total, censor_rate: Policy sizes, see
                simulation.get_policy().
            conf_level: Band level in (0, 1).
            quantile_type: R quantile type 1-9.
            seed: Non-negative base seed; None draws one from OS entropy
                and records it so the run can be repeated.
            backend: "auto", "serial" or "threads".
            n_jobs: Threads for the threaded backend (-1 = all CPUs).

        Returns:
            Validated PPCDesign.

        Raises:
            ConfigurationError: On any invalid option.
        """
        conf_level = check_open_unit_interval(conf_level, "conf_level")
        quantile_type = check_quantile_type(quantile_type)

        if isinstance(censoring_policy, CensoringPolicy):
            if any(v is not None for v in (n_obs, n_cens, n_total)):
                raise ConfigurationError(
                    "sizes must not be given together with a policy "
                    "instance",
                    parameter="censoring_policy",
                )
            policy = censoring_policy
        else:
            policy = get_policy(
                censoring_policy,
                n_obs=n_obs, n_cens=n_cens, n_total=n_total,
                censor_rate=censor_rate,
            )

        if seed is None:
            seed = int(np.random.SeedSequence().entropy)
        else:
            seed = check_nonnegative_int(seed, "seed")

        if backend not in BACKENDS:
            raise ConfigurationError(
                f"backend must be one of {BACKENDS}, got {backend!r}",
                parameter="backend", value=backend,
            )
        n_jobs = resolve_n_jobs(n_jobs)
        if backend == "auto":
            backend = "threads" if n_jobs > 1 else "serial"

        return cls(
            draws=normalize_draws(draws),
            policy=policy,
            conf_level=conf_level,
            quantile_type=quantile_type,
            seed=seed,
            backend=backend,
            n_jobs=n_jobs,
        )

    @property
    def n_draws(self) -> int:
        return len(self.draws)

    def rng_for(self, index: int) -> np.random.Generator:
        """Independent random substream for draw `index`."""
        return np.random.default_rng([self.seed, index])
