"""
Parameter payloads for the reference Weibull inference engine.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray


@dataclass(frozen=True)
class PosteriorParams:
    """Laplace approximation to the Weibull posterior.

    The normal approximation lives on (log α, μ); draws are mapped back
    to (α, μ).
    """

    mode: NDArray[np.floating[Any]]       # (2,) (log α, μ) at the mode
    cov: NDArray[np.floating[Any]]        # (2, 2) inverse negative Hessian
    shape: NDArray[np.floating[Any]]      # (n_draws,) α draws
    location: NDArray[np.floating[Any]]   # (n_draws,) μ draws
    log_posterior: float                  # unnormalized, at the mode
    n_iter: int
    converged: bool
    n_observations: int
    n_events: int


@dataclass(frozen=True)
class RecoveryParams:
    """Interval coverage of known (α, μ) over repeated simulate → fit."""

    true_shape: float
    true_location: float
    covered_shape: NDArray[np.bool_]      # (n_replicates,)
    covered_location: NDArray[np.bool_]   # (n_replicates,)
    conf_level: float
    censoring_policy: str
    n_replicates: int
