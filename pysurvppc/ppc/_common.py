"""
Common data structures for posterior-predictive curve aggregation.

BandParams is the parameter payload wrapped by Result[P] and exposed
through PPCSolution. AggregatedBand is the per-bin record handed to
plotting code.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import numpy as np
from numpy.typing import NDArray


@dataclass(frozen=True)
class AggregatedBand:
    """Summary of all replicate survival values in one integer time bin."""
    time_bin: int
    mean: float
    median: float
    lower: float
    upper: float


@dataclass(frozen=True)
class ReplicateOutcome:
    """What one posterior draw contributed.

    Exactly one of `bins` / `error` is set: a successful replicate carries
    its {time_bin: [survival, ...]} map, a dropped one the error message
    and the exception that caused it.
    """
    index: int
    bins: dict[int, list[float]] | None = None
    error: str | None = None
    exception: Exception | None = field(default=None, compare=False)
    n_events: int = 0
    n_censored: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class BandParams:
    """
    Parameter payload for aggregated posterior-predictive KM bands.

    - time_bin: sorted distinct floor(time) values, shape (B,)
    - mean, median, lower, upper: per-bin summaries, shape (B,)
    - n_values: number of survival values folded into each bin, shape (B,)
    - draws_requested / draws_used: posterior draws asked for vs. kept
    - dropped: draw index -> error message for every dropped draw
    """
    time_bin: NDArray[np.int64]
    mean: NDArray[np.floating[Any]]
    median: NDArray[np.floating[Any]]
    lower: NDArray[np.floating[Any]]
    upper: NDArray[np.floating[Any]]
    n_values: NDArray[np.int64]
    conf_level: float
    draws_requested: int
    draws_used: int
    dropped: dict[int, str] = field(default_factory=dict)
    mean_events: float = float('nan')
    mean_censored: float = float('nan')
