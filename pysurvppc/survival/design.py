"""
SurvivalDesign: immutable container for time-to-event data.

One SurvivalDesign is one Dataset: parallel arrays of observed times and
event indicators. Validates inputs at construction time — all downstream
code trusts clean data.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray

from pysurvppc.core.exceptions import ValidationError
from pysurvppc.core.validation import (
    check_1d,
    check_array,
    check_consistent_length,
    check_finite,
)


@dataclass(frozen=True)
class SurvivalDesign:
    """Immutable survival data container.

    Parameters
    ----------
    time : NDArray
        Observed time (event or censoring). Must be non-negative.
    event : NDArray
        Event indicator: 1 = event observed, 0 = censored.
    """

    time: NDArray
    event: NDArray

    @classmethod
    def for_survival(cls, time, event) -> SurvivalDesign:
        """Create and validate survival data.

        An empty dataset is allowed: a simulation with zero subjects is a
        legitimate (degenerate) replicate whose curve is constant at 1.

        Parameters
        ----------
        time : array-like
            Time to event or censoring.
        event : array-like
            Event indicator (0/1 or False/True).

        Returns
        -------
        SurvivalDesign

        Raises
        ------
        ValidationError
            If inputs are invalid.
        """
        time = check_array(time, "time").astype(np.float64).ravel()
        event = check_array(event, "event").astype(np.float64).ravel()

        check_1d(time, "time")
        check_consistent_length(time, event, names=("time", "event"))
        check_finite(time, "time")

        if np.any(time < 0):
            raise ValidationError("time must be non-negative")

        unique_events = np.unique(event)
        if not np.all(np.isin(unique_events, [0.0, 1.0])):
            raise ValidationError(
                f"event must contain only 0 and 1, "
                f"got unique values: {unique_events}"
            )

        return cls(time=time, event=event)

    @classmethod
    def from_arrays(cls, time: NDArray, event: NDArray) -> SurvivalDesign:
        """Wrap arrays produced by a censoring policy without re-validating.

        Policies construct their output from nonnegative Weibull and
        exponential draws, so the checks in for_survival() are skipped on
        the per-draw hot path.
        """
        return cls(
            time=np.asarray(time, dtype=np.float64),
            event=np.asarray(event, dtype=np.float64),
        )

    @property
    def n(self) -> int:
        """Number of subjects."""
        return len(self.time)

    @property
    def n_events(self) -> int:
        """Number of observed events (n_obs)."""
        return int(np.sum(self.event))

    @property
    def n_censored(self) -> int:
        """Number of censored subjects (n_cens)."""
        return self.n - self.n_events

    @property
    def metadata(self) -> dict[str, Any]:
        return {
            'n': self.n,
            'n_events': self.n_events,
            'n_censored': self.n_censored,
        }

    def __repr__(self) -> str:
        return (
            f"SurvivalDesign(n={self.n}, events={self.n_events}, "
            f"censored={self.n_censored})"
        )
