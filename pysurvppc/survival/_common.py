"""
Parameter payloads for survival analysis results.

Each dataclass is a frozen payload carried inside a Result[P] envelope.
"""

from __future__ import annotations

from dataclasses import dataclass

from numpy.typing import NDArray


@dataclass(frozen=True)
class CurvePoint:
    """One step of a Kaplan-Meier curve: S is `survival` from `time` on."""

    time: float
    survival: float


@dataclass(frozen=True)
class KMParams:
    """Kaplan-Meier survival curve parameters.

    Matches the output of R's survival::survfit().
    """

    time: NDArray                # (m,) — unique event times
    survival: NDArray            # (m,) — S(t) at each event time
    n_risk: NDArray              # (m,) — number at risk just before each time
    n_events: NDArray            # (m,) — events at each time
    n_censored: NDArray          # (m,) — censored in [t_j, t_{j+1})
    se: NDArray                  # (m,) — Greenwood standard error
    ci_lower: NDArray            # (m,) — lower CI for S(t)
    ci_upper: NDArray            # (m,) — upper CI for S(t)
    conf_level: float            # confidence level (e.g. 0.95)
    conf_type: str               # CI type: "log" (default), "plain", "log-log"
    n_observations: int          # total n
    n_events_total: int          # total events
