"""
Solution wrapper for Kaplan-Meier results.

KMSolution wraps a Result[KMParams] and exposes user-friendly properties
with an R-style summary() method.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pysurvppc.core.result import Result
from pysurvppc.survival._common import CurvePoint, KMParams


class KMSolution:
    """Kaplan-Meier survival curve solution.

    Properties mirror R's survfit() output.
    """

    __slots__ = ('_result',)

    def __init__(self, _result: Result[KMParams]) -> None:
        self._result = _result

    # -- Properties delegating to KMParams --

    @property
    def time(self):
        """Unique event times."""
        return self._result.params.time

    @property
    def survival(self):
        """S(t) at each event time."""
        return self._result.params.survival

    @property
    def n_risk(self):
        """Number at risk just before each event time."""
        return self._result.params.n_risk

    @property
    def n_events(self):
        """Number of events at each event time."""
        return self._result.params.n_events

    @property
    def n_censored(self):
        """Number censored in each interval."""
        return self._result.params.n_censored

    @property
    def se(self):
        """Greenwood standard error of S(t)."""
        return self._result.params.se

    @property
    def ci_lower(self):
        """Lower confidence bound for S(t)."""
        return self._result.params.ci_lower

    @property
    def ci_upper(self):
        """Upper confidence bound for S(t)."""
        return self._result.params.ci_upper

    @property
    def conf_level(self) -> float:
        return self._result.params.conf_level

    @property
    def conf_type(self) -> str:
        return self._result.params.conf_type

    @property
    def n_observations(self) -> int:
        return self._result.params.n_observations

    @property
    def n_events_total(self) -> int:
        return self._result.params.n_events_total

    @property
    def is_degenerate(self) -> bool:
        """True when there were no events and S(t) = 1 everywhere."""
        return len(self.time) == 0

    @property
    def median_survival(self) -> float | None:
        """Median survival time (smallest t where S(t) <= 0.5)."""
        if len(self.survival) == 0:
            return None
        idx = self.survival <= 0.5
        if not idx.any():
            return None
        return float(self.time[idx][0])

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def timing(self):
        return self._result.timing

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    # -- Step-function access --

    def survival_at(self, t: ArrayLike) -> NDArray:
        """Evaluate the right-continuous step function S(t).

        S(t) = 1 for t below the first event time; at an event time the
        curve already takes its post-drop value.
        """
        t_arr = np.asarray(t, dtype=np.float64)
        idx = np.searchsorted(self.time, t_arr, side='right') - 1
        padded = np.concatenate(([1.0], self.survival))
        return padded[idx + 1]

    def curve_points(self) -> tuple[CurvePoint, ...]:
        """Ordered (time, survival) steps, anchored at (0, 1).

        The anchor makes S(0-) = 1 explicit, so a degenerate curve (no
        events) is the single point (0, 1).
        """
        points = [CurvePoint(time=0.0, survival=1.0)]
        points.extend(
            CurvePoint(time=float(t), survival=float(s))
            for t, s in zip(self.time, self.survival)
        )
        return tuple(points)

    def summary(self) -> str:
        """R-style summary of Kaplan-Meier fit."""
        lines = []
        lines.append("Call: kaplan_meier()")
        lines.append("")
        lines.append(
            f"  n={self.n_observations}, "
            f"events={self.n_events_total}"
        )
        lines.append("")

        median = self.median_survival
        median_str = f"{median:.4g}" if median is not None else "NA"
        lines.append(f"  median survival = {median_str}")
        lines.append("")

        ci_pct = int(round(self.conf_level * 100))
        lines.append(
            f"  {'time':>8s}  {'n.risk':>8s}  {'n.event':>8s}  "
            f"{'survival':>10s}  {'se':>10s}  "
            f"{f'lower {ci_pct}%':>10s}  {f'upper {ci_pct}%':>10s}"
        )

        m = len(self.time)
        show = min(m, 20)
        for i in range(show):
            lines.append(
                f"  {self.time[i]:8.4g}  {self.n_risk[i]:8.0f}  "
                f"{self.n_events[i]:8.0f}  "
                f"{self.survival[i]:10.6f}  {self.se[i]:10.6f}  "
                f"{self.ci_lower[i]:10.6f}  {self.ci_upper[i]:10.6f}"
            )
        if m > 20:
            lines.append(f"  ... ({m - 20} more rows)")

        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"KMSolution(n={self.n_observations}, "
            f"events={self.n_events_total}, "
            f"median={self.median_survival})"
        )
