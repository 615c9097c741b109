"""
Solution wrapper for posterior-predictive Kaplan-Meier results.

PPCSolution wraps Result[BandParams] together with the design that
produced it and, optionally, the observed dataset's own KM curve.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from pysurvppc.core.result import Result
from pysurvppc.ppc._common import AggregatedBand, BandParams

if TYPE_CHECKING:
    from pysurvppc.ppc.design import PPCDesign
    from pysurvppc.survival.solution import KMSolution


@dataclass
class PPCSolution:
    """
    User-facing posterior-predictive check results.

    Bands are per integer time bin; `observed_curve` is the real
    dataset's KM fit when one was supplied.
    """
    _result: Result[BandParams]
    _design: 'PPCDesign'
    _observed: 'KMSolution | None' = None

    # --- Bands ---

    @property
    def time_bin(self) -> NDArray[np.int64]:
        return self._result.params.time_bin

    @property
    def mean(self) -> NDArray[np.floating[Any]]:
        return self._result.params.mean

    @property
    def median(self) -> NDArray[np.floating[Any]]:
        return self._result.params.median

    @property
    def lower(self) -> NDArray[np.floating[Any]]:
        """(1 - L)/2 quantile per bin."""
        return self._result.params.lower

    @property
    def upper(self) -> NDArray[np.floating[Any]]:
        """1 - (1 - L)/2 quantile per bin."""
        return self._result.params.upper

    @property
    def n_values(self) -> NDArray[np.int64]:
        """How many survival values were folded into each bin."""
        return self._result.params.n_values

    def bands(self) -> tuple[AggregatedBand, ...]:
        """One AggregatedBand record per bin, ascending by time_bin."""
        p = self._result.params
        return tuple(
            AggregatedBand(
                time_bin=int(b),
                mean=float(m),
                median=float(md),
                lower=float(lo),
                upper=float(hi),
            )
            for b, m, md, lo, hi in zip(
                p.time_bin, p.mean, p.median, p.lower, p.upper,
            )
        )

    @property
    def observed_curve(self) -> 'KMSolution | None':
        """KM fit of the observed dataset, or None."""
        return self._observed

    # --- Draw accounting ---

    @property
    def draws_requested(self) -> int:
        return self._result.params.draws_requested

    @property
    def draws_used(self) -> int:
        return self._result.params.draws_used

    @property
    def draws_dropped(self) -> int:
        return self.draws_requested - self.draws_used

    @property
    def failure_fraction(self) -> float:
        return self.draws_dropped / self.draws_requested

    @property
    def dropped(self) -> dict[int, str]:
        """Draw index -> error message for every dropped draw."""
        return self._result.params.dropped

    # --- Metadata ---

    @property
    def conf_level(self) -> float:
        return self._result.params.conf_level

    @property
    def censoring_policy(self) -> str:
        return self._design.policy.name

    @property
    def seed(self) -> int:
        return self._design.seed

    @property
    def info(self) -> dict[str, Any]:
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    # --- Display ---

    def summary(self) -> str:
        """Plain-text table of the bands and the draw accounting."""
        p = self._result.params
        pct = int(round(self.conf_level * 100))
        lines = []
        lines.append("Call: ppc_kaplan_meier()")
        lines.append("")
        lines.append(
            f"  policy={self.censoring_policy}, seed={self.seed}, "
            f"draws used={self.draws_used}/{self.draws_requested}"
        )
        lines.append(
            f"  mean events per replicate={p.mean_events:.1f}, "
            f"mean censored per replicate={p.mean_censored:.1f}"
        )
        lines.append("")
        lines.append(
            f"  {'bin':>6s}  {'n':>7s}  {'mean':>8s}  {'median':>8s}  "
            f"{f'lo {pct}%':>8s}  {f'hi {pct}%':>8s}"
        )

        B = len(p.time_bin)
        show = min(B, 20)
        for i in range(show):
            lines.append(
                f"  {p.time_bin[i]:6d}  {p.n_values[i]:7d}  "
                f"{p.mean[i]:8.4f}  {p.median[i]:8.4f}  "
                f"{p.lower[i]:8.4f}  {p.upper[i]:8.4f}"
            )
        if B > 20:
            lines.append(f"  ... ({B - 20} more bins)")

        if self._observed is not None:
            lines.append("")
            lines.append(
                f"  observed: n={self._observed.n_observations}, "
                f"events={self._observed.n_events_total}, "
                f"steps={len(self._observed.time)}"
            )

        for w in self.warnings:
            lines.append(f"  warning: {w}")

        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"PPCSolution(bins={len(self.time_bin)}, "
            f"draws={self.draws_used}/{self.draws_requested}, "
            f"policy={self.censoring_policy!r}, "
            f"backend={self.backend_name!r})"
        )
