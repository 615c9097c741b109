"""
Solution wrappers for the reference inference engine.

PosteriorSolution wraps Result[PosteriorParams]; it iterates over
ParameterDraw objects so it can be handed straight to ppc_kaplan_meier().
RecoverySolution wraps Result[RecoveryParams].
"""

from __future__ import annotations

from collections.abc import Iterator

import numpy as np

from pysurvppc.core.result import Result
from pysurvppc.inference._common import PosteriorParams, RecoveryParams
from pysurvppc.ppc._quantile import r_quantile
from pysurvppc.simulation._common import ParameterDraw


def equal_tailed_interval(values, conf_level: float) -> tuple[float, float]:
    """(1-L)/2 and 1-(1-L)/2 sample quantiles (R type 7)."""
    tail = (1.0 - conf_level) / 2.0
    lo, hi = r_quantile(
        np.sort(np.asarray(values, dtype=np.float64)),
        np.array([tail, 1.0 - tail]),
    )
    return float(lo), float(hi)


class PosteriorSolution:
    """Posterior draws of (shape α, location μ)."""

    __slots__ = ('_result',)

    def __init__(self, _result: Result[PosteriorParams]) -> None:
        self._result = _result

    @property
    def shape(self):
        """α draws."""
        return self._result.params.shape

    @property
    def location(self):
        """μ draws."""
        return self._result.params.location

    @property
    def draws(self) -> tuple[ParameterDraw, ...]:
        return tuple(self)

    @property
    def mode(self) -> tuple[float, float]:
        """Posterior mode as (α, μ)."""
        a, mu = self._result.params.mode
        return float(np.exp(a)), float(mu)

    @property
    def cov(self):
        """Covariance of the normal approximation on (log α, μ)."""
        return self._result.params.cov

    @property
    def converged(self) -> bool:
        return self._result.params.converged

    @property
    def n_iter(self) -> int:
        return self._result.params.n_iter

    @property
    def n_observations(self) -> int:
        return self._result.params.n_observations

    @property
    def n_events(self) -> int:
        return self._result.params.n_events

    @property
    def timing(self):
        return self._result.timing

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    def interval(self, conf_level: float = 0.9) -> dict[str, tuple[float, float]]:
        """Equal-tailed credible intervals for shape and location."""
        return {
            'shape': equal_tailed_interval(self.shape, conf_level),
            'location': equal_tailed_interval(self.location, conf_level),
        }

    def __iter__(self) -> Iterator[ParameterDraw]:
        for alpha, mu in zip(self.shape.tolist(), self.location.tolist()):
            yield ParameterDraw(shape=alpha, location=mu)

    def __len__(self) -> int:
        return len(self.shape)

    def summary(self, conf_level: float = 0.9) -> str:
        """Posterior mean, sd and interval per parameter."""
        pct = int(round(conf_level * 100))
        ci = self.interval(conf_level)
        lines = []
        lines.append("Call: laplace_weibull()")
        lines.append("")
        lines.append(
            f"  n={self.n_observations}, events={self.n_events}, "
            f"draws={len(self)}, converged={self.converged}"
        )
        lines.append("")
        lines.append(
            f"  {'':>9s}  {'mean':>10s}  {'sd':>10s}  "
            f"{f'lo {pct}%':>10s}  {f'hi {pct}%':>10s}"
        )
        for name, values in (('shape', self.shape), ('location', self.location)):
            lo, hi = ci[name]
            lines.append(
                f"  {name:>9s}  {np.mean(values):10.5f}  "
                f"{np.std(values, ddof=1):10.5f}  {lo:10.5f}  {hi:10.5f}"
            )
        return "\n".join(lines)

    def __repr__(self) -> str:
        alpha, mu = self.mode
        return (
            f"PosteriorSolution(draws={len(self)}, "
            f"mode=(shape={alpha:.4g}, location={mu:.4g}))"
        )


class RecoverySolution:
    """Coverage of the true parameters across repeated fits."""

    __slots__ = ('_result',)

    def __init__(self, _result: Result[RecoveryParams]) -> None:
        self._result = _result

    @property
    def covered_shape(self):
        return self._result.params.covered_shape

    @property
    def covered_location(self):
        return self._result.params.covered_location

    @property
    def coverage_shape(self) -> float:
        return float(np.mean(self.covered_shape))

    @property
    def coverage_location(self) -> float:
        return float(np.mean(self.covered_location))

    @property
    def coverage_joint(self) -> float:
        """Fraction of replicates whose intervals cover both parameters."""
        return float(np.mean(self.covered_shape & self.covered_location))

    @property
    def conf_level(self) -> float:
        return self._result.params.conf_level

    @property
    def censoring_policy(self) -> str:
        return self._result.params.censoring_policy

    @property
    def n_replicates(self) -> int:
        return self._result.params.n_replicates

    @property
    def timing(self):
        return self._result.timing

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    def summary(self) -> str:
        p = self._result.params
        pct = int(round(p.conf_level * 100))
        return "\n".join([
            "Call: recovery_study()",
            "",
            f"  policy={p.censoring_policy}, replicates={p.n_replicates}, "
            f"truth=(shape={p.true_shape}, location={p.true_location})",
            f"  {pct}% interval coverage: shape={self.coverage_shape:.3f}, "
            f"location={self.coverage_location:.3f}, "
            f"joint={self.coverage_joint:.3f}",
        ])

    def __repr__(self) -> str:
        return (
            f"RecoverySolution(policy={self.censoring_policy!r}, "
            f"shape={self.coverage_shape:.3f}, "
            f"location={self.coverage_location:.3f})"
        )
