"""
Log posterior of the right-censored Weibull model on θ = (log α, μ).

With σ = exp(-μ/α), (t/σ)^α = t^α e^μ and

    events:    log f(t) = log α + μ + (α - 1) log t - t^α e^μ
    censored:  log S(t) = -t^α e^μ

Priors: α ~ Exponential(rate), μ ~ Normal(0, sd). The log α
parameterization adds the Jacobian term log α. Writing H = exp(μ + α log t)
for every subject, the gradient and Hessian are closed-form:

    ∂/∂μ      = n_e - ΣH - μ/sd²
    ∂/∂a      = n_e + αΣ_e log t - αΣH log t - rate·α + 1
    ∂²/∂μ²    = -ΣH - 1/sd²
    ∂²/∂a∂μ   = -αΣH log t
    ∂²/∂a²    = αΣ_e log t - ΣH αlog t (αlog t + 1) - rate·α
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray


class WeibullLogPosterior:
    """Callable bundle of log posterior, gradient and Hessian."""

    def __init__(
        self,
        time: NDArray,
        event: NDArray,
        prior_shape_rate: float,
        prior_location_sd: float,
    ):
        is_event = event == 1
        # Zero censoring times contribute log S(0) = 0
        keep = is_event | (time > 0)
        self._log_t = np.log(time[keep])
        self._log_t_events_sum = float(np.sum(np.log(time[is_event])))
        self._n_events = int(np.sum(is_event))
        self._rate = prior_shape_rate
        self._inv_var = 1.0 / prior_location_sd ** 2

    def start(self, time: NDArray) -> NDArray:
        """Exponential-model MLE (α = 1) as the starting point."""
        return np.array([0.0, np.log(self._n_events / np.sum(time))])

    def _hazard_terms(self, theta: NDArray) -> tuple[float, NDArray]:
        a, mu = theta
        alpha = np.exp(a)
        with np.errstate(over='ignore'):
            H = np.exp(mu + alpha * self._log_t)
        return alpha, H

    def value(self, theta: NDArray) -> float:
        a, mu = theta
        alpha, H = self._hazard_terms(theta)
        return float(
            self._n_events * (a + mu)
            + (alpha - 1.0) * self._log_t_events_sum
            - np.sum(H)
            - self._rate * alpha + a
            - 0.5 * mu ** 2 * self._inv_var
        )

    def gradient(self, theta: NDArray) -> NDArray:
        _, mu = theta
        alpha, H = self._hazard_terms(theta)
        aL = alpha * self._log_t
        g_a = (self._n_events + alpha * self._log_t_events_sum
               - np.sum(H * aL) - self._rate * alpha + 1.0)
        g_mu = self._n_events - np.sum(H) - mu * self._inv_var
        return np.array([g_a, g_mu])

    def hessian(self, theta: NDArray) -> NDArray:
        alpha, H = self._hazard_terms(theta)
        aL = alpha * self._log_t
        h_aa = (alpha * self._log_t_events_sum
                - np.sum(H * aL * (aL + 1.0)) - self._rate * alpha)
        h_amu = -np.sum(H * aL)
        h_mumu = -np.sum(H) - self._inv_var
        return np.array([[h_aa, h_amu], [h_amu, h_mumu]])

    def objective(self, theta: NDArray) -> tuple[float, NDArray]:
        """Negative log posterior and its gradient, for scipy minimize."""
        value = self.value(theta)
        if not np.isfinite(value):
            return np.inf, np.zeros(2)
        return -value, -self.gradient(theta)
