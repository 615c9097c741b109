"""
Replicate pipeline: simulate → estimate → flatten → merge → reduce.

Each posterior draw yields one simulated dataset, one Kaplan-Meier curve
and one partial bin map {floor(time): [survival, ...]}. Partial maps are
merged by concatenation and reduced bin by bin into mean, median and an
equal-tailed quantile band.

A draw whose curve has several steps inside one integer time unit puts
several values into that bin, and they are all kept. Values are not
reweighted per draw. The anchor (0, 1) counts as a step of its own, so a
curve whose first event falls in [0, 1) puts at least two values into
bin 0, and even a single draw leaves a spread there.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

import numpy as np
from numpy.typing import NDArray

from pysurvppc.core.exceptions import (
    NumericalError,
    NumericRangeError,
    ValidationError,
)
from pysurvppc.ppc._common import ReplicateOutcome
from pysurvppc.ppc._quantile import r_quantile
from pysurvppc.simulation._common import ParameterDraw
from pysurvppc.simulation.policies import CensoringPolicy
from pysurvppc.survival._km import product_limit


def flatten_curve(
    time: NDArray,
    survival: NDArray,
) -> dict[int, list[float]]:
    """Discretize one KM curve to {time_bin: [survival, ...]}.

    The anchor (0, 1) is prepended, so bin 0 always holds a 1.0 and a
    curve without events contributes exactly {0: [1.0]}.
    """
    bins = np.floor(np.concatenate(([0.0], time))).astype(np.int64)
    values = np.concatenate(([1.0], survival))

    out: dict[int, list[float]] = {}
    for b, v in zip(bins.tolist(), values.tolist()):
        out.setdefault(b, []).append(v)
    return out


def merge_bins(
    partials: Iterable[Mapping[int, list[float]]],
) -> dict[int, list[float]]:
    """Concatenate partial bin maps.

    Merge order only changes the order of values inside a bin, which the
    reduction does not depend on.
    """
    merged: dict[int, list[float]] = {}
    for partial in partials:
        for b, values in partial.items():
            merged.setdefault(b, []).extend(values)
    return merged


def reduce_bins(
    bins: Mapping[int, list[float]],
    conf_level: float,
    quantile_type: int = 7,
) -> tuple[NDArray, NDArray, NDArray, NDArray, NDArray, NDArray]:
    """Per-bin mean, median, lower and upper quantile.

    Returns
    -------
    (time_bin, mean, median, lower, upper, n_values), ascending by bin.
    lower and upper are the (1-L)/2 and 1-(1-L)/2 quantiles.
    """
    tail = (1.0 - conf_level) / 2.0
    probs = np.array([0.5, tail, 1.0 - tail])

    keys = sorted(bins)
    B = len(keys)
    time_bin = np.array(keys, dtype=np.int64)
    mean = np.empty(B, dtype=np.float64)
    median = np.empty(B, dtype=np.float64)
    lower = np.empty(B, dtype=np.float64)
    upper = np.empty(B, dtype=np.float64)
    n_values = np.empty(B, dtype=np.int64)

    for i, b in enumerate(keys):
        values = np.sort(np.asarray(bins[b], dtype=np.float64))
        mean[i] = np.mean(values)
        median[i], lower[i], upper[i] = r_quantile(values, probs, quantile_type)
        n_values[i] = len(values)

    # Guard the [0, 1] range against round-off in the mean
    np.clip(mean, 0.0, 1.0, out=mean)

    return time_bin, mean, median, lower, upper, n_values


def run_replicate(
    index: int,
    draw: ParameterDraw,
    policy: CensoringPolicy,
    rng: np.random.Generator,
) -> ReplicateOutcome:
    """Simulate and estimate one replicate, isolating per-draw failures.

    Numerical problems (an unrepresentable Weibull scale, an overflowing
    sample) and invalid parameters that slipped past the design drop
    this draw only; anything else propagates.
    """
    try:
        data = policy.simulate(draw.shape, draw.location, rng)
        time, _, _, survival = product_limit(data.time, data.event)
    except (NumericalError, ValidationError, ArithmeticError) as e:
        if isinstance(e, NumericRangeError):
            e.draw_index = index
        return ReplicateOutcome(
            index=index,
            error=f"{type(e).__name__}: {e}",
            exception=e,
        )

    return ReplicateOutcome(
        index=index,
        bins=flatten_curve(time, survival),
        n_events=data.n_events,
        n_censored=data.n_censored,
    )
