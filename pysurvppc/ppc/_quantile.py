"""
R quantile types on top of numpy.

numpy.quantile implements all nine Hyndman & Fan (1996) sample quantile
definitions under descriptive method names; this maps R's integer
`type` argument onto them. Type 7 (linear interpolation between order
statistics) is R's default and the one the bands use unless told
otherwise.

Reference:
    Hyndman, R.J. and Fan, Y. (1996) "Sample Quantiles in Statistical
    Packages", The American Statistician, 50(4), 361-365.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from pysurvppc.core.exceptions import ConfigurationError


R_QUANTILE_METHODS = {
    1: 'inverted_cdf',
    2: 'averaged_inverted_cdf',
    3: 'closest_observation',
    4: 'interpolated_inverted_cdf',
    5: 'hazen',
    6: 'weibull',
    7: 'linear',
    8: 'median_unbiased',
    9: 'normal_unbiased',
}


def check_quantile_type(qtype) -> int:
    if isinstance(qtype, bool) or qtype not in R_QUANTILE_METHODS:
        raise ConfigurationError(
            f"quantile_type must be 1-9, got {qtype!r}",
            parameter="quantile_type", value=qtype,
        )
    return int(qtype)


def r_quantile(x: NDArray, probs: NDArray, qtype: int = 7) -> NDArray:
    """
    Compute quantiles matching R's quantile(x, probs, type=qtype).

    Parameters
    ----------
    x : NDArray
        1D array with no NaN values, at least one element.
    probs : NDArray
        Probabilities in [0, 1].
    qtype : int
        R quantile type 1-9.

    Returns
    -------
    NDArray
        One quantile per probability. A single-element x returns that
        element for every probability.
    """
    qtype = check_quantile_type(qtype)
    x = np.asarray(x, dtype=np.float64)
    probs = np.asarray(probs, dtype=np.float64)
    if len(x) == 1:
        return np.full(probs.shape, x[0])
    return np.quantile(x, probs, method=R_QUANTILE_METHODS[qtype])
