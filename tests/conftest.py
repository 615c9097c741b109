"""
pytest configuration and shared fixtures.
"""

import pytest
import numpy as np

from pysurvppc.simulation import ParameterDraw


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture
def weibull_draws(rng):
    """Fifty posterior-like draws around shape=0.8, location=-3."""
    shapes = rng.normal(0.8, 0.05, size=50)
    locations = rng.normal(-3.0, 0.2, size=50)
    return [ParameterDraw(shape=a, location=m)
            for a, m in zip(shapes.tolist(), locations.tolist())]


@pytest.fixture
def observed_data(rng):
    """A small right-censored dataset from the independent race."""
    t = np.exp(3.75) * rng.weibull(0.8, size=120)
    c = rng.exponential(100.0, size=120)
    return np.minimum(t, c), (t < c).astype(np.float64)
