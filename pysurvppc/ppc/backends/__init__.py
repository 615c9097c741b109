"""
Replicate backends for posterior-predictive aggregation.
"""

from pysurvppc.ppc.backends.cpu import (
    SerialReplicateBackend,
    ThreadedReplicateBackend,
)

__all__ = [
    "SerialReplicateBackend",
    "ThreadedReplicateBackend",
]
