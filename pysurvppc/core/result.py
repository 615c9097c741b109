"""
Generic result container for all pysurvppc computations.

The Result class provides a standardized envelope that all domain-specific
results use. This enables shared tooling for timing, diagnostics,
reproducibility and display while allowing each subpackage to define its
own parameter structure (KMParams, BandParams, PosteriorParams).

Design decisions:
    - Generic over parameter payload P for type safety
    - info dict for flexible metadata (policy, seed, draws used)
    - timing is optional (don't burden unit tests)
    - Immutable (frozen=True) for reproducibility
"""

from dataclasses import dataclass, field
from typing import TypeVar, Generic, Any

import numpy as np
import scipy

P = TypeVar('P')  # Parameter payload type


def _default_provenance() -> dict[str, str]:
    """Library versions that produced a result."""
    from pysurvppc import __version__

    return {
        'pysurvppc_version': __version__,
        'numpy_version': np.__version__,
        'scipy_version': scipy.__version__,
    }


@dataclass(frozen=True)
class Result(Generic[P]):
    """
    Immutable result envelope for statistical computations.

    Type Parameters:
        P: The domain-specific parameter payload type

    Attributes:
        params: Domain-specific parameters (curve, bands, draws)
        info: Structured metadata (method, policy, seed, draw counts)
        timing: Execution timing breakdown, or None if not measured
        backend_name: Identifier of the backend that produced this result
        warnings: Non-fatal issues encountered during computation
        provenance: Library versions, filled in automatically

    Examples:
        >>> Result(
        ...     params=KMParams(...),
        ...     info={'method': 'Kaplan-Meier'},
        ...     timing={'total_seconds': 0.01},
        ...     backend_name='cpu_km'
        ... )

        >>> Result(
        ...     params=BandParams(...),
        ...     info={'draws_requested': 200, 'draws_used': 198},
        ...     timing={'total_seconds': 0.5, 'replicates': 0.45},
        ...     backend_name='serial_replicates',
        ...     warnings=('dropped 2 of 200 draws',),
        ... )
    """
    params: P
    info: dict[str, Any]
    timing: dict[str, float] | None
    backend_name: str
    warnings: tuple[str, ...] = field(default_factory=tuple)
    provenance: dict[str, str] = field(default_factory=_default_provenance)

    def has_warning(self, substring: str) -> bool:
        """Check if any warning contains the given substring."""
        return any(substring in w for w in self.warnings)
