"""
CPU backends for posterior-predictive replicate aggregation.

SerialReplicateBackend: one replicate after another in the calling thread.
ThreadedReplicateBackend: replicates on a thread pool; partial bin maps
are merged at the join barrier.

Every draw d uses the substream default_rng([seed, d]) and outcomes are
merged in draw order, so both backends return identical bands for the
same design.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor

import numpy as np

from pysurvppc.core.compute.timing import Timer
from pysurvppc.core.exceptions import NumericRangeError
from pysurvppc.core.result import Result
from pysurvppc.ppc._aggregate import merge_bins, reduce_bins, run_replicate
from pysurvppc.ppc._common import BandParams, ReplicateOutcome
from pysurvppc.ppc.design import PPCDesign


class _ReplicateBackend(ABC):
    """Shared reduction; subclasses decide how replicates are scheduled."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend name recorded in Result.backend_name."""

    @abstractmethod
    def _run(self, design: PPCDesign) -> list[ReplicateOutcome]:
        """One outcome per draw, in draw order."""

    def solve(self, design: PPCDesign) -> Result[BandParams]:
        """Run all replicates and return Result[BandParams].

        Raises:
            NumericRangeError: If every draw had to be dropped.
        """
        timer = Timer()
        timer.start()

        with timer.section('replicates'):
            outcomes = self._run(design)

        kept = [o for o in outcomes if o.ok]
        failed = [o for o in outcomes if not o.ok]
        dropped = {o.index: o.error for o in failed}

        if not kept:
            raise NumericRangeError(
                f"all {design.n_draws} posterior draws failed; first "
                f"error: {failed[0].error}",
                draw_index=failed[0].index,
            ) from failed[0].exception

        with timer.section('reduction'):
            merged = merge_bins(o.bins for o in kept)
            time_bin, mean, median, lower, upper, n_values = reduce_bins(
                merged, design.conf_level, design.quantile_type,
            )

        timer.stop()

        warnings_list: list[str] = []
        if dropped:
            warnings_list.append(
                f"dropped {len(dropped)} of {design.n_draws} posterior "
                f"draws ({len(dropped) / design.n_draws:.1%}); "
                f"first error: {next(iter(dropped.values()))}"
            )

        params = BandParams(
            time_bin=time_bin,
            mean=mean,
            median=median,
            lower=lower,
            upper=upper,
            n_values=n_values,
            conf_level=design.conf_level,
            draws_requested=design.n_draws,
            draws_used=len(kept),
            dropped=dropped,
            mean_events=float(np.mean([o.n_events for o in kept])),
            mean_censored=float(np.mean([o.n_censored for o in kept])),
        )

        return Result(
            params=params,
            info={
                'censoring_policy': design.policy.name,
                **design.policy.metadata,
                'seed': design.seed,
                'quantile_type': design.quantile_type,
                'n_jobs': design.n_jobs,
                'draws_requested': design.n_draws,
                'draws_used': len(kept),
            },
            timing=timer.result(),
            backend_name=self.name,
            warnings=tuple(warnings_list),
        )


class SerialReplicateBackend(_ReplicateBackend):
    """Replicates in a plain loop."""

    @property
    def name(self) -> str:
        return 'serial_replicates'

    def _run(self, design: PPCDesign) -> list[ReplicateOutcome]:
        return [
            run_replicate(i, draw, design.policy, design.rng_for(i))
            for i, draw in enumerate(design.draws)
        ]


class ThreadedReplicateBackend(_ReplicateBackend):
    """
    Replicates on a ThreadPoolExecutor.

    Draws share no mutable state: each task builds its own Generator and
    returns a fresh partial map. executor.map yields in submission
    order, which keeps the merge identical to the serial backend.
    """

    def __init__(self, n_jobs: int):
        self._n_jobs = n_jobs

    @property
    def name(self) -> str:
        return 'threaded_replicates'

    def _run(self, design: PPCDesign) -> list[ReplicateOutcome]:
        def task(i: int) -> ReplicateOutcome:
            return run_replicate(
                i, design.draws[i], design.policy, design.rng_for(i),
            )

        with ThreadPoolExecutor(max_workers=self._n_jobs) as pool:
            return list(pool.map(task, range(design.n_draws)))
