"""
cloudsched/control_plane/scheduler.py
─────────────────────────────────────
The assignment layer: decides WHICH resource every job runs on.

Interchangeable policies implement one contract,
    policy.assign(jobs, resources, rng) -> Assignment

1. RoundRobinPolicy
     Deterministic baseline. Job at position i goes to the resource at
     position i mod n_resources. Balances job COUNT to within ±1 per
     resource and ignores speed completely. Consumes no randomness.

     DefaultBrokerPolicy ("default") is the same cyclic plan under the
     name of the broker's unscheduled mode.

2. MetaheuristicPolicy
     Runs the Dung-Beetle Optimizer (dbo_core) to minimise makespan.
     Stochastic; every draw comes from the rng passed into assign(),
     never from global state, so the caller controls reproducibility.

Shared edge cases
─────────────────
  • Zero jobs       → {} (short-circuit, nothing is evaluated).
  • Zero resources  → InvalidInputError (with at least one job).
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional, Sequence, Type

import numpy as np

from cloudsched.shared.errors import InvalidInputError
from cloudsched.shared.models import Assignment, Job, Resource
from dbo_core.optimizer import DBOConfig, DungBeetleOptimizer

logger = logging.getLogger(__name__)


class AssignmentPolicy(ABC):
    """Common contract for every job → resource assignment policy."""

    name: str = "abstract"

    def assign(
        self,
        jobs: Sequence[Job],
        resources: Sequence[Resource],
        rng: np.random.Generator,
    ) -> Assignment:
        """
        Produce a total Assignment for `jobs` over `resources`.

        Args:
            jobs:      Workload in the order the policy should see it.
            resources: Candidate resources. Positional order is significant.
            rng:       Pseudorandom source for stochastic policies.
                       Deterministic policies must not draw from it.

        Returns:
            Dict[job_id, resource_id], one entry per job.

        Raises:
            InvalidInputError: if jobs is non-empty and resources is empty.
        """
        if not jobs:
            return {}
        if not resources:
            raise InvalidInputError(
                f"{self.name}: cannot assign {len(jobs)} job(s) to zero resources."
            )
        return self._assign(jobs, resources, rng)

    @abstractmethod
    def _assign(
        self,
        jobs: Sequence[Job],
        resources: Sequence[Resource],
        rng: np.random.Generator,
    ) -> Assignment:
        """Policy body. Inputs are guaranteed non-empty."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class RoundRobinPolicy(AssignmentPolicy):
    """Cyclic assignment by position: job i → resource i mod n."""

    name = "round-robin"

    def _assign(
        self,
        jobs: Sequence[Job],
        resources: Sequence[Resource],
        rng: np.random.Generator,
    ) -> Assignment:
        n_resources = len(resources)
        plan: Assignment = {
            job.job_id: resources[i % n_resources].resource_id
            for i, job in enumerate(jobs)
        }
        logger.info(
            "%s: %d jobs → %d resources (cyclic assignment)",
            self.name, len(jobs), n_resources,
        )
        return plan


class DefaultBrokerPolicy(RoundRobinPolicy):
    """
    No explicit scheduling: the broker's own binding.

    A broker left to itself binds job i to VM i mod n, so this is the
    round-robin plan under the name experiments report it as.
    """

    name = "default"


class MetaheuristicPolicy(AssignmentPolicy):
    """
    Makespan-minimising assignment via the Dung-Beetle Optimizer.

    Attributes:
        config:         DBOConfig used for every assign() call.
        last_optimizer: The optimizer from the most recent call, kept for
                        diagnostics (best_fitness, history, last_run_ms).
                        A fresh optimizer and population are built per call.
    """

    name = "dbo"

    def __init__(self, config: Optional[DBOConfig] = None) -> None:
        self.config = config or DBOConfig()
        self.last_optimizer: Optional[DungBeetleOptimizer] = None

    def _assign(
        self,
        jobs: Sequence[Job],
        resources: Sequence[Resource],
        rng: np.random.Generator,
    ) -> Assignment:
        optimizer = DungBeetleOptimizer(jobs, resources, self.config)
        plan = optimizer.run(rng)
        self.last_optimizer = optimizer

        logger.info(
            "dbo: optimized makespan = %.2f (initial %.2f, %d jobs → %d resources, %.1fms)",
            optimizer.best_fitness, optimizer.initial_best_fitness,
            len(jobs), len(resources), optimizer.last_run_ms,
        )
        return plan

    def __repr__(self) -> str:
        return (
            f"MetaheuristicPolicy(P={self.config.population_size}, "
            f"T={self.config.max_iterations}, p_local={self.config.p_local}, "
            f"p_follow={self.config.p_follow})"
        )


POLICIES: Dict[str, Type[AssignmentPolicy]] = {
    RoundRobinPolicy.name: RoundRobinPolicy,
    DefaultBrokerPolicy.name: DefaultBrokerPolicy,
    MetaheuristicPolicy.name: MetaheuristicPolicy,
}


def get_policy(name: str, dbo_config: Optional[DBOConfig] = None) -> AssignmentPolicy:
    """
    Build a policy by its registry name.

    Raises:
        InvalidInputError: for an unknown name.
    """
    if name == MetaheuristicPolicy.name:
        return MetaheuristicPolicy(dbo_config)
    if name in POLICIES:
        return POLICIES[name]()
    raise InvalidInputError(
        f"Unknown policy {name!r}. Choose one of: {', '.join(sorted(POLICIES))}."
    )
