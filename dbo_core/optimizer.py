"""
dbo_core/optimizer.py
─────────────────────
The DungBeetleOptimizer: drives the population through every sweep.

How the optimizer works
───────────────────────
  1. Init: draw P random candidates (Population), evaluate all, take the
     first strictly-lowest one as the global best.
  2. Repeat exactly T times (no convergence test, no early stop):
       a. Snapshot the global best. This snapshot is what every beetle
          follows for the whole sweep.
       b. For each candidate k in stored order:
            mutated = Beetle.move(candidate_k, snapshot)
            if fitness(mutated) < fitness(candidate_k): commit in place.
          Acceptance is greedy: a worse or equal move is never taken.
       c. After the full sweep, rescan the population and refresh the
          global best (strictly-less, first-found).
  3. Translate the final global best's positional genes into an
     Assignment keyed by job_id, valued by resource_id.

Why the best is frozen during a sweep
─────────────────────────────────────
Candidate k's move depends only on candidate k and the pre-sweep best.
Committing candidate k in place therefore cannot change what candidate
k+1 sees, which is the same result a double-buffered (or parallel)
sweep would give. Refreshing the best mid-sweep would make the outcome
depend on population order inside the sweep.

Monotonicity
────────────
Candidates only ever improve and the best only moves on strict
improvement, so history[t] is non-increasing in t.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional, Sequence

import numpy as np
from pydantic import BaseModel, Field

from cloudsched.shared.errors import InvalidInputError
from cloudsched.shared.models import Assignment, Job, Resource
from dbo_core.beetle import P_FOLLOW, P_LOCAL, Beetle
from dbo_core.fitness import FitnessEvaluator
from dbo_core.population import Population

logger = logging.getLogger(__name__)

# ── Optimizer hyperparameters ─────────────────────────────────────────────────

POPULATION_SIZE: int = 30
"""Number of candidates P carried through every sweep."""

MAX_ITERATIONS: int = 200
"""Number of sweeps T. The loop always runs all of them."""


class DBOConfig(BaseModel):
    """
    Tunables for one optimizer run. Defaults reproduce the reference setup.

    Fields:
        population_size → P, candidates per sweep.
        max_iterations  → T, sweeps per run. 0 returns the best initial candidate.
        p_local         → second-stage probability of a random re-draw.
        p_follow        → first-stage probability of copying the best gene.
    """
    population_size: int = Field(POPULATION_SIZE, ge=1)
    max_iterations: int = Field(MAX_ITERATIONS, ge=0)
    p_local: float = Field(P_LOCAL, ge=0.0, le=1.0)
    p_follow: float = Field(P_FOLLOW, ge=0.0, le=1.0)


class DungBeetleOptimizer:
    """
    Runs the DBO search over one job/resource set and returns an Assignment.

    Usage:
        optimizer = DungBeetleOptimizer(jobs, resources, DBOConfig())
        plan = optimizer.run(np.random.default_rng(42))

    After run():
        optimizer.best_fitness          → makespan of the returned Assignment.
        optimizer.initial_best_fitness  → best makespan before any sweep.
        optimizer.history               → best makespan after init and each sweep
                                          (length = sweeps completed + 1).
        optimizer.last_run_ms           → wall-clock time of the last run().
    """

    def __init__(
        self,
        jobs: Sequence[Job],
        resources: Sequence[Resource],
        config: Optional[DBOConfig] = None,
    ) -> None:
        """
        Raises:
            InvalidInputError:    if resources is empty.
            EmptyWorkloadError:   if jobs is empty. Policies short-circuit
                                  before reaching here.
            InvalidResourceError: if any resource speed is not > 0.
        """
        if not resources:
            raise InvalidInputError("DBO requires at least one resource.")

        self._jobs = list(jobs)
        self._resources = list(resources)
        self._config = config or DBOConfig()
        self._evaluator = FitnessEvaluator(self._jobs, self._resources)
        self._beetle = Beetle(
            len(self._resources),
            p_follow=self._config.p_follow,
            p_local=self._config.p_local,
        )

        # Populated by run()
        self.best_fitness: float = float("inf")
        self.initial_best_fitness: float = float("inf")
        self.history: List[float] = []
        self.last_run_ms: float = 0.0

    @property
    def config(self) -> DBOConfig:
        return self._config

    def run(
        self,
        rng: np.random.Generator,
        should_stop: Optional[Callable[[], bool]] = None,
    ) -> Assignment:
        """
        Execute the full search and return the best Assignment found.

        Args:
            rng:         Caller-supplied pseudorandom source. Every draw of
                         the run comes from it; the same seed and inputs
                         give a bit-identical Assignment.
            should_stop: Optional cooperative cancellation check, polled
                         once before each sweep. When it returns True the
                         run ends early with the best found so far. Never
                         consulted for anything else, so a callback that
                         always returns False leaves the output unchanged.

        Returns:
            Assignment (job_id → resource_id) covering every job.
        """
        start = time.perf_counter()

        population = Population(self._config.population_size, self._evaluator, rng)
        self.initial_best_fitness = population.best_fitness
        self.history = [population.best_fitness]

        for iteration in range(self._config.max_iterations):
            if should_stop is not None and should_stop():
                logger.warning(
                    "DBO run stopped by caller after %d of %d sweeps.",
                    iteration, self._config.max_iterations,
                )
                break

            best_snapshot = population.best_genes
            for index in range(population.size):
                mutated = self._beetle.move(population.row(index), best_snapshot, rng)
                new_fit = self._evaluator(mutated)
                old_fit = population.fitness(index)
                if new_fit < old_fit:
                    population.commit(index, mutated)

            population.refresh_best()
            self.history.append(population.best_fitness)
            logger.debug(
                "DBO sweep %d/%d: best makespan %.4f",
                iteration + 1, self._config.max_iterations, population.best_fitness,
            )

        self.best_fitness = population.best_fitness
        self.last_run_ms = (time.perf_counter() - start) * 1000.0

        best = population.best_genes
        return {
            job.job_id: self._resources[int(best[i])].resource_id
            for i, job in enumerate(self._jobs)
        }

    def __repr__(self) -> str:
        return (
            f"DungBeetleOptimizer(jobs={len(self._jobs)}, "
            f"resources={len(self._resources)}, "
            f"P={self._config.population_size}, T={self._config.max_iterations}, "
            f"last_run_ms={self.last_run_ms:.2f})"
        )
