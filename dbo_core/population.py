"""
dbo_core/population.py
──────────────────────
The population: the optimizer's ordered set of candidate assignments plus
the tracked global best.

Layout
──────
  Shape : (population_size, n_jobs), dtype int64
  genes[k][i] : resource index assigned to job i by candidate k.

Row k is owned by population slot k. Rows are never aliased: every read
that leaves this class is either a read-only view (row()) used to build a
mutated copy, or an explicit .copy() (best_genes, snapshot()).

Global-best rule
────────────────
The best candidate is found by scanning rows in stored order and keeping
the first one whose fitness is STRICTLY lower than the best so far. Ties
therefore go to the earliest slot, and an equal-fitness candidate never
displaces the current best. The same rule is used at initialisation and
at every refresh, so the outcome depends only on population order, never
on hashing or sort stability.

The best genes are stored as a private copy (a snapshot). Later in-place
improvements to the slot it came from do not move the snapshot; only
refresh_best() does.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from dbo_core.fitness import FitnessEvaluator


class Population:
    """
    P candidate gene arrays with a first-found, strictly-better global best.

    Used by:
        DungBeetleOptimizer.run() → row(), commit(), refresh_best() each sweep.
        Tests                     → snapshot(), best_genes, best_fitness.

    Thread safety:
        Not thread-safe. One optimizer run owns one Population and is
        discarded afterwards; nothing is shared across runs.
    """

    def __init__(
        self,
        size: int,
        evaluator: FitnessEvaluator,
        rng: np.random.Generator,
    ) -> None:
        """
        Draw `size` random candidates and select the initial global best.

        Every gene is drawn uniformly from [0, n_resources). Draws are taken
        candidate by candidate (row-major), so the seed alone fixes the
        initial population.

        Args:
            size:      Number of candidates P. Must be ≥ 1.
            evaluator: Fitness model for this job/resource set.
            rng:       Caller-supplied pseudorandom source.

        Raises:
            ValueError: if size < 1.
        """
        if size < 1:
            raise ValueError(f"Population requires size≥1, got size={size}")

        self._size = size
        self._evaluator = evaluator
        self._genes: NDArray[np.int64] = rng.integers(
            0, evaluator.n_resources, size=(size, evaluator.n_jobs), dtype=np.int64
        )

        self._best_fitness: float = float("inf")
        self._best_index: int = -1
        self._best_genes: NDArray[np.int64] = self._genes[0].copy()
        self.refresh_best()

    # ── Core operations ────────────────────────────────────────────────────────

    def row(self, index: int) -> NDArray[np.int64]:
        """
        Read-only view of candidate `index`.

        Callers build their mutated copy from this; writing back goes
        through commit().
        """
        view = self._genes[index]
        view.flags.writeable = False
        return view

    def fitness(self, index: int) -> float:
        """Recompute the fitness of candidate `index` (no caching)."""
        return self._evaluator(self._genes[index])

    def commit(self, index: int, genes: NDArray[np.int64]) -> None:
        """Overwrite candidate `index` in place with `genes`."""
        self._genes[index, :] = genes

    def refresh_best(self) -> bool:
        """
        Rescan the population and update the global best.

        A candidate replaces the current best only if its fitness is
        strictly lower; the first such candidate in stored order wins
        ties among themselves.

        Returns:
            True if the global best changed.
        """
        improved = False
        for index in range(self._size):
            fit = self._evaluator(self._genes[index])
            if fit < self._best_fitness:
                self._best_fitness = fit
                self._best_index = index
                self._best_genes = self._genes[index].copy()
                improved = True
        return improved

    # ── Inspection & testing ───────────────────────────────────────────────────

    def snapshot(self) -> NDArray[np.int64]:
        """Deep copy of every candidate, shape (size, n_jobs)."""
        return self._genes.copy()

    @property
    def best_genes(self) -> NDArray[np.int64]:
        """Copy of the global-best candidate's genes."""
        return self._best_genes.copy()

    @property
    def best_fitness(self) -> float:
        return self._best_fitness

    @property
    def best_index(self) -> int:
        """Slot the current best was copied from at its last refresh."""
        return self._best_index

    @property
    def size(self) -> int:
        return self._size

    def __len__(self) -> int:
        return self._size

    def __repr__(self) -> str:
        return (
            f"Population(size={self._size}, n_jobs={self._evaluator.n_jobs}, "
            f"best_fitness={self._best_fitness:.4f}, best_index={self._best_index})"
        )
