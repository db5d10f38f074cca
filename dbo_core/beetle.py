"""
dbo_core/beetle.py
──────────────────
One beetle move: builds a mutated copy of one candidate.

What does a beetle do?
──────────────────────
Each candidate in the population is a dung beetle's current position.
Once per sweep every beetle proposes a new position gene by gene:

  • Follow the best ("ball-rolling toward the light"):
        with probability P_FOLLOW, copy the gene from the global best.
  • Local search ("breeding / foraging"):
        otherwise, with probability P_LOCAL, draw a fresh uniform
        resource index.
  • Stay:
        otherwise, keep the gene unchanged.

Nested, not flat
────────────────
The second test is only consulted when the first fails. The effective
per-gene probabilities are therefore

    follow  = P_FOLLOW                          = 0.20
    local   = (1 − P_FOLLOW) × P_LOCAL          = 0.56
    stay    = (1 − P_FOLLOW) × (1 − P_LOCAL)    = 0.24

which is NOT the same as one three-way draw with weights
(P_FOLLOW, P_LOCAL, 1 − P_FOLLOW − P_LOCAL). The masks in move() keep the
two-stage structure explicit.

Draw order
──────────
Per move, three vectors of length n_jobs are drawn in this order:
  1. u_follow    ~ U[0, 1)          (first-stage test)
  2. u_local     ~ U[0, 1)          (second-stage test, independent)
  3. replacement ~ U{0..n_res − 1}  (new index for local search)
Drawing whole vectors keeps the per-sweep cost in C while the number and
order of draws per move stays fixed, so a seed fixes the trajectory.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

# ── DBO move probabilities ────────────────────────────────────────────────────

P_FOLLOW: float = 0.2
"""Probability a gene is copied from the (pre-sweep) global best."""

P_LOCAL: float = 0.7
"""Probability a gene that did NOT follow the best is re-drawn at random."""


class Beetle:
    """
    Stateless move operator shared by every candidate in a run.

    Usage:
        beetle  = Beetle(n_resources, p_follow=0.2, p_local=0.7)
        mutated = beetle.move(population.row(k), best_genes, rng)

    The input arrays are never written to; move() always returns a new
    array owned by the caller.
    """

    def __init__(
        self,
        n_resources: int,
        p_follow: float = P_FOLLOW,
        p_local: float = P_LOCAL,
    ) -> None:
        if n_resources < 1:
            raise ValueError(f"Beetle requires n_resources≥1, got {n_resources}")
        self._n_resources = n_resources
        self._p_follow = p_follow
        self._p_local = p_local

    def move(
        self,
        genes: NDArray[np.int64],
        best_genes: NDArray[np.int64],
        rng: np.random.Generator,
    ) -> NDArray[np.int64]:
        """
        Return a mutated copy of `genes`.

        Args:
            genes:      Current candidate (not modified).
            best_genes: Global best as of the START of this sweep.
            rng:        Caller-supplied pseudorandom source.

        Returns:
            New int64 array of the same shape as `genes`.
        """
        n = genes.shape[0]
        u_follow = rng.random(n)
        u_local = rng.random(n)
        replacement = rng.integers(0, self._n_resources, size=n, dtype=np.int64)

        follow = u_follow < self._p_follow
        local = ~follow & (u_local < self._p_local)

        mutated = genes.copy()
        mutated[follow] = best_genes[follow]
        mutated[local] = replacement[local]
        return mutated

    def __repr__(self) -> str:
        return (
            f"Beetle(n_resources={self._n_resources}, "
            f"p_follow={self._p_follow}, p_local={self._p_local})"
        )
