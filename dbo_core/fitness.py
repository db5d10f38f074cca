"""
dbo_core/fitness.py
───────────────────
The fitness model: how good is one candidate assignment?

What is fitness here?
─────────────────────
Single objective, lower is better: the MAKESPAN of the assignment.

  exec_time(job i on resource r) = length_i / speed_r
  load_r                         = Σ exec_time over jobs assigned to r
  makespan                       = max_r load_r

Every resource processes its queue back-to-back, so the slowest resource
decides when the whole workload is done. Minimising the max load pushes
work off the bottleneck and onto faster or idler resources.

Candidate encoding
──────────────────
A candidate is a 1-D integer array `genes` of length n_jobs:
  genes[i] = positional index (into the resource list) of job i's resource.
The evaluator never sees ids; translation happens once at the end of the
optimizer run.

NumPy design choices
────────────────────
  • lengths and speeds are converted to float64 arrays once, in __init__.
  • np.bincount(genes, weights=...) sums per-resource load in one C loop.
    Summation order is fixed by job order, so repeated calls on the same
    genes return bit-identical values (pure function, no caching).
"""

from __future__ import annotations

from typing import List, Sequence

import numpy as np
from numpy.typing import NDArray

from cloudsched.shared.errors import (
    EmptyWorkloadError,
    InvalidInputError,
    InvalidResourceError,
)
from cloudsched.shared.models import Assignment, Job, Resource


class FitnessEvaluator:
    """
    Computes makespan for candidate gene arrays over a fixed job/resource set.

    Usage:
        evaluator = FitnessEvaluator(jobs, resources)
        fit = evaluator(genes)          # float, lower is better

    Attributes:
        n_jobs:      Number of genes a candidate must have.
        n_resources: Exclusive upper bound for every gene value.
    """

    def __init__(self, jobs: Sequence[Job], resources: Sequence[Resource]) -> None:
        """
        Pre-compute the length and speed vectors.

        Raises:
            EmptyWorkloadError:   if jobs is empty (makespan undefined).
            InvalidInputError:    if resources is empty.
            InvalidResourceError: if any resource speed is not > 0.
        """
        if not jobs:
            raise EmptyWorkloadError()
        if not resources:
            raise InvalidInputError("Fitness evaluation requires at least one resource.")

        self._lengths: NDArray[np.float64] = np.array(
            [job.length for job in jobs], dtype=np.float64
        )
        self._speeds: NDArray[np.float64] = np.array(
            [res.speed for res in resources], dtype=np.float64
        )
        # Pydantic already enforces mips > 0, but model_construct() skips
        # validation, so re-check the one value we divide by.
        if np.any(self._speeds <= 0.0):
            bad = int(np.argmax(self._speeds <= 0.0))
            raise InvalidResourceError(
                f"Resource at position {bad} has non-positive speed "
                f"{self._speeds[bad]!r}.",
                n_resources=len(resources),
            )

        self.n_jobs = len(jobs)
        self.n_resources = len(resources)

    def validate(self, genes: NDArray[np.int64]) -> None:
        """
        Reject a candidate whose shape or gene values are out of range.

        Raises:
            InvalidResourceError: if len(genes) != n_jobs or any gene is
                                  outside [0, n_resources).
        """
        if genes.shape != (self.n_jobs,):
            raise InvalidResourceError(
                f"Candidate has shape {genes.shape}, expected ({self.n_jobs},).",
                n_resources=self.n_resources,
            )
        out_of_range = (genes < 0) | (genes >= self.n_resources)
        if np.any(out_of_range):
            bad = int(genes[int(np.argmax(out_of_range))])
            raise InvalidResourceError(
                f"Resource index {bad} outside [0, {self.n_resources}).",
                index=bad,
                n_resources=self.n_resources,
            )

    def loads(self, genes: NDArray[np.int64]) -> NDArray[np.float64]:
        """Per-resource busy time for this candidate, shape (n_resources,)."""
        genes = np.asarray(genes)
        self.validate(genes)
        exec_times = self._lengths / self._speeds[genes]
        return np.bincount(genes, weights=exec_times, minlength=self.n_resources)

    def __call__(self, genes: NDArray[np.int64]) -> float:
        """Makespan of the candidate: max per-resource load."""
        return float(self.loads(genes).max())

    def __repr__(self) -> str:
        return f"FitnessEvaluator(jobs={self.n_jobs}, resources={self.n_resources})"


def assignment_to_genes(
    assignment: Assignment,
    jobs: Sequence[Job],
    resources: Sequence[Resource],
) -> NDArray[np.int64]:
    """
    Translate an id-keyed Assignment into a positional gene array.

    Raises:
        InvalidResourceError: if a job is missing from the assignment or
                              maps to a resource_id not in `resources`.
    """
    position = {res.resource_id: idx for idx, res in enumerate(resources)}
    genes: List[int] = []
    for job in jobs:
        rid = assignment.get(job.job_id)
        if rid is None or rid not in position:
            raise InvalidResourceError(
                f"Job {job.job_id} maps to unknown resource {rid!r}.",
                index=rid,
                n_resources=len(resources),
            )
        genes.append(position[rid])
    return np.array(genes, dtype=np.int64)


def evaluate_assignment(
    assignment: Assignment,
    jobs: Sequence[Job],
    resources: Sequence[Resource],
) -> float:
    """
    Makespan of an id-keyed Assignment (e.g. the output of a policy).

    Convenience wrapper: builds a FitnessEvaluator, translates ids to
    positions, evaluates once.
    """
    evaluator = FitnessEvaluator(jobs, resources)
    return evaluator(assignment_to_genes(assignment, jobs, resources))
