"""
cloudsched/shared/errors.py
───────────────────────────
Exception types raised by the scheduling core.

Caller contract
───────────────
Nothing in the core retries or swallows these. The core is deterministic
given its inputs and seed, so retrying would reproduce the same failure.
They propagate to whoever drove the call; the CLI is the only layer that
catches SchedulingError, logs it and exits non-zero.

The input-shaped errors also subclass ValueError so callers that only
care about "bad argument" can catch that instead.
"""

from __future__ import annotations

from typing import Optional


class SchedulingError(Exception):
    """Base class for every error raised by the scheduling core."""


class InvalidInputError(SchedulingError, ValueError):
    """
    Raised when a policy or runner receives input it cannot work with.

    Typical cause: an empty resource list (nothing to assign jobs to).
    """


class InvalidResourceError(SchedulingError, ValueError):
    """
    Raised when a candidate references a resource index that does not
    exist, or a resource reports a non-positive speed.

    Rejected BEFORE any evaluation happens, so no partial fitness value
    ever leaks out.

    Attributes:
        index:       Offending resource index (None if the speed was the problem).
        n_resources: Size of the resource list the index was checked against.
    """

    def __init__(
        self,
        message: str,
        index: Optional[int] = None,
        n_resources: Optional[int] = None,
    ) -> None:
        self.index = index
        self.n_resources = n_resources
        super().__init__(message)


class EmptyWorkloadError(SchedulingError, ValueError):
    """
    Raised when a makespan is requested for zero jobs.

    Fitness is undefined over an empty workload. Policies never raise
    this: they short-circuit to an empty Assignment instead.
    """

    def __init__(self, message: str = "") -> None:
        super().__init__(message or "Fitness is undefined for an empty workload.")


class EmptyCompletionSetError(SchedulingError):
    """Raised when metrics are requested over zero completion records."""

    def __init__(self, message: str = "") -> None:
        super().__init__(
            message or "Cannot compute run metrics: no completion records."
        )


class ZeroMakespanError(SchedulingError):
    """
    Raised when every completion record finishes at t=0.

    Throughput and utilisation both divide by makespan; we fail loudly
    instead of returning Inf or NaN.
    """

    def __init__(self, n_records: int, message: str = "") -> None:
        self.n_records = n_records
        super().__init__(
            message
            or f"Cannot compute run metrics: makespan is 0 across {n_records} record(s)."
        )


class AssignmentError(SchedulingError):
    """
    Raised when an Assignment is not a total mapping over the job set, or
    references a resource_id that is not in the resource list.

    Attributes:
        missing_jobs:      job_ids with no entry in the assignment.
        unknown_resources: resource_ids referenced but not present.
    """

    def __init__(
        self,
        missing_jobs: Optional[list] = None,
        unknown_resources: Optional[list] = None,
    ) -> None:
        self.missing_jobs = sorted(missing_jobs or [])
        self.unknown_resources = sorted(unknown_resources or [])
        super().__init__(
            f"Invalid assignment: {len(self.missing_jobs)} unassigned job(s) "
            f"{self.missing_jobs[:5]}, unknown resource id(s) "
            f"{self.unknown_resources[:5]}."
        )
