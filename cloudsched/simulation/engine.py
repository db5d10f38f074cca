"""
cloudsched/simulation/engine.py
───────────────────────────────
Reference execution engines: "run" an Assignment and report CompletionRecords.

What this is
────────────
The optimizer never executes anything. Something has to take the
Assignment, play it out on the resources, and hand back per-job timings
for the metrics aggregator. In a full deployment that is an external
discrete-event simulator. These two engines are small, deterministic
stand-ins with the same contract so the experiment runner works
end-to-end and tests have hand-checkable numbers.

Both engines treat every job as submitted at t=0 and every resource as
independent. No network, power or failure modelling.

1. TimeSharedEngine (default)
     Every job on a resource starts at t=0 and the resource's speed is
     split equally across its unfinished jobs (processor sharing). When a
     job finishes, the survivors speed up. Waiting time is 0.

       Example, speed 10, lengths [10, 30]:
         both run at 5 MI/s  → job A done at t=2 (job B has 20 left)
         job B alone at 10   → done at t=2 + 2 = 4

2. SpaceSharedEngine
     Jobs on a resource run one at a time in job-list order.
       start_k  = finish_{k−1}        (0 for the first)
       finish_k = start_k + length_k / speed
       waiting  = start_k

Both return records in job-list order.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Dict, List, Sequence, Type

from cloudsched.shared.errors import AssignmentError, InvalidInputError
from cloudsched.shared.models import Assignment, CompletionRecord, Job, Resource

logger = logging.getLogger(__name__)


class ExecutionEngine(ABC):
    """Contract: execute(jobs, resources, assignment) → List[CompletionRecord]."""

    name: str = "abstract"

    def execute(
        self,
        jobs: Sequence[Job],
        resources: Sequence[Resource],
        assignment: Assignment,
    ) -> List[CompletionRecord]:
        """
        Play out the assignment and return one record per job (job order).

        Raises:
            AssignmentError: if a job is unassigned or mapped to an unknown resource.
        """
        by_id: Dict[int, Resource] = {res.resource_id: res for res in resources}
        queues: Dict[int, List[Job]] = defaultdict(list)
        missing: List[int] = []
        unknown: List[int] = []
        for job in jobs:
            rid = assignment.get(job.job_id)
            if rid is None:
                missing.append(job.job_id)
            elif rid not in by_id:
                unknown.append(rid)
            else:
                queues[rid].append(job)
        if missing or unknown:
            raise AssignmentError(missing_jobs=missing, unknown_resources=unknown)

        timings: Dict[int, CompletionRecord] = {}
        for rid, queue in queues.items():
            for record in self._run_queue(by_id[rid], queue):
                timings[record.job_id] = record

        logger.debug(
            "%s: executed %d jobs on %d busy resources",
            self.name, len(jobs), len(queues),
        )
        return [timings[job.job_id] for job in jobs]

    @abstractmethod
    def _run_queue(self, resource: Resource, queue: List[Job]) -> List[CompletionRecord]:
        """Timings for the jobs bound to one resource, in any order."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class TimeSharedEngine(ExecutionEngine):
    """Processor sharing: all jobs on a resource run concurrently from t=0."""

    name = "time-shared"

    def _run_queue(self, resource: Resource, queue: List[Job]) -> List[CompletionRecord]:
        speed = resource.speed
        # Shortest remaining work finishes first; stable sort keeps job order on ties.
        ordered = sorted(queue, key=lambda job: job.length)

        records: List[CompletionRecord] = []
        clock = 0.0
        work_done = 0.0          # MI completed so far by every still-active job
        active = len(ordered)
        for job in ordered:
            clock += (job.length - work_done) * active / speed
            work_done = job.length
            active -= 1
            records.append(
                CompletionRecord(
                    job_id=job.job_id,
                    resource_id=resource.resource_id,
                    actual_cpu_time=clock,
                    waiting_time=0.0,
                    exec_start_time=0.0,
                    finish_time=clock,
                )
            )
        return records


class SpaceSharedEngine(ExecutionEngine):
    """FIFO: one job at a time per resource, in job-list order."""

    name = "space-shared"

    def _run_queue(self, resource: Resource, queue: List[Job]) -> List[CompletionRecord]:
        speed = resource.speed
        records: List[CompletionRecord] = []
        clock = 0.0
        for job in queue:
            run_time = job.length / speed
            records.append(
                CompletionRecord(
                    job_id=job.job_id,
                    resource_id=resource.resource_id,
                    actual_cpu_time=run_time,
                    waiting_time=clock,
                    exec_start_time=clock,
                    finish_time=clock + run_time,
                )
            )
            clock += run_time
        return records


ENGINES: Dict[str, Type[ExecutionEngine]] = {
    TimeSharedEngine.name: TimeSharedEngine,
    SpaceSharedEngine.name: SpaceSharedEngine,
}


def get_engine(name: str) -> ExecutionEngine:
    """Build an engine by its registry name. Raises InvalidInputError if unknown."""
    try:
        return ENGINES[name]()
    except KeyError:
        raise InvalidInputError(
            f"Unknown engine {name!r}. Choose one of: {', '.join(sorted(ENGINES))}."
        ) from None
