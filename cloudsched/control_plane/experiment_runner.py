"""
cloudsched/control_plane/experiment_runner.py
─────────────────────────────────────────────
ExperimentRunner: repeats {workload → policy → execution → metrics} N times
and averages the results.

One repetition
──────────────
  1. workload_source(rng)        → (jobs, resources), fresh every time
  2. policy.assign(...)          → Assignment
  3. validate_assignment(...)    → AssignmentError if not total / unknown ids
  4. engine.execute(...)         → CompletionRecords
  5. compute_run_metrics(...)    → RunMetrics

After all repetitions, mean_metrics() averages each field independently.

Randomness
──────────
Everything stochastic in an experiment hangs off ONE integer seed:

    SeedSequence(seed).spawn(repetitions)     → one child per repetition
    child.spawn(2)                            → (workload stream, policy stream)

Repetitions never share a generator, so nothing one repetition draws can
shift the next, and changing the policy never changes the workload a
repetition sees. Rerunning with the same seed reproduces every row.

Thread safety
─────────────
Not thread-safe and not meant to be: repetitions run sequentially. Each
repetition owns its generators, so repetitions could be farmed out to
workers later without changing results.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np
from pydantic import BaseModel, Field

from cloudsched.control_plane.metrics import compute_run_metrics, mean_metrics
from cloudsched.control_plane.scheduler import AssignmentPolicy, get_policy
from cloudsched.shared.errors import AssignmentError
from cloudsched.shared.models import (
    Assignment,
    ExperimentResult,
    Job,
    Resource,
    RunMetrics,
)
from cloudsched.simulation.engine import ExecutionEngine, TimeSharedEngine, get_engine
from cloudsched.simulation.workload import ClusterConfig, build_resources, load_jobs
from dbo_core.optimizer import DBOConfig

logger = logging.getLogger(__name__)

DEFAULT_REPETITIONS: int = 10
DEFAULT_SEED: int = 42

WorkloadSource = Callable[[np.random.Generator], Tuple[List[Job], List[Resource]]]
"""Callable producing a fresh (jobs, resources) pair from a generator."""


class ExperimentConfig(BaseModel):
    """
    Everything needed to build a runner from plain values (e.g. CLI flags).

    Fields:
        repetitions  → Independent runs to average over.
        seed         → Root seed for every stream in the experiment.
        policy       → Registry name: "round-robin", "default" or "dbo".
        engine       → Registry name: "time-shared" or "space-shared".
        dataset_path → Workload file. None / missing → random workload.
        dbo          → DBO tunables (ignored by round-robin).
        cluster      → VM topology and speed range.
    """
    repetitions: int = Field(DEFAULT_REPETITIONS, ge=1)
    seed: int = Field(DEFAULT_SEED, ge=0)
    policy: str = "round-robin"
    engine: str = TimeSharedEngine.name
    dataset_path: Optional[str] = None
    dbo: DBOConfig = Field(default_factory=DBOConfig)
    cluster: ClusterConfig = Field(default_factory=ClusterConfig)


def validate_assignment(
    assignment: Assignment,
    jobs: Sequence[Job],
    resources: Sequence[Resource],
) -> None:
    """
    Check the assignment is total over `jobs` and only names known resources.

    Raises:
        AssignmentError: listing unassigned job ids and unknown resource ids.
    """
    known = {res.resource_id for res in resources}
    missing = [job.job_id for job in jobs if job.job_id not in assignment]
    unknown = sorted({rid for rid in assignment.values() if rid not in known})
    if missing or unknown:
        raise AssignmentError(missing_jobs=missing, unknown_resources=unknown)


def default_workload_source(
    dataset_path: Optional[str] = None,
    cluster: Optional[ClusterConfig] = None,
) -> WorkloadSource:
    """Workload source that loads (or generates) jobs and generates the VM list."""

    def source(rng: np.random.Generator) -> Tuple[List[Job], List[Resource]]:
        resources = build_resources(rng, cluster)
        jobs = load_jobs(dataset_path, rng)
        return jobs, resources

    return source


class ExperimentRunner:
    """
    Runs a fixed number of independent repetitions of one policy.

    Usage:
        runner = ExperimentRunner.from_config(ExperimentConfig(policy="dbo"))
        result = runner.run()
        result.runs   → List[RunMetrics], one per repetition
        result.mean   → RunMetrics, per-field mean
    """

    def __init__(
        self,
        policy: AssignmentPolicy,
        engine: ExecutionEngine,
        workload_source: WorkloadSource,
        repetitions: int = DEFAULT_REPETITIONS,
        seed: int = DEFAULT_SEED,
    ) -> None:
        if repetitions < 1:
            raise ValueError(f"repetitions must be ≥ 1, got {repetitions}")
        self.policy = policy
        self.engine = engine
        self.workload_source = workload_source
        self.repetitions = repetitions
        self.seed = seed

    @classmethod
    def from_config(cls, config: ExperimentConfig) -> "ExperimentRunner":
        return cls(
            policy=get_policy(config.policy, config.dbo),
            engine=get_engine(config.engine),
            workload_source=default_workload_source(config.dataset_path, config.cluster),
            repetitions=config.repetitions,
            seed=config.seed,
        )

    def _streams(self) -> List[Tuple[np.random.Generator, np.random.Generator]]:
        """(workload_rng, policy_rng) for each repetition, derived from self.seed."""
        streams = []
        for child in np.random.SeedSequence(self.seed).spawn(self.repetitions):
            workload_seq, policy_seq = child.spawn(2)
            streams.append(
                (np.random.default_rng(workload_seq), np.random.default_rng(policy_seq))
            )
        return streams

    def run_once(
        self,
        workload_rng: np.random.Generator,
        policy_rng: np.random.Generator,
    ) -> RunMetrics:
        """One full repetition. Errors from any stage propagate unchanged."""
        jobs, resources = self.workload_source(workload_rng)
        assignment = self.policy.assign(jobs, resources, policy_rng)
        validate_assignment(assignment, jobs, resources)
        records = self.engine.execute(jobs, resources, assignment)
        return compute_run_metrics(records, len(resources))

    def run(self) -> ExperimentResult:
        """Run every repetition, then average field by field."""
        logger.info(
            "Experiment: policy=%s engine=%s repetitions=%d seed=%d",
            self.policy.name, self.engine.name, self.repetitions, self.seed,
        )
        runs: List[RunMetrics] = []
        for index, (workload_rng, policy_rng) in enumerate(self._streams(), start=1):
            metrics = self.run_once(workload_rng, policy_rng)
            runs.append(metrics)
            logger.info(
                "Run %d/%d: makespan=%.2f throughput=%.4f util=%.2f%%",
                index, self.repetitions, metrics.makespan,
                metrics.throughput, metrics.utilization_percent,
            )

        return ExperimentResult(
            policy_name=self.policy.name,
            runs=runs,
            mean=mean_metrics(runs),
        )

    def __repr__(self) -> str:
        return (
            f"ExperimentRunner(policy={self.policy!r}, engine={self.engine!r}, "
            f"repetitions={self.repetitions}, seed={self.seed})"
        )
