"""
tests/test_experiment_runner.py
───────────────────────────────
Experiment runner tests.

Group 1 — Assignment validation
Group 2 — Repetitions and averaging
Group 3 — Seeding (reproducibility, per-repetition and per-role streams)
Group 4 — Error propagation
Group 5 — Config wiring
"""

from __future__ import annotations

from typing import List, Tuple

import numpy as np
import pytest

from cloudsched.control_plane.experiment_runner import (
    ExperimentConfig,
    ExperimentRunner,
    validate_assignment,
)
from cloudsched.control_plane.scheduler import (
    AssignmentPolicy,
    MetaheuristicPolicy,
    RoundRobinPolicy,
)
from cloudsched.shared.errors import AssignmentError, EmptyCompletionSetError
from cloudsched.shared.models import Job, Resource
from cloudsched.simulation.engine import SpaceSharedEngine, TimeSharedEngine
from dbo_core import DBOConfig


def _make_jobs(lengths: List[float]) -> List[Job]:
    return [Job(job_id=i, length=length) for i, length in enumerate(lengths)]


def _make_resources(speeds: List[float]) -> List[Resource]:
    return [Resource(resource_id=i, mips=speed) for i, speed in enumerate(speeds)]


class _RecordingSource:
    """Workload source that draws job lengths from its generator and remembers them."""

    def __init__(self, n_jobs: int = 12, n_resources: int = 3) -> None:
        self.n_jobs = n_jobs
        self.n_resources = n_resources
        self.seen: List[List[float]] = []

    def __call__(self, rng: np.random.Generator) -> Tuple[List[Job], List[Resource]]:
        lengths = [float(x) for x in 100 + rng.integers(0, 900, size=self.n_jobs)]
        self.seen.append(lengths)
        return _make_jobs(lengths), _make_resources([10.0 * (i + 1) for i in range(self.n_resources)])


class _DroppingPolicy(AssignmentPolicy):
    """Leaves the last job unassigned."""

    name = "dropping"

    def _assign(self, jobs, resources, rng):
        return {job.job_id: resources[0].resource_id for job in jobs[:-1]}


# ─────────────────────────────────────────────────────────────────────────────
# GROUP 1 — Assignment validation
# ─────────────────────────────────────────────────────────────────────────────

class TestValidateAssignment:

    def test_total_assignment_passes(self):
        validate_assignment({0: 0, 1: 1}, _make_jobs([1.0, 1.0]), _make_resources([1.0, 1.0]))

    def test_missing_and_unknown_reported_together(self):
        with pytest.raises(AssignmentError) as excinfo:
            validate_assignment({0: 5}, _make_jobs([1.0, 1.0]), _make_resources([1.0]))
        assert excinfo.value.missing_jobs == [1]
        assert excinfo.value.unknown_resources == [5]

    def test_empty_workload_is_valid(self):
        validate_assignment({}, [], _make_resources([1.0]))


# ─────────────────────────────────────────────────────────────────────────────
# GROUP 2 — Repetitions and averaging
# ─────────────────────────────────────────────────────────────────────────────

class TestRepetitions:

    def test_one_row_per_repetition(self):
        runner = ExperimentRunner(RoundRobinPolicy(), TimeSharedEngine(), _RecordingSource(), repetitions=4)
        result = runner.run()
        assert len(result.runs) == 4
        assert result.policy_name == "round-robin"

    def test_mean_is_field_wise_average(self):
        runner = ExperimentRunner(RoundRobinPolicy(), SpaceSharedEngine(), _RecordingSource(), repetitions=3)
        result = runner.run()
        for name in result.mean.field_names():
            expected = np.mean([getattr(run, name) for run in result.runs])
            assert getattr(result.mean, name) == pytest.approx(expected), name

    def test_fresh_workload_each_repetition(self):
        source = _RecordingSource()
        ExperimentRunner(RoundRobinPolicy(), TimeSharedEngine(), source, repetitions=3).run()
        assert len(source.seen) == 3
        assert source.seen[0] != source.seen[1]

    def test_repetitions_must_be_positive(self):
        with pytest.raises(ValueError):
            ExperimentRunner(RoundRobinPolicy(), TimeSharedEngine(), _RecordingSource(), repetitions=0)


# ─────────────────────────────────────────────────────────────────────────────
# GROUP 3 — Seeding
# ─────────────────────────────────────────────────────────────────────────────

class TestSeeding:

    _DBO = DBOConfig(population_size=5, max_iterations=8)

    def test_same_seed_same_rows(self):
        def run():
            return ExperimentRunner(
                MetaheuristicPolicy(self._DBO), TimeSharedEngine(), _RecordingSource(),
                repetitions=2, seed=11,
            ).run()

        first, second = run(), run()
        assert [r.as_row() for r in first.runs] == [r.as_row() for r in second.runs]

    def test_different_seed_different_workload(self):
        a, b = _RecordingSource(), _RecordingSource()
        ExperimentRunner(RoundRobinPolicy(), TimeSharedEngine(), a, repetitions=1, seed=1).run()
        ExperimentRunner(RoundRobinPolicy(), TimeSharedEngine(), b, repetitions=1, seed=2).run()
        assert a.seen != b.seen

    def test_policy_choice_does_not_change_workload(self):
        """Round-robin draws nothing, DBO draws a lot; both see identical workloads."""
        rr_source, dbo_source = _RecordingSource(), _RecordingSource()
        ExperimentRunner(RoundRobinPolicy(), TimeSharedEngine(), rr_source, repetitions=3, seed=5).run()
        ExperimentRunner(
            MetaheuristicPolicy(self._DBO), TimeSharedEngine(), dbo_source, repetitions=3, seed=5
        ).run()
        assert rr_source.seen == dbo_source.seen

    def test_streams_are_distinct_per_repetition(self):
        runner = ExperimentRunner(RoundRobinPolicy(), TimeSharedEngine(), _RecordingSource(), repetitions=3)
        first_draws = [w.random() for w, _ in runner._streams()]
        assert len(set(first_draws)) == 3


# ─────────────────────────────────────────────────────────────────────────────
# GROUP 4 — Error propagation
# ─────────────────────────────────────────────────────────────────────────────

class TestErrors:

    def test_partial_assignment_rejected(self):
        runner = ExperimentRunner(_DroppingPolicy(), TimeSharedEngine(), _RecordingSource(), repetitions=1)
        with pytest.raises(AssignmentError) as excinfo:
            runner.run()
        assert excinfo.value.missing_jobs == [11]

    def test_empty_workload_fails_loudly(self):
        runner = ExperimentRunner(
            RoundRobinPolicy(), TimeSharedEngine(), lambda rng: ([], _make_resources([1.0])),
            repetitions=2,
        )
        with pytest.raises(EmptyCompletionSetError):
            runner.run()


# ─────────────────────────────────────────────────────────────────────────────
# GROUP 5 — Config wiring
# ─────────────────────────────────────────────────────────────────────────────

class TestFromConfig:

    def test_components_from_registry_names(self):
        config = ExperimentConfig(
            repetitions=3, seed=9, policy="dbo", engine="space-shared",
            dbo=DBOConfig(population_size=4, max_iterations=2),
        )
        runner = ExperimentRunner.from_config(config)
        assert isinstance(runner.policy, MetaheuristicPolicy)
        assert runner.policy.config.population_size == 4
        assert isinstance(runner.engine, SpaceSharedEngine)
        assert (runner.repetitions, runner.seed) == (3, 9)

    def test_dataset_file_used(self, tmp_path):
        path = tmp_path / "jobs.txt"
        path.write_text("1000\n2000\n3000\n", encoding="utf-8")
        result = ExperimentRunner.from_config(
            ExperimentConfig(repetitions=1, dataset_path=str(path))
        ).run()
        assert result.runs[0].total_cpu > 0

    def test_invalid_config_rejected(self):
        with pytest.raises(ValueError):
            ExperimentConfig(repetitions=0)
