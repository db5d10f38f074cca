"""
tests/test_fitness.py
─────────────────────
Fitness evaluator test suite.

Group 1 — Makespan arithmetic (single resource, even split, heterogeneity)
Group 2 — Purity (repeat calls, no mutation of inputs)
Group 3 — Rejection of invalid input (out-of-range genes, empty workload,
          bad speeds, shape mismatch)
Group 4 — Id-keyed assignment helpers
"""

from __future__ import annotations

from typing import List

import numpy as np
import pytest

from cloudsched.shared.errors import (
    EmptyWorkloadError,
    InvalidInputError,
    InvalidResourceError,
)
from cloudsched.shared.models import Job, Resource
from dbo_core.fitness import (
    FitnessEvaluator,
    assignment_to_genes,
    evaluate_assignment,
)


# ─────────────────────────────────────────────────────────────────────────────
# HELPERS — fixture factories
# ─────────────────────────────────────────────────────────────────────────────

def _make_jobs(lengths: List[float]) -> List[Job]:
    return [Job(job_id=i, length=length) for i, length in enumerate(lengths)]


def _make_resources(speeds: List[float], first_id: int = 0) -> List[Resource]:
    return [
        Resource(resource_id=first_id + i, mips=speed)
        for i, speed in enumerate(speeds)
    ]


# ─────────────────────────────────────────────────────────────────────────────
# GROUP 1 — Makespan arithmetic
# ─────────────────────────────────────────────────────────────────────────────

class TestMakespan:

    def test_all_jobs_on_one_resource(self):
        """All jobs on one resource → makespan = Σ length / speed."""
        jobs = _make_jobs([1000.0, 2000.0, 3000.0])
        resources = _make_resources([500.0, 1500.0])
        evaluator = FitnessEvaluator(jobs, resources)

        genes = np.array([1, 1, 1], dtype=np.int64)
        assert evaluator(genes) == pytest.approx(6000.0 / 1500.0)

    def test_even_split_equal_speed(self):
        """Equal jobs spread evenly over equal resources → Σ length / (speed × n)."""
        jobs = _make_jobs([1000.0] * 8)
        resources = _make_resources([250.0] * 4)
        evaluator = FitnessEvaluator(jobs, resources)

        genes = np.array([0, 1, 2, 3, 0, 1, 2, 3], dtype=np.int64)
        assert evaluator(genes) == pytest.approx(8000.0 / (250.0 * 4))

    def test_slowest_loaded_resource_dominates(self):
        """Makespan is the max load, not the sum or the mean."""
        jobs = _make_jobs([100.0, 100.0])
        resources = _make_resources([10.0, 100.0])
        evaluator = FitnessEvaluator(jobs, resources)

        # job 0 on slow (10 s), job 1 on fast (1 s)
        assert evaluator(np.array([0, 1])) == pytest.approx(10.0)
        # both on fast: 2 s
        assert evaluator(np.array([1, 1])) == pytest.approx(2.0)

    def test_speed_uses_cores(self):
        """Resource speed is mips × pes."""
        jobs = _make_jobs([1000.0])
        resources = [Resource(resource_id=0, mips=250.0, pes=4)]
        assert FitnessEvaluator(jobs, resources)(np.array([0])) == pytest.approx(1.0)

    def test_loads_vector(self):
        """loads() returns per-resource busy time, including idle resources."""
        jobs = _make_jobs([100.0, 300.0])
        resources = _make_resources([100.0, 100.0, 100.0])
        loads = FitnessEvaluator(jobs, resources).loads(np.array([2, 2]))
        assert np.allclose(loads, [0.0, 0.0, 4.0])


# ─────────────────────────────────────────────────────────────────────────────
# GROUP 2 — Purity
# ─────────────────────────────────────────────────────────────────────────────

class TestPurity:

    def test_repeat_calls_identical(self):
        """The same candidate evaluated many times gives bit-identical results."""
        rng = np.random.default_rng(7)
        jobs = _make_jobs(list(rng.uniform(100, 5000, size=50)))
        resources = _make_resources(list(rng.uniform(500, 2000, size=9)))
        evaluator = FitnessEvaluator(jobs, resources)
        genes = rng.integers(0, 9, size=50)

        first = evaluator(genes)
        assert all(evaluator(genes) == first for _ in range(10))

    def test_candidate_not_mutated(self):
        jobs = _make_jobs([10.0, 20.0, 30.0])
        resources = _make_resources([1.0, 2.0])
        genes = np.array([0, 1, 0])
        before = genes.copy()
        FitnessEvaluator(jobs, resources)(genes)
        assert np.array_equal(genes, before)


# ─────────────────────────────────────────────────────────────────────────────
# GROUP 3 — Invalid input
# ─────────────────────────────────────────────────────────────────────────────

class TestInvalidInput:

    def test_gene_above_range_rejected(self):
        evaluator = FitnessEvaluator(_make_jobs([1.0, 1.0]), _make_resources([1.0, 1.0]))
        with pytest.raises(InvalidResourceError) as excinfo:
            evaluator(np.array([0, 2]))
        assert excinfo.value.index == 2
        assert excinfo.value.n_resources == 2

    def test_negative_gene_rejected(self):
        evaluator = FitnessEvaluator(_make_jobs([1.0]), _make_resources([1.0]))
        with pytest.raises(InvalidResourceError):
            evaluator(np.array([-1]))

    def test_wrong_length_rejected(self):
        evaluator = FitnessEvaluator(_make_jobs([1.0, 1.0]), _make_resources([1.0]))
        with pytest.raises(InvalidResourceError):
            evaluator(np.array([0]))

    def test_empty_workload(self):
        """Fitness over zero jobs is undefined."""
        with pytest.raises(EmptyWorkloadError):
            FitnessEvaluator([], _make_resources([1.0]))

    def test_no_resources(self):
        with pytest.raises(InvalidInputError):
            FitnessEvaluator(_make_jobs([1.0]), [])

    def test_non_positive_speed_rejected_before_evaluation(self):
        """A resource that bypassed validation with mips=0 is still rejected."""
        broken = Resource.model_construct(resource_id=0, mips=0.0, pes=1)
        with pytest.raises(InvalidResourceError):
            FitnessEvaluator(_make_jobs([1.0]), [broken])

    def test_model_rejects_non_positive_mips(self):
        with pytest.raises(ValueError):
            Resource(resource_id=0, mips=-5.0)

    def test_invalid_resource_error_is_value_error(self):
        assert issubclass(InvalidResourceError, ValueError)


# ─────────────────────────────────────────────────────────────────────────────
# GROUP 4 — Assignment helpers
# ─────────────────────────────────────────────────────────────────────────────

class TestAssignmentHelpers:

    def test_ids_translated_to_positions(self):
        """Resource ids need not equal positions."""
        jobs = _make_jobs([10.0, 20.0])
        resources = _make_resources([1.0, 1.0], first_id=100)
        genes = assignment_to_genes({0: 101, 1: 100}, jobs, resources)
        assert genes.tolist() == [1, 0]

    def test_negative_ids(self):
        """Job and resource ids may be negative; genes stay positional."""
        jobs = [Job(job_id=-3, length=10.0), Job(job_id=-4, length=30.0)]
        resources = [Resource(resource_id=-1, mips=10.0), Resource(resource_id=-2, mips=10.0)]
        assert assignment_to_genes({-3: -2, -4: -1}, jobs, resources).tolist() == [1, 0]
        assert evaluate_assignment({-3: -2, -4: -1}, jobs, resources) == pytest.approx(3.0)

    def test_evaluate_assignment(self):
        jobs = _make_jobs([10.0, 20.0, 30.0])
        resources = _make_resources([10.0, 5.0], first_id=7)
        makespan = evaluate_assignment({0: 7, 1: 8, 2: 7}, jobs, resources)
        # resource 7: (10 + 30) / 10 = 4 ; resource 8: 20 / 5 = 4
        assert makespan == pytest.approx(4.0)

    def test_unknown_resource_id(self):
        jobs = _make_jobs([10.0])
        with pytest.raises(InvalidResourceError):
            evaluate_assignment({0: 99}, jobs, _make_resources([1.0]))

    def test_missing_job(self):
        jobs = _make_jobs([10.0, 10.0])
        with pytest.raises(InvalidResourceError):
            evaluate_assignment({0: 0}, jobs, _make_resources([1.0]))
