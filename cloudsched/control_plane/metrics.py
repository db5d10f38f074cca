"""
cloudsched/control_plane/metrics.py
───────────────────────────────────
Post-execution metrics: turns CompletionRecords into one RunMetrics, and
a list of RunMetrics into their per-field mean.

The formulas
────────────
  total_cpu           = Σ actual_cpu_time
  total_wait          = Σ waiting_time
  avg_start           = mean(exec_start_time)
  avg_exec            = mean(actual_cpu_time)
  avg_finish          = mean(finish_time)
  makespan            = max(finish_time)
  throughput          = n_records / makespan
  imbalance_degree    = avg_finish − avg_exec          (signed, may be < 0)
  utilization_percent = 100 × total_cpu / (resource_count × makespan)
  energy_kwh          = makespan × ENERGY_KWH_PER_TIME_UNIT

The energy figure is a flat linear proxy on makespan alone. Utilisation
and resource count do not enter it.

Degenerate input fails loudly (EmptyCompletionSetError, ZeroMakespanError)
instead of producing NaN or Inf.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from cloudsched.shared.errors import (
    EmptyCompletionSetError,
    InvalidInputError,
    ZeroMakespanError,
)
from cloudsched.shared.models import CompletionRecord, RunMetrics

ENERGY_KWH_PER_TIME_UNIT: float = 0.000277
"""kWh charged per unit of makespan (≈ 1 kW for 1 s = 1/3600 kWh)."""


def compute_run_metrics(
    records: Sequence[CompletionRecord],
    resource_count: int,
) -> RunMetrics:
    """
    Aggregate one run's completion records.

    Args:
        records:        One record per finished job. Order does not matter.
        resource_count: Number of resources the workload ran on. Must be ≥ 1.

    Raises:
        EmptyCompletionSetError: if records is empty.
        ZeroMakespanError:       if every record finishes at t=0.
        InvalidInputError:       if resource_count < 1.
    """
    if not records:
        raise EmptyCompletionSetError()
    if resource_count < 1:
        raise InvalidInputError(
            f"resource_count must be ≥ 1, got {resource_count}."
        )

    n = len(records)
    total_cpu = sum(r.actual_cpu_time for r in records)
    total_wait = sum(r.waiting_time for r in records)
    avg_start = sum(r.exec_start_time for r in records) / n
    avg_exec = total_cpu / n
    avg_finish = sum(r.finish_time for r in records) / n
    makespan = max(r.finish_time for r in records)

    if makespan <= 0.0:
        raise ZeroMakespanError(n)

    return RunMetrics(
        total_cpu=total_cpu,
        total_wait=total_wait,
        avg_start=avg_start,
        avg_exec=avg_exec,
        avg_finish=avg_finish,
        throughput=n / makespan,
        makespan=makespan,
        imbalance_degree=avg_finish - avg_exec,
        utilization_percent=(total_cpu / (resource_count * makespan)) * 100.0,
        energy_kwh=makespan * ENERGY_KWH_PER_TIME_UNIT,
    )


def mean_metrics(runs: Sequence[RunMetrics]) -> RunMetrics:
    """
    Field-by-field arithmetic mean across runs.

    No trimming and no weighting; each field is averaged on its own
    column, so e.g. mean throughput is NOT n / mean makespan.

    Raises:
        InvalidInputError: if runs is empty.
    """
    if not runs:
        raise InvalidInputError("Cannot average zero runs.")

    table = np.array([run.as_row() for run in runs], dtype=np.float64)
    means = table.mean(axis=0)
    return RunMetrics(
        **{name: float(value) for name, value in zip(RunMetrics.field_names(), means)}
    )
