"""
cloudsched/shared/models.py
───────────────────────────
The single source of truth for every data structure the scheduler passes
between its layers.

Design philosophy
-----------------
Every model answers one question: "What does the scheduler *need to know*
about this thing in order to place work and judge the result?"

Descriptors (Job, Resource) flow IN from the simulation environment.
Assignments flow OUT to the execution engine.
CompletionRecords flow back IN from the engine.
RunMetrics / ExperimentResult flow OUT to the reporting layer.

Reading guide
-------------
Read top-to-bottom. Each model builds on the ones above it.
"""

from __future__ import annotations

from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field


# ─────────────────────────────────────────────────────────────────────────────
# SECTION 1: WORKLOAD & RESOURCE DESCRIPTORS
# What a job asks for and what a resource provides.
# ─────────────────────────────────────────────────────────────────────────────

class Job(BaseModel):
    """
    One unit of computational work (a "cloudlet").

    Fields:
        job_id      → Stable integer identifier. Keys the Assignment.
        length      → Work size in million instructions (MI).
                      Execution time on a resource = length / resource.speed.
        file_size   → Input file size. Carried from the dataset for the
                      execution engine; the optimizer ignores it.
        output_size → Output file size. Same as above.

    Immutable: the optimizer and policies read jobs, never modify them.
    """
    model_config = ConfigDict(frozen=True)

    job_id: int = Field(..., description="Unique, stable job identifier")
    length: float = Field(..., gt=0, description="Work size in million instructions")
    file_size: int = Field(300, ge=0, description="Input file size")
    output_size: int = Field(300, ge=0, description="Output file size")


class Resource(BaseModel):
    """
    A processing resource (a VM) that jobs are assigned to.

    Fields:
        resource_id → Unique integer identifier. Assignment values refer to it.
        mips        → Per-core speed in million instructions per second.
        pes         → Number of processing elements (cores).

    Why speed is derived (not stored):
        The fitness model treats a VM's throughput as mips × pes. Keeping
        the two raw numbers lets the execution engine and the report see
        the hardware shape while the optimizer reads one scalar.

    List ORDER matters: round-robin assigns by positional index and the
    optimizer's genes are positional indices into the resource list.
    """
    model_config = ConfigDict(frozen=True)

    resource_id: int = Field(..., description="Unique resource identifier")
    mips: float = Field(..., gt=0, description="Per-core speed (MI per second)")
    pes: int = Field(1, ge=1, description="Number of cores")

    @property
    def speed(self) -> float:
        """Total throughput in MI per unit time (mips × pes)."""
        return self.mips * self.pes


Assignment = Dict[int, int]
"""
A total mapping job_id → resource_id.

Every job in the workload appears exactly once; every value is the
resource_id of a resource in the resource list.
"""


# ─────────────────────────────────────────────────────────────────────────────
# SECTION 2: EXECUTION RESULTS
# What the execution engine reports back after running an Assignment.
# ─────────────────────────────────────────────────────────────────────────────

class CompletionRecord(BaseModel):
    """
    Timing record for one finished job.

    Fields:
        job_id          → Which job this record describes.
        resource_id     → Where it ran.
        actual_cpu_time → Time the job spent executing (finish − start).
        waiting_time    → Time spent queued before execution began.
        exec_start_time → Simulation time execution began.
        finish_time     → Simulation time execution completed.
    """
    job_id: int
    resource_id: int
    actual_cpu_time: float = Field(..., ge=0.0)
    waiting_time: float = Field(0.0, ge=0.0)
    exec_start_time: float = Field(..., ge=0.0)
    finish_time: float = Field(..., ge=0.0)


# ─────────────────────────────────────────────────────────────────────────────
# SECTION 3: METRICS
# Summary statistics of one run and of a whole experiment.
# ─────────────────────────────────────────────────────────────────────────────

class RunMetrics(BaseModel):
    """
    The ten summary statistics computed from one run's CompletionRecords.

    Field order is the report column order and is relied on by as_row(),
    field_names() and the per-field averaging in the experiment runner.

    Fields:
        total_cpu           → Σ actual_cpu_time
        total_wait          → Σ waiting_time
        avg_start           → mean exec_start_time
        avg_exec            → mean actual_cpu_time
        avg_finish          → mean finish_time
        throughput          → completed jobs / makespan
        makespan            → max finish_time
        imbalance_degree    → avg_finish − avg_exec (signed)
        utilization_percent → 100 × total_cpu / (resource_count × makespan)
        energy_kwh          → makespan × 0.000277 (flat linear proxy)
    """
    total_cpu: float
    total_wait: float
    avg_start: float
    avg_exec: float
    avg_finish: float
    throughput: float
    makespan: float
    imbalance_degree: float
    utilization_percent: float
    energy_kwh: float

    @classmethod
    def field_names(cls) -> List[str]:
        """Field names in report column order."""
        return list(cls.model_fields.keys())

    def as_row(self) -> List[float]:
        """Field values in report column order."""
        return [getattr(self, name) for name in self.field_names()]


class ExperimentResult(BaseModel):
    """
    Output of one ExperimentRunner.run() call.

    Fields:
        policy_name → Name of the assignment policy that produced the runs.
        runs        → One RunMetrics per repetition, in execution order.
        mean        → Field-by-field arithmetic mean across runs.
    """
    policy_name: str
    runs: List[RunMetrics] = Field(default_factory=list)
    mean: RunMetrics
