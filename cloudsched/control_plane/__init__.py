"""
cloudsched/control_plane — the scheduling brain.

Public API:
    RoundRobinPolicy      — deterministic cyclic assignment
    DefaultBrokerPolicy   — the broker's own cyclic binding
    MetaheuristicPolicy   — DBO makespan minimisation
    get_policy()          — build a policy by name
    compute_run_metrics() — CompletionRecords → RunMetrics
    mean_metrics()        — per-field mean of RunMetrics
    ExperimentRunner      — N repetitions of policy → execution → metrics
    ExperimentConfig      — plain-value configuration for a runner
    format_summary() / format_tsv() — text renderings of an ExperimentResult
"""

from cloudsched.control_plane.scheduler import (
    AssignmentPolicy,
    DefaultBrokerPolicy,
    MetaheuristicPolicy,
    RoundRobinPolicy,
    get_policy,
)
from cloudsched.control_plane.metrics import compute_run_metrics, mean_metrics
from cloudsched.control_plane.experiment_runner import (
    ExperimentConfig,
    ExperimentRunner,
    validate_assignment,
)
from cloudsched.control_plane.reporting import format_summary, format_tsv

__all__ = [
    "AssignmentPolicy",
    "DefaultBrokerPolicy",
    "MetaheuristicPolicy",
    "RoundRobinPolicy",
    "get_policy",
    "compute_run_metrics",
    "mean_metrics",
    "ExperimentConfig",
    "ExperimentRunner",
    "validate_assignment",
    "format_summary",
    "format_tsv",
]
