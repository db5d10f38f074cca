"""
cloudsched/simulation — stand-ins for the external simulation environment.

    build_resources / load_jobs — inputs of one repetition
    TimeSharedEngine            — processor-sharing execution (default)
    SpaceSharedEngine           — FIFO execution
"""

from cloudsched.simulation.engine import (
    ExecutionEngine,
    SpaceSharedEngine,
    TimeSharedEngine,
    get_engine,
)
from cloudsched.simulation.workload import (
    ClusterConfig,
    build_resources,
    generate_jobs,
    load_jobs,
)

__all__ = [
    "ClusterConfig",
    "ExecutionEngine",
    "SpaceSharedEngine",
    "TimeSharedEngine",
    "build_resources",
    "generate_jobs",
    "get_engine",
    "load_jobs",
]
