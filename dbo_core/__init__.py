"""
dbo_core — Dung-Beetle-Optimizer assignment search.

Public API:
    DungBeetleOptimizer — run the DBO search, returns an Assignment
    DBOConfig           — population size, sweeps, move probabilities
    FitnessEvaluator    — makespan of a positional gene array
    evaluate_assignment — makespan of an id-keyed Assignment

Usage:
    import numpy as np
    from dbo_core import DungBeetleOptimizer, DBOConfig

    optimizer = DungBeetleOptimizer(jobs=job_list, resources=vm_list)
    plan = optimizer.run(np.random.default_rng(42))   # Dict[job_id, resource_id]
"""

from dbo_core.fitness import FitnessEvaluator, evaluate_assignment
from dbo_core.optimizer import DBOConfig, DungBeetleOptimizer

__all__ = [
    "DBOConfig",
    "DungBeetleOptimizer",
    "FitnessEvaluator",
    "evaluate_assignment",
]
