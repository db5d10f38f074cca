"""
CLI Entrypoint Module

Runs a scheduling experiment and prints the summary table:
- builds an ExperimentConfig from flags
- runs N repetitions of the chosen policy
- prints the per-run table + MEAN row (and the TSV form with --tsv)

Usage:
    cloudsched --policy dbo --runs 10 --seed 42
    cloudsched --policy round-robin --dataset datasets/randSimple1000.txt --tsv
"""

from __future__ import annotations

import argparse
import logging
from typing import List, Optional

from cloudsched.control_plane.experiment_runner import (
    DEFAULT_REPETITIONS,
    DEFAULT_SEED,
    ExperimentConfig,
    ExperimentRunner,
)
from cloudsched.control_plane.reporting import format_summary, format_tsv
from cloudsched.control_plane.scheduler import POLICIES
from cloudsched.shared.errors import SchedulingError
from cloudsched.simulation.engine import ENGINES, TimeSharedEngine
from dbo_core.beetle import P_FOLLOW, P_LOCAL
from dbo_core.optimizer import MAX_ITERATIONS, POPULATION_SIZE, DBOConfig

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cloudsched",
        description="Job-to-VM assignment experiment (round-robin vs. dung-beetle optimizer).",
    )
    parser.add_argument("--policy", choices=sorted(POLICIES), default="round-robin")
    parser.add_argument("--runs", type=int, default=DEFAULT_REPETITIONS,
                        help="Independent repetitions to average over.")
    parser.add_argument("--seed", type=int, default=DEFAULT_SEED,
                        help="Root seed for every random stream in the experiment.")
    parser.add_argument("--dataset", default=None,
                        help="Workload file (one job per line). Missing → random workload.")
    parser.add_argument("--engine", choices=sorted(ENGINES), default=TimeSharedEngine.name)
    parser.add_argument("--population", type=int, default=POPULATION_SIZE)
    parser.add_argument("--iterations", type=int, default=MAX_ITERATIONS)
    parser.add_argument("--p-local", type=float, default=P_LOCAL)
    parser.add_argument("--p-follow", type=float, default=P_FOLLOW)
    parser.add_argument("--tsv", action="store_true",
                        help="Also print the tab-delimited spreadsheet form.")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Run the experiment CLI.

    Returns:
        0 on success, 1 on a scheduling or configuration error.
    """
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        config = ExperimentConfig(
            repetitions=args.runs,
            seed=args.seed,
            policy=args.policy,
            engine=args.engine,
            dataset_path=args.dataset,
            dbo=DBOConfig(
                population_size=args.population,
                max_iterations=args.iterations,
                p_local=args.p_local,
                p_follow=args.p_follow,
            ),
        )
    except ValueError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 1

    try:
        result = ExperimentRunner.from_config(config).run()
    except SchedulingError:
        logger.exception("Experiment failed")
        return 1

    print(format_summary(result))
    if args.tsv:
        print()
        print(format_tsv(result))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
