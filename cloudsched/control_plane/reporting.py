"""
cloudsched/control_plane/reporting.py
─────────────────────────────────────
Plain-text renderings of an ExperimentResult.

  format_summary(result) → fixed-width table, one row per run plus MEAN.
  format_tsv(result)     → tab-delimited rows with full column titles,
                           ready to paste into a spreadsheet.

Pure string builders: nothing here prints, logs or touches the result.
Precision per column: throughput 4 dp, energy 6 dp, everything else 2 dp.
"""

from __future__ import annotations

from typing import List

from cloudsched.shared.models import ExperimentResult, RunMetrics

SHORT_HEADERS: List[str] = [
    "TotalCPU", "TotalWait", "AvgStart", "AvgExec", "AvgFinish",
    "Throughput", "Makespan", "Imbalance", "Util(%)", "Energy(kWh)",
]

LONG_HEADERS: List[str] = [
    "Total CPU Time", "Total Wait Time", "Average Start Time",
    "Average Execution Time", "Average Finish Time", "Throughput", "Makespan",
    "Imbalance Degree", "Resource Utilization(%)", "Total Energy Consumption(kWh)",
]

_PRECISION = {"throughput": 4, "energy_kwh": 6}
_RULE_WIDTH = 150


def _formatted_values(metrics: RunMetrics) -> List[str]:
    return [
        f"{getattr(metrics, name):.{_PRECISION.get(name, 2)}f}"
        for name in RunMetrics.field_names()
    ]


def format_summary(result: ExperimentResult) -> str:
    """Human-readable table of every run and the mean row."""
    rule = "=" * _RULE_WIDTH
    lines = [
        rule,
        f"SUMMARY ({len(result.runs)} RUNS) - {result.policy_name}",
        rule,
        f"{'Run':<5} " + " ".join(f"{h:<12}" for h in SHORT_HEADERS),
        "-" * _RULE_WIDTH,
    ]
    for index, run in enumerate(result.runs, start=1):
        lines.append(f"{index:<5} " + " ".join(f"{v:<12}" for v in _formatted_values(run)))
    lines.append(rule)
    lines.append(
        f"{'MEAN':<5} " + " ".join(f"{v:<12}" for v in _formatted_values(result.mean))
    )
    lines.append(rule)
    return "\n".join(lines)


def format_tsv(result: ExperimentResult) -> str:
    """Tab-delimited header, one row per run, and a MEAN row."""
    lines = ["\t".join(["Run"] + LONG_HEADERS)]
    for index, run in enumerate(result.runs, start=1):
        lines.append("\t".join([str(index)] + _formatted_values(run)))
    lines.append("\t".join(["MEAN"] + _formatted_values(result.mean)))
    return "\n".join(lines)
