"""
cloudsched/simulation/workload.py
─────────────────────────────────
Builds the inputs of one repetition: the VM list and the job list.

Cluster shape
─────────────
  DATACENTER_COUNT × HOSTS_PER_DATACENTER × VMS_PER_HOST VMs (6 × 3 × 3 = 54).
  Each VM gets PES_PER_VM cores and a random per-core speed
      mips = VM_MIPS_MIN + U{0 .. VM_MIPS_SPAN − 1}      → [500, 1999]
  so resources are heterogeneous and round-robin's speed-blindness shows.
  Resource ids are 0..n−1 in creation order.

Dataset format
──────────────
Plain text, one job per line:
    <length>[ <file_size>[ <output_size>]]
Fields may be separated by commas, semicolons or whitespace. Blank lines
and lines starting with '#' are skipped. Values may be written as reals
("1500.7") and are rounded to the nearest integer.

  • Missing size field            → DEFAULT_FILE_SIZE (300).
  • Unparseable value, any field  → GARBLED_VALUE_DEFAULT (1000); the
                                    line is kept.
  • Length ≤ 0                    → line skipped with a warning (a job
                                    must have positive work).
  • Negative size                 → DEFAULT_FILE_SIZE.

Job ids are assigned 0, 1, 2, ... over the accepted lines.

The file is decoded as UTF-8 with undecodable bytes replaced, so a stray
Latin-1 byte in a comment never aborts a load. A path that exists but
cannot be read (a directory, no permission) raises InvalidInputError.

If the dataset file does not exist, FALLBACK_JOB_COUNT random jobs are
generated instead with length = FALLBACK_LENGTH_MIN + U{0 .. SPAN − 1}.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import List, Optional, Union

import numpy as np
from pydantic import BaseModel, Field

from cloudsched.shared.errors import InvalidInputError
from cloudsched.shared.models import Job, Resource

logger = logging.getLogger(__name__)

# ── Cluster constants ─────────────────────────────────────────────────────────

DATACENTER_COUNT: int = 6
HOSTS_PER_DATACENTER: int = 3
VMS_PER_HOST: int = 3
PES_PER_VM: int = 1

VM_MIPS_MIN: int = 500
"""Slowest possible VM core speed."""

VM_MIPS_SPAN: int = 1500
"""Width of the uniform integer speed range added on top of VM_MIPS_MIN."""

# ── Workload constants ────────────────────────────────────────────────────────

DEFAULT_FILE_SIZE: int = 300
"""File / output size used when the dataset omits those columns."""

GARBLED_VALUE_DEFAULT: int = 1000
"""Value substituted for any dataset field that does not parse as a number."""

FALLBACK_JOB_COUNT: int = 100
FALLBACK_LENGTH_MIN: int = 5000
FALLBACK_LENGTH_SPAN: int = 15000

_FIELD_SPLIT = re.compile(r"[,;\s]+")


class ClusterConfig(BaseModel):
    """Topology and speed range of the generated VM list."""
    datacenter_count: int = Field(DATACENTER_COUNT, ge=1)
    hosts_per_datacenter: int = Field(HOSTS_PER_DATACENTER, ge=1)
    vms_per_host: int = Field(VMS_PER_HOST, ge=1)
    pes_per_vm: int = Field(PES_PER_VM, ge=1)
    mips_min: int = Field(VM_MIPS_MIN, gt=0)
    mips_span: int = Field(VM_MIPS_SPAN, ge=1)

    @property
    def vm_count(self) -> int:
        return self.datacenter_count * self.hosts_per_datacenter * self.vms_per_host


def build_resources(
    rng: np.random.Generator,
    config: Optional[ClusterConfig] = None,
) -> List[Resource]:
    """
    Create the heterogeneous VM list for one repetition.

    Args:
        rng:    Pseudorandom source for VM speeds.
        config: Cluster topology. Defaults to the 54-VM reference cluster.
    """
    config = config or ClusterConfig()
    speeds = config.mips_min + rng.integers(0, config.mips_span, size=config.vm_count)
    return [
        Resource(resource_id=i, mips=float(mips), pes=config.pes_per_vm)
        for i, mips in enumerate(speeds)
    ]


def generate_jobs(
    rng: np.random.Generator,
    count: int = FALLBACK_JOB_COUNT,
) -> List[Job]:
    """Random workload: `count` jobs with lengths in [5000, 19999] MI."""
    lengths = FALLBACK_LENGTH_MIN + rng.integers(0, FALLBACK_LENGTH_SPAN, size=count)
    return [Job(job_id=i, length=float(length)) for i, length in enumerate(lengths)]


def _parse_int(value: str) -> int:
    """Parse an integer or real string, rounding half up. GARBLED_VALUE_DEFAULT if garbled."""
    try:
        number = float(value)
    except ValueError:
        return GARBLED_VALUE_DEFAULT
    if not np.isfinite(number):
        return GARBLED_VALUE_DEFAULT
    return int(np.floor(number + 0.5))


def parse_jobs(lines: List[str]) -> List[Job]:
    """
    Parse dataset lines into Jobs. See the module docstring for the format.

    Garbled fields are defaulted, never fatal. Only a non-positive length
    drops the line (logged).
    """
    jobs: List[Job] = []
    for line_no, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue

        parts = _FIELD_SPLIT.split(line)
        length = _parse_int(parts[0])
        if length <= 0:
            logger.warning("Skipping dataset line %d with non-positive length: %r", line_no, line)
            continue

        sizes = [
            _parse_int(parts[k]) if len(parts) > k else DEFAULT_FILE_SIZE
            for k in (1, 2)
        ]
        file_size, output_size = (
            size if size >= 0 else DEFAULT_FILE_SIZE
            for size in sizes
        )
        jobs.append(
            Job(
                job_id=len(jobs),
                length=float(length),
                file_size=file_size,
                output_size=output_size,
            )
        )
    return jobs


def load_jobs(
    path: Optional[Union[str, Path]],
    rng: np.random.Generator,
) -> List[Job]:
    """
    Load the workload from a dataset file, or generate one if it is missing.

    Args:
        path: Dataset file. None or a non-existent path → random fallback.
        rng:  Pseudorandom source for the fallback workload.

    Raises:
        InvalidInputError: if the path exists but cannot be read.
    """
    if path is None or not Path(path).exists():
        if path is not None:
            logger.warning(
                "Dataset %s not found; generating %d random jobs.",
                path, FALLBACK_JOB_COUNT,
            )
        return generate_jobs(rng)

    try:
        text = Path(path).read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        raise InvalidInputError(f"Cannot read dataset {path}: {exc}") from exc
    jobs = parse_jobs(text.splitlines())
    logger.info("Loaded %d jobs from dataset %s", len(jobs), path)
    return jobs
