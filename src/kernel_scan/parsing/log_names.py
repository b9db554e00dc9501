"""Benchmark log naming: ``<script>_<precision>_<jobid>.out``.

Dispatch writes one log per (source file, precision) under the run's
``runs/`` directory; this module formats those names and recovers
:class:`~kernel_scan.data.models.BenchmarkRun` records from a directory of
existing logs.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Optional, Sequence

from kernel_scan.data.models import PRECISIONS, BenchmarkRun

logger = logging.getLogger(__name__)

LOG_SUFFIX = ".out"

_LOG_NAME = re.compile(
    r"^(?P<script>.+)_(?P<precision>" + "|".join(PRECISIONS) + r")_(?P<job>[0-9]+)" + re.escape(LOG_SUFFIX) + "$"
)


def format_log_name(script: str, precision: str, job_id: str = "%j") -> str:
    """Return the log file name for a run; ``%j`` lets Slurm fill in the job id.

    Examples
    --------
    >>> format_log_name('poisson.cu', 'half', '42')
    'poisson.cu_half_42.out'
    """

    return f"{script}_{precision}_{job_id}{LOG_SUFFIX}"


def run_from_log_path(path: str | Path) -> Optional[BenchmarkRun]:
    """Parse a log path into a :class:`BenchmarkRun`, or None if the name does not match."""

    p = Path(path)
    m = _LOG_NAME.match(p.name)
    if m is None:
        return None
    return BenchmarkRun(
        source_name=m.group("script"),
        precision=m.group("precision"),  # type: ignore[arg-type]
        log_path=str(p),
        job_id=m.group("job"),
    )


def collect_log_artifacts(runs_dir: str | Path, source_order: Sequence[str] = ()) -> list[BenchmarkRun]:
    """List the benchmark logs present in ``runs_dir``.

    Runs are ordered by the position of their source in ``source_order``
    (unknown sources last, by name), then by canonical precision order, then
    by numeric job id. A missing directory yields an empty list.

    Parameters
    ----------
    runs_dir : str or Path
        Directory holding ``*.out`` logs.
    source_order : sequence of str
        Source base names in discovery order.
    """

    d = Path(runs_dir)
    if not d.is_dir():
        logger.info("No run directory at %s; no logs to parse", d)
        return []
    rank = {name: i for i, name in enumerate(source_order)}
    runs: list[BenchmarkRun] = []
    for p in sorted(d.glob(f"*{LOG_SUFFIX}")):
        run = run_from_log_path(p)
        if run is None:
            logger.warning("Skipping log with unrecognized name: %s", p.name)
            continue
        runs.append(run)

    def _key(r: BenchmarkRun) -> tuple:
        return (
            rank.get(r.source_name, len(rank)),
            r.source_name,
            PRECISIONS.index(r.precision),
            int(r.job_id or 0),
        )

    return sorted(runs, key=_key)
