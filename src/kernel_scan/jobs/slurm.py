"""Slurm job dispatch for benchmark runs.

Each source file maps (by base name) to a batch job script that builds and
autotunes it. One blocking ``sbatch --wait`` submission is made per
(source, precision); the precision is passed through the job environment and
the job's stdout lands in ``runs/<script>_<precision>_<jobid>.out``.

Submissions are never retried, cancelled, or timed out here; a failing
submission is logged and the next precision is tried.
"""

from __future__ import annotations

import logging
import os
import stat
import subprocess
from pathlib import Path
from typing import Mapping, Sequence

from attrs import define, field

from kernel_scan.data.models import BenchmarkRun
from kernel_scan.parsing.log_names import format_log_name

logger = logging.getLogger(__name__)


@define(kw_only=True, frozen=True)
class SlurmConfig:
    """Submission settings.

    Parameters
    ----------
    executable : str
        Submission command.
    precision_env : str
        Environment variable receiving the precision variant.
    export : dict of str to str
        Extra environment exported to every job.
    extra_args : tuple of str
        Additional ``sbatch`` arguments inserted before the script.
    """

    executable: str = "sbatch"
    precision_env: str = "TYPE"
    export: dict[str, str] = field(factory=lambda: {"AUTOTUNE": "1"})
    extra_args: tuple[str, ...] = field(default=(), converter=tuple)


def build_sbatch_cmd(
    job_script: Path,
    *,
    precision: str,
    output: Path,
    cfg: SlurmConfig | None = None,
) -> list[str]:
    """Return a blocking ``sbatch`` argv for one precision run.

    Parameters
    ----------
    job_script : Path
        Batch script; only its base name is passed (submission runs from its directory).
    precision : str
        Precision variant exported as ``cfg.precision_env``.
    output : Path
        Output file pattern (may contain ``%j``).
    cfg : SlurmConfig, optional
        Submission settings.

    Examples
    --------
    >>> build_sbatch_cmd(Path('/jobs/poisson.sh'), precision='half', output=Path('/r/p_half_%j.out'))[:4]
    ['sbatch', '--parsable', '--wait', '--export=ALL,TYPE=half,AUTOTUNE=1']
    """

    c = cfg or SlurmConfig()
    exports = ",".join(["ALL", f"{c.precision_env}={precision}", *(f"{k}={v}" for k, v in c.export.items())])
    return [
        c.executable,
        "--parsable",
        "--wait",
        f"--export={exports}",
        f"--output={output}",
        *c.extra_args,
        job_script.name,
    ]


def parse_job_id(stdout: str) -> str:
    """Return the job id from ``sbatch --parsable`` output (``jobid[;cluster]``)."""

    first = stdout.strip().splitlines()[0] if stdout.strip() else ""
    return first.split(";", 1)[0].strip()


def ensure_executable(path: Path) -> None:
    """Add execute permission to ``path`` when missing (best effort)."""

    if os.access(path, os.X_OK):
        return
    try:
        mode = path.stat().st_mode
        path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    except OSError as exc:
        logger.warning("Cannot make %s executable: %s", path, exc)


def submit_blocking(cmd: Sequence[str], cwd: Path) -> str:
    """Run a submission command and return the job id; raises on failure."""

    proc = subprocess.run(list(cmd), cwd=str(cwd), check=True, capture_output=True, text=True)
    job_id = parse_job_id(proc.stdout or "")
    if not job_id:
        raise RuntimeError(f"{cmd[0]} returned no job id")
    return job_id


def dispatch_runs(
    sources: Sequence[str],
    job_map: Mapping[str, str],
    precisions: Sequence[str],
    runs_dir: Path,
    cfg: SlurmConfig | None = None,
) -> list[BenchmarkRun]:
    """Submit one blocking job per (source, precision) and return the produced runs.

    Parameters
    ----------
    sources : sequence of str
        Source file paths in discovery order.
    job_map : mapping of str to str
        Source base name → job script path.
    precisions : sequence of str
        Precision variants in execution order.
    runs_dir : Path
        Directory receiving job stdout logs.
    cfg : SlurmConfig, optional
        Submission settings.
    """

    c = cfg or SlurmConfig()
    runs_dir.mkdir(parents=True, exist_ok=True)
    runs: list[BenchmarkRun] = []
    for src in sources:
        base = Path(src).name
        script_str = job_map.get(base)
        script = Path(script_str) if script_str else None
        if script is None or not script.is_file():
            logger.info("[run-sequence] No job script for %s, skipping.", base)
            continue
        ensure_executable(script)
        logger.info("[run-sequence] %s using job script: %s", base, script)
        for precision in precisions:
            output = runs_dir / format_log_name(base, precision)
            cmd = build_sbatch_cmd(script, precision=precision, output=output, cfg=c)
            logger.info("  Launching %s=%s for %s (cwd=%s)", c.precision_env, precision, base, script.parent)
            try:
                job_id = submit_blocking(cmd, cwd=script.parent)
            except (subprocess.CalledProcessError, RuntimeError, OSError) as exc:
                logger.error("  %s failed for %s=%s of %s: %s", c.executable, c.precision_env, precision, base, exc)
                continue
            log_path = runs_dir / format_log_name(base, precision, job_id)
            logger.info("    wrote: %s", log_path)
            runs.append(
                BenchmarkRun(source_name=base, precision=precision, log_path=str(log_path), job_id=job_id)  # type: ignore[arg-type]
            )
    return runs
