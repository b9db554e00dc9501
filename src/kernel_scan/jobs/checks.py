"""Scheduler tool availability checks.

Helpers to ensure the batch scheduler CLI is available on PATH and raise a
clear, user-friendly error otherwise.
"""

from __future__ import annotations

import shutil


class ToolNotFoundError(RuntimeError):
    """Raised when a required external tool is not available on PATH."""


def ensure_sbatch(executable: str = "sbatch") -> str:
    """Return the resolved `sbatch` executable path or raise a friendly error.

    Parameters
    ----------
    executable : str, default 'sbatch'
        Name or path of the submission command.

    Raises
    ------
    ToolNotFoundError
        If the executable is not available in PATH.
    """

    path = shutil.which(executable)
    if not path:
        raise ToolNotFoundError(
            f"Slurm submission command ({executable}) not found in PATH. "
            "Run on a cluster login node or set run_jobs=false to only parse existing logs."
        )
    return path
