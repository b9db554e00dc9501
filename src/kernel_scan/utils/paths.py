"""Path utilities.

Helpers to normalize and resolve filesystem paths in a Hydra-aware workflow
without depending directly on Hydra in this module.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional


def resolve_hydra_path(value: Optional[str], cwd: Path) -> Optional[str]:
    """
    Return an absolute path string for a config-provided path.

    Parameters
    ----------
    value : str or None
        Path value from configuration. May be absolute or relative. ``None`` or
        empty/whitespace-only strings yield ``None``. A leading ``~`` is expanded.
    cwd : pathlib.Path
        Base directory to resolve relative paths against (for example,
        the Hydra runtime working directory).

    Returns
    -------
    str or None
        Absolute path string if the input was non-empty; otherwise ``None``.
    """

    if value is None:
        return None
    s = str(value).strip()
    if not s or s.lower() == "null":
        return None
    p = Path(os.path.expanduser(s))
    if p.is_absolute():
        return str(p)
    return str(Path(cwd) / p)


def workspace_root() -> str:
    """
    Return the absolute path to the workspace root.

    The root is inferred by walking parents of this file until a directory
    containing ``pyproject.toml`` or ``.git`` is found.
    """

    here = Path(__file__).resolve()
    for parent in here.parents:
        if (parent / "pyproject.toml").is_file() or (parent / ".git").is_dir():
            return str(parent)
    return str(here.parents[-1])


def config_dir() -> str:
    """Return the absolute path of the Hydra ``conf/`` directory."""

    return str(Path(workspace_root()) / "conf")
