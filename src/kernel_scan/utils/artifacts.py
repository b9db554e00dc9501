"""Run artifacts management.

This module provides a small manager for the run directory tree
(``kernel_scan_<timestamp>/`` with a ``runs/`` subfolder for benchmark logs)
and writes provenance files.

Classes
-------
Artifacts
    Manager class for the run directory layout with read-only property
    access and explicit setters/factories.

Functions
---------
write_config_yaml
    Serialize a Hydra/OmegaConf config (or plain container) to YAML.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Type, TypeVar

from omegaconf import OmegaConf  # type: ignore[import-untyped]

T = TypeVar("T", bound="Artifacts")

RUNS_SUBDIR = "runs"


class Artifacts:
    """Artifacts manager for one analysis run.

    The constructor takes no arguments; use :meth:`from_root` or
    :meth:`set_root` to configure the target directory.

    Attributes
    ----------
    root : pathlib.Path
        Read-only property for the run directory.
    runs_dir : pathlib.Path
        Read-only property for the benchmark log directory.
    """

    def __init__(self) -> None:
        self.m_root: Optional[Path] = None
        self.m_runs_subdir = RUNS_SUBDIR

    @property
    def root(self) -> Path:
        if self.m_root is None:
            raise RuntimeError("Artifacts root not set. Use from_root() or set_root().")
        return self.m_root

    @property
    def runs_dir(self) -> Path:
        return self.root / self.m_runs_subdir

    def set_root(self, root: Path | str, runs_subdir: str = RUNS_SUBDIR) -> None:
        """Set and prepare the run directory and its ``runs/`` subfolder."""

        rp = Path(root).resolve()
        rp.mkdir(parents=True, exist_ok=True)
        (rp / runs_subdir).mkdir(parents=True, exist_ok=True)
        self.m_root = rp
        self.m_runs_subdir = runs_subdir

    @classmethod
    def from_root(cls: Type[T], root: Path | str, runs_subdir: str = RUNS_SUBDIR) -> T:
        """Factory that returns an initialized manager for ``root``."""

        obj = cls()
        obj.set_root(root, runs_subdir)
        return obj

    def path(self, name: str) -> Path:
        """Return a path within the run directory."""

        return self.root / name


def write_config_yaml(path: Path, cfg: Any) -> None:
    """Serialize a Hydra/OmegaConf config object (or dict) to YAML at ``path``."""

    path.write_text(OmegaConf.to_yaml(cfg), encoding="utf-8")
