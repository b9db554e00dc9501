"""Route discovery: expand configured files/directories into source paths."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Sequence

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS: tuple[str, ...] = (".cu", ".cuh")


def discover_sources(routes: Iterable[str | Path], extensions: Sequence[str] = DEFAULT_EXTENSIONS) -> list[str]:
    """Return source file paths for ``routes`` in route order.

    A file route is kept as given. A directory route is searched recursively
    for files whose suffix matches ``extensions`` (case-insensitive), sorted
    by path. Missing routes are logged and skipped; duplicates are kept once.

    Parameters
    ----------
    routes : iterable of str or Path
        Files or directories to scan.
    extensions : sequence of str, optional
        Suffixes (with leading dot) selected inside directories.
    """

    exts = {e.lower() for e in extensions}
    out: list[str] = []
    seen: set[str] = set()

    def _add(p: Path) -> None:
        key = str(p)
        if key not in seen:
            seen.add(key)
            out.append(key)

    for route in routes:
        root = Path(route)
        if root.is_file():
            _add(root)
        elif root.is_dir():
            found = sorted(p for p in root.rglob("*") if p.is_file() and p.suffix.lower() in exts)
            logger.info("Route %s: %d source file(s)", root, len(found))
            for p in found:
                _add(p)
        else:
            logger.warning("Path not found: %s", root)
    return out
