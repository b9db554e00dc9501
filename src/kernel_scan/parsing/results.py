"""Best-result extraction from free-text benchmark logs.

Autotuning runs print a ``GLOBAL_BEST`` line carrying the winning launch
configuration as ``key=value`` tokens, e.g.::

    === KERNEL: jacobi_step ===
    ...
    GLOBAL_BEST bx=128 by=4 gflops=10.5 BW=200.0 time_ms=1.2

Which kernel a best line belongs to is taken from the last kernel-context
marker seen before it: either ``KERNEL: <name>`` or an attribute line
``[KATTR] ... kernel=<name>``. Best lines that appear before any context
marker are attributed to :data:`~kernel_scan.data.models.UNKNOWN_KERNEL`.
"""

from __future__ import annotations

import logging
import re

from attrs import define

from kernel_scan.data.models import UNKNOWN_KERNEL, BestResult

logger = logging.getLogger(__name__)

_NAME = r"([A-Za-z0-9_]+(?:::[A-Za-z0-9_]+)*)"
_INT = r"([0-9]+)"
_REAL = r"([0-9.]+(?:[eE][-+]?[0-9]+)?)"

# result field -> (log key, value pattern)
BEST_FIELDS: dict[str, tuple[str, str]] = {
    "bx": ("bx", _INT),
    "by": ("by", _INT),
    "gflops": ("gflops", _REAL),
    "bw_gbps": ("BW", _REAL),
    "time_ms": ("time_ms", _REAL),
}


@define(kw_only=True, frozen=True)
class LogMarkers:
    """Textual markers recognized in benchmark logs.

    Parameters
    ----------
    kernel_marker : str
        Explicit kernel-context marker, followed by the kernel name.
    attr_marker : str
        Attribute-style context marker; the name is read from ``kernel=``.
    best_marker : str
        Marker of a best-result line.
    """

    kernel_marker: str = "KERNEL:"
    attr_marker: str = "[KATTR]"
    best_marker: str = "GLOBAL_BEST"


class _Patterns:
    def __init__(self, markers: LogMarkers) -> None:
        self.kernel = re.compile(re.escape(markers.kernel_marker) + r"\s*" + _NAME)
        self.attr_kernel = re.compile(r"(?<![A-Za-z0-9_])kernel=" + _NAME)
        self.fields = {
            name: re.compile(rf"(?<![A-Za-z0-9_]){re.escape(key)}={pattern}")
            for name, (key, pattern) in BEST_FIELDS.items()
        }


def parse_best_fields(line: str, markers: LogMarkers | None = None) -> dict[str, str]:
    """Return all best-result fields of ``line``; absent fields map to ``''``."""

    pats = _Patterns(markers or LogMarkers())
    return _fields(line, pats)


def _fields(line: str, pats: _Patterns) -> dict[str, str]:
    out: dict[str, str] = {}
    for name, rx in pats.fields.items():
        m = rx.search(line)
        out[name] = m.group(1) if m else ""
    return out


def extract_best_results(
    log_text: str,
    *,
    source_name: str,
    precision: str,
    log_path: str,
    markers: LogMarkers | None = None,
) -> list[BestResult]:
    """Scan a benchmark log and return its best-result records in log order.

    Parameters
    ----------
    log_text : str
        Full log text.
    source_name : str
        Base name of the source file the benchmark was built from.
    precision : str
        Precision variant of the run (``double``, ``float`` or ``half``).
    log_path : str
        Location of the log, recorded on every result.
    markers : LogMarkers, optional
        Marker configuration; defaults match the autotuning harness output.

    Returns
    -------
    list of BestResult
        One record per best-result line; unattributed lines carry
        ``kernel_name='unknown'`` and ``attribution='missing'``.
    """

    mk = markers or LogMarkers()
    pats = _Patterns(mk)
    current = ""
    out: list[BestResult] = []
    for line in log_text.splitlines():
        if mk.kernel_marker in line:
            m = pats.kernel.search(line)
            if m:
                current = m.group(1)
        if mk.attr_marker in line:
            m = pats.attr_kernel.search(line)
            if m:
                current = m.group(1)
        if mk.best_marker not in line:
            continue
        fields = _fields(line, pats)
        missing = [k for k, v in fields.items() if not v]
        if missing:
            logger.debug("%s: best line without %s: %r", log_path, ",".join(missing), line.strip())
        out.append(
            BestResult(
                source_name=source_name,
                kernel_name=current or UNKNOWN_KERNEL,
                precision=precision,  # type: ignore[arg-type]
                log_path=log_path,
                attribution="declared" if current else "missing",
                **fields,
            )
        )
    if not out:
        logger.info("%s: no %s lines", log_path, mk.best_marker)
    return out
