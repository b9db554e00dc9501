"""Report/config conversion utilities using `cattrs`.

Provides the shared converter used to write ``kernel_report.json`` and to
structure composed Hydra configuration into attrs config classes.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from cattrs import Converter

from kernel_scan.analysis.report import KernelReport

# Public converter instance; register hooks as needed.
converter = Converter()

# Config structuring raises the attrs validator errors (ValueError, TypeError) as is.
config_converter = Converter(detailed_validation=False)


def report_to_payload(report: KernelReport) -> dict[str, Any]:
    """Return the JSON payload for ``report`` (with a generation timestamp)."""

    return {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "report": converter.unstructure(report),
    }


def write_report_json(report: KernelReport, path: str | Path) -> Path:
    """Write ``report`` as JSON and return the written path."""

    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(report_to_payload(report), indent=2) + "\n", encoding="utf-8")
    return p


def load_report(path: str | Path) -> KernelReport:
    """Load a ``kernel_report.json`` back into a typed :class:`KernelReport`."""

    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    return converter.structure(payload["report"], KernelReport)
