"""Domain models and the kernel registry for ``kernel_scan``.

This package hosts the attrs-based records shared by the scanning, repair,
and reporting stages.
"""

from __future__ import annotations

from .models import (
    ATTRIBUTIONS,
    PRECISIONS,
    UNKNOWN_KERNEL,
    BenchmarkRun,
    BestResult,
    KernelSignature,
    ReadFailure,
    SourceFile,
)
from .registry import KernelRegistry

__all__ = [
    "PRECISIONS",
    "ATTRIBUTIONS",
    "UNKNOWN_KERNEL",
    "SourceFile",
    "KernelSignature",
    "BenchmarkRun",
    "BestResult",
    "ReadFailure",
    "KernelRegistry",
]
