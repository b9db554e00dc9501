"""Domain data models for kernel scanning and benchmark attribution.

This module defines `attrs`-based data models shared by the signature
extractor, the log result extractor, and the report builder. JSON views are
produced with the shared `cattrs` converter in
:mod:`kernel_scan.contracts.convert`.

Classes
-------
SourceFile
    A discovered source file (path + display name).
KernelSignature
    One tagged kernel declaration recovered from a source file.
BenchmarkRun
    One benchmark execution (source base name, precision, log location).
BestResult
    One best-configuration record parsed from a benchmark log.
ReadFailure
    A per-file read error surfaced to the caller instead of raised.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal, Optional

from attrs import define, evolve, field
from attrs.validators import in_, instance_of

#: Canonical precision variants, in execution order.
PRECISIONS: tuple[str, ...] = ("double", "float", "half")

#: Kernel name used when a best result cannot be attributed to a kernel.
UNKNOWN_KERNEL = "unknown"

Precision = Literal["double", "float", "half"]

# declared: the log named the kernel before the marker line
# repaired: filled in from the only kernel registered for the file
# ambiguous: file has two or more kernels, left unknown
# missing: no kernel context and nothing registered to repair from
Attribution = Literal["declared", "repaired", "ambiguous", "missing"]
ATTRIBUTIONS: tuple[str, ...] = ("declared", "repaired", "ambiguous", "missing")


@define(kw_only=True, frozen=True)
class SourceFile:
    """A source file selected for kernel scanning.

    Parameters
    ----------
    path : str
        Filesystem path as discovered (not necessarily absolute).
    name : str, optional
        Display name; defaults to the base name of ``path``. Benchmark logs
        refer to sources by this name.
    """

    path: str = field(validator=[instance_of(str)])
    name: str = field(validator=[instance_of(str)])

    @name.default
    def _default_name(self) -> str:
        return Path(self.path).name

    @classmethod
    def from_path(cls, path: str | Path) -> "SourceFile":
        return cls(path=str(path))


@define(kw_only=True, frozen=True)
class KernelSignature:
    """A tagged kernel declaration.

    Parameters
    ----------
    source : SourceFile
        File the declaration was found in.
    kernel_name : str
        Trailing identifier before the parameter list (may contain ``::``).
    params : str
        Whitespace-collapsed text between the outermost parentheses.
    is_template : bool
        True when a template introducer appeared between tag and declaration.
    line : int
        1-based line number where the declaration started.
    """

    source: SourceFile
    kernel_name: str = field(validator=[instance_of(str)])
    params: str = field(validator=[instance_of(str)])
    is_template: bool = field(default=False, validator=[instance_of(bool)])
    line: int = field(default=0, validator=[instance_of(int)])

    @property
    def key(self) -> tuple[SourceFile, str]:
        """Deduplication key ``(source, kernel_name)``."""

        return (self.source, self.kernel_name)

    def display(self) -> str:
        return f"{self.kernel_name}({self.params})"


@define(kw_only=True, frozen=True)
class BenchmarkRun:
    """One benchmark execution whose log is ready to be scanned."""

    source_name: str = field(validator=[instance_of(str)])
    precision: Precision = field(validator=[in_(PRECISIONS)])
    log_path: str = field(validator=[instance_of(str)])
    job_id: Optional[str] = None


@define(kw_only=True, frozen=True)
class BestResult:
    """Best configuration reported by a benchmark log.

    Metric fields keep the exact text found in the log; an absent field is
    the empty string so exports can render it verbatim.

    Parameters
    ----------
    source_name : str
        Base name of the benchmarked source file.
    kernel_name : str
        Attributed kernel, or :data:`UNKNOWN_KERNEL`.
    precision : {'double', 'float', 'half'}
        Precision variant of the run that produced the log.
    bx, by : str
        Winning block dimensions.
    gflops : str
        Throughput in GFLOP/s.
    bw_gbps : str
        Bandwidth in GB/s.
    time_ms : str
        Elapsed time in milliseconds.
    log_path : str
        Log the record was parsed from.
    attribution : str
        How ``kernel_name`` was obtained; one of :data:`ATTRIBUTIONS`.
    """

    source_name: str = field(validator=[instance_of(str)])
    kernel_name: str = field(validator=[instance_of(str)])
    precision: Precision = field(validator=[in_(PRECISIONS)])
    bx: str = ""
    by: str = ""
    gflops: str = ""
    bw_gbps: str = ""
    time_ms: str = ""
    log_path: str = ""
    attribution: Attribution = field(default="declared", validator=[in_(ATTRIBUTIONS)])

    @property
    def is_unknown(self) -> bool:
        return self.kernel_name == UNKNOWN_KERNEL

    def attributed_to(self, kernel_name: str) -> "BestResult":
        """Return a copy attributed to ``kernel_name`` by repair."""

        return evolve(self, kernel_name=kernel_name, attribution="repaired")


@define(kw_only=True, frozen=True)
class ReadFailure:
    """A file that could not be read during a scan."""

    path: str
    kind: Literal["source", "log"]
    reason: str
