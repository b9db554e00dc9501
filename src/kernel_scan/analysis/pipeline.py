"""Scan pipeline: sources → registry, logs → results, then repair and report.

Each file is read and scanned independently, so both passes can run on a
thread pool. Per-file outputs are always merged in input order, which keeps
"first registration wins" and result order identical to a sequential run.
A file that cannot be read becomes a :class:`ReadFailure` and the remaining
files are still processed.

Functions
---------
scan_sources
    Build a :class:`KernelRegistry` from source file paths.
scan_logs
    Extract raw best results from benchmark logs.
analyze
    Full core pass returning a :class:`KernelReport`.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Iterable, Sequence, TypeVar

from attrs import define, field

from kernel_scan.analysis.repair import repair_attribution
from kernel_scan.analysis.report import KernelReport, build_report
from kernel_scan.data.models import BenchmarkRun, BestResult, KernelSignature, ReadFailure, SourceFile
from kernel_scan.data.registry import KernelRegistry
from kernel_scan.parsing.results import LogMarkers, extract_best_results
from kernel_scan.parsing.signatures import SignatureMarkers, extract_signatures

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


@define(kw_only=True)
class SourceScan:
    source: SourceFile
    signatures: list[KernelSignature] = field(factory=list)
    failure: ReadFailure | None = None


@define(kw_only=True)
class LogScan:
    run: BenchmarkRun
    results: list[BestResult] = field(factory=list)
    failure: ReadFailure | None = None


def read_text(path: str | Path) -> str:
    """Read a text file, replacing undecodable bytes."""

    return Path(path).read_text(encoding="utf-8", errors="replace")


def _map_ordered(fn: Callable[[T], R], items: Sequence[T], workers: int) -> list[R]:
    if workers <= 1 or len(items) <= 1:
        return [fn(x) for x in items]
    with ThreadPoolExecutor(max_workers=min(workers, len(items))) as pool:
        return list(pool.map(fn, items))


def _scan_source(source: SourceFile, markers: SignatureMarkers) -> SourceScan:
    try:
        text = read_text(source.path)
    except OSError as exc:
        logger.warning("Cannot read source %s: %s", source.path, exc)
        return SourceScan(source=source, failure=ReadFailure(path=source.path, kind="source", reason=str(exc)))
    return SourceScan(source=source, signatures=extract_signatures(text, source, markers))


def _scan_log(run: BenchmarkRun, markers: LogMarkers) -> LogScan:
    try:
        text = read_text(run.log_path)
    except OSError as exc:
        logger.warning("Cannot read log %s: %s", run.log_path, exc)
        return LogScan(run=run, failure=ReadFailure(path=run.log_path, kind="log", reason=str(exc)))
    results = extract_best_results(
        text,
        source_name=run.source_name,
        precision=run.precision,
        log_path=run.log_path,
        markers=markers,
    )
    return LogScan(run=run, results=results)


def scan_sources(
    paths: Iterable[str | Path],
    *,
    markers: SignatureMarkers | None = None,
    workers: int = 1,
    registry: KernelRegistry | None = None,
) -> tuple[KernelRegistry, list[ReadFailure]]:
    """Scan source files and register their kernels in input order.

    Parameters
    ----------
    paths : iterable of str or Path
        Source files in discovery order.
    markers : SignatureMarkers, optional
        Signature markers; defaults to the CUDA markers.
    workers : int, default 1
        Thread count for reading/scanning.
    registry : KernelRegistry, optional
        Registry to fill; a new one is created when omitted.

    Returns
    -------
    tuple of (KernelRegistry, list of ReadFailure)
    """

    mk = markers or SignatureMarkers()
    reg = registry if registry is not None else KernelRegistry()
    sources = [SourceFile.from_path(p) for p in paths]
    scans = _map_ordered(lambda s: _scan_source(s, mk), sources, workers)

    failures: list[ReadFailure] = []
    for scan in scans:
        if scan.failure is not None:
            failures.append(scan.failure)
            continue
        reg.add_source(scan.source)
        reg.register(scan.signatures)
        logger.info("[script] %s: %d kernel(s)", scan.source.name, len(scan.signatures))
    return reg, failures


def scan_logs(
    runs: Sequence[BenchmarkRun],
    *,
    markers: LogMarkers | None = None,
    workers: int = 1,
) -> tuple[list[BestResult], list[ReadFailure]]:
    """Extract raw best results from every run's log, preserving run order."""

    mk = markers or LogMarkers()
    scans = _map_ordered(lambda r: _scan_log(r, mk), list(runs), workers)
    results: list[BestResult] = []
    failures: list[ReadFailure] = []
    for scan in scans:
        if scan.failure is not None:
            failures.append(scan.failure)
        results.extend(scan.results)
    return results, failures


def analyze(
    source_paths: Iterable[str | Path],
    runs: Sequence[BenchmarkRun],
    *,
    signature_markers: SignatureMarkers | None = None,
    log_markers: LogMarkers | None = None,
    workers: int = 1,
) -> KernelReport:
    """Run the full core pass: scan, extract, repair, and build the report.

    Examples
    --------
    >>> report = analyze(['poisson.cu'], runs=[])  # doctest: +SKIP
    >>> report.kernels_detected  # doctest: +SKIP
    2
    """

    registry, source_failures = scan_sources(source_paths, markers=signature_markers, workers=workers)
    raw, log_failures = scan_logs(runs, markers=log_markers, workers=workers)
    resolved = repair_attribution(raw, registry)
    unresolved = sum(1 for r in resolved if r.is_unknown)
    logger.info(
        "Parsed %d best result(s) from %d log(s); %d unattributed",
        len(resolved),
        len(runs),
        unresolved,
    )
    return build_report(registry, resolved, failures=[*source_failures, *log_failures])
