"""Report model: registry kernels joined with resolved best results.

Grouping follows the registry: sources in first-seen order, kernels in
registration order, and each kernel's results in production order (which is
canonical precision order when logs are collected via
:func:`kernel_scan.parsing.log_names.collect_log_artifacts`). Results that
could not be joined to a registered kernel are kept per source file in an
``unattributed`` bucket instead of being dropped.

Classes
-------
KernelSection
    One registered kernel and its best results.
ScriptSection
    One source file: its kernels and unattributed results.
KernelReport
    The full run view plus totals and read failures.
"""

from __future__ import annotations

from typing import Iterable, Sequence

from attrs import define, field

from kernel_scan.data.models import BestResult, KernelSignature, ReadFailure
from kernel_scan.data.registry import KernelRegistry


@define(kw_only=True, frozen=True)
class KernelSection:
    signature: KernelSignature
    results: tuple[BestResult, ...] = field(default=(), converter=tuple)


@define(kw_only=True, frozen=True)
class ScriptSection:
    """Report block for one source file.

    ``path`` is empty for sources that only appear in logs (never scanned).
    """

    name: str
    path: str = ""
    kernels: tuple[KernelSection, ...] = field(default=(), converter=tuple)
    unattributed: tuple[BestResult, ...] = field(default=(), converter=tuple)

    @property
    def kernel_count(self) -> int:
        return len(self.kernels)


@define(kw_only=True, frozen=True)
class KernelReport:
    """Consolidated view of one analysis run.

    Attributes
    ----------
    scripts : tuple of ScriptSection
        Hierarchical grouping (source → kernel → results).
    signatures : tuple of KernelSignature
        Flat list of registered kernels (kernel table rows).
    results : tuple of BestResult
        Flat list of resolved results (best-result table rows).
    scripts_analyzed : int
        Sources with at least one registered kernel.
    kernels_detected : int
        Registered kernels over all sources.
    failures : tuple of ReadFailure
        Files that could not be read.
    """

    scripts: tuple[ScriptSection, ...] = field(default=(), converter=tuple)
    signatures: tuple[KernelSignature, ...] = field(default=(), converter=tuple)
    results: tuple[BestResult, ...] = field(default=(), converter=tuple)
    scripts_analyzed: int = 0
    kernels_detected: int = 0
    failures: tuple[ReadFailure, ...] = field(default=(), converter=tuple)

    @property
    def unattributed_count(self) -> int:
        return sum(len(s.unattributed) for s in self.scripts)


def build_report(
    registry: KernelRegistry,
    results: Iterable[BestResult],
    failures: Sequence[ReadFailure] = (),
) -> KernelReport:
    """Join ``registry`` and resolved ``results`` into a :class:`KernelReport`.

    Parameters
    ----------
    registry : KernelRegistry
        Completed registry for the run.
    results : iterable of BestResult
        Results after attribution repair, in production order.
    failures : sequence of ReadFailure, optional
        Read failures to carry into the report.
    """

    all_results = list(results)
    by_source: dict[str, list[int]] = {}
    for i, r in enumerate(all_results):
        by_source.setdefault(r.source_name, []).append(i)

    scripts: list[ScriptSection] = []
    claimed: set[int] = set()
    placed: set[str] = set()
    for source in registry.sources:
        pending = by_source.get(source.name, [])
        kernels: list[KernelSection] = []
        for sig in registry.kernels_of(source):
            idx = [i for i in pending if i not in claimed and all_results[i].kernel_name == sig.kernel_name]
            claimed.update(idx)
            kernels.append(KernelSection(signature=sig, results=[all_results[i] for i in idx]))

        # Results for a name shared by several files are placed once, on its first file.
        unattributed: list[BestResult] = []
        if source.name not in placed:
            placed.add(source.name)
            known = {k.kernel_name for k in registry.kernels_of(source.name)}
            unattributed = [all_results[i] for i in pending if all_results[i].kernel_name not in known]
        scripts.append(
            ScriptSection(name=source.name, path=source.path, kernels=kernels, unattributed=unattributed)
        )

    for name, pending in by_source.items():
        if name in placed:
            continue
        placed.add(name)
        scripts.append(ScriptSection(name=name, unattributed=[all_results[i] for i in pending]))

    return KernelReport(
        scripts=scripts,
        signatures=registry.all_signatures(),
        results=all_results,
        scripts_analyzed=registry.scripts_with_kernels(),
        kernels_detected=registry.total_kernels(),
        failures=failures,
    )
