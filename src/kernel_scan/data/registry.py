"""Kernel registry: deduplicated, order-preserving kernel signatures per file.

The registry is the single source of truth for which kernels exist in a run.
It is filled once during the source scanning pass and read afterwards by the
attribution repair and report stages.
"""

from __future__ import annotations

from typing import Iterable, Optional, Union

from kernel_scan.data.models import KernelSignature, SourceFile

SourceRef = Union[SourceFile, str]


class KernelRegistry:
    """Accumulates :class:`KernelSignature` records keyed by ``(source, kernel_name)``.

    The first registration of a key wins; later ones are ignored. Sources are
    remembered in first-seen order, including files without kernels. Lookups
    accept either a :class:`SourceFile` or a display name, because benchmark
    logs only carry the source base name. A name shared by several files
    resolves to all of them, in first-seen order.

    Attributes
    ----------
    sources : tuple of SourceFile
        Read-only view of all registered sources in first-seen order.
    """

    def __init__(self) -> None:
        self.m_kernels: dict[SourceFile, list[KernelSignature]] = {}
        self.m_by_name: dict[str, list[SourceFile]] = {}
        self.m_seen: set[tuple[SourceFile, str]] = set()

    @property
    def sources(self) -> tuple[SourceFile, ...]:
        return tuple(self.m_kernels)

    def add_source(self, source: SourceFile) -> None:
        """Record ``source`` as scanned, even if it declares no kernels."""

        if source in self.m_kernels:
            return
        self.m_kernels[source] = []
        self.m_by_name.setdefault(source.name, []).append(source)

    def register(self, signatures: Iterable[KernelSignature]) -> None:
        """Register signatures; repeated ``(source, kernel_name)`` keys are ignored."""

        for sig in signatures:
            self.add_source(sig.source)
            if sig.key in self.m_seen:
                continue
            self.m_seen.add(sig.key)
            self.m_kernels[sig.source].append(sig)

    def _files_for(self, source: SourceRef) -> list[SourceFile]:
        if isinstance(source, SourceFile):
            return [source] if source in self.m_kernels else []
        return list(self.m_by_name.get(str(source), []))

    def has_source(self, source: SourceRef) -> bool:
        return bool(self._files_for(source))

    def kernels_of(self, source: SourceRef) -> list[KernelSignature]:
        """Return the kernels of ``source`` in registration order."""

        out: list[KernelSignature] = []
        for f in self._files_for(source):
            out.extend(self.m_kernels[f])
        return out

    def kernel_count(self, source: SourceRef) -> int:
        return len(self.kernels_of(source))

    def sole_kernel_name_of(self, source: SourceRef) -> Optional[str]:
        """Return the kernel name iff exactly one kernel is registered for ``source``."""

        kernels = self.kernels_of(source)
        if len(kernels) != 1:
            return None
        return kernels[0].kernel_name

    def all_signatures(self) -> list[KernelSignature]:
        """Every registered signature, grouped by source in first-seen order."""

        out: list[KernelSignature] = []
        for sigs in self.m_kernels.values():
            out.extend(sigs)
        return out

    def total_kernels(self) -> int:
        return sum(len(v) for v in self.m_kernels.values())

    def scripts_with_kernels(self) -> int:
        return sum(1 for v in self.m_kernels.values() if v)
