"""Unit tests for the kernel registry."""

from __future__ import annotations

from kernel_scan.data.models import KernelSignature, SourceFile
from kernel_scan.data.registry import KernelRegistry

POISSON = SourceFile.from_path("/work/Poisson/poisson.cu")
LAPLACE = SourceFile.from_path("/work/Laplace/laplace2d_2.cu")


def _sig(src: SourceFile, name: str, params: str = "int n", template: bool = False) -> KernelSignature:
    return KernelSignature(source=src, kernel_name=name, params=params, is_template=template)


def _state(reg: KernelRegistry) -> list[tuple[str, str, str]]:
    return [(s.source.path, s.kernel_name, s.params) for s in reg.all_signatures()]


def test_register_preserves_first_seen_order() -> None:
    reg = KernelRegistry()
    reg.register([_sig(POISSON, "b"), _sig(LAPLACE, "z"), _sig(POISSON, "a")])
    assert reg.sources == (POISSON, LAPLACE)
    assert [s.kernel_name for s in reg.kernels_of(POISSON)] == ["b", "a"]
    assert _state(reg) == [
        (POISSON.path, "b", "int n"),
        (POISSON.path, "a", "int n"),
        (LAPLACE.path, "z", "int n"),
    ]


def test_first_write_wins() -> None:
    reg = KernelRegistry()
    reg.register([_sig(POISSON, "k", "int first")])
    reg.register([_sig(POISSON, "k", "int second")])
    (k,) = reg.kernels_of(POISSON)
    assert k.params == "int first"


def test_same_name_in_different_files_is_kept() -> None:
    reg = KernelRegistry()
    reg.register([_sig(POISSON, "k"), _sig(LAPLACE, "k")])
    assert reg.total_kernels() == 2


def test_registering_twice_is_idempotent() -> None:
    sigs = [_sig(POISSON, "a"), _sig(POISSON, "b"), _sig(LAPLACE, "c")]
    once = KernelRegistry()
    once.register(sigs)
    twice = KernelRegistry()
    twice.register(sigs)
    twice.register(sigs)
    assert _state(once) == _state(twice)
    assert once.sources == twice.sources
    assert once.total_kernels() == twice.total_kernels() == 3


def test_counts_and_sole_kernel() -> None:
    reg = KernelRegistry()
    reg.register([_sig(POISSON, "a"), _sig(POISSON, "b"), _sig(LAPLACE, "only")])
    assert reg.kernel_count(POISSON) == 2
    assert reg.sole_kernel_name_of(POISSON) is None
    assert reg.kernel_count(LAPLACE) == 1
    assert reg.sole_kernel_name_of(LAPLACE) == "only"


def test_lookup_by_display_name() -> None:
    reg = KernelRegistry()
    reg.register([_sig(LAPLACE, "only")])
    assert reg.kernel_count("laplace2d_2.cu") == 1
    assert reg.sole_kernel_name_of("laplace2d_2.cu") == "only"
    assert reg.kernel_count("missing.cu") == 0
    assert reg.sole_kernel_name_of("missing.cu") is None
    assert reg.has_source("laplace2d_2.cu")
    assert not reg.has_source(POISSON)


def test_sources_without_kernels_are_listed() -> None:
    reg = KernelRegistry()
    empty = SourceFile.from_path("/work/util.cuh")
    reg.add_source(empty)
    reg.register([_sig(POISSON, "a")])
    assert reg.sources == (empty, POISSON)
    assert reg.kernel_count(empty) == 0
    assert reg.scripts_with_kernels() == 1
    assert reg.total_kernels() == 1


def test_shared_base_name_resolves_to_all_files() -> None:
    other = SourceFile.from_path("/other/poisson.cu")
    reg = KernelRegistry()
    reg.register([_sig(POISSON, "a"), _sig(other, "b")])
    assert reg.kernel_count("poisson.cu") == 2
    assert reg.sole_kernel_name_of("poisson.cu") is None
    assert reg.kernel_count(other) == 1
