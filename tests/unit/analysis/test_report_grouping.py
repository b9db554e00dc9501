"""Unit tests for report grouping and totals."""

from __future__ import annotations

from kernel_scan.analysis.report import build_report
from kernel_scan.data.models import UNKNOWN_KERNEL, BestResult, KernelSignature, ReadFailure, SourceFile
from kernel_scan.data.registry import KernelRegistry

POISSON = SourceFile.from_path("/work/Poisson/poisson.cu")
LAPLACE = SourceFile.from_path("/work/Laplace/laplace.cu")
EMPTY = SourceFile.from_path("/work/common/util.cuh")


def _registry() -> KernelRegistry:
    reg = KernelRegistry()
    reg.add_source(POISSON)
    reg.register(
        [
            KernelSignature(source=POISSON, kernel_name="red", params="double* u"),
            KernelSignature(source=POISSON, kernel_name="black", params="double* u"),
        ]
    )
    reg.add_source(EMPTY)
    reg.add_source(LAPLACE)
    reg.register([KernelSignature(source=LAPLACE, kernel_name="jacobi", params="float* u, int n")])
    return reg


def _res(source: str, kernel: str, precision: str, attribution: str = "declared") -> BestResult:
    return BestResult(
        source_name=source,
        kernel_name=kernel,
        precision=precision,  # type: ignore[arg-type]
        attribution=attribution,  # type: ignore[arg-type]
    )


def test_grouping_follows_registry_order() -> None:
    results = [
        _res("laplace.cu", "jacobi", "double"),
        _res("poisson.cu", "black", "double"),
        _res("poisson.cu", "red", "double"),
        _res("poisson.cu", "red", "float"),
        _res("laplace.cu", "jacobi", "half"),
    ]
    report = build_report(_registry(), results)

    assert [s.name for s in report.scripts] == ["poisson.cu", "util.cuh", "laplace.cu"]
    poisson = report.scripts[0]
    assert [k.signature.kernel_name for k in poisson.kernels] == ["red", "black"]
    assert [r.precision for r in poisson.kernels[0].results] == ["double", "float"]
    assert [r.precision for r in poisson.kernels[1].results] == ["double"]
    assert report.scripts[1].kernel_count == 0
    assert [r.precision for r in report.scripts[2].kernels[0].results] == ["double", "half"]
    assert report.results == tuple(results)


def test_totals_match_sections() -> None:
    report = build_report(_registry(), [])
    assert report.scripts_analyzed == 2
    assert report.kernels_detected == 3
    assert report.kernels_detected == sum(s.kernel_count for s in report.scripts)
    assert len(report.signatures) == 3


def test_kernel_without_results_is_listed() -> None:
    report = build_report(_registry(), [_res("poisson.cu", "red", "half")])
    black = report.scripts[0].kernels[1]
    assert black.signature.kernel_name == "black"
    assert black.results == ()


def test_unknown_and_unmatched_results_go_to_unattributed() -> None:
    results = [
        _res("poisson.cu", UNKNOWN_KERNEL, "double", "ambiguous"),
        _res("poisson.cu", "renamed", "float"),
        _res("util.cuh", UNKNOWN_KERNEL, "half", "missing"),
    ]
    report = build_report(_registry(), results)
    poisson, util, _ = report.scripts
    assert [r.kernel_name for r in poisson.unattributed] == [UNKNOWN_KERNEL, "renamed"]
    assert [r.precision for r in util.unattributed] == ["half"]
    assert report.unattributed_count == 3


def test_results_for_unscanned_source_get_their_own_section() -> None:
    report = build_report(_registry(), [_res("ghost.cu", "k", "double")])
    last = report.scripts[-1]
    assert last.name == "ghost.cu"
    assert last.path == ""
    assert last.kernels == ()
    assert [r.kernel_name for r in last.unattributed] == ["k"]
    assert report.scripts_analyzed == 2


def test_shared_base_name_results_placed_once() -> None:
    twin = SourceFile.from_path("/other/poisson.cu")
    reg = _registry()
    reg.register([KernelSignature(source=twin, kernel_name="red", params="")])
    results = [_res("poisson.cu", "red", "double"), _res("poisson.cu", UNKNOWN_KERNEL, "float", "ambiguous")]
    report = build_report(reg, results)

    placed = [r for s in report.scripts for k in s.kernels for r in k.results]
    assert len(placed) == 1
    assert report.scripts[0].kernels[0].results == (results[0],)
    assert report.unattributed_count == 1


def test_failures_are_carried() -> None:
    failure = ReadFailure(path="/runs/x.out", kind="log", reason="Permission denied")
    report = build_report(_registry(), [], failures=[failure])
    assert report.failures == (failure,)
