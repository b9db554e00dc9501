"""Unit tests for conservative attribution repair."""

from __future__ import annotations

from kernel_scan.analysis.repair import repair_attribution
from kernel_scan.data.models import UNKNOWN_KERNEL, BestResult, KernelSignature, SourceFile
from kernel_scan.data.registry import KernelRegistry


def _registry(**kernels: list[str]) -> KernelRegistry:
    reg = KernelRegistry()
    for name, names in kernels.items():
        src = SourceFile.from_path(f"/work/{name}.cu")
        reg.add_source(src)
        reg.register([KernelSignature(source=src, kernel_name=k, params="") for k in names])
    return reg


def _result(source: str, kernel: str = UNKNOWN_KERNEL, precision: str = "double") -> BestResult:
    return BestResult(
        source_name=source,
        kernel_name=kernel,
        precision=precision,  # type: ignore[arg-type]
        bx="128",
        attribution="declared" if kernel != UNKNOWN_KERNEL else "missing",
    )


def test_single_kernel_file_is_repaired() -> None:
    reg = _registry(poisson=["baz"])
    (r,) = repair_attribution([_result("poisson.cu")], reg)
    assert r.kernel_name == "baz"
    assert r.attribution == "repaired"
    assert r.bx == "128"


def test_multi_kernel_file_stays_unknown() -> None:
    reg = _registry(poisson=["baz", "qux"])
    (r,) = repair_attribution([_result("poisson.cu")], reg)
    assert r.kernel_name == UNKNOWN_KERNEL
    assert r.attribution == "ambiguous"


def test_unregistered_file_stays_missing() -> None:
    reg = _registry(poisson=[])
    (r,) = repair_attribution([_result("poisson.cu")], reg)
    assert r.kernel_name == UNKNOWN_KERNEL
    assert r.attribution == "missing"
    (r2,) = repair_attribution([_result("nowhere.cu")], reg)
    assert r2.attribution == "missing"


def test_declared_results_are_untouched() -> None:
    reg = _registry(poisson=["baz"])
    declared = _result("poisson.cu", kernel="other")
    (r,) = repair_attribution([declared], reg)
    assert r is declared


def test_order_preserved_and_input_unchanged() -> None:
    reg = _registry(poisson=["baz"], laplace=["a", "b"])
    raw = [
        _result("laplace.cu", precision="double"),
        _result("poisson.cu", precision="double"),
        _result("poisson.cu", kernel="baz", precision="float"),
        _result("poisson.cu", precision="half"),
    ]
    snapshot = list(raw)
    out = repair_attribution(raw, reg)
    assert [(r.source_name, r.precision, r.kernel_name) for r in out] == [
        ("laplace.cu", "double", UNKNOWN_KERNEL),
        ("poisson.cu", "double", "baz"),
        ("poisson.cu", "float", "baz"),
        ("poisson.cu", "half", "baz"),
    ]
    assert raw == snapshot
    assert all(r.kernel_name in (UNKNOWN_KERNEL, "baz") for r in raw)
    assert raw[1].kernel_name == UNKNOWN_KERNEL
    assert repair_attribution(raw, reg) == out
