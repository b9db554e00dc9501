"""Unit tests for the scan pipeline (sources, logs, repair, report)."""

from __future__ import annotations

from pathlib import Path

from kernel_scan.analysis.pipeline import analyze, scan_logs, scan_sources
from kernel_scan.data.models import UNKNOWN_KERNEL, BenchmarkRun

POISSON_SRC = """\
#include "common.h"
KERNEL_TAG
__global__ void baz(double* u, const double* f, int n)
{
}
"""

LAPLACE_SRC = """\
KERNEL_TAG
template <typename T>
__global__ void sweep_x(T* u,
                        int n) {}
KERNEL_TAG
__global__ void sweep_y(float* u, int n) {}
"""

UNKNOWN_LOG = "autotune start\nGLOBAL_BEST bx=64 by=4 gflops=12.0 BW=310.5 time_ms=0.8\n"


def _write(root: Path, name: str, text: str) -> Path:
    p = root / name
    p.write_text(text, encoding="utf-8")
    return p


def _sources(tmp_path: Path) -> list[Path]:
    paths = [_write(tmp_path, "poisson.cu", POISSON_SRC), _write(tmp_path, "laplace.cu", LAPLACE_SRC)]
    for i in range(6):
        paths.append(_write(tmp_path, f"extra_{i}.cu", f"KERNEL_TAG\n__global__ void k{i}(int a) {{}}\n"))
    return paths


def _state(reg) -> list[tuple[str, str, str, bool]]:
    return [(s.source.name, s.kernel_name, s.params, s.is_template) for s in reg.all_signatures()]


def test_parallel_scan_matches_sequential(tmp_path: Path) -> None:
    paths = _sources(tmp_path)
    seq, _ = scan_sources(paths, workers=1)
    par, _ = scan_sources(paths, workers=4)
    assert _state(seq) == _state(par)
    assert [s.name for s in seq.sources] == [s.name for s in par.sources]
    assert _state(seq)[:3] == [
        ("poisson.cu", "baz", "double* u, const double* f, int n", False),
        ("laplace.cu", "sweep_x", "T* u, int n", True),
        ("laplace.cu", "sweep_y", "float* u, int n", False),
    ]


def test_unreadable_source_does_not_stop_the_scan(tmp_path: Path) -> None:
    good = _write(tmp_path, "poisson.cu", POISSON_SRC)
    missing = tmp_path / "gone.cu"
    reg, failures = scan_sources([missing, good])
    assert [s.kernel_name for s in reg.all_signatures()] == ["baz"]
    assert len(failures) == 1
    assert failures[0].path == str(missing)
    assert failures[0].kind == "source"
    assert failures[0].reason


def test_scan_logs_keeps_run_order_and_reports_failures(tmp_path: Path) -> None:
    a = _write(tmp_path, "poisson.cu_double_1.out", "KERNEL: baz\nGLOBAL_BEST bx=8 time_ms=2\n")
    b = _write(tmp_path, "poisson.cu_float_2.out", UNKNOWN_LOG)
    runs = [
        BenchmarkRun(source_name="poisson.cu", precision="double", log_path=str(a)),
        BenchmarkRun(source_name="poisson.cu", precision="half", log_path=str(tmp_path / "missing.out")),
        BenchmarkRun(source_name="poisson.cu", precision="float", log_path=str(b)),
    ]
    results, failures = scan_logs(runs, workers=3)
    assert [(r.precision, r.kernel_name) for r in results] == [("double", "baz"), ("float", UNKNOWN_KERNEL)]
    assert [f.kind for f in failures] == ["log"]


def test_analyze_repairs_single_kernel_sources(tmp_path: Path) -> None:
    paths = [_write(tmp_path, "poisson.cu", POISSON_SRC), _write(tmp_path, "laplace.cu", LAPLACE_SRC)]
    p_log = _write(tmp_path, "poisson.cu_double_1.out", UNKNOWN_LOG)
    l_log = _write(tmp_path, "laplace.cu_double_2.out", UNKNOWN_LOG)
    runs = [
        BenchmarkRun(source_name="poisson.cu", precision="double", log_path=str(p_log)),
        BenchmarkRun(source_name="laplace.cu", precision="double", log_path=str(l_log)),
    ]
    report = analyze(paths, runs, workers=2)

    assert report.scripts_analyzed == 2
    assert report.kernels_detected == 3
    poisson, laplace = report.scripts
    (baz,) = poisson.kernels
    assert [(r.kernel_name, r.attribution, r.gflops) for r in baz.results] == [("baz", "repaired", "12.0")]
    assert [k.results for k in laplace.kernels] == [(), ()]
    assert [(r.kernel_name, r.attribution) for r in laplace.unattributed] == [(UNKNOWN_KERNEL, "ambiguous")]
    assert report.failures == ()
