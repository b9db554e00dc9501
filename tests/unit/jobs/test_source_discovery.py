"""Unit tests for route discovery."""

from __future__ import annotations

from pathlib import Path

from kernel_scan.jobs.discovery import discover_sources


def _touch(p: Path) -> Path:
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text("", encoding="utf-8")
    return p


def test_directory_routes_are_searched_recursively(tmp_path: Path) -> None:
    _touch(tmp_path / "b" / "solver.cu")
    _touch(tmp_path / "a" / "deep" / "stencil.CU")
    _touch(tmp_path / "a" / "common.cuh")
    _touch(tmp_path / "a" / "notes.md")
    _touch(tmp_path / "a" / "host.cpp")

    found = [Path(p).relative_to(tmp_path).as_posix() for p in discover_sources([tmp_path])]
    assert found == ["a/common.cuh", "a/deep/stencil.CU", "b/solver.cu"]


def test_file_routes_are_kept_in_route_order(tmp_path: Path) -> None:
    z = _touch(tmp_path / "z.cu")
    host = _touch(tmp_path / "host.cpp")
    assert discover_sources([z, host]) == [str(z), str(host)]


def test_missing_routes_are_skipped(tmp_path: Path) -> None:
    keep = _touch(tmp_path / "k.cu")
    assert discover_sources([tmp_path / "missing", keep]) == [str(keep)]


def test_duplicates_are_listed_once(tmp_path: Path) -> None:
    f = _touch(tmp_path / "src" / "k.cu")
    assert discover_sources([f, tmp_path / "src", f]) == [str(f)]


def test_custom_extensions(tmp_path: Path) -> None:
    _touch(tmp_path / "k.cu")
    hip = _touch(tmp_path / "k.hip")
    assert discover_sources([tmp_path], extensions=[".hip"]) == [str(hip)]
