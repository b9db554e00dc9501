"""Export helpers for kernel scan reports.

Functions
---------
write_kernel_table
    Kernel registry as CSV (one row per registered kernel).
write_best_table
    Resolved best results as CSV (one row per result).
render_summary
    Hierarchical plain-text summary (script → kernel → best per precision).
write_summary_markdown
    Markdown rendition of the summary using mdutils.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Iterable, Optional

from mdutils.mdutils import MdUtils  # type: ignore[import-untyped]

from kernel_scan.analysis.report import KernelReport, ScriptSection
from kernel_scan.data.models import BestResult, KernelSignature

KERNEL_COLUMNS = ["script_name", "kernel_name", "params", "has_template", "script_path"]
BEST_COLUMNS = ["script_name", "kernel_name", "dtype", "bx", "by", "gflops", "bw_gbps", "time_ms", "log_path"]

_RULE = "-------------------------------------------------------"


def kernel_row(sig: KernelSignature) -> list[str]:
    return [sig.source.name, sig.kernel_name, sig.params, "1" if sig.is_template else "0", sig.source.path]


def best_row(r: BestResult) -> list[str]:
    return [r.source_name, r.kernel_name, r.precision, r.bx, r.by, r.gflops, r.bw_gbps, r.time_ms, r.log_path]


def _write_csv(path: str | Path, header: list[str], rows: Iterable[list[str]]) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with open(p, "w", newline="", encoding="utf-8") as f:
        w = csv.writer(f)
        w.writerow(header)
        for row in rows:
            w.writerow(row)
    return p


def write_kernel_table(report: KernelReport, path: str | Path) -> Path:
    """Write ``script_name,kernel_name,params,has_template,script_path`` rows.

    Parameter text containing commas is quoted by the CSV writer.
    """

    return _write_csv(path, KERNEL_COLUMNS, (kernel_row(s) for s in report.signatures))


def write_best_table(report: KernelReport, path: str | Path) -> Path:
    """Write one row per resolved best result (``kernel_name`` may be ``unknown``)."""

    return _write_csv(path, BEST_COLUMNS, (best_row(r) for r in report.results))


def format_best_line(r: BestResult) -> str:
    """Render one best result; absent fields are left empty."""

    return (
        f"→ [BEST {r.precision}] bx={r.bx} by={r.by} GFLOPS={r.gflops} "
        f"BW={r.bw_gbps}GB/s time={r.time_ms}ms"
    )


def _script_lines(script: ScriptSection) -> list[str]:
    lines = [f"[script] {script.name}", f"    kernels: {script.kernel_count}"]
    for k in script.kernels:
        suffix = "  [template]" if k.signature.is_template else ""
        lines.append(f"        - {k.signature.display()}{suffix}")
        for r in k.results:
            lines.append(f"            {format_best_line(r)}")
        lines.append("")
    if script.unattributed:
        lines.append(f"    unattributed results: {len(script.unattributed)}")
        for r in script.unattributed:
            lines.append(f"            {format_best_line(r)}  (kernel={r.kernel_name}, {r.attribution})")
        lines.append("")
    return lines


def render_summary(report: KernelReport, *, runs_dir: Optional[str] = None) -> str:
    """Render the hierarchical text summary with a trailing totals section.

    Parameters
    ----------
    report : KernelReport
        Report to render.
    runs_dir : str, optional
        Directory holding the benchmark logs, mentioned in the footer.
    """

    lines = ["==================== FINAL SUMMARY ====================", _RULE]
    for script in report.scripts:
        lines.extend(_script_lines(script))
        lines.append("")
    if report.failures:
        lines.append(_RULE)
        lines.append(f"Unreadable files: {len(report.failures)}")
        for f in report.failures:
            lines.append(f"    [{f.kind}] {f.path}: {f.reason}")
    lines.append(_RULE)
    lines.append(f"Total scripts analyzed : {report.scripts_analyzed}")
    lines.append(f"Total kernels detected : {report.kernels_detected}")
    lines.append(f"Unattributed results   : {report.unattributed_count}")
    if runs_dir:
        lines.append(f"Detailed logs stored in: {runs_dir}")
    lines.append("=======================================================")
    return "\n".join(lines) + "\n"


def write_summary_markdown(report: KernelReport, path: str) -> None:
    """Write the summary as Markdown using mdutils.

    Parameters
    ----------
    report : KernelReport
        Report to render.
    path : str
        Destination file path. A ``.md`` suffix is stripped because mdutils
        appends it.
    """

    file_base = path[:-3] if path.endswith(".md") else path
    md = MdUtils(file_name=file_base)
    md.new_header(level=1, title="Kernel Scan Summary")
    md.new_list(
        items=[
            f"Scripts analyzed: {report.scripts_analyzed}",
            f"Kernels detected: {report.kernels_detected}",
            f"Best results: {len(report.results)} ({report.unattributed_count} unattributed)",
        ]
    )

    for script in report.scripts:
        md.new_header(level=2, title=script.name)
        if script.path:
            md.new_paragraph(f"Path: `{script.path}`")
        if script.kernels:
            header = ["Kernel", "Parameters", "Template"]
            table: list[str] = header.copy()
            for k in script.kernels:
                sig = k.signature
                table.extend([sig.kernel_name, sig.params, "yes" if sig.is_template else "no"])
            md.new_table(columns=3, rows=len(script.kernels) + 1, text=table, text_align="left")
        else:
            md.new_paragraph("No tagged kernels.")

        rows = [r for k in script.kernels for r in k.results] + list(script.unattributed)
        if rows:
            header = ["Kernel", "Precision", "bx", "by", "GFLOPS", "BW (GB/s)", "Time (ms)"]
            table = header.copy()
            for r in rows:
                table.extend([r.kernel_name, r.precision, r.bx, r.by, r.gflops, r.bw_gbps, r.time_ms])
            md.new_paragraph("Best configurations:")
            md.new_table(columns=7, rows=len(rows) + 1, text=table, text_align="center")

    if report.failures:
        md.new_header(level=2, title="Unreadable Files")
        md.new_list(items=[f"{f.kind}: {f.path} ({f.reason})" for f in report.failures])

    md.create_md_file()
