"""Kernel scan analyzer: discovery, optional dispatch, core pass, artifacts.

The analyzer is the orchestration layer around the core pipeline. It turns
configured routes into source files, optionally submits one Slurm job per
(source, precision), collects whatever benchmark logs exist, runs the core
scan/repair/report pass, and persists the report artifacts.

Classes
-------
OutputNames
    File names of the artifacts written into the run directory.
AnalyzerConfig
    Typed configuration (structured from Hydra via cattrs).
KernelAnalyzer
    Runs one analysis into an :class:`~kernel_scan.utils.artifacts.Artifacts` tree.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping, Optional

from attrs import define, evolve, field
from attrs.validators import deep_iterable, ge, in_, instance_of
from omegaconf import OmegaConf

from kernel_scan.analysis.pipeline import analyze
from kernel_scan.analysis.report import KernelReport
from kernel_scan.contracts.convert import config_converter, write_report_json
from kernel_scan.data.models import PRECISIONS
from kernel_scan.jobs.checks import ensure_sbatch
from kernel_scan.jobs.discovery import DEFAULT_EXTENSIONS, discover_sources
from kernel_scan.jobs.slurm import SlurmConfig, dispatch_runs
from kernel_scan.parsing.log_names import collect_log_artifacts
from kernel_scan.parsing.results import LogMarkers
from kernel_scan.parsing.signatures import SignatureMarkers
from kernel_scan.reporting.export import (
    render_summary,
    write_best_table,
    write_kernel_table,
    write_summary_markdown,
)
from kernel_scan.utils.artifacts import RUNS_SUBDIR, Artifacts
from kernel_scan.utils.paths import resolve_hydra_path


@define(kw_only=True, frozen=True)
class OutputNames:
    summary_log: str = "kernel_summary.log"
    kernel_csv: str = "kernel_summary.csv"
    best_csv: str = "kernel_best.csv"
    summary_md: str = "kernel_summary.md"
    report_json: str = "kernel_report.json"
    config_yaml: str = "config.yaml"
    runs_subdir: str = RUNS_SUBDIR


@define(kw_only=True, frozen=True)
class AnalyzerConfig:
    """Configuration for one analysis run.

    Parameters
    ----------
    routes : tuple of str
        Source files or directories to scan.
    job_map : dict of str to str
        Source base name → batch job script.
    run_jobs : bool
        Submit benchmark jobs before parsing logs.
    log_dir : str or None
        Parse existing logs from this directory instead of the run's ``runs/``.
    precisions : tuple of str
        Precision variants, in execution order.
    workers : int
        Threads used to scan files (>= 1).
    extensions : tuple of str
        Source suffixes selected inside directory routes.
    """

    routes: tuple[str, ...] = field(default=(), converter=tuple)
    job_map: dict[str, str] = field(factory=dict)
    run_jobs: bool = field(default=True, validator=[instance_of(bool)])
    log_dir: Optional[str] = None
    precisions: tuple[str, ...] = field(
        default=PRECISIONS,
        converter=tuple,
        validator=deep_iterable(member_validator=in_(PRECISIONS)),
    )
    workers: int = field(default=1, validator=[instance_of(int), ge(1)])
    extensions: tuple[str, ...] = field(default=DEFAULT_EXTENSIONS, converter=tuple)
    scan: SignatureMarkers = field(factory=SignatureMarkers)
    logs: LogMarkers = field(factory=LogMarkers)
    slurm: SlurmConfig = field(factory=SlurmConfig)
    output: OutputNames = field(factory=OutputNames)


def analyzer_config_from_dict(data: Mapping[str, Any], base_cwd: Path) -> AnalyzerConfig:
    """Structure a plain config mapping and resolve its paths against ``base_cwd``.

    Parameters
    ----------
    data : mapping
        Typically ``OmegaConf.to_container(cfg, resolve=True)``.
    base_cwd : Path
        Directory relative paths are resolved against (Hydra runtime cwd).
    """

    cfg = config_converter.structure(dict(data), AnalyzerConfig)
    routes = [resolve_hydra_path(r, base_cwd) for r in cfg.routes]
    job_map = {k: resolve_hydra_path(v, base_cwd) for k, v in cfg.job_map.items()}
    return evolve(
        cfg,
        routes=[r for r in routes if r],
        job_map={k: v for k, v in job_map.items() if v},
        log_dir=resolve_hydra_path(cfg.log_dir, base_cwd),
    )


def analyzer_config_from_omegaconf(cfg: Any, base_cwd: Path) -> AnalyzerConfig:
    """Resolve a composed Hydra/OmegaConf config and structure it.

    Raises
    ------
    TypeError
        If the config root is not a mapping.
    ValueError
        If a value fails validation (unknown precision, worker count < 1).
    """

    container = OmegaConf.to_container(cfg, resolve=True)
    if not isinstance(container, dict):
        raise TypeError(f"Config root must be a mapping, got {type(container).__name__}")
    return analyzer_config_from_dict(container, base_cwd)


class KernelAnalyzer:
    """Run discovery → dispatch → scan → report for one configuration.

    Attributes
    ----------
    m_logger : logging.Logger
        Logger instance for this analyzer.
    """

    def __init__(self) -> None:
        self.m_logger = logging.getLogger(__name__)

    def run(self, cfg: AnalyzerConfig, artifacts: Artifacts) -> KernelReport:
        """Execute one analysis and write its artifacts.

        Parameters
        ----------
        cfg : AnalyzerConfig
            Run configuration.
        artifacts : Artifacts
            Initialized run directory manager.

        Returns
        -------
        KernelReport
            The report that was written to disk.

        Raises
        ------
        ToolNotFoundError
            If ``run_jobs`` is set and the submission command is missing.
        """

        sources = discover_sources(cfg.routes, cfg.extensions)
        self.m_logger.info("Discovered %d source file(s) from %d route(s)", len(sources), len(cfg.routes))

        if cfg.run_jobs:
            ensure_sbatch(cfg.slurm.executable)
            dispatched = dispatch_runs(sources, cfg.job_map, cfg.precisions, artifacts.runs_dir, cfg.slurm)
            self.m_logger.info("Dispatched %d benchmark run(s)", len(dispatched))

        log_dir = Path(cfg.log_dir) if cfg.log_dir else artifacts.runs_dir
        runs = [
            r
            for r in collect_log_artifacts(log_dir, [Path(s).name for s in sources])
            if r.precision in cfg.precisions
        ]
        self.m_logger.info("Found %d benchmark log(s) under %s", len(runs), log_dir)

        report = analyze(
            sources,
            runs,
            signature_markers=cfg.scan,
            log_markers=cfg.logs,
            workers=cfg.workers,
        )

        out = cfg.output
        write_kernel_table(report, artifacts.path(out.kernel_csv))
        write_best_table(report, artifacts.path(out.best_csv))
        artifacts.path(out.summary_log).write_text(render_summary(report, runs_dir=str(log_dir)), encoding="utf-8")
        write_summary_markdown(report, str(artifacts.path(out.summary_md)))
        write_report_json(report, artifacts.path(out.report_json))
        self.m_logger.info(
            "Report written | scripts=%d kernels=%d results=%d dir=%s",
            report.scripts_analyzed,
            report.kernels_detected,
            len(report.results),
            artifacts.root,
        )
        return report
