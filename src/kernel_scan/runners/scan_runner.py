"""Kernel scan runner (Hydra entry).

Scans the configured routes for tagged kernels, optionally runs the
benchmark job of every source once per precision on Slurm, parses the
resulting logs, and writes the consolidated report under the Hydra run
directory (``kernel_scan_<timestamp>/`` by default, rooted at
``$SLURM_SUBMIT_DIR`` when submitted as a batch job).

Examples
--------
Scan and dispatch:
    kernel-scan 'routes=[/work/Poisson/poisson.cu]' '+job_map={poisson.cu: /work/Poisson/poisson.sh}'

Only parse logs that already exist:
    RUN_JOBS=0 kernel-scan 'routes=[/work/Poisson]' log_dir=/work/old_scan/runs
"""

from __future__ import annotations

import logging
from pathlib import Path

import hydra
from hydra.core.hydra_config import HydraConfig
from omegaconf import DictConfig

from kernel_scan.reporting.export import render_summary
from kernel_scan.runners.kernel_analyzer import KernelAnalyzer, analyzer_config_from_omegaconf
from kernel_scan.utils.artifacts import Artifacts, write_config_yaml


@hydra.main(version_base=None, config_path="../../../conf", config_name="config")
def main(cfg: DictConfig) -> None:  # pragma: no cover - CLI orchestrator
    """Hydra entry point for a kernel scan.

    Flow
    ----
    1) Prepare the run directory (Hydra run dir) and a run log file.
    2) Structure the config into an ``AnalyzerConfig``.
    3) Run the analyzer (discovery, dispatch, scan, report).
    4) Echo the text summary.
    """

    logging.captureWarnings(True)
    logger = logging.getLogger(__name__)

    run_dir_cfg = Path(HydraConfig.get().run.dir)
    base_cwd = Path(HydraConfig.get().runtime.cwd)
    main_dir = run_dir_cfg if run_dir_cfg.is_absolute() else (base_cwd / run_dir_cfg)

    analyzer_cfg = analyzer_config_from_omegaconf(cfg, base_cwd)
    artifacts = Artifacts.from_root(main_dir, analyzer_cfg.output.runs_subdir)

    try:
        fh = logging.FileHandler(artifacts.path("kernel_scan.log"), encoding="utf-8")
        fh.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        root_logger = logging.getLogger()
        root_logger.setLevel(logging.INFO)
        root_logger.addHandler(fh)
    except OSError as exc:
        logger.warning("Cannot open run log file: %s", exc)

    write_config_yaml(artifacts.path(analyzer_cfg.output.config_yaml), cfg)
    logger.info(
        "Kernel scan start | routes=%d run_jobs=%s precisions=%s dir=%s",
        len(analyzer_cfg.routes),
        analyzer_cfg.run_jobs,
        ",".join(analyzer_cfg.precisions),
        artifacts.root,
    )

    report = KernelAnalyzer().run(analyzer_cfg, artifacts)
    log_dir = analyzer_cfg.log_dir or str(artifacts.runs_dir)
    print(render_summary(report, runs_dir=log_dir), end="")
    print(f"Done. Artifacts stored under: {artifacts.root}")


if __name__ == "__main__":
    main()
