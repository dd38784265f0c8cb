"""
Flag Report Module

Writes the tables and figures of one QC flagging run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import matplotlib.pyplot as plt

from ..core.flags import DEPTH_CUTOFFS
from ..core.plots import plot_fraction_distributions, plot_mend_depth
from ..services.io import run_qc_pipeline, save_figure, write_table

# result key -> table file stem
TABLES: Dict[str, str] = {
    "flags": "qc_flags",
    "reference_range_summary": "reference_ranges",
    "status_counts": "limit_status_counts",
    "fractions": "fractions",
    "combined": "combined_metrics",
}
PLOTS: List[str] = ["fraction_distributions", "mend_depth"]


@dataclass
class FlagReportConfig:
    """
    Configuration for a QC flag report.

    Attributes
    ----------
    out_dir : Union[str, Path]
        Root directory of the report.
    tables_dirname : str
        Directory name inside out_dir for the TSV tables.
    plots_dirname : str
        Directory name inside out_dir for the figures.
    prefix : str
        Filename prefix of every output file.
    save_formats : List[str]
        Figure formats. An empty list disables plotting.
    """

    out_dir: Union[str, Path] = "results"
    tables_dirname: str = "tables"
    plots_dirname: str = "plots"
    prefix: str = "rnaseq_qc"
    save_formats: List[str] = field(default_factory=lambda: ["png"])
    depth_cutoffs: Sequence[float] = DEPTH_CUTOFFS


class FlagReport:
    """
    Writes the outputs of run_qc_pipeline.

    Outputs:
      - tables/<prefix>_qc_flags.tsv
      - tables/<prefix>_reference_ranges.tsv
      - tables/<prefix>_limit_status_counts.tsv
      - tables/<prefix>_fractions.tsv
      - tables/<prefix>_combined_metrics.tsv
      - plots/<prefix>_fraction_distributions.<fmt>
      - plots/<prefix>_mend_depth.<fmt>
    """

    def __init__(
        self, config: FlagReportConfig, results: Optional[Dict] = None
    ):
        self.cfg = config
        self.results = results
        self.out_dir = Path(self.cfg.out_dir)
        self.tables_dir = self.out_dir / self.cfg.tables_dirname
        self.plots_dir = self.out_dir / self.cfg.plots_dirname

    def table_paths(self) -> Dict[str, Path]:
        return {
            key: self.tables_dir / f"{self.cfg.prefix}_{stem}.tsv"
            for key, stem in TABLES.items()
        }

    def plot_paths(self) -> List[Path]:
        return [
            self.plots_dir / f"{self.cfg.prefix}_{name}.{fmt}"
            for name in PLOTS
            for fmt in self.cfg.save_formats
        ]

    def output_files(self) -> List[Path]:
        return list(self.table_paths().values()) + self.plot_paths()

    def build(self) -> Dict[str, Path]:
        if self.results is None:
            raise ValueError("No QC results to report")

        saved = {}
        for key, path in self.table_paths().items():
            saved[key] = write_table(self.results[key], path)
            print(f"Saved {key} to {path}")

        if self.cfg.save_formats:
            figures = {
                "fraction_distributions": plot_fraction_distributions(
                    self.results["fractions"],
                    self.results["reference_ranges"],
                ),
                "mend_depth": plot_mend_depth(
                    self.results["selected"], self.cfg.depth_cutoffs
                ),
            }
            for name, fig in figures.items():
                outfiles = save_figure(
                    fig,
                    self.plots_dir,
                    f"{self.cfg.prefix}_{name}",
                    save_formats=self.cfg.save_formats,
                )
                plt.close(fig)
                for outfile in outfiles:
                    saved[f"{name}_{outfile.suffix.lstrip('.')}"] = outfile
        return saved


def generate_flag_report(
    config: FlagReportConfig, **pipeline_kwargs
) -> Dict:
    """
    Run the QC flagging pipeline and write its report.

    Parameters
    ----------
    config : FlagReportConfig
        Output layout.
    **pipeline_kwargs
        Arguments of services.io.run_qc_pipeline. depth_cutoffs defaults to
        config.depth_cutoffs.

    Returns
    -------
    dict
        {"results": pipeline tables, "files": written paths}
    """
    pipeline_kwargs.setdefault("depth_cutoffs", config.depth_cutoffs)
    results = run_qc_pipeline(**pipeline_kwargs)
    report = FlagReport(config, results)
    files = report.build()
    print(f"\nQC flag report complete. Files saved to {report.out_dir}")
    return {"results": results, "files": files}
