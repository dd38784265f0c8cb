"""
PyPipeGraph2 job wrappers for RNA-seq QC flagging.
"""

from pypipegraph2 import (
    Job,
    MultiFileGeneratingJob,
    FunctionInvariant,
    ParameterInvariant,
)
from pathlib import Path
from typing import List, Optional, Sequence, Union
from rnaseq_qc.models.flag_report import (
    FlagReport,
    FlagReportConfig,
    generate_flag_report,
)
from rnaseq_qc.services.io import run_qc_pipeline
from rnaseq_qc.core.parsers import parse_mend_qc_dir, parse_star_log_dir
from rnaseq_qc.core.join import join_sample_metrics, select_population
from rnaseq_qc.core.fractions import compute_fractions
from rnaseq_qc.core.reference_ranges import estimate_reference_ranges
from rnaseq_qc.core.flags import DEPTH_CUTOFFS, build_flag_table


def qc_flag_job(
    mend_qc_dir: Union[Path, str],
    star_log_dir: Union[Path, str],
    mend_manifest: Union[Path, str],
    star_manifest: Union[Path, str],
    sample_metadata: Union[Path, str],
    output_dir: Union[Path, str],
    prefix: str = "rnaseq_qc",
    library_preps: Optional[List[str]] = None,
    sample_types: Optional[List[str]] = None,
    n_sd: float = 2.0,
    depth_cutoffs: Sequence[float] = DEPTH_CUTOFFS,
    symmetric_id_check: bool = False,
    save_formats: Optional[List[str]] = None,
    dependencies: List[Job] = [],
) -> MultiFileGeneratingJob:
    """
    Create pypipegraph job for RNA-seq QC flagging.

    Parses MEND QC tables and STAR logs, classifies the selected samples
    against batch-derived reference ranges and writes the flag tables and
    figures.

    Parameters
    ----------
    mend_qc_dir : Path or str
        Directory with MEND QC tables.
    star_log_dir : Path or str
        Directory with STAR Log.final.out files.
    mend_manifest : Path or str
        Manifest mapping MEND QC file names to sample IDs.
    star_manifest : Path or str
        Manifest mapping STAR log file names to sample IDs.
    sample_metadata : Path or str
        Sample metadata with library preparation per sample.
    output_dir : Path or str
        Output directory.
    prefix : str
        Filename prefix for output files.
    library_preps : list of str, optional
        Library preparations to classify. Default: ["stranded"].
    sample_types : list of str, optional
        Restrict the population to these sample types.
    n_sd : float
        Width of the reference ranges in standard deviations.
    depth_cutoffs : tuple
        MEND depth bin cutoffs.
    symmetric_id_check : bool
        Also require every MEND sample to have STAR results.
    save_formats : list of str, optional
        Plot formats to save. Default: ["png"].
    dependencies : list
        List of pypipegraph Jobs to depend on.

    Returns
    -------
    MultiFileGeneratingJob
        Job that generates the QC flag tables and plots.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(exist_ok=True, parents=True)

    if save_formats is None:
        save_formats = ["png"]

    if library_preps is None:
        library_preps = ["stranded"]

    config = FlagReportConfig(
        out_dir=output_dir,
        prefix=prefix,
        save_formats=save_formats,
        depth_cutoffs=tuple(depth_cutoffs),
    )
    outfiles = FlagReport(config).output_files()

    def __dump(
        outfiles,
        config=config,
        mend_qc_dir=mend_qc_dir,
        star_log_dir=star_log_dir,
        mend_manifest=mend_manifest,
        star_manifest=star_manifest,
        sample_metadata=sample_metadata,
        library_preps=library_preps,
        sample_types=sample_types,
        n_sd=n_sd,
        symmetric_id_check=symmetric_id_check,
    ):
        generate_flag_report(
            config,
            mend_qc_dir=mend_qc_dir,
            star_log_dir=star_log_dir,
            mend_manifest=mend_manifest,
            star_manifest=star_manifest,
            sample_metadata=sample_metadata,
            library_preps=library_preps,
            sample_types=sample_types,
            n_sd=n_sd,
            symmetric_id_check=symmetric_id_check,
        )

    job = MultiFileGeneratingJob(outfiles, __dump).depends_on(dependencies)

    # Add invariants for core functions
    job.depends_on(
        FunctionInvariant(
            "rnaseq_qc_run_qc_pipeline",
            run_qc_pipeline,
            allowed_non_locals=[
                "parse_mend_qc_dir",
                "parse_star_log_dir",
                "read_manifest",
                "read_sample_metadata",
                "join_sample_metrics",
                "select_population",
                "compute_fractions",
                "estimate_reference_ranges",
                "summarize_reference_ranges",
                "build_flag_table",
                "count_limit_statuses",
                "warnings",
            ],
        )
    )

    for name, func in [
        ("parse_mend_qc_dir", parse_mend_qc_dir),
        ("parse_star_log_dir", parse_star_log_dir),
        ("join_sample_metrics", join_sample_metrics),
        ("select_population", select_population),
        ("compute_fractions", compute_fractions),
        ("estimate_reference_ranges", estimate_reference_ranges),
        ("build_flag_table", build_flag_table),
    ]:
        job.depends_on(FunctionInvariant(f"rnaseq_qc_{name}", func))

    # Add parameter invariant
    job.depends_on(
        ParameterInvariant(
            f"rnaseq_qc_params_{prefix}",
            (
                str(mend_qc_dir),
                str(star_log_dir),
                str(mend_manifest),
                str(star_manifest),
                str(sample_metadata),
                tuple(library_preps),
                tuple(sample_types) if sample_types else None,
                n_sd,
                tuple(depth_cutoffs),
                symmetric_id_check,
                tuple(save_formats),
            ),
        )
    )

    return job
