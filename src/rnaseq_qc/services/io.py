import warnings
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union
from pandas import DataFrame

from rnaseq_qc.core.parsers import parse_mend_qc_dir, parse_star_log_dir
from rnaseq_qc.core.join import (
    SAMPLE_ID,
    join_sample_metrics,
    read_manifest,
    read_sample_metadata,
    select_population,
)
from rnaseq_qc.core.fractions import compute_fractions
from rnaseq_qc.core.reference_ranges import (
    estimate_reference_ranges,
    summarize_reference_ranges,
)
from rnaseq_qc.core.flags import (
    DEPTH_CUTOFFS,
    NOT_FLAGGED,
    SUMMARY_FLAG_COL,
    build_flag_table,
    count_limit_statuses,
)

FLOAT_FORMAT = "%.10g"


def save_figure(
    f, folder, name, save_formats=("png", "pdf"), bbox_inches="tight"
):
    folder = Path(folder)
    folder.mkdir(exist_ok=True, parents=True)
    outfiles = []
    for fmt in save_formats:
        outfile = folder / f"{name}.{fmt}"
        f.savefig(outfile, dpi=300, bbox_inches=bbox_inches)
        outfiles.append(outfile)
    return outfiles


def write_table(df: DataFrame, path: Union[str, Path]) -> Path:
    """
    Write a table as TSV with blank missing values and fixed float format.

    Identical tables always give byte-identical files.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(
        path, sep="\t", index=False, na_rep="", float_format=FLOAT_FORMAT
    )
    return path


def run_qc_pipeline(
    mend_qc_dir: Union[Path, str],
    star_log_dir: Union[Path, str],
    mend_manifest: Union[Path, str, DataFrame],
    star_manifest: Union[Path, str, DataFrame],
    sample_metadata: Union[Path, str, DataFrame],
    library_preps: Optional[List[str]] = None,
    sample_types: Optional[List[str]] = None,
    n_sd: float = 2.0,
    depth_cutoffs: Sequence[float] = DEPTH_CUTOFFS,
    symmetric_id_check: bool = False,
    mend_pattern: str = "*bam_umend_qc.tsv",
    star_pattern: str = "*Log.final.out",
    manifest_file_col: str = "file_name",
    manifest_id_col: str = "Kids_First_Biospecimen_ID",
    metadata_library_col: str = "RNA_library",
    metadata_sample_type_col: str = "sample_type",
) -> Dict:
    """
    Run the QC flagging pipeline over one batch of reports.

    parse -> join -> select population -> fractions -> reference ranges ->
    classify -> aggregate. Nothing is written to disk; a manifest mismatch
    raises SampleIntegrityError before any statistic is computed.

    Parameters
    ----------
    mend_qc_dir : Path or str
        Directory with MEND QC tables.
    star_log_dir : Path or str
        Directory with STAR Log.final.out files.
    mend_manifest, star_manifest : Path, str or DataFrame
        Manifests mapping report file names to sample IDs. DataFrames must
        already be in the [file_name, sample_id] layout of read_manifest.
    sample_metadata : Path, str or DataFrame
        Sample metadata with library preparation per sample. DataFrames must
        already be in the layout of read_sample_metadata.
    library_preps : list, optional
        Library preparations in the analysis population. Default ["stranded"].
    sample_types : list, optional
        Restrict the population to these sample types.
    n_sd : float
        Width of the reference ranges in standard deviations.
    depth_cutoffs : tuple
        MEND cutoffs for the depth bins.
    symmetric_id_check : bool
        Also require every MEND sample to have STAR results.

    Returns
    -------
    dict
        Tables: mend, star, combined, selected, fractions, reference_ranges
        (dict of ReferenceRange), reference_range_summary, flags,
        status_counts.
    """
    if library_preps is None:
        library_preps = ["stranded"]

    print("Parsing MEND QC tables...")
    mend_df = parse_mend_qc_dir(mend_qc_dir, mend_pattern)
    print(f"  {len(mend_df)} MEND QC reports")
    print("Parsing STAR logs...")
    star_df = parse_star_log_dir(star_log_dir, star_pattern)
    print(f"  {len(star_df)} STAR logs")

    if not isinstance(mend_manifest, DataFrame):
        mend_manifest = read_manifest(
            mend_manifest, manifest_file_col, manifest_id_col
        )
    if not isinstance(star_manifest, DataFrame):
        star_manifest = read_manifest(
            star_manifest, manifest_file_col, manifest_id_col
        )
    if not isinstance(sample_metadata, DataFrame):
        sample_metadata = read_sample_metadata(
            sample_metadata,
            manifest_id_col,
            metadata_library_col,
            metadata_sample_type_col,
        )

    combined = join_sample_metrics(
        mend_df,
        star_df,
        mend_manifest,
        star_manifest,
        symmetric=symmetric_id_check,
    )
    print(f"Joined metrics for {len(combined)} samples")

    no_metadata = set(combined[SAMPLE_ID]) - set(sample_metadata[SAMPLE_ID])
    if no_metadata:
        warnings.warn(
            f"{len(no_metadata)} sample(s) without metadata are excluded: "
            f"{sorted(no_metadata)}"
        )

    selected = select_population(
        combined, sample_metadata, library_preps, sample_types
    )
    print(
        f"Selected {len(selected)} of {len(combined)} samples "
        f"(library prep: {', '.join(library_preps)})"
    )
    if len(selected) == 0:
        warnings.warn("No samples selected for QC classification")

    fractions = compute_fractions(selected)
    ranges = estimate_reference_ranges(fractions, n_sd=n_sd)
    for dim, rr in ranges.items():
        print(
            f"  {dim}: mean = {rr.mean:.4f}, sd = {rr.sd:.4f}, "
            f"range = [{rr.lower:.4f}, {rr.upper:.4f}]"
        )

    flags = build_flag_table(selected, fractions, ranges, depth_cutoffs)
    status_counts = count_limit_statuses(flags)
    n_flagged = int((flags[SUMMARY_FLAG_COL] != NOT_FLAGGED).sum())
    print(f"Flagged {n_flagged} of {len(flags)} samples")

    return {
        "mend": mend_df,
        "star": star_df,
        "combined": combined,
        "selected": selected,
        "fractions": fractions,
        "reference_ranges": ranges,
        "reference_range_summary": summarize_reference_ranges(ranges),
        "flags": flags,
        "status_counts": status_counts,
    }
