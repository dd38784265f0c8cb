"""
Join per-format QC metrics into one row per biospecimen.

Report files are resolved to canonical sample IDs through one manifest per
report format before the two metric tables are merged. Any mismatch between
manifests and reports is fatal: it raises SampleIntegrityError and no
downstream statistics are computed.
"""

import pandas as pd
from pathlib import Path
from typing import Iterable, List, Optional, Union
from pandas import DataFrame

from .parsers import FILE_COL, MULTIMAPPED, UNIQUELY_MAPPED
from .tables import read_table

SAMPLE_ID = "sample_id"
MAPPED = "mapped"
LIBRARY_PREP = "library_prep"
SAMPLE_TYPE = "sample_type"


class SampleIntegrityError(ValueError):
    """Raised when report files and manifests do not describe the same samples."""


def read_manifest(
    manifest_path: Union[Path, str],
    file_col: str = "file_name",
    id_col: str = "Kids_First_Biospecimen_ID",
) -> DataFrame:
    """
    Load a manifest mapping report file names to sample IDs.

    Parameters
    ----------
    manifest_path : Path or str
        Tab- or comma-separated manifest.
    file_col : str
        Column holding the report file name.
    id_col : str
        Column holding the canonical sample ID.

    Returns
    -------
    DataFrame
        Columns [file_name, sample_id].
    """
    manifest_path = Path(manifest_path)
    manifest_df = read_table(manifest_path, dtype=str)

    missing_cols = [
        col for col in (file_col, id_col) if col not in manifest_df.columns
    ]
    if missing_cols:
        raise ValueError(
            f"Manifest {manifest_path.name} missing required columns: "
            f"{missing_cols}. Found: {list(manifest_df.columns)}"
        )

    manifest_df = manifest_df[[file_col, id_col]].rename(
        columns={file_col: FILE_COL, id_col: SAMPLE_ID}
    )
    return manifest_df.drop_duplicates().reset_index(drop=True)


def resolve_sample_ids(
    metrics: DataFrame, manifest: DataFrame, source: str
) -> DataFrame:
    """
    Replace report file names by canonical sample IDs.

    Every report file must have exactly one manifest entry.
    """
    duplicated = manifest[manifest[FILE_COL].duplicated(keep=False)]
    if len(duplicated) > 0:
        raise SampleIntegrityError(
            f"{source} manifest maps a file to several sample IDs: "
            f"{sorted(duplicated[FILE_COL].unique())}"
        )

    resolved = metrics.merge(manifest, on=FILE_COL, how="left")
    unresolved = resolved.loc[resolved[SAMPLE_ID].isna(), FILE_COL]
    if len(unresolved) > 0:
        raise SampleIntegrityError(
            f"{source} report files without a manifest entry: "
            f"{sorted(unresolved)}"
        )

    duplicated_ids = resolved[resolved[SAMPLE_ID].duplicated(keep=False)]
    if len(duplicated_ids) > 0:
        raise SampleIntegrityError(
            f"{source} reports resolve to the same sample ID more than once: "
            f"{sorted(duplicated_ids[SAMPLE_ID].unique())}"
        )

    cols = [SAMPLE_ID] + [
        c for c in metrics.columns if c not in (FILE_COL, SAMPLE_ID)
    ]
    return resolved[cols]


def check_id_subset(
    subset_ids: Iterable[str],
    superset_ids: Iterable[str],
    subset_name: str,
    superset_name: str,
) -> None:
    """
    Raise SampleIntegrityError unless every ID in subset_ids is in superset_ids.
    """
    missing = sorted(set(subset_ids) - set(superset_ids))
    if missing:
        raise SampleIntegrityError(
            f"{len(missing)} {subset_name} sample(s) missing from "
            f"{superset_name} results: {missing}"
        )


def join_sample_metrics(
    mend_df: DataFrame,
    star_df: DataFrame,
    mend_manifest: DataFrame,
    star_manifest: DataFrame,
    symmetric: bool = False,
) -> DataFrame:
    """
    Merge MEND and STAR metrics into one CombinedSampleRecord per sample.

    The STAR sample IDs must be a subset of the MEND sample IDs. With
    symmetric=True the reverse is enforced too; by default MEND-only samples
    are kept with missing STAR counts.

    Parameters
    ----------
    mend_df : DataFrame
        Output of parse_mend_qc_dir.
    star_df : DataFrame
        Output of parse_star_log_dir.
    mend_manifest, star_manifest : DataFrame
        Outputs of read_manifest for the respective report format.
    symmetric : bool
        Also require MEND sample IDs to be a subset of STAR sample IDs.

    Returns
    -------
    DataFrame
        One row per sample_id with MEND and STAR counts and the derived
        mapped = multimapped + uniquely_mapped, sorted by sample_id.
    """
    mend_ids = resolve_sample_ids(mend_df, mend_manifest, "MEND")
    star_ids = resolve_sample_ids(star_df, star_manifest, "STAR")

    check_id_subset(star_ids[SAMPLE_ID], mend_ids[SAMPLE_ID], "STAR", "MEND")
    if symmetric:
        check_id_subset(
            mend_ids[SAMPLE_ID], star_ids[SAMPLE_ID], "MEND", "STAR"
        )

    combined = mend_ids.merge(star_ids, on=SAMPLE_ID, how="outer")
    combined[MAPPED] = combined[MULTIMAPPED] + combined[UNIQUELY_MAPPED]
    return combined.sort_values(SAMPLE_ID, kind="mergesort").reset_index(
        drop=True
    )


def read_sample_metadata(
    metadata_path: Union[Path, str],
    id_col: str = "Kids_First_Biospecimen_ID",
    library_col: str = "RNA_library",
    sample_type_col: str = "sample_type",
) -> DataFrame:
    """
    Load sample metadata used to select the analysis population.

    Returns
    -------
    DataFrame
        Columns [sample_id, library_prep, sample_type]. sample_type is
        missing when the metadata has no such column.
    """
    metadata_path = Path(metadata_path)
    metadata_df = read_table(metadata_path, dtype=str)

    missing_cols = [
        col for col in (id_col, library_col) if col not in metadata_df.columns
    ]
    if missing_cols:
        raise ValueError(
            f"Metadata file missing required columns: {missing_cols}. "
            f"Found: {list(metadata_df.columns)}"
        )
    if sample_type_col not in metadata_df.columns:
        metadata_df[sample_type_col] = pd.NA

    metadata_df = metadata_df[[id_col, library_col, sample_type_col]].rename(
        columns={
            id_col: SAMPLE_ID,
            library_col: LIBRARY_PREP,
            sample_type_col: SAMPLE_TYPE,
        }
    )
    metadata_df = metadata_df.drop_duplicates()

    preps = metadata_df.drop_duplicates([SAMPLE_ID, LIBRARY_PREP])
    conflicting = preps.loc[preps[SAMPLE_ID].duplicated(), SAMPLE_ID]
    if len(conflicting) > 0:
        raise ValueError(
            f"Metadata {metadata_path.name} lists conflicting library "
            f"preparations for: {sorted(conflicting.unique())}"
        )
    return metadata_df.drop_duplicates(SAMPLE_ID).reset_index(drop=True)


def select_population(
    combined: DataFrame,
    metadata: DataFrame,
    library_preps: Optional[List[str]] = None,
    sample_types: Optional[List[str]] = None,
) -> DataFrame:
    """
    Restrict the combined table to the selected library preparation.

    Samples with another library preparation, or without metadata, are
    excluded from all statistics. library_preps defaults to ["stranded"].
    """
    if library_preps is None:
        library_preps = ["stranded"]

    selected_ids = metadata.loc[
        metadata[LIBRARY_PREP].isin(library_preps), [SAMPLE_ID, SAMPLE_TYPE]
    ]
    if sample_types is not None:
        selected_ids = selected_ids[selected_ids[SAMPLE_TYPE].isin(sample_types)]

    selected = combined[combined[SAMPLE_ID].isin(selected_ids[SAMPLE_ID])]
    return selected.reset_index(drop=True)
