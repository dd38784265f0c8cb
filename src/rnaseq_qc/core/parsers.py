"""
Parsers for per-sample RNA-seq QC reports.

Two report formats are supported:

- MEND QC tables (``*bam_umend_qc.tsv``): one fixed-schema, tab-delimited
  table per sample with uniquely mapped non-duplicate (MND) and exonic
  uniquely mapped non-duplicate (MEND) read counts.
- STAR ``Log.final.out`` files: free-text ``key |<TAB>value`` logs from which
  the input, uniquely mapped and multi-mapped read counts are taken.

Both directory parsers return one row per report file, keyed by the file name.
"""

import warnings
import numpy as np
import pandas as pd
from pathlib import Path
from typing import Dict, List, Union
from pandas import DataFrame

FILE_COL = "file_name"

# MEND QC table
MEND_INPUT_COL = "input"
MEND_MND_COL = "uniqMappedNonDupeReadCount"
MEND_MEND_COL = "estExonicUniqMappedNonDupeReadCount"
MEND_QC_COL = "qc"
MEND_COLUMNS = [MEND_INPUT_COL, MEND_MND_COL, MEND_MEND_COL, MEND_QC_COL]

MND = "mnd"
MEND = "mend"

# STAR Log.final.out
TOTAL_READS = "total_reads"
UNIQUELY_MAPPED = "uniquely_mapped"
MULTIMAPPED = "multimapped"

STAR_KEYS: Dict[str, str] = {
    "Number of input reads": TOTAL_READS,
    "Uniquely mapped reads number": UNIQUELY_MAPPED,
    "Number of reads mapped to multiple loci": MULTIMAPPED,
}
STAR_DELIMITER = "|"


def _list_report_files(directory: Union[Path, str], pattern: str) -> List[Path]:
    directory = Path(directory)
    if not directory.is_dir():
        raise FileNotFoundError(f"Report directory not found: {directory}")
    files = sorted(p for p in directory.glob(pattern) if p.is_file())
    if len(files) == 0:
        raise ValueError(
            f"No report files matching '{pattern}' found in {directory}"
        )
    return files


def read_mend_qc_table(path: Union[Path, str]) -> DataFrame:
    """
    Read a single MEND QC table.

    Parameters
    ----------
    path : Path or str
        Path to a ``bam_umend_qc.tsv`` file with columns input,
        uniqMappedNonDupeReadCount, estExonicUniqMappedNonDupeReadCount, qc.

    Returns
    -------
    DataFrame
        Columns [file_name, mnd, mend]. The qc string is discarded and the
        row identity is the name of the source file.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"MEND QC file not found: {path}")

    df = pd.read_csv(path, sep="\t", dtype={MEND_QC_COL: str})
    missing_cols = [col for col in MEND_COLUMNS if col not in df.columns]
    if missing_cols:
        raise ValueError(
            f"MEND QC file {path.name} missing required columns: "
            f"{missing_cols}. Found: {list(df.columns)}"
        )

    return pd.DataFrame(
        {
            FILE_COL: path.name,
            MND: pd.to_numeric(df[MEND_MND_COL], errors="coerce").astype(float),
            MEND: pd.to_numeric(df[MEND_MEND_COL], errors="coerce").astype(
                float
            ),
        }
    )


def parse_mend_qc_dir(
    directory: Union[Path, str], pattern: str = "*bam_umend_qc.tsv"
) -> DataFrame:
    """
    Concatenate all MEND QC tables in a directory into one table.

    Returns
    -------
    DataFrame
        Columns [file_name, mnd, mend], sorted by file_name.
    """
    files = _list_report_files(directory, pattern)
    frames = [read_mend_qc_table(f) for f in files]
    mend_df = pd.concat(frames, ignore_index=True)
    return mend_df.sort_values(FILE_COL, kind="mergesort").reset_index(
        drop=True
    )


def _star_value(raw: str) -> float:
    value = pd.to_numeric(raw.strip().rstrip("%"), errors="coerce")
    return float(value) if pd.notna(value) else np.nan


def parse_star_log(path: Union[Path, str]) -> List[Dict]:
    """
    Extract the input, unique and multi-mapped read counts from a STAR log.

    Every line is matched by substring against the fixed list of keys in
    STAR_KEYS; the value is the text after the ``|`` delimiter. Lines that
    match none of the keys are dropped.

    Parameters
    ----------
    path : Path or str
        Path to a STAR ``Log.final.out`` file.

    Returns
    -------
    list of dict
        Long-format records with keys file_name, metric and value.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"STAR log not found: {path}")

    records = []
    with open(path, encoding="utf-8") as f:
        for line in f:
            if STAR_DELIMITER not in line:
                continue
            key, _, raw_value = line.partition(STAR_DELIMITER)
            for pattern, metric in STAR_KEYS.items():
                if pattern in key:
                    records.append(
                        {
                            FILE_COL: path.name,
                            "metric": metric,
                            "value": _star_value(raw_value),
                        }
                    )
                    break
    return records


def parse_star_log_dir(
    directory: Union[Path, str], pattern: str = "*Log.final.out"
) -> DataFrame:
    """
    Parse all STAR logs in a directory and pivot to one row per file.

    A log in which none of the keys are found still contributes a row, with
    all three counts missing.

    Returns
    -------
    DataFrame
        Columns [file_name, total_reads, uniquely_mapped, multimapped],
        sorted by file_name.
    """
    files = _list_report_files(directory, pattern)
    records = []
    for star_log in files:
        file_records = parse_star_log(star_log)
        if len(file_records) == 0:
            warnings.warn(f"No STAR read counts found in {star_log.name}")
        records.extend(file_records)

    metric_cols = list(STAR_KEYS.values())
    long_df = pd.DataFrame(records, columns=[FILE_COL, "metric", "value"])
    # duplicate keys within a file keep the first occurrence
    long_df = long_df.drop_duplicates([FILE_COL, "metric"], keep="first")
    star_df = long_df.pivot(index=FILE_COL, columns="metric", values="value")
    star_df = star_df.reindex(
        index=[f.name for f in files], columns=metric_cols
    ).astype(float)
    star_df.columns.name = None
    star_df = star_df.rename_axis(FILE_COL).reset_index()
    return star_df.sort_values(FILE_COL, kind="mergesort").reset_index(
        drop=True
    )
