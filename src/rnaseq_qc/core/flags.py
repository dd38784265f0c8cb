"""
Classification of samples against reference ranges and depth bins, and
aggregation into one summary flag per sample.

Unclassifiable values (non-finite fraction or depth) are kept as NaN in every
status column. They are never counted as within_limits.
"""

import numpy as np
import pandas as pd
from typing import Dict, List, Optional, Sequence
from pandas import DataFrame, Series

from .fractions import (
    FRACTION_COLS,
    FRAC_DUPE,
    FRAC_MULTIMAPPED,
    FRAC_NONEXONIC,
    FRAC_UNMAPPED,
)
from .join import SAMPLE_ID
from .parsers import MEND
from .reference_ranges import ReferenceRange

BELOW_LIMIT = "below_limit"
WITHIN_LIMITS = "within_limits"
ABOVE_LIMIT = "above_limit"
LIMIT_STATUSES = [BELOW_LIMIT, WITHIN_LIMITS, ABOVE_LIMIT]

DEPTH_LOW = "<10M"
DEPTH_MID = "10-20M"
DEPTH_HIGH = ">20M"
DEPTH_BINS = [DEPTH_LOW, DEPTH_MID, DEPTH_HIGH]
DEPTH_CUTOFFS = (10_000_000, 20_000_000)

# fixed order of the codes in the summary flag
FLAG_CODES: Dict[str, str] = {
    FRAC_UNMAPPED: "NM",
    FRAC_MULTIMAPPED: "MM",
    FRAC_DUPE: "D",
    FRAC_NONEXONIC: "NE",
}
DEPTH_CODES: Dict[str, str] = {
    DEPTH_LOW: "MEND<10M",
    DEPTH_MID: "MEND10-20M",
    DEPTH_HIGH: "",
}
NOT_FLAGGED = "not flagged"

DEPTH_BIN_COL = "mend_depth_bin"
WITHIN_OVERALL_COL = "within_overall_limits"
FRACTION_FLAGS_COL = "fraction_flags"
DEPTH_FLAG_COL = "depth_flag"
SUMMARY_FLAG_COL = "summary_flag_status"


def limit_col(dimension: str) -> str:
    return f"{dimension}_limit"


def classify_limit(values: Series, lower: float, upper: float) -> Series:
    """
    Compare values against [lower, upper].

    value >= upper -> above_limit, value <= lower -> below_limit, any other
    finite value -> within_limits. Non-finite values, or non-finite bounds,
    give NaN (unclassified).
    """
    values = values.astype(float)
    classifiable = np.isfinite(values) & np.isfinite(lower) & np.isfinite(upper)
    status = np.select(
        [
            classifiable & (values >= upper),
            classifiable & (values <= lower),
            classifiable,
        ],
        [ABOVE_LIMIT, BELOW_LIMIT, WITHIN_LIMITS],
        default="",
    )
    return pd.Series(status, index=values.index, dtype=object).where(
        classifiable
    )


def classify_fractions(
    fractions: DataFrame, ranges: Dict[str, ReferenceRange]
) -> DataFrame:
    """
    Classify every fraction dimension of every sample.

    Returns
    -------
    DataFrame
        Columns [sample_id] + one '<dimension>_limit' column per range +
        within_overall_limits, which is True iff all dimensions are
        within_limits.
    """
    classified = fractions[[SAMPLE_ID]].copy()
    for dim, rr in ranges.items():
        classified[limit_col(dim)] = classify_limit(
            fractions[dim], rr.lower, rr.upper
        )
    status_cols = [limit_col(dim) for dim in ranges]
    classified[WITHIN_OVERALL_COL] = (
        classified[status_cols].eq(WITHIN_LIMITS).all(axis=1)
    )
    return classified


def classify_depth(
    mend: Series, cutoffs: Sequence[float] = DEPTH_CUTOFFS
) -> Series:
    """
    Bin MEND read counts with fixed cutoffs.

    MEND < cutoffs[0] -> '<10M', MEND < cutoffs[1] -> '10-20M', any other
    finite value -> '>20M'; non-finite -> NaN.
    """
    low, high = cutoffs
    mend = mend.astype(float)
    finite = np.isfinite(mend)
    bins = np.select(
        [finite & (mend < low), finite & (mend < high), finite],
        [DEPTH_LOW, DEPTH_MID, DEPTH_HIGH],
        default="",
    )
    return pd.Series(bins, index=mend.index, dtype=object).where(finite)


def count_limit_statuses(classified: DataFrame) -> DataFrame:
    """
    Number of samples per limit status and dimension.

    Unclassified samples are reported in n_unclassified and never counted in
    any of the three statuses.
    """
    records = []
    for dim in FRACTION_COLS:
        col = limit_col(dim)
        if col not in classified.columns:
            continue
        statuses = classified[col]
        record = {"dimension": dim}
        for status in LIMIT_STATUSES:
            record[f"n_{status}"] = int((statuses == status).sum())
        record["n_unclassified"] = int(statuses.isna().sum())
        records.append(record)
    return pd.DataFrame(records)


def fraction_flag_codes(
    classified: DataFrame, dimensions: Optional[List[str]] = None
) -> Series:
    """
    Comma-separated codes of the dimensions that are not within_limits.
    """
    if dimensions is None:
        dimensions = [d for d in FLAG_CODES if limit_col(d) in classified]

    def _codes(row):
        return ",".join(
            FLAG_CODES[dim]
            for dim in dimensions
            if row[limit_col(dim)] != WITHIN_LIMITS
        )

    if len(classified) == 0:
        return pd.Series([], index=classified.index, dtype=object)
    return classified.apply(_codes, axis=1).astype(object)


def depth_flag_code(depth_bins: Series) -> Series:
    """
    Depth code per sample; empty for '>20M' and for unclassified depth.
    """
    return depth_bins.map(DEPTH_CODES).fillna("").astype(object)


def combine_flags(fraction_codes: str, depth_code: str) -> str:
    if fraction_codes == depth_code:
        # both empty
        return NOT_FLAGGED
    return ", ".join(code for code in (fraction_codes, depth_code) if code)


def summary_flag_status(fraction_codes: Series, depth_codes: Series) -> Series:
    return pd.Series(
        [
            combine_flags(f, d)
            for f, d in zip(fraction_codes.fillna(""), depth_codes.fillna(""))
        ],
        index=fraction_codes.index,
        dtype=object,
    )


def build_flag_table(
    selected: DataFrame,
    fractions: DataFrame,
    ranges: Dict[str, ReferenceRange],
    depth_cutoffs: Sequence[float] = DEPTH_CUTOFFS,
) -> DataFrame:
    """
    Build the per-sample flag table.

    Parameters
    ----------
    selected : DataFrame
        Combined sample table restricted to the analysis population; provides
        the MEND counts for the depth bin.
    fractions : DataFrame
        Output of compute_fractions for the same samples.
    ranges : dict
        Output of estimate_reference_ranges.
    depth_cutoffs : tuple
        Lower and upper MEND cutoff.

    Returns
    -------
    DataFrame
        Columns [sample_id, <dimension>_limit..., mend_depth_bin,
        within_overall_limits, fraction_flags, depth_flag,
        summary_flag_status], sorted by sample_id.
    """
    flag_df = classify_fractions(fractions, ranges)
    mend = flag_df[[SAMPLE_ID]].merge(
        selected[[SAMPLE_ID, MEND]], on=SAMPLE_ID, how="left"
    )[MEND]
    mend.index = flag_df.index
    flag_df[DEPTH_BIN_COL] = classify_depth(mend, depth_cutoffs)
    flag_df[FRACTION_FLAGS_COL] = fraction_flag_codes(flag_df)
    flag_df[DEPTH_FLAG_COL] = depth_flag_code(flag_df[DEPTH_BIN_COL])
    flag_df[SUMMARY_FLAG_COL] = summary_flag_status(
        flag_df[FRACTION_FLAGS_COL], flag_df[DEPTH_FLAG_COL]
    )

    status_cols = [limit_col(dim) for dim in ranges]
    cols = (
        [SAMPLE_ID]
        + status_cols
        + [
            DEPTH_BIN_COL,
            WITHIN_OVERALL_COL,
            FRACTION_FLAGS_COL,
            DEPTH_FLAG_COL,
            SUMMARY_FLAG_COL,
        ]
    )
    return (
        flag_df[cols]
        .sort_values(SAMPLE_ID, kind="mergesort")
        .reset_index(drop=True)
    )
