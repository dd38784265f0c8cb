"""
Read-composition fractions per sample.
"""

import numpy as np
import pandas as pd
from pandas import DataFrame, Series

from .join import MAPPED, SAMPLE_ID
from .parsers import MEND, MND, MULTIMAPPED, TOTAL_READS

FRAC_UNMAPPED = "frac_unmapped_of_total"
FRAC_MULTIMAPPED = "frac_multimapped_of_mapped"
FRAC_DUPE = "frac_dupe_of_mapped"
FRAC_NONEXONIC = "frac_nonexonic_of_nondupe"

FRACTION_COLS = [FRAC_UNMAPPED, FRAC_MULTIMAPPED, FRAC_DUPE, FRAC_NONEXONIC]


def safe_ratio(numerator: Series, denominator: Series) -> Series:
    """
    Element-wise numerator / denominator with non-finite results as NaN.

    Division by zero, 0/0 and missing inputs all give NaN, never 0, so the
    value stays distinguishable from a real zero fraction downstream.
    """
    numerator = numerator.astype(float)
    denominator = denominator.astype(float)
    with np.errstate(divide="ignore", invalid="ignore"):
        ratio = numerator / denominator
    return ratio.where(np.isfinite(ratio))


def compute_fractions(combined: DataFrame) -> DataFrame:
    """
    Derive the four composition fractions from raw counts.

    - frac_unmapped_of_total = (total - mapped) / total
    - frac_multimapped_of_mapped = multimapped / mapped
    - frac_dupe_of_mapped = (mapped - MND) / mapped
    - frac_nonexonic_of_nondupe = (MND - MEND) / MND

    Parameters
    ----------
    combined : DataFrame
        Combined sample table from join_sample_metrics.

    Returns
    -------
    DataFrame
        Columns [sample_id] + FRACTION_COLS, one row per input row.
    """
    total = combined[TOTAL_READS]
    mapped = combined[MAPPED]
    mnd = combined[MND]
    mend = combined[MEND]

    return pd.DataFrame(
        {
            SAMPLE_ID: combined[SAMPLE_ID].values,
            FRAC_UNMAPPED: safe_ratio(total - mapped, total).values,
            FRAC_MULTIMAPPED: safe_ratio(combined[MULTIMAPPED], mapped).values,
            FRAC_DUPE: safe_ratio(mapped - mnd, mapped).values,
            FRAC_NONEXONIC: safe_ratio(mnd - mend, mnd).values,
        }
    )
