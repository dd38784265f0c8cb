"""
Batch-derived reference ranges (mean +/- k * SD) for QC fractions.

The ranges describe the typical range of the current batch, not a fixed
clinical threshold: they are recomputed on every run, so adding or removing
samples shifts every subsequent classification.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

import numpy as np
import pandas as pd
from pandas import DataFrame, Series

from .fractions import FRACTION_COLS


@dataclass(frozen=True)
class ReferenceRange:
    dimension: str
    mean: float
    sd: float
    lower: float
    upper: float
    n: int


def estimate_reference_range(
    values: Series, dimension: str = "", n_sd: float = 2.0
) -> ReferenceRange:
    """
    Mean and unbiased SD (n - 1) over the finite values of one dimension.

    With fewer than two finite values the SD, and hence both bounds, are NaN.
    """
    finite = values.astype(float)
    finite = finite[np.isfinite(finite)]
    n = len(finite)
    mean = float(finite.mean()) if n > 0 else np.nan
    sd = float(finite.std(ddof=1)) if n > 1 else np.nan
    return ReferenceRange(
        dimension=dimension,
        mean=mean,
        sd=sd,
        lower=mean - n_sd * sd,
        upper=mean + n_sd * sd,
        n=n,
    )


def estimate_reference_ranges(
    fractions: DataFrame,
    dimensions: Optional[List[str]] = None,
    n_sd: float = 2.0,
) -> Dict[str, ReferenceRange]:
    """
    Estimate one ReferenceRange per fraction dimension.

    Parameters
    ----------
    fractions : DataFrame
        Output of compute_fractions over the selected population.
    dimensions : list, optional
        Fraction columns to use. Defaults to all four fractions.
    n_sd : float
        Number of standard deviations for the lower and upper threshold.

    Returns
    -------
    dict
        Mapping dimension -> ReferenceRange, in dimension order.
    """
    if dimensions is None:
        dimensions = FRACTION_COLS
    missing_cols = [col for col in dimensions if col not in fractions.columns]
    if missing_cols:
        raise ValueError(f"Missing fraction columns: {missing_cols}")

    return {
        dim: estimate_reference_range(fractions[dim], dim, n_sd)
        for dim in dimensions
    }


def summarize_reference_ranges(ranges: Dict[str, ReferenceRange]) -> DataFrame:
    """
    Tabulate the reference ranges with +/- 1 SD and +/- 2 SD bounds.
    """
    records = []
    for dim, rr in ranges.items():
        records.append(
            {
                "dimension": dim,
                "n": rr.n,
                "mean": rr.mean,
                "sd": rr.sd,
                "minus_1sd": rr.mean - rr.sd,
                "plus_1sd": rr.mean + rr.sd,
                "minus_2sd": rr.mean - 2 * rr.sd,
                "plus_2sd": rr.mean + 2 * rr.sd,
                "lower_limit": rr.lower,
                "upper_limit": rr.upper,
            }
        )
    return pd.DataFrame(records)
