"""
Diagnostic plots for RNA-seq QC fractions and MEND depth.
"""

import numpy as np
import matplotlib.pyplot as plt  # type: ignore
import seaborn as sns  # type: ignore
from typing import Dict, Optional, Sequence, Tuple
from pandas import DataFrame  # type: ignore
from matplotlib.figure import Figure  # type: ignore

from .flags import DEPTH_CUTOFFS
from .fractions import FRACTION_COLS
from .join import SAMPLE_ID
from .parsers import MEND
from .reference_ranges import ReferenceRange


def plot_fraction_distributions(
    fractions: DataFrame,
    ranges: Dict[str, ReferenceRange],
    bins: int = 30,
    figsize: Tuple[float, float] = (10, 8),
    title: Optional[str] = None,
) -> Figure:
    """
    Histogram per fraction dimension with the mean and the reference range.

    Parameters
    ----------
    fractions : DataFrame
        Output of compute_fractions.
    ranges : dict
        Output of estimate_reference_ranges.
    bins : int
        Number of histogram bins.
    figsize : tuple
        Figure size.
    title : str, optional
        Figure title.

    Returns
    -------
    Figure
        Matplotlib figure with a 2x2 grid of panels.
    """
    fig, axes = plt.subplots(2, 2, figsize=figsize)
    for ax, dim in zip(axes.flatten(), FRACTION_COLS):
        values = fractions[dim].astype(float)
        values = values[np.isfinite(values)]
        if len(values) > 0:
            sns.histplot(values, bins=bins, ax=ax, color="steelblue")
        rr = ranges.get(dim)
        if rr is not None and np.isfinite(rr.mean):
            ax.axvline(rr.mean, color="black", linestyle="-", linewidth=1)
        if rr is not None and np.isfinite(rr.sd):
            ax.axvline(rr.lower, color="firebrick", linestyle="--", linewidth=1)
            ax.axvline(rr.upper, color="firebrick", linestyle="--", linewidth=1)
        ax.set_title(dim)
        ax.set_xlabel("fraction")
        ax.set_ylabel("samples")
    if title:
        fig.suptitle(title)
    fig.tight_layout()
    return fig


def plot_mend_depth(
    combined: DataFrame,
    cutoffs: Sequence[float] = DEPTH_CUTOFFS,
    figsize: Tuple[float, float] = (10, 4),
    title: Optional[str] = None,
) -> Figure:
    """
    MEND reads per sample, sorted, with the depth bin cutoffs.
    """
    depth = combined[[SAMPLE_ID, MEND]].dropna().sort_values(MEND)
    fig, ax = plt.subplots(figsize=figsize)
    ax.bar(range(len(depth)), depth[MEND] / 1e6, color="steelblue", width=1.0)
    for cutoff in cutoffs:
        ax.axhline(cutoff / 1e6, color="firebrick", linestyle="--", linewidth=1)
    ax.set_xticks([])
    ax.set_xlabel(f"samples (n={len(depth)})")
    ax.set_ylabel("MEND reads (millions)")
    if title:
        ax.set_title(title)
    fig.tight_layout()
    return fig
