"""
Tests for core/flags.py module.

This module tests limit classification, depth bins and the aggregation of
per-dimension statuses into summary flags.
"""

import pytest
import numpy as np
import pandas as pd
from rnaseq_qc.core.fractions import (
    FRACTION_COLS,
    FRAC_DUPE,
    FRAC_MULTIMAPPED,
    FRAC_NONEXONIC,
    FRAC_UNMAPPED,
)
from rnaseq_qc.core.reference_ranges import ReferenceRange
from rnaseq_qc.core.flags import (
    DEPTH_BINS,
    LIMIT_STATUSES,
    NOT_FLAGGED,
    build_flag_table,
    classify_depth,
    classify_fractions,
    classify_limit,
    combine_flags,
    count_limit_statuses,
    depth_flag_code,
    fraction_flag_codes,
    limit_col,
    summary_flag_status,
)


def _range(dim, lower=0.0, upper=0.04):
    mean = (lower + upper) / 2
    return ReferenceRange(
        dimension=dim,
        mean=mean,
        sd=(upper - mean) / 2,
        lower=lower,
        upper=upper,
        n=10,
    )


@pytest.fixture
def ranges():
    return {dim: _range(dim) for dim in FRACTION_COLS}


@pytest.fixture
def fractions():
    """Samples with known out-of-range dimensions."""
    return pd.DataFrame(
        {
            "sample_id": ["ok", "high_nm", "low_d", "nm_ne", "nan_mm"],
            FRAC_UNMAPPED: [0.02, 0.05, 0.02, 0.04, 0.02],
            FRAC_MULTIMAPPED: [0.02, 0.02, 0.02, 0.02, np.nan],
            FRAC_DUPE: [0.02, 0.02, 0.0, 0.02, 0.02],
            FRAC_NONEXONIC: [0.02, 0.02, 0.02, -0.01, 0.02],
        }
    )


@pytest.fixture
def selected():
    return pd.DataFrame(
        {
            "sample_id": ["ok", "high_nm", "low_d", "nm_ne", "nan_mm"],
            "mend": [25e6, 25e6, 15e6, 9e6, np.nan],
        }
    )


class TestClassifyLimit:
    """Test classify_limit function."""

    def test_worked_example(self):
        """Test range [0.00, 0.04] with boundary values."""
        status = classify_limit(
            pd.Series([0.05, 0.03, 0.0, 0.04, -0.01]), 0.0, 0.04
        )
        assert status.tolist() == [
            "above_limit",
            "within_limits",
            "below_limit",
            "above_limit",
            "below_limit",
        ]

    def test_non_finite_values_unclassified(self):
        """Test that NaN and inf are never within_limits."""
        status = classify_limit(
            pd.Series([np.nan, np.inf, -np.inf, 0.02]), 0.0, 0.04
        )
        assert status.iloc[:3].isna().all()
        assert status.iloc[3] == "within_limits"

    def test_undefined_bounds(self):
        status = classify_limit(pd.Series([0.01, 0.02]), np.nan, np.nan)
        assert status.isna().all()

    def test_only_defined_values(self):
        values = pd.Series(np.linspace(-1, 1, 41).tolist() + [np.nan])
        status = classify_limit(values, -0.5, 0.5)
        assert set(status.dropna()) <= set(LIMIT_STATUSES)


class TestClassifyDepth:
    """Test classify_depth function."""

    def test_boundaries(self):
        """Test that both cutoffs are strict less-than."""
        bins = classify_depth(
            pd.Series(
                [9_999_999, 10_000_000, 19_999_999, 20_000_000, 0, np.nan]
            )
        )
        assert bins.iloc[:5].tolist() == [
            "<10M",
            "10-20M",
            "10-20M",
            ">20M",
            "<10M",
        ]
        assert pd.isna(bins.iloc[5])

    def test_custom_cutoffs(self):
        bins = classify_depth(pd.Series([5.0, 15.0, 25.0]), cutoffs=(10, 20))
        assert bins.tolist() == DEPTH_BINS


class TestClassifyFractions:
    """Test classify_fractions function."""

    def test_statuses(self, fractions, ranges):
        classified = classify_fractions(fractions, ranges).set_index(
            "sample_id"
        )

        assert classified.loc["high_nm", limit_col(FRAC_UNMAPPED)] == (
            "above_limit"
        )
        assert classified.loc["low_d", limit_col(FRAC_DUPE)] == "below_limit"
        assert pd.isna(classified.loc["nan_mm", limit_col(FRAC_MULTIMAPPED)])

    def test_within_overall_limits(self, fractions, ranges):
        """Test within_overall_limits against an independent check."""
        classified = classify_fractions(fractions, ranges)
        status_cols = [limit_col(dim) for dim in FRACTION_COLS]

        expected = [
            all(row[col] == "within_limits" for col in status_cols)
            for _, row in classified.iterrows()
        ]
        assert classified["within_overall_limits"].tolist() == expected
        assert expected == [True, False, False, False, False]


class TestFlagCodes:
    """Test fraction_flag_codes, depth_flag_code and combine_flags."""

    def test_fraction_codes_in_fixed_order(self, fractions, ranges):
        classified = classify_fractions(fractions, ranges)
        codes = fraction_flag_codes(classified)

        assert codes.tolist() == ["", "NM", "D", "NM,NE", "MM"]

    def test_depth_codes(self):
        codes = depth_flag_code(pd.Series(["<10M", "10-20M", ">20M", np.nan]))
        assert codes.iloc[2] == ""
        assert codes.iloc[3] == ""
        assert codes.iloc[0] != codes.iloc[1]
        assert codes.iloc[0] and codes.iloc[1]

    @pytest.mark.parametrize(
        "fraction_codes,depth_code,expected",
        [
            ("", "", NOT_FLAGGED),
            ("NM", "", "NM"),
            ("", "MEND<10M", "MEND<10M"),
            ("NM,D", "MEND10-20M", "NM,D, MEND10-20M"),
        ],
    )
    def test_combine_flags(self, fraction_codes, depth_code, expected):
        assert combine_flags(fraction_codes, depth_code) == expected

    def test_summary_flag_status_missing_codes(self):
        status = summary_flag_status(
            pd.Series([np.nan, "MM"]), pd.Series(["", np.nan])
        )
        assert status.tolist() == [NOT_FLAGGED, "MM"]


class TestBuildFlagTable:
    """Test build_flag_table and count_limit_statuses functions."""

    def test_flag_table(self, selected, fractions, ranges):
        flags = build_flag_table(selected, fractions, ranges).set_index(
            "sample_id"
        )

        assert flags.loc["ok", "summary_flag_status"] == NOT_FLAGGED
        assert flags.loc["high_nm", "summary_flag_status"] == "NM"
        assert flags.loc["low_d", "mend_depth_bin"] == "10-20M"
        assert flags.loc["low_d", "summary_flag_status"] == "D, MEND10-20M"
        assert flags.loc["nm_ne", "summary_flag_status"] == "NM,NE, MEND<10M"
        assert pd.isna(flags.loc["nan_mm", "mend_depth_bin"])

    def test_flag_table_properties(self, selected, fractions, ranges):
        flags = build_flag_table(selected, fractions, ranges)
        status_cols = [limit_col(dim) for dim in FRACTION_COLS]

        for col in status_cols:
            assert flags[col].dropna().isin(LIMIT_STATUSES).all()
        assert flags["mend_depth_bin"].dropna().isin(DEPTH_BINS).all()

        not_flagged = flags["summary_flag_status"] == NOT_FLAGGED
        both_empty = (flags["fraction_flags"] == "") & (
            flags["depth_flag"] == ""
        )
        assert (not_flagged == both_empty).all()

    def test_depth_not_part_of_overall_limits(self, ranges):
        """Test that a low-depth sample can still be within overall limits."""
        fractions = pd.DataFrame(
            {"sample_id": ["s"], **{dim: [0.02] for dim in FRACTION_COLS}}
        )
        selected = pd.DataFrame({"sample_id": ["s"], "mend": [1e6]})
        flags = build_flag_table(selected, fractions, ranges)

        assert bool(flags.loc[0, "within_overall_limits"])
        assert flags.loc[0, "summary_flag_status"] == "MEND<10M"

    def test_status_counts_exclude_unclassified(
        self, selected, fractions, ranges
    ):
        flags = build_flag_table(selected, fractions, ranges)
        counts = count_limit_statuses(flags).set_index("dimension")

        mm = counts.loc[FRAC_MULTIMAPPED]
        assert mm["n_within_limits"] == 4
        assert mm["n_unclassified"] == 1
        assert (
            mm["n_below_limit"] + mm["n_within_limits"] + mm["n_above_limit"]
            == 4
        )
        nm = counts.loc[FRAC_UNMAPPED]
        assert nm["n_above_limit"] == 2
        assert nm["n_within_limits"] == 3
