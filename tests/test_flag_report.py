"""
Tests for models/flag_report.py and the typer CLI.
"""

import shutil
import pytest
import pandas as pd
import matplotlib

matplotlib.use("Agg")
from pathlib import Path
from typer.testing import CliRunner
from rnaseq_qc import main as cli
from rnaseq_qc.config import settings
from rnaseq_qc.core.join import SampleIntegrityError
from rnaseq_qc.models import FlagReport, FlagReportConfig, generate_flag_report


DATA_DIR = Path(__file__).parent / "data"


def pipeline_kwargs(data_dir: Path = DATA_DIR):
    return {
        "mend_qc_dir": data_dir / "mend_qc",
        "star_log_dir": data_dir / "star_logs",
        "mend_manifest": data_dir / "mend_manifest.tsv",
        "star_manifest": data_dir / "star_manifest.tsv",
        "sample_metadata": data_dir / "sample_metadata.tsv",
    }


class TestFlagReport:
    """Test FlagReport and generate_flag_report."""

    def test_output_files(self, tmp_path):
        config = FlagReportConfig(
            out_dir=tmp_path, prefix="batch", save_formats=["png", "pdf"]
        )
        names = [p.name for p in FlagReport(config).output_files()]

        assert "batch_qc_flags.tsv" in names
        assert "batch_reference_ranges.tsv" in names
        assert "batch_fraction_distributions.pdf" in names
        assert "batch_mend_depth.png" in names

    def test_build_without_results(self, tmp_path):
        with pytest.raises(ValueError):
            FlagReport(FlagReportConfig(out_dir=tmp_path)).build()

    def test_generate_flag_report(self, tmp_path):
        config = FlagReportConfig(out_dir=tmp_path, save_formats=["png"])
        report = generate_flag_report(config, **pipeline_kwargs())

        for path in FlagReport(config).output_files():
            assert path.exists(), path
        assert set(report["files"].values()) == set(
            FlagReport(config).output_files()
        )

        flags = pd.read_csv(
            tmp_path / "tables" / "rnaseq_qc_qc_flags.tsv",
            sep="\t",
            keep_default_na=False,
        )
        assert len(flags) == 6
        assert "summary_flag_status" in flags.columns

        summary = pd.read_csv(
            tmp_path / "tables" / "rnaseq_qc_reference_ranges.tsv", sep="\t"
        )
        assert {"mean", "sd", "minus_1sd", "plus_2sd"} <= set(summary.columns)

    def test_rerun_byte_identical(self, tmp_path):
        """Test that two runs over the same inputs write identical tables."""
        paths = {}
        for run in ("first", "second"):
            config = FlagReportConfig(out_dir=tmp_path / run, save_formats=[])
            generate_flag_report(config, **pipeline_kwargs())
            paths[run] = FlagReport(config).table_paths()

        for key in paths["first"]:
            assert (
                paths["first"][key].read_bytes()
                == paths["second"][key].read_bytes()
            )

    def test_integrity_error_writes_nothing(self, tmp_path):
        data_dir = tmp_path / "data"
        shutil.copytree(DATA_DIR, data_dir)
        with open(data_dir / "star_manifest.tsv", "w") as f:
            f.write("file_name\tKids_First_Biospecimen_ID\n")
            for i in range(1, 8):
                f.write(f"S0{i}.Log.final.out\tBS_X0{i}\n")

        out_dir = tmp_path / "out"
        config = FlagReportConfig(out_dir=out_dir, save_formats=[])
        with pytest.raises(SampleIntegrityError):
            generate_flag_report(config, **pipeline_kwargs(data_dir))
        assert not any(p.exists() for p in FlagReport(config).output_files())


class TestCli:
    """Test the typer commands."""

    @pytest.fixture
    def configured(self, monkeypatch, tmp_path):
        monkeypatch.setattr(settings, "mend_qc_dir", DATA_DIR / "mend_qc")
        monkeypatch.setattr(settings, "star_log_dir", DATA_DIR / "star_logs")
        monkeypatch.setattr(
            settings, "mend_manifest", DATA_DIR / "mend_manifest.tsv"
        )
        monkeypatch.setattr(
            settings, "star_manifest", DATA_DIR / "star_manifest.tsv"
        )
        monkeypatch.setattr(
            settings, "sample_metadata", DATA_DIR / "sample_metadata.tsv"
        )
        monkeypatch.setattr(settings, "output_dir", tmp_path / "results")
        return tmp_path / "results"

    def test_info(self, configured):
        result = CliRunner().invoke(cli.app, ["info"])
        assert result.exit_code == 0
        assert "Library preps" in result.output

    def test_run(self, configured):
        result = CliRunner().invoke(cli.app, ["run", "--no-plots"])
        assert result.exit_code == 0, result.output
        assert (configured / "tables" / "rnaseq_qc_qc_flags.tsv").exists()
        assert not (configured / "plots").exists()
