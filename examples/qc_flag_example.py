"""
Example: RNA-seq QC flagging standalone and as a pypipegraph job.

Adjust the paths to your batch. Expected layout:

    input/mend_qc/*bam_umend_qc.tsv
    input/star_logs/*Log.final.out
    input/mend_manifest.tsv
    input/star_manifest.tsv
    input/sample_metadata.tsv
"""

from pathlib import Path

from rnaseq_qc.models import FlagReportConfig, generate_flag_report
from rnaseq_qc.jobs.qc_jobs import qc_flag_job

INPUT_DIR = Path("input")
OUTPUT_DIR = Path("results/qc_flags")

INPUTS = {
    "mend_qc_dir": INPUT_DIR / "mend_qc",
    "star_log_dir": INPUT_DIR / "star_logs",
    "mend_manifest": INPUT_DIR / "mend_manifest.tsv",
    "star_manifest": INPUT_DIR / "star_manifest.tsv",
    "sample_metadata": INPUT_DIR / "sample_metadata.tsv",
}


def example_standalone():
    """
    Example: Run the flagging batch without pypipegraph.
    """
    report = generate_flag_report(
        FlagReportConfig(out_dir=OUTPUT_DIR, save_formats=["png", "pdf"]),
        library_preps=["stranded"],
        **INPUTS,
    )

    flags = report["results"]["flags"]
    print(flags["summary_flag_status"].value_counts())
    return report


def example_pypipegraph_integration():
    """
    Example: Integrate QC flagging into a pypipegraph workflow.
    """
    import pypipegraph2 as ppg2

    ppg2.new()

    qc_flag_job(
        output_dir=OUTPUT_DIR,
        prefix="batch1",
        library_preps=["stranded"],
        save_formats=["png"],
        **INPUTS,
    )

    ppg2.run()

    print(f"QC flagging complete. Results in {OUTPUT_DIR}")


if __name__ == "__main__":
    example_standalone()
