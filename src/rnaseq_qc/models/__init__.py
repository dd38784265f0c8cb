"""
Report generators for RNA-seq QC flags.

This includes:
- FlagReport: writes the QC flag tables and figures of one run
- FlagReportConfig: output layout of a FlagReport
"""

from .flag_report import FlagReport, FlagReportConfig, generate_flag_report

__all__ = [
    "FlagReport",
    "FlagReportConfig",
    "generate_flag_report",
]
