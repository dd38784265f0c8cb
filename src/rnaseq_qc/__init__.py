"""
RNA-seq QC – read composition metrics and batch-derived QC flags.

This package provides:
- core
- models
- services
- jobs
"""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("rnaseq-qc")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.1.0"


from .core.join import SampleIntegrityError
from .services.io import run_qc_pipeline
from .models import FlagReport, FlagReportConfig, generate_flag_report

__all__ = [
    "SampleIntegrityError",
    "run_qc_pipeline",
    "FlagReport",
    "FlagReportConfig",
    "generate_flag_report",
]
