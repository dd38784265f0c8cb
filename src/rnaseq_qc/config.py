from pathlib import Path
from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    environment: str = "development"

    # Inputs, relative to the working directory of the batch run
    mend_qc_dir: Path = Path("input/mend_qc")
    star_log_dir: Path = Path("input/star_logs")
    mend_manifest: Path = Path("input/mend_manifest.tsv")
    star_manifest: Path = Path("input/star_manifest.tsv")
    sample_metadata: Path = Path("input/sample_metadata.tsv")
    output_dir: Path = Path("results")

    mend_pattern: str = "*bam_umend_qc.tsv"
    star_pattern: str = "*Log.final.out"

    # Manifest and metadata columns
    manifest_file_col: str = "file_name"
    manifest_id_col: str = "Kids_First_Biospecimen_ID"
    metadata_library_col: str = "RNA_library"
    metadata_sample_type_col: str = "sample_type"

    # Population selection
    library_preps: List[str] = ["stranded"]
    sample_types: Optional[List[str]] = None

    # Classification
    n_sd: float = 2.0
    depth_cutoffs: List[float] = [10e6, 20e6]
    symmetric_id_check: bool = False

    class Config:
        env_file = ".env"
        env_prefix = "RNASEQ_QC_"


settings = Settings()
