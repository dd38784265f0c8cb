"""
Reading of manifests and metadata tables.
"""

import pandas as pd
from pathlib import Path
from typing import Union
from pandas import DataFrame

# file extension -> column separator; anything else is read as TSV
SEPARATORS = {".csv": ",", ".tsv": "\t", ".txt": "\t"}


def read_table(path: Union[str, Path], **kwargs) -> DataFrame:
    """
    Read a tabular file, picking the separator from the file extension.

    .csv is comma-separated, .tsv, .txt and unknown extensions are
    tab-separated. Keyword arguments are forwarded to pandas.read_csv.

    Raises
    ------
    FileNotFoundError
        If path does not exist.
    RuntimeError
        If pandas fails to parse the file.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Table not found: {path}")

    sep = SEPARATORS.get(path.suffix.lower(), "\t")
    try:
        return pd.read_csv(path, sep=sep, **kwargs)
    except Exception as exc:
        raise RuntimeError(f"Failed to read table '{path}': {exc}") from exc
