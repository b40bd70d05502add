"""
File utility functions for pepmapio.
This module reads and writes the tables passed between pipeline stages.
"""

from pathlib import Path
from typing import Optional, Union

import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq

from pepmapio.core.common import END, PEPMAPIO_VERSION, PTM_POSITION, REPS, START
from pepmapio.utils.logger import get_logger

logger = get_logger(__name__)

PARQUET_EXTENSIONS = {".parquet", ".pq"}
TSV_EXTENSIONS = {".tsv", ".txt", ".tab"}
CSV_EXTENSIONS = {".csv"}
SUPPORTED_EXTENSIONS = PARQUET_EXTENSIONS | TSV_EXTENSIONS | CSV_EXTENSIONS

# Columns written by earlier stages that must come back as integers from text files
INTEGER_COLUMNS = (PTM_POSITION, REPS, START, END)


def validate_extension(file_path: Union[str, Path]) -> str:
    """Return the lower-cased suffix of a table file, or raise if it is not supported."""
    suffix = Path(file_path).suffix.lower()
    if suffix not in SUPPORTED_EXTENSIONS:
        raise ValueError(
            f"File {file_path} does not have a supported extension "
            f"({', '.join(sorted(SUPPORTED_EXTENSIONS))})"
        )
    return suffix


def read_table(file_path: Union[str, Path]) -> pd.DataFrame:
    """
    Read a CSV, tab-delimited or Parquet table.

    Delimited files are read with every column as text so that modification
    strings and sequence identifiers are not coerced; only the coordinate
    columns in ``INTEGER_COLUMNS`` are converted back to integers.

    Args:
        file_path: Path to the table

    Returns:
        DataFrame with the table content
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")
    suffix = validate_extension(path)

    if suffix in PARQUET_EXTENSIONS:
        df = pq.read_table(str(path)).to_pandas()
    else:
        sep = "," if suffix in CSV_EXTENSIONS else "\t"
        df = pd.read_csv(path, sep=sep, dtype=str, keep_default_na=False, na_values=[""])
        for col in INTEGER_COLUMNS:
            if col in df.columns:
                df[col] = pd.to_numeric(df[col]).astype("Int64")

    logger.info(f"Read {len(df):,} rows from {path}")
    return df


def write_table(
    df: pd.DataFrame, file_path: Union[str, Path], schema: Optional[pa.Schema] = None
) -> Path:
    """
    Write a table, choosing the format from the file extension.

    Args:
        df: Table to write
        file_path: Output path (``.csv``, ``.tsv``/``.txt`` or ``.parquet``)
        schema: Optional Arrow schema whose field metadata is attached to the
            matching Parquet columns; Parquet files also record the pepmapio version

    Returns:
        Path of the written file
    """
    path = Path(file_path)
    suffix = validate_extension(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if suffix in PARQUET_EXTENSIONS:
        table = pa.Table.from_pandas(df, preserve_index=False)
        table = _attach_metadata(table, schema)
        pq.write_table(table, str(path), compression="gzip")
    else:
        sep = "," if suffix in CSV_EXTENSIONS else "\t"
        df.to_csv(path, sep=sep, index=False)

    logger.info(f"Wrote {len(df):,} rows to {path}")
    return path


def _attach_metadata(table: pa.Table, schema: Optional[pa.Schema]) -> pa.Table:
    fields = []
    for field in table.schema:
        index = -1 if schema is None else schema.get_field_index(field.name)
        if index != -1 and schema.field(index).metadata:
            field = field.with_metadata(schema.field(index).metadata)
        fields.append(field)
    # Keep the pandas metadata so nullable integer columns read back unchanged
    metadata = dict(table.schema.metadata or {})
    if schema is not None:
        metadata.update(schema.metadata or {})
    metadata[b"pepmapio_version"] = PEPMAPIO_VERSION.encode()
    return table.cast(pa.schema(fields, metadata=metadata))
