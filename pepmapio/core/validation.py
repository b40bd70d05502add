"""
Data validation utilities and error types for pepmapio.
"""

from typing import Iterable, List, Optional, Union

import pandas as pd
import pyarrow as pa

from pepmapio.core.format import COUNT_FIELDS, NORMALIZED_FIELDS, POSITIONED_FIELDS
from pepmapio.utils.logger import get_logger

logger = get_logger(__name__)


class ConfigurationError(ValueError):
    """Exception raised when a call is configured with missing or invalid parameters."""

    pass


class UnsupportedFormatError(ConfigurationError):
    """Exception raised for a modification format name that is not supported."""

    pass


class ModificationParseError(ValueError):
    """Exception raised when a modification token does not fit its format."""

    pass


def require_columns(
    data: pd.DataFrame, columns: Iterable[Optional[str]], table: str = "data"
) -> None:
    """
    Check that every named column exists in a table.

    Args:
        data: Table to check
        columns: Column names (``None`` entries are ignored)
        table: Name of the table used in the error message

    Raises:
        ConfigurationError: If any column is missing
    """
    missing = [col for col in columns if col is not None and col not in data.columns]
    if missing:
        raise ConfigurationError(
            f"Column(s) {missing} not found in {table}. "
            f"Available columns: {list(data.columns)}"
        )


def _is_text(data_type: pa.DataType) -> bool:
    return pa.types.is_string(data_type) or pa.types.is_large_string(data_type)


def _same_type(actual: pa.DataType, expected: pa.DataType) -> bool:
    # pandas may hand string columns over as large_string
    if _is_text(expected):
        return _is_text(actual)
    return actual.equals(expected)


def validate_schema(data: Union[pd.DataFrame, pa.Table], schema: pa.Schema) -> List[str]:
    """
    Validate that data conforms to the expected schema.

    Only the fields declared in the schema are checked; extra columns are allowed
    since every table carries the caller's own columns along.

    Args:
        data: Data to validate
        schema: Expected schema

    Returns:
        List of validation errors (empty if validation passed)
    """
    errors = []

    if isinstance(data, pd.DataFrame):
        try:
            data = pa.Table.from_pandas(data, preserve_index=False)
        except Exception as e:
            errors.append(f"Failed to convert DataFrame to Arrow Table: {str(e)}")
            return errors

    for field in schema:
        if field.name not in data.column_names:
            errors.append(f"Missing required field: {field.name}")
            continue

        data_type = data.schema.field(field.name).type
        # An all-null column carries no type information
        if pa.types.is_null(data_type):
            continue
        if not _same_type(data_type, field.type):
            errors.append(
                f"Invalid type for field {field.name}: "
                f"expected {field.type}, got {data_type}"
            )

    return errors


def validate_normalized_data(
    data: Union[pd.DataFrame, pa.Table], ptm_mass_column: str = "PTM_mass"
) -> List[str]:
    """
    Validate a normalized PTM table.

    Args:
        data: Output of the PTM normalizer
        ptm_mass_column: Name of the column holding the PTM mass

    Returns:
        List of validation errors (empty if validation passed)
    """
    fields = list(NORMALIZED_FIELDS) + [pa.field(ptm_mass_column, pa.string())]
    return validate_schema(data, pa.schema(fields))


def validate_positioned_data(data: Union[pd.DataFrame, pa.Table]) -> List[str]:
    """
    Validate a positioned (matched) table.

    Args:
        data: Output of the sequence matcher

    Returns:
        List of validation errors (empty if validation passed)
    """
    return validate_schema(data, pa.schema(POSITIONED_FIELDS))


def validate_count_data(
    data: Union[pd.DataFrame, pa.Table], count_column: str
) -> List[str]:
    """
    Validate an aggregated count table.

    Args:
        data: Output of the quantification aggregator
        count_column: Name of the count column (``PSM`` or ``Peptide``)

    Returns:
        List of validation errors (empty if validation passed)
    """
    fields = [pa.field(count_column, field.type) for field in COUNT_FIELDS]
    return validate_schema(data, pa.schema(fields))
