"""
PTM normalization: turn a column of engine-specific modified sequences into one
row per modification with ``PTM_position``, the PTM mass, ``reps`` and an
optional ``PTM_type`` looked up from a PTM table.
"""

from typing import List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from pepmapio.core.common import PTM_MASS, PTM_POSITION, PTM_TYPE, REPS
from pepmapio.core.ptm.base import Modification, get_adapter, is_missing
from pepmapio.core.validation import ConfigurationError, require_columns
from pepmapio.utils.logger import get_logger

logger = get_logger(__name__)


def canonical_mass_key(value) -> Optional[str]:
    """
    Render a PTM mass or code so that both sides of the annotation join compare equal.

    Numbers are rounded to 6 decimals with trailing zeros dropped (``42``,
    ``42.0`` and ``+42.000`` all become ``"42"``); anything that is not a
    number (``UniMod:21``, ``Oxidation (M)``) is compared as trimmed text.
    """
    if is_missing(value):
        return None
    text = str(value).strip()
    if text.startswith("+"):
        text = text[1:]
    try:
        number = float(text)
    except ValueError:
        return text
    if not np.isfinite(number):
        return text
    rendered = f"{number:.6f}".rstrip("0").rstrip(".")
    return "0" if rendered == "-0" else rendered


def expand_modifications(
    data: pd.DataFrame,
    parsed: Sequence[Tuple[Modification, ...]],
    ptm_mass_column: str,
) -> pd.DataFrame:
    """
    Build the normalized table: one row per modification, one row for unmodified input.

    Args:
        data: Input rows, in the same order as ``parsed``
        parsed: Modifications of each input row
        ptm_mass_column: Name of the output mass column

    Returns:
        New DataFrame with ``PTM_position``, ``reps``, the mass column and every input column
    """
    counts = np.array([max(len(mods), 1) for mods in parsed], dtype=np.int64)

    positions: List[Optional[int]] = []
    masses: List[Optional[str]] = []
    for mods in parsed:
        if mods:
            positions.extend(mod.position for mod in mods)
            masses.extend(mod.mass for mod in mods)
        else:
            positions.append(None)
            masses.append(None)

    row_index = np.repeat(np.arange(len(data)), counts)
    recycled = data.iloc[row_index].reset_index(drop=True)

    ptm_frame = pd.DataFrame(
        {
            PTM_POSITION: pd.array(positions, dtype="Int64"),
            REPS: np.repeat(counts, counts),
            ptm_mass_column: pd.Series(masses, dtype="object"),
        }
    )
    return pd.concat([ptm_frame, recycled], axis=1)


def annotate_ptm_type(
    result: pd.DataFrame, ptm_table: pd.DataFrame, ptm_mass_column: str
) -> pd.DataFrame:
    """
    Left-join ``PTM_type`` (and any other PTM table column) onto the normalized rows.

    Masses missing from the table keep a null type; row order is preserved.
    """
    require_columns(ptm_table, [ptm_mass_column, PTM_TYPE], "PTM table")

    key = "_ptm_mass_key"
    table = ptm_table.copy()
    table[key] = table[ptm_mass_column].map(canonical_mass_key)
    table = table[table[key].notna()]
    duplicated = table[key].duplicated(keep="first")
    if duplicated.any():
        logger.warning(
            f"PTM table has {int(duplicated.sum())} duplicated mass entries; keeping the first of each"
        )
        table = table[~duplicated]
    annotated = result.drop(columns=[PTM_TYPE]).assign(
        **{key: result[ptm_mass_column].map(canonical_mass_key)}
    )
    # Input columns win over PTM table columns of the same name
    shared = [
        col
        for col in table.columns
        if col not in (key, ptm_mass_column) and col in annotated.columns
    ]
    if shared:
        logger.debug(f"PTM table columns {shared} already exist in the data and are not joined")
    table = table.drop(columns=shared + [ptm_mass_column])

    annotated = annotated.merge(table, on=key, how="left", sort=False).drop(columns=[key])

    # Keep the unannotated layout; other PTM table columns go last
    columns = list(result.columns)
    extra = [col for col in annotated.columns if col not in columns]
    annotated = annotated[columns + extra]

    unmatched = annotated[PTM_TYPE].isna() & annotated[ptm_mass_column].notna()
    if unmatched.any():
        missing = sorted(annotated.loc[unmatched, ptm_mass_column].astype(str).unique())
        logger.debug(f"No PTM type found for masses: {missing}")
    return annotated


def obtain_mod(
    data: pd.DataFrame,
    mod_column: str,
    modification_format,
    seq_column: Optional[str] = None,
    ptm_table: Optional[pd.DataFrame] = None,
    ptm_annotation: bool = False,
    ptm_mass_column: str = PTM_MASS,
) -> pd.DataFrame:
    """
    Extract PTM information from a column of modified peptide sequences.

    The parser is chosen from ``modification_format`` ('PEAKS', 'Spectronaut',
    'MSFragger', 'Comet', 'DIANN', 'Skyline', 'Maxquant', 'mzIdenML' or 'mzTab').

    Args:
        data: Input table, left untouched
        mod_column: Column holding the modified sequences (or modification lists)
        modification_format: Format name or :class:`ModificationFormat`
        seq_column: Column with the plain peptide; required for MSFragger, mzIdenML and mzTab
        ptm_table: Table with the mass column and ``PTM_type``
        ptm_annotation: Whether to look up ``PTM_type`` in ``ptm_table``
        ptm_mass_column: Name of the mass column, both in the output and in ``ptm_table``

    Returns:
        New DataFrame with ``PTM_position``, ``reps``, the mass column, ``PTM_type``
        and every input column

    Raises:
        UnsupportedFormatError: If the format is unknown
        ConfigurationError: If a required column parameter or column is missing
        ModificationParseError: If a modification token does not fit the format
    """
    adapter = get_adapter(modification_format)
    format_name = adapter.modification_format.value

    if adapter.requires_sequence and seq_column is None:
        raise ConfigurationError(f"seq_column is required for '{format_name}'.")
    require_columns(data, [mod_column, seq_column])
    clashes = [
        col for col in (PTM_POSITION, REPS, ptm_mass_column, PTM_TYPE) if col in data.columns
    ]
    if clashes:
        raise ConfigurationError(
            f"Input already contains output column(s) {clashes}; rename them before extracting modifications."
        )
    if ptm_annotation and ptm_table is not None:
        require_columns(ptm_table, [ptm_mass_column, PTM_TYPE], "PTM table")

    sequences = data[seq_column] if seq_column is not None else [None] * len(data)
    parsed = [
        adapter.parse(modified, sequence)
        for modified, sequence in zip(data[mod_column], sequences)
    ]

    result = expand_modifications(data, parsed, ptm_mass_column)
    result.insert(
        result.columns.get_loc(ptm_mass_column) + 1,
        PTM_TYPE,
        pd.Series([None] * len(result), dtype="object"),
    )

    if ptm_annotation and ptm_table is not None:
        result = annotate_ptm_type(result, ptm_table, ptm_mass_column)
    elif ptm_annotation:
        logger.warning("PTM annotation requested without a PTM table; PTM_type left empty")

    modified_rows = sum(1 for mods in parsed if mods)
    logger.info(
        f"Extracted {sum(len(mods) for mods in parsed)} modifications from "
        f"{modified_rows}/{len(data)} {format_name} rows"
    )
    return result


def strip_sequence(
    data: pd.DataFrame, column: str, convert_column: str, modification_format
) -> pd.DataFrame:
    """
    Add a column with the stripped (residue-only) sequence.

    Args:
        data: Input table, left untouched
        column: Column holding the modified sequences
        convert_column: Name of the new stripped-sequence column
        modification_format: Format name or :class:`ModificationFormat`

    Returns:
        Copy of ``data`` with ``convert_column`` set
    """
    adapter = get_adapter(modification_format)
    require_columns(data, [column])

    result = data.copy()
    result[convert_column] = [adapter.strip(value) for value in data[column]]
    return result
