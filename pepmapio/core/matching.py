"""
Locate stripped peptides inside reference sequences and compute their coordinates.
"""

from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from pepmapio.core.common import END, REGION_SEQUENCE, START
from pepmapio.core.ptm.base import is_missing
from pepmapio.core.validation import ConfigurationError, require_columns
from pepmapio.utils.logger import get_logger

logger = get_logger(__name__)


def find_all_occurrences(peptide: str, sequence: str) -> List[int]:
    """Return every 1-based start of ``peptide`` in ``sequence``, overlapping ones included."""
    starts = []
    if not peptide:
        return starts
    index = sequence.find(peptide)
    while index != -1:
        starts.append(index + 1)
        index = sequence.find(peptide, index + 1)
    return starts


def _check_length_range(sequence_length) -> Optional[Tuple[int, int]]:
    if sequence_length is None:
        return None
    try:
        low, high = sequence_length
        low, high = int(low), int(high)
    except (TypeError, ValueError):
        raise ConfigurationError(
            f"sequence_length must be a (min, max) pair, got {sequence_length!r}"
        )
    if low > high:
        raise ConfigurationError(f"sequence_length minimum {low} exceeds maximum {high}")
    return low, high


def _candidate_mask(
    data: pd.DataFrame, reference: pd.Series, match_columns: Sequence[str]
) -> np.ndarray:
    mask = np.ones(len(data), dtype=bool)
    for col in match_columns:
        value = reference[col]
        if is_missing(value):
            return np.zeros(len(data), dtype=bool)
        mask &= (data[col] == value).fillna(False).to_numpy(dtype=bool)
    return mask


def match_and_calculate_positions(
    data: pd.DataFrame,
    column: str,
    whole_seq: pd.DataFrame,
    match_columns: Optional[Sequence[str]] = None,
    sequence_length: Optional[Sequence[int]] = None,
    column_keep: Optional[Sequence[str]] = None,
    sequence_column: str = REGION_SEQUENCE,
) -> pd.DataFrame:
    """
    Match peptides against reference sequences and calculate their positions.

    Every occurrence is reported, so a peptide found twice (in one reference or
    across references) gives two rows; peptides that are not found, or whose
    length falls outside ``sequence_length``, are dropped.

    Args:
        data: Table with a stripped-sequence column, left untouched
        column: Name of the stripped-sequence column
        whole_seq: Reference table with ``sequence_column`` and metadata columns
        match_columns: Columns present in both tables; a row is only matched
            against references with equal values
        sequence_length: Inclusive ``(min, max)`` peptide length filter
        column_keep: Input columns to carry over; all columns when ``None``
        sequence_column: Column of ``whole_seq`` holding the reference sequence

    Returns:
        New DataFrame with the peptide column, ``column_keep``, reference
        metadata, ``start`` and ``end`` (1-based, inclusive)
    """
    match_columns = list(match_columns or [])
    require_columns(data, [column] + match_columns)
    require_columns(whole_seq, [sequence_column] + match_columns, "whole_seq")
    length_range = _check_length_range(sequence_length)

    meta_columns = [col for col in whole_seq.columns if col != sequence_column]
    if column_keep is None:
        keep = [col for col in data.columns if col != column]
    else:
        require_columns(data, column_keep)
        keep = [col for col in column_keep if col != column]
    # Reference metadata wins over identically named input columns
    keep = [col for col in keep if col not in meta_columns]

    peptides = [None if is_missing(value) else str(value).strip() for value in data[column]]
    eligible = np.array([bool(peptide) for peptide in peptides], dtype=bool)
    if length_range is not None:
        low, high = length_range
        lengths = np.array([len(peptide) if peptide else 0 for peptide in peptides])
        in_range = (lengths >= low) & (lengths <= high)
        logger.debug(
            f"{int((eligible & ~in_range).sum())} peptides outside length range {low}-{high}"
        )
        eligible &= in_range

    row_positions: List[int] = []
    reference_positions: List[int] = []
    starts: List[int] = []
    for ref_position in range(len(whole_seq)):
        reference = whole_seq.iloc[ref_position]
        if is_missing(reference[sequence_column]):
            continue
        sequence = "".join(str(reference[sequence_column]).split())
        candidates = eligible & _candidate_mask(data, reference, match_columns)

        occurrences: Dict[str, List[int]] = {}
        for row_position in np.flatnonzero(candidates):
            peptide = peptides[row_position]
            if peptide not in occurrences:
                occurrences[peptide] = find_all_occurrences(peptide, sequence)
            for start in occurrences[peptide]:
                row_positions.append(int(row_position))
                reference_positions.append(ref_position)
                starts.append(start)

    order = np.lexsort((starts, reference_positions, row_positions))
    row_index = np.asarray(row_positions, dtype=np.int64)[order]
    ref_index = np.asarray(reference_positions, dtype=np.int64)[order]
    start_values = np.asarray(starts, dtype=np.int64)[order]

    matched = data.iloc[row_index][[column] + keep].reset_index(drop=True)
    references = whole_seq.iloc[ref_index][meta_columns].reset_index(drop=True)
    peptide_lengths = np.array([len(peptides[i]) for i in row_index], dtype=np.int64)

    result = pd.concat([matched, references], axis=1)
    result[START] = start_values
    result[END] = start_values + peptide_lengths - 1

    matched_rows = len(np.unique(row_index))
    logger.info(
        f"Matched {matched_rows}/{len(data)} peptides to {len(whole_seq)} reference sequences "
        f"({len(result)} positioned rows)"
    )
    return result
