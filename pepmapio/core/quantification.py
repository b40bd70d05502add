"""
Roll positioned peptide rows up into PSM or peptide counts per reference region
and condition, and into per-residue coverage along each reference.
"""

from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from pepmapio.core.common import (
    CHARACTER,
    END,
    PEPTIDE,
    PEPTIDE_SEQUENCE,
    POSITION,
    PSM,
    PTM_FLAG,
    PTM_MASS,
    PTM_POSITION,
    PTM_TYPE,
    REGION_SEQUENCE,
    REPS,
    START,
)
from pepmapio.core.ptm import get_adapter
from pepmapio.core.ptm.base import is_missing
from pepmapio.core.validation import ConfigurationError, require_columns
from pepmapio.utils.logger import get_logger

logger = get_logger(__name__)


class QuantifyMethod(str, Enum):
    PSM = PSM
    PEPTIDE = PEPTIDE

    @classmethod
    def from_name(cls, name) -> "QuantifyMethod":
        if isinstance(name, cls):
            return name
        if isinstance(name, str):
            for member in cls:
                if member.value.lower() == name.strip().lower():
                    return member
        valid = ", ".join(f"'{member.value}'" for member in cls)
        raise ConfigurationError(
            f"Invalid quantify_method {name!r}. Supported methods are {valid}"
        )


class QuantificationPlan:
    """
    Column roles resolved once per call.

    ``region_columns`` identify a reference region, ``condition_columns`` are
    the remaining grouping columns of the positioned rows (plus the distinct
    columns when broken down by replicate) and ``ptm_columns`` the PTM stratum.
    """

    def __init__(
        self,
        whole_seq: pd.DataFrame,
        matching_result: pd.DataFrame,
        matching_columns: Sequence[str],
        distinct_columns: Optional[Sequence[str]] = None,
        quantify_method="PSM",
        with_ptm: bool = False,
        by_replicate: bool = False,
        peptide_column: str = PEPTIDE_SEQUENCE,
        ptm_mass_column: str = PTM_MASS,
        sequence_column: str = REGION_SEQUENCE,
        per_reference: bool = False,
    ):
        self.method = QuantifyMethod.from_name(quantify_method)
        self.with_ptm = with_ptm
        self.by_replicate = by_replicate
        self.peptide_column = peptide_column
        self.ptm_mass_column = ptm_mass_column
        self.sequence_column = sequence_column
        self.count_column = self.method.value

        matching_columns = list(matching_columns or [])
        self.distinct_columns = list(distinct_columns or [])
        require_columns(
            matching_result, matching_columns + self.distinct_columns, "matching_result"
        )
        require_columns(whole_seq, [sequence_column], "whole_seq")
        if self.method is QuantifyMethod.PEPTIDE:
            require_columns(matching_result, [peptide_column], "matching_result")

        if per_reference:
            # Every reference metadata column carried by the matches identifies a region
            self.region_columns = [
                col
                for col in whole_seq.columns
                if col != sequence_column and col in matching_result.columns
            ]
            if not self.region_columns and len(whole_seq) > 1:
                logger.warning(
                    "Reference table has no metadata to tell its sequences apart; "
                    "every match is laid out on every reference"
                )
        else:
            self.region_columns = [col for col in matching_columns if col in whole_seq.columns]
        self.condition_columns = [
            col
            for col in matching_columns
            if col not in whole_seq.columns and col not in self.region_columns
        ]
        if by_replicate:
            self.condition_columns += [
                col
                for col in self.distinct_columns
                if col not in self.condition_columns and col not in self.region_columns
            ]

        self.ptm_columns: List[str] = []
        if with_ptm:
            label = PTM_TYPE if PTM_TYPE in matching_result.columns else ptm_mass_column
            require_columns(matching_result, [PTM_POSITION, label], "matching_result")
            self.ptm_columns = [PTM_POSITION, label]

        self.domain_columns = self.region_columns + self.condition_columns

    @property
    def counts_distinct(self) -> bool:
        return bool(self.distinct_columns) and not self.by_replicate

    def units(self, matching_result: pd.DataFrame) -> pd.DataFrame:
        """Rows to count; PTM-expansion duplicates collapse unless PTMs are stratified."""
        if self.with_ptm:
            return matching_result
        ptm_like = {PTM_POSITION, PTM_TYPE, self.ptm_mass_column, REPS}
        identity = [col for col in matching_result.columns if col not in ptm_like]
        return matching_result.drop_duplicates(subset=identity or None)

    def domain(
        self, whole_seq: pd.DataFrame, matching_result: pd.DataFrame, with_sequence: bool = False
    ) -> Optional[pd.DataFrame]:
        """
        Every region x observed condition combination, matched or not.

        Returns ``None`` when there is nothing to enumerate.
        """
        parts = []
        if with_sequence:
            parts.append(
                whole_seq[self.region_columns + [self.sequence_column]]
                .drop_duplicates()
                .reset_index(drop=True)
            )
        elif self.region_columns:
            parts.append(
                whole_seq[self.region_columns].drop_duplicates().reset_index(drop=True)
            )
        for col in self.condition_columns:
            parts.append(matching_result[[col]].drop_duplicates().reset_index(drop=True))

        domain = None
        for part in parts:
            domain = part if domain is None else domain.merge(part, how="cross")
        return domain


def _count(plan: QuantificationPlan, units: pd.DataFrame, keys: List[str]) -> pd.Series:
    if plan.counts_distinct:
        distinct = units[keys + [col for col in plan.distinct_columns if col not in keys]]
        return distinct.drop_duplicates().groupby(keys, dropna=False, sort=False).size()
    if plan.method is QuantifyMethod.PEPTIDE:
        return units.groupby(keys, dropna=False, sort=False)[plan.peptide_column].nunique()
    return units.groupby(keys, dropna=False, sort=False).size()


def peptide_quantification(
    whole_seq: pd.DataFrame,
    matching_result: pd.DataFrame,
    matching_columns: Sequence[str],
    distinct_columns: Optional[Sequence[str]] = None,
    quantify_method="PSM",
    with_ptm: bool = False,
    by_replicate: bool = False,
    peptide_column: str = PEPTIDE_SEQUENCE,
    ptm_mass_column: str = PTM_MASS,
    sequence_column: str = REGION_SEQUENCE,
) -> pd.DataFrame:
    """
    Count PSMs or peptides per reference region and condition.

    ``matching_columns`` that exist in ``whole_seq`` identify the reference
    region; the remaining ones are condition columns of the positioned rows.
    Every region is reported for every observed condition combination, with a
    count of 0 where nothing matched.

    Args:
        whole_seq: Reference table used for matching
        matching_result: Output of :func:`match_and_calculate_positions`
        matching_columns: Grouping columns (region metadata and conditions)
        distinct_columns: Columns whose distinct combinations are counted
            (e.g. donor), instead of raw rows
        quantify_method: 'PSM' (rows) or 'Peptide' (distinct stripped sequences)
        with_ptm: Stratify counts by ``PTM_position`` and ``PTM_type``
        by_replicate: Keep ``distinct_columns`` as a breakdown instead of
            counting their distinct combinations
        peptide_column: Stripped-sequence column used by the 'Peptide' method
        ptm_mass_column: Mass column used when no ``PTM_type`` column exists
        sequence_column: Column of ``whole_seq`` holding the reference sequence

    Returns:
        New DataFrame with the grouping columns and a ``PSM`` or ``Peptide`` count column
    """
    plan = QuantificationPlan(
        whole_seq,
        matching_result,
        matching_columns,
        distinct_columns,
        quantify_method,
        with_ptm,
        by_replicate,
        peptide_column,
        ptm_mass_column,
        sequence_column,
    )
    units = plan.units(matching_result)
    keys = plan.domain_columns + plan.ptm_columns

    if not keys:
        total = int(_count(plan, units.assign(_all=0), ["_all"]).sum())
        return pd.DataFrame({plan.count_column: [total]})

    counts = _count(plan, units, keys).rename(plan.count_column).reset_index()
    domain = plan.domain(whole_seq, matching_result)
    if domain is not None:
        result = domain.merge(counts, on=plan.domain_columns, how="left")
    else:
        result = counts

    result[plan.count_column] = result[plan.count_column].fillna(0).astype("int64")
    result = result.sort_values(keys, kind="stable", na_position="first").reset_index(drop=True)

    logger.info(
        f"Quantified {len(units)} rows into {len(result)} {plan.count_column} count rows "
        f"grouped by {keys}"
    )
    return result


def residue_coverage(
    whole_seq: pd.DataFrame,
    matching_result: pd.DataFrame,
    matching_columns: Sequence[str],
    distinct_columns: Optional[Sequence[str]] = None,
    quantify_method="PSM",
    with_ptm: bool = False,
    by_replicate: bool = False,
    peptide_column: str = PEPTIDE_SEQUENCE,
    ptm_mass_column: str = PTM_MASS,
    sequence_column: str = REGION_SEQUENCE,
    modification_format=None,
) -> pd.DataFrame:
    """
    Per-residue coverage of each reference, the input of peptide maps.

    For every reference and condition combination, each residue gets a row
    with its letter (``Character``), 1-based ``Position`` and the number of
    counted units covering it. With ``with_ptm``, ``PTM`` flags residues
    carrying a modification and ``PTM_type`` joins the types found there.

    ``modification_format`` names the format the PTM positions were extracted
    with. List-style formats (MSFragger, mzIdenML, mzTab) number residues from
    1; the default reads positions as 0-based residue indexes, the way the
    bracket formats report them. The other arguments are the same as for
    :func:`peptide_quantification`.
    """
    plan = QuantificationPlan(
        whole_seq,
        matching_result,
        matching_columns,
        distinct_columns,
        quantify_method,
        with_ptm,
        by_replicate,
        peptide_column,
        ptm_mass_column,
        sequence_column,
        per_reference=True,
    )
    require_columns(matching_result, [START, END], "matching_result")
    adapter = None if modification_format is None else get_adapter(modification_format)

    units = plan.units(matching_result)
    groups = _group_units(units, plan.domain_columns)
    domain = plan.domain(whole_seq, matching_result, with_sequence=True)

    frames = []
    for _, row in domain.iterrows():
        sequence = "".join(str(row[sequence_column]).split())
        key = tuple(row[col] for col in plan.domain_columns)
        group = _lookup_group(groups, key, units)

        frame = pd.DataFrame(
            {
                CHARACTER: list(sequence),
                POSITION: np.arange(1, len(sequence) + 1, dtype=np.int64),
                plan.count_column: _coverage_counts(plan, group, len(sequence)),
            }
        )
        if plan.with_ptm:
            flags, types = _ptm_marks(plan, group, len(sequence), adapter)
            frame[PTM_FLAG] = flags
            frame[PTM_TYPE] = types
        for col in reversed(plan.domain_columns):
            frame.insert(0, col, row[col])
        frames.append(frame)

    if not frames:
        columns = plan.domain_columns + [CHARACTER, POSITION, plan.count_column]
        if plan.with_ptm:
            columns += [PTM_FLAG, PTM_TYPE]
        return pd.DataFrame(columns=columns)

    result = pd.concat(frames, ignore_index=True)
    logger.info(
        f"Computed {plan.count_column} coverage for {len(domain)} reference/condition combinations"
    )
    return result


def _group_units(units: pd.DataFrame, columns: List[str]) -> Dict[Tuple, pd.DataFrame]:
    if not columns:
        return {(): units}
    return {
        key if isinstance(key, tuple) else (key,): group
        for key, group in units.groupby(columns, dropna=False, sort=False)
    }


def _lookup_group(
    groups: Dict[Tuple, pd.DataFrame], key: Tuple, units: pd.DataFrame
) -> pd.DataFrame:
    if key in groups:
        return groups[key]
    # NaN keys never compare equal
    for group_key, group in groups.items():
        if all(
            (is_missing(a) and is_missing(b)) or (not is_missing(a) and a == b)
            for a, b in zip(group_key, key)
        ):
            return group
    return units.iloc[0:0]


def _span_counts(starts: np.ndarray, ends: np.ndarray, length: int) -> np.ndarray:
    """Number of ``[start, end]`` spans covering each residue, clipped to the sequence."""
    diff = np.zeros(length + 1, dtype=np.int64)
    starts = np.clip(starts.astype(np.int64), 1, length + 1)
    ends = np.clip(ends.astype(np.int64), 0, length)
    valid = starts <= ends
    np.add.at(diff, starts[valid] - 1, 1)
    np.add.at(diff, ends[valid], -1)
    return np.cumsum(diff)[:length]


def _coverage_counts(
    plan: QuantificationPlan, group: pd.DataFrame, length: int
) -> np.ndarray:
    if group.empty or length == 0:
        return np.zeros(length, dtype=np.int64)

    if plan.counts_distinct:
        counts = np.zeros(length, dtype=np.int64)
        for _, members in group.groupby(plan.distinct_columns, dropna=False, sort=False):
            spans = members[[START, END]].drop_duplicates()
            covered = _span_counts(spans[START].to_numpy(), spans[END].to_numpy(), length)
            counts += (covered > 0).astype(np.int64)
        return counts

    if plan.method is QuantifyMethod.PEPTIDE:
        group = group.drop_duplicates(subset=[plan.peptide_column, START, END])
    return _span_counts(group[START].to_numpy(), group[END].to_numpy(), length)


def _ptm_marks(plan: QuantificationPlan, group: pd.DataFrame, length: int, adapter=None):
    flags = np.zeros(length, dtype=bool)
    types: List[List[str]] = [[] for _ in range(length)]
    label = plan.ptm_columns[1]

    modified = group[group[PTM_POSITION].notna()]
    for start, offset, ptm in zip(modified[START], modified[PTM_POSITION], modified[label]):
        index = int(offset) if adapter is None else adapter.residue_index(offset)
        residue = int(start) - 1 + index
        if not 0 <= residue < length:
            continue
        flags[residue] = True
        if not is_missing(ptm) and str(ptm) not in types[residue]:
            types[residue].append(str(ptm))

    return flags, [";".join(found) if found else None for found in types]
