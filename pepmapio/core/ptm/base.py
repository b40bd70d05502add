"""Modification formats and the adapter contract shared by every search-engine parser."""

import re
from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, Dict, NamedTuple, Optional, Tuple, Type

import pandas as pd

from pepmapio.core.validation import UnsupportedFormatError

_RE_NON_RESIDUE = re.compile(r"[^A-Za-z]")


class ModificationFormat(str, Enum):
    """Closed set of supported modified-sequence conventions."""

    PEAKS = "PEAKS"
    SPECTRONAUT = "Spectronaut"
    MSFRAGGER = "MSFragger"
    COMET = "Comet"
    DIANN = "DIANN"
    SKYLINE = "Skyline"
    MAXQUANT = "Maxquant"
    MZIDENTML = "mzIdenML"
    MZTAB = "mzTab"

    @classmethod
    def from_name(cls, name) -> "ModificationFormat":
        """Resolve a format name (case-insensitive) or raise listing the valid ones."""
        if isinstance(name, cls):
            return name
        if isinstance(name, str):
            lowered = name.strip().lower()
            for member in cls:
                if member.value.lower() == lowered:
                    return member
        valid = ", ".join(f"'{member.value}'" for member in cls)
        raise UnsupportedFormatError(
            f"Invalid type {name!r}. Supported types are {valid}"
        )


class Modification(NamedTuple):
    position: Optional[int]
    mass: Optional[str]


def is_missing(value) -> bool:
    """True for None/NaN cells and blank strings."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def clean_mass_token(token: str) -> str:
    """Trim whitespace and drop a leading '+' (negative signs are kept)."""
    token = token.strip()
    if token.startswith("+"):
        token = token[1:].strip()
    return token


def residues_only(sequence: str) -> str:
    return _RE_NON_RESIDUE.sub("", sequence)


class ModificationAdapter(ABC):
    """
    Parser for one search engine's modified-sequence notation.

    ``parse`` returns an immutable tuple of ``Modification`` entries; an empty
    tuple means the row carries no modification.
    """

    modification_format: ModificationFormat
    requires_sequence: bool = False
    # PTM_position reported for a modification on the first residue
    first_residue: int = 0

    def residue_index(self, position: int) -> int:
        """0-based index of the residue carrying a modification; terminal marks land on the end residues."""
        return max(int(position) - self.first_residue, 0)

    @abstractmethod
    def parse(
        self, modified: Optional[str], sequence: Optional[str] = None
    ) -> Tuple[Modification, ...]:
        """Extract (position, mass) pairs from one modified-sequence value."""

    @abstractmethod
    def strip(self, modified: Optional[str]) -> Optional[str]:
        """Return the plain residue sequence for one modified-sequence value."""


_ADAPTERS: Dict[ModificationFormat, Type[ModificationAdapter]] = {}


def register_adapter(
    modification_format: ModificationFormat,
) -> Callable[[Type[ModificationAdapter]], Type[ModificationAdapter]]:
    """Class decorator binding an adapter implementation to its format."""

    def decorator(cls: Type[ModificationAdapter]) -> Type[ModificationAdapter]:
        cls.modification_format = modification_format
        _ADAPTERS[modification_format] = cls
        return cls

    return decorator


def get_adapter(modification_format) -> ModificationAdapter:
    """Instantiate the adapter registered for a format name or enum member."""
    fmt = ModificationFormat.from_name(modification_format)
    try:
        return _ADAPTERS[fmt]()
    except KeyError:
        raise UnsupportedFormatError(f"No adapter registered for {fmt.value}")
