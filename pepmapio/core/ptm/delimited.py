"""
Parsers for engines that report modifications as a separate list of
``position``/``mass`` tokens next to a plain peptide sequence.
"""

import re
from abc import abstractmethod
from typing import List, Optional, Tuple

from pepmapio.core.common import C_TERM, N_TERM
from pepmapio.core.ptm.base import (
    Modification,
    ModificationAdapter,
    ModificationFormat,
    clean_mass_token,
    is_missing,
    register_adapter,
    residues_only,
)
from pepmapio.core.validation import ModificationParseError

_NUMBER = r"[+-]?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?"

# "N-term(42.0106)", "C-term(15.9949)", "6M(-0.98)"
_RE_MSFRAGGER_TOKEN = re.compile(
    rf"^(?:(?P<term>{N_TERM}|{C_TERM})|(?P<position>\d+)[A-Za-z]?)\s*\((?P<mass>{_NUMBER})\)$",
    re.IGNORECASE,
)
# "-0.984016 (10)"
_RE_MZIDENTML_TOKEN = re.compile(rf"^(?P<mass>{_NUMBER})\s*\((?P<position>\d+)\)$")
# "4-UNIMOD:7", "2|5-UNIMOD:4", "3[MS,MS:1001876, modification probability, 0.8]-UNIMOD:21"
_RE_MZTAB_TOKEN = re.compile(r"^(?P<positions>\d+(?:\[[^\]]*\])?(?:\|\d+(?:\[[^\]]*\])?)*)-(?P<code>.+)$")


class DelimitedAdapter(ModificationAdapter):
    """
    Shared logic for list conventions. Positions are taken as reported: residues
    are numbered from 1 and 0 marks the N-terminus.
    """

    requires_sequence = True
    first_residue = 1

    def split(self, value: str) -> List[str]:
        return [token.strip() for token in value.split(",") if token.strip()]

    @abstractmethod
    def tokens(self, token: str, sequence: Optional[str]) -> List[Modification]:
        """Parse one list token into its modifications."""

    def parse(
        self, modified: Optional[str], sequence: Optional[str] = None
    ) -> Tuple[Modification, ...]:
        if is_missing(modified):
            return ()

        sequence = None if is_missing(sequence) else str(sequence)
        modifications = []
        for token in self.split(str(modified)):
            for modification in self.tokens(token, sequence):
                self._check_bounds(modification, sequence, token)
                modifications.append(modification)
        return tuple(modifications)

    def strip(self, modified: Optional[str]) -> Optional[str]:
        if is_missing(modified):
            return None
        return residues_only(str(modified))

    @staticmethod
    def _check_bounds(
        modification: Modification, sequence: Optional[str], token: str
    ) -> None:
        if modification.position < 0:
            raise ModificationParseError(f"Negative position in modification {token!r}")
        if sequence is not None and modification.position > len(sequence):
            raise ModificationParseError(
                f"Modification {token!r} points past the end of {sequence!r}"
            )


@register_adapter(ModificationFormat.MSFRAGGER)
class MsfraggerAdapter(DelimitedAdapter):
    """MSFragger ``Assigned Modifications``: ``C-term(15.9949), 6M(-0.98)``."""

    def tokens(self, token: str, sequence: Optional[str]) -> List[Modification]:
        match = _RE_MSFRAGGER_TOKEN.match(token)
        if not match:
            raise ModificationParseError(f"Unrecognized MSFragger modification {token!r}")

        term = match.group("term")
        if term is None:
            position = int(match.group("position"))
        elif term.lower() == N_TERM.lower():
            position = 0
        else:
            if sequence is None:
                raise ModificationParseError(
                    f"C-terminal modification {token!r} needs the peptide sequence"
                )
            position = len(sequence)
        return [Modification(position, clean_mass_token(match.group("mass")))]


@register_adapter(ModificationFormat.MZIDENTML)
class MzIdentMLAdapter(DelimitedAdapter):
    """mzIdentML ``modification``: ``-0.984016 (10), 15.994915 (13)``."""

    def tokens(self, token: str, sequence: Optional[str]) -> List[Modification]:
        match = _RE_MZIDENTML_TOKEN.match(token)
        if not match:
            raise ModificationParseError(f"Unrecognized mzIdentML modification {token!r}")
        return [
            Modification(int(match.group("position")), clean_mass_token(match.group("mass")))
        ]


@register_adapter(ModificationFormat.MZTAB)
class MzTabAdapter(DelimitedAdapter):
    """
    mzTab ``modifications``: ``4-UNIMOD:7,10-UNIMOD:35``.

    Ambiguous sites (``2|5-UNIMOD:4``) produce one row per listed position and
    probability annotations in brackets are ignored. mzTab reports C-terminal
    modifications at ``length + 1``; they are moved onto ``length``.
    """

    def split(self, value: str) -> List[str]:
        if value.strip() == "null":
            return []
        tokens = re.split(r",(?![^\[]*\])", value)
        return [token.strip() for token in tokens if token.strip()]

    def tokens(self, token: str, sequence: Optional[str]) -> List[Modification]:
        match = _RE_MZTAB_TOKEN.match(token)
        if not match:
            raise ModificationParseError(f"Unrecognized mzTab modification {token!r}")

        code = match.group("code").strip()
        modifications = []
        for part in match.group("positions").split("|"):
            position = int(part.split("[")[0])
            if sequence is not None and position == len(sequence) + 1:
                position = len(sequence)
            modifications.append(Modification(position, code))
        return modifications
