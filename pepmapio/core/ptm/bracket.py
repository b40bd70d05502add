"""
Parsers for engines that annotate modifications inline with brackets or
parentheses, e.g. ``AAN(+42)Q(-0.98)R`` or ``_[Acetyl (Protein N-term)]MDDR_``.
"""

import re
from typing import List, Optional, Pattern, Tuple

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

# ``K.PEPTIDE.R`` / ``-.PEPTIDE.-`` cleavage flanks
_RE_CLEAVAGE_FLANKS = re.compile(r"^[A-Za-z-]\.(?P<core>.+)\.[A-Za-z-]$")


class BracketAdapter(ModificationAdapter):
    """
    Shared logic for bracket conventions.

    A modification's position is the 0-based index of the residue right before
    its bracket once every bracket span is removed; a bracket at the start of
    the cleaned sequence sits at position 0.
    """

    open_char = "("
    close_char = ")"

    def clean(self, modified: str) -> str:
        """Remove format-specific flanks around the annotated sequence."""
        return modified.strip()

    def spans(self, text: str) -> List[Tuple[int, int]]:
        """Return ``(start, end)`` offsets of each outermost bracket span, end exclusive."""
        spans = []
        depth = 0
        start = 0
        for index, char in enumerate(text):
            if char == self.open_char:
                if depth == 0:
                    start = index
                depth += 1
            elif char == self.close_char:
                if depth == 0:
                    raise ModificationParseError(
                        f"Unbalanced '{self.close_char}' at offset {index} in {text!r}"
                    )
                depth -= 1
                if depth == 0:
                    spans.append((start, index + 1))
        if depth:
            raise ModificationParseError(f"Unclosed '{self.open_char}' in {text!r}")
        return spans

    def parse(
        self, modified: Optional[str], sequence: Optional[str] = None
    ) -> Tuple[Modification, ...]:
        if is_missing(modified):
            return ()

        text = self.clean(str(modified))
        modifications = []
        removed = 0
        for start, end in self.spans(text):
            token = clean_mass_token(text[start + 1 : end - 1])
            if not token:
                raise ModificationParseError(
                    f"Empty modification at offset {start} in {modified!r}"
                )
            position = max(start - removed - 1, 0)
            modifications.append(Modification(position, token))
            removed += end - start
        return tuple(modifications)

    def strip(self, modified: Optional[str]) -> Optional[str]:
        if is_missing(modified):
            return None

        text = self.clean(str(modified))
        pieces = []
        last = 0
        for start, end in self.spans(text):
            pieces.append(text[last:start])
            last = end
        pieces.append(text[last:])
        return residues_only("".join(pieces))


class CleavageFlankMixin:
    flank_pattern: Pattern = _RE_CLEAVAGE_FLANKS

    def clean(self, modified: str) -> str:
        modified = modified.strip()
        match = self.flank_pattern.match(modified)
        return match.group("core") if match else modified


class UnderscoreFlankMixin:
    def clean(self, modified: str) -> str:
        return modified.strip().strip("_")


@register_adapter(ModificationFormat.PEAKS)
class PeaksAdapter(CleavageFlankMixin, BracketAdapter):
    """PEAKS ``Peptide`` column: ``K.(-0.98)AATVTGK.L``, ``AAN(+42)QR``."""

    open_char = "("
    close_char = ")"


@register_adapter(ModificationFormat.SPECTRONAUT)
class SpectronautAdapter(UnderscoreFlankMixin, BracketAdapter):
    """Spectronaut ``EG.ModifiedPeptide``/``EG.IntPIMID``: ``_[+42]M[-0.98]DDR_``."""

    open_char = "["
    close_char = "]"


@register_adapter(ModificationFormat.COMET)
class CometAdapter(CleavageFlankMixin, BracketAdapter):
    """Comet ``modified_peptide``: ``K.[-0.98]AATVTGK.L``."""

    open_char = "["
    close_char = "]"


@register_adapter(ModificationFormat.DIANN)
class DiannAdapter(UnderscoreFlankMixin, BracketAdapter):
    """DIA-NN ``Modified.Sequence``: ``AAGPGAALS(UniMod:21)PRPC(UniMod:4)DSDPK``."""

    open_char = "("
    close_char = ")"


@register_adapter(ModificationFormat.SKYLINE)
class SkylineAdapter(BracketAdapter):
    """Skyline ``Peptide Modified Sequence``: ``AGLC[+57]QTFVYGGC[+57]R``."""

    open_char = "["
    close_char = "]"


@register_adapter(ModificationFormat.MAXQUANT)
class MaxquantAdapter(UnderscoreFlankMixin, BracketAdapter):
    """MaxQuant ``Modified sequence``: ``_(ac)AAAM(Oxidation (M))LEK_``."""

    open_char = "("
    close_char = ")"
