"""Ink type standardization onto Original / Compatible / Refilled."""

import re
from typing import Mapping

from .base import CorrectionReason, NormalizationResult

_DIGIT_AS_LETTER = str.maketrans({"0": "O", "1": "I", "5": "S", "8": "B", "|": "I"})


def _canonical_key(value: str) -> str:
    collapsed = re.sub(r"\s+", " ", value.strip().upper())
    return collapsed.translate(_DIGIT_AS_LETTER)


def normalize_ink_type(value: str, ink_types: Mapping[str, str]) -> NormalizationResult:
    """Map an OCR reading of the ink type onto its canonical name.

    Lookup is exact first, then containment in either direction in
    dictionary order. Unknown values are returned capitalized.

    Args:
        value: Raw ink type text.
        ink_types: Uppercase OCR variant to canonical name.
    """
    trimmed = value.strip()
    if not trimmed:
        return NormalizationResult.unchanged(value)

    key = _canonical_key(trimmed)
    match = ink_types.get(key)
    if match is None:
        match = next(
            (canonical for variant, canonical in ink_types.items()
             if variant in key or key in variant),
            None,
        )
    if match is None:
        match = trimmed.capitalize()
    return NormalizationResult.of(trimmed, match, CorrectionReason.INK_TYPE)
