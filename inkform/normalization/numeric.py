"""OCR clean-up for numeric fields such as the ink cartridge number."""

import re

from .base import CorrectionReason, NormalizationResult, to_ascii_digits

_DIGIT_LIKE_RUN_RE = re.compile(r"[0-9OoDdQqIiLl|ZzSsGgBb]+")
_DIGIT_SPACE_RE = re.compile(r"(\d)\s+(?=\d)")
_LETTER_AS_DIGIT = str.maketrans(
    {
        "O": "0", "o": "0", "D": "0", "d": "0", "Q": "0", "q": "0",
        "I": "1", "i": "1", "L": "1", "l": "1", "|": "1",
        "Z": "2", "z": "2",
        "S": "5", "s": "5",
        "G": "6", "g": "6",
        "B": "8", "b": "8",
    }
)


def _fix_run(match: re.Match) -> str:
    run = match.group(0)
    # A run without a real digit is ordinary text, e.g. the "Bold" in "Bold 12".
    if not any(ch.isdigit() for ch in run):
        return run
    return run.translate(_LETTER_AS_DIGIT)


def fix_digit_runs(value: str) -> str:
    """Convert numerals and fix OCR confusions inside digit runs only."""
    text = to_ascii_digits(value.strip())
    text = _DIGIT_LIKE_RUN_RE.sub(_fix_run, text)
    return _DIGIT_SPACE_RE.sub(r"\1", text)


def normalize_number(value: str) -> NormalizationResult:
    """Normalize a numeric field, leaving adjacent alphabetic text intact.

    >>> normalize_number("١٢ 3O").value
    '1230'
    """
    trimmed = value.strip()
    if not trimmed:
        return NormalizationResult.unchanged(value)
    return NormalizationResult.of(trimmed, fix_digit_runs(trimmed), CorrectionReason.NUMERIC)
