"""Employee ID normalization.

Canonical IDs are one to three letters followed by digits, e.g.
``AB12345`` or ``KR147378``.
"""

import re

from .base import CorrectionReason, NormalizationResult

EMPLOYEE_ID_RE = re.compile(r"^[A-Za-z]{1,3}\d+$")
_LETTER_PREFIX_RE = re.compile(r"^([A-Za-z]{1,3})(.+)$")
_ALL_DIGITS_RE = re.compile(r"^[0-9]+$")

# Digits that OCR produces in place of a leading letter.
_DIGIT_AS_LETTER = {"0": "O", "1": "I", "5": "S", "8": "B"}
_LETTER_AS_DIGIT = str.maketrans(
    {"O": "0", "o": "0", "I": "1", "l": "1", "|": "1", "S": "5", "s": "5", "B": "8", "Z": "2"}
)
_MAX_REINTERPRETED = 2


def _reinterpret_leading_digits(value: str) -> str:
    prefix = []
    i = 0
    while i < len(value) and len(prefix) < _MAX_REINTERPRETED:
        letter = _DIGIT_AS_LETTER.get(value[i])
        if letter is None:
            break
        prefix.append(letter)
        i += 1

    # At least one digit has to remain after the letter prefix.
    if prefix and i < len(value):
        return "".join(prefix) + value[i:]
    return value


def _fix_numeric_tail(value: str) -> str:
    match = _LETTER_PREFIX_RE.match(value)
    if not match:
        return value
    letters, tail = match.groups()
    return letters.upper() + tail.translate(_LETTER_AS_DIGIT)


def normalize_employee_id(value: str) -> NormalizationResult:
    """Normalize an employee ID read by OCR.

    An all-digit value gets up to two leading letter-confusable digits
    reinterpreted as letters; a letter-prefixed value gets its letters
    uppercased and OCR confusions in the numeric tail fixed. The change is
    kept only if the result has the canonical shape, otherwise the trimmed
    input is returned tagged as rejected.
    """
    trimmed = value.strip()
    if not trimmed:
        return NormalizationResult.unchanged(value)

    compact = re.sub(r"\s+", "", trimmed)
    if _ALL_DIGITS_RE.match(compact):
        candidate = _reinterpret_leading_digits(compact)
    else:
        candidate = _fix_numeric_tail(compact)

    if not EMPLOYEE_ID_RE.match(candidate):
        return NormalizationResult.rejected(trimmed)
    return NormalizationResult.of(trimmed, candidate, CorrectionReason.EMPLOYEE_ID)
