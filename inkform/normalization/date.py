"""Date normalization to ISO ``YYYY-MM-DD``.

Handles Arabic-Indic numerals, OCR letter/digit confusions, mixed
delimiters, two-digit years and swapped day/month.
"""

import re
from datetime import date

from .base import CorrectionReason, NormalizationResult, to_ascii_digits

_OCR_DIGIT_FIXES: list[tuple[str, str]] = [
    (r"[Oo]", "0"),
    (r"[lI|]", "1"),
    (r"[Ss]", "5"),
    (r"[Zz]", "2"),
]

_DELIMITERS_RE = re.compile(r"[/.\s]+")
_YEAR_FIRST_RE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
_DAY_FIRST_RE = re.compile(r"^(\d{1,2})-(\d{1,2})-(\d{2}|\d{4})$")
_NUMBER_RUN_RE = re.compile(r"\d+")


def _pivot_year(year: int) -> int:
    if year >= 100:
        return year
    return 2000 + year if year < 50 else 1900 + year


def _to_iso(year: int, month: int, day: int) -> str | None:
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def _match_patterns(cleaned: str) -> str | None:
    match = _YEAR_FIRST_RE.match(cleaned)
    if match:
        year, month, day = (int(g) for g in match.groups())
    else:
        match = _DAY_FIRST_RE.match(cleaned)
        if not match:
            return None
        day, month = int(match.group(1)), int(match.group(2))
        year = int(match.group(3))
        if len(match.group(3)) == 2:
            year = _pivot_year(year)

    if month > 12 and day <= 12:
        month, day = day, month
    return _to_iso(year, month, day)


def _match_number_runs(cleaned: str) -> str | None:
    numbers = _NUMBER_RUN_RE.findall(cleaned)
    if len(numbers) != 3:
        return None

    n1, n2, n3 = (int(n) for n in numbers)
    # (year, month, day) orderings: Y-M-D, D-M-Y, M-D-Y
    for year, month, day in ((n1, n2, n3), (n3, n2, n1), (n3, n1, n2)):
        iso = _to_iso(_pivot_year(year), month, day)
        if iso:
            return iso
    return None


def clean_date_text(value: str) -> str:
    """Apply numeral, OCR-confusion and delimiter clean-up."""
    cleaned = to_ascii_digits(value.strip())
    for pattern, digit in _OCR_DIGIT_FIXES:
        cleaned = re.sub(pattern, digit, cleaned)
    return _DELIMITERS_RE.sub("-", cleaned)


def normalize_date(value: str) -> NormalizationResult:
    """Normalize a date string read by OCR.

    Args:
        value: Raw date text, e.g. ``"١٣/٠٢/٢٠٢٤"`` or ``"O5.O1.24"``.

    Returns:
        The ISO date when one of the known layouts validates against the
        calendar, otherwise the input tagged as rejected.
    """
    if not value.strip():
        return NormalizationResult.unchanged(value)

    cleaned = clean_date_text(value)
    iso = _match_patterns(cleaned) or _match_number_runs(cleaned)
    if iso is None:
        return NormalizationResult.rejected(value)
    return NormalizationResult.of(value, iso, CorrectionReason.DATE)
