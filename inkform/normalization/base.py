"""Shared result type and audit vocabulary for field normalizers."""

from dataclasses import dataclass
from enum import StrEnum

from inkform.documents.models import CorrectionDetail


class CorrectionOutcome(StrEnum):
    """What a normalizer did with its input."""

    CORRECTED = "corrected"
    UNCHANGED = "unchanged"
    REJECTED = "rejected"


class CorrectionReason(StrEnum):
    """Fixed vocabulary of audit reasons attached to corrections."""

    DATE = "date normalization"
    EMPLOYEE_ID = "employee ID OCR fix"
    INK_TYPE = "ink type standardization"
    NUMERIC = "numeric OCR fix"
    DICTIONARY = "dictionary match"
    PUNCTUATION = "punctuation normalization"
    FEEDBACK = "user feedback"


@dataclass(frozen=True)
class NormalizationResult:
    """Output of a normalizer: the value to keep plus how it was reached.

    ``REJECTED`` means the input could not be brought into canonical form
    and ``value`` is the trimmed original.
    """

    value: str
    outcome: CorrectionOutcome
    original: str
    reason: CorrectionReason | None = None

    @property
    def correction(self) -> CorrectionDetail | None:
        if self.outcome is not CorrectionOutcome.CORRECTED or self.reason is None:
            return None
        return CorrectionDetail(original=self.original, reason=str(self.reason))

    @classmethod
    def of(
        cls, original: str, value: str, reason: CorrectionReason
    ) -> "NormalizationResult":
        """Tag ``value`` as corrected only when it differs from ``original``."""
        if value != original:
            return cls(value, CorrectionOutcome.CORRECTED, original, reason)
        return cls(value, CorrectionOutcome.UNCHANGED, original)

    @classmethod
    def unchanged(cls, value: str) -> "NormalizationResult":
        return cls(value, CorrectionOutcome.UNCHANGED, value)

    @classmethod
    def rejected(cls, value: str) -> "NormalizationResult":
        return cls(value, CorrectionOutcome.REJECTED, value)


ARABIC_INDIC_DIGITS = str.maketrans(
    "٠١٢٣٤٥٦٧٨٩۰۱۲۳۴۵۶۷۸۹", "01234567890123456789"
)


def to_ascii_digits(value: str) -> str:
    """Convert Arabic-Indic and Eastern Arabic-Indic digits to ASCII."""
    return value.translate(ARABIC_INDIC_DIGITS)
