"""Dictionary-backed correction of Arabic-script department and name fields."""

from collections.abc import Iterable

from .base import CorrectionOutcome, CorrectionReason, NormalizationResult
from .fuzzy import FuzzyMatcher


def normalize_punctuation(value: str) -> str:
    """Replace the Arabic comma with a Latin comma."""
    return value.replace("،", ",")


class ArabicTextNormalizer:
    """Snaps departments and name tokens onto known spellings.

    Args:
        matcher: Shared fuzzy matcher (owns the distance cache).
        departments: Closed list of department names.
        names: Known first names and family names.
    """

    def __init__(
        self,
        matcher: FuzzyMatcher,
        departments: Iterable[str],
        names: Iterable[str],
    ) -> None:
        self.matcher = matcher
        self.departments = tuple(departments)
        self.names = tuple(names)

    def _result(self, original: str, value: str, matched: bool) -> NormalizationResult:
        if value == original:
            return NormalizationResult.unchanged(original)
        reason = CorrectionReason.DICTIONARY if matched else CorrectionReason.PUNCTUATION
        return NormalizationResult(value, CorrectionOutcome.CORRECTED, original, reason)

    def normalize_department(self, value: str) -> NormalizationResult:
        """Replace the whole value with the nearest department, if any."""
        trimmed = value.strip()
        if not trimmed:
            return NormalizationResult.unchanged(value)

        cleaned = normalize_punctuation(trimmed)
        match = self.matcher.best_match(cleaned, self.departments)
        if match is not None:
            return self._result(trimmed, match, matched=match != cleaned)
        return self._result(trimmed, cleaned, matched=False)

    def normalize_name(self, value: str) -> NormalizationResult:
        """Match each whitespace-separated token independently.

        Tokens without a dictionary hit are kept as read; the result is
        rejoined with single spaces.
        """
        trimmed = value.strip()
        if not trimmed:
            return NormalizationResult.unchanged(value)

        cleaned = normalize_punctuation(trimmed)
        tokens = cleaned.split()
        corrected = [self.matcher.best_match(t, self.names) or t for t in tokens]
        matched = corrected != tokens
        return self._result(trimmed, " ".join(corrected), matched=matched)
