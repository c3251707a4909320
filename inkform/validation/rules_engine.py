"""Rule-based validation of normalized rows.

Flags what normalization could not fix: low extractor confidence, empty
fields, placeholder text left by the extractor, and field-specific
format problems. Issue lists are memoized per row-identity sequence.
"""

import re
from collections.abc import Callable, Sequence

from inkform.documents.models import (
    FORM_FIELDS,
    FormField,
    IssueCategory,
    Row,
    ValidationIssue,
    contains_arabic,
)
from inkform.utils.config import ValidationConfig
from inkform.utils.logger import get_logger

logger = get_logger(__name__)

DATE_RE = re.compile(r"^\d{1,4}[-/.\s]\d{1,2}[-/.\s]\d{1,4}$")
EMPLOYEE_ID_RE = re.compile(r"^[A-Za-z]{1,3}\d+$")
INK_NUMBER_RE = re.compile(r"^[A-Za-z0-9-]+$")
_DIGIT_RE = re.compile(r"\d")
_LOWER_LETTER_RE = re.compile(r"[a-z]")

# (category, message) or None when the value passes.
Finding = tuple[IssueCategory, str] | None
FieldRule = Callable[[str], Finding]


def _check_date(value: str) -> Finding:
    if DATE_RE.match(value):
        return None
    return IssueCategory.FORMAT, "Invalid date format"


def _check_employee_id(value: str) -> Finding:
    if EMPLOYEE_ID_RE.match(value):
        return None
    return IssueCategory.FORMAT, "Format: 1-3 letters + numbers"


def _check_printer_name(value: str) -> Finding:
    if len(value) < 5:
        return IssueCategory.LOW_CONFIDENCE, "Name too short"
    if (
        not contains_arabic(value)
        and value == value.lower()
        and _LOWER_LETTER_RE.search(value)
    ):
        return IssueCategory.LOW_CONFIDENCE, "All lowercase"
    return None


def _check_person_name(value: str) -> Finding:
    if _DIGIT_RE.search(value):
        return IssueCategory.FORMAT, "Number in name"
    return None


def _check_ink_number(value: str) -> Finding:
    if value and not INK_NUMBER_RE.match(value):
        return IssueCategory.FORMAT, "Invalid characters"
    return None


class ValidationEngine:
    """Evaluates the ordered rule chain for every row and field.

    For each field the first matching rule wins: low confidence, then an
    empty value, then placeholder text, then the field's structural check.

    Args:
        config: Threshold, placeholder tokens and cache size.
    """

    def __init__(self, config: ValidationConfig | None = None) -> None:
        self.config = config or ValidationConfig()
        self.placeholders = tuple(t.lower() for t in self.config.placeholder_tokens)
        self._field_rules: dict[FormField, FieldRule] = {
            FormField.DATE: _check_date,
            FormField.EMPLOYEE_ID: _check_employee_id,
            FormField.PRINTER_NAME: _check_printer_name,
            FormField.RECIPIENT_NAME: _check_person_name,
            FormField.DELIVERER_NAME: _check_person_name,
            FormField.INK_NUMBER: _check_ink_number,
        }
        self._cache: dict[tuple[str, ...], list[ValidationIssue]] = {}

    def validate_field(
        self, row: Row, form_field: FormField, row_index: int
    ) -> ValidationIssue | None:
        """Return the first issue found for one field, if any."""
        value = str(row.get(form_field) or "").strip()

        confidence = row.confidence.get(form_field)
        if confidence is not None and confidence < self.config.confidence_threshold:
            return ValidationIssue(
                row_index,
                form_field,
                f"Low confidence ({round(confidence * 100)}%)",
                IssueCategory.LOW_CONFIDENCE,
            )

        if not value:
            return ValidationIssue(row_index, form_field, "Empty field", IssueCategory.MISSING)

        lowered = value.lower()
        if any(token in lowered for token in self.placeholders):
            return ValidationIssue(
                row_index, form_field, "Placeholder detected", IssueCategory.LOW_CONFIDENCE
            )

        rule = self._field_rules.get(form_field)
        finding = rule(value) if rule else None
        if finding is None:
            return None
        category, message = finding
        return ValidationIssue(row_index, form_field, message, category)

    def validate(self, rows: Sequence[Row]) -> list[ValidationIssue]:
        """Validate every row, reusing the memoized list when possible.

        The memo is keyed by the sequence of row ids, so callers that change
        field contents without changing row identity must call
        :meth:`invalidate` first.
        """
        key = self._key(rows)
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("Validation cache hit for %d rows", len(rows))
            return list(cached)

        issues: list[ValidationIssue] = []
        for index, row in enumerate(rows):
            for form_field in FORM_FIELDS:
                issue = self.validate_field(row, form_field, index)
                if issue is not None:
                    issues.append(issue)

        if len(self._cache) >= self.config.cache_size:
            self._cache.clear()
        self._cache[key] = issues
        logger.debug("Validated %d rows: %d issues", len(rows), len(issues))
        return list(issues)

    def revalidate(self, rows: Sequence[Row]) -> list[ValidationIssue]:
        """Drop the memoized entry for ``rows`` and validate again."""
        self.invalidate(rows)
        return self.validate(rows)

    def invalidate(self, rows: Sequence[Row]) -> None:
        self._cache.pop(self._key(rows), None)

    def clear_cache(self) -> None:
        self._cache.clear()

    @staticmethod
    def _key(rows: Sequence[Row]) -> tuple[str, ...]:
        return tuple(row.id for row in rows)
