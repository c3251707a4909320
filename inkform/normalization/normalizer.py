"""Field dispatch table and row assembly.

Routes each canonical field to its normalizer, then lets the feedback
store override the result with a correction a reviewer made earlier.
"""

from collections.abc import Callable

from inkform.documents.models import (
    FORM_FIELDS,
    CorrectionDetail,
    FormField,
    Row,
    contains_arabic,
)
from inkform.extraction.base import RawForm
from inkform.feedback.store import FeedbackStore
from inkform.utils.logger import get_logger

from .arabic import ArabicTextNormalizer
from .base import CorrectionOutcome, CorrectionReason, NormalizationResult
from .date import normalize_date
from .dictionaries import Dictionaries
from .employee_id import normalize_employee_id
from .fuzzy import FuzzyMatcher
from .ink_type import normalize_ink_type
from .numeric import normalize_number

logger = get_logger(__name__)

Normalizer = Callable[[str], NormalizationResult]


class FieldNormalizer:
    """Cleans raw extracted forms into rows.

    Args:
        dictionaries: Department, name and ink-type assets.
        feedback: Store consulted for learned corrections. Optional so the
            normalizers can be used on their own.
        matcher: Fuzzy matcher; a fresh one is created when omitted.
        confidence_boost: Added to a field's confidence when it is corrected.
        confidence_cap: Upper bound for the boosted confidence.
    """

    def __init__(
        self,
        dictionaries: Dictionaries,
        feedback: FeedbackStore | None = None,
        matcher: FuzzyMatcher | None = None,
        confidence_boost: float = 0.15,
        confidence_cap: float = 0.99,
    ) -> None:
        self.dictionaries = dictionaries
        self.feedback = feedback
        self.matcher = matcher or FuzzyMatcher()
        self.confidence_boost = confidence_boost
        self.confidence_cap = confidence_cap
        self.arabic = ArabicTextNormalizer(
            self.matcher, dictionaries.departments, dictionaries.names
        )
        self._dispatch: dict[FormField, Normalizer] = {
            FormField.DATE: normalize_date,
            FormField.EMPLOYEE_ID: normalize_employee_id,
            FormField.INK_TYPE: self._normalize_ink_type,
            FormField.INK_NUMBER: normalize_number,
            FormField.DEPARTMENT: self.arabic.normalize_department,
            FormField.RECIPIENT_NAME: self.arabic.normalize_name,
            FormField.DELIVERER_NAME: self.arabic.normalize_name,
            FormField.PRINTER_NAME: self._normalize_printer_name,
        }

    def _normalize_ink_type(self, value: str) -> NormalizationResult:
        return normalize_ink_type(value, self.dictionaries.ink_types)

    def _normalize_printer_name(self, value: str) -> NormalizationResult:
        # Latin printer model names have no dictionary to match against.
        if contains_arabic(value):
            return self.arabic.normalize_name(value)
        return NormalizationResult.unchanged(value.strip())

    def normalize_field(self, form_field: FormField, value: str) -> NormalizationResult:
        """Normalize one field value and apply any learned correction."""
        raw = (value or "").strip()
        result = self._dispatch[form_field](raw)

        if self.feedback is not None:
            suggestion = self.feedback.suggest(form_field, result.value)
            if suggestion is not None and suggestion != result.value:
                logger.debug(
                    "Applied feedback for %s: %r -> %r", form_field, result.value, suggestion
                )
                return NormalizationResult(
                    suggestion,
                    CorrectionOutcome.CORRECTED,
                    result.value,
                    CorrectionReason.FEEDBACK,
                )
        return result

    def normalize_form(self, form: RawForm, row_id: str) -> Row:
        """Build a row from a raw form, recording every correction made."""
        row = Row(
            id=row_id,
            values={},
            bounding_boxes=dict(form.bounding_boxes),
            confidence=dict(form.confidence),
        )
        for form_field in FORM_FIELDS:
            result = self.normalize_field(form_field, form.values.get(form_field, ""))
            row.values[form_field] = result.value

            correction: CorrectionDetail | None = result.correction
            if correction is not None:
                row.corrections[form_field] = correction
                boosted = form.confidence.get(form_field, 0.0) + self.confidence_boost
                row.confidence[form_field] = min(self.confidence_cap, boosted)
        return row

    def normalize_forms(self, forms: list[RawForm], document_id: str) -> list[Row]:
        rows = [
            self.normalize_form(form, f"{document_id}_row_{index}")
            for index, form in enumerate(forms)
        ]
        corrected = sum(len(r.corrections) for r in rows)
        logger.info(
            "Normalized %d rows for %s (%d field corrections)", len(rows), document_id, corrected
        )
        return rows
