"""In-process document store and the reviewer edit interface.

The repository owns every uploaded :class:`Document`. The batch
orchestrator drives status transitions through the ``mark_*`` and
``attach_*`` hooks; reviewers change extracted rows through the edit
operations, each of which returns the refreshed issue list.
"""

import mimetypes
import re
import uuid
from collections.abc import Iterable
from pathlib import Path

from inkform.errors import DocumentNotFoundError, InvalidEditError, RowNotFoundError
from inkform.feedback.store import FeedbackStore
from inkform.utils.logger import get_logger
from inkform.validation.rules_engine import ValidationEngine

from .models import (
    Document,
    DocumentStatus,
    FormField,
    QualityReport,
    Row,
    ValidationIssue,
)

logger = get_logger(__name__)


def _coerce_field(form_field: FormField | str) -> FormField:
    try:
        return FormField(form_field)
    except ValueError as exc:
        raise InvalidEditError(f"Unknown field: {form_field}") from exc


class DocumentRepository:
    """Keeps documents by id and applies reviewer edits to their rows.

    Args:
        validator: Engine used to recompute issues after content edits.
        feedback: Store that learns from single-field edits.
    """

    def __init__(self, validator: ValidationEngine, feedback: FeedbackStore) -> None:
        self.validator = validator
        self.feedback = feedback
        self._documents: dict[str, Document] = {}

    # -- lifecycle -------------------------------------------------------

    def add_document(
        self,
        name: str,
        content: bytes | None = None,
        content_type: str | None = None,
        source_path: Path | None = None,
    ) -> Document:
        """Register an uploaded image as a pending document."""
        if content is None and source_path is None:
            raise InvalidEditError("A document needs either content or a source path")

        if content_type is None:
            content_type = mimetypes.guess_type(name)[0] or "application/octet-stream"
        size = len(content) if content is not None else source_path.stat().st_size

        document = Document(
            id=f"file_{uuid.uuid4().hex}",
            name=name,
            size_bytes=size,
            content_type=content_type,
            source_path=source_path,
            content=content,
        )
        self._documents[document.id] = document
        logger.info("Added document %s (%s, %s)", document.id, name, document.size)
        return document

    def add_path(self, path: Path) -> Document:
        return self.add_document(path.name, source_path=path)

    def get(self, document_id: str) -> Document:
        try:
            return self._documents[document_id]
        except KeyError:
            raise DocumentNotFoundError(document_id) from None

    def list_documents(self) -> list[Document]:
        return list(self._documents.values())

    def pending(self) -> list[Document]:
        return [d for d in self._documents.values() if d.status is DocumentStatus.PENDING]

    def remove(self, document_id: str) -> None:
        document = self.get(document_id)
        self.validator.invalidate(document.rows)
        del self._documents[document_id]
        logger.info("Removed document %s", document_id)

    def clear(self) -> None:
        self._documents.clear()
        self.validator.clear_cache()
        logger.info("Cleared all documents")

    # -- orchestrator hooks ----------------------------------------------
    # A batch may outlive its documents: a reviewer can remove one while
    # its extraction is in flight. Hooks on a removed id are skipped.

    def _live(self, document_id: str, hook: str) -> Document | None:
        document = self._documents.get(document_id)
        if document is None:
            logger.warning("Document %s was removed, skipping %s", document_id, hook)
        return document

    def mark_processing(self, document_id: str) -> bool:
        """Mark a document as in flight; returns ``False`` if it was removed."""
        document = self._live(document_id, "mark_processing")
        if document is None:
            return False
        document.status = DocumentStatus.PROCESSING
        document.error = None
        document.error_category = None
        return True

    def attach_extraction(
        self,
        document_id: str,
        rows: list[Row],
        image_dimensions: tuple[int, int] | None = None,
        quality_report: QualityReport | None = None,
        processed_preview: bytes | None = None,
    ) -> list[ValidationIssue] | None:
        """Store normalized rows and their issues; marks the document processed.

        Returns ``None`` without validating when the document was removed.
        """
        document = self._live(document_id, "attach_extraction")
        if document is None:
            return None
        document.rows = rows
        document.issues = self.validator.revalidate(rows)
        document.image_dimensions = image_dimensions
        document.quality_report = quality_report
        if processed_preview is not None:
            document.processed_preview = processed_preview
        document.status = DocumentStatus.PROCESSED
        return document.issues

    def mark_failed(self, document_id: str, message: str, category: str) -> None:
        document = self._live(document_id, "mark_failed")
        if document is None:
            return
        document.status = DocumentStatus.ERROR
        document.error = message
        document.error_category = category

    # -- edit interface --------------------------------------------------

    def update_field(
        self,
        document_id: str,
        row_index: int,
        form_field: FormField | str,
        value: str,
    ) -> list[ValidationIssue]:
        """Overwrite one field with a reviewer-supplied value.

        The change is recorded as feedback, and the field's confidence and
        correction detail are dropped since the value is now user-authored.
        """
        document = self.get(document_id)
        form_field = _coerce_field(form_field)
        if not 0 <= row_index < len(document.rows):
            raise RowNotFoundError(document_id, row_index)

        row = document.rows[row_index]
        self.feedback.record(form_field, row.get(form_field), value)

        row.values[form_field] = value
        row.confidence.pop(form_field, None)
        row.corrections.pop(form_field, None)

        document.issues = self.validator.revalidate(document.rows)
        return document.issues

    def toggle_verified(
        self, document_id: str, row_indices: Iterable[int], verified: bool = True
    ) -> list[ValidationIssue]:
        """Set the verified flag; issues are returned as they were."""
        document = self.get(document_id)
        for index in row_indices:
            if 0 <= index < len(document.rows):
                document.rows[index].verified = verified
        return document.issues

    def batch_replace(
        self,
        document_id: str,
        row_indices: Iterable[int],
        form_field: FormField | str,
        find: str,
        replace: str,
    ) -> list[ValidationIssue]:
        """Regex find/replace on one field across the selected rows."""
        document = self.get(document_id)
        form_field = _coerce_field(form_field)
        try:
            pattern = re.compile(find)
        except re.error as exc:
            raise InvalidEditError(f"Invalid find pattern {find!r}: {exc}") from exc

        updated = 0
        for index in row_indices:
            if 0 <= index < len(document.rows):
                row = document.rows[index]
                try:
                    row.values[form_field] = pattern.sub(replace, row.get(form_field))
                except re.error as exc:
                    raise InvalidEditError(f"Invalid replacement {replace!r}: {exc}") from exc
                updated += 1

        logger.info("Batch replace on %s: %d rows updated", document_id, updated)
        document.issues = self.validator.revalidate(document.rows)
        return document.issues

    def delete_rows(
        self, document_id: str, row_indices: Iterable[int]
    ) -> list[ValidationIssue]:
        """Delete rows; later rows shift down and issues are recomputed."""
        document = self.get(document_id)
        self.validator.invalidate(document.rows)
        for index in sorted(set(row_indices), reverse=True):
            if 0 <= index < len(document.rows):
                del document.rows[index]
        document.issues = self.validator.revalidate(document.rows)
        return document.issues

    def set_notes(self, document_id: str, row_index: int, notes: str) -> None:
        document = self.get(document_id)
        if not 0 <= row_index < len(document.rows):
            raise RowNotFoundError(document_id, row_index)
        document.rows[row_index].notes = notes
