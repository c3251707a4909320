"""Tests for the document repository and its edit interface."""

import logging
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from inkform.documents.models import (
    BoundingBox,
    CorrectionDetail,
    Document,
    DocumentStatus,
    FormField,
    QualityReport,
    Row,
    format_file_size,
)
from inkform.documents.repository import DocumentRepository
from inkform.errors import DocumentNotFoundError, InvalidEditError, RowNotFoundError
from inkform.feedback.store import FeedbackStore
from inkform.validation.rules_engine import ValidationEngine

from conftest import clean_values


def _rows(document_id: str, count: int = 3) -> list[Row]:
    return [
        Row(id=f"{document_id}_row_{i}", values=clean_values()) for i in range(count)
    ]


class TestDocumentModel:
    """Tests for document helpers."""

    def test_format_file_size(self) -> None:
        assert format_file_size(0) == "0 Bytes"
        assert format_file_size(512) == "512.00 Bytes"
        assert format_file_size(1536) == "1.50 KB"
        assert format_file_size(3 * 1024 * 1024) == "3.00 MB"

    def test_read_bytes_from_path(self, tmp_path: Path) -> None:
        path = tmp_path / "scan.png"
        path.write_bytes(b"abc")
        document = Document(id="d", name="scan.png", size_bytes=3, content_type="image/png",
                            source_path=path)
        assert document.read_bytes() == b"abc"


class TestLifecycle:
    """Tests for adding, listing and removing documents."""

    def setup_method(self) -> None:
        self.repo = DocumentRepository(ValidationEngine(), FeedbackStore())

    def test_add_document(self, png_bytes: bytes) -> None:
        document = self.repo.add_document("form.png", content=png_bytes)
        assert document.id.startswith("file_")
        assert document.status is DocumentStatus.PENDING
        assert document.content_type == "image/png"
        assert document.size_bytes == len(png_bytes)
        assert self.repo.get(document.id) is document

    def test_add_path(self, tmp_path: Path, png_bytes: bytes) -> None:
        path = tmp_path / "scan.jpg"
        path.write_bytes(png_bytes)
        document = self.repo.add_path(path)
        assert document.name == "scan.jpg"
        assert document.content_type == "image/jpeg"
        assert document.read_bytes() == png_bytes

    def test_add_requires_content(self) -> None:
        with pytest.raises(InvalidEditError):
            self.repo.add_document("empty.png")

    def test_unknown_document(self) -> None:
        with pytest.raises(DocumentNotFoundError, match="missing"):
            self.repo.get("missing")

    def test_pending_and_remove(self) -> None:
        first = self.repo.add_document("a.png", content=b"a")
        second = self.repo.add_document("b.png", content=b"b")
        second.status = DocumentStatus.PROCESSED

        assert self.repo.pending() == [first]
        self.repo.remove(first.id)
        assert self.repo.list_documents() == [second]

    def test_clear_drops_validation_cache(self) -> None:
        document = self.repo.add_document("a.png", content=b"a")
        self.repo.attach_extraction(document.id, _rows(document.id))
        assert self.repo.validator._cache

        self.repo.clear()
        assert self.repo.list_documents() == []
        assert self.repo.validator._cache == {}


class TestOrchestratorHooks:
    """Tests for the status transitions driven by the orchestrator."""

    def setup_method(self) -> None:
        self.repo = DocumentRepository(ValidationEngine(), FeedbackStore())
        self.document = self.repo.add_document("a.png", content=b"a")

    def test_attach_extraction(self) -> None:
        rows = _rows(self.document.id, 1)
        rows[0].values[FormField.DATE] = "N/A"
        report = QualityReport(score=85, sharpness=85, contrast=85, applied_ops=("Original",))

        self.repo.mark_processing(self.document.id)
        assert self.document.status is DocumentStatus.PROCESSING

        issues = self.repo.attach_extraction(
            self.document.id, rows, image_dimensions=(200, 100), quality_report=report
        )
        assert self.document.status is DocumentStatus.PROCESSED
        assert self.document.rows is rows
        assert self.document.image_dimensions == (200, 100)
        assert [i.message for i in issues] == ["Placeholder detected"]

    def test_mark_failed(self) -> None:
        self.repo.mark_failed(self.document.id, "Extraction failed: boom", "unknown")
        assert self.document.status is DocumentStatus.ERROR
        assert self.document.error == "Extraction failed: boom"
        assert self.document.error_category == "unknown"

    def test_hooks_skip_removed_document(self, caplog: pytest.LogCaptureFixture) -> None:
        self.repo.remove(self.document.id)
        with caplog.at_level(logging.WARNING):
            assert self.repo.mark_processing(self.document.id) is False
            assert self.repo.attach_extraction(self.document.id, _rows(self.document.id)) is None
            self.repo.mark_failed(self.document.id, "boom", "unknown")

        assert self.document.status is DocumentStatus.PENDING
        assert self.repo.validator._cache == {}
        assert "was removed" in caplog.text

    def test_mark_processing_resets_error(self) -> None:
        self.repo.mark_failed(self.document.id, "boom", "transient")
        self.repo.mark_processing(self.document.id)
        assert self.document.error is None


class TestEditInterface:
    """Tests for reviewer edits."""

    def setup_method(self) -> None:
        self.feedback = FeedbackStore()
        self.validator = MagicMock(wraps=ValidationEngine())
        self.repo = DocumentRepository(self.validator, self.feedback)
        self.document = self.repo.add_document("a.png", content=b"a")
        self.doc_id = self.document.id
        self.repo.attach_extraction(self.doc_id, _rows(self.doc_id))
        self.validator.reset_mock()

    def test_update_field(self) -> None:
        row = self.document.rows[0]
        row.confidence[FormField.DATE] = 0.4
        row.corrections[FormField.DATE] = CorrectionDetail("١٣/٠٢/٢٠٢٤", "date normalization")
        row.bounding_boxes[FormField.DATE] = BoundingBox((0.1, 0.1, 0.2, 0.2))

        issues = self.repo.update_field(self.doc_id, 0, "Date", "2024-02-14")

        assert row.values[FormField.DATE] == "2024-02-14"
        assert FormField.DATE not in row.confidence
        assert FormField.DATE not in row.corrections
        assert FormField.DATE in row.bounding_boxes
        assert issues == []
        self.validator.revalidate.assert_called_once()

    def test_update_field_records_feedback(self) -> None:
        self.repo.update_field(self.doc_id, 1, FormField.RECIPIENT_NAME, "محمد الحربي")
        assert self.feedback.suggest("Recipient Name", "محمد") == "محمد الحربي"

    def test_update_field_surfaces_new_issue(self) -> None:
        issues = self.repo.update_field(self.doc_id, 2, FormField.EMPLOYEE_ID, "12-34")
        assert len(issues) == 1
        assert issues[0].row_index == 2
        assert issues[0].message == "Format: 1-3 letters + numbers"
        assert self.document.issues == issues

    def test_update_missing_row(self) -> None:
        with pytest.raises(RowNotFoundError):
            self.repo.update_field(self.doc_id, 9, FormField.DATE, "2024-01-01")

    def test_update_unknown_field(self) -> None:
        with pytest.raises(InvalidEditError, match="Unknown field"):
            self.repo.update_field(self.doc_id, 0, "Colour", "red")

    def test_toggle_verified_does_not_revalidate(self) -> None:
        issues = self.repo.toggle_verified(self.doc_id, [0, 2, 7])
        assert [r.verified for r in self.document.rows] == [True, False, True]
        assert issues is self.document.issues
        self.validator.revalidate.assert_not_called()
        self.validator.validate.assert_not_called()

    def test_toggle_verified_off(self) -> None:
        self.repo.toggle_verified(self.doc_id, [0])
        self.repo.toggle_verified(self.doc_id, [0], verified=False)
        assert self.document.rows[0].verified is False

    def test_batch_replace(self) -> None:
        for row in self.document.rows:
            row.values[FormField.INK_NUMBER] = "CF28OA"
        issues = self.repo.batch_replace(self.doc_id, [0, 1, 5], "Ink Number", "O", "0")

        values = [r.values[FormField.INK_NUMBER] for r in self.document.rows]
        assert values == ["CF280A", "CF280A", "CF28OA"]
        assert issues == []

    def test_batch_replace_regex_groups(self) -> None:
        issues = self.repo.batch_replace(
            self.doc_id, [0], FormField.DATE, r"(\d{4})-(\d{2})-(\d{2})", r"\3/\2/\1"
        )
        assert self.document.rows[0].values[FormField.DATE] == "13/02/2024"
        assert issues == []

    def test_batch_replace_invalid_pattern(self) -> None:
        with pytest.raises(InvalidEditError, match="Invalid find pattern"):
            self.repo.batch_replace(self.doc_id, [0], FormField.DATE, "(", "")

    def test_batch_replace_does_not_learn(self) -> None:
        self.repo.batch_replace(self.doc_id, [0], FormField.DATE, "2024", "2025")
        assert len(self.feedback) == 0

    def test_delete_rows_renumbers_issues(self) -> None:
        self.repo.update_field(self.doc_id, 2, FormField.DATE, "soon")
        issues = self.repo.delete_rows(self.doc_id, [0, 0, 9])

        assert len(self.document.rows) == 2
        assert [(i.row_index, i.field) for i in issues] == [(1, FormField.DATE)]

    def test_set_notes(self) -> None:
        self.repo.set_notes(self.doc_id, 1, "smudged")
        assert self.document.rows[1].notes == "smudged"
        with pytest.raises(RowNotFoundError):
            self.repo.set_notes(self.doc_id, 5, "x")
