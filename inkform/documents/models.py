"""Domain types for uploaded documents and their extracted rows."""

import re
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path


class FormField(StrEnum):
    """The eight canonical fields of a delivery form.

    Values are the wire names used by the extraction payload and by the
    persisted feedback log.
    """

    PRINTER_NAME = "Printer Name"
    INK_TYPE = "Ink Type"
    INK_NUMBER = "Ink Number"
    DATE = "Date"
    DEPARTMENT = "Department"
    RECIPIENT_NAME = "Recipient Name"
    EMPLOYEE_ID = "Employee ID"
    DELIVERER_NAME = "Deliverer Name"


FORM_FIELDS: tuple[FormField, ...] = tuple(FormField)

ARABIC_SCRIPT_RE = re.compile(r"[\u0600-\u06FF]")


def contains_arabic(value: str) -> bool:
    """Return True if the value has at least one Arabic-script character."""
    return bool(ARABIC_SCRIPT_RE.search(value))


class DocumentStatus(StrEnum):
    """Lifecycle states of a document; only the orchestrator changes them."""

    PENDING = "pending"
    PROCESSING = "processing"
    PROCESSED = "processed"
    ERROR = "error"


class IssueCategory(StrEnum):
    """Kinds of residual problems flagged by validation."""

    MISSING = "missing"
    FORMAT = "format"
    LOW_CONFIDENCE = "confidence"


@dataclass(frozen=True)
class BoundingBox:
    """Normalized ``(x_min, y_min, x_max, y_max)`` box on a given page."""

    quad: tuple[float, float, float, float]
    page: int = 1


@dataclass(frozen=True)
class CorrectionDetail:
    """Audit record of an automatic change to a field value."""

    original: str
    reason: str


@dataclass(frozen=True)
class QualityReport:
    """Image quality summary produced by the image preparer."""

    score: float
    sharpness: float
    contrast: float
    applied_ops: tuple[str, ...] = ()


@dataclass(frozen=True)
class ValidationIssue:
    """A single flagged problem, referencing its row by position."""

    row_index: int
    field: FormField
    message: str
    category: IssueCategory


@dataclass
class Row:
    """One extracted form instance with its audit metadata."""

    id: str
    values: dict[FormField, str]
    verified: bool = False
    notes: str = ""
    bounding_boxes: dict[FormField, BoundingBox] = field(default_factory=dict)
    confidence: dict[FormField, float] = field(default_factory=dict)
    corrections: dict[FormField, CorrectionDetail] = field(default_factory=dict)

    def get(self, form_field: FormField) -> str:
        return self.values.get(form_field, "")


@dataclass
class Document:
    """An uploaded image and everything derived from it."""

    id: str
    name: str
    size_bytes: int
    content_type: str
    source_path: Path | None = None
    content: bytes | None = None
    status: DocumentStatus = DocumentStatus.PENDING
    processed_preview: bytes | None = None
    image_dimensions: tuple[int, int] | None = None
    quality_report: QualityReport | None = None
    rows: list[Row] = field(default_factory=list)
    issues: list[ValidationIssue] = field(default_factory=list)
    error: str | None = None
    error_category: str | None = None

    @property
    def size(self) -> str:
        return format_file_size(self.size_bytes)

    def read_bytes(self) -> bytes:
        """Return the raw source image, from memory or from disk."""
        if self.content is not None:
            return self.content
        if self.source_path is not None:
            return self.source_path.read_bytes()
        return b""


def format_file_size(num_bytes: int) -> str:
    """Render a byte count as e.g. ``"1.50 KB"``."""
    if not num_bytes:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    size = float(num_bytes)
    index = 0
    while size >= 1024 and index < len(units) - 1:
        size /= 1024
        index += 1
    return f"{size:.2f} {units[index]}"
