"""Pydantic request/response schemas for the FastAPI endpoints."""

from pydantic import BaseModel, Field

from inkform.documents.models import (
    Document,
    DocumentStatus,
    FormField,
    IssueCategory,
    Row,
    ValidationIssue,
)
from inkform.feedback.store import UserCorrection


class IssueResponse(BaseModel):
    """A validation issue attached to a row."""

    row_index: int
    field: FormField
    message: str
    category: IssueCategory

    @classmethod
    def from_issue(cls, issue: ValidationIssue) -> "IssueResponse":
        return cls(
            row_index=issue.row_index,
            field=issue.field,
            message=issue.message,
            category=issue.category,
        )


class BoundingBoxResponse(BaseModel):
    box: list[float]
    page: int


class CorrectionDetailResponse(BaseModel):
    original: str
    reason: str


class RowResponse(BaseModel):
    """One extracted row with its audit metadata."""

    id: str
    verified: bool
    notes: str = ""
    values: dict[str, str]
    confidence: dict[str, float] = Field(default_factory=dict)
    bounding_boxes: dict[str, BoundingBoxResponse] = Field(default_factory=dict)
    corrections: dict[str, CorrectionDetailResponse] = Field(default_factory=dict)

    @classmethod
    def from_row(cls, row: Row) -> "RowResponse":
        return cls(
            id=row.id,
            verified=row.verified,
            notes=row.notes,
            values={str(f): v for f, v in row.values.items()},
            confidence={str(f): c for f, c in row.confidence.items()},
            bounding_boxes={
                str(f): BoundingBoxResponse(box=list(b.quad), page=b.page)
                for f, b in row.bounding_boxes.items()
            },
            corrections={
                str(f): CorrectionDetailResponse(original=c.original, reason=c.reason)
                for f, c in row.corrections.items()
            },
        )


class QualityReportResponse(BaseModel):
    score: float
    sharpness: float
    contrast: float
    applied_ops: list[str]


class DocumentSummaryResponse(BaseModel):
    """Document listing entry without rows."""

    id: str
    name: str
    size: str
    status: DocumentStatus
    row_count: int
    issue_count: int
    error: str | None = None
    error_category: str | None = None

    @classmethod
    def from_document(cls, document: Document) -> "DocumentSummaryResponse":
        return cls(
            id=document.id,
            name=document.name,
            size=document.size,
            status=document.status,
            row_count=len(document.rows),
            issue_count=len(document.issues),
            error=document.error,
            error_category=document.error_category,
        )


class DocumentResponse(DocumentSummaryResponse):
    """Full document with rows and validation issues."""

    image_width: int | None = None
    image_height: int | None = None
    quality_report: QualityReportResponse | None = None
    rows: list[RowResponse] = Field(default_factory=list)
    issues: list[IssueResponse] = Field(default_factory=list)

    @classmethod
    def from_document(cls, document: Document) -> "DocumentResponse":
        summary = DocumentSummaryResponse.from_document(document)
        report = document.quality_report
        width, height = document.image_dimensions or (None, None)
        return cls(
            **summary.model_dump(),
            image_width=width,
            image_height=height,
            quality_report=(
                QualityReportResponse(
                    score=report.score,
                    sharpness=report.sharpness,
                    contrast=report.contrast,
                    applied_ops=list(report.applied_ops),
                )
                if report
                else None
            ),
            rows=[RowResponse.from_row(r) for r in document.rows],
            issues=[IssueResponse.from_issue(i) for i in document.issues],
        )


class UploadResponse(BaseModel):
    documents: list[DocumentSummaryResponse]


class BatchSummaryResponse(BaseModel):
    """Outcome of an extraction run over pending documents."""

    total: int
    successful: int
    failed: int
    window_sizes: list[int]
    failures: dict[str, str]


class FieldUpdateRequest(BaseModel):
    field: FormField
    value: str


class NotesUpdateRequest(BaseModel):
    notes: str


class VerifyRequest(BaseModel):
    row_indices: list[int]
    verified: bool = True


class BatchReplaceRequest(BaseModel):
    row_indices: list[int]
    field: FormField
    find: str = Field(min_length=1)
    replace: str = ""


class DeleteRowsRequest(BaseModel):
    row_indices: list[int]


class IssuesResponse(BaseModel):
    """Issue list returned by every edit operation."""

    document_id: str
    issues: list[IssueResponse]

    @classmethod
    def build(cls, document_id: str, issues: list[ValidationIssue]) -> "IssuesResponse":
        return cls(
            document_id=document_id,
            issues=[IssueResponse.from_issue(i) for i in issues],
        )


class CorrectionResponse(BaseModel):
    field: str
    original: str
    corrected: str
    timestamp: int

    @classmethod
    def from_correction(cls, entry: UserCorrection) -> "CorrectionResponse":
        return cls(
            field=entry.field,
            original=entry.original,
            corrected=entry.corrected,
            timestamp=entry.timestamp,
        )


class FieldStatsResponse(BaseModel):
    count: int
    examples: list[str]


class FeedbackStatsResponse(BaseModel):
    total: int
    fields: dict[str, FieldStatsResponse]


class HealthResponse(BaseModel):
    """Response schema for the health check endpoint."""

    status: str
    version: str
    documents: int
    corrections: int
