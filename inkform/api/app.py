"""FastAPI application exposing upload, extraction and review endpoints.

The review UI talks to these endpoints: it uploads scans, triggers the
batch extraction, and sends field edits, verification toggles, batch
find/replace and row deletions, each answered with the refreshed issue
list of the document.
"""

from collections.abc import Callable
from typing import Annotated

from fastapi import FastAPI, File, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from inkform import __version__
from inkform.errors import DocumentNotFoundError, InkformError, RowNotFoundError
from inkform.extraction.base import ExtractionClient, ExtractionError
from inkform.services import Services, build_client, build_orchestrator, build_services
from inkform.utils.config import load_config
from inkform.utils.logger import get_logger

from .schemas import (
    BatchReplaceRequest,
    BatchSummaryResponse,
    CorrectionResponse,
    DeleteRowsRequest,
    DocumentResponse,
    DocumentSummaryResponse,
    FeedbackStatsResponse,
    FieldStatsResponse,
    FieldUpdateRequest,
    HealthResponse,
    IssuesResponse,
    NotesUpdateRequest,
    UploadResponse,
    VerifyRequest,
)

logger = get_logger(__name__)

ClientFactory = Callable[[Services], ExtractionClient]


def _default_client_factory(services: Services) -> ExtractionClient:
    return build_client(services.config)


def create_app(
    services: Services | None = None,
    client_factory: ClientFactory | None = None,
) -> FastAPI:
    """Build the API around one set of shared services.

    Args:
        services: Shared collaborators; built from the default config file
            when omitted.
        client_factory: Creates the extraction backend on first use.
    """
    if services is None:
        services = build_services(load_config())
    client_factory = client_factory or _default_client_factory

    app = FastAPI(
        title="Inkform Delivery Form API",
        description="Extract, clean and review ink delivery forms",
        version=__version__,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.services = services
    app.state.client = None

    def get_client() -> ExtractionClient:
        if app.state.client is None:
            app.state.client = client_factory(services)
        return app.state.client

    repository = services.repository
    feedback = services.feedback

    @app.exception_handler(InkformError)
    async def _domain_error(request: Request, exc: InkformError) -> JSONResponse:
        not_found = isinstance(exc, (DocumentNotFoundError, RowNotFoundError))
        return JSONResponse(status_code=404 if not_found else 400, content={"detail": str(exc)})

    @app.get("/health", response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        """Return system health status."""
        return HealthResponse(
            status="healthy",
            version=__version__,
            documents=len(repository.list_documents()),
            corrections=len(feedback),
        )

    @app.post("/documents", response_model=UploadResponse)
    async def upload_documents(
        files: Annotated[list[UploadFile], File(...)],
    ) -> UploadResponse:
        """Register uploaded scans as pending documents."""
        added = []
        for upload in files:
            content = await upload.read()
            document = repository.add_document(
                upload.filename or "document",
                content=content,
                content_type=upload.content_type,
            )
            added.append(DocumentSummaryResponse.from_document(document))
        return UploadResponse(documents=added)

    @app.get("/documents", response_model=list[DocumentSummaryResponse])
    async def list_documents() -> list[DocumentSummaryResponse]:
        return [DocumentSummaryResponse.from_document(d) for d in repository.list_documents()]

    @app.get("/documents/{document_id}", response_model=DocumentResponse)
    async def get_document(document_id: str) -> DocumentResponse:
        return DocumentResponse.from_document(repository.get(document_id))

    @app.delete("/documents/{document_id}", status_code=204)
    async def remove_document(document_id: str) -> None:
        repository.remove(document_id)

    @app.delete("/documents", status_code=204)
    async def clear_documents() -> None:
        repository.clear()

    @app.post("/documents/extract", response_model=BatchSummaryResponse)
    async def extract_pending() -> BatchSummaryResponse:
        """Run the batch extraction over every pending document."""
        try:
            client = get_client()
        except ExtractionError as exc:
            logger.error("Extraction backend unavailable: %s", exc)
            raise HTTPException(status_code=503, detail=str(exc)) from exc

        summary = await build_orchestrator(services, client).process_pending()
        return BatchSummaryResponse(
            total=summary.total,
            successful=summary.successful,
            failed=summary.failed,
            window_sizes=summary.window_sizes,
            failures=summary.failures,
        )

    @app.patch("/documents/{document_id}/rows/{row_index}", response_model=IssuesResponse)
    async def update_field(
        document_id: str, row_index: int, body: FieldUpdateRequest
    ) -> IssuesResponse:
        issues = repository.update_field(document_id, row_index, body.field, body.value)
        return IssuesResponse.build(document_id, issues)

    @app.put("/documents/{document_id}/rows/{row_index}/notes", status_code=204)
    async def update_notes(document_id: str, row_index: int, body: NotesUpdateRequest) -> None:
        repository.set_notes(document_id, row_index, body.notes)

    @app.post("/documents/{document_id}/rows/verify", response_model=IssuesResponse)
    async def verify_rows(document_id: str, body: VerifyRequest) -> IssuesResponse:
        issues = repository.toggle_verified(document_id, body.row_indices, body.verified)
        return IssuesResponse.build(document_id, issues)

    @app.post("/documents/{document_id}/rows/replace", response_model=IssuesResponse)
    async def batch_replace(document_id: str, body: BatchReplaceRequest) -> IssuesResponse:
        issues = repository.batch_replace(
            document_id, body.row_indices, body.field, body.find, body.replace
        )
        return IssuesResponse.build(document_id, issues)

    @app.post("/documents/{document_id}/rows/delete", response_model=IssuesResponse)
    async def delete_rows(document_id: str, body: DeleteRowsRequest) -> IssuesResponse:
        issues = repository.delete_rows(document_id, body.row_indices)
        return IssuesResponse.build(document_id, issues)

    @app.get("/feedback", response_model=list[CorrectionResponse])
    async def list_corrections() -> list[CorrectionResponse]:
        return [CorrectionResponse.from_correction(c) for c in feedback.all()]

    @app.get("/feedback/stats", response_model=FeedbackStatsResponse)
    async def correction_stats() -> FeedbackStatsResponse:
        stats = feedback.stats()
        return FeedbackStatsResponse(
            total=len(feedback),
            fields={
                name: FieldStatsResponse(count=s["count"], examples=s["examples"])
                for name, s in stats.items()
            },
        )

    @app.delete("/feedback", status_code=204)
    async def clear_corrections() -> None:
        feedback.clear()

    return app
