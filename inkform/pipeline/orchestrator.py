"""Batch orchestration of pending documents through extraction.

Documents are processed in fixed-size windows: every member of a window
is extracted concurrently, and the next window starts only once all
members have either succeeded or failed. A failure is recorded on its
own document and never affects siblings or later windows. Runs sharing a
lock are serialized, so at most one window is in flight across them.
"""

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field

from inkform.documents.models import Document
from inkform.documents.repository import DocumentRepository
from inkform.extraction.base import ExtractionClient, ExtractionPayload, PreparedImage, classify_error
from inkform.normalization.normalizer import FieldNormalizer
from inkform.preprocessing.image import ImagePreparer
from inkform.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class BatchSummary:
    """Aggregate outcome of one orchestrator run."""

    total: int = 0
    successful: int = 0
    failed: int = 0
    window_sizes: list[int] = field(default_factory=list)
    failures: dict[str, str] = field(default_factory=dict)


class BatchOrchestrator:
    """Drives documents through preparation, extraction, normalization and validation.

    Args:
        repository: Owner of the documents and their status.
        client: Extraction backend.
        normalizer: Field normalizer applied to every extracted form.
        preparer: Image preparer; a default one is created when omitted.
        max_concurrent: Window size, i.e. extraction calls in flight at once.
        timeout_s: Optional per-call timeout in seconds.
        lock: Serializes runs; pass the same lock to every orchestrator
            working on one repository.
    """

    def __init__(
        self,
        repository: DocumentRepository,
        client: ExtractionClient,
        normalizer: FieldNormalizer,
        preparer: ImagePreparer | None = None,
        max_concurrent: int = 3,
        timeout_s: float | None = None,
        lock: asyncio.Lock | None = None,
    ) -> None:
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        self.repository = repository
        self.client = client
        self.normalizer = normalizer
        self.preparer = preparer or ImagePreparer()
        self.max_concurrent = max_concurrent
        self.timeout_s = timeout_s
        self.lock = lock or asyncio.Lock()

    async def process_pending(self) -> BatchSummary:
        """Process every document that is pending once earlier runs finish."""
        async with self.lock:
            pending = self.repository.pending()
            if not pending:
                logger.info("No pending documents to process")
                return BatchSummary()
            return await self._run(pending)

    async def process(self, documents: Sequence[Document]) -> BatchSummary:
        """Process ``documents`` window by window.

        Returns:
            Counts of successes and failures, the size of each window and
            the error message of every failed document.
        """
        async with self.lock:
            return await self._run(documents)

    async def _run(self, documents: Sequence[Document]) -> BatchSummary:
        summary = BatchSummary(total=len(documents))
        size = self.max_concurrent
        windows = [documents[i : i + size] for i in range(0, len(documents), size)]
        logger.info(
            "Processing %d documents in %d windows of up to %d",
            len(documents),
            len(windows),
            size,
        )

        for number, window in enumerate(windows, 1):
            active = []
            for document in window:
                if self.repository.mark_processing(document.id):
                    active.append(document)
                else:
                    summary.failed += 1
                    summary.failures[document.id] = "Document removed before extraction"
            if not active:
                continue
            summary.window_sizes.append(len(active))

            errors = await asyncio.gather(*(self._process_one(d) for d in active))

            for document, error in zip(active, errors):
                if error is None:
                    summary.successful += 1
                else:
                    summary.failed += 1
                    summary.failures[document.id] = error
            logger.debug("Window %d/%d done", number, len(windows))

        logger.info(
            "Processed: %d success, %d failed", summary.successful, summary.failed
        )
        return summary

    async def _extract(self, image: PreparedImage) -> ExtractionPayload:
        if self.timeout_s is None:
            return await self.client.extract(image)
        return await asyncio.wait_for(self.client.extract(image), self.timeout_s)

    async def _process_one(self, document: Document) -> str | None:
        """Run one document to completion; returns its error message on failure."""
        try:
            image = self.preparer.prepare(document)
            payload = await self._extract(image)
            rows = self.normalizer.normalize_forms(payload.forms, document.id)
            issues = self.repository.attach_extraction(
                document.id,
                rows,
                image_dimensions=(image.width, image.height),
                quality_report=image.quality_report,
                processed_preview=image.preview,
            )
            if issues is None:
                return "Document removed during extraction"
        except Exception as exc:
            error = classify_error(exc)
            message = str(error)
            self.repository.mark_failed(document.id, message, str(error.category))
            logger.error(
                "Extraction failed for %s (%s): %s", document.name, error.category, message
            )
            return message

        logger.info(
            "Extracted %s: %d rows, %d issues", document.name, len(rows), len(issues)
        )
        return None
