"""Construction of the shared service objects.

The API server and the CLI both build their collaborators here so that
one feedback store, one validation cache and one document repository are
shared by everything in a process.
"""

import asyncio
from dataclasses import dataclass, field
from pathlib import Path

from inkform.documents.repository import DocumentRepository
from inkform.extraction.base import ExtractionClient
from inkform.feedback.store import FeedbackStore
from inkform.normalization.dictionaries import load_dictionaries
from inkform.normalization.fuzzy import FuzzyMatcher
from inkform.normalization.normalizer import FieldNormalizer
from inkform.pipeline.orchestrator import BatchOrchestrator
from inkform.preprocessing.image import ImagePreparer
from inkform.utils.config import AppConfig
from inkform.validation.rules_engine import ValidationEngine


@dataclass
class Services:
    """Process-wide collaborators, created once and injected everywhere."""

    config: AppConfig
    feedback: FeedbackStore
    validator: ValidationEngine
    normalizer: FieldNormalizer
    repository: DocumentRepository
    preparer: ImagePreparer
    batch_lock: asyncio.Lock = field(default_factory=asyncio.Lock)


def build_services(config: AppConfig, feedback_path: Path | None = None) -> Services:
    """Create the feedback store, validator, normalizer and repository.

    Args:
        config: Application configuration.
        feedback_path: Overrides ``config.feedback.store_path``.
    """
    feedback = FeedbackStore(
        feedback_path or Path(config.feedback.store_path),
        max_entries=config.feedback.max_entries,
    )
    validator = ValidationEngine(config.validation)
    normalizer = FieldNormalizer(
        load_dictionaries(Path(config.dictionaries.path)),
        feedback=feedback,
        matcher=FuzzyMatcher(config.dictionaries.distance_cache_size),
        confidence_boost=config.feedback.confidence_boost,
        confidence_cap=config.feedback.confidence_cap,
    )
    return Services(
        config=config,
        feedback=feedback,
        validator=validator,
        normalizer=normalizer,
        repository=DocumentRepository(validator, feedback),
        preparer=ImagePreparer(config.image),
    )


def build_client(config: AppConfig, sidecar_dir: Path | None = None) -> ExtractionClient:
    """Create the extraction backend named by the configuration.

    A ``sidecar_dir`` forces the offline replay backend.
    """
    if sidecar_dir is not None or config.extraction.provider == "sidecar":
        from inkform.extraction.sidecar import SidecarExtractionClient

        return SidecarExtractionClient(sidecar_dir or Path("."))

    from inkform.extraction.gemini import GeminiExtractionClient

    return GeminiExtractionClient(config.extraction)


def build_orchestrator(services: Services, client: ExtractionClient) -> BatchOrchestrator:
    return BatchOrchestrator(
        services.repository,
        client,
        services.normalizer,
        preparer=services.preparer,
        max_concurrent=services.config.extraction.max_concurrent,
        timeout_s=services.config.extraction.timeout_s,
        lock=services.batch_lock,
    )
