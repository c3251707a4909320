"""Interface of the external extraction collaborator and its failures.

The extraction call itself (an AI vision model, a replay file, ...) is
opaque to the pipeline: given a prepared image it returns raw forms with
per-field confidence and bounding boxes, or raises one of the typed
errors below.
"""

import abc
import re
from dataclasses import dataclass, field
from enum import StrEnum

from inkform.documents.models import BoundingBox, FormField, QualityReport


class ErrorCategory(StrEnum):
    """Classification of extraction failures."""

    CONFIGURATION = "configuration"
    TRANSIENT = "transient"
    QUOTA = "quota"
    INVALID_INPUT = "invalid_input"
    MALFORMED_RESPONSE = "malformed_response"
    UNKNOWN = "unknown"


class ExtractionError(Exception):
    """Base class for failures of a single document's extraction."""

    category = ErrorCategory.UNKNOWN


class ConfigurationError(ExtractionError):
    """Missing or rejected credentials, unknown model, bad settings."""

    category = ErrorCategory.CONFIGURATION


class TransientExtractionError(ExtractionError):
    """Network failure or timeout; retrying later may succeed."""

    category = ErrorCategory.TRANSIENT


class QuotaExceededError(ExtractionError):
    """The provider refused the call because of quota or rate limits."""

    category = ErrorCategory.QUOTA


class InvalidInputError(ExtractionError):
    """The document is not an image the collaborator can read."""

    category = ErrorCategory.INVALID_INPUT


class MalformedResponseError(ExtractionError):
    """The collaborator answered with something that is not a form payload."""

    category = ErrorCategory.MALFORMED_RESPONSE


_PATTERNS: list[tuple[re.Pattern[str], type[ExtractionError]]] = [
    (re.compile(r"api key|api_key|permission denied|unauthenticated"), ConfigurationError),
    # 429 only as a standalone status code.
    (re.compile(r"quota|rate limit|resource exhausted|\b429\b"), QuotaExceededError),
    (re.compile(r"network|rpc failed|xhr error|timed out|timeout|connection"), TransientExtractionError),
    (re.compile(r"must be an image|cannot identify image|unsupported file"), InvalidInputError),
]


def classify_error(exc: BaseException) -> ExtractionError:
    """Map an arbitrary exception onto the typed extraction error family.

    Already-typed errors pass through unchanged; anything else is matched
    by message keywords and wrapped, keeping the original as the cause.
    """
    if isinstance(exc, ExtractionError):
        return exc

    message = str(exc) or exc.__class__.__name__
    lowered = message.lower()
    if isinstance(exc, TimeoutError):
        error: ExtractionError = TransientExtractionError(f"Extraction timed out: {message}")
    else:
        error_cls = next(
            (cls for pattern, cls in _PATTERNS if pattern.search(lowered)),
            ExtractionError,
        )
        error = error_cls(f"Extraction failed: {message}")
    error.__cause__ = exc
    return error


@dataclass
class PreparedImage:
    """Image bytes ready to be sent to the extraction collaborator."""

    data: bytes
    mime_type: str
    width: int
    height: int
    quality_report: QualityReport
    source_name: str = ""
    preview: bytes | None = None


@dataclass
class RawForm:
    """One form as returned by the collaborator, before normalization."""

    values: dict[FormField, str]
    confidence: dict[FormField, float] = field(default_factory=dict)
    bounding_boxes: dict[FormField, BoundingBox] = field(default_factory=dict)


@dataclass
class ExtractionPayload:
    """Successful extraction result for one image."""

    forms: list[RawForm]


class ExtractionClient(abc.ABC):
    """An extraction backend: image in, raw forms out."""

    @abc.abstractmethod
    async def extract(self, image: PreparedImage) -> ExtractionPayload:
        """Extract every form visible in ``image``.

        Raises:
            ExtractionError: Any failure, typed by category.
        """
