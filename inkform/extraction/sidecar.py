"""Offline extraction backend that replays saved JSON responses.

For an image ``scans/form_01.jpg`` the response is read from
``scans/form_01.json``. Useful for re-running normalization and
validation over archived extractions without calling the model again.
"""

from pathlib import Path

from inkform.utils.logger import get_logger

from .base import (
    ExtractionClient,
    ExtractionPayload,
    InvalidInputError,
    PreparedImage,
    TransientExtractionError,
)
from .schema import parse_payload

logger = get_logger(__name__)


class SidecarExtractionClient(ExtractionClient):
    """Looks up ``<stem>.json`` in ``directory`` for each image.

    Args:
        directory: Folder holding the sidecar files.
    """

    def __init__(self, directory: Path) -> None:
        self.directory = directory

    def sidecar_for(self, source_name: str) -> Path:
        return self.directory / f"{Path(source_name).stem}.json"

    async def extract(self, image: PreparedImage) -> ExtractionPayload:
        path = self.sidecar_for(image.source_name)
        if not path.exists():
            raise InvalidInputError(f"No sidecar response for {image.source_name}")
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise TransientExtractionError(f"Could not read {path}: {exc}") from exc
        logger.debug("Replaying %s", path)
        return parse_payload(text)
