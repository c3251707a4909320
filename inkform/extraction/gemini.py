"""Gemini vision adapter for the extraction collaborator."""

import google.generativeai as genai

from inkform.documents.models import FORM_FIELDS
from inkform.utils.config import ExtractionConfig
from inkform.utils.logger import get_logger

from .base import (
    ConfigurationError,
    ExtractionClient,
    ExtractionError,
    ExtractionPayload,
    MalformedResponseError,
    PreparedImage,
    classify_error,
)
from .schema import parse_payload

logger = get_logger(__name__)

SYSTEM_INSTRUCTION = (
    "OCR AI: Extract form data as JSON with confidence scores and bounding boxes."
)

USER_PROMPT = f"""Extract all forms from this image (Arabic/English text).

Return {{"forms": [...]}} where every form has the string fields:
{", ".join(f.value for f in FORM_FIELDS)}
plus "_confidence" (field -> 0-1) and "_boundingBoxes"
(field -> {{"box": [x_min, y_min, x_max, y_max], "page": 1}}, normalized 0-1).

Rules:
- Empty fields: "N/A"
- Arabic: precise dots (ب ت ث ن ي), watch ج/ح/خ س/ش ر/ز د/ذ

Output JSON only."""


class GeminiExtractionClient(ExtractionClient):
    """Sends the prepared image to a Gemini model and parses its JSON answer.

    Args:
        config: Model name and API key settings.

    Raises:
        ConfigurationError: No API key is configured.
    """

    def __init__(self, config: ExtractionConfig) -> None:
        api_key = config.resolved_api_key()
        if not api_key:
            raise ConfigurationError("API key not configured. Please set GEMINI_API_KEY.")
        genai.configure(api_key=api_key)
        self.model_name = config.model_name
        self.model = genai.GenerativeModel(
            config.model_name, system_instruction=SYSTEM_INSTRUCTION
        )

    async def extract(self, image: PreparedImage) -> ExtractionPayload:
        logger.debug("Sending %s to %s", image.source_name, self.model_name)
        try:
            response = await self.model.generate_content_async(
                [{"mime_type": image.mime_type, "data": image.data}, USER_PROMPT],
                generation_config={"response_mime_type": "application/json"},
            )
            text = response.text
        except ExtractionError:
            raise
        except ValueError as exc:
            # Raised by ``response.text`` when the candidate was blocked or empty.
            raise MalformedResponseError(f"Empty response from API: {exc}") from exc
        except Exception as exc:
            raise classify_error(exc) from exc
        return parse_payload(text)
