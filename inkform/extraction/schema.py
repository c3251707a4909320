"""Pydantic schema of the JSON payload returned by extraction backends.

Wire shape::

    {"forms": [{"Printer Name": "...", ..., "Deliverer Name": "...",
                "_confidence": {"Date": 0.93, ...},
                "_boundingBoxes": {"Date": {"box": [x0, y0, x1, y1], "page": 1}}}]}
"""

import json

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from inkform.documents.models import FORM_FIELDS, BoundingBox, FormField

from .base import ExtractionPayload, MalformedResponseError, RawForm


class BoxSchema(BaseModel):
    """Normalized bounding box of one field."""

    box: list[float] = Field(min_length=4, max_length=4)
    page: int = 1


class FormSchema(BaseModel):
    """One extracted form; field values are keyed by their wire names."""

    model_config = ConfigDict(extra="allow")

    confidence: dict[str, float] = Field(default_factory=dict, alias="_confidence")
    bounding_boxes: dict[str, BoxSchema] = Field(
        default_factory=dict, alias="_boundingBoxes"
    )

    @field_validator("confidence", "bounding_boxes", mode="before")
    @classmethod
    def _drop_nulls(cls, value: object) -> object:
        if value is None:
            return {}
        if isinstance(value, dict):
            return {k: v for k, v in value.items() if v is not None}
        return value

    def to_raw_form(self) -> RawForm:
        extra = self.model_extra or {}
        values = {
            f: "" if extra.get(f.value) is None else str(extra[f.value]) for f in FORM_FIELDS
        }
        confidence = {
            FormField(name): max(0.0, min(1.0, score))
            for name, score in self.confidence.items()
            if name in _FIELD_NAMES
        }
        boxes = {
            FormField(name): BoundingBox(quad=tuple(b.box), page=b.page)
            for name, b in self.bounding_boxes.items()
            if name in _FIELD_NAMES
        }
        return RawForm(values=values, confidence=confidence, bounding_boxes=boxes)


class PayloadSchema(BaseModel):
    """Top-level extraction response."""

    forms: list[FormSchema]


_FIELD_NAMES = {f.value for f in FORM_FIELDS}


def parse_payload(data: str | bytes | dict) -> ExtractionPayload:
    """Parse and validate a raw extraction response.

    Raises:
        MalformedResponseError: Empty text, invalid JSON, or a payload that
            does not match the schema.
    """
    if isinstance(data, (str, bytes)):
        if not data or not data.strip():
            raise MalformedResponseError("Empty response from extraction backend")
        try:
            data = json.loads(data)
        except json.JSONDecodeError as exc:
            raise MalformedResponseError(f"Response is not valid JSON: {exc}") from exc

    try:
        payload = PayloadSchema.model_validate(data)
    except ValidationError as exc:
        raise MalformedResponseError(f"Invalid response structure: {exc}") from exc
    return ExtractionPayload(forms=[form.to_raw_form() for form in payload.forms])
