"""Shared test fixtures for the inkform test suite."""

import asyncio
import io
from collections.abc import Callable
from pathlib import Path

import pytest
from PIL import Image

from inkform.documents.models import FormField
from inkform.extraction.base import (
    ExtractionClient,
    ExtractionPayload,
    PreparedImage,
    RawForm,
)
from inkform.feedback.store import FeedbackStore
from inkform.services import Services, build_services
from inkform.utils.config import AppConfig


def make_image_bytes(width: int = 200, height: int = 100, fmt: str = "PNG") -> bytes:
    """Create a synthetic image encoded in ``fmt``."""
    img = Image.new("RGB", (width, height), color=(255, 255, 255))
    img.paste((0, 0, 0), (20, 20, width // 2, height // 2))
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


def clean_values() -> dict[FormField, str]:
    """Field values that pass every validation rule."""
    return {
        FormField.PRINTER_NAME: "HP LaserJet 400",
        FormField.INK_TYPE: "Original",
        FormField.INK_NUMBER: "CF280A",
        FormField.DATE: "2024-02-13",
        FormField.DEPARTMENT: "الطوارئ",
        FormField.RECIPIENT_NAME: "محمد",
        FormField.EMPLOYEE_ID: "AB12345",
        FormField.DELIVERER_NAME: "علي",
    }


class FakeClient(ExtractionClient):
    """Returns one form per image and fails for the configured names."""

    def __init__(self, failures: dict[str, Exception] | None = None, delay: float = 0.0) -> None:
        self.failures = failures or {}
        self.delay = delay
        self.in_flight = 0
        self.max_in_flight = 0
        self.seen: list[str] = []

    async def extract(self, image: PreparedImage) -> ExtractionPayload:
        self.seen.append(image.source_name)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if image.source_name in self.failures:
                raise self.failures[image.source_name]
        finally:
            self.in_flight -= 1
        form = RawForm(
            values={FormField.DATE: "05-01-24", FormField.EMPLOYEE_ID: "ab123"},
            confidence={FormField.DATE: 0.9, FormField.EMPLOYEE_ID: 0.95},
        )
        return ExtractionPayload(forms=[form])


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def config_dir(project_root: Path) -> Path:
    """Return the configs directory path."""
    return project_root / "configs"


@pytest.fixture
def png_bytes() -> bytes:
    """A small PNG that needs no resizing."""
    return make_image_bytes()


@pytest.fixture
def image_factory() -> Callable[..., bytes]:
    return make_image_bytes


@pytest.fixture
def feedback_store(tmp_path: Path) -> FeedbackStore:
    """A feedback store persisted under the test's temp directory."""
    return FeedbackStore(tmp_path / "corrections.json")


@pytest.fixture
def app_config(tmp_path: Path, config_dir: Path) -> AppConfig:
    """Default configuration with the feedback log redirected to tmp_path."""
    config = AppConfig()
    config.feedback.store_path = str(tmp_path / "corrections.json")
    config.dictionaries.path = str(config_dir / "dictionaries.yaml")
    return config


@pytest.fixture
def services(app_config: AppConfig) -> Services:
    """A fresh set of shared services for one test."""
    return build_services(app_config)


@pytest.fixture
def raw_form() -> RawForm:
    """A raw extracted form with typical OCR noise and high confidence."""
    values = {
        FormField.PRINTER_NAME: "HP LaserJet 400",
        FormField.INK_TYPE: "0RIGINAL",
        FormField.INK_NUMBER: "CF28OA",
        FormField.DATE: "١٣/٠٢/٢٠٢٤",
        FormField.DEPARTMENT: "الطوارى",
        FormField.RECIPIENT_NAME: "محمذ",
        FormField.EMPLOYEE_ID: "ab 12345",
        FormField.DELIVERER_NAME: "علي",
    }
    return RawForm(values=values, confidence={f: 0.9 for f in values})
