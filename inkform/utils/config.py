"""Configuration management for the delivery-form pipeline.

Loads and validates YAML configuration with defaults for extraction,
image preparation, feedback persistence, validation and dictionaries.
"""

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class ExtractionConfig(BaseModel):
    """Configuration for the extraction collaborator and batch windows."""

    provider: str = "gemini"
    model_name: str = "gemini-2.5-pro"
    api_key: str | None = None
    max_concurrent: int = Field(default=3, ge=1)
    timeout_s: float | None = None

    def resolved_api_key(self) -> str | None:
        """Return the configured key, falling back to ``GEMINI_API_KEY``."""
        return self.api_key or os.environ.get("GEMINI_API_KEY")


class ImageConfig(BaseModel):
    """Configuration for image preparation before extraction."""

    max_dimension: int = 1280
    jpeg_quality: int = 85


class FeedbackConfig(BaseModel):
    """Configuration for the user-correction store."""

    store_path: str = "data/user_corrections.json"
    max_entries: int = Field(default=100, ge=1)
    confidence_boost: float = 0.15
    confidence_cap: float = 0.99


class ValidationConfig(BaseModel):
    """Configuration for the validation engine."""

    confidence_threshold: float = 0.85
    placeholder_tokens: list[str] = Field(
        default_factory=lambda: [
            "n/a",
            "null",
            "undefined",
            "not found",
            "missing",
            "none",
            "?",
            "illegible",
        ]
    )
    cache_size: int = 50


class DictionaryConfig(BaseModel):
    """Configuration for the fuzzy-matching dictionary assets."""

    path: str = "configs/dictionaries.yaml"
    distance_cache_size: int = 1000


class AppConfig(BaseModel):
    """Top-level application configuration."""

    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    image: ImageConfig = Field(default_factory=ImageConfig)
    feedback: FeedbackConfig = Field(default_factory=FeedbackConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    dictionaries: DictionaryConfig = Field(default_factory=DictionaryConfig)
    log_level: str = "INFO"


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.
            Defaults to ``INKFORM_CONFIG`` or configs/config.yaml.

    Returns:
        Validated application configuration.
    """
    if path is None:
        path = Path(os.environ.get("INKFORM_CONFIG", "configs/config.yaml"))

    if path.exists():
        logger.info("Loading configuration from %s", path)
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
        return AppConfig(**raw)

    logger.info("No config file found at %s, using defaults", path)
    return AppConfig()
