"""Configuration management for the PDF OCR service.

Loads YAML configuration with defaults for rendering, OCR, upload limits,
and the HTTP server, then applies environment overrides (``PORT``, ``HOST``).
"""

import logging
import os
import tempfile
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

# pdf.js-style render scale is relative to the 72 DPI PDF user space.
PDF_POINTS_PER_INCH = 72
MAX_UPLOAD_BYTES = 50 * 1024 * 1024


def _default_upload_dir() -> str:
    return str(Path(tempfile.gettempdir()) / "pdf-ocr-uploads")


class OCRConfig(BaseModel):
    """Configuration for page rendering and the Tesseract engine."""

    tesseract_cmd: str | None = None
    poppler_path: str | None = None
    default_lang: str = "eng"
    psm: int = 3
    render_scale: float = Field(default=3.5, gt=0)

    @property
    def render_dpi(self) -> int:
        """Rendering resolution equivalent to ``render_scale``."""
        return round(self.render_scale * PDF_POINTS_PER_INCH)


class UploadConfig(BaseModel):
    """Configuration for accepting and staging uploaded files."""

    max_bytes: int = Field(default=MAX_UPLOAD_BYTES, gt=0)
    multipart_overhead_bytes: int = Field(default=64 * 1024, ge=0)
    upload_dir: str = Field(default_factory=_default_upload_dir)
    allowed_content_type: str = "application/pdf"

    @property
    def max_request_bytes(self) -> int:
        """Largest request body accepted before the handler runs."""
        return self.max_bytes + self.multipart_overhead_bytes


class ServerConfig(BaseModel):
    """Configuration for the HTTP listener."""

    host: str = "0.0.0.0"
    port: int = Field(default=3000, ge=0, le=65535)


class AppConfig(BaseModel):
    """Top-level application configuration."""

    ocr: OCRConfig = Field(default_factory=OCRConfig)
    upload: UploadConfig = Field(default_factory=UploadConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    log_level: str = "INFO"


def apply_env_overrides(config: AppConfig) -> AppConfig:
    """Apply ``PORT`` and ``HOST`` environment variables to the server section.

    Args:
        config: Configuration loaded from file or defaults.

    Returns:
        The same configuration with the server section updated.

    Raises:
        ValueError: If ``PORT`` is not an integer.
    """
    port = os.environ.get("PORT")
    if port:
        try:
            config.server.port = int(port)
        except ValueError as exc:
            raise ValueError(f"PORT must be an integer, got {port!r}") from exc
        logger.debug("Port overridden from environment: %s", port)

    host = os.environ.get("HOST")
    if host:
        config.server.host = host
    return config


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.
            Defaults to configs/config.yaml.

    Returns:
        Validated application configuration with environment overrides.
    """
    if path is None:
        path = Path("configs/config.yaml")

    if path.exists():
        logger.info("Loading configuration from %s", path)
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
        config = AppConfig(**raw)
    else:
        logger.info("No config file found at %s, using defaults", path)
        config = AppConfig()

    return apply_env_overrides(config)
