"""Shared test fixtures for the PDF OCR test suite."""

from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from pdf_ocr.utils.config import AppConfig, UploadConfig


@pytest.fixture(autouse=True)
def clean_server_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep PORT/HOST from the developer's shell out of the tests."""
    monkeypatch.delenv("PORT", raising=False)
    monkeypatch.delenv("HOST", raising=False)


@pytest.fixture
def page_image() -> np.ndarray:
    """Create a small white RGB page image."""
    return np.full((100, 80, 3), 255, dtype=np.uint8)


@pytest.fixture
def pil_page() -> Image.Image:
    """Create a small white PIL page as pdf2image would return it."""
    return Image.new("RGB", (80, 100), "white")


@pytest.fixture
def upload_dir(tmp_path: Path) -> Path:
    """Return a per-test directory for staged uploads."""
    return tmp_path / "uploads"


@pytest.fixture
def app_config(upload_dir: Path) -> AppConfig:
    """Default configuration with uploads staged in a temporary directory."""
    return AppConfig(upload=UploadConfig(upload_dir=str(upload_dir)))


@pytest.fixture
def sample_pdf(tmp_path: Path) -> Path:
    """Write a placeholder PDF file; rendering is mocked in the tests."""
    path = tmp_path / "sample.pdf"
    path.write_bytes(b"%PDF-1.4\n% placeholder\n%%EOF\n")
    return path


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent
