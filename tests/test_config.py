"""Tests for configuration loading and validation."""

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from pdf_ocr.utils.config import (
    MAX_UPLOAD_BYTES,
    AppConfig,
    OCRConfig,
    ServerConfig,
    UploadConfig,
    load_config,
)


class TestOCRConfig:
    """Tests for OCRConfig defaults and overrides."""

    def test_defaults(self) -> None:
        cfg = OCRConfig()
        assert cfg.default_lang == "eng"
        assert cfg.psm == 3
        assert cfg.render_scale == 3.5
        assert cfg.tesseract_cmd is None
        assert cfg.poppler_path is None

    def test_render_dpi_follows_scale(self) -> None:
        assert OCRConfig().render_dpi == 252
        assert OCRConfig(render_scale=2).render_dpi == 144

    def test_scale_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            OCRConfig(render_scale=0)


class TestUploadConfig:
    """Tests for UploadConfig defaults."""

    def test_defaults(self) -> None:
        cfg = UploadConfig()
        assert cfg.max_bytes == 50 * 1024 * 1024 == MAX_UPLOAD_BYTES
        assert cfg.allowed_content_type == "application/pdf"
        assert cfg.upload_dir.endswith("pdf-ocr-uploads")

    def test_max_request_bytes_includes_overhead(self) -> None:
        cfg = UploadConfig(max_bytes=1000, multipart_overhead_bytes=24)
        assert cfg.max_request_bytes == 1024


class TestAppConfig:
    """Tests for the top-level AppConfig."""

    def test_defaults(self) -> None:
        cfg = AppConfig()
        assert isinstance(cfg.ocr, OCRConfig)
        assert isinstance(cfg.upload, UploadConfig)
        assert isinstance(cfg.server, ServerConfig)
        assert cfg.server.port == 3000
        assert cfg.log_level == "INFO"

    def test_nested_override(self) -> None:
        cfg = AppConfig(server=ServerConfig(port=8080), log_level="DEBUG")
        assert cfg.server.port == 8080
        assert cfg.log_level == "DEBUG"


class TestLoadConfig:
    """Tests for the load_config function."""

    def test_load_default_config(self, project_root: Path) -> None:
        cfg = load_config(project_root / "configs" / "config.yaml")
        assert cfg.ocr.default_lang == "eng"
        assert cfg.ocr.render_scale == 3.5
        assert cfg.upload.max_bytes == MAX_UPLOAD_BYTES

    def test_load_missing_file_returns_defaults(self) -> None:
        cfg = load_config(Path("/nonexistent/path/config.yaml"))
        assert isinstance(cfg, AppConfig)
        assert cfg.server.port == 3000

    def test_load_custom_yaml(self, tmp_path: Path) -> None:
        config_data = {
            "ocr": {"default_lang": "deu", "render_scale": 2.0},
            "upload": {"max_bytes": 1024},
            "log_level": "DEBUG",
        }
        config_file = tmp_path / "config.yaml"
        with open(config_file, "w") as f:
            yaml.dump(config_data, f)

        cfg = load_config(config_file)
        assert cfg.ocr.default_lang == "deu"
        assert cfg.ocr.render_dpi == 144
        assert cfg.upload.max_bytes == 1024
        assert cfg.log_level == "DEBUG"

    def test_load_empty_yaml(self, tmp_path: Path) -> None:
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")
        assert isinstance(load_config(config_file), AppConfig)

    def test_port_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PORT", "8123")
        cfg = load_config(Path("/nonexistent/config.yaml"))
        assert cfg.server.port == 8123

    def test_host_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HOST", "127.0.0.1")
        cfg = load_config(Path("/nonexistent/config.yaml"))
        assert cfg.server.host == "127.0.0.1"

    def test_invalid_port_rejected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PORT", "http")
        with pytest.raises(ValueError, match="PORT"):
            load_config(Path("/nonexistent/config.yaml"))
