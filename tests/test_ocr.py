"""Tests for the Tesseract engine wrapper."""

from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from pdf_ocr.ocr.tesseract_engine import (
    OCREngineError,
    OCRResult,
    TesseractEngine,
    _mean_word_confidence,
)


def _mock_tesseract_data() -> dict:
    """Create mock pytesseract image_to_data output."""
    return {
        "text": ["", "Hello", "World", "", "  ", "Test"],
        "conf": [-1, 95, 88.5, -1, 40, "72"],
    }


def _ready(mock_pytesseract: MagicMock) -> None:
    mock_pytesseract.get_tesseract_version.return_value = "5.3.0"
    mock_pytesseract.get_languages.return_value = ["eng", "osd"]
    mock_pytesseract.Output.DICT = "dict"


class TestMeanWordConfidence:
    """Tests for word confidence averaging."""

    def test_skips_layout_rows_and_blank_words(self) -> None:
        confidence, count = _mean_word_confidence(_mock_tesseract_data())
        assert count == 3
        assert confidence == pytest.approx((95 + 88.5 + 72) / 3)

    def test_no_words(self) -> None:
        assert _mean_word_confidence({"text": ["", ""], "conf": [-1, -1]}) == (0.0, 0)


class TestTesseractEngine:
    """Tests for the TesseractEngine class (mocked)."""

    @patch("pdf_ocr.ocr.tesseract_engine.pytesseract")
    def test_custom_tesseract_cmd(self, mock_pytesseract: MagicMock) -> None:
        TesseractEngine(tesseract_cmd="/usr/local/bin/tesseract")
        assert mock_pytesseract.pytesseract.tesseract_cmd == "/usr/local/bin/tesseract"

    @patch("pdf_ocr.ocr.tesseract_engine.pytesseract")
    def test_start(self, mock_pytesseract: MagicMock) -> None:
        _ready(mock_pytesseract)
        engine = TesseractEngine()

        engine.start()

        assert engine.is_running
        mock_pytesseract.get_languages.assert_called_once()

    @patch("pdf_ocr.ocr.tesseract_engine.pytesseract")
    def test_start_without_binary(self, mock_pytesseract: MagicMock) -> None:
        mock_pytesseract.get_tesseract_version.side_effect = OSError("not installed")

        with pytest.raises(OCREngineError, match="not available"):
            TesseractEngine().start()

    @patch("pdf_ocr.ocr.tesseract_engine.pytesseract")
    def test_start_without_language(self, mock_pytesseract: MagicMock) -> None:
        _ready(mock_pytesseract)
        mock_pytesseract.get_languages.return_value = ["osd"]

        with pytest.raises(OCREngineError, match="'eng' is not installed"):
            TesseractEngine().start()

    @patch("pdf_ocr.ocr.tesseract_engine.pytesseract")
    def test_recognize(
        self, mock_pytesseract: MagicMock, page_image: np.ndarray
    ) -> None:
        _ready(mock_pytesseract)
        mock_pytesseract.image_to_string.return_value = "Hello World\nTest\n"
        mock_pytesseract.image_to_data.return_value = _mock_tesseract_data()

        engine = TesseractEngine(psm=6)
        engine.start()
        result = engine.recognize(page_image)

        assert isinstance(result, OCRResult)
        assert result.text == "Hello World\nTest\n"
        assert result.language == "eng"
        assert result.word_count == 3
        assert 0 <= result.confidence <= 100
        _, kwargs = mock_pytesseract.image_to_string.call_args
        assert kwargs == {"lang": "eng", "config": "--psm 6"}

    @patch("pdf_ocr.ocr.tesseract_engine.pytesseract")
    def test_recognize_requires_start(
        self, mock_pytesseract: MagicMock, page_image: np.ndarray
    ) -> None:
        with pytest.raises(OCREngineError, match="not running"):
            TesseractEngine().recognize(page_image)
        mock_pytesseract.image_to_string.assert_not_called()

    @patch("pdf_ocr.ocr.tesseract_engine.pytesseract")
    def test_recognize_failure_is_wrapped(
        self, mock_pytesseract: MagicMock, page_image: np.ndarray
    ) -> None:
        _ready(mock_pytesseract)
        mock_pytesseract.image_to_string.side_effect = RuntimeError("segfault")

        engine = TesseractEngine()
        engine.start()
        with pytest.raises(OCREngineError, match="segfault"):
            engine.recognize(page_image)

    @patch("pdf_ocr.ocr.tesseract_engine.pytesseract")
    def test_terminate_is_idempotent(self, mock_pytesseract: MagicMock) -> None:
        _ready(mock_pytesseract)
        engine = TesseractEngine()
        engine.start()

        engine.terminate()
        engine.terminate()

        assert not engine.is_running

    @patch("pdf_ocr.ocr.tesseract_engine.pytesseract")
    def test_cannot_restart_after_terminate(
        self, mock_pytesseract: MagicMock, page_image: np.ndarray
    ) -> None:
        _ready(mock_pytesseract)
        engine = TesseractEngine()
        engine.start()
        engine.terminate()

        with pytest.raises(OCREngineError):
            engine.start()
        with pytest.raises(OCREngineError):
            engine.recognize(page_image)
