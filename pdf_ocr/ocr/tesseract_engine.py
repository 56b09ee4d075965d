"""Tesseract OCR engine wrapper with an explicit start/terminate lifecycle.

A :class:`TesseractEngine` is created per document, started once (which
checks that the binary and the language model are installed), fed page
images one after another, and terminated when the document is finished.
"""

from dataclasses import dataclass

import numpy as np
import pytesseract
from PIL import Image

from pdf_ocr.utils.logger import get_logger

logger = get_logger(__name__)


class OCREngineError(RuntimeError):
    """Raised when the OCR engine cannot start or fails to recognize a page."""


@dataclass
class OCRResult:
    """Recognition output for a single page image.

    ``confidence`` is the mean word confidence on Tesseract's 0-100 scale.
    """

    text: str
    language: str
    confidence: float
    word_count: int = 0


def _mean_word_confidence(data: dict) -> tuple[float, int]:
    """Average the confidences of recognized words in ``image_to_data`` output.

    Entries with an empty text or a negative confidence are layout rows
    (blocks, paragraphs, lines) rather than words and are skipped.
    """
    total = 0.0
    count = 0
    for word_text, conf in zip(data["text"], data["conf"], strict=False):
        conf = float(conf)
        if conf < 0 or not str(word_text).strip():
            continue
        total += conf
        count += 1
    if count == 0:
        return 0.0, 0
    return min(max(total / count, 0.0), 100.0), count


class TesseractEngine:
    """Page recognizer backed by the Tesseract binary.

    Args:
        tesseract_cmd: Path to the Tesseract executable.
            If ``None``, uses the system default.
        default_lang: Tesseract language model, ``eng`` by default.
        psm: Tesseract page segmentation mode.
    """

    def __init__(
        self,
        tesseract_cmd: str | None = None,
        default_lang: str = "eng",
        psm: int = 3,
    ) -> None:
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        self.default_lang = default_lang
        self.psm = psm
        self._started = False
        self._terminated = False

    @property
    def is_running(self) -> bool:
        return self._started and not self._terminated

    def start(self) -> None:
        """Check that Tesseract and the configured language are available.

        Raises:
            OCREngineError: If the binary is missing, the language model is
                not installed, or the engine was already terminated.
        """
        if self._terminated:
            raise OCREngineError("Engine has been terminated")
        try:
            version = pytesseract.get_tesseract_version()
            languages = pytesseract.get_languages(config="")
        except Exception as exc:
            raise OCREngineError(f"Tesseract is not available: {exc}") from exc

        if self.default_lang not in languages:
            raise OCREngineError(
                f"Tesseract language '{self.default_lang}' is not installed"
            )
        self._started = True
        logger.info("Tesseract %s started with language %s", version, self.default_lang)

    def recognize(self, image: np.ndarray) -> OCRResult:
        """Recognize the text on one page image.

        Args:
            image: Page image as a numpy array.

        Returns:
            OCRResult with the page text and mean word confidence.

        Raises:
            OCREngineError: If the engine is not running or Tesseract fails.
        """
        if not self.is_running:
            raise OCREngineError("Engine is not running")

        config = f"--psm {self.psm}"
        try:
            pil_image = Image.fromarray(image)
            text = pytesseract.image_to_string(
                pil_image, lang=self.default_lang, config=config
            )
            data = pytesseract.image_to_data(
                pil_image,
                lang=self.default_lang,
                config=config,
                output_type=pytesseract.Output.DICT,
            )
        except Exception as exc:
            raise OCREngineError(f"Recognition failed: {exc}") from exc

        confidence, word_count = _mean_word_confidence(data)
        logger.debug(
            "OCR recognized %d words with mean confidence %.2f",
            word_count,
            confidence,
        )
        return OCRResult(
            text=text,
            language=self.default_lang,
            confidence=confidence,
            word_count=word_count,
        )

    def terminate(self) -> None:
        """Release the engine. Safe to call more than once."""
        if self._terminated:
            return
        self._terminated = True
        logger.info("Tesseract engine terminated")
