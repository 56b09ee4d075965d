"""PDF OCR pipeline.

Sequences rasterization and recognition page by page: render page, recognize
page, next page. A rendering failure truncates the document at that page;
a recognition failure aborts it.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np

from pdf_ocr.utils.config import AppConfig
from pdf_ocr.utils.logger import get_logger

from .pdf_handler import PDFHandler, RasterizationError
from .tesseract_engine import TesseractEngine

logger = get_logger(__name__)

PAGE_BREAK = "\n\n--- Page Break ---\n\n"


class NoPagesProcessedError(RuntimeError):
    """Raised when not a single page of a document could be recognized."""


@dataclass
class PageResult:
    """Recognized text and confidence for a single page."""

    page_number: int
    text: str
    confidence: float


@dataclass
class DocumentResult:
    """Recognition results for every page that was processed."""

    source_file: str
    page_count: int
    pages: list[PageResult]
    combined_text: str
    stopped_at_page: int | None = None
    warnings: list[str] = field(default_factory=list)

    @property
    def truncated(self) -> bool:
        return self.stopped_at_page is not None


class DocumentProcessor:
    """Runs the rasterize-then-recognize pipeline over one PDF.

    Args:
        config: Application configuration object.
    """

    def __init__(self, config: AppConfig) -> None:
        self.config = config
        self.pdf_handler = PDFHandler(
            scale=config.ocr.render_scale,
            poppler_path=config.ocr.poppler_path,
        )

    def _create_engine(self) -> TesseractEngine:
        return TesseractEngine(
            tesseract_cmd=self.config.ocr.tesseract_cmd,
            default_lang=self.config.ocr.default_lang,
            psm=self.config.ocr.psm,
        )

    def process(self, pdf_path: Path, filename: str = "document.pdf") -> DocumentResult:
        """Recognize every page of a PDF.

        A fresh engine is started for the document and terminated before
        this method returns or raises.

        Args:
            pdf_path: Path to the stored PDF file.
            filename: Original name of the uploaded document.

        Returns:
            Results for the pages that were processed, in page order.

        Raises:
            NoPagesProcessedError: If the first page could not be rendered.
            OCREngineError: If the engine fails to start or to recognize a page.
        """
        logger.info("Processing document: %s", filename)
        engine = self._create_engine()
        try:
            engine.start()
            pages, stopped_at = self._recognize_pages(pdf_path, engine)
        finally:
            engine.terminate()

        logger.info("Total pages processed: %d", len(pages))
        if not pages:
            raise NoPagesProcessedError("No pages could be processed")

        warnings = []
        if stopped_at is not None:
            warnings.append(f"PDF conversion stopped at page {stopped_at}")

        combined_text = PAGE_BREAK.join(p.text for p in pages)
        logger.info("Full text length: %d characters", len(combined_text))
        return DocumentResult(
            source_file=filename,
            page_count=len(pages),
            pages=pages,
            combined_text=combined_text,
            stopped_at_page=stopped_at,
            warnings=warnings,
        )

    def _recognize_pages(
        self, pdf_path: Path, engine: TesseractEngine
    ) -> tuple[list[PageResult], int | None]:
        """Recognize pages until the document ends or a page fails to render.

        Returns:
            The page results and the page number where rendering stopped,
            or ``None`` if every page was rendered.
        """
        pages: list[PageResult] = []
        page_number = 1
        images: Iterator[np.ndarray] = self.pdf_handler.iter_pages(pdf_path)

        while True:
            try:
                image = next(images)
            except StopIteration:
                return pages, None
            except RasterizationError as exc:
                logger.warning(
                    "PDF conversion stopped at page %d: %s", page_number, exc
                )
                return pages, page_number

            logger.info("Processing page %d...", page_number)
            ocr_result = engine.recognize(image)
            page = PageResult(
                page_number=page_number,
                text=ocr_result.text.strip(),
                confidence=round(ocr_result.confidence, 2),
            )
            pages.append(page)
            logger.info(
                "Page %d OCR done - Confidence: %.2f%%", page_number, page.confidence
            )
            page_number += 1
