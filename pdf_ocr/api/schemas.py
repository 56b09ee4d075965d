"""Pydantic response schemas for the FastAPI endpoints.

Field names follow the camelCase wire format consumed by the upload client
(``totalPages``, ``extractedText``); Python code uses the snake_case names.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from pdf_ocr.ocr.document_processor import DocumentResult


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PageResultResponse(_CamelModel):
    """OCR output for a single page."""

    page: int = Field(ge=1)
    text: str
    confidence: float = Field(ge=0, le=100)


class ExtractionResponse(_CamelModel):
    """Response schema for a PDF text extraction request."""

    success: bool
    filename: str
    total_pages: int
    extracted_text: str
    pages: list[PageResultResponse]
    message: str


class ErrorResponse(BaseModel):
    """Error body returned with every failure status."""

    error: str
    details: str | None = None


class HealthResponse(BaseModel):
    """Response schema for the health check endpoint."""

    status: str
    version: str
    tesseract_available: bool
    poppler_available: bool
    upload_dir_writable: bool


def build_extraction_response(doc_result: DocumentResult) -> ExtractionResponse:
    """Convert pipeline output into the ``/ocr`` response body.

    A document cut short by a rendering failure still succeeds, but its
    message names the page where conversion stopped.
    """
    message = "OCR completed successfully!"
    if doc_result.truncated:
        message = "OCR completed with warnings: " + "; ".join(doc_result.warnings)
    return ExtractionResponse(
        success=True,
        filename=doc_result.source_file,
        total_pages=doc_result.page_count,
        extracted_text=doc_result.combined_text,
        pages=[
            PageResultResponse(
                page=p.page_number, text=p.text, confidence=p.confidence
            )
            for p in doc_result.pages
        ],
        message=message,
    )
