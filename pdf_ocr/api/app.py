"""FastAPI application for the PDF OCR service.

Serves a minimal HTML upload form, the ``/ocr`` extraction endpoint, and a
health check.
"""

import shutil
from functools import lru_cache
from typing import Annotated

from fastapi import FastAPI, File, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse

from pdf_ocr import __version__
from pdf_ocr.ocr.document_processor import DocumentProcessor
from pdf_ocr.utils.config import AppConfig, load_config
from pdf_ocr.utils.logger import get_logger

from .schemas import (
    ErrorResponse,
    ExtractionResponse,
    HealthResponse,
    build_extraction_response,
)
from .storage import UploadTooLargeError, stored_upload, upload_dir_is_writable

logger = get_logger(__name__)

UPLOAD_FORM = """
<h2>PDF to Text (OCR)</h2>
<form action="/ocr" method="post" enctype="multipart/form-data">
  <input type="file" name="pdf" accept=".pdf" required />
  <br><br>
  <button type="submit">Extract Text</button>
</form>
"""

app = FastAPI(
    title="PDF OCR API",
    description="Extract text from PDF documents page by page with Tesseract",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class APIError(Exception):
    """An error reported to the client as ``{"error": ..., "details": ...}``.

    Args:
        status_code: HTTP status to respond with.
        error: Short, stable error label.
        details: Optional human-readable explanation.
    """

    def __init__(
        self, status_code: int, error: str, details: str | None = None
    ) -> None:
        super().__init__(error if details is None else f"{error}: {details}")
        self.status_code = status_code
        self.error = error
        self.details = details


def _error_response(
    status_code: int, error: str, details: str | None = None
) -> JSONResponse:
    body = ErrorResponse(error=error, details=details)
    return JSONResponse(
        status_code=status_code, content=body.model_dump(exclude_none=True)
    )


@app.exception_handler(APIError)
async def handle_api_error(request: Request, exc: APIError) -> JSONResponse:
    return _error_response(exc.status_code, exc.error, exc.details)


@app.exception_handler(RequestValidationError)
async def handle_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed form data in the same body shape as other errors."""
    errors = exc.errors()
    fields = {str(err["loc"][-1]) for err in errors if err.get("loc")}
    error = "No PDF uploaded" if "pdf" in fields else "Invalid request"
    details = "; ".join(str(err.get("msg", "")) for err in errors)
    return _error_response(400, error, details or None)


@lru_cache(maxsize=1)
def _get_settings() -> AppConfig:
    """Load the application configuration once per process."""
    return load_config()


def _get_processor(config: AppConfig) -> DocumentProcessor:
    """Create the pipeline for one request."""
    return DocumentProcessor(config)


@app.middleware("http")
async def limit_upload_size(request: Request, call_next):
    """Reject oversized or unsized request bodies before any handler logic runs.

    Chunked bodies carry no length to check up front and would be spooled in
    full before the handler could refuse them, so they are not accepted.
    """
    if request.method == "POST":
        length = request.headers.get("content-length", "")
        encoding = request.headers.get("transfer-encoding", "").lower()
        if not length and "chunked" in encoding:
            logger.warning("Rejected chunked upload without Content-Length")
            return _error_response(
                411, "Length required", "Uploads must declare a Content-Length"
            )
        upload = _get_settings().upload
        if length.isdigit() and int(length) > upload.max_request_bytes:
            logger.warning("Rejected upload of %s bytes", length)
            return _error_response(
                413,
                "File too large",
                f"Uploads are limited to {upload.max_bytes} bytes",
            )
    return await call_next(request)


@app.get("/", response_class=HTMLResponse)
async def upload_form() -> str:
    """Return the HTML upload form."""
    return UPLOAD_FORM


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Return system health status."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        tesseract_available=shutil.which("tesseract") is not None,
        poppler_available=shutil.which("pdftoppm") is not None,
        upload_dir_writable=upload_dir_is_writable(_get_settings().upload),
    )


@app.post(
    "/ocr",
    response_model=ExtractionResponse,
    responses={
        400: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
def extract_pdf_text(
    pdf: Annotated[UploadFile | None, File()] = None,
) -> ExtractionResponse:
    """Run OCR over every page of an uploaded PDF.

    Runs in FastAPI's threadpool since rendering and recognition block.

    Args:
        pdf: Uploaded PDF file.

    Returns:
        Combined text and per-page results for the pages that were processed.
    """
    if pdf is None:
        raise APIError(400, "No PDF uploaded")

    config = _get_settings()
    if pdf.content_type != config.upload.allowed_content_type:
        raise APIError(
            400,
            "Only PDF allowed",
            f"Unsupported file type: {pdf.content_type}",
        )

    filename = pdf.filename or "document.pdf"
    try:
        with stored_upload(pdf.file, config.upload) as pdf_path:
            doc_result = _get_processor(config).process(pdf_path, filename)
    except UploadTooLargeError as exc:
        raise APIError(413, "File too large", str(exc)) from exc
    except Exception as exc:
        logger.error("OCR Error: %s", exc)
        raise APIError(500, "OCR failed", str(exc)) from exc

    logger.info(
        "Sending response with %d pages, text length: %d",
        doc_result.page_count,
        len(doc_result.combined_text),
    )
    return build_extraction_response(doc_result)
