"""Upload client for the PDF OCR service."""

from .uploader import PdfUploadClient, UploadOutcome, UploadState

__all__ = ["PdfUploadClient", "UploadOutcome", "UploadState"]
