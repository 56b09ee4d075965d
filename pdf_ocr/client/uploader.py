"""Stateful upload client for the PDF OCR service.

Holds at most one pending file, posts it to the ``/ocr`` endpoint and keeps
the outcome (message, progress, extracted text) for display.

Older backends answered with a ZIP archive of page images, either as the raw
response body or as a ``downloadZip`` data URI. Those archives are only
saved when the client is created with ``accept_archives=True``.
"""

import base64
import binascii
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

import requests

from pdf_ocr.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_BACKEND_URL = "http://localhost:3000/ocr"


class UploadState(StrEnum):
    """Lifecycle of the upload form."""

    IDLE = "idle"
    FILE_SELECTED = "file-selected"
    UPLOADING = "uploading"
    DONE = "done"


class UploadError(Exception):
    """Raised inside an upload to surface a single-line error message."""


@dataclass
class SelectedFile:
    """A local PDF chosen for upload."""

    path: Path
    name: str
    size: int

    @property
    def size_mb(self) -> float:
        return self.size / 1024 / 1024

    @property
    def stem(self) -> str:
        return self.name[:-4] if self.name.lower().endswith(".pdf") else self.name


@dataclass
class UploadOutcome:
    """What the user sees after an upload finishes."""

    success: bool
    message: str
    extracted_text: str = ""
    total_pages: int | None = None
    downloaded_path: Path | None = None


def _decode_data_uri(uri: str) -> bytes:
    header, sep, payload = uri.partition(",")
    if not sep or not header.startswith("data:"):
        raise UploadError("Malformed archive data URI")
    try:
        if header.endswith(";base64"):
            return base64.b64decode(payload, validate=True)
    except binascii.Error as exc:
        raise UploadError(f"Malformed archive data URI: {exc}") from exc
    return payload.encode()


class PdfUploadClient:
    """Upload form state machine backed by ``requests``.

    Args:
        backend_url: Full URL of the ``/ocr`` endpoint.
        download_dir: Directory where downloaded archives are written.
        accept_archives: Legacy compatibility flag; save ZIP archives sent
            by older backends instead of reporting them as unexpected.
        timeout: Request timeout in seconds, ``None`` to wait indefinitely.
        session: Optional ``requests.Session`` to send requests with.
    """

    def __init__(
        self,
        backend_url: str = DEFAULT_BACKEND_URL,
        download_dir: Path | None = None,
        accept_archives: bool = False,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.backend_url = backend_url
        self.download_dir = download_dir or Path.cwd()
        self.accept_archives = accept_archives
        self.timeout = timeout
        self.session = session or requests.Session()

        self.file: SelectedFile | None = None
        self.message = ""
        self.progress = 0
        self.extracted_text = ""
        self._loading = False
        self._finished = False

    @property
    def state(self) -> UploadState:
        if self._loading:
            return UploadState.UPLOADING
        if self.file is not None:
            return UploadState.FILE_SELECTED
        if self._finished:
            return UploadState.DONE
        return UploadState.IDLE

    def select_file(self, path: Path) -> SelectedFile:
        """Choose the file to upload, clearing any previous result.

        Raises:
            FileNotFoundError: If ``path`` is not an existing file.
        """
        path = Path(path)
        if not path.is_file():
            raise FileNotFoundError(f"No such file: {path}")
        self.file = SelectedFile(path=path, name=path.name, size=path.stat().st_size)
        self.message = ""
        self.progress = 0
        self.extracted_text = ""
        self._finished = False
        return self.file

    def upload(self) -> UploadOutcome:
        """Post the selected file and record the outcome.

        Never raises for transport or server errors; they are reported in the
        returned outcome and in :attr:`message`.
        """
        if self.file is None:
            self.message = "Please select a PDF first!"
            return UploadOutcome(success=False, message=self.message)

        selected = self.file
        self._loading = True
        self.message = ""
        self.progress = 0
        outcome: UploadOutcome
        try:
            outcome = self._send(selected)
        except (UploadError, requests.RequestException, OSError, ValueError) as exc:
            logger.error("Upload of %s failed: %s", selected.name, exc)
            outcome = UploadOutcome(success=False, message=f"Error: {exc}")
        finally:
            self._loading = False
            self._finished = True
            self.file = None

        self.message = outcome.message
        if outcome.success:
            self.progress = 100
            self.extracted_text = outcome.extracted_text
        return outcome

    def _send(self, selected: SelectedFile) -> UploadOutcome:
        with open(selected.path, "rb") as fh:
            response = self.session.post(
                self.backend_url,
                files={"pdf": (selected.name, fh, "application/pdf")},
                timeout=self.timeout,
            )

        if not response.ok:
            raise UploadError(self._error_message(response))

        content_type = response.headers.get("content-type", "")
        if "application/zip" in content_type:
            return self._save_archive_response(selected, response)

        data = response.json()
        logger.debug("Backend response: %s", data)
        if not isinstance(data, dict):
            raise UploadError("Conversion failed")
        if not data.get("success"):
            raise UploadError(data.get("error") or "Conversion failed")

        text = data.get("extractedText") or data.get("text") or ""
        total_pages = data.get("totalPages")
        message = (
            f"Extracted text from {total_pages} pages!"
            if total_pages
            else f"Extracted text from {selected.name}"
        )

        downloaded = None
        if data.get("downloadZip") and self.accept_archives:
            # The text is already in hand; a bad archive only loses the download.
            try:
                downloaded = self._write_download(
                    f"{selected.stem}-ocr-images.zip",
                    _decode_data_uri(data["downloadZip"]),
                )
            except (UploadError, OSError) as exc:
                logger.warning("Skipping archive for %s: %s", selected.name, exc)

        return UploadOutcome(
            success=True,
            message=message,
            extracted_text=text,
            total_pages=total_pages,
            downloaded_path=downloaded,
        )

    def _save_archive_response(
        self, selected: SelectedFile, response: requests.Response
    ) -> UploadOutcome:
        if not self.accept_archives:
            raise UploadError("Unexpected archive response from backend")
        path = self._write_download(f"{selected.stem}-images.zip", response.content)
        return UploadOutcome(
            success=True,
            message=f"Success! {selected.name} -> ZIP downloaded",
            downloaded_path=path,
        )

    def _write_download(self, name: str, content: bytes) -> Path:
        self.download_dir.mkdir(parents=True, exist_ok=True)
        path = self.download_dir / name
        path.write_bytes(content)
        logger.info("Saved %s (%d bytes)", path, len(content))
        return path

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return "Conversion failed"
        if not isinstance(body, dict):
            return "Conversion failed"
        return body.get("error") or body.get("message") or "Conversion failed"
