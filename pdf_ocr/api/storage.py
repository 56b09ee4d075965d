"""Scoped temporary storage for uploaded files.

Every upload is written under a generated name and removed when the
``stored_upload`` block exits, whatever the outcome of the request.
"""

import os
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO

from pdf_ocr.utils.config import UploadConfig
from pdf_ocr.utils.logger import get_logger

logger = get_logger(__name__)

_CHUNK_SIZE = 1024 * 1024


class UploadTooLargeError(ValueError):
    """Raised when an upload exceeds the configured size limit."""


def _copy_limited(source: BinaryIO, target: Path, max_bytes: int) -> int:
    written = 0
    with open(target, "wb") as out:
        while chunk := source.read(_CHUNK_SIZE):
            written += len(chunk)
            if written > max_bytes:
                raise UploadTooLargeError(
                    f"Upload exceeds the {max_bytes} byte limit"
                )
            out.write(chunk)
    return written


def _discard(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("Could not delete temporary upload %s: %s", path, exc)
    else:
        logger.debug("Deleted temporary upload %s", path)


@contextmanager
def stored_upload(source: BinaryIO, config: UploadConfig) -> Iterator[Path]:
    """Write an upload stream to the upload directory for the duration of a block.

    Args:
        source: Readable binary stream with the upload content.
        config: Upload settings (directory and size limit).

    Yields:
        Path of the stored file.

    Raises:
        UploadTooLargeError: If the stream is larger than ``config.max_bytes``.
    """
    upload_dir = Path(config.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    path = upload_dir / f"{uuid.uuid4().hex}.pdf"

    try:
        size = _copy_limited(source, path, config.max_bytes)
        logger.debug("Stored upload at %s (%d bytes)", path, size)
        yield path
    finally:
        _discard(path)


def upload_dir_is_writable(config: UploadConfig) -> bool:
    """Report whether the upload directory exists and accepts new files."""
    upload_dir = Path(config.upload_dir)
    try:
        upload_dir.mkdir(parents=True, exist_ok=True)
    except OSError:
        return False
    return os.access(upload_dir, os.W_OK | os.X_OK)
