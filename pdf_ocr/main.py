"""Application entry point for the PDF OCR API server."""

import threading
import time

import uvicorn

from pdf_ocr.api.app import app
from pdf_ocr.utils.config import AppConfig, load_config
from pdf_ocr.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


class OCRServer:
    """Owns the listening HTTP server for the lifetime of the process.

    Args:
        config: Application configuration; ``config.server`` selects
            the bind address and port.
    """

    def __init__(self, config: AppConfig) -> None:
        self.config = config
        self._server = uvicorn.Server(
            uvicorn.Config(
                app,
                host=config.server.host,
                port=config.server.port,
                log_level=config.log_level.lower(),
            )
        )
        self._thread: threading.Thread | None = None

    @property
    def url(self) -> str:
        return f"http://localhost:{self.config.server.port}"

    @property
    def is_running(self) -> bool:
        return bool(self._server.started) and not self._server.should_exit

    def start(self, block: bool = True, startup_timeout: float = 10.0) -> None:
        """Start serving.

        Args:
            block: Serve on the calling thread until stopped. When ``False``
                the server runs on a background thread and this call returns
                once it is accepting connections.
            startup_timeout: Seconds to wait for a background server to start.

        Raises:
            RuntimeError: If the server is already running or fails to start
                within ``startup_timeout``.
        """
        if self._thread is not None or self._server.started:
            raise RuntimeError("Server is already running")

        logger.info("PDF OCR Server running on %s", self.url)
        logger.info("POST /ocr -> Extract text from PDF")
        if block:
            self._server.run()
            return

        self._thread = threading.Thread(
            target=self._server.run, name="pdf-ocr-server", daemon=True
        )
        self._thread.start()
        deadline = time.monotonic() + startup_timeout
        while not self._server.started:
            if not self._thread.is_alive() or time.monotonic() > deadline:
                self.stop()
                raise RuntimeError("Server failed to start")
            time.sleep(0.05)

    def stop(self, timeout: float = 10.0) -> None:
        """Ask the server to exit and wait for a background thread to finish."""
        self._server.should_exit = True
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("PDF OCR Server stopped")


def main() -> None:
    """Start the FastAPI application server."""
    config = load_config()
    setup_logging(config.log_level)
    OCRServer(config).start()


if __name__ == "__main__":
    main()
