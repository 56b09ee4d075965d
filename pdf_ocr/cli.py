"""Command-line interface for the PDF OCR service.

Subcommands run the HTTP server, upload a PDF to a running server, or run
the OCR pipeline locally without HTTP.
"""

import argparse
import json
import sys
from pathlib import Path

from pdf_ocr.api.schemas import build_extraction_response
from pdf_ocr.client.uploader import DEFAULT_BACKEND_URL, PdfUploadClient
from pdf_ocr.main import OCRServer
from pdf_ocr.ocr.document_processor import DocumentProcessor
from pdf_ocr.utils.config import load_config
from pdf_ocr.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


def serve(host: str | None = None, port: int | None = None) -> None:
    """Run the API server until interrupted.

    Args:
        host: Bind address overriding the configuration.
        port: Listen port overriding the configuration and ``PORT``.
    """
    config = load_config()
    setup_logging(config.log_level)
    if host is not None:
        config.server.host = host
    if port is not None:
        config.server.port = port
    OCRServer(config).start()


def upload_file(
    file_path: Path,
    backend_url: str = DEFAULT_BACKEND_URL,
    output: Path | None = None,
    download_dir: Path | None = None,
    accept_archives: bool = False,
) -> int:
    """Upload a PDF to a running server and print the result.

    Args:
        file_path: PDF file to upload.
        backend_url: URL of the ``/ocr`` endpoint.
        output: File to write the extracted text to instead of stdout.
        download_dir: Directory for archives sent by legacy backends.
        accept_archives: Save legacy ZIP archives instead of failing.

    Returns:
        Process exit code: 0 on success, 1 on failure.
    """
    client = PdfUploadClient(
        backend_url=backend_url,
        download_dir=download_dir,
        accept_archives=accept_archives,
    )
    selected = client.select_file(file_path)
    print(f"Selected: {selected.name} ({selected.size_mb:.2f} MB)")

    outcome = client.upload()
    print(outcome.message)
    if not outcome.success:
        return 1

    if outcome.downloaded_path:
        print(f"Downloaded: {outcome.downloaded_path}")
    if outcome.extracted_text:
        if output:
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_text(outcome.extracted_text)
            print(f"Output written to {output}")
        else:
            print(outcome.extracted_text)
    return 0


def extract_local(file_path: Path) -> dict[str, object]:
    """Run the OCR pipeline on a local PDF without going through HTTP.

    Args:
        file_path: Path to the PDF file.

    Returns:
        The same JSON body the ``/ocr`` endpoint would return.
    """
    config = load_config()
    doc_result = DocumentProcessor(config).process(file_path, file_path.name)
    return build_extraction_response(doc_result).model_dump(by_alias=True)


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate command.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    parser = argparse.ArgumentParser(
        description="PDF OCR text extraction",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    serve_parser = subparsers.add_parser("serve", help="Run the OCR API server")
    serve_parser.add_argument("--host", help="Bind address (default: from config)")
    serve_parser.add_argument(
        "-p", "--port", type=int, help="Listen port (default: $PORT or 3000)"
    )

    upload_parser = subparsers.add_parser(
        "upload", help="Upload a PDF to a running server"
    )
    upload_parser.add_argument("file", type=Path, help="PDF file to upload")
    upload_parser.add_argument(
        "-u",
        "--url",
        default=DEFAULT_BACKEND_URL,
        help=f"OCR endpoint URL (default: {DEFAULT_BACKEND_URL})",
    )
    upload_parser.add_argument("-o", "--output", type=Path, help="Output text file")
    upload_parser.add_argument(
        "-d", "--download-dir", type=Path, help="Directory for downloaded archives"
    )
    upload_parser.add_argument(
        "--accept-archives",
        action="store_true",
        help="Legacy compatibility: save ZIP archives returned by older servers",
    )

    extract_parser = subparsers.add_parser(
        "extract", help="Run OCR on a local PDF without a server"
    )
    extract_parser.add_argument("file", type=Path, help="PDF file to process")
    extract_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")

    args = parser.parse_args(argv)

    if args.command == "serve":
        serve(args.host, args.port)
        return

    # Results are printed to stdout, so logs go to stderr.
    setup_logging(stream=sys.stderr)

    if args.command in ("upload", "extract") and not args.file.exists():
        print(f"Error: {args.file} does not exist", file=sys.stderr)
        sys.exit(1)

    if args.command == "upload":
        sys.exit(
            upload_file(
                args.file,
                args.url,
                args.output,
                args.download_dir,
                args.accept_archives,
            )
        )
    elif args.command == "extract":
        try:
            result = extract_local(args.file)
        except Exception as exc:
            print(f"Error: {exc}", file=sys.stderr)
            sys.exit(1)
        output_str = json.dumps(result, indent=2)
        if args.output:
            args.output.parent.mkdir(parents=True, exist_ok=True)
            args.output.write_text(output_str)
            print(f"Output written to {args.output}")
        else:
            print(output_str)
    else:
        parser.print_help()
        sys.exit(0)


if __name__ == "__main__":
    main()
