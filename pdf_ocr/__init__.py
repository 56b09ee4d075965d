"""PDF OCR Text Extraction Service.

Rasterizes uploaded PDF pages with poppler, recognizes each page with
Tesseract, and returns the combined text with per-page confidence scores.
"""

__version__ = "1.0.0"
