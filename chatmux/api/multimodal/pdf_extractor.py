"""
PDF text extraction collaborator backed by pdfplumber.

Architectural role:
- Convert raw PDF bytes into per-page text, word counts, and document metadata.
- Enforce size and signature constraints before parsing.
- Serve both the `/api/pdf-extract` endpoint and in-process PDF uploads.

Processing lifecycle:
1. Validate size and the `%PDF` signature.
2. Open the document with `pdfplumber` from an in-memory buffer.
3. Extract text page by page; a failing page is marked, not fatal.
4. Return a `PdfProcessingResult` with joined text and page records.

Error handling strategy:
- Validation failures and unreadable documents raise `PdfExtractionError`.
- Per-page failures become an `[Error extracting page N]` marker so the
  summary can report partial extraction.
"""

import io
import logging

import pdfplumber

from chatmux.retrieval.types import PdfPage, PdfProcessingResult


logger = logging.getLogger(__name__)


# ============================================================
# CONFIG
# ============================================================

MAX_FILE_SIZE_MB = 10
MAX_FILE_SIZE_BYTES = MAX_FILE_SIZE_MB * 1024 * 1024
PDF_SIGNATURE = b"%PDF"
PAGE_ERROR_MARKER = "[Error extracting"

METADATA_FIELDS = ("Title", "Author", "Subject", "Creator", "CreationDate")


class PdfExtractionError(RuntimeError):
    """PDF bytes could not be validated or parsed."""


# ============================================================
# PUBLIC ENTRYPOINT
# ============================================================

def extract_pdf(data: bytes, file_name: str) -> PdfProcessingResult:
    """
    Extract text and metadata from PDF bytes.

    Raises:
        PdfExtractionError: Empty, oversized, non-PDF, or unreadable input.
    """
    _validate_pdf_bytes(data)

    try:
        with pdfplumber.open(io.BytesIO(data)) as pdf:
            pages = [
                _extract_page(page, number)
                for number, page in enumerate(pdf.pages, start=1)
            ]
            metadata = _normalize_metadata(pdf.metadata or {})
    except PdfExtractionError:
        raise
    except Exception as exc:
        raise PdfExtractionError(f"Unable to read PDF: {exc}") from exc

    text = "\n\n".join(page.text for page in pages if page.text).strip()

    return PdfProcessingResult(
        text=text,
        page_count=max(1, len(pages)),
        pages=tuple(pages),
        file_name=file_name,
        file_size=len(data),
        metadata=metadata,
        extraction_succeeded=True,
    )


# ============================================================
# INTERNAL HELPERS
# ============================================================

def _validate_pdf_bytes(data: bytes) -> None:
    if not data:
        raise PdfExtractionError("Empty file")

    if len(data) > MAX_FILE_SIZE_BYTES:
        raise PdfExtractionError(f"File exceeds {MAX_FILE_SIZE_MB}MB limit")

    if data.lstrip()[:4] != PDF_SIGNATURE:
        raise PdfExtractionError("File is not a valid PDF document")


def _extract_page(page, number: int) -> PdfPage:
    try:
        text = (page.extract_text() or "").strip()
    except Exception:
        logger.exception("Failed to extract text from page %s", number)
        text = f"{PAGE_ERROR_MARKER} page {number}]"
    return PdfPage(page_number=number, text=text, word_count=len(text.split()))


def _normalize_metadata(raw: dict) -> dict:
    """Keep the document-information fields the summary reports, as strings."""
    metadata = {}
    for key in METADATA_FIELDS:
        value = raw.get(key)
        if value is None:
            continue
        if isinstance(value, bytes):
            value = value.decode("utf-8", errors="replace")
        value = str(value).strip()
        if value:
            metadata[key] = value
    return metadata
