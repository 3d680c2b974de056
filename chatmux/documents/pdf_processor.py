"""PDF processing for grounded chat.

Architectural role:
    Wraps the extraction collaborator with a guaranteed well-formed result and
    derives the user-facing summary and fixed-size text chunks from it.

Failure handling:
    `extract_text_from_pdf` never raises. Any extraction failure produces a
    fallback `PdfProcessingResult` whose text is a troubleshooting message
    naming the file, its size, and its type (one page, page count 1), so
    summary, chunking, and PDF grounding always receive valid input.

Determinism:
    Summary and chunking are pure functions of the result.
"""

import logging
import re
from datetime import datetime
from typing import Callable

from chatmux.api.multimodal.pdf_extractor import PAGE_ERROR_MARKER, extract_pdf
from chatmux.retrieval.types import PdfChunk, PdfPage, PdfProcessingResult


logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"
DEFAULT_CHUNK_SIZE = 2000
PREVIEW_CHARS = 400
PREVIEW_LINES = 3
PREVIEW_MIN_LINE_CHARS = 20

_PDF_DATE = re.compile(r"^D:(\d{4})(\d{2})?(\d{2})?")


def is_pdf_file(file_name: str, content_type: str | None = None) -> bool:
    return content_type == PDF_CONTENT_TYPE or file_name.lower().endswith(".pdf")


def format_file_size(size: int) -> str:
    """Human-readable size: `0 Bytes`, `512 Bytes`, `1.5 KB`, `2 MB`."""
    if size <= 0:
        return "0 Bytes"
    units = ("Bytes", "KB", "MB", "GB")
    value = float(size)
    exponent = 0
    while value >= 1024 and exponent < len(units) - 1:
        value /= 1024
        exponent += 1
    return f"{round(value, 2):g} {units[exponent]}"


def fallback_text(file_name: str, file_size: int, content_type: str | None) -> str:
    return f"""📄 **{file_name}** - Processing Issue

I encountered an issue while extracting text from this PDF document. This could be due to:

• **Scanned PDF**: The document may be image-based and requires OCR (Optical Character Recognition)
• **Protected PDF**: The document may have security restrictions preventing text extraction
• **Complex Layout**: The PDF may have a complex layout with tables, images, or special formatting
• **Corrupted File**: The file may be damaged or have encoding issues
• **Large File**: Very large PDFs may timeout during processing

**Troubleshooting Steps:**
1. **Try a different PDF**: Upload a text-based PDF document
2. **Check file size**: Ensure the PDF is under 10MB for optimal processing
3. **Verify format**: Make sure the file is a valid PDF document
4. **Test with simple PDF**: Try uploading a basic text document first

**File Information:**
• **Name**: {file_name}
• **Size**: {format_file_size(file_size)}
• **Type**: {content_type or "unknown"}

**What you can still do:**
Even though text extraction failed, you can still:
• Describe the document content to me manually
• Ask questions about PDF-related topics
• Try uploading a different PDF document
• Tell me what type of document this is and I can provide relevant information

I'm ready to help with any questions you have about documents or PDF processing!"""


def fallback_result(
    file_name: str,
    file_size: int,
    content_type: str | None = None,
) -> PdfProcessingResult:
    """Well-formed single-page result carrying the troubleshooting text."""
    text = fallback_text(file_name, file_size, content_type)
    title = file_name[:-4] if file_name.lower().endswith(".pdf") else file_name
    return PdfProcessingResult(
        text=text,
        page_count=1,
        pages=(PdfPage(page_number=1, text=text, word_count=len(text.split())),),
        file_name=file_name,
        file_size=file_size,
        metadata={"Title": title, "Author": "Unknown"},
        extraction_succeeded=False,
    )


def extract_text_from_pdf(
    data: bytes,
    file_name: str,
    content_type: str | None = None,
    extractor: Callable[[bytes, str], PdfProcessingResult] = extract_pdf,
) -> PdfProcessingResult:
    """Extract PDF text, substituting the fallback result on any failure.

    Args:
        data: Raw PDF bytes.
        file_name: Original file name.
        content_type: Declared MIME type, used only in the fallback text.
        extractor: Extraction collaborator; defaults to the pdfplumber extractor.
    """
    try:
        return extractor(data, file_name)
    except Exception:
        logger.exception("PDF extraction failed for %s; using fallback content", file_name)
        return fallback_result(file_name, len(data), content_type)


def _format_creation_date(value: str) -> str | None:
    match = _PDF_DATE.match(value)
    if match:
        year, month, day = match.group(1), match.group(2) or "01", match.group(3) or "01"
        try:
            parsed = datetime(int(year), int(month), int(day))
        except ValueError:
            return None
    else:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    return f"{parsed.month}/{parsed.day}/{parsed.year}"


def generate_pdf_summary(result: PdfProcessingResult) -> str:
    """Summarize page/word statistics, metadata, preview, and extraction status."""
    total_words = sum(page.word_count for page in result.pages)
    average = round(total_words / result.page_count) if result.page_count > 0 else 0

    lines = [
        "📄 **PDF Document Analysis**",
        "",
        f"• **Pages:** {result.page_count}",
        f"• **Total Words:** {total_words:,}",
    ]
    if result.page_count > 0:
        lines.append(f"• **Average Words per Page:** {average}")

    if result.metadata:
        lines.append("")
        lines.append("**Document Information:**")
        for key in ("Title", "Author", "Subject", "Creator"):
            value = result.metadata.get(key)
            if value and value != "undefined":
                lines.append(f"• **{key}:** {value}")
        created = result.metadata.get("CreationDate")
        if created:
            formatted = _format_creation_date(str(created))
            if formatted:
                lines.append(f"• **Created:** {formatted}")

    if result.text:
        candidate_lines = [
            line.strip()
            for line in result.text.split("\n")
            if len(line.strip()) > PREVIEW_MIN_LINE_CHARS
        ]
        preview = " ".join(candidate_lines[:PREVIEW_LINES])[:PREVIEW_CHARS]
        suffix = "..." if len(result.text) > PREVIEW_CHARS else ""
        lines.append("")
        lines.append("**Content Preview:**")
        lines.append(f"{preview}{suffix}")

    successful = sum(1 for page in result.pages if PAGE_ERROR_MARKER not in page.text)
    lines.append("")
    if not result.extraction_succeeded:
        lines.append("⚠️ **Note:** Text extraction failed; showing troubleshooting information.")
    elif successful < result.page_count:
        lines.append(
            f"⚠️ **Note:** Successfully extracted text from {successful} of "
            f"{result.page_count} pages."
        )
    else:
        lines.append(
            f"✅ **Status:** Successfully extracted text from all {result.page_count} pages."
        )

    return "\n".join(lines)


def chunk_pdf_text(
    result: PdfProcessingResult,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> list[PdfChunk]:
    """Split text into fixed-size chunks with an estimated page range.

    Page ranges assume characters are spread evenly across pages and are
    clamped to `[1, page_count]`.

    Raises:
        ValueError: For a non-positive `chunk_size`.
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")

    text = result.text
    if not text:
        return []

    page_count = max(1, result.page_count)
    chars_per_page = len(text) / page_count

    chunks = []
    for start in range(0, len(text), chunk_size):
        start_page = int(start // chars_per_page) + 1
        end_page = int((start + chunk_size) // chars_per_page) + 1
        chunks.append(PdfChunk(
            text=text[start:start + chunk_size],
            start_page=max(1, min(page_count, start_page)),
            end_page=max(1, min(page_count, end_page)),
        ))
    return chunks
