"""
Tests for PDF extraction, fallback results, summaries, and chunking.
"""

from unittest.mock import MagicMock, patch

import pytest

from chatmux.api.multimodal.pdf_extractor import (
    MAX_FILE_SIZE_BYTES,
    PdfExtractionError,
    extract_pdf,
)
from chatmux.documents.pdf_processor import (
    chunk_pdf_text,
    extract_text_from_pdf,
    fallback_text,
    format_file_size,
    generate_pdf_summary,
    is_pdf_file,
)
from chatmux.retrieval.types import PdfPage, PdfProcessingResult


def _fake_pdf(page_texts, metadata=None):
    pages = []
    for text in page_texts:
        page = MagicMock()
        if isinstance(text, Exception):
            page.extract_text.side_effect = text
        else:
            page.extract_text.return_value = text
        pages.append(page)
    pdf = MagicMock()
    pdf.pages = pages
    pdf.metadata = metadata or {}
    pdf.__enter__.return_value = pdf
    pdf.__exit__.return_value = False
    return pdf


def _result(text, page_count=1, pages=None, metadata=None, succeeded=True):
    return PdfProcessingResult(
        text=text,
        page_count=page_count,
        pages=pages or (PdfPage(1, text, len(text.split())),),
        file_name="doc.pdf",
        file_size=len(text),
        metadata=metadata or {},
        extraction_succeeded=succeeded,
    )


class TestExtractPdf:

    def test_rejects_empty_and_non_pdf(self):
        with pytest.raises(PdfExtractionError, match="Empty"):
            extract_pdf(b"", "a.pdf")
        with pytest.raises(PdfExtractionError, match="not a valid PDF"):
            extract_pdf(b"hello world", "a.pdf")

    def test_rejects_oversized(self):
        with pytest.raises(PdfExtractionError, match="10MB"):
            extract_pdf(b"%PDF" + b"0" * MAX_FILE_SIZE_BYTES, "big.pdf")

    def test_pages_metadata_and_page_errors(self):
        fake = _fake_pdf(
            ["First page text", RuntimeError("bad glyph"), "Third page"],
            metadata={"Title": "Report", "Author": b"Ada", "Producer": "ignored"},
        )
        with patch("chatmux.api.multimodal.pdf_extractor.pdfplumber.open", return_value=fake):
            result = extract_pdf(b"%PDF-1.4 body", "report.pdf")

        assert result.page_count == 3
        assert result.pages[1].text == "[Error extracting page 2]"
        assert result.pages[0].word_count == 3
        assert result.metadata == {"Title": "Report", "Author": "Ada"}
        assert result.text.startswith("First page text\n\n")

    def test_unreadable_document(self):
        with patch(
            "chatmux.api.multimodal.pdf_extractor.pdfplumber.open",
            side_effect=ValueError("broken xref"),
        ):
            with pytest.raises(PdfExtractionError, match="Unable to read PDF"):
                extract_pdf(b"%PDF-1.4", "broken.pdf")


class TestExtractTextFromPdf:

    def test_failure_produces_fallback_result(self):
        def failing(data, file_name):
            raise PdfExtractionError("nope")

        result = extract_text_from_pdf(b"12345", "scan.pdf", "application/pdf", extractor=failing)

        assert result.extraction_succeeded is False
        assert result.page_count == 1
        assert result.text == fallback_text("scan.pdf", 5, "application/pdf")
        assert result.metadata == {"Title": "scan", "Author": "Unknown"}

    def test_success_passes_through(self):
        expected = _result("hello")
        assert extract_text_from_pdf(b"x", "doc.pdf", extractor=lambda d, n: expected) is expected


class TestHelpers:

    @pytest.mark.parametrize(
        "name, content_type, expected",
        [
            ("a.PDF", None, True),
            ("a.txt", "application/pdf", True),
            ("a.txt", "text/plain", False),
        ],
    )
    def test_is_pdf_file(self, name, content_type, expected):
        assert is_pdf_file(name, content_type) is expected

    @pytest.mark.parametrize(
        "size, expected",
        [(0, "0 Bytes"), (512, "512 Bytes"), (1536, "1.5 KB"), (2 * 1024 * 1024, "2 MB")],
    )
    def test_format_file_size(self, size, expected):
        assert format_file_size(size) == expected


class TestSummary:

    def test_full_extraction(self):
        text = "This is a long enough first line of text\nshort\nAnother sufficiently long line here"
        summary = generate_pdf_summary(_result(
            text,
            metadata={"Title": "Guide", "Author": "undefined", "CreationDate": "D:20230415120000"},
        ))

        assert "• **Pages:** 1" in summary
        assert "• **Title:** Guide" in summary
        assert "Author" not in summary
        assert "• **Created:** 4/15/2023" in summary
        assert "This is a long enough first line of text Another sufficiently long line here" in summary
        assert "✅ **Status:** Successfully extracted text from all 1 pages." in summary

    def test_partial_extraction(self):
        pages = (PdfPage(1, "ok text", 2), PdfPage(2, "[Error extracting page 2]", 4))
        summary = generate_pdf_summary(_result("ok text", page_count=2, pages=pages))
        assert "Successfully extracted text from 1 of 2 pages." in summary

    def test_failed_extraction(self):
        summary = generate_pdf_summary(_result("fallback", succeeded=False))
        assert "Text extraction failed" in summary


class TestChunking:

    def test_chunks_with_page_ranges(self):
        chunks = chunk_pdf_text(_result("a" * 5000, page_count=5), chunk_size=2000)

        assert [len(c.text) for c in chunks] == [2000, 2000, 1000]
        assert [(c.start_page, c.end_page) for c in chunks] == [(1, 3), (3, 5), (5, 5)]

    def test_empty_text(self):
        assert chunk_pdf_text(_result("")) == []

    def test_invalid_chunk_size(self):
        with pytest.raises(ValueError):
            chunk_pdf_text(_result("abc"), chunk_size=0)
