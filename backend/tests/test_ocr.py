"""
Tests for document ingestion and text extraction helpers.
"""
import asyncio

import pytest
from PIL import Image

from core.ocr import DocumentContent, DocumentType, OCRError, OCRProcessor, PageContent


@pytest.fixture
def processor() -> OCRProcessor:
    return OCRProcessor()


class TestTextFiles:

    def test_text_file_is_read_directly(self, processor, tmp_path, sample_lease_text):
        path = tmp_path / "lease.txt"
        path.write_text(sample_lease_text, encoding="utf-8")

        content = asyncio.run(processor.extract(path, "doc-1"))

        assert content.document_type == DocumentType.TEXT
        assert content.total_pages == 1
        assert content.overall_confidence == 1.0
        assert content.get_full_text() == sample_lease_text

    def test_blank_text_file_is_not_retried(self, processor, tmp_path):
        path = tmp_path / "blank.txt"
        path.write_text("  \n ", encoding="utf-8")

        with pytest.raises(OCRError, match="Text file is empty"):
            asyncio.run(processor.extract(path, "doc-2"))


class TestPdfHelpers:

    def test_unreadable_pdf_is_treated_as_scanned(self, processor, tmp_path):
        path = tmp_path / "broken.pdf"
        path.write_bytes(b"not really a pdf")

        assert processor._detect_document_type(path) == DocumentType.SCANNED

    def test_parse_ocr_result(self, processor):
        ocr_data = {
            "conf": ["96", "-1", "80", "90"],
            "text": ["Rent", "", "is", " "],
        }

        text, confidence = processor._parse_ocr_result(ocr_data)

        assert text == "Rent is"
        assert confidence == pytest.approx(0.88)

    def test_overall_confidence_is_weighted_by_length(self, processor):
        pages = [
            PageContent(page_number=1, text="abc", confidence=1.0, is_scanned=False),
            PageContent(page_number=2, text="", confidence=0.0, is_scanned=True),
        ]

        assert processor._calculate_overall_confidence(pages) == pytest.approx(0.8)
        assert processor._calculate_overall_confidence([]) == 0.0

    def test_preprocess_produces_binary_grayscale(self, processor):
        image = Image.new("RGB", (8, 8), "white")

        result = processor._preprocess_image(image)

        assert result.mode == "L"
        assert set(result.getdata()) <= {0, 255}


def test_full_text_skips_empty_pages():
    content = DocumentContent(
        document_id="doc-3",
        filename="scan.pdf",
        document_type=DocumentType.HYBRID,
        pages=[
            PageContent(page_number=1, text="First page", confidence=0.9, is_scanned=False),
            PageContent(page_number=2, text="", confidence=0.0, is_scanned=True),
            PageContent(page_number=3, text="Third page", confidence=0.8, is_scanned=True),
        ],
        overall_confidence=0.85,
    )

    assert content.get_full_text() == "First page\n\nThird page"
    assert content.total_pages == 3
