"""
ClauseLens Text Extraction Module
=================================
Turns uploaded files into plain text for analysis.

Supports:
- Plain text files (read as UTF-8)
- Native (text-based) PDFs via pdfplumber
- Scanned PDFs via Tesseract OCR
- Hybrid PDFs, using OCR only on pages without a text layer

Extraction is treated as an external call: the public entry point runs it
under a timeout with retries.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import aiofiles
import pdfplumber
import pytesseract
from pdf2image import convert_from_path
from PIL import Image, ImageOps
from PyPDF2 import PdfReader

from core.config import get_settings
from core.resilience import call_with_retry

logger = logging.getLogger(__name__)
settings = get_settings()

# Configure Tesseract path
pytesseract.pytesseract.tesseract_cmd = settings.tesseract_path


class DocumentType(str, Enum):
    """Source format of an uploaded document."""
    TEXT = "text"  # Plain text file
    NATIVE = "native"  # Text-based PDF
    SCANNED = "scanned"  # Image-based PDF
    HYBRID = "hybrid"  # Mixed content


@dataclass
class PageContent:
    """Extracted content from a single page."""
    page_number: int
    text: str
    confidence: float
    is_scanned: bool


@dataclass
class DocumentContent:
    """Complete extracted document content."""
    document_id: str
    filename: str
    document_type: DocumentType
    pages: list[PageContent]
    overall_confidence: float
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def total_pages(self) -> int:
        return len(self.pages)

    def get_full_text(self) -> str:
        """Get concatenated text from all pages."""
        return "\n\n".join(page.text for page in self.pages if page.text)


class OCRError(Exception):
    """Raised when extraction fails or OCR confidence is too low."""
    pass


class OCRProcessor:
    """
    Extracts text from uploaded documents.

    This processor:
    1. Reads plain text files directly
    2. Detects if a PDF is scanned or native
    3. Applies the matching extraction method
    4. Rejects OCR output below the confidence threshold
    """

    def __init__(self):
        self.min_confidence = settings.ocr_confidence_threshold

    async def extract(self, file_path: Path, document_id: str) -> DocumentContent:
        """
        Extract a document under the extraction timeout and retry budget.

        Raises:
            OCRError: If the file yields no usable text
            ExternalServiceError: If every extraction attempt failed or timed out
        """
        return await call_with_retry(
            lambda: self.process_document(file_path, document_id),
            timeout=settings.extraction_timeout_seconds,
            retries=settings.extraction_retries,
            label="Text extraction",
            fatal=(OCRError,)
        )

    async def process_document(
        self,
        file_path: Path,
        document_id: str
    ) -> DocumentContent:
        """
        Process a document and extract all text content.

        Args:
            file_path: Path to the PDF or text file
            document_id: Unique identifier for the document

        Returns:
            DocumentContent with all extracted information

        Raises:
            OCRError: If no text is found or OCR confidence is below threshold
        """
        logger.info(f"Processing document: {file_path}")

        if file_path.suffix.lower() == ".txt":
            return await self._extract_text_file(file_path, document_id)

        doc_type = await asyncio.to_thread(self._detect_document_type, file_path)
        logger.info(f"Document type detected: {doc_type}")

        if doc_type == DocumentType.NATIVE:
            pages = await asyncio.to_thread(self._extract_native_pdf, file_path)
        elif doc_type == DocumentType.SCANNED:
            pages = await self._extract_scanned_pdf(file_path)
        else:
            pages = await self._extract_hybrid_pdf(file_path)

        overall_confidence = self._calculate_overall_confidence(pages)

        if overall_confidence < self.min_confidence:
            raise OCRError(
                f"OCR confidence {overall_confidence:.2f} is below threshold "
                f"{self.min_confidence}. Document may require manual review."
            )

        content = DocumentContent(
            document_id=document_id,
            filename=file_path.name,
            document_type=doc_type,
            pages=pages,
            overall_confidence=overall_confidence,
            metadata=await asyncio.to_thread(self._extract_metadata, file_path)
        )

        if not content.get_full_text().strip():
            raise OCRError("No readable text found in document")

        return content

    async def _extract_text_file(self, file_path: Path, document_id: str) -> DocumentContent:
        async with aiofiles.open(file_path, "r", encoding="utf-8", errors="replace") as f:
            text = await f.read()

        if not text.strip():
            raise OCRError("Text file is empty")

        return DocumentContent(
            document_id=document_id,
            filename=file_path.name,
            document_type=DocumentType.TEXT,
            pages=[PageContent(page_number=1, text=text, confidence=1.0, is_scanned=False)],
            overall_confidence=1.0,
            metadata={"file_size_bytes": file_path.stat().st_size}
        )

    def _detect_document_type(self, file_path: Path) -> DocumentType:
        """
        Detect whether a PDF is native text, scanned, or hybrid.

        Uses average extractable characters per page:
        - >500 = Native
        - <50 = Scanned
        - Between = Hybrid
        """
        try:
            reader = PdfReader(str(file_path))
            total_pages = len(reader.pages)
            total_chars = sum(len((page.extract_text() or "").strip()) for page in reader.pages)

            avg_chars = total_chars / total_pages if total_pages > 0 else 0

            if avg_chars > 500:
                return DocumentType.NATIVE
            elif avg_chars < 50:
                return DocumentType.SCANNED
            return DocumentType.HYBRID

        except Exception as e:
            logger.warning(f"Error detecting document type: {e}")
            return DocumentType.SCANNED  # Default to OCR

    def _extract_native_pdf(self, file_path: Path) -> list[PageContent]:
        """Extract text from a native text-based PDF using pdfplumber."""
        with pdfplumber.open(str(file_path)) as pdf:
            return [
                PageContent(
                    page_number=page_num,
                    text=page.extract_text() or "",
                    confidence=1.0,  # Native PDFs have perfect confidence
                    is_scanned=False
                )
                for page_num, page in enumerate(pdf.pages, start=1)
            ]

    async def _ocr_image(self, image: Image.Image) -> tuple[str, float]:
        ocr_result = await asyncio.to_thread(
            pytesseract.image_to_data,
            self._preprocess_image(image),
            output_type=pytesseract.Output.DICT,
            config='--oem 3 --psm 6'
        )
        return self._parse_ocr_result(ocr_result)

    async def _extract_scanned_pdf(self, file_path: Path) -> list[PageContent]:
        """Extract text from a scanned PDF using OCR."""
        images = await asyncio.to_thread(convert_from_path, str(file_path), dpi=300)

        pages = []
        for page_num, image in enumerate(images, start=1):
            text, confidence = await self._ocr_image(image)
            pages.append(PageContent(
                page_number=page_num,
                text=text,
                confidence=confidence,
                is_scanned=True
            ))

        return pages

    async def _extract_hybrid_pdf(self, file_path: Path) -> list[PageContent]:
        """Extract from hybrid PDF, using OCR where native extraction fails."""
        native_pages = await asyncio.to_thread(self._extract_native_pdf, file_path)

        pages = []
        images = None
        for i, page in enumerate(native_pages):
            if len(page.text.strip()) >= 100:
                pages.append(page)
                continue

            # Page likely needs OCR
            if images is None:
                images = await asyncio.to_thread(convert_from_path, str(file_path), dpi=300)

            text, confidence = await self._ocr_image(images[i])
            pages.append(PageContent(
                page_number=page.page_number,
                text=text,
                confidence=confidence,
                is_scanned=True
            ))

        return pages

    def _preprocess_image(self, image: Image.Image) -> Image.Image:
        """Grayscale, stretch contrast and binarize a page image."""
        gray = ImageOps.autocontrast(ImageOps.grayscale(image))
        return gray.point(lambda value: 255 if value > 160 else 0)

    def _parse_ocr_result(self, ocr_data: dict) -> tuple[str, float]:
        """Parse Tesseract OCR output and calculate confidence."""
        texts = []
        confidences = []

        for raw_conf, text in zip(ocr_data['conf'], ocr_data['text']):
            conf = float(raw_conf)
            if conf > 0 and text.strip():
                texts.append(text)
                confidences.append(conf)

        avg_confidence = sum(confidences) / len(confidences) if confidences else 0

        # Normalize confidence to 0-1 scale
        return ' '.join(texts), avg_confidence / 100.0

    def _extract_metadata(self, file_path: Path) -> dict[str, Any]:
        """Extract PDF metadata."""
        try:
            reader = PdfReader(str(file_path))
            info = reader.metadata

            return {
                "title": info.title if info and info.title else None,
                "author": info.author if info and info.author else None,
                "page_count": len(reader.pages),
                "file_size_bytes": file_path.stat().st_size
            }
        except Exception as e:
            logger.warning(f"Error extracting metadata: {e}")
            return {}

    def _calculate_overall_confidence(self, pages: list[PageContent]) -> float:
        """Calculate weighted average confidence across all pages."""
        if not pages:
            return 0.0

        # Weight by text length
        total_weight = 0
        weighted_confidence = 0.0

        for page in pages:
            weight = len(page.text) + 1  # +1 to avoid zero weight
            weighted_confidence += page.confidence * weight
            total_weight += weight

        return weighted_confidence / total_weight
