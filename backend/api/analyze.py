"""
ClauseLens Analyze API
======================
Orchestrates the full document analysis pipeline.
Combines text extraction, clause classification, term extraction and the
optional generative summary/questions.
"""

import logging
from datetime import datetime
from functools import lru_cache
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, status

from api.upload import generate_document_id, get_document_or_404, new_document_record
from core import (
    DocumentAnalysis,
    DocumentProcessor,
    ExternalServiceError,
    OCRError,
    OCRProcessor,
)
from schemas import (
    AnalysisSchema,
    AnalysisStatusEnum,
    AnalyzeRequest,
    AnalyzeResponse,
    AnalyzeTextRequest,
    DocumentStatusResponse,
    ErrorResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/analyze", tags=["Analyze"])


@lru_cache
def get_document_processor() -> DocumentProcessor:
    """Shared pipeline instance (overridable in tests)."""
    return DocumentProcessor()


def convert_analysis_to_schema(analysis: DocumentAnalysis) -> AnalysisSchema:
    """Convert internal analysis to API schema."""
    return AnalysisSchema.model_validate(analysis.to_dict())


async def extract_document_text(document_id: str, file_path: Path) -> str:
    """
    Extract plain text from a stored upload.

    Raises:
        OCRError: If the document has no usable text
        ExternalServiceError: If extraction keeps failing or timing out
    """
    logger.info(f"[{document_id}] Step 1: Text extraction")
    document_content = await OCRProcessor().extract(file_path, document_id)
    logger.info(
        f"[{document_id}] Extraction complete: {document_content.total_pages} pages, "
        f"type: {document_content.document_type.value}, "
        f"confidence: {document_content.overall_confidence:.2f}"
    )
    return document_content.get_full_text()


def _completed_response(doc: dict, processing_time: float | None) -> AnalyzeResponse:
    analysis: DocumentAnalysis = doc["analysis"]
    return AnalyzeResponse(
        document_id=doc["document_id"],
        status=AnalysisStatusEnum.COMPLETED,
        analysis=convert_analysis_to_schema(analysis),
        processing_time_seconds=processing_time
    )


@router.post(
    "/text",
    response_model=AnalyzeResponse,
    responses={
        422: {"model": ErrorResponse, "description": "Invalid request body"}
    },
    summary="Analyze raw text",
    description="""
    Analyze document text supplied directly in the request body.

    The result is stored under a new `document_id`, so clauses, terms and the
    summary can be fetched again through the `/documents` endpoints.
    """
)
async def analyze_text(
    request: AnalyzeTextRequest,
    processor: DocumentProcessor = Depends(get_document_processor)
) -> AnalyzeResponse:
    """Analyze raw text and return the complete analysis."""
    document_id = generate_document_id()
    doc = new_document_record(
        document_id,
        filename="inline.txt",
        content_type="text/plain",
        file_size_bytes=len(request.text.encode("utf-8")),
        text=request.text
    )
    doc["status"] = AnalysisStatusEnum.PROCESSING
    doc["analysis_started_at"] = datetime.utcnow()

    try:
        analysis = await processor.process(
            request.text,
            document_id=document_id,
            language=request.language,
            include_generative=request.include_generative
        )
    except Exception as e:
        doc["status"] = AnalysisStatusEnum.FAILED
        doc["error_message"] = str(e)
        raise

    doc["status"] = AnalysisStatusEnum.COMPLETED
    doc["analysis_completed_at"] = datetime.utcnow()
    doc["analysis"] = analysis

    return _completed_response(doc, analysis.processing_time_seconds)


@router.post(
    "/{document_id}",
    response_model=AnalyzeResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Document not found"},
        409: {"model": ErrorResponse, "description": "Analysis already in progress"},
        422: {"model": ErrorResponse, "description": "Text extraction failed"},
        500: {"model": ErrorResponse, "description": "Analysis failed"}
    },
    summary="Analyze a document",
    description="""
    Run analysis of an uploaded document.

    Pipeline:
    1. **Text Extraction**: Read the text file, or extract text from the PDF (native or scanned)
    2. **Clause Classification**: Segment, type and risk-score up to 10 clauses
    3. **Term Extraction**: Financial amounts, dates, notice periods, penalties
    4. **Summary & Questions**: Generative when configured, local fallback otherwise

    A completed analysis is cached and returned again without reprocessing.
    """
)
async def analyze_document(
    document_id: str,
    request: AnalyzeRequest | None = None,
    processor: DocumentProcessor = Depends(get_document_processor)
) -> AnalyzeResponse:
    """
    Analyze an uploaded document and return the analysis.
    """
    doc = get_document_or_404(document_id)
    request = request or AnalyzeRequest()

    if doc["status"] == AnalysisStatusEnum.PROCESSING:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "error": "AnalysisInProgress",
                "message": "Document analysis is already in progress.",
                "details": {
                    "document_id": document_id,
                    "started_at": str(doc.get("analysis_started_at"))
                }
            }
        )

    if doc["status"] == AnalysisStatusEnum.COMPLETED and doc.get("analysis"):
        return _completed_response(doc, None)

    doc["status"] = AnalysisStatusEnum.PROCESSING
    doc["analysis_started_at"] = datetime.utcnow()

    try:
        text = doc.get("text")
        if not text:
            file_path = Path(doc["file_path"])
            if not file_path.exists():
                raise FileNotFoundError(f"Document file not found: {file_path}")
            text = await extract_document_text(document_id, file_path)
            doc["text"] = text

        analysis = await processor.process(
            text,
            document_id=document_id,
            language=request.language,
            include_generative=request.include_generative
        )

    except (OCRError, ExternalServiceError) as e:
        logger.error(f"Text extraction failed for {document_id}: {e}")
        doc["status"] = AnalysisStatusEnum.FAILED
        doc["error_message"] = str(e)

        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={
                "error": "ExtractionError",
                "message": str(e),
                "details": {
                    "document_id": document_id,
                    "suggestion": "Document may be too low quality. Try uploading a higher resolution scan or a text file."
                }
            }
        )

    except Exception as e:
        logger.exception(f"Analysis failed for {document_id}")
        doc["status"] = AnalysisStatusEnum.FAILED
        doc["error_message"] = str(e)

        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "AnalysisFailed",
                "message": f"Document analysis failed: {str(e)}",
                "details": {"document_id": document_id}
            }
        )

    doc["status"] = AnalysisStatusEnum.COMPLETED
    doc["analysis_completed_at"] = datetime.utcnow()
    doc["analysis"] = analysis
    doc["error_message"] = None

    logger.info(f"Document {document_id} analysis completed successfully")
    return _completed_response(doc, analysis.processing_time_seconds)


@router.get(
    "/{document_id}/status",
    response_model=DocumentStatusResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Document not found"}
    },
    summary="Get analysis status",
    description="Check the current status of a document analysis."
)
async def get_analysis_status(document_id: str) -> DocumentStatusResponse:
    """Get the current status of document analysis."""
    doc = get_document_or_404(document_id)

    return DocumentStatusResponse(
        document_id=doc["document_id"],
        filename=doc["filename"],
        status=doc["status"],
        upload_timestamp=doc["upload_timestamp"],
        analysis_started_at=doc.get("analysis_started_at"),
        analysis_completed_at=doc.get("analysis_completed_at"),
        error_message=doc.get("error_message")
    )
