"""
ClauseLens Documents API
========================
Direct access to the results of a completed analysis.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from api.analyze import get_document_processor
from api.upload import get_document_or_404
from core import DocumentAnalysis, DocumentProcessor, TermCategory
from core.clause_extractor import type_distribution
from schemas import (
    AnalysisStatusEnum,
    AskRequest,
    AskResponse,
    ClausesResponse,
    ErrorResponse,
    SummaryResponse,
    TermCategoryEnum,
    TermsResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/documents", tags=["Documents"])

NOT_FOUND_OR_INCOMPLETE = {
    404: {"model": ErrorResponse, "description": "Document not found"},
    400: {"model": ErrorResponse, "description": "Analysis not complete"}
}

TERM_GROUPS = {
    TermCategory.FINANCIAL: "financial",
    TermCategory.DATE: "dates",
    TermCategory.NOTICE: "notices",
    TermCategory.PENALTY: "penalties",
}


def get_completed_analysis(document_id: str) -> DocumentAnalysis:
    """
    Fetch the analysis of a document.

    Raises:
        HTTPException: 404 for unknown documents, 400 when analysis is not complete
    """
    doc = get_document_or_404(document_id)

    if doc["status"] != AnalysisStatusEnum.COMPLETED or doc.get("analysis") is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "AnalysisNotComplete",
                "message": f"Document analysis is not complete. Status: {doc['status'].value}",
                "details": {
                    "current_status": doc["status"].value,
                    "error_message": doc.get("error_message")
                }
            }
        )

    return doc["analysis"]


@router.get(
    "/{document_id}/clauses",
    response_model=ClausesResponse,
    responses=NOT_FOUND_OR_INCOMPLETE,
    summary="Get classified clauses",
    description="Clauses of an analyzed document with type, confidence and risk."
)
async def get_clauses(document_id: str) -> ClausesResponse:
    """Get the classified clauses of a document."""
    analysis = get_completed_analysis(document_id)

    return ClausesResponse.model_validate({
        "documentId": document_id,
        "documentType": analysis.document_type.value,
        "totalClauses": len(analysis.clauses),
        "typeDistribution": type_distribution(analysis.clauses),
        "clauses": [c.to_dict() for c in analysis.clauses]
    })


@router.get(
    "/{document_id}/terms",
    response_model=TermsResponse,
    responses=NOT_FOUND_OR_INCOMPLETE,
    summary="Get extracted terms",
    description="Financial amounts, dates, notice periods and penalties found in the document."
)
async def get_terms(
    document_id: str,
    category: TermCategoryEnum | None = Query(None, description="Only return one term category")
) -> TermsResponse:
    """Get extracted terms, optionally filtered to one category."""
    analysis = get_completed_analysis(document_id)
    terms = analysis.terms.to_dict()

    if category is not None:
        keep = TERM_GROUPS[TermCategory(category.value)]
        terms = {group: items if group == keep else [] for group, items in terms.items()}

    return TermsResponse.model_validate({
        "documentId": document_id,
        "category": category,
        "total": sum(len(items) for items in terms.values()),
        "terms": terms
    })


@router.get(
    "/{document_id}/summary",
    response_model=SummaryResponse,
    responses=NOT_FOUND_OR_INCOMPLETE,
    summary="Get summary and questions",
    description="Structured summary, its parsed sections and suggested questions."
)
async def get_summary(document_id: str) -> SummaryResponse:
    """Get the summary of a document."""
    analysis = get_completed_analysis(document_id)

    return SummaryResponse.model_validate({
        "documentId": document_id,
        "language": analysis.language,
        "summary": analysis.summary,
        "sections": [s.to_dict() for s in analysis.summary_sections],
        "questions": analysis.questions,
        "summarySource": analysis.summary_source,
        "questionsSource": analysis.questions_source
    })


@router.post(
    "/{document_id}/ask",
    response_model=AskResponse,
    responses=NOT_FOUND_OR_INCOMPLETE,
    summary="Ask a question",
    description="Answer a free-form question using the document text as context."
)
async def ask_question(
    document_id: str,
    request: AskRequest,
    processor: DocumentProcessor = Depends(get_document_processor)
) -> AskResponse:
    """Answer a question about an analyzed document."""
    analysis = get_completed_analysis(document_id)
    doc = get_document_or_404(document_id)
    language = request.language or analysis.language

    logger.info(f"[{document_id}] Answering question in '{language}'")
    answer = await processor.answer(request.question, doc.get("text") or "", language)

    return AskResponse(
        document_id=document_id,
        question=request.question,
        answer=answer,
        language=language
    )
