"""
ClauseLens Document Processor
=============================
Runs the full analysis for one document's text.

Pipeline steps:
1. Language (explicit, detected, or English)
2. Local analysis: document type, clauses, terms (worker thread)
3. Generative summary and questions, concurrently, each with a local fallback

Nothing in steps 1-2 can fail the pipeline; step 3 only ever degrades.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from core.clause_extractor import ClassifiedClause, ClauseExtractor
from core.config import DEFAULT_LANGUAGE
from core.document_type import DocumentCategory, detect_document_type
from core.generative import (
    GenerativeClient,
    GenerativeError,
    SummarySection,
    build_fallback_summary,
    parse_summary_sections,
)
from core.resilience import ExternalServiceError
from core.taxonomy import FALLBACK_QUESTIONS
from core.term_extractor import ExtractedTerms, extract_all_terms

logger = logging.getLogger(__name__)

SOURCE_GENERATIVE = "generative"
SOURCE_FALLBACK = "fallback"


@dataclass
class DocumentAnalysis:
    """Complete analysis of a single document."""
    document_id: str
    document_type: DocumentCategory
    language: str
    language_confidence: float
    clauses: list[ClassifiedClause]
    terms: ExtractedTerms
    summary: str
    questions: list[str]
    summary_source: str = SOURCE_FALLBACK
    questions_source: str = SOURCE_FALLBACK
    analyzed_at: datetime = field(default_factory=datetime.utcnow)
    processing_time_seconds: float | None = None

    @property
    def summary_sections(self) -> list[SummarySection]:
        return parse_summary_sections(self.summary)

    def to_dict(self) -> dict[str, Any]:
        return {
            "documentId": self.document_id,
            "documentType": self.document_type.value,
            "language": self.language,
            "languageConfidence": self.language_confidence,
            "clauses": [c.to_dict() for c in self.clauses],
            "terms": self.terms.to_dict(),
            "summary": self.summary,
            "summarySections": [s.to_dict() for s in self.summary_sections],
            "questions": list(self.questions),
            "summarySource": self.summary_source,
            "questionsSource": self.questions_source,
            "analyzedAt": self.analyzed_at.isoformat(),
            "processingTimeSeconds": self.processing_time_seconds
        }


class DocumentProcessor:
    """
    Orchestrates local extraction and the optional generative collaborator.
    """

    def __init__(
        self,
        clause_extractor: ClauseExtractor | None = None,
        generative_client: GenerativeClient | None = None
    ):
        self.clause_extractor = clause_extractor or ClauseExtractor()
        self.generative = generative_client or GenerativeClient()

    def analyze_text(
        self,
        text: str,
        language: str = DEFAULT_LANGUAGE
    ) -> tuple[DocumentCategory, list[ClassifiedClause], ExtractedTerms]:
        """
        Run the local, deterministic part of the analysis.

        Returns:
            Tuple of (document type, classified clauses, extracted terms)
        """
        document_type = detect_document_type(text)
        clauses = self.clause_extractor.classify_document(text)
        terms = extract_all_terms(text, language)
        logger.info(
            f"Local analysis complete: type={document_type.value}, "
            f"{len(clauses)} clauses, {terms.total} terms"
        )
        return document_type, clauses, terms

    async def process(
        self,
        text: str,
        document_id: str | None = None,
        language: str | None = None,
        include_generative: bool = True
    ) -> DocumentAnalysis:
        """
        Analyze a document end to end.

        Args:
            text: Raw document text
            document_id: Identifier to attach to the result
            language: ISO code; detected when omitted
            include_generative: Whether to call the generative collaborator at all

        Returns:
            DocumentAnalysis, always complete
        """
        start_time = time.time()
        document_id = document_id or "inline"
        use_generative = include_generative and self.generative.enabled

        if language:
            language_confidence = 1.0
        elif use_generative:
            language, language_confidence = await self.generative.detect_language(text)
        else:
            language, language_confidence = DEFAULT_LANGUAGE, 0.5

        logger.info(f"[{document_id}] Analyzing in language '{language}'")

        document_type, clauses, terms = await asyncio.to_thread(
            self.analyze_text, text, language
        )

        summary = build_fallback_summary(document_type.value, terms, clauses, language)
        summary_source = SOURCE_FALLBACK
        questions, questions_source = list(FALLBACK_QUESTIONS), SOURCE_FALLBACK

        if use_generative:
            summary_result, questions_result = await asyncio.gather(
                self.generative.generate_summary(text, language, document_type.value),
                self.generative.generate_questions(text, language),
                return_exceptions=True
            )

            if isinstance(summary_result, (GenerativeError, ExternalServiceError)):
                logger.warning(f"[{document_id}] Summary fell back to local: {summary_result}")
            elif isinstance(summary_result, BaseException):
                raise summary_result
            else:
                summary, summary_source = summary_result, SOURCE_GENERATIVE

            if isinstance(questions_result, (GenerativeError, ExternalServiceError)):
                logger.warning(f"[{document_id}] Questions fell back to defaults: {questions_result}")
            elif isinstance(questions_result, BaseException):
                raise questions_result
            else:
                questions, questions_source = questions_result, SOURCE_GENERATIVE

        processing_time = round(time.time() - start_time, 2)
        logger.info(
            f"[{document_id}] Analysis complete in {processing_time}s "
            f"(summary: {summary_source}, questions: {questions_source})"
        )

        return DocumentAnalysis(
            document_id=document_id,
            document_type=document_type,
            language=language,
            language_confidence=language_confidence,
            clauses=clauses,
            terms=terms,
            summary=summary,
            questions=questions,
            summary_source=summary_source,
            questions_source=questions_source,
            processing_time_seconds=processing_time
        )

    async def answer(
        self,
        question: str,
        text: str,
        language: str = DEFAULT_LANGUAGE
    ) -> str:
        """Answer a free-form question about a document."""
        return await self.generative.answer_question(question, text, language)
