"""
ClauseLens Core Module
======================
Core business logic for legal document analysis.

Modules:
- config: Application configuration
- taxonomy: Keyword lookup tables
- resilience: Timeout/retry guard for external calls
- document_type: Coarse document category detection
- clause_segmenter: Rule-based clause segmentation
- clause_extractor: Clause classification
- risk_engine: Clause risk scoring
- term_extractor: Financial, date, notice and penalty extraction
- generative: Generative collaborator client and response parsing
- ocr: Document ingestion and text extraction
- document_processor: End-to-end pipeline
"""

from core.clause_extractor import ClassifiedClause, ClauseExtractor, ClauseType, classify_clause
from core.clause_segmenter import ClauseSegmenter, split_into_clauses
from core.config import get_settings
from core.document_processor import DocumentAnalysis, DocumentProcessor
from core.document_type import DocumentCategory, detect_document_type
from core.generative import (
    GenerativeClient,
    GenerativeError,
    GenerativeUnavailableError,
    QuestionParseError,
    SummaryFormatError,
    SummarySection,
)
from core.ocr import DocumentContent, DocumentType, OCRError, OCRProcessor, PageContent
from core.resilience import ExternalServiceError, OperationTimeoutError, call_with_retry
from core.risk_engine import RiskAssessment, RiskCategory, RiskEngine
from core.term_extractor import (
    DateTerm,
    ExtractedTerms,
    FinancialTerm,
    NoticeTerm,
    PenaltyTerm,
    TermCategory,
    extract_all_terms,
)

__all__ = [
    # OCR
    "OCRProcessor",
    "DocumentContent",
    "DocumentType",
    "PageContent",
    "OCRError",
    # Clauses
    "ClauseSegmenter",
    "split_into_clauses",
    "ClauseExtractor",
    "ClassifiedClause",
    "ClauseType",
    "classify_clause",
    # Risk
    "RiskEngine",
    "RiskAssessment",
    "RiskCategory",
    # Terms
    "TermCategory",
    "FinancialTerm",
    "DateTerm",
    "NoticeTerm",
    "PenaltyTerm",
    "ExtractedTerms",
    "extract_all_terms",
    # Document type
    "DocumentCategory",
    "detect_document_type",
    # Generative
    "GenerativeClient",
    "GenerativeError",
    "GenerativeUnavailableError",
    "SummaryFormatError",
    "QuestionParseError",
    "SummarySection",
    # Resilience
    "call_with_retry",
    "ExternalServiceError",
    "OperationTimeoutError",
    # Pipeline
    "DocumentProcessor",
    "DocumentAnalysis",
    # Config
    "get_settings",
]
