"""
ClauseLens API Schemas
======================
Pydantic models for API request/response validation.
All API contracts are defined here for type safety and documentation.

Analysis payloads (clauses, terms, summaries) follow the engine's camelCase
output contract through field aliases; request/status envelopes stay snake_case.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator


# === Enums ===

class AnalysisStatusEnum(str, Enum):
    """Status of document analysis."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ClauseTypeEnum(str, Enum):
    """Clause type classifications."""
    TERMINATION = "termination"
    PAYMENT = "payment"
    PENALTY = "penalty"
    RENEWAL = "renewal"
    LIABILITY = "liability"
    CONFIDENTIALITY = "confidentiality"
    WARRANTY = "warranty"
    INSURANCE = "insurance"
    MAINTENANCE = "maintenance"
    USE = "use"
    NOTICE = "notice"
    ASSIGNMENT = "assignment"
    COLLATERAL = "collateral"
    INTEREST = "interest"
    DEFAULT = "default"
    REPAYMENT = "repayment"
    GENERAL = "general"


class RiskCategoryEnum(str, Enum):
    """Risk categories for a clause."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TermCategoryEnum(str, Enum):
    """Extracted term categories."""
    FINANCIAL = "financial"
    DATE = "date"
    NOTICE = "notice"
    PENALTY = "penalty"


class ResultSourceEnum(str, Enum):
    """Where a summary or question list came from."""
    GENERATIVE = "generative"
    FALLBACK = "fallback"


class ContractOutput(BaseModel):
    """Base for models serialized with camelCase aliases."""

    class Config:
        populate_by_name = True


# === Upload Schemas ===

class UploadResponse(BaseModel):
    """Response for document upload."""
    document_id: str = Field(..., description="Unique identifier for the uploaded document")
    filename: str = Field(..., description="Original filename")
    content_type: str = Field(..., description="Accepted media type")
    file_size_bytes: int = Field(..., description="File size in bytes")
    upload_timestamp: datetime = Field(..., description="Timestamp of upload")
    status: AnalysisStatusEnum = Field(..., description="Current processing status")
    message: str = Field(..., description="Status message")

    class Config:
        json_schema_extra = {
            "example": {
                "document_id": "doc-abc123def456",
                "filename": "lease.pdf",
                "content_type": "application/pdf",
                "file_size_bytes": 1024000,
                "upload_timestamp": "2024-01-15T10:30:00Z",
                "status": "pending",
                "message": "Document uploaded successfully. Ready for analysis."
            }
        }


# === Clause Schemas ===

class ClauseSchema(ContractOutput):
    """A segmented, classified and risk-scored clause."""
    text: str = Field(..., description="Clause text, truncated to 500 characters")
    clause_type: ClauseTypeEnum = Field(..., alias="type")
    confidence: float = Field(..., ge=0, le=1, description="Classification confidence (0-1)")
    risk_score: int = Field(..., alias="riskScore", ge=1, le=5)
    risk_category: RiskCategoryEnum = Field(..., alias="riskCategory")
    explanation: str
    suggested_questions: list[str] = Field(default_factory=list, alias="suggestedQuestions")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "text": "The tenant shall pay a late fee of ₹500 for every day of delay.",
                "type": "penalty",
                "confidence": 0.74,
                "riskScore": 4,
                "riskCategory": "high",
                "explanation": "Reads as a penalty clause (74% confidence). Rated high risk (4/5) because it mentions \"late fee\".",
                "suggestedQuestions": [
                    "What specific actions trigger penalties?",
                    "How much will I owe if I violate this?"
                ]
            }
        }


class ClausesResponse(ContractOutput):
    """Classified clauses of a document."""
    document_id: str = Field(..., alias="documentId")
    document_type: str = Field(..., alias="documentType")
    total_clauses: int = Field(..., alias="totalClauses")
    type_distribution: dict[str, int] = Field(default_factory=dict, alias="typeDistribution")
    clauses: list[ClauseSchema]


# === Term Schemas ===

class FinancialTermSchema(ContractOutput):
    """A currency amount with its subtype."""
    category: TermCategoryEnum = TermCategoryEnum.FINANCIAL
    amount: str
    type: str
    context: str
    original_index: int = Field(..., alias="originalIndex")


class DateTermSchema(ContractOutput):
    """A literal date with a localized type label."""
    category: TermCategoryEnum = TermCategoryEnum.DATE
    date: str
    type: str
    context: str
    original_index: int = Field(..., alias="originalIndex")


class NoticeTermSchema(ContractOutput):
    """A notice or grace period."""
    category: TermCategoryEnum = TermCategoryEnum.NOTICE
    period: str
    type: str
    is_grace_period: bool = Field(..., alias="isGracePeriod")
    context: str
    original_index: int = Field(..., alias="originalIndex")


class PenaltyTermSchema(ContractOutput):
    """A penalty mention with severity and amounts."""
    category: TermCategoryEnum = TermCategoryEnum.PENALTY
    type: str
    severity: str
    amounts: list[str] = Field(default_factory=list)
    context: str
    risk_score: int = Field(..., alias="riskScore")
    original_index: int = Field(..., alias="originalIndex")


class TermsSchema(ContractOutput):
    """All extracted terms, grouped by category."""
    financial: list[FinancialTermSchema] = Field(default_factory=list)
    dates: list[DateTermSchema] = Field(default_factory=list)
    notices: list[NoticeTermSchema] = Field(default_factory=list)
    penalties: list[PenaltyTermSchema] = Field(default_factory=list)


class TermsResponse(ContractOutput):
    """Extracted terms of a document, optionally filtered to one category."""
    document_id: str = Field(..., alias="documentId")
    category: TermCategoryEnum | None = None
    total: int
    terms: TermsSchema


# === Summary Schemas ===

class SummarySectionSchema(BaseModel):
    """A titled section of the structured summary."""
    title: str
    content: str


class SummaryResponse(ContractOutput):
    """Summary text, its parsed sections and the suggested questions."""
    document_id: str = Field(..., alias="documentId")
    language: str
    summary: str
    sections: list[SummarySectionSchema] = Field(default_factory=list)
    questions: list[str] = Field(default_factory=list)
    summary_source: ResultSourceEnum = Field(..., alias="summarySource")
    questions_source: ResultSourceEnum = Field(..., alias="questionsSource")


# === Analysis Schemas ===

class AnalysisSchema(ContractOutput):
    """Complete analysis of one document."""
    document_id: str = Field(..., alias="documentId")
    document_type: str = Field(..., alias="documentType")
    language: str
    language_confidence: float = Field(..., alias="languageConfidence")
    clauses: list[ClauseSchema]
    terms: TermsSchema
    summary: str
    summary_sections: list[SummarySectionSchema] = Field(default_factory=list, alias="summarySections")
    questions: list[str]
    summary_source: ResultSourceEnum = Field(..., alias="summarySource")
    questions_source: ResultSourceEnum = Field(..., alias="questionsSource")
    analyzed_at: datetime = Field(..., alias="analyzedAt")
    processing_time_seconds: float | None = Field(None, alias="processingTimeSeconds")


class AnalyzeRequest(BaseModel):
    """Options for analyzing an uploaded document."""
    language: str | None = Field(
        default=None,
        description="ISO 639-1 language code; detected when omitted"
    )
    include_generative: bool = Field(
        default=True,
        description="Use the generative service for summary and questions when configured"
    )

    @field_validator("language")
    @classmethod
    def normalize_language(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v.strip().lower()


class AnalyzeTextRequest(AnalyzeRequest):
    """Raw text to analyze directly."""
    text: str = Field(..., min_length=1, description="Raw document text")

    @field_validator("text")
    @classmethod
    def text_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Text must not be blank")
        return v


class AnalyzeResponse(BaseModel):
    """Response for document analysis."""
    document_id: str
    status: AnalysisStatusEnum
    analysis: AnalysisSchema | None = None
    processing_time_seconds: float | None = None
    error_message: str | None = None


# === Question Answering ===

class AskRequest(BaseModel):
    """A free-form question about a document."""
    question: str = Field(..., min_length=3, max_length=1000)
    language: str | None = None


class AskResponse(BaseModel):
    """Answer to a question about a document."""
    document_id: str
    question: str
    answer: str
    language: str


# === Status Schemas ===

class DocumentStatusResponse(BaseModel):
    """Response for document status check."""
    document_id: str
    filename: str
    status: AnalysisStatusEnum
    upload_timestamp: datetime
    analysis_started_at: datetime | None = None
    analysis_completed_at: datetime | None = None
    error_message: str | None = None


# === Error Schemas ===

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Error message")
    details: dict[str, Any] | None = Field(None, description="Additional error details")

    class Config:
        json_schema_extra = {
            "example": {
                "error": "UnsupportedMediaType",
                "message": "Only PDF and plain text files are accepted.",
                "details": {"accepted_types": ["application/pdf", "text/plain"]}
            }
        }


# === Health Check ===

class HealthCheckResponse(BaseModel):
    """API health check response."""
    status: str = Field(..., description="API status")
    version: str = Field(..., description="API version")
    timestamp: datetime = Field(..., description="Current server timestamp")
    services: dict[str, str] = Field(..., description="Status of dependent services")
