"""
ClauseLens Clause Extractor Module
==================================
Converts raw document text into structured, classified clauses.

Each clause is:
- Segmented from the raw text by the rule-based segmenter
- Classified by type from a weighted keyword taxonomy
- Assigned a confidence score
- Risk-scored independently of its type
- Given two suggested questions for its type
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from core.clause_segmenter import ClauseSegmenter
from core.risk_engine import RiskAssessment, RiskCategory, RiskEngine
from core.taxonomy import CLAUSE_TYPE_KEYWORDS, SUGGESTED_QUESTIONS

logger = logging.getLogger(__name__)


class ClauseType(str, Enum):
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


@dataclass(frozen=True)
class ClauseClassification:
    """Type classification of a single clause."""
    clause_type: ClauseType
    confidence: float
    score: int


@dataclass(frozen=True)
class ClassifiedClause:
    """A single segmented, classified and risk-scored clause."""
    text: str
    clause_type: ClauseType
    confidence: float
    risk_score: int
    risk_category: RiskCategory
    explanation: str
    suggested_questions: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        """Convert to the camelCase output contract."""
        return {
            "text": self.text,
            "type": self.clause_type.value,
            "confidence": self.confidence,
            "riskScore": self.risk_score,
            "riskCategory": self.risk_category.value,
            "explanation": self.explanation,
            "suggestedQuestions": list(self.suggested_questions)
        }


MANUAL_REVIEW_EXPLANATION = (
    "This clause requires manual review due to processing limitations."
)
DOCUMENT_FALLBACK_EXPLANATION = (
    "This document contains legal terms that should be reviewed carefully "
    "with attention to obligations, deadlines, and potential penalties."
)


def keyword_weight(keyword: str) -> int:
    """Longer, more specific keywords weigh more."""
    if len(keyword) > 6:
        return 3
    if len(keyword) > 4:
        return 2
    return 1


def classify_clause(
    clause: str,
    taxonomy: dict[str, list[str]] | None = None
) -> ClauseClassification:
    """
    Classify a clause by summed keyword presence per type.

    The highest total wins; ties go to the type declared first.
    Confidence is min(0.95, 0.5 + 0.08 * score), or 0.4 for "general".
    """
    taxonomy = taxonomy or CLAUSE_TYPE_KEYWORDS
    lower_clause = clause.lower()

    best_type = ClauseType.GENERAL
    max_score = 0

    for type_name, keywords in taxonomy.items():
        score = sum(keyword_weight(k) for k in keywords if k in lower_clause)
        if score > max_score:
            max_score = score
            best_type = ClauseType(type_name)

    confidence = min(0.95, 0.5 + max_score * 0.08) if max_score > 0 else 0.4
    return ClauseClassification(
        clause_type=best_type,
        confidence=round(confidence, 4),
        score=max_score
    )


def get_suggested_questions(clause_type: ClauseType | str) -> tuple[str, ...]:
    """Two suggested questions for a clause type, or the generic pair."""
    key = clause_type.value if isinstance(clause_type, ClauseType) else clause_type
    questions = SUGGESTED_QUESTIONS.get(key) or SUGGESTED_QUESTIONS["general"]
    return tuple(questions[:2])


class ClauseExtractor:
    """
    Segments a document and classifies each clause.

    Classification and risk assessment are pure functions of the clause text,
    so the same input always yields the same records.
    """

    MAX_CLASSIFIED_CLAUSES = 10
    PREVIEW_LENGTH = 500

    def __init__(
        self,
        segmenter: ClauseSegmenter | None = None,
        risk_engine: RiskEngine | None = None
    ):
        self.segmenter = segmenter or ClauseSegmenter()
        self.risk_engine = risk_engine or RiskEngine()

    def classify_document(self, text: str) -> list[ClassifiedClause]:
        """
        Segment and classify a whole document.

        Args:
            text: Raw document text

        Returns:
            Up to 10 classified clauses, never an empty list
        """
        try:
            clauses = self.segmenter.segment(text)
            to_process = clauses[:self.MAX_CLASSIFIED_CLAUSES]
            logger.info(f"Processing {len(to_process)} clauses")

            classified = [
                self._classify_one(clause, index, len(to_process))
                for index, clause in enumerate(to_process)
            ]

            if not classified:
                return self.fallback_clauses(text)

            self._log_diversity(classified)
            return classified

        except Exception as e:
            logger.error(f"Error classifying document: {e}")
            return self.fallback_clauses(text)

    def _classify_one(self, clause: str, index: int, total: int) -> ClassifiedClause:
        """Classify one clause, degrading to a generic record on failure."""
        try:
            classification = classify_clause(clause)
            risk = self.risk_engine.assess(clause)
            logger.debug(
                f"Clause {index + 1}/{total}: {classification.clause_type.value} "
                f"(confidence {classification.confidence}), risk {risk.score}/5 ({risk.category.value})"
            )

            return ClassifiedClause(
                text=self._preview(clause),
                clause_type=classification.clause_type,
                confidence=classification.confidence,
                risk_score=risk.score,
                risk_category=risk.category,
                explanation=self._explain(classification, risk),
                suggested_questions=get_suggested_questions(classification.clause_type)
            )
        except Exception as e:
            logger.warning(f"Error processing clause {index + 1}: {e}")
            return ClassifiedClause(
                text=clause[:200] + "...",
                clause_type=ClauseType.GENERAL,
                confidence=0.3,
                risk_score=2,
                risk_category=RiskCategory.MEDIUM,
                explanation=MANUAL_REVIEW_EXPLANATION,
                suggested_questions=(
                    "What does this clause mean?",
                    "How does this affect me?"
                )
            )

    def _preview(self, clause: str) -> str:
        if len(clause) > self.PREVIEW_LENGTH:
            return clause[:self.PREVIEW_LENGTH] + "..."
        return clause

    def _explain(
        self,
        classification: ClauseClassification,
        risk: RiskAssessment
    ) -> str:
        if classification.clause_type == ClauseType.GENERAL:
            prefix = "No specific clause type was recognised."
        else:
            prefix = (
                f"Reads as a {classification.clause_type.value} clause "
                f"({classification.confidence:.0%} confidence)."
            )
        return f"{prefix} {self.risk_engine.explain(risk)}"

    def fallback_clauses(self, text: str) -> list[ClassifiedClause]:
        """Single generic clause used when classification yields nothing."""
        return [
            ClassifiedClause(
                text=(text or "")[:self.PREVIEW_LENGTH] + "...",
                clause_type=ClauseType.GENERAL,
                confidence=0.5,
                risk_score=2,
                risk_category=RiskCategory.MEDIUM,
                explanation=DOCUMENT_FALLBACK_EXPLANATION,
                suggested_questions=(
                    "What are the main obligations in this document?",
                    "Are there any important deadlines or penalties?"
                )
            )
        ]

    def _log_diversity(self, clauses: list[ClassifiedClause]) -> None:
        distribution = type_distribution(clauses)
        unique_types = len(distribution)
        diversity = unique_types / min(len(clauses), 8)
        logger.info(
            f"Clause type distribution: {distribution} "
            f"(diversity {diversity:.2f})"
        )
        crowded = {t: n for t, n in distribution.items() if n > 4}
        if crowded:
            logger.info(f"High concentration of clause types: {crowded}")


def type_distribution(clauses: list[ClassifiedClause]) -> dict[str, int]:
    """Count clauses per type."""
    distribution: dict[str, int] = {}
    for clause in clauses:
        key = clause.clause_type.value
        distribution[key] = distribution.get(key, 0) + 1
    return distribution
