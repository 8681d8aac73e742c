"""
ClauseLens Risk Engine Module
=============================
Calculates deterministic, explainable risk scores for single clauses.
Works independently of the clause-type classifier.

Scoring Methodology:
- Three keyword tiers (high / medium / low), each with its own weighting
- Any high-tier match decides the clause: score 3-5, category high
- Otherwise medium-tier matches decide: score 2-4, category medium
- Otherwise the clause is low risk (score 1 with a low-tier match, else 2)
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from core.taxonomy import RISK_KEYWORDS

logger = logging.getLogger(__name__)


class RiskCategory(str, Enum):
    """Risk categories for a clause."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class RiskAssessment:
    """Risk assessment for a single clause."""
    score: int  # 1-5
    category: RiskCategory
    high_matches: int = 0
    medium_matches: int = 0
    low_matches: int = 0
    matched_keywords: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "score": self.score,
            "category": self.category.value,
            "high_matches": self.high_matches,
            "medium_matches": self.medium_matches,
            "low_matches": self.low_matches,
            "matched_keywords": list(self.matched_keywords)
        }


class RiskEngine:
    """
    Keyword-tier risk scoring for clauses.

    Keywords are matched by presence (substring of the lower-cased clause);
    repeated occurrences of one keyword count once.
    """

    def __init__(self, keywords: dict[str, list[str]] | None = None):
        self.keywords = keywords or RISK_KEYWORDS

    def assess(self, clause: str) -> RiskAssessment:
        """
        Assess the risk of a clause.

        Args:
            clause: Clause text

        Returns:
            RiskAssessment with a 1-5 score and a category
        """
        lower_clause = clause.lower()

        high_hits = self._matches(lower_clause, "high")
        high_matches = sum(3 if len(k) > 8 else 2 for k in high_hits)

        if high_matches > 0:
            return RiskAssessment(
                score=min(5, 3 + high_matches // 2),
                category=RiskCategory.HIGH,
                high_matches=high_matches,
                matched_keywords=tuple(high_hits)
            )

        medium_hits = self._matches(lower_clause, "medium")
        medium_matches = sum(2 if len(k) > 6 else 1 for k in medium_hits)

        if medium_matches > 2:
            return RiskAssessment(
                score=min(4, 2 + medium_matches // 3),
                category=RiskCategory.MEDIUM,
                medium_matches=medium_matches,
                matched_keywords=tuple(medium_hits)
            )
        if medium_matches > 0:
            return RiskAssessment(
                score=2,
                category=RiskCategory.MEDIUM,
                medium_matches=medium_matches,
                matched_keywords=tuple(medium_hits)
            )

        low_hits = self._matches(lower_clause, "low")
        low_matches = len(low_hits)

        # No qualifying matches at all still reports "low" with score 2
        return RiskAssessment(
            score=1 if low_matches > 0 else 2,
            category=RiskCategory.LOW,
            low_matches=low_matches,
            matched_keywords=tuple(low_hits)
        )

    def _matches(self, lower_clause: str, tier: str) -> list[str]:
        return [k for k in self.keywords.get(tier, []) if k in lower_clause]

    def explain(self, assessment: RiskAssessment) -> str:
        """Generate a one-sentence, human-readable explanation of a score."""
        level = assessment.category.value
        if assessment.matched_keywords:
            terms = ", ".join(f'"{k}"' for k in assessment.matched_keywords[:4])
            return (
                f"Rated {level} risk ({assessment.score}/5) because it mentions {terms}."
            )
        return (
            f"Rated {level} risk ({assessment.score}/5); "
            f"no risk-related wording was found."
        )
