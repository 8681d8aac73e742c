"""
Tests for clause classification.
"""
from unittest.mock import MagicMock

import pytest

from core.clause_extractor import (
    ClauseExtractor,
    ClauseType,
    classify_clause,
    get_suggested_questions,
    keyword_weight,
    type_distribution,
)
from core.risk_engine import RiskCategory


class TestClassifyClause:
    """Weighted keyword classification."""

    @pytest.mark.parametrize("keyword,weight", [
        ("pay", 1),
        ("cancel", 2),
        ("terminate", 3),
    ])
    def test_keyword_weight(self, keyword, weight):
        assert keyword_weight(keyword) == weight

    def test_no_keywords_is_general(self):
        result = classify_clause(
            "The small cottage sits on a quiet hill with a garden of tall trees and roses."
        )

        assert result.clause_type == ClauseType.GENERAL
        assert result.confidence == 0.4
        assert result.score == 0

    def test_payment_clause(self):
        # pay + fee + due + rent, one point each
        result = classify_clause("The tenant shall pay the monthly rent and any late fee when due.")

        assert result.clause_type == ClauseType.PAYMENT
        assert result.score == 4
        assert result.confidence == pytest.approx(0.82)

    def test_penalty_clause(self):
        result = classify_clause("Any breach of this lease will result in a penalty and eviction.")

        assert result.clause_type == ClauseType.PENALTY
        assert result.confidence == pytest.approx(0.9)

    def test_tie_goes_to_first_declared_type(self):
        # termination ("cancel") and payment ("fee", "due") both score 2
        result = classify_clause("You may cancel; a fee is due.")

        assert result.clause_type == ClauseType.TERMINATION
        assert result.confidence == pytest.approx(0.66)

    def test_confidence_is_capped(self):
        clause = (
            "Repayment of the principal and outstanding balance follows the amortization "
            "schedule; the borrower shall repay on time."
        )
        result = classify_clause(clause)

        assert result.clause_type == ClauseType.REPAYMENT
        assert result.confidence == 0.95

    def test_classification_is_deterministic(self):
        clause = "The landlord may terminate this lease upon breach."

        assert classify_clause(clause) == classify_clause(clause)


class TestSuggestedQuestions:

    def test_known_type(self):
        assert get_suggested_questions(ClauseType.PAYMENT) == (
            "When exactly are payments due?",
            "What happens if I miss a payment?"
        )

    @pytest.mark.parametrize("clause_type", [ClauseType.INSURANCE, ClauseType.USE, "unknown"])
    def test_types_without_questions_use_generic_pair(self, clause_type):
        assert get_suggested_questions(clause_type) == (
            "What are the most important terms I should understand?",
            "What obligations do I have under this agreement?"
        )


class TestClauseExtractor:
    """Document-level classification."""

    def test_classifies_sample_lease(self, sample_lease_text):
        clauses = ClauseExtractor().classify_document(sample_lease_text)

        assert len(clauses) == 7
        for clause in clauses:
            assert isinstance(clause.clause_type, ClauseType)
            assert 0.0 <= clause.confidence <= 1.0
            assert 1 <= clause.risk_score <= 5
            assert len(clause.suggested_questions) == 2
            assert clause.explanation

    def test_explanation_mentions_type_and_risk(self):
        extractor = ClauseExtractor()
        clause = extractor._classify_one(
            "The tenant shall pay the monthly rent and any late fee when due.", 0, 1
        )

        assert clause.risk_score == 3
        assert clause.risk_category == RiskCategory.MEDIUM
        assert clause.explanation.startswith("Reads as a payment clause (82% confidence).")
        assert "Rated medium risk (3/5)" in clause.explanation

    def test_long_clause_text_is_previewed(self):
        clause = "The tenant shall pay the rent on time. " * 20
        record = ClauseExtractor()._classify_one(clause, 0, 1)

        assert record.text == clause[:500] + "..."

    def test_failing_clause_degrades_to_manual_review(self):
        risk_engine = MagicMock()
        risk_engine.assess.side_effect = RuntimeError("scoring failed")
        extractor = ClauseExtractor(risk_engine=risk_engine)

        text = "".join(f"\n{n}. " + letter * 300 for n, letter in enumerate("abcde", start=1))
        clauses = extractor.classify_document(text)

        assert len(clauses) == 5
        for clause in clauses:
            assert clause.clause_type == ClauseType.GENERAL
            assert clause.confidence == 0.3
            assert clause.risk_score == 2
            assert clause.risk_category == RiskCategory.MEDIUM
            assert clause.text.endswith("...")
            assert len(clause.text) == 203

    def test_segmenter_failure_returns_document_fallback(self):
        segmenter = MagicMock()
        segmenter.segment.side_effect = RuntimeError("segmentation failed")
        extractor = ClauseExtractor(segmenter=segmenter)

        clauses = extractor.classify_document("Some contract text.")

        assert len(clauses) == 1
        assert clauses[0].confidence == 0.5
        assert clauses[0].clause_type == ClauseType.GENERAL
        assert clauses[0].text == "Some contract text...."

    def test_empty_segmentation_returns_document_fallback(self):
        segmenter = MagicMock()
        segmenter.segment.return_value = []

        clauses = ClauseExtractor(segmenter=segmenter).classify_document("x")

        assert len(clauses) == 1
        assert clauses[0].confidence == 0.5

    def test_to_dict_uses_camel_case(self):
        clause = ClauseExtractor()._classify_one("You may cancel; a fee is due.", 0, 1)
        data = clause.to_dict()

        assert set(data) == {
            "text", "type", "confidence", "riskScore",
            "riskCategory", "explanation", "suggestedQuestions"
        }
        assert data["type"] == "termination"
        assert isinstance(data["suggestedQuestions"], list)

    def test_type_distribution(self, sample_lease_text):
        clauses = ClauseExtractor().classify_document(sample_lease_text)
        distribution = type_distribution(clauses)

        assert sum(distribution.values()) == len(clauses)

    def test_same_input_same_output(self, sample_lease_text):
        extractor = ClauseExtractor()

        assert extractor.classify_document(sample_lease_text) == extractor.classify_document(sample_lease_text)

