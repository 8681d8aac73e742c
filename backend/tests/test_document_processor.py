"""
Tests for the end-to-end document pipeline.
"""
import asyncio
import json
from unittest.mock import AsyncMock

import pytest

from core.config import Settings
from core.document_processor import (
    SOURCE_FALLBACK,
    SOURCE_GENERATIVE,
    DocumentProcessor,
)
from core.document_type import DocumentCategory
from core.generative import GenerativeClient
from core.taxonomy import FALLBACK_QUESTIONS

GENERATED_SUMMARY = (
    "Main Facts:\n- **Document Type:** Lease\n\n"
    "## Financial Obligations\n- **Rent/Payment:** ₹15,000 due on the 5th of each month"
)
GENERATED_QUESTIONS = [
    "What happens if the rent is paid after the 5th?",
    "When is the ₹50,000 deposit refunded?",
    "How much notice must I give to leave early?",
    "Who pays for repairs to the premises?",
]


@pytest.fixture
def local_processor():
    """Processor whose generative client is switched off."""
    client = GenerativeClient(Settings(openai_api_key="", generative_enabled=False))
    return DocumentProcessor(generative_client=client)


def respond(make_completion, summary=GENERATED_SUMMARY, language='{"language": "en", "confidence": 0.98}'):
    """Side effect answering each kind of request the client sends."""
    def create(**kwargs):
        if "response_format" not in kwargs:
            return make_completion(summary)
        if kwargs["max_tokens"] == 50:
            return make_completion(language)
        return make_completion(json.dumps({"questions": GENERATED_QUESTIONS}))
    return create


class TestLocalAnalysis:

    def test_analyze_text(self, local_processor, sample_lease_text):
        document_type, clauses, terms = local_processor.analyze_text(sample_lease_text)

        assert document_type == DocumentCategory.LEASE
        assert len(clauses) == 7
        assert terms.total > 0

    def test_process_without_generative_service(self, local_processor, sample_lease_text):
        analysis = asyncio.run(local_processor.process(sample_lease_text, document_id="doc-1"))

        assert analysis.document_id == "doc-1"
        assert analysis.document_type == DocumentCategory.LEASE
        assert (analysis.language, analysis.language_confidence) == ("en", 0.5)
        assert analysis.summary.startswith("Main Facts:")
        assert analysis.summary_sections
        assert analysis.questions == FALLBACK_QUESTIONS
        assert analysis.summary_source == SOURCE_FALLBACK
        assert analysis.questions_source == SOURCE_FALLBACK
        assert analysis.processing_time_seconds is not None

    def test_explicit_language_has_full_confidence(self, local_processor, sample_lease_text):
        analysis = asyncio.run(local_processor.process(sample_lease_text, language="es"))

        assert (analysis.language, analysis.language_confidence) == ("es", 1.0)
        assert analysis.document_id == "inline"

    def test_fallback_summary_follows_document_language(self, local_processor):
        text = "Fecha de comienzo: 1 de enero de 2024. El inquilino acepta las condiciones."

        analysis = asyncio.run(local_processor.process(text, language="es"))

        assert "- **Start Date:** Not specified" not in analysis.summary

    def test_empty_text_still_produces_an_analysis(self, local_processor):
        analysis = asyncio.run(local_processor.process(""))

        assert analysis.document_type == DocumentCategory.GENERAL
        assert len(analysis.clauses) == 1
        assert analysis.terms.total == 0

    def test_to_dict_keys(self, local_processor, sample_lease_text):
        data = asyncio.run(local_processor.process(sample_lease_text)).to_dict()

        assert set(data) == {
            "documentId", "documentType", "language", "languageConfidence",
            "clauses", "terms", "summary", "summarySections", "questions",
            "summarySource", "questionsSource", "analyzedAt", "processingTimeSeconds"
        }
        assert data["documentType"] == "lease"
        assert data["summarySections"][0]["title"] == "Financial Obligations"


class TestGenerativeAnalysis:

    def test_generated_summary_and_questions(self, generative_client, completion, sample_lease_text):
        generative_client.llm_client.chat.completions.create.side_effect = respond(completion)
        processor = DocumentProcessor(generative_client=generative_client)

        analysis = asyncio.run(processor.process(sample_lease_text))

        assert (analysis.language, analysis.language_confidence) == ("en", 0.98)
        assert analysis.summary == GENERATED_SUMMARY
        assert analysis.questions == GENERATED_QUESTIONS
        assert analysis.summary_source == SOURCE_GENERATIVE
        assert analysis.questions_source == SOURCE_GENERATIVE
        assert generative_client.llm_client.chat.completions.create.call_count == 3

    def test_explicit_language_skips_detection(self, generative_client, completion, sample_lease_text):
        create = generative_client.llm_client.chat.completions.create
        create.side_effect = respond(completion)
        processor = DocumentProcessor(generative_client=generative_client)

        asyncio.run(processor.process(sample_lease_text, language="en"))

        assert create.call_count == 2

    def test_summary_failure_falls_back_alone(self, generative_client, completion, sample_lease_text):
        generative_client.llm_client.chat.completions.create.side_effect = respond(
            completion, summary="A summary without any headings."
        )
        processor = DocumentProcessor(generative_client=generative_client)

        analysis = asyncio.run(processor.process(sample_lease_text, language="en"))

        assert analysis.summary_source == SOURCE_FALLBACK
        assert analysis.summary.startswith("Main Facts:")
        assert analysis.questions_source == SOURCE_GENERATIVE
        assert analysis.questions == GENERATED_QUESTIONS

    def test_transport_failure_falls_back(self, generative_client, sample_lease_text):
        generative_client.llm_client.chat.completions.create.side_effect = ConnectionError("down")
        processor = DocumentProcessor(generative_client=generative_client)

        analysis = asyncio.run(processor.process(sample_lease_text))

        assert analysis.language == "en"
        assert analysis.summary_source == SOURCE_FALLBACK
        assert analysis.questions == FALLBACK_QUESTIONS

    def test_generative_can_be_skipped(self, generative_client, sample_lease_text):
        processor = DocumentProcessor(generative_client=generative_client)

        analysis = asyncio.run(processor.process(sample_lease_text, include_generative=False))

        assert analysis.summary_source == SOURCE_FALLBACK
        generative_client.llm_client.chat.completions.create.assert_not_called()

    def test_unexpected_errors_propagate(self, generative_client, sample_lease_text):
        generative_client.generate_summary = AsyncMock(side_effect=RuntimeError("bug"))
        generative_client.generate_questions = AsyncMock(return_value=GENERATED_QUESTIONS)
        processor = DocumentProcessor(generative_client=generative_client)

        with pytest.raises(RuntimeError, match="bug"):
            asyncio.run(processor.process(sample_lease_text, language="en"))

    def test_answer_delegates_to_client(self, generative_client, completion):
        generative_client.llm_client.chat.completions.create.return_value = completion("Thirty days.")
        processor = DocumentProcessor(generative_client=generative_client)

        answer = asyncio.run(processor.answer("How much notice?", "text"))

        assert answer == "Thirty days."
