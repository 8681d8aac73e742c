"""
Tests for the generative client and the parsing of its responses.
"""
import asyncio
import json

import pytest

from core.clause_extractor import ClauseExtractor
from core.config import Settings
from core.generative import (
    ANSWER_FAILED,
    ANSWER_UNAVAILABLE,
    GenerativeClient,
    GenerativeUnavailableError,
    QuestionParseError,
    SummaryFormatError,
    build_fallback_summary,
    get_language_name,
    parse_generated_questions,
    parse_summary_sections,
    repair_json,
)
from core.resilience import ExternalServiceError
from core.taxonomy import FALLBACK_QUESTIONS
from core.term_extractor import DateTerm, ExtractedTerms, extract_all_terms

GOOD_QUESTIONS = [
    "What is the exact monthly rent amount?",
    "When must the security deposit be paid?",
    "How much notice is needed to terminate?",
    "What late fees apply to missed payments?",
]


class TestRepairJson:

    def test_valid_json_is_unchanged(self):
        raw = '{"questions": ["What is due?"]}'

        assert repair_json(raw) == raw

    def test_strips_code_fences(self):
        raw = '```json\n{"questions": ["What is due?"]}\n```'

        assert json.loads(repair_json(raw)) == {"questions": ["What is due?"]}

    def test_closes_truncated_string_and_containers(self):
        raw = '{"questions": ["What is the rent?", "When is it du'

        assert json.loads(repair_json(raw)) == {
            "questions": ["What is the rent?", "When is it du"]
        }

    def test_drops_trailing_comma(self):
        raw = '{"questions": ["A?", "B?",'

        assert json.loads(repair_json(raw)) == {"questions": ["A?", "B?"]}

    def test_escaped_quotes_stay_inside_strings(self):
        raw = '{"q": "say \\"hi\\"'

        assert json.loads(repair_json(raw)) == {"q": 'say "hi"'}

    def test_dangling_backslash_is_dropped(self):
        raw = '{"q": "abc\\'

        assert json.loads(repair_json(raw)) == {"q": "abc"}

    def test_nested_containers_close_innermost_first(self):
        assert repair_json('{"a": {"b": [1, 2') == '{"a": {"b": [1, 2]}}'

    def test_none_becomes_empty(self):
        assert repair_json(None) == ""


class TestParseGeneratedQuestions:

    def test_four_valid_questions(self):
        raw = json.dumps({"questions": GOOD_QUESTIONS})

        assert parse_generated_questions(raw) == GOOD_QUESTIONS

    def test_invalid_entries_are_topped_up(self):
        raw = json.dumps({"questions": [
            "Short?",
            "What is the monthly rent amount?",
            42,
            "No question mark in this entry",
            "How is the deposit refunded?",
        ]})

        questions = parse_generated_questions(raw)

        # Only the first four entries are considered
        assert questions == ["What is the monthly rent amount?"] + FALLBACK_QUESTIONS[:3]

    def test_top_up_skips_duplicates(self):
        raw = json.dumps({"questions": [FALLBACK_QUESTIONS[0]]})

        questions = parse_generated_questions(raw)

        assert questions == FALLBACK_QUESTIONS
        assert len(set(questions)) == 4

    def test_truncated_response_is_repaired(self):
        raw = '{"questions": ["' + '", "'.join(GOOD_QUESTIONS[:2]) + '", "What happens on early exi'

        questions = parse_generated_questions(raw)

        assert questions[:2] == GOOD_QUESTIONS[:2]
        assert len(questions) == 4

    @pytest.mark.parametrize("raw", ["not json at all", '["What is the rent?"]', '{"other": []}'])
    def test_unusable_responses_raise(self, raw):
        with pytest.raises(QuestionParseError):
            parse_generated_questions(raw)


class TestSummarySections:

    def test_sections_are_split_and_short_ones_dropped(self):
        summary = (
            "Main Facts:\n- **Document Type:** Lease\n\n"
            "## Financial Obligations\n- **Rent:** ₹15,000 per month\n\n"
            "## Short\nok"
        )

        sections = parse_summary_sections(summary)

        assert len(sections) == 1
        assert sections[0].title == "Financial Obligations"
        assert sections[0].content == "- **Rent:** ₹15,000 per month"

    def test_heading_without_body(self):
        sections = parse_summary_sections("intro\n## A heading long enough to count as content")

        assert sections[0].title == sections[0].content[:50].strip()

    def test_empty_summary(self):
        assert parse_summary_sections("") == []

    def test_fallback_summary_from_local_results(self, sample_lease_text):
        terms = extract_all_terms(sample_lease_text)
        clauses = ClauseExtractor().classify_document(sample_lease_text)

        summary = build_fallback_summary("lease", terms, clauses)

        assert summary.startswith("Main Facts:")
        assert "- **Document Type:** Lease" in summary
        assert "- **Monthly Rent/Payment:** ₹15,000" in summary
        assert "- **Security Deposit:** ₹50,000" in summary
        assert "- **Notice Period:** 30 days" in summary
        titles = [s.title for s in parse_summary_sections(summary)]
        assert titles == [
            "Financial Obligations",
            "Key Dates",
            "Termination and Renewal",
            "Risks and Penalties",
            "Clauses to Review",
        ]

    def test_fallback_summary_uses_localized_date_labels(self):
        terms = ExtractedTerms(dates=[
            DateTerm(date="1 de enero de 2024", type="Fecha de Inicio", context="...", original_index=0),
            DateTerm(date="31 de diciembre de 2024", type="Fecha de Fin", context="...", original_index=60),
        ])

        summary = build_fallback_summary("lease", terms, [], "es")

        assert "- **Start Date:** 1 de enero de 2024" in summary
        assert "- **End Date:** 31 de diciembre de 2024" in summary

    def test_fallback_summary_finds_spanish_start_date(self):
        text = "Fecha de comienzo: 1 de enero de 2024. El inquilino acepta las condiciones."
        terms = extract_all_terms(text, "es")

        summary = build_fallback_summary("lease", terms, [], "es")

        assert "- **Start Date:** Not specified" not in summary
        assert "enero de 2024" in summary.split("- **Start Date:** ")[1].splitlines()[0]

    def test_fallback_summary_without_terms(self):
        summary = build_fallback_summary("general", extract_all_terms(""), [])

        assert "- **Start Date:** Not specified" in summary
        assert "##" not in summary


def test_language_names():
    assert get_language_name("es") == "Spanish"
    assert get_language_name("xx") == "English"
    assert get_language_name(None) == "English"


class TestDisabledClient:

    @pytest.fixture
    def client(self):
        return GenerativeClient(Settings(openai_api_key="", generative_enabled=False))

    def test_no_transport_is_created(self, client):
        assert client.enabled is False
        assert client.llm_client is None

    def test_summary_is_unavailable(self, client):
        with pytest.raises(GenerativeUnavailableError):
            asyncio.run(client.generate_summary("text"))

    def test_language_defaults_to_english(self, client):
        assert asyncio.run(client.detect_language("Hola")) == ("en", 0.5)

    def test_answer_is_fixed_message(self, client):
        assert asyncio.run(client.answer_question("What is the rent?", "text")) == ANSWER_UNAVAILABLE

    def test_key_without_flag_stays_disabled(self):
        client = GenerativeClient(Settings(openai_api_key="key", generative_enabled=False))

        assert client.enabled is False


class TestMockedClient:

    def test_summary(self, generative_client, completion, sample_lease_text):
        content = "Main Facts:\n- **Document Type:** Lease\n\n## Key Dates\n- **Start Date:** January 1, 2024"
        create = generative_client.llm_client.chat.completions.create
        create.return_value = completion(content)

        summary = asyncio.run(generative_client.generate_summary(sample_lease_text, "en", "lease"))

        assert summary == content
        kwargs = create.call_args.kwargs
        prompt = kwargs["messages"][0]["content"]
        assert "RESPOND IN ENGLISH." in prompt
        assert "detected as a lease document" in prompt
        assert "response_format" not in kwargs

    def test_summary_in_other_language(self, generative_client, completion):
        create = generative_client.llm_client.chat.completions.create
        create.return_value = completion("Hechos:\n## Fechas\n- contenido suficiente aquí")

        asyncio.run(generative_client.generate_summary("texto", "es"))

        prompt = create.call_args.kwargs["messages"][0]["content"]
        assert "YOU MUST RESPOND ENTIRELY IN SPANISH." in prompt

    def test_unstructured_summary_is_rejected(self, generative_client, completion):
        generative_client.llm_client.chat.completions.create.return_value = completion(
            "Just a plain paragraph."
        )

        with pytest.raises(SummaryFormatError):
            asyncio.run(generative_client.generate_summary("text"))

    def test_summary_transport_failure(self, generative_client):
        generative_client.llm_client.chat.completions.create.side_effect = ConnectionError("down")

        with pytest.raises(ExternalServiceError):
            asyncio.run(generative_client.generate_summary("text"))

    def test_questions_use_json_mode(self, generative_client, completion):
        create = generative_client.llm_client.chat.completions.create
        create.return_value = completion(json.dumps({"questions": GOOD_QUESTIONS}))

        questions = asyncio.run(generative_client.generate_questions("text"))

        assert questions == GOOD_QUESTIONS
        assert create.call_args.kwargs["response_format"] == {"type": "json_object"}

    def test_detect_language(self, generative_client, completion):
        create = generative_client.llm_client.chat.completions.create
        create.return_value = completion('{"language": "es", "confidence": 0.93}')

        assert asyncio.run(generative_client.detect_language("Hola")) == ("es", 0.93)
        assert create.call_args.kwargs["max_tokens"] == 50

    def test_detect_language_with_garbage_response(self, generative_client, completion):
        generative_client.llm_client.chat.completions.create.return_value = completion("nonsense")

        assert asyncio.run(generative_client.detect_language("Hola")) == ("en", 0.5)

    def test_answer(self, generative_client, completion):
        create = generative_client.llm_client.chat.completions.create
        create.return_value = completion("The rent is ₹15,000.")

        answer = asyncio.run(generative_client.answer_question("What is the rent?", "text", "fr"))

        assert answer == "The rent is ₹15,000."
        assert "Answer in French." in create.call_args.kwargs["messages"][0]["content"]

    def test_answer_failure_returns_fixed_message(self, generative_client):
        generative_client.llm_client.chat.completions.create.side_effect = ConnectionError("down")

        answer = asyncio.run(generative_client.answer_question("What is the rent?", "text"))

        assert answer == ANSWER_FAILED
