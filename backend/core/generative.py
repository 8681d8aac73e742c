"""
ClauseLens Generative Module
============================
Client for the generative-language-model collaborator (OpenAI) plus the
parsing of everything it returns.

The model is optional. Every call goes through the resilience wrapper and
every caller has a deterministic local fallback:
- summaries fall back to build_fallback_summary()
- questions fall back to FALLBACK_QUESTIONS
- language detection falls back to English
- answers fall back to a fixed apology
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from openai import AsyncOpenAI

from core.config import DEFAULT_LANGUAGE, LANGUAGE_NAMES, Settings, get_settings
from core.resilience import ExternalServiceError, call_with_retry
from core.taxonomy import DATE_TYPE_LABELS, FALLBACK_QUESTIONS

if TYPE_CHECKING:
    from core.clause_extractor import ClassifiedClause
    from core.term_extractor import ExtractedTerms

logger = logging.getLogger(__name__)


class GenerativeError(Exception):
    """Base class for generative collaborator failures."""
    pass


class GenerativeUnavailableError(GenerativeError):
    """Raised when the generative service is disabled or not configured."""
    pass


class SummaryFormatError(GenerativeError):
    """Raised when a summary lacks the expected section structure."""
    pass


class QuestionParseError(GenerativeError):
    """Raised when generated questions cannot be parsed even after repair."""
    pass


@dataclass(frozen=True)
class SummarySection:
    """A titled section of a structured summary."""
    title: str
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"title": self.title, "content": self.content}


QUESTION_COUNT = 4
ANSWER_UNAVAILABLE = (
    "I'm having trouble accessing AI services right now. Please try asking a more "
    "specific question about the document's terms, obligations, or key provisions."
)
ANSWER_FAILED = (
    "I'm having trouble processing your question right now. Please try rephrasing "
    "your question or asking about specific terms, deadlines, or obligations in the document."
)


def get_language_name(code: str | None) -> str:
    """Display name for a language code, English when unknown."""
    return LANGUAGE_NAMES.get(code or "", "English")


def _language_instruction(language: str, strict: str, relaxed: str) -> str:
    name = get_language_name(language)
    if language != DEFAULT_LANGUAGE:
        return strict.format(name=name, upper=name.upper())
    return relaxed


# === Response parsing ===

_CLOSERS = {"[": "]", "{": "}"}


def repair_json(raw: str) -> str:
    """
    Repair near-valid JSON from a model response.

    Strips markdown code fences, drops a trailing comma, closes a truncated
    string and closes any arrays/objects left open, innermost first.
    """
    text = (raw or "").strip()

    if text.startswith("```"):
        text = re.sub(r"^```(?:json)?\s*", "", text, flags=re.IGNORECASE)
        text = re.sub(r"```\s*$", "", text).strip()

    stack: list[str] = []
    in_string = False
    escaped = False
    for char in text:
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
        elif char == '"':
            in_string = True
        elif char in _CLOSERS:
            stack.append(char)
        elif char in "]}" and stack:
            stack.pop()

    if in_string:
        if escaped:
            text = text[:-1]
        text += '"'
    else:
        text = re.sub(r",\s*$", "", text)

    return text + "".join(_CLOSERS[opener] for opener in reversed(stack))


def parse_generated_questions(raw: str) -> list[str]:
    """
    Parse a {"questions": [...]} response into exactly four questions.

    Keeps the first four entries that are strings containing "?" and longer
    than 15 characters, then tops up from the fallback list.

    Raises:
        QuestionParseError: If the response is not parseable JSON with a questions array
    """
    try:
        data = json.loads(repair_json(raw))
    except json.JSONDecodeError as e:
        logger.error(f"JSON parsing failed. Raw response was: {(raw or '')[:500]}")
        raise QuestionParseError("AI returned unparseable JSON.") from e

    questions = data.get("questions") if isinstance(data, dict) else None
    if not isinstance(questions, list):
        raise QuestionParseError("AI response has no questions array.")

    picked = [
        q for q in questions[:QUESTION_COUNT]
        if isinstance(q, str) and "?" in q and len(q) > 15
    ]
    logger.info(f"Extracted {len(picked)} questions from structured AI response")

    for fallback in FALLBACK_QUESTIONS:
        if len(picked) >= QUESTION_COUNT:
            break
        if fallback not in picked:
            picked.append(fallback)

    return picked[:QUESTION_COUNT]


SECTION_SPLIT = re.compile(r"\n##\s+")


def parse_summary_sections(summary: str) -> list[SummarySection]:
    """
    Split a structured summary into titled sections.

    The first part (the "Main Facts" introduction) is discarded. Sections
    whose content is 20 characters or shorter are dropped.
    """
    parts = [s for s in SECTION_SPLIT.split(summary or "") if s.strip()]

    sections = []
    for part in parts[1:]:
        newline = part.find("\n")
        if newline > 0:
            title = part[:newline].strip()
            content = part[newline + 1:].strip()
        else:
            title = part[:50].strip()
            content = part.strip()

        if len(content) > 20:
            sections.append(SummarySection(title=title, content=content))

    return sections


def build_fallback_summary(
    document_type: str,
    terms: "ExtractedTerms",
    clauses: list["ClassifiedClause"],
    language: str = DEFAULT_LANGUAGE
) -> str:
    """Build a structured summary from local extraction results."""
    labels = DATE_TYPE_LABELS.get(language) or DATE_TYPE_LABELS[DEFAULT_LANGUAGE]

    def first(items, default="Not specified"):
        return items[0] if items else default

    rents = [t.amount for t in terms.financial if "Rent" in t.type or t.type == "Payment"]
    deposits = [t.amount for t in terms.financial if "Deposit" in t.type]
    starts = [t.date for t in terms.dates if t.type == labels["start"]]
    ends = [t.date for t in terms.dates if t.type == labels["end"]]
    notices = [t.period for t in terms.notices if not t.is_grace_period]

    lines = [
        "Main Facts:",
        f"- **Document Type:** {document_type.title()}",
        f"- **Monthly Rent/Payment:** {first(rents)}",
        f"- **Security Deposit:** {first(deposits)}",
        f"- **Start Date:** {first(starts)}",
        f"- **End Date:** {first(ends)}",
        f"- **Notice Period:** {first(notices)}",
    ]

    if terms.financial:
        lines += ["", "## Financial Obligations"]
        lines += [f"- **{t.type}:** {t.amount}" for t in terms.financial[:6]]

    if terms.dates:
        lines += ["", "## Key Dates"]
        lines += [f"- **{t.type}:** {t.date}" for t in terms.dates[:6]]

    if terms.notices:
        lines += ["", "## Termination and Renewal"]
        lines += [f"- **{t.type}:** {t.period}" for t in terms.notices[:6]]

    if terms.penalties:
        lines += ["", "## Risks and Penalties"]
        for penalty in terms.penalties[:6]:
            amounts = f" ({', '.join(penalty.amounts)})" if penalty.amounts else ""
            lines.append(f"- **{penalty.type}** ({penalty.severity} severity){amounts}")

    risky = sorted(clauses, key=lambda c: c.risk_score, reverse=True)[:5]
    if risky:
        lines += ["", "## Clauses to Review"]
        for clause in risky:
            lines.append(
                f"- **{clause.clause_type.value.title()}** (risk {clause.risk_score}/5): "
                f"{clause.text[:120]}"
            )

    return "\n".join(lines)


# === Prompts ===

SUMMARY_PROMPT = """{language_instruction}

Analyze this legal document and create a structured summary using EXACTLY this markdown format:

Main Facts:
- **Document Type:** [type]
- **Monthly Rent/Payment:** [amount if applicable]
- **Security Deposit:** [amount if applicable]
- **Start Date:** [date]
- **End Date:** [date]
- **Notice Period:** [period]

## Parties Involved
**Landlord/Lender:** [name and key responsibilities]
**Tenant/Borrower:** [name and key responsibilities]

## Financial Obligations
- **Rent/Payment:** [details on when and how payment is due]
- **Late Fees:** [specific late fee details]
- **Other Charges:** [any other fees]

## Rights and Obligations
- [Key obligations of each party]

## Termination and Renewal
- **Termination:** [How to terminate, notice periods]
- **Renewal:** [What happens at end of term]

## Risks and Penalties
- [Specific penalty or risk]

RULES:
1. Use EXACTLY these section headers with ##
2. ALL text must be in {language_name}
3. Be specific with amounts and dates from the document
4. Keep each section concise (2-5 bullet points)
5. The document was detected as a {document_type} document

Document Text (first 4000 chars):
{excerpt}
"""

QUESTIONS_PROMPT = """{language_instruction}

You are analyzing a legal document. Your goal is to help a non-expert user understand their risks and obligations.

Generate exactly 4 specific, practical questions that a person should ask about this document.

RULES:
1. Focus on specific monetary amounts, penalties, deadlines, or major maintenance duties.
2. Ensure all questions are relevant to the document content provided below.
3. The answer MUST be a single JSON object containing a property called "questions" which is an array of 4 strings.
4. DO NOT include any other fields.

Document Context:
---
{excerpt}
---
"""

LANGUAGE_PROMPT = """Identify the language of the following text.
Respond with a JSON object: {{"language": "<ISO 639-1 code>", "confidence": <number between 0 and 1>}}

Text:
{excerpt}
"""

ANSWER_PROMPT = """{language_instruction}
Answer this question about the legal document in simple, clear language.
Use ONLY the provided Document Text as context. If the answer is not available, state that you cannot find it.

Question: {question}

Document Text: {excerpt}

Answer (be specific and helpful):
"""


class GenerativeClient:
    """
    Thin client over the OpenAI chat completions API.

    Every request is issued through call_with_retry with the per-operation
    timeout from settings.
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self.model = self.settings.llm_model or "gpt-4o-mini"
        self.llm_client: Any = None
        if self.enabled:
            self._init_llm_client()

    def _init_llm_client(self):
        """Initialize the OpenAI LLM client."""
        self.llm_client = AsyncOpenAI(
            api_key=self.settings.openai_api_key,
            timeout=self.settings.api_timeout_seconds
        )

    @property
    def enabled(self) -> bool:
        return self.settings.generative_available

    async def _complete(
        self,
        prompt: str,
        *,
        timeout: float,
        label: str,
        retries: int | None = None,
        json_mode: bool = False,
        temperature: float = 0.2,
        max_tokens: int = 2000
    ) -> str:
        """Send one prompt and return the text of the first choice."""
        if not self.enabled or self.llm_client is None:
            raise GenerativeUnavailableError("Generative service not configured")

        async def request() -> str:
            kwargs: dict[str, Any] = {
                "model": self.model,
                "messages": [{"role": "user", "content": prompt}],
                "temperature": temperature,
                "max_tokens": max_tokens,
            }
            if json_mode:
                kwargs["response_format"] = {"type": "json_object"}
            response = await self.llm_client.chat.completions.create(**kwargs)
            return response.choices[0].message.content or ""

        return await call_with_retry(
            request,
            timeout=timeout,
            retries=self.settings.generative_retries if retries is None else retries,
            label=label
        )

    async def detect_language(self, text: str) -> tuple[str, float]:
        """
        Detect the language of a document.

        Returns:
            Tuple of (ISO code, confidence); ("en", 0.5) when detection fails
        """
        try:
            raw = await self._complete(
                LANGUAGE_PROMPT.format(excerpt=text[:1000]),
                timeout=self.settings.language_timeout_seconds,
                label="Language detection",
                retries=self.settings.language_retries,
                json_mode=True,
                temperature=0.0,
                max_tokens=50
            )
            data = json.loads(repair_json(raw))
            language = str(data.get("language") or DEFAULT_LANGUAGE).lower()[:2]
            confidence = float(data.get("confidence", 0.9))
            logger.info(f"Language detected: {language} (confidence: {confidence})")
            return language, confidence
        except (GenerativeError, ExternalServiceError, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Language detection failed, defaulting to English: {e}")
            return DEFAULT_LANGUAGE, 0.5

    async def generate_summary(
        self,
        text: str,
        language: str = DEFAULT_LANGUAGE,
        document_type: str = "general"
    ) -> str:
        """
        Generate a structured markdown summary.

        Raises:
            GenerativeUnavailableError: If the service is not configured
            ExternalServiceError: If the call fails after retries
            SummaryFormatError: If the response has no "##" sections
        """
        prompt = SUMMARY_PROMPT.format(
            language_instruction=_language_instruction(
                language,
                "YOU MUST RESPOND ENTIRELY IN {upper}. All headings, content, and "
                "explanations must be in {name}.",
                "RESPOND IN ENGLISH."
            ),
            language_name=get_language_name(language),
            document_type=document_type,
            excerpt=text[:4000]
        )

        logger.info(f"Generating structured summary in {language}")
        summary = await self._complete(
            prompt,
            timeout=self.settings.summary_timeout_seconds,
            label="Summary generation"
        )

        if "##" not in summary:
            raise SummaryFormatError("AI did not return structured format")

        return summary

    async def generate_questions(
        self,
        text: str,
        language: str = DEFAULT_LANGUAGE
    ) -> list[str]:
        """
        Generate four document-level questions.

        Raises:
            GenerativeUnavailableError: If the service is not configured
            ExternalServiceError: If the call fails after retries
            QuestionParseError: If the response cannot be parsed
        """
        prompt = QUESTIONS_PROMPT.format(
            language_instruction=_language_instruction(
                language,
                "CRITICAL: Generate ALL questions in {upper}. Do not use English.",
                "Generate questions in English."
            ),
            excerpt=text[:4000]
        )

        logger.info("Generating structured smart questions")
        raw = await self._complete(
            prompt,
            timeout=self.settings.questions_timeout_seconds,
            label="Smart questions generation",
            json_mode=True
        )
        return parse_generated_questions(raw)

    async def answer_question(
        self,
        question: str,
        text: str,
        language: str = DEFAULT_LANGUAGE
    ) -> str:
        """Answer a question about the document; never raises."""
        if not self.enabled:
            return ANSWER_UNAVAILABLE

        prompt = ANSWER_PROMPT.format(
            language_instruction=_language_instruction(
                language, "Answer in {name}.", ""
            ),
            question=question,
            excerpt=text[:32000]
        )

        try:
            return await self._complete(
                prompt,
                timeout=self.settings.answer_timeout_seconds,
                label="Question answering"
            )
        except (GenerativeError, ExternalServiceError) as e:
            logger.error(f"Error answering question: {e}")
            return ANSWER_FAILED
