"""
ClauseLens Term Extractor Module
================================
Extracts financial amounts, dates, notice periods and penalties from raw
document text, each with a short context snippet.

The four passes are independent and stateless. Each one deduplicates with
its own policy:
- financial: normalized amount + type
- date: literal matched date string
- notice: source character offset
- penalty: fingerprint of the context window (shared across keywords)
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar

from core.config import DEFAULT_LANGUAGE
from core.taxonomy import DATE_TYPE_LABELS, NOTICE_DAY_UNITS, PENALTY_KEYWORDS

logger = logging.getLogger(__name__)


class TermCategory(str, Enum):
    """Tag of an extracted term variant."""
    FINANCIAL = "financial"
    DATE = "date"
    NOTICE = "notice"
    PENALTY = "penalty"


@dataclass(frozen=True)
class FinancialTerm:
    """A currency amount found in the text."""
    category: ClassVar[TermCategory] = TermCategory.FINANCIAL

    amount: str
    type: str
    context: str
    original_index: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category.value,
            "amount": self.amount,
            "type": self.type,
            "context": self.context,
            "originalIndex": self.original_index
        }


@dataclass(frozen=True)
class DateTerm:
    """A literal date string with a localized type label."""
    category: ClassVar[TermCategory] = TermCategory.DATE

    date: str
    type: str
    context: str
    original_index: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category.value,
            "date": self.date,
            "type": self.type,
            "context": self.context,
            "originalIndex": self.original_index
        }


@dataclass(frozen=True)
class NoticeTerm:
    """A notice or grace period expressed in days."""
    category: ClassVar[TermCategory] = TermCategory.NOTICE

    period: str
    type: str
    is_grace_period: bool
    context: str
    original_index: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category.value,
            "period": self.period,
            "type": self.type,
            "isGracePeriod": self.is_grace_period,
            "context": self.context,
            "originalIndex": self.original_index
        }


@dataclass(frozen=True)
class PenaltyTerm:
    """A penalty trigger keyword with severity and nearby amounts."""
    category: ClassVar[TermCategory] = TermCategory.PENALTY

    type: str
    severity: str
    amounts: tuple[str, ...]
    context: str
    risk_score: int
    original_index: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category.value,
            "type": self.type,
            "severity": self.severity,
            "amounts": list(self.amounts),
            "context": self.context,
            "riskScore": self.risk_score,
            "originalIndex": self.original_index
        }


ExtractedTerm = FinancialTerm | DateTerm | NoticeTerm | PenaltyTerm


@dataclass(frozen=True)
class ExtractedTerms:
    """All terms extracted from one document."""
    financial: list[FinancialTerm] = field(default_factory=list)
    dates: list[DateTerm] = field(default_factory=list)
    notices: list[NoticeTerm] = field(default_factory=list)
    penalties: list[PenaltyTerm] = field(default_factory=list)

    def by_category(self, category: TermCategory) -> list[ExtractedTerm]:
        """Terms of a single category."""
        return {
            TermCategory.FINANCIAL: self.financial,
            TermCategory.DATE: self.dates,
            TermCategory.NOTICE: self.notices,
            TermCategory.PENALTY: self.penalties,
        }[category]

    @property
    def total(self) -> int:
        return len(self.financial) + len(self.dates) + len(self.notices) + len(self.penalties)

    def to_dict(self) -> dict[str, Any]:
        return {
            "financial": [t.to_dict() for t in self.financial],
            "dates": [t.to_dict() for t in self.dates],
            "notices": [t.to_dict() for t in self.notices],
            "penalties": [t.to_dict() for t in self.penalties]
        }


# === Financial ===

# Currency families in priority order; earlier patterns win on overlap
CURRENCY_PATTERNS = [
    ("USD", re.compile(r"\$[\d,]+(?:\.\d{2})?")),
    ("EUR", re.compile(r"€[\d\s,]+(?:[.,]\d{2})?")),
    ("GBP", re.compile(r"£[\d,]+(?:\.\d{2})?")),
    ("INR-Symbol", re.compile(r"₹[\d,]+(?:\.\d{2})?")),
    ("INR-Rs", re.compile(r"\bRs\.?\s+[\d,]+(?:\.\d{2})?")),
    ("INR-Code", re.compile(r"\bINR\s+[\d,]+(?:\.\d{2})?")),
    ("INR-Word", re.compile(r"[\d,]+(?:\.\d{2})?\s+Rupees")),
    ("INR-Paren", re.compile(r"\([\d,]+(?:\.\d{2})?\s*Rupees(?:\s+only)?\)")),
]

# Symbol-prefixed patterns reused by the penalty pass
PRIMARY_CURRENCY_PATTERNS = [pattern for _, pattern in CURRENCY_PATTERNS[:4]]

FINANCIAL_TYPE_RULES = [
    ("Security Deposit", re.compile(r"security\s+deposit", re.IGNORECASE)),
    ("Monthly Rent", re.compile(r"monthly\s+rent|rent\s+for", re.IGNORECASE)),
    ("Rent", re.compile(r"\brent\b", re.IGNORECASE)),
    ("Deposit", re.compile(r"\bdeposit\b", re.IGNORECASE)),
]

OVERLAP_DISTANCE = 5
AMOUNT_NOISE = re.compile(r"[₹$€£,\s()]")


def _window(text: str, start: int, length: int, before: int, after: int) -> str:
    """Trimmed slice of text around a match."""
    return text[max(0, start - before):min(len(text), start + length + after)].strip()


def _nearest_rule(
    text: str,
    start: int,
    length: int,
    radius: int,
    rules: list[tuple[str, re.Pattern]]
) -> str | None:
    """
    Label of the rule whose keyword lies closest to a match.

    Only keywords within `radius` characters of the match count. Declaration
    order breaks distance ties, so with one keyword in range this is a plain
    priority lookup.
    """
    offset = max(0, start - radius)
    window = text[offset:start + length + radius]
    span_start, span_end = start - offset, start - offset + length

    best: tuple[int, int] | None = None
    label = None
    for priority, (name, rule) in enumerate(rules):
        for found in rule.finditer(window):
            if found.end() <= span_start:
                distance = span_start - found.end()
            elif found.start() >= span_end:
                distance = found.start() - span_end
            else:
                distance = 0
            if best is None or (distance, priority) < best:
                best = (distance, priority)
                label = name
    return label


def _ellipsize(context: str, limit: int = 120) -> str:
    return f"...{context}..." if len(context) > limit else context


def extract_financial_terms(text: str) -> list[FinancialTerm]:
    """
    Extract currency amounts with their payment type.

    A match starting within 5 characters of an already accepted match is
    dropped, so earlier currency families take priority on overlap.
    """
    if not text:
        return []

    accepted: list[tuple[str, int]] = []
    seen_positions: list[int] = []

    for _name, pattern in CURRENCY_PATTERNS:
        for match in pattern.finditer(text):
            index = match.start()
            if any(abs(index - seen) < OVERLAP_DISTANCE for seen in seen_positions):
                continue
            seen_positions.append(index)
            # Trailing separators are punctuation, not part of the amount
            accepted.append((match.group(0).strip().rstrip(", "), index))

    terms = []
    seen_keys: set[tuple[str, str]] = set()

    for amount, index in accepted:
        context = _window(text, index, len(amount), 80, 80)
        term_type = _nearest_rule(text, index, len(amount), 80, FINANCIAL_TYPE_RULES) or "Payment"

        key = (AMOUNT_NOISE.sub("", amount), term_type)
        if key in seen_keys:
            continue
        seen_keys.add(key)

        terms.append(FinancialTerm(
            amount=amount,
            type=term_type,
            context=_ellipsize(context),
            original_index=index
        ))

    return terms


# === Dates ===

_EN_MONTHS = "January|February|March|April|May|June|July|August|September|October|November|December"
_ES_MONTHS = "enero|febrero|marzo|abril|mayo|junio|julio|agosto|septiembre|octubre|noviembre|diciembre"
_FR_MONTHS = "janvier|février|mars|avril|mai|juin|juillet|août|septembre|octobre|novembre|décembre"
_DE_MONTHS = "Januar|Februar|März|April|Mai|Juni|Juli|August|September|Oktober|November|Dezember"
_ABBR_MONTHS = "Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec"

DATE_PATTERNS = [
    re.compile(r"\d{1,2}/\d{1,2}/\d{2,4}"),
    re.compile(r"\d{1,2}-\d{1,2}-\d{2,4}"),
    re.compile(rf"\b(?:{_EN_MONTHS})\s+\d{{1,2}},?\s+\d{{4}}\b", re.IGNORECASE),
    re.compile(rf"\b(?:{_ES_MONTHS})\s+(?:de\s+)?\d{{4}}", re.IGNORECASE),
    re.compile(rf"\b\d{{1,2}}\s+de\s+(?:{_ES_MONTHS})\s+de\s+\d{{4}}\b", re.IGNORECASE),
    re.compile(rf"\b(?:{_FR_MONTHS})\s+\d{{4}}", re.IGNORECASE),
    re.compile(rf"\b\d{{1,2}}\s+(?:{_FR_MONTHS})\s+\d{{4}}\b", re.IGNORECASE),
    re.compile(r"\b\d{4}-\d{2}-\d{2}\b"),
    re.compile(rf"\b(?:{_ABBR_MONTHS})\w*\s+\d{{4}}\b", re.IGNORECASE),
    re.compile(rf"\b\d{{1,2}}\s+(?:{_ABBR_MONTHS})\w*\s+\d{{4}}\b", re.IGNORECASE),
    re.compile(rf"\b\d{{1,2}}\.\s+(?:{_DE_MONTHS})\s+\d{{4}}\b", re.IGNORECASE),
]

# Context key rules in priority order
DATE_TYPE_RULES = [
    ("start", re.compile(r"begin|start|início|comienzo|début|beginn|inizio|efectiva", re.IGNORECASE)),
    ("end", re.compile(r"end|expir|término|fin|vencimiento|échéance|ablauf|scadenza", re.IGNORECASE)),
    ("due", re.compile(r"due|vencimiento|échéance|fällig|scadenza|pagamento", re.IGNORECASE)),
    ("update", re.compile(
        r"actualización|update|mise à jour|aktualisierung|aggiornamento|última actualización",
        re.IGNORECASE
    )),
]


def extract_date_terms(text: str, language: str = DEFAULT_LANGUAGE) -> list[DateTerm]:
    """
    Extract date strings and label them by nearby keywords.

    Patterns are applied independently, so one token may match several of
    them. The result keeps the first occurrence of each literal date string.
    """
    if not text:
        return []

    labels = DATE_TYPE_LABELS.get(language) or DATE_TYPE_LABELS[DEFAULT_LANGUAGE]
    terms = []

    for pattern in DATE_PATTERNS:
        for match in pattern.finditer(text):
            date = match.group(0)
            index = match.start()
            context = _window(text, index, len(date), 40, 40)

            type_key = _nearest_rule(text, index, len(date), 40, DATE_TYPE_RULES) or "important"

            terms.append(DateTerm(
                date=date,
                type=labels.get(type_key, type_key),
                context=f"...{context}...",
                original_index=index
            ))

    unique: dict[str, DateTerm] = {}
    for term in terms:
        unique.setdefault(term.date, term)
    return list(unique.values())


# === Notice periods ===

_DAY_WORDS = r"(?:days?|días?|jours?|tage|giorni|dias?)"
_NOTICE_WORDS = r"(?:notice|aviso|préavis|kündigungsfrist|preavviso)"

NOTICE_PATTERNS = [
    re.compile(
        rf"(\d+)\s+{_DAY_WORDS}\s+(?:written\s+)?(?:notice|aviso|préavis|kündigungsfrist|preavviso|prior|before|grace)",
        re.IGNORECASE
    ),
    re.compile(rf"{_NOTICE_WORDS}\s+(?:of|de)\s+(\d+)\s+{_DAY_WORDS}", re.IGNORECASE),
]

NOTICE_TYPE_RULES = [
    ("Grace Period", re.compile(r"grace|gracia|délai de grâce|schonfrist", re.IGNORECASE)),
    ("Termination Notice", re.compile(
        r"terminat|cancel|rescind|resiliación|résiliation|kündigung", re.IGNORECASE
    )),
    ("Late Payment Grace", re.compile(r"late|retraso|retard|verspätung|mora", re.IGNORECASE)),
]


def extract_notice_periods(text: str, language: str = DEFAULT_LANGUAGE) -> list[NoticeTerm]:
    """Extract "N days notice" style periods, unique by source offset."""
    if not text:
        return []

    unit = NOTICE_DAY_UNITS.get(language, "days")
    terms: dict[int, NoticeTerm] = {}

    for pattern in NOTICE_PATTERNS:
        for match in pattern.finditer(text):
            index = match.start()
            if index in terms:
                continue

            context = _window(text, index, len(match.group(0)), 50, 50)
            lower_context = context.lower()

            notice_type = "Notice Period"
            for label, rule in NOTICE_TYPE_RULES:
                if rule.search(lower_context):
                    notice_type = label
                    break

            terms[index] = NoticeTerm(
                period=f"{match.group(1)} {unit}",
                type=notice_type,
                is_grace_period=notice_type == "Grace Period",
                context=f"...{context}...",
                original_index=index
            )

    return list(terms.values())


# === Penalties ===

HIGH_SEVERITY = re.compile(
    r"immediately|inmediatamente|immédiatement|sofort|forfeit|pérdida|perte|evict|desalojo",
    re.IGNORECASE
)
LOW_SEVERITY = re.compile(r"may|could|puede|pourrait|könnte", re.IGNORECASE)

SEVERITY_RISK_SCORES = {"high": 5, "medium": 3, "low": 1}

# Word characters for keyword boundaries; Devanagari vowel signs are not \w
KEYWORD_CHARS = r"\w\u0900-\u0963\u0966-\u097F"


def extract_penalties(text: str, language: str = DEFAULT_LANGUAGE) -> list[PenaltyTerm]:
    """
    Extract penalty keywords with severity and nearby amounts.

    A match is skipped when the first 100 lower-cased characters of its
    context were already seen, even for a different keyword.
    """
    if not text:
        return []

    keywords = PENALTY_KEYWORDS.get(language) or PENALTY_KEYWORDS[DEFAULT_LANGUAGE]
    lower_text = text.lower()
    seen_contexts: set[str] = set()
    terms = []

    for keyword in keywords:
        pattern = re.compile(
            rf"(?<![{KEYWORD_CHARS}]){re.escape(keyword)}(?![{KEYWORD_CHARS}])",
            re.IGNORECASE
        )
        for match in pattern.finditer(lower_text):
            index = match.start()
            context = text[max(0, index - 60):min(len(text), index + len(keyword) + 100)].strip()
            fingerprint = context[:100].lower().strip()

            if fingerprint in seen_contexts:
                continue
            seen_contexts.add(fingerprint)

            amounts: list[str] = []
            for amount_pattern in PRIMARY_CURRENCY_PATTERNS:
                amounts.extend(amount_pattern.findall(context))

            severity = _penalty_severity(context.lower())

            terms.append(PenaltyTerm(
                type=keyword[:1].upper() + keyword[1:],
                severity=severity,
                amounts=tuple(amounts),
                context=_ellipsize(context),
                risk_score=SEVERITY_RISK_SCORES[severity],
                original_index=index
            ))

    return terms


def _penalty_severity(lower_context: str) -> str:
    if HIGH_SEVERITY.search(lower_context):
        return "high"
    if LOW_SEVERITY.search(lower_context):
        return "low"
    return "medium"


def extract_all_terms(text: str, language: str = DEFAULT_LANGUAGE) -> ExtractedTerms:
    """Run all four extraction passes over the same text."""
    terms = ExtractedTerms(
        financial=extract_financial_terms(text),
        dates=extract_date_terms(text, language),
        notices=extract_notice_periods(text, language),
        penalties=extract_penalties(text, language)
    )
    logger.info(
        f"Extracted terms: {len(terms.financial)} financial, {len(terms.dates)} dates, "
        f"{len(terms.notices)} notices, {len(terms.penalties)} penalties"
    )
    return terms
