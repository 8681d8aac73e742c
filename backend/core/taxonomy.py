"""
ClauseLens Taxonomy Tables
==========================
Fixed keyword tables used by the local classifiers and extractors.

Tables are plain module-level constants, loaded once at import, so the
classifiers stay deterministic and the language data can be swapped by
editing this module alone. Table order is significant wherever a classifier
resolves ties or priorities by declaration order.
"""

# Clause type -> keywords. Declaration order breaks score ties.
CLAUSE_TYPE_KEYWORDS: dict[str, list[str]] = {
    "termination": ["terminate", "end", "cancel", "expire", "dissolution", "conclude", "cessation"],
    "payment": ["pay", "fee", "cost", "amount", "money", "charge", "bill", "due", "owe", "rent", "price", "installment"],
    "penalty": ["penalty", "fine", "violation", "breach", "forfeit", "damages", "liquidated", "default"],
    "renewal": ["renew", "extend", "automatic", "continue", "successive", "perpetual"],
    "liability": ["liable", "responsible", "damages", "injury", "loss", "indemnify", "hold harmless"],
    "confidentiality": ["confidential", "private", "secret", "disclosure", "proprietary", "non-disclosure"],
    "warranty": ["warrant", "guarantee", "assure", "promise", "represent", "covenant"],
    "insurance": ["insurance", "insure", "coverage", "policy", "premium"],
    "maintenance": ["maintain", "repair", "upkeep", "service", "condition"],
    "use": ["use", "utilize", "occupy", "operate", "employ", "purpose"],
    "notice": ["notice", "notify", "inform", "advise", "communication"],
    "assignment": ["assign", "transfer", "sublease", "sublet", "delegate"],
    # Loan-specific types
    "collateral": ["collateral", "security", "pledge", "secure", "shares", "stock", "asset", "guarantee", "pledged"],
    "interest": ["interest", "rate", "annual", "APR", "percentage", "accrue", "compound", "calculated"],
    "default": ["default", "failure", "acceleration", "demand", "call", "due immediately"],
    "repayment": ["repay", "repayment", "principal", "balance", "outstanding", "amortization"],
}

# Risk tier -> keywords
RISK_KEYWORDS: dict[str, list[str]] = {
    "high": [
        "penalty", "forfeit", "liability", "damages", "terminate immediately",
        "breach", "violation", "liquidated damages", "indemnify", "default",
        "eviction", "foreclosure", "legal action", "lawsuit"
    ],
    "medium": [
        "fee", "charge", "notice", "obligation", "must", "required",
        "shall", "responsible", "due", "late", "interest", "repair",
        "maintain", "insurance", "deposit"
    ],
    "low": [
        "option", "may", "discretion", "suggest", "recommend",
        "voluntary", "preferred", "encouraged"
    ],
}

# Two suggested questions per clause type
SUGGESTED_QUESTIONS: dict[str, list[str]] = {
    "termination": [
        "How do I properly end this agreement?",
        "What notice period is required to terminate?"
    ],
    "payment": [
        "When exactly are payments due?",
        "What happens if I miss a payment?"
    ],
    "penalty": [
        "What specific actions trigger penalties?",
        "How much will I owe if I violate this?"
    ],
    "renewal": [
        "Does this automatically renew?",
        "How do I prevent automatic renewal?"
    ],
    "liability": [
        "What am I financially responsible for?",
        "Are there limits on my liability?"
    ],
    "confidentiality": [
        "What information must I keep private?",
        "How long does confidentiality last?"
    ],
    "warranty": [
        "What exactly is guaranteed?",
        "What happens if the warranty is broken?"
    ],
    "collateral": [
        "What exactly am I pledging as collateral?",
        "Can the lender take my collateral if I default?"
    ],
    "interest": [
        "What is the exact interest rate?",
        "How is interest calculated and when is it due?"
    ],
    "default": [
        "What counts as being in default?",
        "What are the immediate consequences of default?"
    ],
    "repayment": [
        "What is the exact payment schedule?",
        "Can I pay off the loan early without penalty?"
    ],
    "general": [
        "What are the most important terms I should understand?",
        "What obligations do I have under this agreement?"
    ],
}

# Document category -> keywords, checked in this order
DOCUMENT_TYPE_KEYWORDS: dict[str, list[str]] = {
    "lease": ["lease", "rental", "tenant", "landlord"],
    "loan": ["loan", "credit", "mortgage"],
    "employment": ["employment", "job", "employee"],
    "service": ["service", "contractor", "consulting"],
    "purchase": ["purchase", "sale", "buy", "sell"],
    "partnership": ["partnership", "joint venture"],
    "license": ["license", "licensing"],
    "nda": ["confidentiality", "non-disclosure", "nda"],
}

# Language -> penalty trigger keywords
PENALTY_KEYWORDS: dict[str, list[str]] = {
    "en": ["penalty", "fine", "breach", "violation", "forfeit", "fee", "late fee", "eviction"],
    "es": ["penalización", "multa", "incumplimiento", "violación", "pérdida", "tarifa", "cargo", "desalojo"],
    "fr": ["pénalité", "amende", "violation", "manquement", "perte", "frais", "expulsion"],
    "de": ["strafe", "bußgeld", "verletzung", "verstoß", "verlust", "gebühr", "räumung"],
    "hi": ["दंड", "जुर्माना", "उल्लंघन", "हानि", "शुल्क", "बेदखली"],
}

# Language -> date label per context key
DATE_TYPE_LABELS: dict[str, dict[str, str]] = {
    "en": {
        "important": "Important Date",
        "start": "Start Date",
        "end": "End Date",
        "due": "Due Date",
        "update": "Update Date",
    },
    "de": {
        "important": "Wichtige Daten",
        "start": "Anfangsdatum",
        "end": "Enddatum",
        "due": "Fälligkeitsdatum",
        "update": "Aktualisierungsdatum",
    },
    "es": {
        "important": "Fecha Importante",
        "start": "Fecha de Inicio",
        "end": "Fecha de Fin",
        "due": "Fecha de Vencimiento",
        "update": "Fecha de Actualización",
    },
    "fr": {
        "important": "Date Importante",
        "start": "Date de Début",
        "end": "Date de Fin",
        "due": "Date d'échéance",
        "update": "Date de Mise à Jour",
    },
    "hi": {
        "important": "महत्वपूर्ण तिथि",
        "start": "प्रारंभ तिथि",
        "end": "समाप्ति तिथि",
        "due": "नियत तिथि",
        "update": "अद्यतन तिथि",
    },
}

# Unit word for notice periods
NOTICE_DAY_UNITS: dict[str, str] = {
    "es": "días",
    "fr": "jours",
}

# Document-level questions used when the generative service is unavailable
FALLBACK_QUESTIONS: list[str] = [
    "What are the main costs and fees mentioned?",
    "How can this agreement be terminated?",
    "What penalties apply if I don't follow the terms?",
    "What are my key rights and obligations?"
]
