"""
ClauseLens Document Type Module
===============================
Coarse document category detection from keyword groups.
"""

from enum import Enum

from core.taxonomy import DOCUMENT_TYPE_KEYWORDS


class DocumentCategory(str, Enum):
    """Coarse legal document categories."""
    LEASE = "lease"
    LOAN = "loan"
    EMPLOYMENT = "employment"
    SERVICE = "service"
    PURCHASE = "purchase"
    PARTNERSHIP = "partnership"
    LICENSE = "license"
    NDA = "nda"
    GENERAL = "general"


def detect_document_type(text: str) -> DocumentCategory:
    """
    Detect the document category.

    Keyword groups are checked in fixed priority order and the first group
    with any keyword contained in the lower-cased text wins. There is no
    scoring, so "nda" also fires on words such as "standard".
    """
    lower_text = (text or "").lower()

    for category, keywords in DOCUMENT_TYPE_KEYWORDS.items():
        if any(keyword in lower_text for keyword in keywords):
            return DocumentCategory(category)

    return DocumentCategory.GENERAL
