# This project was developed with assistance from AI tools.
"""Filename-based document classification.

Rules are evaluated top to bottom on the lower-cased file name; the first
match wins. The SSN-card rule precedes the generic ID rule, and the short
``id``/``dl`` tokens only match as whole words (so "paid" or "void" do not).
"""

import re

from db.enums import DocumentType

_ID_TOKEN_RE = re.compile(r"\b(?:id|dl)\b")

_RULES: list[tuple[DocumentType, tuple[str, ...]]] = [
    (DocumentType.W2, ("w2", "w-2")),
    (DocumentType.PAYSTUB, ("paystub", "pay_stub", "pay stub")),
    (DocumentType.BANK_STATEMENT, ("bank", "statement")),
    (DocumentType.TAX_RETURN, ("tax", "1040", "1099")),
    (DocumentType.MORTGAGE_STATEMENT, ("mortgage", "deed")),
    (DocumentType.SSN_CARD, ("ssn", "social security", "social_security", "social")),
]

_ID_KEYWORDS = ("license", "licence", "passport", "driver")


def classify_document(file_name: str, mime_type: str | None = None) -> DocumentType:
    """Map an attachment to a document category.

    ``mime_type`` is accepted for future rules; classification is currently
    driven by the file name alone.
    """
    lower = file_name.lower()

    for doc_type, keywords in _RULES:
        if any(keyword in lower for keyword in keywords):
            return doc_type

    if _ID_TOKEN_RE.search(lower) or any(keyword in lower for keyword in _ID_KEYWORDS):
        return DocumentType.ID

    return DocumentType.OTHER
