# This project was developed with assistance from AI tools.
"""Extraction prompt templates.

Keeps prompt construction separate from the extraction service so prompts
can be reviewed and iterated on independently. Bump
``EXTRACTION_PROMPT_VERSION`` whenever the instruction text changes.
"""

from ..schemas.application import APPLICATION_FIELDS

EXTRACTION_PROMPT_VERSION = "2025-02-v3"

# Fields the oracle must return as bare numbers.
NUMERIC_FIELDS: frozenset[str] = frozenset(
    {
        "loan_amount",
        "property_value",
        "interest_rate",
        "protective_equity",
        "term_months",
        "cltv",
        "first_td_balance",
        "first_td_monthly_payment",
        "first_td_interest_rate",
        "monthly_hoa_fees",
        "employment_income",
        "liquid_assets",
        "rental_income",
        "mid_fico",
    }
)


def _schema_block() -> str:
    lines = ["{"]
    for name in APPLICATION_FIELDS:
        kind = "number" if name in NUMERIC_FIELDS else "string"
        lines.append(f'  "{name}": "{kind} or null",')
    lines.append('  "confidence_notes": { "field_name": "note about extraction confidence or source" }')
    lines.append("}")
    return "\n".join(lines)


EXTRACTION_PROMPT = (
    "You are a loan document processing AI for a private lending company. "
    "Your job is to extract structured data from loan-related documents and emails.\n\n"
    "You will receive either:\n"
    "1. An email body containing a loan request template (partially filled)\n"
    "2. A document (W-2, pay stub, bank statement, tax return, ID, SSN card, "
    "mortgage statement)\n\n"
    "Extract ALL relevant information and return it as JSON matching this exact "
    "schema. Use null for any field you cannot determine. All monetary values "
    "should be numbers only (no $ or commas). Percentages should be numbers only "
    "(no %).\n\n"
    f"{_schema_block()}\n\n"
    "DOCUMENT-SPECIFIC EXTRACTION GUIDANCE:\n\n"
    "For GOVERNMENT ID (driver's license, state ID, passport):\n"
    "- Extract borrower_name (full legal name as printed)\n"
    "- Extract borrower_dob (date of birth)\n"
    "- Extract borrower_address (residential address as printed on the ID)\n"
    '- Note the ID/license number and issuing state in confidence_notes under "id_document"\n'
    "- Do NOT extract SSN from an ID card\n\n"
    "For SOCIAL SECURITY CARD:\n"
    "- Extract borrower_name (full name as printed on the card)\n"
    "- Extract borrower_ssn (the 9-digit Social Security Number, format: XXX-XX-XXXX)\n"
    "- Note in confidence_notes that the SSN was extracted from a Social Security card\n\n"
    "For PAY STUBS / W-2s:\n"
    "- Extract employment, employment_income, borrower_name, borrower_ssn (if visible)\n\n"
    "For BANK STATEMENTS:\n"
    "- Extract liquid_assets (total balance), borrower_name\n\n"
    "IMPORTANT:\n"
    "- Extract ONLY what is explicitly stated in the document. Do not calculate or infer values.\n"
    "- For SSN: extract it if visible but note it in confidence_notes.\n"
    "- For FICO scores: only extract if explicitly stated.\n"
    "- If a field appears in multiple places with different values, use the most "
    "recent one and note the discrepancy.\n"
    "- Return ONLY valid JSON, no other text."
)


def build_email_body_messages(email_body: str) -> list[dict]:
    """Build messages for extraction from a loan request email body."""
    return [
        {"role": "system", "content": EXTRACTION_PROMPT},
        {
            "role": "user",
            "content": (
                "Here is a loan request email. Extract all filled-in fields:\n\n"
                f"{email_body}"
            ),
        },
    ]


def _document_instruction(file_name: str, doc_type: str | None) -> str:
    return (
        f'This document is "{file_name}". Extract all relevant loan application '
        f"fields. Document type: {doc_type or 'unknown'}."
    )


def build_document_text_messages(text: str, file_name: str, doc_type: str | None) -> list[dict]:
    """Build messages for a document whose text layer was read locally."""
    return [
        {"role": "system", "content": EXTRACTION_PROMPT},
        {
            "role": "user",
            "content": f"{_document_instruction(file_name, doc_type)}\n\n{text}",
        },
    ]


def build_document_image_messages(
    data_url: str,
    file_name: str,
    doc_type: str | None,
) -> list[dict]:
    """Build messages for vision extraction from a base64 data URL."""
    return [
        {"role": "system", "content": EXTRACTION_PROMPT},
        {
            "role": "user",
            "content": [
                {"type": "image_url", "image_url": {"url": data_url}},
                {"type": "text", "text": _document_instruction(file_name, doc_type)},
            ],
        },
    ]
