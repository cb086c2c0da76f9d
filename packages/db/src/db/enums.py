# This project was developed with assistance from AI tools.
"""
Domain enums for the email-to-deal intake lifecycle.

Shared domain types used by both SQLAlchemy models (db package)
and Pydantic schemas (api package).
"""

import enum


class DealStatus(str, enum.Enum):
    NEW = "new"
    PROCESSING = "processing"
    READY_FOR_REVIEW = "ready_for_review"
    COMPLETED = "completed"

    @classmethod
    def active_statuses(cls) -> frozenset["DealStatus"]:
        """Statuses where a deal can still receive inbound email."""
        return frozenset({cls.NEW, cls.PROCESSING, cls.READY_FOR_REVIEW})


class DocumentType(str, enum.Enum):
    W2 = "w2"
    PAYSTUB = "paystub"
    BANK_STATEMENT = "bank_statement"
    TAX_RETURN = "tax_return"
    MORTGAGE_STATEMENT = "mortgage_statement"
    ID = "id"
    SSN_CARD = "ssn_card"
    OTHER = "other"


class DocumentStatus(str, enum.Enum):
    PENDING = "pending"
    PARSED = "parsed"
    FAILED = "failed"


class ActivityAction(str, enum.Enum):
    DEAL_CREATED = "deal_created"
    EMAIL_RECEIVED = "email_received"
    DOCUMENT_PARSED = "document_parsed"
    STATUS_CHANGED = "status_changed"
    APPLICATION_SAVED = "application_saved"
