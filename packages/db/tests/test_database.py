# This project was developed with assistance from AI tools.
"""Schema-level tests for the intake models (no running database needed)."""

from db import ActivityLog, Base, Deal, DealStatus, Document, DocumentStatus, DocumentType


def test_tables_registered():
    assert {"deals", "documents", "activity_log"} <= set(Base.metadata.tables)


def test_active_statuses_exclude_completed():
    active = DealStatus.active_statuses()
    assert DealStatus.COMPLETED not in active
    assert active == {DealStatus.NEW, DealStatus.PROCESSING, DealStatus.READY_FOR_REVIEW}


def test_document_message_id_is_indexed():
    column = Document.__table__.c.gmail_message_id
    assert column.index is True
    assert column.nullable is True


def test_deal_lookup_columns_indexed():
    assert Deal.__table__.c.client_email.index is True
    assert Deal.__table__.c.status.index is True


def test_enums_store_string_values():
    assert DocumentType("ssn_card") is DocumentType.SSN_CARD
    assert DocumentStatus.FAILED.value == "failed"


def test_activity_log_cascades_with_deal():
    fk = next(iter(ActivityLog.__table__.c.deal_id.foreign_keys))
    assert fk.ondelete == "CASCADE"
