# This project was developed with assistance from AI tools.
"""Shared test factory functions for creating mock objects.

Builds mock ORM rows, inbound emails and Gmail API payloads so test modules
don't each re-declare them.
"""

import base64
from datetime import UTC, datetime
from unittest.mock import MagicMock

from src.services.mailbox import Attachment, InboundEmail
from src.services.merge import empty_application


def make_application(**fields):
    """Return an empty application record with the given fields set."""
    record = empty_application()
    record.update(fields)
    return record


def make_mock_deal(
    id=1,
    client_name="Jane Borrower",
    client_email="jane@example.com",
    subject_line="Loan request - 123 Main Street",
    status="processing",
    application_data=None,
    raw_email_body=None,
    created_at=None,
):
    """Create a mock Deal ORM object.

    Args:
        id: Deal ID.
        client_name: Borrower display name.
        client_email: Sender address the deal was opened from.
        subject_line: Subject of the opening email.
        status: Deal status value (new, processing, ...).
        application_data: Application record; defaults to an empty one.
        raw_email_body: Body of the opening email.
        created_at: Creation timestamp; defaults to a fixed UTC time.

    Returns:
        MagicMock configured as a Deal model instance.
    """
    from db.enums import DealStatus

    d = MagicMock()
    d.id = id
    d.client_name = client_name
    d.client_email = client_email
    d.subject_line = subject_line
    d.status = DealStatus(status)
    d.application_data = application_data if application_data is not None else empty_application()
    d.raw_email_body = raw_email_body
    d.created_at = created_at or datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
    d.updated_at = d.created_at
    return d


def make_mock_document(
    id=1,
    deal_id=1,
    file_name="w2_2025.pdf",
    file_url="http://localhost:9090/documents/deals/1/1700000000000-w2_2025.pdf",
    doc_type="w2",
    status="parsed",
    extracted_data=None,
    gmail_message_id="msg-1",
):
    """Create a mock Document ORM object."""
    from db.enums import DocumentStatus, DocumentType

    doc = MagicMock()
    doc.id = id
    doc.deal_id = deal_id
    doc.file_name = file_name
    doc.file_url = file_url
    doc.doc_type = DocumentType(doc_type)
    doc.status = DocumentStatus(status)
    doc.extracted_data = extracted_data
    doc.gmail_message_id = gmail_message_id
    doc.created_at = datetime(2026, 3, 1, 12, 5, tzinfo=UTC)
    doc.updated_at = doc.created_at
    return doc


def make_mock_activity(id=1, deal_id=1, action="deal_created", details="Deal created"):
    """Create a mock ActivityLog ORM object."""
    entry = MagicMock()
    entry.id = id
    entry.deal_id = deal_id
    entry.action = action
    entry.details = details
    entry.created_at = datetime(2026, 3, 1, 12, 10, tzinfo=UTC)
    return entry


def make_attachment(file_name="w2_2025.pdf", mime_type="application/pdf", data=b"%PDF-1.4 fake"):
    return Attachment(file_name=file_name, mime_type=mime_type, data=data, size=len(data))


def make_email(
    message_id="msg-1",
    sender="jane@example.com",
    sender_name="Jane Borrower",
    subject="Loan request - 123 Main Street",
    body="",
    attachments=None,
):
    """Create an InboundEmail as returned by Mailbox.fetch_full."""
    return InboundEmail(
        message_id=message_id,
        sender=sender,
        sender_name=sender_name,
        subject=subject,
        body=body,
        date="Mon, 2 Mar 2026 10:00:00 -0800",
        attachments=list(attachments or []),
    )


def b64url(data):
    """Encode like the Gmail API: urlsafe base64 without padding."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def make_gmail_message(
    message_id="msg-1",
    from_header='"Jane Borrower" <jane@example.com>',
    subject="Loan request - 123 Main Street",
    text_body="Please see attached.",
    attachments=(),
):
    """Build a users.messages.get(format=full) payload.

    ``attachments`` is a sequence of (filename, mime_type, attachment_id).
    """
    parts = [
        {
            "partId": "0",
            "mimeType": "text/plain",
            "filename": "",
            "body": {"size": len(text_body), "data": b64url(text_body)},
        }
    ]
    for idx, (filename, mime_type, attachment_id) in enumerate(attachments, start=1):
        parts.append(
            {
                "partId": str(idx),
                "mimeType": mime_type,
                "filename": filename,
                "body": {"attachmentId": attachment_id, "size": 10},
            }
        )
    return {
        "id": message_id,
        "payload": {
            "mimeType": "multipart/mixed",
            "headers": [
                {"name": "From", "value": from_header},
                {"name": "Subject", "value": subject},
                {"name": "Date", "value": "Mon, 2 Mar 2026 10:00:00 -0800"},
            ],
            "body": {"size": 0},
            "parts": parts,
        },
    }
