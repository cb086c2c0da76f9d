# This project was developed with assistance from AI tools.
"""In-memory stand-ins for the store, blob storage and mailbox.

They implement the same async methods the ingestion pipeline calls on
``DealStore``, ``StorageService`` and ``GmailMailbox`` so pipeline tests can
assert on resulting state instead of on call sequences.
"""

from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta
from types import SimpleNamespace

from db.enums import DealStatus, DocumentStatus

from src.services.mailbox import MailboxError

_EPOCH = datetime(2026, 3, 1, tzinfo=UTC)


class FakeStore:
    """DealStore over plain lists.

    ``fail_on`` names methods that always raise; ``fail_once`` names methods
    that raise on their next call only.
    """

    def __init__(self):
        self.deals = []
        self.documents = []
        self.activity = []
        self.fail_on = set()
        self.fail_once = set()
        self.rollbacks = 0
        self._next_id = 1

    def _tick(self):
        value = self._next_id
        self._next_id += 1
        return value

    def _check(self, name):
        if name in self.fail_once:
            self.fail_once.discard(name)
            raise RuntimeError(f"{name} failed")
        if name in self.fail_on:
            raise RuntimeError(f"{name} failed")

    async def rollback(self):
        self.rollbacks += 1

    def add_deal(self, **fields):
        """Seed an existing deal. Later seeds count as newer."""
        deal_id = self._tick()
        deal = SimpleNamespace(
            id=deal_id,
            client_name=fields.get("client_name", "Client"),
            client_email=fields.get("client_email", "client@example.com"),
            subject_line=fields.get("subject_line"),
            status=fields.get("status", DealStatus.PROCESSING),
            application_data=fields.get("application_data", {}),
            raw_email_body=fields.get("raw_email_body"),
            created_at=fields.get("created_at", _EPOCH + timedelta(minutes=deal_id)),
        )
        self.deals.append(deal)
        return deal

    def _newest_first(self, deals):
        return sorted(deals, key=lambda d: (d.created_at, d.id), reverse=True)

    async def find_active_deal_by_email(self, client_email):
        self._check("find_active_deal_by_email")
        active = [
            d
            for d in self.deals
            if d.client_email == client_email and d.status in DealStatus.active_statuses()
        ]
        newest = self._newest_first(active)
        return newest[0] if newest else None

    async def list_active_deals(self):
        self._check("list_active_deals")
        return self._newest_first(
            [d for d in self.deals if d.status in DealStatus.active_statuses()]
        )

    async def create_deal(self, **fields):
        self._check("create_deal")
        return self.add_deal(**fields)

    async def update_deal(self, deal, *, status=None, application_data=None):
        self._check("update_deal")
        if status is not None:
            deal.status = status
        if application_data is not None:
            deal.application_data = dict(application_data)
        return deal

    async def has_documents_for_message(self, message_id):
        self._check("has_documents_for_message")
        return any(doc.gmail_message_id == message_id for doc in self.documents)

    async def create_document(self, *, deal_id, file_name, file_url, doc_type, gmail_message_id):
        self._check("create_document")
        doc = SimpleNamespace(
            id=self._tick(),
            deal_id=deal_id,
            file_name=file_name,
            file_url=file_url,
            doc_type=doc_type,
            status=DocumentStatus.PENDING,
            extracted_data=None,
            gmail_message_id=gmail_message_id,
        )
        self.documents.append(doc)
        return doc

    async def update_document(self, document, *, status, extracted_data):
        self._check("update_document")
        document.status = status
        document.extracted_data = extracted_data
        return document

    async def add_activity(self, deal_id, action, details):
        self._check("add_activity")
        entry = SimpleNamespace(deal_id=deal_id, action=action, details=details)
        self.activity.append(entry)
        return entry

    def actions_for(self, deal_id):
        return [entry.action for entry in self.activity if entry.deal_id == deal_id]

    def factory(self):
        """A store_factory for IngestionService yielding this store."""

        @asynccontextmanager
        async def _open():
            yield self

        return _open


class FakeStorage:
    def __init__(self, fail_for=()):
        self.stored = []
        self._fail_for = set(fail_for)

    async def store_attachment(self, deal_id, file_name, data, mime_type):
        if file_name in self._fail_for:
            raise RuntimeError(f"upload of {file_name} failed")
        self.stored.append((deal_id, file_name, mime_type))
        return f"http://storage.test/documents/deals/{deal_id}/{file_name}"


class FakeMailbox:
    """Mailbox serving prepared InboundEmails by id."""

    def __init__(self, emails=(), broken_ids=()):
        self.emails = {email.message_id: email for email in emails}
        self.broken_ids = set(broken_ids)
        self.queries = []
        self.marked_read = []

    async def list_candidate_messages(self, query, max_results=20):
        self.queries.append(query)
        return list(self.emails)[:max_results]

    async def fetch_full(self, message_id):
        if message_id in self.broken_ids:
            raise MailboxError(f"fetch {message_id} failed")
        return self.emails[message_id]

    async def mark_read(self, message_id):
        self.marked_read.append(message_id)
