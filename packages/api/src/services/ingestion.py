# This project was developed with assistance from AI tools.
"""Email-to-deal ingestion pipeline.

Drives each fetched email through:

    dedup check -> deal resolution -> body extraction
    -> attachments (store, classify, extract) -> merge -> status

Only deal creation failure is fatal for an email (and aborts the batch).
Body extraction, single attachments and activity writes fail per item: they
are logged and the pipeline moves on with whatever the deal already has. Any
other failure abandons that one email, which stays unread for the next poll.

The email body is merged before any attachment, and attachments in listed
order. Under the non-clobber merge that order decides which source fills a
field, so batches are serialized through a single lock and attachments are
never processed concurrently.
"""

import asyncio
import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from typing import Any

from db.enums import ActivityAction, DealStatus, DocumentStatus

from ..core.config import settings
from .activity import log_activity
from .classifier import classify_document
from .deal_resolver import DealCreationError, DealMatch, DealResolver
from .extraction import SUPPORTED_MIME_TYPES, ExtractionService
from .mailbox import Attachment, InboundEmail, Mailbox, MailboxError, rescan_query
from .merge import has_required_fields, merge_application
from .storage import StorageService
from .store import open_store

logger = logging.getLogger(__name__)

StoreFactory = Callable[[], AbstractAsyncContextManager[Any]]


@dataclass
class IngestResult:
    processed_count: int
    skipped_count: int = 0
    failed_count: int = 0


class IngestionService:
    """Processes inbound loan emails into deals, one batch at a time."""

    def __init__(
        self,
        *,
        mailbox: Mailbox,
        storage: StorageService,
        extractor: ExtractionService,
        store_factory: StoreFactory = open_store,
        min_body_length: int = settings.INGEST_MIN_BODY_LENGTH,
        default_query: str = settings.GMAIL_QUERY,
        max_results: int = settings.GMAIL_MAX_RESULTS,
    ):
        self._mailbox = mailbox
        self._storage = storage
        self._extractor = extractor
        self._store_factory = store_factory
        self._min_body_length = min_body_length
        self._default_query = default_query
        self._max_results = max_results
        self._batch_lock = asyncio.Lock()

    async def ingest_batch(
        self,
        query: str | None = None,
        *,
        rescan: bool = False,
        skip_dedup: bool = False,
    ) -> IngestResult:
        """Fetch candidate emails and run each through the pipeline.

        Args:
            query: Mailbox search query; defaults to the configured loan query.
            rescan: List already-read messages too (drops the unread filter).
            skip_dedup: Reprocess messages that already produced documents.

        Raises:
            DealCreationError: a new deal could not be created; the batch stops
                and that message stays unread for the next poll.
                Any other failure abandons only the email it happened in.
        """
        query = query or self._default_query
        if rescan:
            query = rescan_query(query)

        async with self._batch_lock:
            message_ids = await self._mailbox.list_candidate_messages(
                query, max_results=self._max_results
            )
            logger.info("Processing %d candidate emails (rescan=%s)", len(message_ids), rescan)

            result = IngestResult(processed_count=0)
            async with self._store_factory() as store:
                for message_id in message_ids:
                    try:
                        email = await self._mailbox.fetch_full(message_id)
                    except MailboxError:
                        logger.exception("Failed to fetch message %s, will retry next poll", message_id)
                        continue

                    try:
                        handled = await self.process_email(store, email, skip_dedup=skip_dedup)
                    except DealCreationError:
                        raise
                    except Exception:
                        logger.exception(
                            "Failed to process message %s, leaving it unread", message_id
                        )
                        result.failed_count += 1
                        await store.rollback()
                        continue

                    result.processed_count += 1
                    if not handled:
                        result.skipped_count += 1
                    await self._mark_read(message_id)

            return result

    async def process_email(
        self,
        store: Any,
        email: InboundEmail,
        *,
        skip_dedup: bool = False,
    ) -> bool:
        """Run one email through the pipeline.

        Returns:
            False when the message was already processed (no-op), else True.
        """
        if not skip_dedup and await store.has_documents_for_message(email.message_id):
            logger.info("Email %s already processed, skipping", email.message_id)
            return False

        resolved = await DealResolver(store).resolve(email)
        deal = resolved.deal
        deal_id = deal.id
        await log_activity(store, deal_id, *self._resolution_activity(resolved.match, email))

        application = merge_application(deal.application_data, None)

        if email.body and len(email.body.strip()) > self._min_body_length:
            try:
                logger.info("Parsing email body for deal %s", deal_id)
                fields = await self._extractor.extract_from_email_body(email.body)
                application = merge_application(application, fields)
            except Exception:
                logger.exception("Failed to parse email body for deal %s", deal_id)

        for attachment in email.attachments:
            try:
                application = await self._process_attachment(
                    store, deal_id, email.message_id, attachment, application
                )
            except Exception:
                logger.exception(
                    "Failed to process attachment %s for deal %s", attachment.file_name, deal_id
                )

        new_status = (
            DealStatus.READY_FOR_REVIEW if has_required_fields(application) else DealStatus.PROCESSING
        )
        await store.update_deal(deal, application_data=application, status=new_status)
        logger.info("Deal %s updated. Status: %s", deal_id, new_status.value)
        await log_activity(
            store, deal_id, ActivityAction.STATUS_CHANGED, f"Status updated to {new_status.value}"
        )
        return True

    async def _process_attachment(
        self,
        store: Any,
        deal_id: int,
        message_id: str,
        attachment: Attachment,
        application: dict[str, Any],
    ) -> dict[str, Any]:
        """Store, classify and extract one attachment; return the merged application."""
        logger.info("Processing attachment: %s", attachment.file_name)
        file_url = await self._storage.store_attachment(
            deal_id, attachment.file_name, attachment.data, attachment.mime_type
        )
        doc_type = classify_document(attachment.file_name, attachment.mime_type)
        document = await store.create_document(
            deal_id=deal_id,
            file_name=attachment.file_name,
            file_url=file_url,
            doc_type=doc_type,
            gmail_message_id=message_id,
        )

        if attachment.mime_type not in SUPPORTED_MIME_TYPES:
            await store.update_document(
                document,
                status=DocumentStatus.FAILED,
                extracted_data={"error": f"Unsupported format: {attachment.mime_type}"},
            )
            logger.info("Skipped unsupported attachment %s (%s)", attachment.file_name, attachment.mime_type)
            return application

        try:
            extracted = await self._extractor.extract_from_document(
                attachment.data, attachment.mime_type, attachment.file_name, doc_type.value
            )
        except Exception as exc:
            logger.exception("Extraction failed for %s", attachment.file_name)
            await store.update_document(
                document,
                status=DocumentStatus.FAILED,
                extracted_data={"error": f"Extraction failed: {exc}"},
            )
            return application

        await store.update_document(document, status=DocumentStatus.PARSED, extracted_data=extracted)
        application = merge_application(application, extracted)
        await log_activity(
            store,
            deal_id,
            ActivityAction.DOCUMENT_PARSED,
            f"Parsed {attachment.file_name} ({doc_type.value})",
        )
        return application

    async def _mark_read(self, message_id: str) -> None:
        try:
            await self._mailbox.mark_read(message_id)
        except MailboxError:
            logger.warning("Failed to mark message %s as read", message_id, exc_info=True)

    @staticmethod
    def _resolution_activity(match: DealMatch, email: InboundEmail) -> tuple[ActivityAction, str]:
        if match is DealMatch.CREATED:
            return ActivityAction.DEAL_CREATED, f"Deal created from email by {email.sender}"
        if match is DealMatch.SUBJECT:
            return (
                ActivityAction.EMAIL_RECEIVED,
                f'Follow-up matched by subject from {email.sender}: "{email.subject}"',
            )
        return ActivityAction.EMAIL_RECEIVED, f'New email from {email.sender}: "{email.subject}"'


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

_service: IngestionService | None = None


def init_ingestion_service(
    mailbox: Mailbox,
    storage: StorageService,
    extractor: ExtractionService,
) -> IngestionService:
    """Initialise the singleton (called once from app lifespan)."""
    global _service  # noqa: PLW0603
    _service = IngestionService(mailbox=mailbox, storage=storage, extractor=extractor)
    logger.info("IngestionService initialised")
    return _service


def get_ingestion_service() -> IngestionService:
    """Return the initialised IngestionService singleton."""
    if _service is None:
        raise RuntimeError(
            "IngestionService not initialised -- call init_ingestion_service() first"
        )
    return _service
