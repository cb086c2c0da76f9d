# This project was developed with assistance from AI tools.
"""Find the deal an inbound email belongs to, or open a new one.

Resolution order, first match wins:

1. Sender match -- most recent active deal whose client email equals the
   sender address.
2. Subject match -- active deals scanned newest first; the subject is compared
   against the deal's property address and its original subject line.
3. Create -- a new deal in ``processing`` with an empty application.

The subject scan returns the first hit in newest-first order. Two active deals
whose addresses both appear in an ambiguous subject resolve to the newer one.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Any

from db.enums import DealStatus

from .address import normalize_address, street_portion
from .mailbox import InboundEmail
from .merge import empty_application

logger = logging.getLogger(__name__)

# Street portions shorter than this are too generic to match on.
_MIN_STREET_PORTION = 5


class IngestionError(Exception):
    """Base class for errors that abort ingestion of an email."""


class DealCreationError(IngestionError):
    """Raised when a new deal cannot be persisted. Fatal for the email."""


class DealMatch(str, enum.Enum):
    SENDER = "sender"
    SUBJECT = "subject"
    CREATED = "created"


@dataclass
class ResolvedDeal:
    deal: Any
    match: DealMatch


def subject_matches_deal(normalized_subject: str, deal: Any) -> bool:
    """Whether a normalized subject line points at ``deal``.

    Matches on the deal's property address (containment either way, or its
    street portion appearing in the subject) and on equality with the deal's
    original subject line.
    """
    if not normalized_subject:
        return False

    application = deal.application_data or {}
    property_address = application.get("property_address")
    if property_address:
        normalized_address = normalize_address(str(property_address))
        if normalized_address and (
            normalized_address in normalized_subject or normalized_subject in normalized_address
        ):
            return True
        street = street_portion(normalized_address)
        if len(street) >= _MIN_STREET_PORTION and street in normalized_subject:
            return True

    if deal.subject_line:
        if normalized_subject == normalize_address(deal.subject_line):
            return True

    return False


class DealResolver:
    """Resolves inbound emails to deals against a store."""

    def __init__(self, store):
        self._store = store

    async def resolve(self, email: InboundEmail) -> ResolvedDeal:
        deal = await self._store.find_active_deal_by_email(email.sender)
        if deal is not None:
            await self._mark_processing(deal)
            return ResolvedDeal(deal, DealMatch.SENDER)

        if email.subject:
            deal = await self.find_deal_by_subject(email.subject)
            if deal is not None:
                await self._mark_processing(deal)
                return ResolvedDeal(deal, DealMatch.SUBJECT)

        return ResolvedDeal(await self._create(email), DealMatch.CREATED)

    async def find_deal_by_subject(self, subject: str) -> Any | None:
        """First active deal, newest first, whose address or subject matches."""
        normalized_subject = normalize_address(subject)
        for deal in await self._store.list_active_deals():
            if subject_matches_deal(normalized_subject, deal):
                logger.info("Subject %r matched deal %s", subject, deal.id)
                return deal
        return None

    async def _mark_processing(self, deal: Any) -> None:
        try:
            await self._store.update_deal(deal, status=DealStatus.PROCESSING)
        except Exception:
            # Status is rewritten at the end of ingestion anyway.
            logger.warning("Failed to mark deal %s as processing", deal.id, exc_info=True)

    async def _create(self, email: InboundEmail) -> Any:
        try:
            deal = await self._store.create_deal(
                client_name=email.sender_name or email.sender,
                client_email=email.sender,
                subject_line=email.subject or None,
                status=DealStatus.PROCESSING,
                application_data=empty_application(),
                raw_email_body=email.body,
            )
        except Exception as exc:
            raise DealCreationError(f"Failed to create deal for {email.sender}: {exc}") from exc
        logger.info("Created deal %s for %s", deal.id, email.sender)
        return deal
