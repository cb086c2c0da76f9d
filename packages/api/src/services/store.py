# This project was developed with assistance from AI tools.
"""Relational store used by the ingestion pipeline.

Wraps one AsyncSession and commits after every write so each pipeline step
is durable on its own. A failed write rolls the session back and reloads the
objects the rollback expired before re-raising, so callers can keep reading
the deal they hold without a lazy load on the async session.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from db import ActivityLog, Deal, Document
from db.database import SessionLocal
from db.enums import DealStatus, DocumentStatus, DocumentType
from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


class DealStore:
    """Deal, Document and ActivityLog persistence for one session."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def _commit(self) -> None:
        try:
            await self._session.commit()
        except Exception:
            await self.rollback()
            raise

    async def rollback(self) -> None:
        """Discard the failed transaction and reload still-persistent objects."""
        await self._session.rollback()
        for obj in list(self._session.sync_session.identity_map.values()):
            try:
                await self._session.refresh(obj)
            except Exception:
                logger.warning(
                    "Could not reload %s after rollback", type(obj).__name__, exc_info=True
                )

    # -- Deals --

    async def get_deal(self, deal_id: int) -> Deal | None:
        result = await self._session.execute(select(Deal).where(Deal.id == deal_id))
        return result.scalar_one_or_none()

    async def find_active_deal_by_email(self, client_email: str) -> Deal | None:
        """Most recently created active deal for an exact client email."""
        stmt = (
            select(Deal)
            .where(
                Deal.client_email == client_email,
                Deal.status.in_(DealStatus.active_statuses()),
            )
            .order_by(Deal.created_at.desc(), Deal.id.desc())
            .limit(1)
        )
        result = await self._session.execute(stmt)
        return result.scalars().first()

    async def list_active_deals(self) -> list[Deal]:
        """All active deals, newest first."""
        stmt = (
            select(Deal)
            .where(Deal.status.in_(DealStatus.active_statuses()))
            .order_by(Deal.created_at.desc(), Deal.id.desc())
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def create_deal(
        self,
        *,
        client_name: str,
        client_email: str,
        subject_line: str | None,
        status: DealStatus,
        application_data: dict[str, Any],
        raw_email_body: str | None,
    ) -> Deal:
        deal = Deal(
            client_name=client_name,
            client_email=client_email,
            subject_line=subject_line,
            status=status,
            application_data=application_data,
            raw_email_body=raw_email_body,
        )
        self._session.add(deal)
        await self._commit()
        await self._session.refresh(deal)
        return deal

    async def update_deal(
        self,
        deal: Deal,
        *,
        status: DealStatus | None = None,
        application_data: dict[str, Any] | None = None,
    ) -> Deal:
        if status is not None:
            deal.status = status
        if application_data is not None:
            # Assign a fresh dict so the JSON column is flagged dirty.
            deal.application_data = dict(application_data)
        await self._commit()
        return deal

    # -- Documents --

    async def has_documents_for_message(self, message_id: str) -> bool:
        stmt = select(exists().where(Document.gmail_message_id == message_id))
        result = await self._session.execute(stmt)
        return bool(result.scalar())

    async def create_document(
        self,
        *,
        deal_id: int,
        file_name: str,
        file_url: str,
        doc_type: DocumentType,
        gmail_message_id: str,
    ) -> Document:
        doc = Document(
            deal_id=deal_id,
            file_name=file_name,
            file_url=file_url,
            doc_type=doc_type,
            status=DocumentStatus.PENDING,
            gmail_message_id=gmail_message_id,
        )
        self._session.add(doc)
        await self._commit()
        await self._session.refresh(doc)
        return doc

    async def update_document(
        self,
        document: Document,
        *,
        status: DocumentStatus,
        extracted_data: dict[str, Any] | None,
    ) -> Document:
        document.status = status
        document.extracted_data = extracted_data
        await self._commit()
        return document

    # -- Activity --

    async def add_activity(self, deal_id: int, action: str, details: str | None) -> ActivityLog:
        entry = ActivityLog(deal_id=deal_id, action=action, details=details)
        self._session.add(entry)
        await self._commit()
        return entry


@asynccontextmanager
async def open_store() -> AsyncIterator[DealStore]:
    """Open a session-backed store for one ingestion batch."""
    async with SessionLocal() as session:
        yield DealStore(session)
