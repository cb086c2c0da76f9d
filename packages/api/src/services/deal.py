# This project was developed with assistance from AI tools.
"""Deal operations behind the loan officer dashboard."""

import logging
from typing import Any

from db import Deal, Document
from db.enums import ActivityAction, DealStatus
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.application import LoanApplication
from .activity import log_activity
from .merge import compute_missing_fields
from .store import DealStore

logger = logging.getLogger(__name__)


class DealNotFoundError(LookupError):
    """Raised when a deal id does not exist."""

    pass


async def list_deals(
    session: AsyncSession,
    status: DealStatus | str | None = None,
) -> list[Deal]:
    """All deals newest first, optionally filtered by status ("all" = no filter)."""
    stmt = select(Deal).order_by(Deal.created_at.desc(), Deal.id.desc())
    if status and status != "all":
        stmt = stmt.where(Deal.status == DealStatus(status))
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_deal_with_documents(
    session: AsyncSession,
    deal_id: int,
) -> tuple[Deal, list[Document]]:
    """Return a deal and its documents, oldest document first.

    Raises:
        DealNotFoundError: no deal with this id.
    """
    deal = (await session.execute(select(Deal).where(Deal.id == deal_id))).scalar_one_or_none()
    if deal is None:
        raise DealNotFoundError(f"Deal {deal_id} not found")

    docs_stmt = (
        select(Document)
        .where(Document.deal_id == deal_id)
        .order_by(Document.created_at.asc(), Document.id.asc())
    )
    documents = list((await session.execute(docs_stmt)).scalars().all())
    return deal, documents


async def update_deal(
    session: AsyncSession,
    deal_id: int,
    *,
    application_data: dict[str, Any] | None = None,
    status: DealStatus | None = None,
) -> Deal:
    """Apply a loan officer edit.

    Application data is replaced wholesale (officer edits may overwrite
    extracted values) with ``missing_fields`` recomputed. Logs
    ``status_changed`` when a status is given, else ``application_saved``.

    Raises:
        DealNotFoundError: no deal with this id.
    """
    deal = (await session.execute(select(Deal).where(Deal.id == deal_id))).scalar_one_or_none()
    if deal is None:
        raise DealNotFoundError(f"Deal {deal_id} not found")

    if application_data is not None:
        record = LoanApplication.model_validate(application_data).model_dump()
        record["missing_fields"] = compute_missing_fields(record)
        deal.application_data = record
    if status is not None:
        deal.status = status

    await session.commit()
    await session.refresh(deal)

    # A failed activity write rolls back and reloads ``deal`` before returning.
    sink = DealStore(session)
    if status is not None:
        await log_activity(
            sink, deal.id, ActivityAction.STATUS_CHANGED, f"Status changed to {status.value}"
        )
    elif application_data is not None:
        await log_activity(
            sink,
            deal.id,
            ActivityAction.APPLICATION_SAVED,
            "Application data saved by loan officer",
        )
    return deal


async def delete_deals(session: AsyncSession, ids: list[int]) -> int:
    """Delete deals and their documents. Returns the number of ids requested."""
    await session.execute(delete(Document).where(Document.deal_id.in_(ids)))
    await session.execute(delete(Deal).where(Deal.id.in_(ids)))
    await session.commit()
    logger.info("Deleted %d deals", len(ids))
    return len(ids)
