# This project was developed with assistance from AI tools.
"""Deal routes for the loan officer dashboard."""

from typing import Literal

from db import get_db
from db.enums import DealStatus
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.deal import (
    DealDeleteRequest,
    DealDeleteResponse,
    DealDetailResponse,
    DealResponse,
    DealUpdate,
)
from ..schemas.document import DocumentResponse
from ..services import deal as deal_service
from ..services.deal import DealNotFoundError

router = APIRouter()


@router.get("/", response_model=list[DealResponse])
async def list_deals(
    session: AsyncSession = Depends(get_db),
    status_filter: DealStatus | Literal["all"] | None = Query(default=None, alias="status"),
) -> list[DealResponse]:
    """List deals newest first."""
    deals = await deal_service.list_deals(session, status_filter)
    return [DealResponse.model_validate(d) for d in deals]


@router.delete("/", response_model=DealDeleteResponse)
async def delete_deals(
    body: DealDeleteRequest,
    session: AsyncSession = Depends(get_db),
) -> DealDeleteResponse:
    """Delete deals (and their documents) by id."""
    if not body.ids:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No deal IDs provided")
    deleted = await deal_service.delete_deals(session, body.ids)
    return DealDeleteResponse(deleted=deleted)


@router.get("/{deal_id}", response_model=DealDetailResponse)
async def get_deal(
    deal_id: int,
    session: AsyncSession = Depends(get_db),
) -> DealDetailResponse:
    """Return a deal with its documents, oldest first."""
    try:
        deal, documents = await deal_service.get_deal_with_documents(session, deal_id)
    except DealNotFoundError:
        raise HTTPException(status_code=404, detail="Deal not found") from None
    return DealDetailResponse(
        deal=DealResponse.model_validate(deal),
        documents=[DocumentResponse.model_validate(d) for d in documents],
    )


@router.patch("/{deal_id}", response_model=DealResponse)
async def update_deal(
    deal_id: int,
    body: DealUpdate,
    session: AsyncSession = Depends(get_db),
) -> DealResponse:
    """Save loan officer edits to application data and/or status."""
    try:
        deal = await deal_service.update_deal(
            session,
            deal_id,
            application_data=(
                body.application_data.model_dump() if body.application_data is not None else None
            ),
            status=body.status,
        )
    except DealNotFoundError:
        raise HTTPException(status_code=404, detail="Deal not found") from None
    return DealResponse.model_validate(deal)
