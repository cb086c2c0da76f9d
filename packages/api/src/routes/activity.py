# This project was developed with assistance from AI tools.
"""Deal activity log routes."""

from db import get_db
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.activity import ActivityCreate, ActivityResponse
from ..services import activity as activity_service

router = APIRouter()


@router.get("/", response_model=list[ActivityResponse])
async def list_activity(
    deal_id: int | None = None,
    session: AsyncSession = Depends(get_db),
) -> list[ActivityResponse]:
    """Most recent activity for a deal, newest first."""
    if deal_id is None:
        raise HTTPException(status_code=400, detail="deal_id required")
    entries = await activity_service.list_activity(session, deal_id)
    return [ActivityResponse.model_validate(e) for e in entries]


@router.post("/", response_model=ActivityResponse)
async def create_activity(
    body: ActivityCreate,
    session: AsyncSession = Depends(get_db),
) -> ActivityResponse:
    """Append a manual activity entry."""
    if body.deal_id is None or not body.action:
        raise HTTPException(status_code=400, detail="deal_id and action required")
    entry = await activity_service.create_activity(
        session, body.deal_id, body.action, body.details
    )
    return ActivityResponse.model_validate(entry)
