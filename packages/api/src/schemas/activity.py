# This project was developed with assistance from AI tools.
"""Activity log schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class ActivityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    deal_id: int
    action: str
    details: str | None = None
    created_at: datetime


class ActivityCreate(BaseModel):
    """Manual activity entry posted by the dashboard."""

    deal_id: int | None = None
    action: str | None = None
    details: str | None = None
