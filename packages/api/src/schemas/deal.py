# This project was developed with assistance from AI tools.
"""Deal request/response schemas."""

from datetime import datetime

from db.enums import DealStatus
from pydantic import BaseModel, ConfigDict, Field

from .application import LoanApplication
from .document import DocumentResponse


class DealResponse(BaseModel):
    """Single deal as shown on the dashboard."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    client_name: str
    client_email: str
    subject_line: str | None = None
    status: DealStatus
    application_data: LoanApplication
    raw_email_body: str | None = None
    created_at: datetime
    updated_at: datetime


class DealDetailResponse(BaseModel):
    """Deal together with its documents (oldest first)."""

    deal: DealResponse
    documents: list[DocumentResponse]


class DealUpdate(BaseModel):
    """Loan officer edit: application data, status, or both."""

    application_data: LoanApplication | None = None
    status: DealStatus | None = None


class DealDeleteRequest(BaseModel):
    """Bulk delete request."""

    ids: list[int] = Field(default_factory=list)


class DealDeleteResponse(BaseModel):
    success: bool = True
    deleted: int
