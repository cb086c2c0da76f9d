# This project was developed with assistance from AI tools.
"""Document response schemas."""

from datetime import datetime
from typing import Any

from db.enums import DocumentStatus, DocumentType
from pydantic import BaseModel, ConfigDict


class DocumentResponse(BaseModel):
    """Attachment processed for a deal."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    deal_id: int
    file_name: str
    file_url: str | None = None
    doc_type: DocumentType
    status: DocumentStatus
    extracted_data: dict[str, Any] | None = None
    gmail_message_id: str | None = None
    created_at: datetime
