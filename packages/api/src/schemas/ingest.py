# This project was developed with assistance from AI tools.
"""Ingestion endpoint schemas."""

from pydantic import BaseModel


class IngestResponse(BaseModel):
    """Outcome of one mailbox batch run."""

    success: bool = True
    processed: int
    rescan: bool = False


class WatchResponse(BaseModel):
    """Gmail users.watch registration result."""

    history_id: str | None = None
    expiration: str | None = None
