# This project was developed with assistance from AI tools.
"""Gmail ingestion entry points: push notification, manual poll, watch setup."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from ..core.config import settings
from ..schemas.ingest import IngestResponse, WatchResponse
from ..services.deal_resolver import IngestionError
from ..services.ingestion import IngestionService, get_ingestion_service
from ..services.mailbox import GmailMailbox, MailboxError, decode_push_notification, get_mailbox

logger = logging.getLogger(__name__)

router = APIRouter()


async def _run_batch(service: IngestionService, *, rescan: bool) -> IngestResponse:
    try:
        result = await service.ingest_batch(rescan=rescan)
    except (IngestionError, MailboxError) as exc:
        logger.exception("Gmail ingestion failed")
        raise HTTPException(status_code=500, detail="Processing failed") from exc
    return IngestResponse(processed=result.processed_count, rescan=rescan)


@router.post("/gmail", response_model=IngestResponse)
async def gmail_push(
    request: Request,
    service: IngestionService = Depends(get_ingestion_service),
) -> IngestResponse:
    """Handle a Gmail Pub/Sub push notification by running one batch."""
    try:
        body = await request.json()
        notification = decode_push_notification(body)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Invalid notification payload") from exc

    logger.info("Gmail notification received: %s", notification)
    return await _run_batch(service, rescan=False)


@router.get("/gmail", response_model=IngestResponse)
async def gmail_poll(
    rescan: bool = False,
    service: IngestionService = Depends(get_ingestion_service),
) -> IngestResponse:
    """Manual poll. ``rescan=true`` also reprocesses already-read messages."""
    return await _run_batch(service, rescan=rescan)


@router.post("/gmail/watch", response_model=WatchResponse)
async def gmail_watch(
    mailbox: GmailMailbox = Depends(get_mailbox),
) -> WatchResponse:
    """Register Pub/Sub push notifications for the monitored mailbox."""
    if not settings.GOOGLE_PUBSUB_TOPIC:
        raise HTTPException(status_code=400, detail="GOOGLE_PUBSUB_TOPIC is not configured")
    try:
        data = await mailbox.setup_watch(settings.GOOGLE_PUBSUB_TOPIC)
    except MailboxError as exc:
        logger.exception("Gmail watch registration failed")
        raise HTTPException(status_code=500, detail="Watch registration failed") from exc
    return WatchResponse(
        history_id=str(data["historyId"]) if data.get("historyId") else None,
        expiration=str(data["expiration"]) if data.get("expiration") else None,
    )
