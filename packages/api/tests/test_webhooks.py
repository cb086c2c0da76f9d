# This project was developed with assistance from AI tools.
"""Tests for the Gmail webhook routes (ingestion service mocked)."""

import base64
import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.routes.webhooks import router
from src.services.deal_resolver import DealCreationError
from src.services.ingestion import IngestResult, get_ingestion_service
from src.services.mailbox import MailboxError, get_mailbox

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_app(service=None, mailbox=None):
    """Build a test FastAPI app with webhook routes and mocked services."""
    app = FastAPI()
    app.include_router(router, prefix="/api/webhooks")

    svc = service or MagicMock()
    if service is None:
        svc.ingest_batch = AsyncMock(return_value=IngestResult(processed_count=2))
    mbox = mailbox or MagicMock()

    app.dependency_overrides[get_ingestion_service] = lambda: svc
    app.dependency_overrides[get_mailbox] = lambda: mbox
    return app, svc, mbox


def _envelope(payload):
    return {
        "message": {
            "data": base64.b64encode(json.dumps(payload).encode()).decode(),
            "messageId": "pubsub-1",
        },
        "subscription": "projects/p/subscriptions/gmail-push",
    }


# ---------------------------------------------------------------------------
# Push notifications
# ---------------------------------------------------------------------------


def test_push_notification_runs_batch():
    app, svc, _ = _make_app()
    client = TestClient(app)

    response = client.post(
        "/api/webhooks/gmail",
        json=_envelope({"emailAddress": "intake@example.com", "historyId": 1}),
    )

    assert response.status_code == 200
    assert response.json() == {"success": True, "processed": 2, "rescan": False}
    svc.ingest_batch.assert_awaited_once_with(rescan=False)


def test_raw_json_body_accepted():
    app, svc, _ = _make_app()
    response = TestClient(app).post("/api/webhooks/gmail", json={"emailAddress": "x"})

    assert response.status_code == 200
    svc.ingest_batch.assert_awaited_once()


def test_bad_envelope_returns_400():
    app, svc, _ = _make_app()
    bad = {"message": {"data": base64.b64encode(b"not json").decode()}}

    response = TestClient(app).post("/api/webhooks/gmail", json=bad)

    assert response.status_code == 400
    svc.ingest_batch.assert_not_awaited()


def test_non_json_body_returns_400():
    app, _, _ = _make_app()
    response = TestClient(app).post(
        "/api/webhooks/gmail", content=b"hello", headers={"Content-Type": "text/plain"}
    )
    assert response.status_code == 400


def test_deal_creation_failure_returns_500():
    svc = MagicMock()
    svc.ingest_batch = AsyncMock(side_effect=DealCreationError("Failed to create deal"))
    app, _, _ = _make_app(service=svc)

    response = TestClient(app).post("/api/webhooks/gmail", json={})

    assert response.status_code == 500
    assert response.json()["detail"] == "Processing failed"


# ---------------------------------------------------------------------------
# Manual poll
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("query,expected", [("", False), ("?rescan=true", True), ("?rescan=false", False)])
def test_manual_poll(query, expected):
    app, svc, _ = _make_app()

    response = TestClient(app).get(f"/api/webhooks/gmail{query}")

    assert response.status_code == 200
    assert response.json()["rescan"] is expected
    svc.ingest_batch.assert_awaited_once_with(rescan=expected)


def test_manual_poll_mailbox_failure_returns_500():
    svc = MagicMock()
    svc.ingest_batch = AsyncMock(side_effect=MailboxError("token refresh failed"))
    app, _, _ = _make_app(service=svc)

    assert TestClient(app).get("/api/webhooks/gmail").status_code == 500


# ---------------------------------------------------------------------------
# Watch registration
# ---------------------------------------------------------------------------


def test_watch_requires_topic():
    app, _, _ = _make_app()
    with patch("src.routes.webhooks.settings") as mock_settings:
        mock_settings.GOOGLE_PUBSUB_TOPIC = None
        response = TestClient(app).post("/api/webhooks/gmail/watch")

    assert response.status_code == 400


def test_watch_registers_topic():
    mailbox = MagicMock()
    mailbox.setup_watch = AsyncMock(return_value={"historyId": 4321, "expiration": "1700000000000"})
    app, _, _ = _make_app(mailbox=mailbox)

    with patch("src.routes.webhooks.settings") as mock_settings:
        mock_settings.GOOGLE_PUBSUB_TOPIC = "projects/p/topics/gmail"
        response = TestClient(app).post("/api/webhooks/gmail/watch")

    assert response.status_code == 200
    assert response.json() == {"history_id": "4321", "expiration": "1700000000000"}
    mailbox.setup_watch.assert_awaited_once_with("projects/p/topics/gmail")
