# This project was developed with assistance from AI tools.
"""Tests for the assembled app: routing, health and RFC 7807 error bodies."""

from unittest.mock import AsyncMock, patch

from db import get_db
from fastapi.testclient import TestClient

from src.main import app
from src.schemas.error import ErrorResponse
from src.services.deal import DealNotFoundError


def _client():
    async def fake_db():
        yield AsyncMock()

    app.dependency_overrides[get_db] = fake_db
    # No context manager: lifespan (S3, Gmail) is not started.
    return TestClient(app, raise_server_exceptions=False)


def teardown_function():
    app.dependency_overrides.clear()


def test_health():
    response = _client().get("/health/")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_routes_registered():
    paths = {route.path for route in app.routes}
    assert {
        "/health/",
        "/api/deals/",
        "/api/deals/{deal_id}",
        "/api/activity/",
        "/api/webhooks/gmail",
        "/api/webhooks/gmail/watch",
    } <= paths


def test_not_found_uses_problem_details():
    with patch(
        "src.services.deal.get_deal_with_documents",
        new_callable=AsyncMock,
        side_effect=DealNotFoundError("Deal 1 not found"),
    ):
        response = _client().get("/api/deals/1", headers={"x-request-id": "req-123"})

    assert response.status_code == 404
    body = response.json()
    assert body["title"] == "Not Found"
    assert body["status"] == 404
    assert body["detail"] == "Deal not found"
    assert body["request_id"] == "req-123"


def test_validation_error_uses_problem_details():
    response = _client().get("/api/deals/not-a-number")

    assert response.status_code == 422
    assert response.json()["title"] == "Unprocessable Entity"


def test_unhandled_error_returns_generic_500():
    with patch(
        "src.services.deal.list_deals",
        new_callable=AsyncMock,
        side_effect=RuntimeError("db down"),
    ):
        response = _client().get("/api/deals/")

    assert response.status_code == 500
    assert response.json()["detail"] == "An unexpected error occurred."


def test_error_response_titles_unknown_status_generically():
    body = ErrorResponse.for_status(418, "teapot", "req-1")

    assert body.title == "Error"
    assert body.type == "about:blank"
    assert body.request_id == "req-1"
