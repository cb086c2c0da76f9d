# This project was developed with assistance from AI tools.
"""Gmail mailbox adapter.

Talks to the Gmail REST API (v1) over httpx. Access tokens come from an
injected ``GoogleCredentialProvider`` that exchanges the stored refresh token,
so no provider SDK state is shared between requests. Message parsing helpers
are plain functions so they can be tested without the network.
"""

import base64
import binascii
import json
import logging
import re
import time
from dataclasses import dataclass, field
from email.utils import parseaddr
from typing import Any, Protocol

import httpx

from ..core.config import Settings

logger = logging.getLogger(__name__)

GMAIL_API_BASE = "https://gmail.googleapis.com/gmail/v1/users/me"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"

# Refresh this many seconds before the provider-reported expiry.
_TOKEN_EXPIRY_MARGIN = 60

_UNREAD_RE = re.compile(r"\bis:unread\b", re.IGNORECASE)


class MailboxError(Exception):
    """Raised when the mailbox provider rejects or fails a request."""


@dataclass
class Attachment:
    file_name: str
    mime_type: str
    data: bytes
    size: int = 0


@dataclass
class InboundEmail:
    """One fetched email, normalised for the ingestion pipeline."""

    message_id: str
    sender: str
    sender_name: str
    subject: str
    body: str
    date: str = ""
    attachments: list[Attachment] = field(default_factory=list)


class Mailbox(Protocol):
    async def list_candidate_messages(self, query: str, max_results: int = 20) -> list[str]: ...

    async def fetch_full(self, message_id: str) -> InboundEmail: ...

    async def mark_read(self, message_id: str) -> None: ...


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------


def decode_base64url(data: str) -> bytes:
    """Decode Gmail's unpadded base64url payloads."""
    padded = data + "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(padded)


def parse_sender(from_header: str) -> tuple[str, str]:
    """Split a From header into (email address, display name).

    The display name falls back to the address when the header has none.
    """
    name, address = parseaddr(from_header)
    address = address or from_header.strip()
    name = name.replace('"', "").strip()
    return address, name or address


def extract_body(payload: dict[str, Any] | None) -> str:
    """Return the text body of a message payload.

    Prefers text/plain, falls back to text/html among direct parts, then
    recurses into nested multiparts.
    """
    if not payload:
        return ""

    body_data = (payload.get("body") or {}).get("data")
    if payload.get("mimeType") == "text/plain" and body_data:
        return decode_base64url(body_data).decode("utf-8", errors="replace")

    parts = payload.get("parts") or []
    for preferred in ("text/plain", "text/html"):
        for part in parts:
            data = (part.get("body") or {}).get("data")
            if part.get("mimeType") == preferred and data:
                return decode_base64url(data).decode("utf-8", errors="replace")

    for part in parts:
        body = extract_body(part)
        if body:
            return body

    return ""


def iter_attachment_parts(payload: dict[str, Any] | None) -> list[dict[str, Any]]:
    """Flatten all parts carrying a filename, in document order."""
    found: list[dict[str, Any]] = []
    for part in (payload or {}).get("parts") or []:
        if part.get("filename"):
            found.append(part)
        if part.get("parts"):
            found.extend(iter_attachment_parts(part))
    return found


def header_value(headers: list[dict[str, str]], name: str) -> str:
    for header in headers:
        if header.get("name", "").lower() == name.lower():
            return header.get("value", "")
    return ""


def rescan_query(query: str) -> str:
    """Drop the unread filter so already-read messages are listed again."""
    return re.sub(r"\s+", " ", _UNREAD_RE.sub("", query)).strip()


def decode_push_notification(body: dict[str, Any]) -> dict[str, Any]:
    """Unwrap a Pub/Sub push envelope, or return a raw JSON body unchanged.

    Raises:
        ValueError: when ``message.data`` is present but is not base64 JSON.
    """
    message = body.get("message") if isinstance(body, dict) else None
    data = message.get("data") if isinstance(message, dict) else None
    if not data:
        return body
    try:
        return json.loads(base64.b64decode(data).decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ValueError("Invalid push notification payload") from exc


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------


class GoogleCredentialProvider:
    """Exchanges a stored refresh token for short-lived access tokens."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        refresh_token: str,
        *,
        token_url: str = GOOGLE_TOKEN_URL,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._client_id = client_id
        self._client_secret = client_secret
        self._refresh_token = refresh_token
        self._token_url = token_url
        self._http = http_client or httpx.AsyncClient(timeout=30)
        self._access_token: str | None = None
        self._expires_at: float = 0.0

    async def get_access_token(self) -> str:
        if self._access_token and time.monotonic() < self._expires_at:
            return self._access_token

        if not self._refresh_token:
            raise MailboxError("No Gmail refresh token configured")

        try:
            response = await self._http.post(
                self._token_url,
                data={
                    "client_id": self._client_id,
                    "client_secret": self._client_secret,
                    "refresh_token": self._refresh_token,
                    "grant_type": "refresh_token",
                },
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise MailboxError(f"Token refresh failed: {exc}") from exc

        try:
            payload = response.json()
            self._access_token = payload["access_token"]
            expires_in = int(payload.get("expires_in", 3600))
        except (ValueError, KeyError, TypeError) as exc:
            raise MailboxError(f"Malformed token response: {exc!r}") from exc
        self._expires_at = time.monotonic() + max(expires_in - _TOKEN_EXPIRY_MARGIN, 0)
        return self._access_token

    async def aclose(self) -> None:
        await self._http.aclose()


# ---------------------------------------------------------------------------
# Gmail client
# ---------------------------------------------------------------------------


class GmailMailbox:
    """Mailbox operations against the Gmail REST API."""

    def __init__(
        self,
        credentials: GoogleCredentialProvider,
        *,
        http_client: httpx.AsyncClient | None = None,
        base_url: str = GMAIL_API_BASE,
    ):
        self._credentials = credentials
        self._http = http_client or httpx.AsyncClient(timeout=30)
        self._base_url = base_url.rstrip("/")

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        token = await self._credentials.get_access_token()
        try:
            response = await self._http.request(
                method,
                f"{self._base_url}/{path.lstrip('/')}",
                headers={"Authorization": f"Bearer {token}"},
                **kwargs,
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise MailboxError(f"Gmail {method} {path} failed: {exc}") from exc
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise MailboxError(f"Gmail {method} {path} returned invalid JSON") from exc

    async def list_candidate_messages(self, query: str, max_results: int = 20) -> list[str]:
        """Message ids matching a Gmail search query."""
        data = await self._request(
            "GET", "messages", params={"q": query, "maxResults": max_results}
        )
        return [msg["id"] for msg in data.get("messages") or []]

    async def fetch_full(self, message_id: str) -> InboundEmail:
        """Fetch a message with its body and attachment bytes."""
        message = await self._request("GET", f"messages/{message_id}", params={"format": "full"})
        payload = message.get("payload") or {}
        headers = payload.get("headers") or []

        sender, sender_name = parse_sender(header_value(headers, "From"))
        attachments = []
        for part in iter_attachment_parts(payload):
            attachment = await self._fetch_attachment(message_id, part)
            if attachment is not None:
                attachments.append(attachment)

        return InboundEmail(
            message_id=message_id,
            sender=sender,
            sender_name=sender_name,
            subject=header_value(headers, "Subject"),
            body=extract_body(payload),
            date=header_value(headers, "Date"),
            attachments=attachments,
        )

    async def _fetch_attachment(self, message_id: str, part: dict[str, Any]) -> Attachment | None:
        body = part.get("body") or {}
        if body.get("attachmentId"):
            data = await self._request(
                "GET", f"messages/{message_id}/attachments/{body['attachmentId']}"
            )
            raw = data.get("data") or ""
            size = data.get("size") or 0
        elif body.get("data"):
            raw = body["data"]
            size = body.get("size") or 0
        else:
            logger.debug("Part %s of message %s has no data", part.get("filename"), message_id)
            return None

        content = decode_base64url(raw)
        return Attachment(
            file_name=part["filename"],
            mime_type=(part.get("mimeType") or "application/octet-stream").lower(),
            data=content,
            size=size or len(content),
        )

    async def mark_read(self, message_id: str) -> None:
        await self._request(
            "POST", f"messages/{message_id}/modify", json={"removeLabelIds": ["UNREAD"]}
        )

    async def setup_watch(self, topic_name: str, label_ids: tuple[str, ...] = ("INBOX",)) -> dict[str, Any]:
        """Register Pub/Sub push notifications for the mailbox."""
        return await self._request(
            "POST", "watch", json={"topicName": topic_name, "labelIds": list(label_ids)}
        )

    async def aclose(self) -> None:
        await self._http.aclose()
        await self._credentials.aclose()


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

_mailbox: GmailMailbox | None = None


def init_mailbox(cfg: Settings) -> GmailMailbox:
    """Initialise the singleton (called once from app lifespan)."""
    global _mailbox  # noqa: PLW0603
    credentials = GoogleCredentialProvider(
        client_id=cfg.GOOGLE_CLIENT_ID,
        client_secret=cfg.GOOGLE_CLIENT_SECRET,
        refresh_token=cfg.GOOGLE_REFRESH_TOKEN,
    )
    _mailbox = GmailMailbox(credentials)
    if not cfg.GOOGLE_REFRESH_TOKEN:
        logger.warning("Gmail mailbox: no refresh token configured, ingestion will fail")
    else:
        logger.info("Gmail mailbox initialised")
    return _mailbox


def get_mailbox() -> GmailMailbox:
    """Return the initialised GmailMailbox singleton."""
    if _mailbox is None:
        raise RuntimeError("Mailbox not initialised -- call init_mailbox() first")
    return _mailbox
