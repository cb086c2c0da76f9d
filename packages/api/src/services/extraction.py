# This project was developed with assistance from AI tools.
"""Extraction oracle adapter.

Turns an email body or an attachment into a partial loan application via the
configured multimodal model. PDFs with a text layer are read locally with
pymupdf and sent as text; scanned PDFs have their first page rendered and go
through the vision path together with JPEG/PNG/GIF/WEBP images.

Failures are not handled here: provider errors propagate and malformed output
raises ``ExtractionError``. The ingestion pipeline treats both as per-item
failures.
"""

import base64
import json
import logging
import re
from typing import Any

import fitz  # pymupdf

from ..inference.client import get_completion
from ..inference.config import get_extraction_tier
from .extraction_prompts import (
    build_document_image_messages,
    build_document_text_messages,
    build_email_body_messages,
)

logger = logging.getLogger(__name__)

SUPPORTED_MIME_TYPES: frozenset[str] = frozenset(
    {
        "application/pdf",
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/webp",
    }
)

# Minimum text length to consider PDF text extraction successful.
# Below this threshold we assume the PDF is scanned (image-only).
_MIN_TEXT_LENGTH = 50

# Matches ```json ... ``` or ``` ... ``` fences that LLMs often wrap around JSON.
_FENCE_RE = re.compile(r"^```(?:json)?\s*\n?(.*?)\n?\s*```$", re.DOTALL)


class ExtractionError(Exception):
    """Raised when a document cannot be read or the model output is unusable."""


def _strip_json_fences(text: str) -> str:
    """Remove markdown code fences wrapping JSON output."""
    stripped = text.strip()
    m = _FENCE_RE.match(stripped)
    return m.group(1).strip() if m else stripped


def _parse_partial_application(raw: str) -> dict[str, Any]:
    """Decode model output into a partial application dict."""
    try:
        parsed = json.loads(_strip_json_fences(raw or "{}"))
    except json.JSONDecodeError as exc:
        raise ExtractionError("Model returned non-JSON output") from exc
    if not isinstance(parsed, dict):
        raise ExtractionError(f"Model returned {type(parsed).__name__}, expected a JSON object")
    return parsed


class ExtractionService:
    """Calls the extraction model for email bodies and attachments."""

    def __init__(self, tier: str | None = None):
        self._tier = tier

    @property
    def tier(self) -> str:
        return self._tier or get_extraction_tier()

    async def extract_from_email_body(self, text: str) -> dict[str, Any]:
        """Extract pre-filled application fields from an email body."""
        return await self._complete(build_email_body_messages(text))

    async def extract_from_document(
        self,
        data: bytes,
        mime_type: str,
        file_name: str,
        doc_type: str | None = None,
    ) -> dict[str, Any]:
        """Extract application fields from an attachment's bytes."""
        if mime_type not in SUPPORTED_MIME_TYPES:
            raise ExtractionError(f"Unsupported format: {mime_type}")

        if mime_type == "application/pdf":
            return await self._extract_pdf(data, file_name, doc_type)

        data_url = self._data_url(data, mime_type)
        return await self._complete(build_document_image_messages(data_url, file_name, doc_type))

    async def _extract_pdf(
        self,
        data: bytes,
        file_name: str,
        doc_type: str | None,
    ) -> dict[str, Any]:
        """Process a PDF: use the text layer, fall back to vision if scanned."""
        text = self._extract_text_from_pdf(data)
        if text is None:
            raise ExtractionError(f"Unreadable PDF: {file_name}")

        if len(text) >= _MIN_TEXT_LENGTH:
            return await self._complete(build_document_text_messages(text, file_name, doc_type))

        image = self._render_first_page(data)
        if image is None:
            raise ExtractionError(f"Could not render scanned PDF: {file_name}")
        data_url = self._data_url(image, "image/png")
        return await self._complete(build_document_image_messages(data_url, file_name, doc_type))

    async def _complete(self, messages: list[dict]) -> dict[str, Any]:
        raw = await get_completion(
            messages,
            tier=self.tier,
            response_format={"type": "json_object"},
        )
        return _parse_partial_application(raw)

    @staticmethod
    def _data_url(data: bytes, mime_type: str) -> str:
        b64 = base64.b64encode(data).decode("ascii")
        return f"data:{mime_type};base64,{b64}"

    @staticmethod
    def _extract_text_from_pdf(data: bytes) -> str | None:
        """Use pymupdf to extract text from all pages.

        Returns None if PDF is corrupted/unopenable.
        Returns empty string if no text layer (scanned doc).
        """
        try:
            pdf = fitz.open(stream=data, filetype="pdf")
            text_parts = [page.get_text() for page in pdf]
            pdf.close()
            return " ".join(text_parts).strip()
        except Exception:
            logger.exception("Failed to open PDF with pymupdf")
            return None

    @staticmethod
    def _render_first_page(data: bytes) -> bytes | None:
        """Render the first PDF page as PNG via pymupdf get_pixmap()."""
        try:
            pdf = fitz.open(stream=data, filetype="pdf")
            if pdf.page_count == 0:
                pdf.close()
                return None
            image = pdf[0].get_pixmap().tobytes("png")
            pdf.close()
            return image
        except Exception:
            logger.exception("Failed to render PDF page to image")
            return None


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

_service: ExtractionService | None = None


def init_extraction_service() -> ExtractionService:
    """Initialise the singleton (called once from app lifespan)."""
    global _service  # noqa: PLW0603
    _service = ExtractionService()
    logger.info("ExtractionService initialised")
    return _service


def get_extraction_service() -> ExtractionService:
    """Return the initialised ExtractionService singleton."""
    if _service is None:
        raise RuntimeError(
            "ExtractionService not initialised -- call init_extraction_service() first"
        )
    return _service
