# This project was developed with assistance from AI tools.
"""Non-clobber merge of extracted fields into a deal's application record.

First writer wins: a field that already holds a value is never overwritten by
a later extraction. Ingestion merges the email body before attachments, and
attachments in the order received, so that order decides which source fills
each field. ``missing_fields`` is always recomputed here and never taken from
input.
"""

import logging
from collections.abc import Mapping
from typing import Any

from ..schemas.application import (
    APPLICATION_FIELDS,
    REQUIRED_FIELDS,
    REVIEW_READY_FIELDS,
)

logger = logging.getLogger(__name__)


def empty_application() -> dict[str, Any]:
    """Return an application record with every field explicitly null."""
    record: dict[str, Any] = {name: None for name in APPLICATION_FIELDS}
    record["confidence_notes"] = {}
    record["missing_fields"] = list(REQUIRED_FIELDS)
    return record


def compute_missing_fields(application: Mapping[str, Any]) -> list[str]:
    """Required field names whose value is null or absent, in required order."""
    return [name for name in REQUIRED_FIELDS if application.get(name) is None]


def has_required_fields(application: Mapping[str, Any]) -> bool:
    """True when borrower name, loan amount and property address are all set."""
    return all(application.get(name) is not None for name in REVIEW_READY_FIELDS)


def _is_scalar(value: Any) -> bool:
    # bool is an int subclass but never a valid field value
    return isinstance(value, (str, int, float)) and not isinstance(value, bool)


def _coerce_notes(notes: Any) -> dict[str, str]:
    if not isinstance(notes, Mapping):
        return {}
    return {str(key): str(value) for key, value in notes.items() if value is not None}


def merge_application(
    existing: Mapping[str, Any] | None,
    incoming: Mapping[str, Any] | None,
) -> dict[str, Any]:
    """Fold ``incoming`` into a copy of ``existing`` without clobbering.

    Args:
        existing: Current application record (may be partial or None).
        incoming: Partial record from an extraction.

    Returns:
        A new, fully-populated application record with ``missing_fields``
        recomputed.
    """
    existing = existing or {}
    merged = empty_application()
    for name in APPLICATION_FIELDS:
        merged[name] = existing.get(name)
    merged["confidence_notes"] = _coerce_notes(existing.get("confidence_notes"))

    for key, value in (incoming or {}).items():
        if key == "confidence_notes":
            merged["confidence_notes"].update(_coerce_notes(value))
            continue
        if key == "missing_fields":
            continue
        if key not in merged:
            logger.debug("Ignoring unknown extracted field %r", key)
            continue
        if value is None:
            continue
        if not _is_scalar(value):
            logger.debug("Ignoring non-scalar value for %s: %r", key, value)
            continue
        if merged[key] is None:
            merged[key] = value

    merged["missing_fields"] = compute_missing_fields(merged)
    return merged
