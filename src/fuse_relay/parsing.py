"""
Payload conversions between the OPC facade, the store and Fuse.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Optional

from pydantic import ValidationError

from .errors import DataError
from .models import FuseSubmission, Record

_TRUE = {"true", "1"}
_FALSE = {"false", "0"}


def parse_new_record_flag(body: Optional[str]) -> bool:
    """Interpret the "new record available" answer.

    Accepts a JSON boolean, a JSON object with a boolean ``value`` field, or
    plain text ``true``/``false``. An absent or malformed answer is a
    DataError, never False.
    """
    if body is None or not body.strip():
        raise DataError("empty response to new-record poll")
    text = body.strip()
    try:
        doc: Any = json.loads(text)
    except json.JSONDecodeError:
        doc = text

    if isinstance(doc, dict):
        doc = doc.get("value")
    if isinstance(doc, bool):
        return doc
    if isinstance(doc, int):
        doc = str(doc)
    if isinstance(doc, str):
        lowered = doc.strip().lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
    raise DataError(f"unparseable new-record response: {text[:200]!r}")


def parse_source_payload(raw: Optional[str], captured_at: datetime) -> Record:
    """Build a Pending record from the raw body returned by the fetch call."""
    if raw is None or not raw.strip():
        raise DataError("empty payload from source")
    try:
        doc = json.loads(raw)
    except json.JSONDecodeError as e:
        raise DataError(f"source payload is not JSON: {e}") from e
    if not isinstance(doc, dict):
        raise DataError(f"source payload must be a JSON object, got {type(doc).__name__}")
    try:
        return Record(captured_at=captured_at, payload=doc)
    except ValidationError as e:
        raise DataError(f"invalid source payload: {e.errors()[0]['msg']}") from e


def to_submission(record: Record, *, host_name: str, server_name: str) -> FuseSubmission:
    """Downstream request body for a stored record."""
    if record.id is None:
        raise DataError("record has no id; only stored records can be submitted")
    return FuseSubmission(
        record_id=record.id,
        captured_at=record.captured_at,
        host_name=host_name,
        server_name=server_name,
        data=record.payload,
    )
