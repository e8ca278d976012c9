"""Normalization of raw ``ehr_resources`` documents.

Firestore hands timestamps back as ``DatetimeWithNanoseconds`` while documents
written by other producers may already carry ISO-8601 text. Everything
downstream of this module only ever sees text.

All functions are pure and handle missing/malformed data gracefully.
"""

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

TIMESTAMP_FIELDS = ("createdTime", "fetchTime", "processedTime")


def _format_utc(moment: datetime) -> str:
    """Format like ``Date.toISOString()``: UTC, millisecond precision, ``Z`` suffix."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _from_epoch(seconds: Any, nanos: Any) -> str | None:
    try:
        moment = datetime.fromtimestamp(int(seconds), tz=timezone.utc)
        micros = int(nanos or 0) // 1000
    except (TypeError, ValueError, OverflowError, OSError):
        return None
    return _format_utc(moment.replace(microsecond=micros % 1_000_000))


def to_iso(value: Any) -> str | None:
    """Convert a store timestamp to ISO-8601 text.

    Handles:
    - ``str`` -> unchanged (already normalized)
    - ``datetime`` (incl. Firestore ``DatetimeWithNanoseconds``) -> UTC text
    - protobuf ``Timestamp``-like objects with ``seconds``/``nanos``
    - exported dicts with ``seconds``/``nanoseconds`` or ``_seconds``/``_nanoseconds``

    Args:
        value: Raw field value from the store.

    Returns:
        ISO-8601 text, or None if the value is absent or not a timestamp.
    """
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, datetime):
        return _format_utc(value)
    if isinstance(value, Mapping):
        for seconds_key, nanos_key in (("seconds", "nanoseconds"), ("_seconds", "_nanoseconds")):
            if seconds_key in value:
                return _from_epoch(value[seconds_key], value.get(nanos_key))
        return None
    if hasattr(value, "seconds") and hasattr(value, "nanos"):
        return _from_epoch(value.seconds, value.nanos)
    return None


def normalize_document(doc_id: str | None, raw: Any) -> dict[str, Any]:
    """Map one raw document onto the canonical ResourceWrapper shape.

    The resource and its metadata are shallow-copied so unknown fields
    survive. Each timestamp field is converted on its own; a field that is
    missing stays missing and a field that cannot be converted is kept as
    received.

    Args:
        doc_id: Firestore document id, None for locally built rows.
        raw: Document data as returned by the store.

    Returns:
        Dict with ``id`` and ``resource`` keys. Never raises.
    """
    resource = raw.get("resource") if isinstance(raw, Mapping) else None
    if not isinstance(resource, Mapping):
        return {"id": doc_id, "resource": resource}

    normalized = dict(resource)
    metadata = resource.get("metadata")
    if isinstance(metadata, Mapping):
        normalized_metadata = dict(metadata)
        for field in TIMESTAMP_FIELDS:
            if field in metadata:
                original = metadata[field]
                converted = to_iso(original)
                normalized_metadata[field] = converted if converted is not None else original
        normalized["metadata"] = normalized_metadata

    return {"id": doc_id, "resource": normalized}
