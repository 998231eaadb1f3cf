"""Challenge <-> Firestore REST document conversion.

Documents live at ``users/{uid}/challenges/{challenge_id}`` and carry the
fields ``id``, ``title``, ``accentColor``, ``startDate`` (timestamp) and
``completedDays`` (integer array). Other clients may write doubles, integer
strings or out-of-range days into ``completedDays``; decoding tolerates all
of them and keeps only days 1..100.
"""
from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any

from challenge_sync.models import Challenge, valid_days

_FRACTION_RE = re.compile(r"\.(\d+)")


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def parse_timestamp(value: str) -> datetime:
    text = str(value).strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    # Firestore sends nanoseconds; datetime keeps microseconds.
    text = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _string_value(field: Any) -> str | None:
    if isinstance(field, dict) and isinstance(field.get("stringValue"), str):
        return field["stringValue"]
    return None


def _number_value(field: Any) -> int | None:
    if not isinstance(field, dict):
        return None
    try:
        if "integerValue" in field:
            return int(field["integerValue"])
        if "doubleValue" in field:
            return int(float(field["doubleValue"]))
    except (TypeError, ValueError, OverflowError):
        return None
    return None


def parse_completed_days(field: Any) -> list[int]:
    if not isinstance(field, dict):
        return []
    values = (field.get("arrayValue") or {}).get("values") or []
    days = []
    for item in values:
        number = _number_value(item)
        if number is not None:
            days.append(number)
    return days


def _parse_start_date(field: Any) -> datetime | None:
    if not isinstance(field, dict):
        return None
    if "timestampValue" in field:
        try:
            return parse_timestamp(field["timestampValue"])
        except (TypeError, ValueError):
            return None
    if "doubleValue" in field or "integerValue" in field:
        try:
            seconds = float(field.get("doubleValue", field.get("integerValue")))
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (TypeError, ValueError, OverflowError, OSError):
            return None
    return None


def document_id(name: str | None) -> str | None:
    if not name:
        return None
    return str(name).rstrip("/").rsplit("/", 1)[-1] or None


def to_document(challenge: Challenge) -> dict:
    days = [{"integerValue": str(day)} for day in sorted(challenge.completed_days)]
    return {
        "fields": {
            "id": {"stringValue": challenge.id},
            "title": {"stringValue": challenge.title},
            "accentColor": {"stringValue": challenge.accent_color},
            "startDate": {"timestampValue": format_timestamp(challenge.start_date)},
            "completedDays": {"arrayValue": {"values": days} if days else {}},
        }
    }


def from_document(document: dict, doc_id: str | None = None) -> Challenge | None:
    """Build a challenge from a document, or ``None`` if it is malformed."""
    if not isinstance(document, dict):
        return None
    fields = document.get("fields") or {}
    title = _string_value(fields.get("title"))
    accent_color = _string_value(fields.get("accentColor"))
    if not title or not title.strip() or not accent_color:
        return None
    start_date = _parse_start_date(fields.get("startDate"))
    if start_date is None:
        return None
    challenge_id = doc_id or document_id(document.get("name")) or _string_value(fields.get("id"))
    if not challenge_id:
        return None
    return Challenge(
        id=challenge_id,
        title=title,
        accent_color=accent_color,
        start_date=start_date,
        completed_days=valid_days(parse_completed_days(fields.get("completedDays"))),
    )
