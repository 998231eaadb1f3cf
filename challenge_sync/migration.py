"""One-time move of challenges out of the deprecated flat preference key.

Older clients kept every challenge as one JSON array under a single key in
the preference store. On first open the array is copied into the challenge
table (unowned rows) and the key is dropped. The payload uses the old
client's field names, and numeric dates count seconds from 2001-01-01 UTC.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from pydantic import BaseModel, Field, TypeAdapter, ValidationError, field_validator
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from challenge_sync.local_store import existing_ids, insert_rows
from challenge_sync.models import Challenge
from challenge_sync.preferences import PreferenceStore

logger = logging.getLogger(__name__)

REFERENCE_DATE = datetime(2001, 1, 1, tzinfo=timezone.utc)


class LegacyChallenge(BaseModel):
    id: str
    title: str
    accent_color: str = Field(alias="accentColor")
    start_date: datetime = Field(alias="startDate")
    completed_days: list[int] = Field(alias="completedDaysSet")

    @field_validator("start_date", mode="before")
    @classmethod
    def _reference_seconds(cls, value):
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return REFERENCE_DATE + timedelta(seconds=value)
        return value

    def to_challenge(self) -> Challenge:
        start_date = self.start_date
        if start_date.tzinfo is None:
            start_date = start_date.replace(tzinfo=timezone.utc)
        return Challenge(
            id=self.id,
            title=self.title,
            accent_color=self.accent_color,
            start_date=start_date,
            completed_days=set(self.completed_days),
        )


_LEGACY_PAYLOAD = TypeAdapter(list[LegacyChallenge])


def decode_legacy_payload(raw: str | bytes | None) -> list[Challenge] | None:
    """Return the decoded challenges, or ``None`` when the payload is unreadable."""
    if raw is None:
        return None
    try:
        decoded = _LEGACY_PAYLOAD.validate_json(raw)
    except ValidationError:
        return None
    challenges = []
    seen = set()
    for item in decoded:
        if item.id in seen:
            continue
        seen.add(item.id)
        challenges.append(item.to_challenge())
    return challenges


def migrate_legacy_challenges(engine: Engine, preferences: PreferenceStore, key: str = "challenges") -> int:
    try:
        raw = preferences.get(key)
    except SQLAlchemyError as exc:
        logger.error("Failed to read legacy challenges: %s", exc)
        return 0
    challenges = decode_legacy_payload(raw)
    if challenges is None:
        if raw is not None:
            logger.info("Legacy challenge payload is unreadable; nothing to migrate")
        return 0

    try:
        with engine.begin() as conn:
            known = existing_ids(conn)
            inserted = insert_rows(conn, [c for c in challenges if c.id not in known], None)
        preferences.remove(key)
    except SQLAlchemyError as exc:
        logger.error("Failed to migrate legacy challenges: %s", exc)
        return 0
    logger.info("Migrated %s legacy challenge(s)", inserted)
    return inserted
