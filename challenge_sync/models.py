from __future__ import annotations

from datetime import datetime, timezone, tzinfo
from typing import Iterable
from uuid import uuid4

from pydantic import BaseModel, Field

from challenge_sync.constants import DEFAULT_ACCENT_COLOR, MAX_DAY, MAX_TITLE_LENGTH


def _new_id() -> str:
    return uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def valid_days(values: Iterable) -> set[int]:
    """Keep only integer day numbers inside 1..MAX_DAY."""
    days = set()
    for value in values or ():
        if isinstance(value, bool):
            continue
        try:
            day = int(value)
        except (TypeError, ValueError):
            continue
        if 1 <= day <= MAX_DAY:
            days.add(day)
    return days


def _local_date(value: datetime, tz: tzinfo | None):
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(tz).date()


class Challenge(BaseModel):
    """A 100-day challenge.

    Plain value type: no validation happens here. Day numbers are filtered
    wherever a challenge crosses a storage or transport boundary.
    """

    id: str = Field(default_factory=_new_id)
    title: str
    accent_color: str
    start_date: datetime = Field(default_factory=_utcnow)
    completed_days: set[int] = Field(default_factory=set)

    def current_day(self, now: datetime | None = None, tz: tzinfo | None = None) -> int:
        today = _local_date(now or _utcnow(), tz)
        start = _local_date(self.start_date, tz)
        return max(1, min((today - start).days + 1, MAX_DAY))

    @property
    def progress(self) -> float:
        return len(self.completed_days) / MAX_DAY

    def is_today_completed(self, now: datetime | None = None, tz: tzinfo | None = None) -> bool:
        return self.current_day(now, tz) in self.completed_days


def sanitize_title(raw_value) -> str:
    return " ".join(str(raw_value or "").split()).strip()[:MAX_TITLE_LENGTH]


def new_challenge(title, accent_color: str | None = None, start_date: datetime | None = None) -> Challenge:
    clean_title = sanitize_title(title)
    if not clean_title:
        raise ValueError("Challenge title is required")
    return Challenge(
        title=clean_title,
        accent_color=accent_color or DEFAULT_ACCENT_COLOR,
        start_date=start_date or _utcnow(),
    )
