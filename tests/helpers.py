"""Builders and doubles shared by the test modules."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

from challenge_sync.models import Challenge

BASE_DATE = datetime(2026, 3, 1, 8, 30, tzinfo=timezone.utc)


def make_challenge(challenge_id: str, days_offset: int = 0, **overrides) -> Challenge:
    """Build a challenge whose start date is BASE_DATE + days_offset."""
    values = {
        "id": challenge_id,
        "title": f"Challenge {challenge_id}",
        "accent_color": "#5C9FFF",
        "start_date": BASE_DATE + timedelta(days=days_offset),
        "completed_days": set(),
    }
    values.update(overrides)
    return Challenge(**values)


class FakeRemote:
    """Remote repository double with AsyncMock operations."""

    def __init__(self, remote_challenges=None):
        self.fetch_all = AsyncMock(return_value=list(remote_challenges or []))
        self.save = AsyncMock(return_value=None)
        self.delete = AsyncMock(return_value=None)
