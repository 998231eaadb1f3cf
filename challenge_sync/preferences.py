from __future__ import annotations

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Engine

from challenge_sync.constants import PREFERENCES_TABLE


class PreferenceStore:
    """Flat key-value storage kept next to the challenge table."""

    def __init__(self, engine: Engine):
        self._engine = engine

    def get(self, key: str) -> str | None:
        with self._engine.connect() as conn:
            row = conn.execute(
                sql_text(f"SELECT value FROM {PREFERENCES_TABLE} WHERE key = :key"),
                {"key": key},
            ).fetchone()
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        with self._engine.begin() as conn:
            conn.execute(
                sql_text(
                    f"INSERT INTO {PREFERENCES_TABLE} (key, value) VALUES (:key, :value) "
                    "ON CONFLICT(key) DO UPDATE SET value=EXCLUDED.value"
                ),
                {"key": key, "value": value},
            )

    def remove(self, key: str) -> None:
        with self._engine.begin() as conn:
            conn.execute(
                sql_text(f"DELETE FROM {PREFERENCES_TABLE} WHERE key = :key"),
                {"key": key},
            )
