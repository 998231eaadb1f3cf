from __future__ import annotations

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Engine

from challenge_sync.constants import CHALLENGES_TABLE, PREFERENCES_TABLE


def init_db(engine: Engine) -> None:
    with engine.begin() as conn:
        conn.execute(
            sql_text(
                f"""
                CREATE TABLE IF NOT EXISTS {CHALLENGES_TABLE} (
                    row_id INTEGER PRIMARY KEY AUTOINCREMENT,
                    id TEXT NOT NULL,
                    owner_id TEXT,
                    title TEXT NOT NULL,
                    accent_color TEXT NOT NULL,
                    start_date TEXT NOT NULL,
                    completed_days_json TEXT
                )
                """
            )
        )
        conn.execute(
            sql_text(
                f"""
                CREATE TABLE IF NOT EXISTS {PREFERENCES_TABLE} (
                    key TEXT PRIMARY KEY,
                    value TEXT
                )
                """
            )
        )
        conn.execute(
            sql_text(
                f"CREATE INDEX IF NOT EXISTS idx_{CHALLENGES_TABLE}_owner_start "
                f"ON {CHALLENGES_TABLE} (owner_id, start_date)"
            )
        )
