from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Iterable

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from challenge_sync.constants import CHALLENGES_TABLE
from challenge_sync.models import Challenge, valid_days

logger = logging.getLogger(__name__)

CHALLENGE_COLUMNS = [
    "id",
    "owner_id",
    "title",
    "accent_color",
    "start_date",
    "completed_days_json",
]


def _to_utc_iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    # Fixed width keeps text ordering equal to time ordering.
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f+00:00")


def _from_iso(value) -> datetime:
    parsed = datetime.fromisoformat(str(value))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _decode_days(raw) -> set[int]:
    if not raw:
        return set()
    try:
        payload = json.loads(raw)
    except (TypeError, ValueError):
        return set()
    if not isinstance(payload, list):
        return set()
    return valid_days(payload)


def _scope_clause(owner_id: str | None) -> tuple[str, dict]:
    if owner_id is None:
        return "owner_id IS NULL", {}
    return "owner_id = :owner_id", {"owner_id": owner_id}


def row_payload(challenge: Challenge, owner_id: str | None) -> dict:
    return {
        "id": challenge.id,
        "owner_id": owner_id,
        "title": challenge.title,
        "accent_color": challenge.accent_color,
        "start_date": _to_utc_iso(challenge.start_date),
        "completed_days_json": json.dumps(sorted(valid_days(challenge.completed_days))),
    }


def row_to_challenge(row: dict) -> Challenge | None:
    if not row or not row.get("id"):
        return None
    try:
        start_date = _from_iso(row.get("start_date"))
    except (TypeError, ValueError):
        logger.warning("Skipping challenge row %s with unreadable start date", row.get("id"))
        return None
    return Challenge(
        id=row["id"],
        title=row.get("title") or "",
        accent_color=row.get("accent_color") or "",
        start_date=start_date,
        completed_days=_decode_days(row.get("completed_days_json")),
    )


def insert_rows(conn: Connection, challenges: Iterable[Challenge], owner_id: str | None) -> int:
    placeholders = ", ".join([f":{col}" for col in CHALLENGE_COLUMNS])
    statement = sql_text(
        f"INSERT INTO {CHALLENGES_TABLE} ({', '.join(CHALLENGE_COLUMNS)}) VALUES ({placeholders})"
    )
    count = 0
    for challenge in challenges:
        conn.execute(statement, row_payload(challenge, owner_id))
        count += 1
    return count


def existing_ids(conn: Connection) -> set[str]:
    rows = conn.execute(sql_text(f"SELECT id FROM {CHALLENGES_TABLE}")).fetchall()
    return {row[0] for row in rows}


class LocalChallengeStore:
    """Challenge rows on disk, read and written for one owner scope at a time.

    Every operation fails soft: database errors are logged, reads come back
    empty and writes report ``False``. Callers re-read with :meth:`list`
    instead of trusting their own copy.
    """

    def __init__(self, engine: Engine, owner_id: str | None = None):
        self._engine = engine
        self._owner_id = owner_id

    @classmethod
    def open(cls, engine: Engine, legacy_key: str | None = "challenges") -> "LocalChallengeStore":
        """Create the schema and fold in legacy data before anything reads the store."""
        from challenge_sync.db_init import init_db
        from challenge_sync.migration import migrate_legacy_challenges
        from challenge_sync.preferences import PreferenceStore

        init_db(engine)
        if legacy_key:
            migrate_legacy_challenges(engine, PreferenceStore(engine), legacy_key)
        return cls(engine)

    @property
    def owner_id(self) -> str | None:
        return self._owner_id

    def set_active_scope(self, owner_id: str | None) -> list[Challenge]:
        self._owner_id = owner_id
        return self.list()

    def list(self) -> list[Challenge]:
        clause, params = _scope_clause(self._owner_id)
        try:
            with self._engine.connect() as conn:
                rows = conn.execute(
                    sql_text(
                        f"SELECT {', '.join(CHALLENGE_COLUMNS)} FROM {CHALLENGES_TABLE} "
                        f"WHERE {clause} ORDER BY start_date, row_id"
                    ),
                    params,
                ).mappings().all()
        except SQLAlchemyError as exc:
            logger.error("Failed to fetch challenges: %s", exc)
            return []
        challenges = []
        for row in rows:
            challenge = row_to_challenge(dict(row))
            if challenge is not None:
                challenges.append(challenge)
        return challenges

    def count(self) -> int:
        clause, params = _scope_clause(self._owner_id)
        try:
            with self._engine.connect() as conn:
                return int(
                    conn.execute(
                        sql_text(f"SELECT COUNT(*) FROM {CHALLENGES_TABLE} WHERE {clause}"),
                        params,
                    ).scalar_one()
                )
        except SQLAlchemyError as exc:
            logger.error("Failed to count challenges: %s", exc)
            return 0

    def all_ids(self) -> set[str]:
        """Ids across every owner scope."""
        try:
            with self._engine.connect() as conn:
                return existing_ids(conn)
        except SQLAlchemyError as exc:
            logger.error("Failed to read challenge ids: %s", exc)
            return set()

    def insert(self, challenge: Challenge) -> bool:
        try:
            with self._engine.begin() as conn:
                insert_rows(conn, [challenge], self._owner_id)
        except SQLAlchemyError as exc:
            logger.error("Failed to save challenge %s: %s", challenge.id, exc)
            return False
        return True

    def update(self, challenge: Challenge) -> bool:
        clause, params = _scope_clause(self._owner_id)
        payload = row_payload(challenge, self._owner_id)
        payload.pop("owner_id")
        params.update(payload)
        try:
            with self._engine.begin() as conn:
                result = conn.execute(
                    sql_text(
                        f"""
                        UPDATE {CHALLENGES_TABLE}
                        SET title = :title,
                            accent_color = :accent_color,
                            start_date = :start_date,
                            completed_days_json = :completed_days_json
                        WHERE id = :id AND {clause}
                        """
                    ),
                    params,
                )
        except SQLAlchemyError as exc:
            logger.error("Failed to update challenge %s: %s", challenge.id, exc)
            return False
        return result.rowcount > 0

    def delete(self, challenge_id: str) -> bool:
        clause, params = _scope_clause(self._owner_id)
        params["id"] = challenge_id
        try:
            with self._engine.begin() as conn:
                result = conn.execute(
                    sql_text(f"DELETE FROM {CHALLENGES_TABLE} WHERE id = :id AND {clause}"),
                    params,
                )
        except SQLAlchemyError as exc:
            logger.error("Failed to delete challenge %s: %s", challenge_id, exc)
            return False
        return result.rowcount > 0

    def replace_all_in_scope(self, challenges: Iterable[Challenge]) -> bool:
        clause, params = _scope_clause(self._owner_id)
        try:
            with self._engine.begin() as conn:
                conn.execute(sql_text(f"DELETE FROM {CHALLENGES_TABLE} WHERE {clause}"), params)
                insert_rows(conn, challenges, self._owner_id)
        except SQLAlchemyError as exc:
            logger.error("Failed to replace local challenges: %s", exc)
            return False
        return True
