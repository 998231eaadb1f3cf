from __future__ import annotations

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from challenge_sync.constants import FIRESTORE_API


class Settings(BaseSettings):
    database_url: str = Field("sqlite:///challenges.db", alias="CHALLENGES_DATABASE_URL")

    firestore_project_id: str | None = Field(None, alias="FIRESTORE_PROJECT_ID")
    firestore_base_url: str = Field(FIRESTORE_API, alias="FIRESTORE_BASE_URL")
    firestore_timeout_seconds: float = Field(20.0, alias="FIRESTORE_TIMEOUT_SECONDS")

    timezone_name: str | None = Field(None, alias="CHALLENGES_TIMEZONE")
    legacy_challenges_key: str = Field("challenges", alias="LEGACY_CHALLENGES_KEY")
    sync_local_edits: bool = Field(False, alias="CHALLENGES_SYNC_LOCAL_EDITS")

    log_level: str = Field("INFO", alias="CHALLENGES_LOG_LEVEL")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    @property
    def timezone(self) -> ZoneInfo | None:
        if not self.timezone_name:
            return None
        try:
            return ZoneInfo(self.timezone_name)
        except (ZoneInfoNotFoundError, ValueError):
            return None


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
