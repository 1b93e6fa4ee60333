import os

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_QUALITY_LEVEL = "premium"
BULK_RETRY_LIMIT = 1000


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=os.getenv("SETTINGS_ENV_FILE", ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database_url: str = Field(
        default="sqlite+aiosqlite:///ingest_console.db",
        validation_alias="DATABASE_URL",
    )
    db_migrations: str = Field(default="db/migrations", validation_alias="DB_MIGRATIONS")

    worker_trigger_url: str = Field(
        default="http://localhost:5678/webhook/ingest",
        validation_alias=AliasChoices("WORKER_TRIGGER_URL", "INGEST_WORKER_URL"),
    )
    worker_secret: str = Field(
        default="",
        validation_alias=AliasChoices("WORKER_SECRET", "INGEST_WORKER_SECRET"),
    )
    worker_timeout: float = Field(default=30.0, validation_alias="WORKER_TIMEOUT")

    operator_token: str = Field(default="", validation_alias="OPERATOR_TOKEN")

    default_quality_level: str = Field(default=DEFAULT_QUALITY_LEVEL, validation_alias="DEFAULT_QUALITY_LEVEL")
    bulk_retry_limit: int = Field(default=BULK_RETRY_LIMIT, ge=1, validation_alias="BULK_RETRY_LIMIT")
