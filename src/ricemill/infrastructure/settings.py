"""Runtime configuration read from ``RICEMILL_*`` environment variables or ``.env``."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve data directory relative to the project root.
# When installed in editable mode the project root is the repo root.
_DATA_DIR = Path(__file__).resolve().parents[3] / "data"


class Settings(BaseSettings):

    DATABASE_URL: str = Field(
        default=f"sqlite:///{_DATA_DIR / 'ricemill.db'}",
        description="SQLAlchemy URL of the inventory database.",
    )
    SQL_ECHO: bool = Field(default=False, description="Echo SQL statements for debugging.")
    LOG_LEVEL: str = Field(default="WARNING")
    DEFAULT_ACTOR: str = Field(
        default="system",
        description="Recorded as created_by on ledger entries when no user is given.",
    )

    model_config = SettingsConfigDict(
        env_prefix="RICEMILL_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def _normalize_level(cls, v):
        return str(v).upper() if v else "WARNING"


def get_settings() -> Settings:
    """Return settings populated from the current environment."""
    return Settings()
