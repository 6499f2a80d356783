"""Application configuration for the Soundgood rental service.

Values come from ``SOUNDGOOD_*`` environment variables or a local ``.env``
file. The defaults run against a SQLite file in the working directory.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppConfig(BaseSettings):
    """Pydantic settings container for the rental service."""

    model_config = SettingsConfigDict(
        env_prefix="SOUNDGOOD_",
        env_file=".env",
        extra="ignore",
    )

    database_url: str = Field(
        default="sqlite:///soundgood.db",
        description="SQLite URL/path or PostgreSQL DSN of the rental ledger.",
    )
    create_schema: bool = Field(
        default=True,
        description="Create the ledger tables on connect when they are missing.",
    )
    max_existing_rentals: int = Field(
        default=1,
        ge=0,
        description=(
            "A rent is refused once the student already holds more than this many "
            "non-terminated rentals."
        ),
    )
    log_level: str = Field(default="INFO", description="Root logging level.")
    log_json: bool = Field(default=True, description="Render structlog events as JSON.")
    host: str = Field(default="127.0.0.1", description="Bind address for the HTTP server.")
    port: int = Field(default=8000, ge=1, le=65535, description="HTTP server port.")

    @classmethod
    def build_default(cls) -> "AppConfig":
        """Construct configuration from the process environment."""

        return cls()


__all__ = ["AppConfig"]
