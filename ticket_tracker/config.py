"""Configuration management for ticket-tracker."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TicketingSettings(BaseSettings):
    """Service configuration, read from TICKETING_* environment variables."""

    model_config = SettingsConfigDict(env_prefix="TICKETING_", env_file=".env", extra="ignore")

    database_url: str = Field(
        default="postgresql://localhost:5432/tickets",
        description="libpq connection string",
    )
    db_schema: str = Field(
        default="public",
        description="PostgreSQL schema holding the ticket tables",
    )
    log_level: str = Field(
        default="INFO",
        description="Root logging level",
    )
    host: str = Field(
        default="0.0.0.0",
        description="Host to bind the HTTP server",
    )
    port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Port to bind the HTTP server",
    )
    create_tables: bool = Field(
        default=False,
        description="Run the ticket table DDL on startup",
    )


@lru_cache()
def get_settings() -> TicketingSettings:
    return TicketingSettings()
