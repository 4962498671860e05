"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    api_token: str | None = None
    client_bridge_url: str = "http://localhost:3001"
    client_webhook_url: str | None = None
    dispatch_service_url: str = "http://localhost:3002"
    dispatch_timeout_seconds: float | None = None
    scheduler_interval_seconds: float = 60.0
    scheduled_work_ttl_seconds: float | None = None
    sessions_file: str = "sessions.json"
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    sessions_table: str = "messaging_sessions"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def uses_supabase(self) -> bool:
        """Return true when Supabase credentials are configured."""
        return bool(self.supabase_url and self.supabase_service_key)
