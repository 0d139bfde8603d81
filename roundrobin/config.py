"""Application configuration using pydantic-settings pattern."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "Round-Robin Reassignment"
    app_version: str = "0.1.0"
    app_env: str = Field(default="development")
    log_level: str = Field(default="INFO")

    # Database (Turso)
    turso_database_url: str | None = Field(default=None)
    turso_auth_token: str | None = Field(default=None)

    # Public URLs
    website_url: str = Field(default="https://app.example.com")
    website_domain: str = Field(
        default="example.com",
        description="Domain organization subdomains are hosted under",
    )

    # Booking defaults
    default_locale: str = Field(default="en")
    default_conferencing_location: str = Field(default="integrations:daily")

    # Email (SMTP)
    smtp_host: str = Field(default="localhost")
    smtp_port: int = Field(default=587)
    smtp_username: str | None = Field(default=None)
    smtp_password: str | None = Field(default=None)
    smtp_use_tls: bool = Field(default=True)
    email_from: str = Field(default="notifications@example.com")
    email_from_name: str = Field(default="Scheduling")

    # Google Calendar (OAuth client used to refresh user credentials)
    google_client_id: str | None = Field(default=None)
    google_client_secret: str | None = Field(default=None)

    # Workflow reminders
    reminder_schedule_window_hours: int = Field(
        default=72,
        ge=1,
        description="Reminders due inside this window are scheduled immediately",
    )
    reminder_sweep_enabled: bool = Field(default=True)
    reminder_sweep_interval_minutes: int = Field(default=15, ge=1)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
